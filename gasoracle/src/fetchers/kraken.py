"""Kraken fetcher.

Endpoint: https://api.kraken.com/0/public/Ticker?pair={BASE}{QUOTE}
Rate Limit: High (no key required)
"""

from .base import BaseFetcher, FetcherError, register_fetcher


@register_fetcher
class KrakenFetcher(BaseFetcher):
    """Fetcher for Kraken public API.

    Supports major USD pairs (BTC, ETH, etc.). No API key required.
    """

    name = "kraken"
    BASE_URL = "https://api.kraken.com/0/public"

    # Kraken uses non-standard ticker symbols
    SYMBOL_MAP = {
        "BTC": "XBT",  # Kraken uses XBT instead of BTC
    }

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch price from Kraken.

        :param base: Base currency (e.g., "BTC", "ETH").
        :param quote: Quote currency (e.g., "USD").
        :returns: Current price.
        :raises FetcherError: On transport failure, API error or malformed response.
        """
        kraken_base = self.SYMBOL_MAP.get(base.upper(), base.upper())
        pair = f"{kraken_base}{quote.upper()}"

        data = await self._get_json(f"{self.base_url}/Ticker", params={"pair": pair})

        try:
            errors = data.get("error")
            if errors:
                raise FetcherError(f"[kraken] API error for {pair}: {errors}")

            result = data.get("result", {})
            if not result:
                raise FetcherError(f"[kraken] No result for {pair}")

            # Kraken returns results with pair names as keys (may vary slightly)
            pair_data = list(result.values())[0]

            # 'c' is the last trade closed array: [price, lot volume]
            return self._parse_price(pair_data["c"][0], pair)

        except (AttributeError, KeyError, TypeError, IndexError) as e:
            raise FetcherError(f"[kraken] Failed to parse response for {pair}: {e}") from e
