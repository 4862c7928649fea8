"""Crypto.com Exchange fetcher.

Endpoint: https://api.crypto.com/exchange/v1/public/get-tickers?instrument_name={BASE}_{QUOTE}
Rate Limit: 100 requests/second per IP (no key required)
"""

from .base import BaseFetcher, FetcherError, register_fetcher


@register_fetcher
class CryptocomFetcher(BaseFetcher):
    """Fetcher for the Crypto.com Exchange public API.

    The API wraps every answer in an envelope with a numeric ``code``; any
    non-zero code is a failure even when the HTTP status is 200.
    """

    name = "cryptocom"
    BASE_URL = "https://api.crypto.com/exchange/v1"

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch the latest trade price from Crypto.com.

        :param base: Base currency (e.g., "BTC", "ETH").
        :param quote: Quote currency (e.g., "USD").
        :returns: Current price.
        :raises FetcherError: On transport failure, API error or malformed response.
        """
        instrument = f"{base.upper()}_{quote.upper()}"
        data = await self._get_json(
            f"{self.base_url}/public/get-tickers",
            params={"instrument_name": instrument},
        )

        try:
            if data.get("code") != 0:
                raise FetcherError(
                    f"[cryptocom] API error for {instrument}: "
                    f"code={data.get('code')} {data.get('message', '')}".rstrip()
                )

            tickers = data["result"]["data"]
            if not tickers:
                raise FetcherError(f"[cryptocom] No ticker for {instrument}")

            # 'a' is the latest trade price
            return self._parse_price(tickers[0]["a"], instrument)

        except (AttributeError, KeyError, TypeError, IndexError) as e:
            raise FetcherError(
                f"[cryptocom] Failed to parse response for {instrument}: {e}"
            ) from e
