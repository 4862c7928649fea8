"""Bitstamp fetcher.

Endpoint: https://www.bitstamp.net/api/v2/ticker/{base}{quote}/
Rate Limit: High (no key required)
"""

from .base import BaseFetcher, FetcherError, register_fetcher


@register_fetcher
class BitstampFetcher(BaseFetcher):
    """Fetcher for Bitstamp public API.

    Supports major USD pairs (BTC, ETH, etc.). No API key required.
    """

    name = "bitstamp"
    BASE_URL = "https://www.bitstamp.net/api/v2"

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch price from Bitstamp.

        :param base: Base currency (e.g., "BTC", "ETH").
        :param quote: Quote currency (e.g., "USD").
        :returns: Current price.
        :raises FetcherError: On transport failure or malformed response.
        """
        pair = f"{base.lower()}{quote.lower()}"
        data = await self._get_json(f"{self.base_url}/ticker/{pair}/")

        if not isinstance(data, dict) or "last" not in data:
            raise FetcherError(f"[bitstamp] No 'last' price for {pair}: {data}")

        return self._parse_price(data["last"], pair)
