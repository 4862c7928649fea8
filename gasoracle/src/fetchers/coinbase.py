"""Coinbase Exchange fetcher.

Endpoint: https://api.exchange.coinbase.com/products/{BASE}-{QUOTE}/ticker
Rate Limit: High (no key required)
"""

from .base import BaseFetcher, FetcherError, register_fetcher


@register_fetcher
class CoinbaseFetcher(BaseFetcher):
    """Fetcher for Coinbase Exchange API.

    Supports native USD pairs. No API key required for public ticker endpoint.
    """

    name = "coinbase"
    BASE_URL = "https://api.exchange.coinbase.com"

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch price from Coinbase Exchange.

        :param base: Base currency (e.g., "BTC", "ETH").
        :param quote: Quote currency (e.g., "USD").
        :returns: Current price.
        :raises FetcherError: On transport failure or malformed response.
        """
        symbol = f"{base.upper()}-{quote.upper()}"
        data = await self._get_json(f"{self.base_url}/products/{symbol}/ticker")

        if not isinstance(data, dict) or "price" not in data:
            raise FetcherError(f"[coinbase] No price in response for {symbol}: {data}")

        return self._parse_price(data["price"], symbol)
