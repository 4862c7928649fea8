"""Binance fetcher.

Binance lists USDT markets rather than USD ones, so a USD quote is read
from the matching USDT market.

Endpoint: https://api.binance.com/api/v3/ticker/price?symbol={BASE}{QUOTE}
Rate Limit: High (no key required for public endpoints)
"""

from .base import BaseFetcher, FetcherError, register_fetcher


@register_fetcher
class BinanceFetcher(BaseFetcher):
    """Fetcher for Binance public ticker API.

    No API key required. Unknown symbols are answered with HTTP 400,
    which surfaces as FetcherHTTPError.
    """

    name = "binance"
    BASE_URL = "https://api.binance.com/api/v3"

    # Binance quote symbols for fiat quotes
    QUOTE_MAP = {
        "USD": "USDT",
    }

    def symbol_for(self, base: str, quote: str) -> str:
        """Build the Binance market symbol for a pair.

        :param base: Base currency symbol.
        :param quote: Quote currency symbol.
        :returns: Market symbol, e.g. "ETHUSDT".
        """
        quote_u = quote.upper()
        return f"{base.upper()}{self.QUOTE_MAP.get(quote_u, quote_u)}"

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch price from Binance.

        :param base: Base currency (e.g., "BTC", "ETH").
        :param quote: Quote currency (e.g., "USD", "USDT").
        :returns: Current price.
        :raises FetcherError: On transport failure or malformed response.
        """
        symbol = self.symbol_for(base, quote)
        data = await self._get_json(
            f"{self.base_url}/ticker/price", params={"symbol": symbol}
        )

        if not isinstance(data, dict) or "price" not in data:
            raise FetcherError(f"[binance] No price for {symbol}: {data}")

        return self._parse_price(data["price"], symbol)
