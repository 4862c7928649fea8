"""CoinGecko fetcher.

Endpoint: https://api.coingecko.com/api/v3/simple/price?ids={id}&vs_currencies={quote}
Rate Limit: 30 calls/min (free), higher with API key
"""

from .base import BaseFetcher, FetcherError, register_fetcher


@register_fetcher
class CoinGeckoFetcher(BaseFetcher):
    """Fetcher for CoinGecko API.

    CoinGecko addresses coins by id rather than ticker, so only tickers
    listed in COIN_IDS can be fetched.

    API tiers:
        - Free: api.coingecko.com (no key, 30 calls/min)
        - Demo: api.coingecko.com + x-cg-demo-api-key header
        - Pro: pro-api.coingecko.com + x-cg-pro-api-key header

    To use a demo key, prefix with "demo:": API_KEY_COINGECKO=demo:CG-xxxxx
    Pro keys need no prefix: API_KEY_COINGECKO=xxxxx
    """

    name = "coingecko"
    BASE_URL = "https://api.coingecko.com/api/v3"
    BASE_URL_PRO = "https://pro-api.coingecko.com/api/v3"

    # Map tickers to CoinGecko IDs
    COIN_IDS = {
        "BTC": "bitcoin",
        "ETH": "ethereum",
        "EGLD": "elrond-erd-2",
        "BNB": "binancecoin",
        "USDT": "tether",
        "USDC": "usd-coin",
        "DAI": "dai",
        "SOL": "solana",
        "AVAX": "avalanche-2",
        "MATIC": "matic-network",
        "DOT": "polkadot",
        "ATOM": "cosmos",
        "LINK": "chainlink",
        "UNI": "uniswap",
        "AAVE": "aave",
    }

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        base_url: str | None = None,
    ):
        """Initialize with optional demo: prefix handling."""
        self._is_demo = False
        if api_key and api_key.lower().startswith("demo:"):
            self._is_demo = True
            api_key = api_key[5:]  # Strip "demo:" prefix
        # Pro keys use the pro endpoint unless one is given explicitly
        if base_url is None and api_key and not self._is_demo:
            base_url = self.BASE_URL_PRO
        super().__init__(api_key=api_key, timeout=timeout, base_url=base_url)

    @property
    def api_header(self) -> tuple[str, str] | None:
        """Return appropriate header name and value for API key."""
        if not self.api_key:
            return None
        header_name = "x-cg-demo-api-key" if self._is_demo else "x-cg-pro-api-key"
        return (header_name, self.api_key)

    async def fetch(self, base: str, quote: str) -> float:
        """Fetch price from CoinGecko.

        :param base: Base currency (e.g., "BTC", "EGLD").
        :param quote: Quote currency (e.g., "USD").
        :returns: Current price.
        :raises FetcherError: If the coin is unknown or the response is malformed.
        """
        coin_id = self.COIN_IDS.get(base.upper())
        if not coin_id:
            raise FetcherError(f"[coingecko] Unknown coin: {base}")

        quote_lower = quote.lower()
        headers = dict([self.api_header]) if self.api_header else None

        data = await self._get_json(
            f"{self.base_url}/simple/price",
            params={"ids": coin_id, "vs_currencies": quote_lower},
            headers=headers,
        )

        try:
            if coin_id not in data:
                raise FetcherError(f"[coingecko] Coin {coin_id} not in response: {data}")

            if quote_lower not in data[coin_id]:
                raise FetcherError(
                    f"[coingecko] Quote {quote_lower} not available for {coin_id}"
                )

            return self._parse_price(data[coin_id][quote_lower], f"{coin_id}/{quote_lower}")

        except TypeError as e:
            raise FetcherError(f"[coingecko] Failed to parse response: {e}") from e
