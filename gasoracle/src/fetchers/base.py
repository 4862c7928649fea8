"""Price source interface and the HTTP client shared by all sources.

A price source answers one question: what is the last traded price of
base in quote on this exchange. It either returns a strictly positive float
or raises FetcherError. It never retries; the aggregator decides what a
failure means.

.. code-block:: python

    @register_fetcher
    class MyFetcher(BaseFetcher):
        name = "myfetcher"
        BASE_URL = "https://api.example.com"

        async def fetch(self, base: str, quote: str) -> float:
            data = await self._get_json(f"{self.base_url}/ticker/{base}-{quote}")
            return self._parse_price(data["last"], f"{base}-{quote}")
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx

logger = logging.getLogger(__name__)


class FetcherError(Exception):
    """A price source could not produce a price."""

    pass


class FetcherTimeoutError(FetcherError):
    """No answer arrived in time."""

    pass


class FetcherHTTPError(FetcherError):
    """The exchange answered with a non-2xx status.

    :ivar status_code: HTTP status of the response.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


class BaseFetcher(ABC):
    """One exchange's public ticker API.

    Subclasses set ``name`` and ``BASE_URL`` and implement fetch(). Tickers
    arrive uppercase; mapping them to the exchange's own symbols is the
    subclass's job.

    :cvar name: Registry key, e.g. "kraken".
    :cvar BASE_URL: Public endpoint used unless base_url is given.
    :cvar DEFAULT_TIMEOUT: Per-request timeout in seconds.
    :ivar api_key: Optional API key.
    :ivar base_url: Endpoint without trailing slash.
    :ivar timeout: Per-request timeout in seconds.
    """

    # One client for every source, so connections are pooled
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    name: ClassVar[str] = ""
    BASE_URL: ClassVar[str] = ""

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        base_url: str | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Return the shared client, creating it on first use or after close.

        :returns: Shared httpx.AsyncClient instance.
        """
        client = BaseFetcher._shared_client
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
                follow_redirects=True,
            )
            BaseFetcher._shared_client = client
        return client

    @classmethod
    def set_shared_client(cls, client: httpx.AsyncClient | None) -> None:
        """Install a client for every source, e.g. one with a mock transport.

        :param client: Client to share, or None to create one lazily.
        """
        BaseFetcher._shared_client = client

    @classmethod
    async def close_shared_client(cls) -> None:
        client = BaseFetcher._shared_client
        BaseFetcher._shared_client = None
        if client is not None and not client.is_closed:
            await client.aclose()

    @abstractmethod
    async def fetch(self, base: str, quote: str) -> float:
        """Return the current price of base in quote.

        :param base: Base ticker, uppercase (e.g. "EGLD").
        :param quote: Quote ticker, uppercase (e.g. "USD").
        :returns: Price, always > 0.
        :raises FetcherError: If no usable price can be obtained.
        """
        pass

    def _parse_price(self, raw: Any, symbol: str) -> float:
        """Turn a raw API value into a price.

        :raises FetcherError: If the value is not a positive number.
        """
        try:
            price = float(raw)
        except (TypeError, ValueError) as e:
            raise FetcherError(
                f"[{self.name}] Malformed price for {symbol}: {raw!r}"
            ) from e
        if not price > 0:
            raise FetcherError(f"[{self.name}] Non-positive price for {symbol}: {price}")
        return price

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """GET through the shared client, mapping transport failures.

        :raises FetcherTimeoutError: On timeout.
        :raises FetcherHTTPError: On a non-2xx response.
        :raises FetcherError: On any other transport error.
        """
        try:
            response = await self.get_shared_client().get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise FetcherTimeoutError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise FetcherError(f"Request failed: {e}") from e

        if not response.is_success:
            body = response.text[:200]
            logger.debug(f"[{self.name}] GET {url} -> {response.status_code}: {body}")
            raise FetcherHTTPError(response.status_code, body)
        return response

    async def _get_json(self, url: str, **kwargs: Any) -> Any:
        """GET a URL and decode its JSON body.

        :raises FetcherError: If the request fails or the body is not JSON.
        """
        response = await self._get(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise FetcherError(f"[{self.name}] Invalid JSON from {url}: {e}") from e


# Populated as the fetcher modules are imported
FETCHER_REGISTRY: dict[str, type[BaseFetcher]] = {}


def register_fetcher(cls: type[BaseFetcher]) -> type[BaseFetcher]:
    """Class decorator adding a fetcher to FETCHER_REGISTRY under its name.

    :raises ValueError: If the class has no name.
    """
    if not cls.name:
        raise ValueError(f"Fetcher {cls.__name__} must define a 'name' class variable")
    FETCHER_REGISTRY[cls.name] = cls
    return cls


def get_fetcher(
    name: str,
    api_key: str | None = None,
    *,
    base_url: str | None = None,
    timeout: float | None = None,
) -> BaseFetcher:
    """Instantiate a registered fetcher.

    :param name: Registry key (e.g. "coinbase").
    :param api_key: Optional API key.
    :param base_url: Optional endpoint override.
    :param timeout: Optional per-request timeout.
    :raises ValueError: If no fetcher is registered under name.
    """
    try:
        fetcher_cls = FETCHER_REGISTRY[name]
    except KeyError:
        available = ", ".join(get_available_fetchers())
        raise ValueError(f"Unknown fetcher '{name}'. Available: {available}") from None
    return fetcher_cls(api_key=api_key, timeout=timeout, base_url=base_url)


def get_available_fetchers() -> list[str]:
    return sorted(FETCHER_REGISTRY)
