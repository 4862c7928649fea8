"""Shared test fixtures and fakes."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest_asyncio

from gasoracle.src.fetchers import BaseFetcher, FetcherError
from gasoracle.src.gas import BaseGasPriceProvider, GasPriceGwei

Route = Callable[[httpx.Request], httpx.Response]


class FakeFetcher(BaseFetcher):
    """Fetcher returning a fixed price or raising a fixed error."""

    name = "fake"

    def __init__(
        self,
        price: float | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__()
        self.price = price
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, base: str, quote: str) -> float:
        self.calls.append((base, quote))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.price


class TableFetcher(BaseFetcher):
    """Fetcher answering from a {(base, quote): price} table."""

    name = "table"

    def __init__(self, prices: dict[tuple[str, str], float]) -> None:
        super().__init__()
        self.prices = prices
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, base: str, quote: str) -> float:
        self.calls.append((base, quote))
        if (base, quote) not in self.prices:
            raise FetcherError(f"Unknown pair {base}/{quote}")
        return self.prices[(base, quote)]


class FakeGasProvider(BaseGasPriceProvider):
    """Gas provider returning a sequence of readings, or raising."""

    name = "fake"

    def __init__(
        self,
        readings: list[GasPriceGwei] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.readings = list(readings or [])
        self.error = error
        self.calls = 0

    async def _fetch(self) -> GasPriceGwei:
        self.calls += 1
        if self.error is not None:
            raise self.error
        # Each call returns the next reading; the last one repeats
        return self.readings[min(self.calls, len(self.readings)) - 1]


@pytest_asyncio.fixture
async def mock_http():
    """Route the shared fetcher HTTP client to in-memory handlers.

    Yields a dict mapping "host/path" to a handler returning httpx.Response.
    Unrouted requests get HTTP 404.
    """
    routes: dict[str, Route] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(f"{request.url.host}{request.url.path}")
        if route is None:
            return httpx.Response(404, text="not found")
        return route(request)

    BaseFetcher.set_shared_client(
        httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    yield routes
    await BaseFetcher.close_shared_client()
