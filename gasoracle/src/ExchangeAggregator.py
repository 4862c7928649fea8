"""ExchangeAggregator: Concurrent multi-source price fetching.

For a requested pair every configured fetcher is queried concurrently, the
answers are collected until all sources have replied or the overall timeout
expires, and the successful prices are reduced to their median.

Failure model:
    - A source that raises, times out or returns a non-positive price is
      recorded as failed and otherwise ignored
    - Sources still running at the deadline are cancelled; a late answer
      is never used
    - Only when no source succeeds is NoQuoteAvailable raised
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .errors import NoQuoteAvailable
from .fetchers import FetcherError, FetcherTimeoutError, get_fetcher
from .PriceAggregator import PriceAggregator

if TYPE_CHECKING:
    from .AdapterConfig import ExchangeConfig
    from .fetchers import BaseFetcher
    from .TickerPair import TickerPair

logger = logging.getLogger(__name__)


class ExchangeAggregator:
    """Produces one consensus price per pair from several exchanges.

    The fetcher mapping is copied at construction and never modified, so a
    single aggregator can serve concurrent requests.

    :ivar fetchers: Dict mapping source names to fetcher instances.
    :ivar fetch_timeout: Overall bound for one fan-out, in seconds.
    :ivar reducer: Median reducer applied to the successful prices.
    """

    def __init__(
        self,
        fetchers: dict[str, BaseFetcher],
        fetch_timeout: float = 10.0,
        min_sources: int = 1,
        max_deviation_percent: float | None = None,
    ) -> None:
        """Initialize the aggregator.

        :param fetchers: Dict mapping source names to fetcher instances.
        :param fetch_timeout: Overall timeout for one fan-out (default: 10.0).
        :param min_sources: Minimum successful sources required (default: 1).
        :param max_deviation_percent: Optional outlier threshold, see
            PriceAggregator.
        :raises ValueError: If fetch_timeout is not positive.
        """
        if fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        self.fetchers = dict(fetchers)
        self.fetch_timeout = fetch_timeout
        self.reducer = PriceAggregator(
            min_sources=min_sources,
            max_deviation_percent=max_deviation_percent,
        )

    @classmethod
    def from_config(cls, config: ExchangeConfig) -> ExchangeAggregator:
        """Build an aggregator and its fetchers from configuration.

        :param config: Exchange configuration.
        :returns: Configured ExchangeAggregator.
        :raises ValueError: If a configured source is unknown.
        """
        fetchers = {
            source: get_fetcher(
                source,
                api_key=config.api_keys.get(source),
                base_url=config.base_urls.get(source),
                timeout=config.fetch_timeout,
            )
            for source in config.sources
        }
        return cls(
            fetchers,
            fetch_timeout=config.fetch_timeout,
            min_sources=config.min_sources,
            max_deviation_percent=config.max_deviation_percent,
        )

    @property
    def sources(self) -> list[str]:
        """Names of the configured sources."""
        return list(self.fetchers.keys())

    async def fetch_price(self, pair: TickerPair) -> float:
        """Fetch the consensus price for a pair.

        :param pair: Trading pair to price.
        :returns: Median of the successful source prices, always > 0.
        :raises NoQuoteAvailable: If no source produced a usable price.
        """
        if not self.fetchers:
            logger.warning(f"{pair}: No price sources configured")
            raise NoQuoteAvailable(pair)

        prices, errors = await self._fetch_all(pair)

        result = self.reducer.aggregate(prices)
        price = result.price
        if price is None:
            logger.warning(
                f"{pair}: No quote available ({result.error}): "
                f"{len(errors)}/{len(self.fetchers)} sources failed"
            )
            raise NoQuoteAvailable(
                pair,
                errors,
                reason=result.error if len(errors) < len(self.fetchers) else None,
            )

        breakdown = ", ".join(f"{source}={value:.6f}" for source, value in result.used.items())
        log_msg = f"{pair}: {price:.6f} (median of [{breakdown}]"
        if errors:
            log_msg += f", failed: [{', '.join(errors)}]"
        if result.dropped:
            log_msg += (
                f", dropped: [{', '.join(result.dropped)}]"
                f" from initial median {result.initial_median:.6f}"
            )
        logger.info(log_msg + ")")

        return price

    async def _fetch_all(
        self, pair: TickerPair
    ) -> tuple[dict[str, float | None], dict[str, BaseException]]:
        """Query every source concurrently, bounded by fetch_timeout.

        :param pair: Trading pair to fetch.
        :returns: Tuple of ({source: price or None}, {source: error}).
        """
        tasks = {
            source: asyncio.create_task(
                fetcher.fetch(pair.base, pair.quote), name=f"{source}:{pair}"
            )
            for source, fetcher in self.fetchers.items()
        }

        pending = set(tasks.values())
        try:
            _, pending = await asyncio.wait(pending, timeout=self.fetch_timeout)
        finally:
            # Abandon stragglers; their results are never read
            for task in pending:
                task.cancel()

        prices: dict[str, float | None] = {}
        errors: dict[str, BaseException] = {}

        for source, task in tasks.items():
            prices[source] = None

            if task in pending or task.cancelled():
                errors[source] = FetcherTimeoutError(
                    f"No answer within {self.fetch_timeout}s"
                )
            elif task.exception() is not None:
                errors[source] = task.exception()
            else:
                price = task.result()
                if isinstance(price, (int, float)) and price > 0:
                    prices[source] = float(price)
                    continue
                errors[source] = FetcherError(f"Invalid price {price!r}")

            logger.debug(f"[{source}] Failed to fetch {pair}: {errors[source]}")

        return prices, errors
