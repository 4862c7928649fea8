"""PriceAggregator: Median consensus over per-source prices.

Only strictly positive prices take part; None marks a source that failed.
With the defaults the consensus is the plain median of the usable prices
(the mean of the two middle values for an even count) and one usable price
is enough.

Two optional guards tighten this:
    - min_sources: fewer usable prices than this is a failure
    - max_deviation_percent: prices further than this from the first median
      are set aside and the median is taken again over the rest

.. code-block:: python

    >>> aggregator = PriceAggregator()
    >>> aggregator.aggregate({"coinbase": 10.0, "kraken": 20.0, "binance": 30.0}).price
    20.0
    >>> aggregator.aggregate({"coinbase": 10.0, "kraken": 20.0}).price
    15.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from statistics import median

INSUFFICIENT_SOURCES = "insufficient_sources"
TOO_MANY_OUTLIERS = "too_many_outliers"


@dataclass(frozen=True)
class AggregationResult:
    """Outcome of one reduction.

    :ivar price: Consensus price, or None if the reduction failed.
    :ivar used: Prices the consensus was taken over. On failure, the prices
        that were left when the reduction gave up.
    :ivar dropped: Prices set aside as outliers.
    :ivar error: INSUFFICIENT_SOURCES or TOO_MANY_OUTLIERS on failure.
    :ivar initial_median: Median before outlier filtering, if one was taken.
    """

    price: float | None
    used: dict[str, float] = field(default_factory=dict)
    dropped: dict[str, float] = field(default_factory=dict)
    error: str | None = None
    initial_median: float | None = None

    @property
    def success(self) -> bool:
        return self.price is not None

    @property
    def count(self) -> int:
        """Number of prices in ``used``."""
        return len(self.used)


def usable_prices(prices: dict[str, float | None]) -> dict[str, float]:
    """Keep only strictly positive prices."""
    return {
        source: price
        for source, price in prices.items()
        if price is not None and price > 0
    }


def split_outliers(
    prices: dict[str, float], center: float, max_deviation_percent: float
) -> tuple[dict[str, float], dict[str, float]]:
    """Partition prices by their distance from center.

    :returns: Tuple of (kept, dropped).
    """
    kept: dict[str, float] = {}
    dropped: dict[str, float] = {}
    for source, price in prices.items():
        deviation = abs(price - center) / center * 100
        if deviation <= max_deviation_percent:
            kept[source] = price
        else:
            dropped[source] = price
    return kept, dropped


class PriceAggregator:
    """Reduces a {source: price} map to a single median price.

    Stateless; one instance can serve any number of concurrent requests.

    :ivar min_sources: Minimum usable prices required.
    :ivar max_deviation_percent: Max allowed deviation from the first median,
        or None to keep every usable price.

    .. code-block:: python

        >>> agg = PriceAggregator(min_sources=2, max_deviation_percent=5.0)
        >>> result = agg.aggregate({"a": 100.0, "b": 101.0, "rogue": 200.0})
        >>> result.price, result.dropped
        (100.5, {'rogue': 200.0})
    """

    def __init__(
        self,
        min_sources: int = 1,
        max_deviation_percent: float | None = None,
    ) -> None:
        """Initialize the aggregator.

        :param min_sources: Minimum number of usable prices (default 1).
        :param max_deviation_percent: Outlier threshold in percent of the
            median. None disables the check.
        :raises ValueError: If parameters are invalid.
        """
        if min_sources < 1:
            raise ValueError("min_sources must be at least 1")
        if max_deviation_percent is not None and max_deviation_percent <= 0:
            raise ValueError("max_deviation_percent must be positive if specified")

        self.min_sources = min_sources
        self.max_deviation_percent = max_deviation_percent

    def aggregate(self, prices: dict[str, float | None]) -> AggregationResult:
        """Reduce per-source prices to their median.

        :param prices: Dict mapping source name to price (None if the fetch failed).
        :returns: AggregationResult; ``price`` is None and ``error`` set on failure.
        """
        usable = usable_prices(prices)
        if len(usable) < self.min_sources:
            return AggregationResult(None, used=usable, error=INSUFFICIENT_SOURCES)

        center = median(usable.values())
        if self.max_deviation_percent is None:
            return AggregationResult(center, used=usable, initial_median=center)

        kept, dropped = split_outliers(usable, center, self.max_deviation_percent)
        # An even count can drop both middle values, leaving nothing
        if not kept or len(kept) < self.min_sources:
            return AggregationResult(
                None,
                used=kept,
                dropped=dropped,
                error=TOO_MANY_OUTLIERS,
                initial_median=center,
            )

        return AggregationResult(
            median(kept.values()),
            used=kept,
            dropped=dropped,
            initial_median=center,
        )
