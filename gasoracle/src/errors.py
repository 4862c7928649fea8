"""Request-level errors raised to callers of the aggregator and denominator.

Per-source failures are FetcherError (see fetchers.base); they are absorbed
by ExchangeAggregator and only reported inside NoQuoteAvailable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .TickerPair import TickerPair

# Numeric fallback for "no valid price", for outputs that must carry a number.
NO_PRICE = -1.0


class GasOracleError(Exception):
    """Base exception for request-level failures."""

    pass


class NoQuoteAvailable(GasOracleError):
    """Raised when no configured source produced a usable price for a pair.

    :ivar pair: The pair that was requested.
    :ivar errors: Per-source failures, keyed by source name.
    :ivar reason: Aggregation error tag (e.g. "insufficient_sources").
    :ivar price: Always NO_PRICE.
    """

    price = NO_PRICE

    def __init__(
        self,
        pair: TickerPair,
        errors: dict[str, BaseException] | None = None,
        reason: str | None = None,
    ) -> None:
        self.pair = pair
        self.errors = dict(errors or {})
        self.reason = reason

        if not self.errors and reason is None:
            detail = "no price sources configured"
        else:
            detail = ", ".join(
                f"{source}: {type(err).__name__}: {err}"
                for source, err in self.errors.items()
            )
            if reason:
                detail = f"{reason}; {detail}" if detail else reason
        super().__init__(f"No quote available for {pair} ({detail})")


class GasProviderUnavailable(GasOracleError):
    """Raised when the chain's gas price cannot be fetched."""

    pass
