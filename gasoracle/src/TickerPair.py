"""TickerPair: Trading pair used as the key of a price request.

Symbols are normalized to uppercase on construction, so pairs built from
differently cased input compare and hash equal.

.. code-block:: python

    >>> pair = TickerPair("eth", "usd")
    >>> str(pair)
    'ETH/USD'
    >>> pair = TickerPair.from_string("egld/usd")
    >>> pair.base
    'EGLD'
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TickerPair:
    """An immutable base/quote trading pair.

    :ivar base: Base ticker symbol (uppercase), the asset being priced.
    :ivar quote: Quote ticker symbol (uppercase), the unit of the price.
    """

    base: str
    quote: str

    def __post_init__(self) -> None:
        """Normalize and validate the symbols.

        :raises ValueError: If either symbol is empty.
        """
        base = (self.base or "").strip().upper()
        quote = (self.quote or "").strip().upper()
        if not base or not quote:
            raise ValueError(
                f"Ticker symbols must be non-empty, got base={self.base!r} "
                f"quote={self.quote!r}"
            )
        # Frozen dataclass: bypass __setattr__ to store normalized values
        object.__setattr__(self, "base", base)
        object.__setattr__(self, "quote", quote)

    def __str__(self) -> str:
        """Return the pair as "BASE/QUOTE"."""
        return f"{self.base}/{self.quote}"

    @classmethod
    def from_string(cls, pair_str: str) -> TickerPair:
        """Parse a pair string in format "base/quote".

        :param pair_str: Pair string like "btc/usd" or "ETH/USD".
        :returns: New TickerPair instance.
        :raises ValueError: If pair string format is invalid.

        .. code-block:: python

            >>> TickerPair.from_string("egld/usd")
            TickerPair(base='EGLD', quote='USD')
        """
        parts = pair_str.split("/")
        if len(parts) != 2:
            raise ValueError(
                f"Invalid pair format '{pair_str}'. Expected 'base/quote' (e.g., 'eth/usd')"
            )
        return cls(parts[0], parts[1])
