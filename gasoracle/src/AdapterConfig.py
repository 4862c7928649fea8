"""AdapterConfig: Immutable configuration for the aggregator and denominator.

Both configurations are built once at startup (see main.py) and shared
read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExchangeConfig:
    """Which price sources are active and how to reach them.

    :ivar sources: Registered fetcher names, in query order.
    :ivar api_keys: Dict mapping source names to API keys.
    :ivar base_urls: Dict mapping source names to endpoint overrides.
    :ivar fetch_timeout: Overall timeout for one price fan-out in seconds.
    :ivar min_sources: Minimum successful sources for a consensus price.
    :ivar max_deviation_percent: Optional outlier threshold (None disables).
    """

    sources: tuple[str, ...] = ()
    api_keys: dict[str, str] = field(default_factory=dict)
    base_urls: dict[str, str] = field(default_factory=dict)
    fetch_timeout: float = 10.0
    min_sources: int = 1
    max_deviation_percent: float | None = None


@dataclass(frozen=True)
class GasTargetAsset:
    """An asset the gas price is denominated in.

    :ivar ticker: Asset ticker symbol (uppercase).
    :ivar decimals: Exponent of the asset's smallest unit (18 for wei-like units).
    """

    ticker: str
    decimals: int

    def __post_init__(self) -> None:
        ticker = (self.ticker or "").strip().upper()
        if not ticker:
            raise ValueError("Target asset ticker must be non-empty")
        if self.decimals < 0:
            raise ValueError(f"Decimals for {ticker} must be non-negative")
        object.__setattr__(self, "ticker", ticker)

    @classmethod
    def from_string(cls, asset_str: str) -> GasTargetAsset:
        """Parse an asset in format "TICKER:DECIMALS".

        :param asset_str: Asset string like "egld:18".
        :returns: New GasTargetAsset instance.
        :raises ValueError: If the format is invalid.
        """
        ticker, sep, decimals = asset_str.strip().partition(":")
        if not sep:
            raise ValueError(
                f"Invalid target asset '{asset_str}'. Expected 'TICKER:DECIMALS' "
                "(e.g., 'EGLD:18')"
            )
        try:
            return cls(ticker, int(decimals))
        except ValueError as e:
            raise ValueError(f"Invalid target asset '{asset_str}': {e}") from e


def parse_target_assets(assets_str: str | None) -> tuple[GasTargetAsset, ...]:
    """Parse a comma-separated list of target assets.

    Format: TICKER:DECIMALS,TICKER:DECIMALS
    Example: EGLD:18,ETH:18,USDC:6

    Order is preserved and duplicates are kept.

    :param assets_str: Comma-separated asset string.
    :returns: Tuple of GasTargetAsset.
    :raises ValueError: If any entry is malformed.
    """
    if not assets_str:
        return ()
    return tuple(
        GasTargetAsset.from_string(item)
        for item in assets_str.split(",")
        if item.strip()
    )


@dataclass(frozen=True)
class GasConfig:
    """Gas denomination settings.

    :ivar target_assets: Assets to denominate the gas price in, in output order.
    :ivar native_ticker: Ticker of the chain's native coin.
    :ivar quote_ticker: Common quote currency for cross-asset prices.
    :ivar native_unit_decimals: Exponent of the gas price unit (9 for gwei).
    :ivar provider: Registered gas price provider name.
    :ivar provider_url: Optional provider endpoint (RPC URL for "web3").
    :ivar provider_api_key: Optional provider API key.
    :ivar fetch_timeout: Gas price request timeout in seconds.
    """

    target_assets: tuple[GasTargetAsset, ...] = ()
    native_ticker: str = "ETH"
    quote_ticker: str = "USD"
    native_unit_decimals: int = 9
    provider: str = "etherscan"
    provider_url: str | None = None
    provider_api_key: str | None = None
    fetch_timeout: float = 10.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_assets", tuple(self.target_assets))
        object.__setattr__(self, "native_ticker", self.native_ticker.strip().upper())
        object.__setattr__(self, "quote_ticker", self.quote_ticker.strip().upper())
