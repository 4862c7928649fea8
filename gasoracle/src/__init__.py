"""
Gas Oracle - Multi-source prices and gas fee denomination

This module provides:
- TickerPair: Trading pair used as the price request key
- PriceAggregator: Median reduction with optional quorum and outlier detection
- ExchangeAggregator: Concurrent fan-out to price sources with timeout
- EthGasDenominator: Gas price expressed in other assets
- AdapterConfig: Exchange and gas configuration
- fetchers: Modular exchange price fetcher implementations
- gas: Gas price provider implementations
"""

from .AdapterConfig import ExchangeConfig, GasConfig, GasTargetAsset, parse_target_assets
from .errors import NO_PRICE, GasOracleError, GasProviderUnavailable, NoQuoteAvailable
from .EthGasDenominator import DenominatedPair, EthGasDenominator
from .ExchangeAggregator import ExchangeAggregator
from .gas import GasPriceGwei
from .PriceAggregator import AggregationResult, PriceAggregator
from .TickerPair import TickerPair

__all__ = [
    "AggregationResult",
    "DenominatedPair",
    "EthGasDenominator",
    "ExchangeAggregator",
    "ExchangeConfig",
    "GasConfig",
    "GasOracleError",
    "GasPriceGwei",
    "GasProviderUnavailable",
    "GasTargetAsset",
    "NO_PRICE",
    "NoQuoteAvailable",
    "PriceAggregator",
    "TickerPair",
    "parse_target_assets",
]
