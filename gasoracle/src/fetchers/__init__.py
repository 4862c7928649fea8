"""
Exchange price sources.

Importing this package registers every source below under its name.

Usage:
    from gasoracle.src.fetchers import get_fetcher, get_available_fetchers

    available = get_available_fetchers()
    # ['binance', 'bitstamp', 'coinbase', 'coingecko', 'cryptocom', 'kraken']

    fetcher = get_fetcher("kraken")
    price = await fetcher.fetch("EGLD", "USD")

    # CoinGecko demo keys carry a "demo:" prefix
    fetcher = get_fetcher("coingecko", api_key="demo:your-api-key")
"""

from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherError,
    FetcherHTTPError,
    FetcherTimeoutError,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
)

# Imported for registration
from .binance import BinanceFetcher
from .bitstamp import BitstampFetcher
from .coinbase import CoinbaseFetcher
from .coingecko import CoinGeckoFetcher
from .cryptocom import CryptocomFetcher
from .kraken import KrakenFetcher

__all__ = [
    # Base classes
    "BaseFetcher",
    "FetcherError",
    "FetcherHTTPError",
    "FetcherTimeoutError",
    # Registry functions
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "FETCHER_REGISTRY",
    # Fetcher implementations
    "BinanceFetcher",
    "BitstampFetcher",
    "CoinbaseFetcher",
    "CoinGeckoFetcher",
    "CryptocomFetcher",
    "KrakenFetcher",
]
