#!/usr/bin/env python3
"""Gas Oracle.

Fetches the chain's gas price and cryptocurrency prices from multiple
exchanges, and reports the gas price denominated in each configured target
asset as JSON.

Configure with CLI flags or env vars (CLI args take precedence).
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from .src.AdapterConfig import ExchangeConfig, GasConfig, parse_target_assets
from .src.errors import GasProviderUnavailable, NoQuoteAvailable
from .src.EthGasDenominator import EthGasDenominator
from .src.ExchangeAggregator import ExchangeAggregator
from .src.fetchers import BaseFetcher, get_available_fetchers
from .src.gas import get_available_gas_providers, get_gas_provider
from .src.TickerPair import TickerPair

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

DEFAULT_SOURCES = "binance,bitstamp,coinbase,coingecko,cryptocom,kraken"


def parse_api_keys(api_key_str: str | None) -> dict[str, str]:
    """Parse comma-separated API key string into a dictionary.

    Format: source1=key1,source2=key2
    Example: coingecko=demo:abc123,etherscan=xyz789

    :param api_key_str: Comma-separated API key string.
    :returns: Dict mapping source names to API keys.
    """
    if not api_key_str:
        return {}

    api_keys = {}
    for item in api_key_str.split(","):
        item = item.strip()
        if "=" in item:
            source, key = item.split("=", 1)
            api_keys[source.strip().lower()] = key.strip()
    return api_keys


def parse_env_api_keys() -> dict[str, str]:
    """Parse API keys from individual environment variables.

    Looks for: API_KEY_COINGECKO, API_KEY_ETHERSCAN, etc.

    :returns: Dict mapping source names to API keys.
    """
    api_keys = {}
    prefixes = ["API_KEY_", "APIKEY_"]

    for key, value in os.environ.items():
        for prefix in prefixes:
            if key.startswith(prefix) and value:
                source = key[len(prefix):].lower()
                api_keys[source] = value
                break

    return api_keys


async def report(
    denominator: EthGasDenominator,
    aggregator: ExchangeAggregator,
    pairs: list[TickerPair],
) -> dict:
    """Run one round: denominated gas prices plus any requested pair prices.

    :param denominator: Configured gas denominator.
    :param aggregator: Aggregator used for the extra pair prices.
    :param pairs: Extra pairs to price.
    :returns: JSON-serializable report.
    :raises GasProviderUnavailable: If the gas price cannot be fetched.
    """
    rows = await denominator.gas_prices_denominated()

    prices: dict[str, float] = {}
    for pair in pairs:
        try:
            prices[str(pair)] = await aggregator.fetch_price(pair)
        except NoQuoteAvailable as e:
            prices[str(pair)] = e.price

    return {"gas": [row.as_dict() for row in rows], "prices": prices}


async def run(
    denominator: EthGasDenominator,
    aggregator: ExchangeAggregator,
    pairs: list[TickerPair],
    period: int,
) -> int:
    """Report once, or every period seconds until interrupted.

    :returns: Process exit code.
    """
    try:
        while True:
            try:
                print(json.dumps(await report(denominator, aggregator, pairs)), flush=True)
            except GasProviderUnavailable as e:
                logger.error(f"Gas price unavailable: {e}")
                if period <= 0:
                    return 1

            if period <= 0:
                return 0
            await asyncio.sleep(period)
    finally:
        # Clean up shared HTTP client
        await BaseFetcher.close_shared_client()


def main() -> None:
    """Main entry point for the Gas Oracle CLI."""
    available_sources = get_available_fetchers()
    available_providers = get_available_gas_providers()

    parser = argparse.ArgumentParser(
        description="Gas Oracle: gas prices denominated via multi-source price consensus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available price sources:
  {', '.join(available_sources)}

Available gas providers:
  {', '.join(available_providers)}

Examples:
  # Gas price in EGLD and ETH from the Etherscan gas tracker
  python -m gasoracle.main --target-assets EGLD:18,ETH:18

  # Gas price from a local node, also print BTC/USD every minute
  python -m gasoracle.main --target-assets EGLD:18,USDC:6 \\
      --gas-provider web3 --gas-provider-url http://localhost:8545 \\
      --pairs btc/usd --period 60

Environment variables (CLI args take precedence):
  SOURCES, TARGET_ASSETS, PAIRS, FETCH_TIMEOUT, MIN_SOURCES,
  MAX_DEVIATION_PERCENT, NATIVE_TICKER, QUOTE_TICKER, GAS_PROVIDER,
  GAS_PROVIDER_URL, RPC_URL, PERIOD, API_KEY_COINGECKO, API_KEY_ETHERSCAN, etc.
""",
    )

    parser.add_argument(
        "--sources",
        type=str,
        help=f"Comma-separated price sources. Available: {', '.join(available_sources)}",
        default=os.environ.get("SOURCES") or DEFAULT_SOURCES,
    )

    parser.add_argument(
        "--target-assets",
        dest="target_assets",
        type=str,
        help="Comma-separated TICKER:DECIMALS assets to denominate gas in (e.g., EGLD:18,ETH:18)",
        default=os.environ.get("TARGET_ASSETS") or "",
    )

    parser.add_argument(
        "--pairs",
        type=str,
        help="Comma-separated trading pairs to also report (e.g., btc/usd,eth/usd)",
        default=os.environ.get("PAIRS") or "",
    )

    parser.add_argument(
        "--native-ticker",
        dest="native_ticker",
        type=str,
        help="Ticker of the chain's native coin (default: ETH)",
        default=os.environ.get("NATIVE_TICKER") or "ETH",
    )

    parser.add_argument(
        "--quote-ticker",
        dest="quote_ticker",
        type=str,
        help="Common quote currency for conversions (default: USD)",
        default=os.environ.get("QUOTE_TICKER") or "USD",
    )

    parser.add_argument(
        "--gas-provider",
        dest="gas_provider",
        type=str,
        help=f"Gas price provider. Available: {', '.join(available_providers)}",
        default=os.environ.get("GAS_PROVIDER") or "etherscan",
    )

    parser.add_argument(
        "--gas-provider-url",
        dest="gas_provider_url",
        type=str,
        help="Gas provider endpoint (node RPC URL for web3)",
        default=os.environ.get("GAS_PROVIDER_URL"),
    )

    parser.add_argument(
        "--min-sources",
        dest="min_sources",
        type=int,
        help="Minimum sources required for a consensus price (default: 1)",
        default=int(os.environ.get("MIN_SOURCES") or "1"),
    )

    parser.add_argument(
        "--max-deviation",
        dest="max_deviation",
        type=float,
        help="Max price deviation percent before excluding outlier (default: 0, disabled)",
        default=float(os.environ.get("MAX_DEVIATION_PERCENT") or "0"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout in seconds for one price fan-out or gas price read (default: 10)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10"),
    )

    parser.add_argument(
        "--period",
        type=int,
        help="Seconds between reports, 0 to report once (default: 0)",
        default=int(os.environ.get("PERIOD") or "0"),
    )

    parser.add_argument(
        "--api-keys",
        dest="api_keys",
        type=str,
        help="Comma-separated API keys (e.g., coingecko=demo:key,etherscan=key)",
        default=None,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.min_sources < 1:
        parser.error("--min-sources must be at least 1")

    if args.fetch_timeout <= 0:
        parser.error("--fetch-timeout must be positive")

    sources = [s.strip().lower() for s in args.sources.split(",") if s.strip()]
    invalid_sources = [s for s in sources if s not in available_sources]
    if invalid_sources:
        parser.error(
            f"Unknown sources: {invalid_sources}. "
            f"Available: {', '.join(available_sources)}"
        )

    if args.gas_provider not in available_providers:
        parser.error(
            f"Unknown gas provider: {args.gas_provider}. "
            f"Available: {', '.join(available_providers)}"
        )

    try:
        target_assets = parse_target_assets(args.target_assets)
        pairs = [
            TickerPair.from_string(p.strip()) for p in args.pairs.split(",") if p.strip()
        ]
    except ValueError as e:
        parser.error(str(e))

    if not target_assets and not pairs:
        parser.error("Specify --target-assets and/or --pairs")

    # Parse API keys (CLI + environment)
    api_keys = parse_env_api_keys()
    api_keys.update(parse_api_keys(args.api_keys))

    # Handle max deviation (0 means disabled)
    max_deviation = args.max_deviation if args.max_deviation > 0 else None

    exchange_config = ExchangeConfig(
        sources=tuple(sources),
        api_keys=api_keys,
        fetch_timeout=args.fetch_timeout,
        min_sources=args.min_sources,
        max_deviation_percent=max_deviation,
    )
    gas_config = GasConfig(
        target_assets=target_assets,
        native_ticker=args.native_ticker,
        quote_ticker=args.quote_ticker,
        provider=args.gas_provider,
        provider_url=args.gas_provider_url,
        provider_api_key=api_keys.get(args.gas_provider),
        fetch_timeout=args.fetch_timeout,
    )

    # Log configuration
    logger.info("=" * 60)
    logger.info("Gas Oracle - Multi-Source Gas Denomination")
    logger.info("=" * 60)
    logger.info(f"Sources:           {', '.join(sources) or 'none'}")
    logger.info(
        f"Target Assets:     "
        f"{', '.join(f'{a.ticker}:{a.decimals}' for a in target_assets) or 'none'}"
    )
    logger.info(f"Native / Quote:    {gas_config.native_ticker} / {gas_config.quote_ticker}")
    logger.info(f"Gas Provider:      {gas_config.provider}")
    if pairs:
        logger.info(f"Trading Pairs:     {', '.join(str(p) for p in pairs)}")
    logger.info(f"Min Sources:       {args.min_sources}")
    logger.info(f"Max Deviation:     {args.max_deviation}%" if max_deviation else "Max Deviation:     disabled")
    logger.info(f"Fetch Timeout:     {args.fetch_timeout}s")
    logger.info(f"Period:            {args.period}s" if args.period > 0 else "Period:            once")
    if api_keys:
        logger.info(f"API Keys:          {', '.join(api_keys.keys())}")
    logger.info("=" * 60)

    try:
        aggregator = ExchangeAggregator.from_config(exchange_config)
        gas_provider = get_gas_provider(
            gas_config.provider,
            url=gas_config.provider_url,
            api_key=gas_config.provider_api_key,
            timeout=gas_config.fetch_timeout,
        )
        denominator = EthGasDenominator(aggregator, gas_provider, gas_config)
        exit_code = asyncio.run(run(denominator, aggregator, pairs, args.period))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        exit_code = 0
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
