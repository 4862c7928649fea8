"""
Gas price providers.

Usage:
    from gasoracle.src.gas import get_gas_provider

    provider = get_gas_provider("etherscan", api_key="your-api-key")
    gas = await provider.fetch_gas_price_gwei()
    gas.fast
"""

from .base import (
    GAS_PROVIDER_REGISTRY,
    BaseGasPriceProvider,
    GasPriceGwei,
    get_available_gas_providers,
    get_gas_provider,
    parse_gwei,
    register_gas_provider,
    wei_to_gwei,
)

# Import all provider implementations to trigger registration
from .etherscan import EtherscanGasProvider
from .web3_node import Web3GasProvider

__all__ = [
    "BaseGasPriceProvider",
    "GasPriceGwei",
    "parse_gwei",
    "wei_to_gwei",
    "register_gas_provider",
    "get_gas_provider",
    "get_available_gas_providers",
    "GAS_PROVIDER_REGISTRY",
    "EtherscanGasProvider",
    "Web3GasProvider",
]
