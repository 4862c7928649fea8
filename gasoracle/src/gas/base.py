"""Base gas price provider interface.

A provider reads the chain's current gas price as three urgency tiers in
whole gwei. Any failure (transport, node error, malformed data, timeout) is
raised as GasProviderUnavailable; nothing else escapes
fetch_gas_price_gwei().

Fractional values (Etherscan reports e.g. "0.8", nodes report wei) are
rounded up to the next whole gwei. A price quoted from a rounded-down tier
could be too low to get a transaction included; rounding up can only
overstate the fee, by less than 1 gwei.

.. code-block:: python

    @register_gas_provider
    class MyProvider(BaseGasPriceProvider):
        name = "myprovider"
        DEFAULT_URL = "https://gas.example.com"

        async def _fetch(self) -> GasPriceGwei:
            ...
"""

from __future__ import annotations

import asyncio
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from ..errors import GasProviderUnavailable

WEI_PER_GWEI = 10**9


@dataclass(frozen=True)
class GasPriceGwei:
    """Gas price tiers in gwei.

    :ivar slow: Cheapest tier, slowest inclusion.
    :ivar fast: Standard tier, used for denomination.
    :ivar fastest: Most expensive tier.
    """

    slow: int
    fast: int
    fastest: int

    def __post_init__(self) -> None:
        for tier in ("slow", "fast", "fastest"):
            value = getattr(self, tier)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"Gas price tier {tier} must be a non-negative int, got {value!r}")


def wei_to_gwei(wei: int) -> int:
    """Convert wei to whole gwei, rounding up.

    :param wei: Amount in wei.
    :returns: Amount in gwei; any non-zero fraction counts as a full gwei.
    """
    return -(-int(wei) // WEI_PER_GWEI)


def parse_gwei(raw: Any) -> int:
    """Parse a gwei amount that may carry a fractional part, rounding up.

    :param raw: Value like "12", "0.53" or 12.
    :returns: Whole gwei.
    :raises ValueError: If the value is not a non-negative number.
    """
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation as e:
        raise ValueError(f"Malformed gas price: {raw!r}") from e
    if not value.is_finite() or value < 0:
        raise ValueError(f"Malformed gas price: {raw!r}")
    return math.ceil(value)


class BaseGasPriceProvider(ABC):
    """Abstract base class for gas price providers.

    :cvar name: Unique identifier for this provider.
    :cvar DEFAULT_URL: Endpoint used when none is configured.
    :cvar DEFAULT_TIMEOUT: Default request timeout in seconds.
    :ivar url: Provider endpoint.
    :ivar api_key: Optional API key.
    :ivar timeout: Timeout for one gas price read in seconds.
    """

    name: ClassVar[str] = ""
    DEFAULT_URL: ClassVar[str] = ""
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url = url or self.DEFAULT_URL
        self.api_key = api_key
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    async def fetch_gas_price_gwei(self) -> GasPriceGwei:
        """Fetch the current gas price tiers.

        :returns: GasPriceGwei for the latest chain state.
        :raises GasProviderUnavailable: If the gas price cannot be obtained.
        """
        try:
            return await asyncio.wait_for(self._fetch(), timeout=self.timeout)
        except GasProviderUnavailable:
            raise
        except asyncio.TimeoutError as e:
            raise GasProviderUnavailable(
                f"[{self.name}] No gas price within {self.timeout}s"
            ) from e
        except Exception as e:
            raise GasProviderUnavailable(
                f"[{self.name}] Failed to fetch gas price: {type(e).__name__}: {e}"
            ) from e

    @abstractmethod
    async def _fetch(self) -> GasPriceGwei:
        """Read the gas price tiers from the provider.

        Implementations may raise any exception; fetch_gas_price_gwei()
        converts it to GasProviderUnavailable.
        """
        pass


# Registry of available gas price providers (populated by subclass imports)
GAS_PROVIDER_REGISTRY: dict[str, type[BaseGasPriceProvider]] = {}


def register_gas_provider(
    cls: type[BaseGasPriceProvider],
) -> type[BaseGasPriceProvider]:
    """Decorator to register a gas price provider class.

    :param cls: Provider class to register.
    :returns: The registered class (unchanged).
    :raises ValueError: If provider has no name defined.
    """
    if not cls.name:
        raise ValueError(f"Gas provider {cls.__name__} must define a 'name' class variable")
    GAS_PROVIDER_REGISTRY[cls.name] = cls
    return cls


def get_gas_provider(
    name: str,
    url: str | None = None,
    api_key: str | None = None,
    timeout: float | None = None,
) -> BaseGasPriceProvider:
    """Get a gas price provider instance by name.

    :param name: Provider name (e.g., "etherscan", "web3").
    :param url: Optional endpoint override.
    :param api_key: Optional API key.
    :param timeout: Optional timeout in seconds.
    :returns: Provider instance.
    :raises ValueError: If provider name is unknown.
    """
    if name not in GAS_PROVIDER_REGISTRY:
        available = ", ".join(sorted(GAS_PROVIDER_REGISTRY.keys()))
        raise ValueError(f"Unknown gas provider '{name}'. Available: {available}")
    return GAS_PROVIDER_REGISTRY[name](url=url, api_key=api_key, timeout=timeout)


def get_available_gas_providers() -> list[str]:
    """Get list of available gas provider names.

    :returns: Sorted list of registered provider names.
    """
    return sorted(GAS_PROVIDER_REGISTRY.keys())
