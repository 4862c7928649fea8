"""Etherscan gas oracle provider.

Endpoint: https://api.etherscan.io/v2/api?chainid=1&module=gastracker&action=gasoracle
Rate Limit: 1 call/5s without key, higher with API key

Tier mapping: SafeGasPrice -> slow, ProposeGasPrice -> fast,
FastGasPrice -> fastest. Values are gwei and may be fractional.
"""

from __future__ import annotations

import logging

from ..errors import GasProviderUnavailable
from ..fetchers import BaseFetcher
from .base import BaseGasPriceProvider, GasPriceGwei, parse_gwei, register_gas_provider

logger = logging.getLogger(__name__)


@register_gas_provider
class EtherscanGasProvider(BaseGasPriceProvider):
    """Gas price provider backed by the Etherscan gas tracker.

    Requests go through the HTTP client shared with the price fetchers.
    """

    name = "etherscan"
    DEFAULT_URL = "https://api.etherscan.io/v2/api"
    CHAIN_ID = 1

    async def _fetch(self) -> GasPriceGwei:
        params: dict[str, str | int] = {
            "chainid": self.CHAIN_ID,
            "module": "gastracker",
            "action": "gasoracle",
        }
        if self.api_key:
            params["apikey"] = self.api_key

        client = BaseFetcher.get_shared_client()
        response = await client.get(self.url, params=params, timeout=self.timeout)
        if not response.is_success:
            raise GasProviderUnavailable(
                f"[etherscan] HTTP {response.status_code}: {response.text[:200]}"
            )

        data = response.json()
        if data.get("status") != "1":
            raise GasProviderUnavailable(
                f"[etherscan] API error: {data.get('message')}: {data.get('result')}"
            )

        result = data["result"]
        gas = GasPriceGwei(
            slow=parse_gwei(result["SafeGasPrice"]),
            fast=parse_gwei(result["ProposeGasPrice"]),
            fastest=parse_gwei(result["FastGasPrice"]),
        )
        logger.debug(f"[etherscan] Gas price: {gas}")
        return gas
