"""JSON-RPC node gas price provider.

Derives the tiers from eth_feeHistory: each tier is the next block's base
fee plus the average priority fee paid at one reward percentile over the
last few blocks. Nodes without fee history data fall back to eth_gasPrice
for every tier.
"""

from __future__ import annotations

import logging
import os

from web3 import AsyncHTTPProvider, AsyncWeb3

from .base import BaseGasPriceProvider, GasPriceGwei, register_gas_provider, wei_to_gwei

logger = logging.getLogger(__name__)


@register_gas_provider
class Web3GasProvider(BaseGasPriceProvider):
    """Gas price provider reading directly from an Ethereum node.

    :ivar w3: AsyncWeb3 instance bound to the node URL.
    """

    name = "web3"
    DEFAULT_URL = "http://localhost:8545"

    # Blocks of fee history to average over
    FEE_HISTORY_BLOCKS = 5
    # Reward percentiles for slow, fast and fastest
    REWARD_PERCENTILES = (10, 50, 90)

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        # RPC_URL env var overrides the default node
        super().__init__(
            url=url or os.environ.get("RPC_URL"), api_key=api_key, timeout=timeout
        )
        self.w3 = AsyncWeb3(AsyncHTTPProvider(self.url))

    async def _fetch(self) -> GasPriceGwei:
        history = await self.w3.eth.fee_history(
            self.FEE_HISTORY_BLOCKS, "latest", list(self.REWARD_PERCENTILES)
        )
        base_fees = history["baseFeePerGas"]
        rewards = history.get("reward") or []

        if not base_fees or not rewards:
            gas_price = wei_to_gwei(await self.w3.eth.gas_price)
            logger.debug(f"[web3] No fee history, eth_gasPrice={gas_price} gwei")
            return GasPriceGwei(slow=gas_price, fast=gas_price, fastest=gas_price)

        # The last entry is the base fee of the next (pending) block
        next_base_fee = base_fees[-1]
        tiers = [
            wei_to_gwei(
                next_base_fee + sum(block[i] for block in rewards) // len(rewards)
            )
            for i in range(len(self.REWARD_PERCENTILES))
        ]
        gas = GasPriceGwei(*tiers)
        logger.debug(f"[web3] Gas price from fee history: {gas}")
        return gas
