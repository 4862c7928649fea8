"""EthGasDenominator: Gas price expressed in other assets.

One gas price reading is converted into an amount of each configured target
asset, using consensus prices from ExchangeAggregator:

    amount = fast * (price(native) / price(asset)) * 10**(asset.decimals - native_unit_decimals)

where both prices are quoted in the same currency (USD by default) and the
result is a whole number of the asset's smallest unit. The native asset
itself is reported as the fast tier, without any price lookup.

.. code-block:: python

    >>> denominator = EthGasDenominator(aggregator, provider, gas_config)
    >>> # fast=30 gwei, ETH/USD=3000, EGLD/USD=28
    >>> await denominator.gas_prices_denominated()
    [DenominatedPair(base='EGLD', denomination='3214285714286'),
     DenominatedPair(base='ETH', denomination='30')]
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import TYPE_CHECKING

from .errors import NoQuoteAvailable
from .TickerPair import TickerPair

if TYPE_CHECKING:
    from .AdapterConfig import GasConfig, GasTargetAsset
    from .ExchangeAggregator import ExchangeAggregator
    from .gas import BaseGasPriceProvider

logger = logging.getLogger(__name__)

# Precision for the conversion; prices and gas values stay far below this
DECIMAL_PRECISION = 60


@dataclass(frozen=True)
class DenominatedPair:
    """One output row: the gas price expressed in an asset.

    :ivar base: Asset ticker.
    :ivar denomination: Base-10 integer string, never in exponent notation.
    """

    base: str
    denomination: str

    def as_dict(self) -> dict[str, str]:
        return {"base": self.base, "denomination": self.denomination}


def format_amount(value: Decimal) -> str:
    """Round to a whole number and format without exponent.

    :param value: Amount in the asset's smallest unit.
    :returns: Integer string, e.g. "123000000000000".
    """
    with localcontext() as ctx:
        # quantize needs room for every integer digit
        ctx.prec = max(DECIMAL_PRECISION, value.adjusted() + 2)
        return format(value.quantize(Decimal(1), rounding=ROUND_HALF_UP), "f")


class EthGasDenominator:
    """Converts the chain's gas price into amounts of target assets.

    Holds references to the aggregator and provider and never mutates them.

    :ivar aggregator: Consensus price source.
    :ivar gas_provider: Gas price source.
    :ivar config: Gas denomination settings.
    """

    def __init__(
        self,
        aggregator: ExchangeAggregator,
        gas_provider: BaseGasPriceProvider,
        config: GasConfig,
    ) -> None:
        self.aggregator = aggregator
        self.gas_provider = gas_provider
        self.config = config

    async def gas_prices_denominated(self) -> list[DenominatedPair]:
        """Denominate the current fast gas price in every target asset.

        The gas price is read once and shared by all rows. An asset whose
        prices cannot be fetched is left out of the result; the remaining
        rows keep the configured order.

        Amounts are whole smallest units, so a fee worth less than half a
        unit is reported as "0" (e.g. 30 gwei is about 0.15 satoshi at
        ETH=3000, BTC=60000, giving "0" for BTC:8).

        :returns: One DenominatedPair per target asset that could be priced.
        :raises GasProviderUnavailable: If the gas price cannot be fetched.
        """
        if not self.config.target_assets:
            return []

        gas = await self.gas_provider.fetch_gas_price_gwei()
        logger.debug(
            f"Gas price: slow={gas.slow} fast={gas.fast} fastest={gas.fastest} gwei"
        )

        results: list[DenominatedPair] = []
        for asset in self.config.target_assets:
            if asset.ticker == self.config.native_ticker:
                results.append(DenominatedPair(asset.ticker, str(gas.fast)))
                continue

            try:
                denomination = await self.denominate(asset, gas.fast)
            except NoQuoteAvailable as e:
                logger.warning(f"Skipping {asset.ticker}: {e}")
                continue
            results.append(DenominatedPair(asset.ticker, denomination))

        return results

    async def denominate(self, asset: GasTargetAsset, gas_price: int) -> str:
        """Express a gas price in the smallest unit of an asset.

        :param asset: Target asset.
        :param gas_price: Gas price in native gas units (gwei).
        :returns: Integer string amount of the asset.
        :raises NoQuoteAvailable: If either consensus price is unavailable.
        """
        quote = self.config.quote_ticker
        prices = await asyncio.gather(
            self.aggregator.fetch_price(TickerPair(asset.ticker, quote)),
            self.aggregator.fetch_price(TickerPair(self.config.native_ticker, quote)),
            return_exceptions=True,
        )
        for price in prices:
            if isinstance(price, BaseException):
                raise price
        asset_price, native_price = prices

        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            amount = (
                Decimal(gas_price)
                * Decimal(str(native_price))
                / Decimal(str(asset_price))
                * Decimal(10) ** (asset.decimals - self.config.native_unit_decimals)
            )
            denomination = format_amount(amount)

        logger.debug(
            f"{asset.ticker}: {gas_price} gwei at {self.config.native_ticker}/{quote}="
            f"{native_price} {asset.ticker}/{quote}={asset_price} -> {denomination}"
        )
        return denomination
