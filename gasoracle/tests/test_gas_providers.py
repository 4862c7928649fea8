"""Unit tests for gas price providers."""

import asyncio

import httpx
import pytest

from gasoracle.src.errors import GasProviderUnavailable
from gasoracle.src.gas import (
    EtherscanGasProvider,
    GasPriceGwei,
    Web3GasProvider,
    get_available_gas_providers,
    get_gas_provider,
    parse_gwei,
    wei_to_gwei,
)

from conftest import FakeGasProvider

ETHERSCAN_ROUTE = "api.etherscan.io/v2/api"


def etherscan_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "status": "1",
            "message": "OK",
            "result": {
                "LastBlock": "21000000",
                "SafeGasPrice": "0.8",
                "ProposeGasPrice": "1.2",
                "FastGasPrice": "2",
                "suggestBaseFee": "0.71",
            },
        },
    )


class FakeEth:
    """Stand-in for AsyncWeb3.eth."""

    def __init__(self, history: dict, gas_price: int = 0) -> None:
        self.history = history
        self._gas_price = gas_price
        self.fee_history_args = None

    async def fee_history(self, block_count, newest_block, reward_percentiles):
        self.fee_history_args = (block_count, newest_block, reward_percentiles)
        return self.history

    async def _read_gas_price(self) -> int:
        return self._gas_price

    @property
    def gas_price(self):
        return self._read_gas_price()


class FakeWeb3:
    def __init__(self, eth: FakeEth) -> None:
        self.eth = eth


class TestGasUnits:
    """Test gwei conversions."""

    def test_wei_to_gwei_rounds_up(self) -> None:
        assert wei_to_gwei(0) == 0
        assert wei_to_gwei(1) == 1
        assert wei_to_gwei(30 * 10**9) == 30
        assert wei_to_gwei(30 * 10**9 + 1) == 31

    def test_parse_gwei(self) -> None:
        assert parse_gwei("12") == 12
        assert parse_gwei("0.53") == 1
        assert parse_gwei(7) == 7
        assert parse_gwei(" 3.0 ") == 3

    def test_parse_gwei_rounds_up(self) -> None:
        """Sub-gwei fractions count as a full gwei."""
        assert parse_gwei("0.8") == 1
        assert parse_gwei("1.2") == 2
        assert parse_gwei("2.0") == 2

    @pytest.mark.parametrize("raw", ["", "abc", "-1", "NaN", None])
    def test_parse_gwei_invalid(self, raw) -> None:
        with pytest.raises(ValueError):
            parse_gwei(raw)

    def test_gas_price_tiers_validated(self) -> None:
        with pytest.raises(ValueError, match="fast"):
            GasPriceGwei(slow=1, fast=-1, fastest=3)
        with pytest.raises(ValueError, match="slow"):
            GasPriceGwei(slow=1.5, fast=2, fastest=3)


class TestGasProviderRegistry:
    """Test provider registration and lookup."""

    def test_available_providers(self) -> None:
        assert get_available_gas_providers() == ["etherscan", "web3"]

    def test_get_gas_provider(self) -> None:
        provider = get_gas_provider("etherscan", api_key="key", timeout=3.0)

        assert isinstance(provider, EtherscanGasProvider)
        assert provider.url == EtherscanGasProvider.DEFAULT_URL
        assert provider.api_key == "key"
        assert provider.timeout == 3.0

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown gas provider 'nope'"):
            get_gas_provider("nope")


@pytest.mark.asyncio
class TestBaseGasPriceProvider:
    """Failures of any kind surface as GasProviderUnavailable."""

    async def test_returns_reading(self) -> None:
        provider = FakeGasProvider([GasPriceGwei(1, 2, 3)])

        assert await provider.fetch_gas_price_gwei() == GasPriceGwei(1, 2, 3)

    async def test_wraps_errors(self) -> None:
        provider = FakeGasProvider(error=KeyError("result"))

        with pytest.raises(GasProviderUnavailable, match="KeyError"):
            await provider.fetch_gas_price_gwei()

    async def test_timeout(self) -> None:
        class SlowProvider(FakeGasProvider):
            async def _fetch(self) -> GasPriceGwei:
                await asyncio.sleep(10)
                return GasPriceGwei(1, 2, 3)

        provider = SlowProvider()
        provider.timeout = 0.01

        with pytest.raises(GasProviderUnavailable, match="No gas price within"):
            await provider.fetch_gas_price_gwei()


@pytest.mark.asyncio
class TestEtherscanGasProvider:
    """Test Etherscan gas tracker handling."""

    async def test_fetch(self, mock_http) -> None:
        """Fractional gwei values round up per tier."""
        seen = {}

        def route(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return etherscan_ok(request)

        mock_http[ETHERSCAN_ROUTE] = route

        gas = await EtherscanGasProvider(api_key="secret").fetch_gas_price_gwei()

        assert gas == GasPriceGwei(slow=1, fast=2, fastest=2)
        assert seen["module"] == "gastracker"
        assert seen["action"] == "gasoracle"
        assert seen["chainid"] == "1"
        assert seen["apikey"] == "secret"

    async def test_no_api_key(self, mock_http) -> None:
        """The apikey parameter is only sent when configured."""
        seen = {}

        def route(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return etherscan_ok(request)

        mock_http[ETHERSCAN_ROUTE] = route

        await EtherscanGasProvider().fetch_gas_price_gwei()
        assert "apikey" not in seen

    async def test_api_error(self, mock_http) -> None:
        """status "0" means the request was rejected."""
        mock_http[ETHERSCAN_ROUTE] = lambda request: httpx.Response(
            200,
            json={"status": "0", "message": "NOTOK", "result": "Invalid API Key"},
        )

        with pytest.raises(GasProviderUnavailable, match="Invalid API Key"):
            await EtherscanGasProvider(api_key="bad").fetch_gas_price_gwei()

    async def test_http_error(self, mock_http) -> None:
        mock_http[ETHERSCAN_ROUTE] = lambda request: httpx.Response(502, text="bad gateway")

        with pytest.raises(GasProviderUnavailable, match="HTTP 502"):
            await EtherscanGasProvider().fetch_gas_price_gwei()

    async def test_malformed_result(self, mock_http) -> None:
        mock_http[ETHERSCAN_ROUTE] = lambda request: httpx.Response(
            200, json={"status": "1", "message": "OK", "result": {"SafeGasPrice": "1"}}
        )

        with pytest.raises(GasProviderUnavailable):
            await EtherscanGasProvider().fetch_gas_price_gwei()

    async def test_transport_error(self, mock_http) -> None:
        def refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        mock_http[ETHERSCAN_ROUTE] = refused

        with pytest.raises(GasProviderUnavailable, match="ConnectError"):
            await EtherscanGasProvider().fetch_gas_price_gwei()


@pytest.mark.asyncio
class TestWeb3GasProvider:
    """Test fee history based tiers."""

    def make_provider(self, eth: FakeEth) -> Web3GasProvider:
        provider = Web3GasProvider(url="http://node.local:8545")
        provider.w3 = FakeWeb3(eth)
        return provider

    async def test_fee_history(self) -> None:
        """Tiers are next base fee plus the mean reward per percentile."""
        gwei = 10**9
        eth = FakeEth(
            {
                "oldestBlock": 100,
                "baseFeePerGas": [10 * gwei, 11 * gwei, 12 * gwei],
                "reward": [
                    [1 * gwei, 2 * gwei, 5 * gwei],
                    [1 * gwei, 4 * gwei, 7 * gwei],
                ],
            }
        )
        provider = self.make_provider(eth)

        gas = await provider.fetch_gas_price_gwei()

        assert gas == GasPriceGwei(slow=13, fast=15, fastest=18)
        assert eth.fee_history_args == (5, "latest", [10, 50, 90])

    async def test_fee_history_rounds_up(self) -> None:
        eth = FakeEth({"baseFeePerGas": [1, 1], "reward": [[0, 1, 2]]})

        gas = await self.make_provider(eth).fetch_gas_price_gwei()

        assert gas == GasPriceGwei(slow=1, fast=1, fastest=1)

    async def test_gas_price_fallback(self) -> None:
        """Without reward data every tier is eth_gasPrice."""
        eth = FakeEth({"baseFeePerGas": [], "reward": []}, gas_price=25 * 10**9 + 5)

        gas = await self.make_provider(eth).fetch_gas_price_gwei()

        assert gas == GasPriceGwei(slow=26, fast=26, fastest=26)

    async def test_node_error(self) -> None:
        class BrokenEth(FakeEth):
            async def fee_history(self, *args):
                raise ConnectionError("node down")

        provider = self.make_provider(BrokenEth({}))

        with pytest.raises(GasProviderUnavailable, match="node down"):
            await provider.fetch_gas_price_gwei()


def test_web3_rpc_url_env(monkeypatch) -> None:
    """RPC_URL is used when no URL is configured."""
    monkeypatch.setenv("RPC_URL", "http://rpc.example:8545")

    assert Web3GasProvider().url == "http://rpc.example:8545"
    assert Web3GasProvider(url="http://other:8545").url == "http://other:8545"
