"""Unit tests for the command line entry point."""

import json
import sys

import pytest

from gasoracle import main as cli
from gasoracle.src.AdapterConfig import GasConfig, parse_target_assets
from gasoracle.src.EthGasDenominator import EthGasDenominator
from gasoracle.src.ExchangeAggregator import ExchangeAggregator
from gasoracle.src.gas import EtherscanGasProvider, GasPriceGwei
from gasoracle.src.TickerPair import TickerPair

from conftest import FakeGasProvider, TableFetcher

ENV_VARS = (
    "SOURCES",
    "TARGET_ASSETS",
    "PAIRS",
    "NATIVE_TICKER",
    "QUOTE_TICKER",
    "GAS_PROVIDER",
    "GAS_PROVIDER_URL",
    "MIN_SOURCES",
    "MAX_DEVIATION_PERCENT",
    "FETCH_TIMEOUT",
    "PERIOD",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def build(targets: str, provider: FakeGasProvider):
    aggregator = ExchangeAggregator(
        {"table": TableFetcher({("ETH", "USD"): 3000.0, ("EGLD", "USD"): 28.0})}
    )
    config = GasConfig(target_assets=parse_target_assets(targets))
    return EthGasDenominator(aggregator, provider, config), aggregator


class TestParseApiKeys:
    """Test API key parsing."""

    def test_empty(self) -> None:
        assert cli.parse_api_keys(None) == {}
        assert cli.parse_api_keys("") == {}

    def test_parse(self) -> None:
        keys = cli.parse_api_keys("coingecko=demo:abc, Etherscan = xyz ,malformed")

        assert keys == {"coingecko": "demo:abc", "etherscan": "xyz"}

    def test_value_may_contain_equals(self) -> None:
        assert cli.parse_api_keys("etherscan=a=b") == {"etherscan": "a=b"}

    def test_env(self, monkeypatch) -> None:
        monkeypatch.setenv("API_KEY_ETHERSCAN", "xyz")
        monkeypatch.setenv("APIKEY_COINGECKO", "demo:abc")
        monkeypatch.setenv("API_KEY_KRAKEN", "")

        keys = cli.parse_env_api_keys()

        assert keys["etherscan"] == "xyz"
        assert keys["coingecko"] == "demo:abc"
        assert "kraken" not in keys


@pytest.mark.asyncio
class TestReport:
    """Test one reporting round."""

    async def test_report(self) -> None:
        denominator, aggregator = build(
            "EGLD:18,ETH:18", FakeGasProvider([GasPriceGwei(20, 30, 40)])
        )

        report = await cli.report(
            denominator, aggregator, [TickerPair("ETH", "USD"), TickerPair("BTC", "USD")]
        )

        assert report == {
            "gas": [
                {"base": "EGLD", "denomination": "3214285714286"},
                {"base": "ETH", "denomination": "30"},
            ],
            "prices": {"ETH/USD": 3000.0, "BTC/USD": -1.0},
        }

    async def test_run_once(self, capsys) -> None:
        denominator, aggregator = build("ETH:18", FakeGasProvider([GasPriceGwei(20, 30, 40)]))

        assert await cli.run(denominator, aggregator, [], period=0) == 0

        output = json.loads(capsys.readouterr().out)
        assert output == {"gas": [{"base": "ETH", "denomination": "30"}], "prices": {}}

    async def test_run_once_gas_unavailable(self, capsys) -> None:
        denominator, aggregator = build(
            "ETH:18", FakeGasProvider(error=ConnectionError("node down"))
        )

        assert await cli.run(denominator, aggregator, [], period=0) == 1
        assert capsys.readouterr().out == ""


class TestMain:
    """Test argument handling of main()."""

    def run_main(self, monkeypatch, *args: str):
        captured = {}

        async def fake_run(denominator, aggregator, pairs, period):
            captured.update(
                denominator=denominator, aggregator=aggregator, pairs=pairs, period=period
            )
            return 0

        monkeypatch.setattr(cli, "run", fake_run)
        monkeypatch.setattr(sys, "argv", ["gasoracle", *args])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        return exc_info.value.code, captured

    def test_wiring(self, clean_env) -> None:
        clean_env.setenv("API_KEY_ETHERSCAN", "secret")

        code, captured = self.run_main(
            clean_env,
            "--sources", "coinbase,Kraken",
            "--target-assets", "egld:18,eth:18",
            "--pairs", "btc/usd",
            "--min-sources", "2",
            "--max-deviation", "5",
            "--fetch-timeout", "3",
        )

        assert code == 0
        aggregator = captured["aggregator"]
        assert aggregator.sources == ["coinbase", "kraken"]
        assert aggregator.fetch_timeout == 3.0
        assert aggregator.reducer.min_sources == 2
        assert aggregator.reducer.max_deviation_percent == 5.0

        denominator = captured["denominator"]
        assert [a.ticker for a in denominator.config.target_assets] == ["EGLD", "ETH"]
        assert isinstance(denominator.gas_provider, EtherscanGasProvider)
        assert denominator.gas_provider.api_key == "secret"
        assert denominator.gas_provider.timeout == 3.0
        assert captured["pairs"] == [TickerPair("BTC", "USD")]
        assert captured["period"] == 0

    def test_env_defaults(self, clean_env) -> None:
        clean_env.setenv("TARGET_ASSETS", "USDC:6")
        clean_env.setenv("SOURCES", "binance")
        clean_env.setenv("MAX_DEVIATION_PERCENT", "0")

        code, captured = self.run_main(clean_env)

        assert code == 0
        assert captured["aggregator"].sources == ["binance"]
        assert captured["aggregator"].reducer.max_deviation_percent is None
        assert captured["denominator"].config.target_assets[0].ticker == "USDC"

    @pytest.mark.parametrize(
        "args",
        [
            (),
            ("--target-assets", "ETH:18", "--sources", "nope"),
            ("--target-assets", "ETH:18", "--gas-provider", "nope"),
            ("--target-assets", "ETH"),
            ("--pairs", "btcusd"),
            ("--target-assets", "ETH:18", "--min-sources", "0"),
            ("--target-assets", "ETH:18", "--fetch-timeout", "0"),
        ],
    )
    def test_invalid_arguments(self, clean_env, args) -> None:
        code, captured = self.run_main(clean_env, *args)

        assert code == 2
        assert captured == {}
