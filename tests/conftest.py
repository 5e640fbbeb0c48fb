"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from nfr_engine.config import (
    AppConfig,
    CollateralConfig,
    EngineConfig,
    NfrTokenConfig,
    PriceOracleConfig,
    PythConfig,
)
from nfr_engine.engine import NFREngine
from nfr_engine.oracles import StaticPriceFeed
from nfr_engine.tokens import InMemoryToken, SyntheticNfrToken

ENGINE = "engine"
USER = "alice"
LIQUIDATOR = "bob"

NOW = 1_700_000_000
ETH_USD_PRICE = 2000 * 10**8  # 8-decimal feed
BTC_USD_PRICE = 1000 * 10**8
STARTING_BALANCE = 100 * 10**18
AMOUNT_COLLATERAL = 10 * 10**18
AMOUNT_TO_MINT = 100 * 10**18


class FakeClock:
    """Settable clock for staleness checks."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def weth() -> InMemoryToken:
    token = InMemoryToken("WETH", "weth")
    token.mint_to(USER, STARTING_BALANCE)
    token.mint_to(LIQUIDATOR, STARTING_BALANCE)
    return token


@pytest.fixture()
def wbtc() -> InMemoryToken:
    token = InMemoryToken("WBTC", "wbtc")
    token.mint_to(USER, STARTING_BALANCE)
    return token


@pytest.fixture()
def eth_feed() -> StaticPriceFeed:
    return StaticPriceFeed(ETH_USD_PRICE, updated_at=NOW)


@pytest.fixture()
def btc_feed() -> StaticPriceFeed:
    return StaticPriceFeed(BTC_USD_PRICE, updated_at=NOW)


@pytest.fixture()
def nfr() -> SyntheticNfrToken:
    return SyntheticNfrToken(owner=ENGINE, address="nfr")


@pytest.fixture()
def engine(
    weth: InMemoryToken,
    wbtc: InMemoryToken,
    eth_feed: StaticPriceFeed,
    btc_feed: StaticPriceFeed,
    nfr: SyntheticNfrToken,
    clock: FakeClock,
) -> NFREngine:
    return NFREngine(
        [weth, wbtc], [eth_feed, btc_feed], nfr, address=ENGINE, clock=clock
    )


@pytest.fixture()
def deposited(engine: NFREngine, weth: InMemoryToken) -> NFREngine:
    """USER has AMOUNT_COLLATERAL WETH locked and no debt."""
    weth.approve(USER, ENGINE, AMOUNT_COLLATERAL)
    engine.deposit_collateral(USER, "weth", AMOUNT_COLLATERAL)
    return engine


@pytest.fixture()
def minted(deposited: NFREngine) -> NFREngine:
    """USER has AMOUNT_COLLATERAL WETH locked and AMOUNT_TO_MINT NFR debt."""
    deposited.mint_nfr(USER, AMOUNT_TO_MINT)
    return deposited


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        engine=EngineConfig(address="0xENGINE", staleness_multiple=3),
        nfr=NfrTokenConfig(symbol="NFR", address="0xNFR"),
        collateral=(
            CollateralConfig(
                symbol="WETH", address="0xWETH", feed_id="aaa111", heartbeat_seconds=3600
            ),
            CollateralConfig(
                symbol="WBTC", address="0xWBTC", feed_id="bbb222", heartbeat_seconds=60
            ),
        ),
        price_oracle=PriceOracleConfig(
            provider="pyth",
            pyth=PythConfig(hermes_url="https://hermes.example.com/v2/updates/price/latest"),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: "0xENGINE"
      staleness_multiple: 2
    nfr:
      symbol: NFR
      address: "0xNFR"
    collateral:
      - symbol: WETH
        address: "0xWETH"
        feed_id: "aaa"
        heartbeat_seconds: 3600
      - symbol: WBTC
        address: "0xWBTC"
        feed_id: "bbb"
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
