"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from compound_manager.config import (
    AppConfig,
    MarketConfig,
    NotificationsConfig,
    ProtocolConfig,
    SandboxConfig,
    SandboxMarketConfig,
    SandboxWalletConfig,
    TelegramConfig,
)
from compound_manager.core import (
    MarketAdapter,
    MembershipManager,
    PositionOrchestrator,
    ProtocolGateway,
    RiskReader,
)
from compound_manager.models import EXP_SCALE, NATIVE_ASSET, CallerContext
from compound_manager.notifications import EventBus
from compound_manager.registry import StaticMarketRegistry
from compound_manager.sandbox import SandboxMarket


@dataclass(frozen=True)
class Addresses:
    comptroller: str = "0x3d9819210A31b4961b30EF54bE2aeD79B9c9Cd3B"
    ceth: str = "0x4Ddc2D193948926D02f9B1fE9e1daa0718270ED5"
    dai: str = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
    cdai: str = "0x5d3a536E4D6DbD6114cc1Ead35777bAB948E3643"
    usdc: str = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
    cusdc: str = "0x39AA39c021dfbaE8faC545936693aC917d5E7563"
    unlisted: str = "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984"
    wallet: str = "0x1111111111111111111111111111111111111111"
    owner: str = "0x2222222222222222222222222222222222222222"
    stranger: str = "0x3333333333333333333333333333333333333333"
    native: str = NATIVE_ASSET


A = Addresses()


@pytest.fixture()
def addrs() -> Addresses:
    return A


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_markets() -> tuple[MarketConfig, ...]:
    return (
        MarketConfig(underlying=A.native, market_token=A.ceth, symbol="cETH"),
        MarketConfig(underlying=A.dai, market_token=A.cdai, symbol="cDAI"),
        MarketConfig(underlying=A.usdc, market_token=A.cusdc, symbol="cUSDC"),
    )


@pytest.fixture()
def sample_app_config(sample_markets: tuple[MarketConfig, ...]) -> AppConfig:
    return AppConfig(
        protocol=ProtocolConfig(comptroller=A.comptroller, native_market_symbol="cETH"),
        markets=sample_markets,
        notifications=NotificationsConfig(telegram=TelegramConfig(enabled=False)),
        sandbox=SandboxConfig(
            markets={
                "cETH": SandboxMarketConfig(
                    exchange_rate=EXP_SCALE,
                    collateral_factor=EXP_SCALE * 3 // 4,
                    price=EXP_SCALE,
                ),
                "cDAI": SandboxMarketConfig(
                    exchange_rate=EXP_SCALE,
                    collateral_factor=EXP_SCALE * 3 // 4,
                    price=EXP_SCALE,
                ),
            },
            wallets=(
                SandboxWalletConfig(
                    address=A.wallet,
                    owner=A.owner,
                    balances={A.native: 10_000, A.dai: 10_000},
                ),
            ),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    protocol:
      comptroller: "0x3d9819210A31b4961b30EF54bE2aeD79B9c9Cd3B"
      native_market_symbol: cETH
    markets:
      - underlying: "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
        market_token: "0x4Ddc2D193948926D02f9B1fE9e1daa0718270ED5"
        symbol: cETH
      - underlying: "0x6B175474E89094C44Da98b954EedeAC495271d0F"
        market_token: "0x5d3a536E4D6DbD6114cc1Ead35777bAB948E3643"
        symbol: cDAI
    notifications:
      telegram:
        enabled: false
        bot_token: "tok"
        chat_id: 999
    sandbox:
      markets:
        cETH: {exchange_rate: "1000000000000000000", collateral_factor: "750000000000000000", price: "1000000000000000000"}
        cDAI: {exchange_rate: "1000000000000000000", collateral_factor: "750000000000000000", price: "1000000000000000000"}
      wallets:
        - address: "0x1111111111111111111111111111111111111111"
          owner: "0x2222222222222222222222222222222222222222"
          balances:
            "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE": 10000
            "0x6B175474E89094C44Da98b954EedeAC495271d0F": "10000"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Core fixtures with mocked collaborators
# ---------------------------------------------------------------------------


@pytest.fixture()
def registry(sample_markets: tuple[MarketConfig, ...]) -> StaticMarketRegistry:
    return StaticMarketRegistry(sample_markets, native_market_symbol="cETH")


@pytest.fixture()
def mock_invoker() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def mock_market() -> AsyncMock:
    market = AsyncMock()
    market.check_membership.return_value = False
    market.get_assets_in.return_value = []
    market.balance_of.return_value = 0
    market.borrow_balance_current.return_value = 0
    market.borrow_balance_stored.return_value = 0
    market.exchange_rate_stored.return_value = EXP_SCALE
    market.get_account_liquidity.return_value = (0, 0, 0)
    return market


@pytest.fixture()
def mock_gate() -> AsyncMock:
    gate = AsyncMock()
    gate.is_owner.return_value = True
    gate.is_locked.return_value = False
    return gate


@pytest.fixture()
def gateway(mock_invoker: AsyncMock, mock_market: AsyncMock) -> ProtocolGateway:
    return ProtocolGateway(mock_invoker, mock_market)


@pytest.fixture()
def adapter(gateway: ProtocolGateway, registry: StaticMarketRegistry) -> MarketAdapter:
    return MarketAdapter(gateway, registry)


@pytest.fixture()
def membership(gateway: ProtocolGateway) -> MembershipManager:
    return MembershipManager(gateway, A.comptroller)


@pytest.fixture()
def event_sink() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def orchestrator(
    mock_gate: AsyncMock,
    registry: StaticMarketRegistry,
    gateway: ProtocolGateway,
    adapter: MarketAdapter,
    membership: MembershipManager,
    event_sink: AsyncMock,
) -> PositionOrchestrator:
    return PositionOrchestrator(
        mock_gate, registry, gateway, adapter, membership, bus=EventBus([event_sink])
    )


@pytest.fixture()
def reader(gateway: ProtocolGateway, registry: StaticMarketRegistry) -> RiskReader:
    return RiskReader(gateway, registry)


@pytest.fixture()
def ctx() -> CallerContext:
    return CallerContext(wallet=A.wallet, caller=A.owner)


# ---------------------------------------------------------------------------
# Sandbox fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sandbox(sample_app_config: AppConfig) -> SandboxMarket:
    return SandboxMarket.from_config(sample_app_config)


@pytest.fixture()
def sandbox_orchestrator(
    sandbox: SandboxMarket, sample_app_config: AppConfig, event_sink: AsyncMock
) -> PositionOrchestrator:
    return PositionOrchestrator.create(
        gate=sandbox,
        invoker=sandbox,
        market=sandbox,
        registry=StaticMarketRegistry.from_config(sample_app_config),
        comptroller=A.comptroller,
        host=sandbox,
        bus=EventBus([event_sink]),
    )


@pytest.fixture()
def sandbox_reader(sandbox: SandboxMarket, sample_app_config: AppConfig) -> RiskReader:
    return RiskReader(
        ProtocolGateway(sandbox, sandbox),
        StaticMarketRegistry.from_config(sample_app_config),
    )
