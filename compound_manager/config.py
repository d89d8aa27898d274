"""Load config.yaml (plus .env), expand ${VAR} references and validate the result."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import EXP_SCALE, is_native_asset, is_null_address

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProtocolConfig:
    comptroller: str = ""
    native_market_symbol: str = "cETH"


@dataclass(frozen=True)
class MarketConfig:
    underlying: str = ""
    market_token: str = ""
    symbol: str = ""


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    bot_token: str = ""
    chat_id: str = ""
    silent: bool = True


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class SandboxMarketConfig:
    """Simulated market parameters, all scaled by 1e18."""

    exchange_rate: int = EXP_SCALE
    collateral_factor: int = 0
    price: int = EXP_SCALE


@dataclass(frozen=True)
class SandboxWalletConfig:
    address: str = ""
    owner: str = ""
    locked: bool = False
    balances: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SandboxConfig:
    markets: dict[str, SandboxMarketConfig] = field(default_factory=dict)
    wallets: tuple[SandboxWalletConfig, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    markets: tuple[MarketConfig, ...] = ()
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_protocol(raw: dict[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(
        comptroller=str(raw.get("comptroller", "")),
        native_market_symbol=str(raw.get("native_market_symbol", "cETH")),
    )


def _build_markets(raw: list[dict[str, Any]]) -> tuple[MarketConfig, ...]:
    return tuple(
        MarketConfig(
            underlying=str(m.get("underlying", "")),
            market_token=str(m.get("market_token", "")),
            symbol=str(m.get("symbol", "")),
        )
        for m in raw
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            bot_token=tg.get("bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
            silent=bool(tg.get("silent", True)),
        ),
    )


def _build_sandbox(raw: dict[str, Any]) -> SandboxConfig:
    markets: dict[str, SandboxMarketConfig] = {}
    for symbol, cfg in raw.get("markets", {}).items():
        markets[symbol] = SandboxMarketConfig(
            exchange_rate=int(cfg.get("exchange_rate", EXP_SCALE)),
            collateral_factor=int(cfg.get("collateral_factor", 0)),
            price=int(cfg.get("price", EXP_SCALE)),
        )

    wallets: list[SandboxWalletConfig] = []
    for w in raw.get("wallets", []):
        wallets.append(
            SandboxWalletConfig(
                address=str(w.get("address", "")),
                owner=str(w.get("owner", "")),
                locked=bool(w.get("locked", False)),
                balances={k: int(v) for k, v in w.get("balances", {}).items()},
            )
        )
    return SandboxConfig(markets=markets, wallets=tuple(wallets))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Build an ``AppConfig`` from a YAML file.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            directory above the package.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        protocol=_build_protocol(raw.get("protocol", {})),
        markets=_build_markets(raw.get("markets", [])),
        notifications=_build_notifications(raw.get("notifications", {})),
        sandbox=_build_sandbox(raw.get("sandbox", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if is_null_address(cfg.protocol.comptroller):
        raise ValueError("Protocol comptroller address must be configured")

    if not cfg.markets:
        raise ValueError("At least one market must be configured")

    underlyings: set[str] = set()
    tokens: set[str] = set()
    for market in cfg.markets:
        if not market.underlying or not market.market_token:
            raise ValueError(f"Market '{market.symbol}' needs an underlying and a market token")
        if market.underlying.lower() in underlyings:
            raise ValueError(f"Duplicate market for underlying '{market.underlying}'")
        if market.market_token.lower() in tokens:
            raise ValueError(f"Duplicate market token '{market.market_token}'")
        if is_native_asset(market.underlying) != (market.symbol == cfg.protocol.native_market_symbol):
            raise ValueError(
                f"Market '{market.symbol}': the native asset and the native market symbol "
                f"'{cfg.protocol.native_market_symbol}' must go together"
            )
        underlyings.add(market.underlying.lower())
        tokens.add(market.market_token.lower())

    symbols = {m.symbol for m in cfg.markets}
    for symbol in cfg.sandbox.markets:
        if symbol not in symbols:
            raise ValueError(f"Sandbox references unknown market '{symbol}'")
    for wallet in cfg.sandbox.wallets:
        if not wallet.address:
            raise ValueError("Sandbox wallet has no address")
