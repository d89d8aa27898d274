"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Sentinel standing for the chain's native asset wherever an underlying is expected.
NATIVE_ASSET = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

# Only one implicit loan per wallet is representable.
LOAN_ID = 0

EXP_SCALE = 10**18
MAX_FRACTION_BPS = 10_000


def is_null_address(address: str | None) -> bool:
    return not address or address.lower() == NULL_ADDRESS


def is_native_asset(address: str) -> bool:
    return address.lower() == NATIVE_ASSET.lower()


@dataclass(frozen=True)
class MarketInfo:
    """Registry entry for one money market."""

    market_token: str
    underlying: str
    symbol: str = ""
    is_native: bool = False


@dataclass(frozen=True)
class ContractCall:
    """A single call issued on behalf of a wallet."""

    target: str
    method: str
    args: tuple[Any, ...] = ()
    value: int = 0


@dataclass(frozen=True)
class CallerContext:
    """Who is acting, and on which wallet."""

    wallet: str
    caller: str


class RiskLevel(Enum):
    NONE = 0
    SAFE = 1
    UNSAFE = 2


@dataclass(frozen=True)
class LoanStatus:
    """Risk of the wallet's loan.

    ``magnitude`` is the value still borrowable when SAFE, or the value of
    collateral needed to avoid liquidation when UNSAFE.
    """

    status: RiskLevel
    magnitude: int


@dataclass(frozen=True)
class InvestmentValue:
    token_value: int
    period_end: int = 0


class EventName(str, Enum):
    LOAN_OPENED = "LoanOpened"
    LOAN_CLOSED = "LoanClosed"
    COLLATERAL_ADDED = "CollateralAdded"
    COLLATERAL_REMOVED = "CollateralRemoved"
    DEBT_ADDED = "DebtAdded"
    DEBT_REMOVED = "DebtRemoved"
    INVESTMENT_ADDED = "InvestmentAdded"
    INVESTMENT_REMOVED = "InvestmentRemoved"


@dataclass(frozen=True)
class LifecycleEvent:
    """Notification emitted once a position operation has committed."""

    name: EventName
    wallet: str
    params: dict[str, Any] = field(default_factory=dict)
