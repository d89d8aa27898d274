"""Collateralized lending and investment orchestration for custodial wallets."""
from .core import PositionOrchestrator, RiskReader
from .errors import (
    ExternalCallFailed,
    InvalidFraction,
    LendingError,
    LiquidityQueryFailed,
    Unauthorized,
    UnsupportedMarket,
    WalletLocked,
    ZeroAmount,
)
from .models import LOAN_ID, NATIVE_ASSET, CallerContext, LoanStatus, RiskLevel

__all__ = [
    "LOAN_ID",
    "NATIVE_ASSET",
    "CallerContext",
    "ExternalCallFailed",
    "InvalidFraction",
    "LendingError",
    "LiquidityQueryFailed",
    "LoanStatus",
    "PositionOrchestrator",
    "RiskLevel",
    "RiskReader",
    "Unauthorized",
    "UnsupportedMarket",
    "WalletLocked",
    "ZeroAmount",
]
