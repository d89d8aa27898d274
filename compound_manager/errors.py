"""Lending errors. Any of them aborts the enclosing operation."""
from __future__ import annotations


class LendingError(Exception):
    """Base class for all lending orchestration failures."""


class Unauthorized(LendingError):
    """Caller is not the owner of the wallet."""

    def __init__(self, wallet: str, caller: str) -> None:
        super().__init__(f"{caller} is not an owner of wallet {wallet}")
        self.wallet = wallet
        self.caller = caller


class WalletLocked(LendingError):
    """Wallet is temporarily frozen."""

    def __init__(self, wallet: str) -> None:
        super().__init__(f"Wallet {wallet} is locked")
        self.wallet = wallet


class UnsupportedMarket(LendingError):
    """No market token is configured for the asset."""

    def __init__(self, asset: str | None) -> None:
        super().__init__(f"No market for asset {asset}")
        self.asset = asset


class ZeroAmount(LendingError):
    def __init__(self) -> None:
        super().__init__("Amount cannot be 0")


class InvalidFraction(LendingError):
    def __init__(self, fraction_bps: int) -> None:
        super().__init__(f"Fraction must be between 0 and 10000 bps, got {fraction_bps}")
        self.fraction_bps = fraction_bps


class LiquidityQueryFailed(LendingError):
    """Account-liquidity query returned a nonzero error code."""

    def __init__(self, error_code: int) -> None:
        super().__init__(f"Account liquidity query failed with error {error_code}")
        self.error_code = error_code


class ExternalCallFailed(LendingError):
    """A read or invocation against the money market aborted."""

    def __init__(self, target: str, method: str, reason: str = "") -> None:
        message = f"Call {method} on {target} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.target = target
        self.method = method
        self.reason = reason
