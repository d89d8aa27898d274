"""In-memory Compound-style money market for dry runs and tests.

``SandboxMarket`` plays every external collaborator at once: the read
views (``MoneyMarket``), the wallet's call primitive (``CallInvoker``),
the owner/lock gate (``AuthorizationGate``) and the all-or-nothing
boundary (``TransactionHost``). All amounts are integers; rates, prices
and collateral factors are scaled by 1e18.
"""
from __future__ import annotations

import copy
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from .config import AppConfig, SandboxMarketConfig
from .models import EXP_SCALE, NATIVE_ASSET, ContractCall

logger = logging.getLogger(__name__)


class CallReverted(Exception):
    """A simulated protocol call was rejected."""


@dataclass
class _Market:
    token: str
    underlying: str
    symbol: str
    is_native: bool
    exchange_rate: int = EXP_SCALE
    collateral_factor: int = 0
    price: int = EXP_SCALE


@dataclass
class _Account:
    owner: str = ""
    locked: bool = False
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)
    shares: dict[str, int] = field(default_factory=dict)
    borrows: dict[str, int] = field(default_factory=dict)
    pending_interest: dict[str, int] = field(default_factory=dict)
    assets_in: list[str] = field(default_factory=list)


def _key(address: str) -> str:
    return address.lower()


class SandboxMarket:
    """Deterministic money market with snapshot/restore atomicity."""

    def __init__(self, comptroller: str, liquidity_error: int = 0) -> None:
        self.comptroller = comptroller
        self.liquidity_error = liquidity_error
        self.calls: list[tuple[str, ContractCall]] = []
        self._markets: dict[str, _Market] = {}
        self._accounts: dict[str, _Account] = {}
        self._failures: list[str] = []

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: AppConfig) -> SandboxMarket:
        sandbox = cls(config.protocol.comptroller)
        for market in config.markets:
            params = config.sandbox.markets.get(market.symbol, SandboxMarketConfig())
            sandbox.add_market(
                market.market_token,
                market.underlying,
                symbol=market.symbol,
                native=market.symbol == config.protocol.native_market_symbol,
                exchange_rate=params.exchange_rate,
                collateral_factor=params.collateral_factor,
                price=params.price,
            )
        for wallet in config.sandbox.wallets:
            sandbox.add_wallet(
                wallet.address, wallet.owner, locked=wallet.locked, balances=wallet.balances
            )
        return sandbox

    def add_market(
        self,
        token: str,
        underlying: str,
        symbol: str = "",
        native: bool = False,
        exchange_rate: int = EXP_SCALE,
        collateral_factor: int = 0,
        price: int = EXP_SCALE,
    ) -> None:
        self._markets[_key(token)] = _Market(
            token=token,
            underlying=NATIVE_ASSET if native else underlying,
            symbol=symbol,
            is_native=native,
            exchange_rate=exchange_rate,
            collateral_factor=collateral_factor,
            price=price,
        )

    def add_wallet(
        self,
        address: str,
        owner: str,
        locked: bool = False,
        balances: dict[str, int] | None = None,
    ) -> None:
        self._accounts[_key(address)] = _Account(
            owner=owner,
            locked=locked,
            balances={_key(k): v for k, v in (balances or {}).items()},
        )

    def set_locked(self, wallet: str, locked: bool) -> None:
        self._account(wallet).locked = locked

    def set_exchange_rate(self, market_token: str, rate: int) -> None:
        self._market(market_token).exchange_rate = rate

    def accrue_interest(self, market_token: str, wallet: str, amount: int) -> None:
        """Queue interest that only the accruing debt read will realize."""
        pending = self._account(wallet).pending_interest
        pending[_key(market_token)] = pending.get(_key(market_token), 0) + amount

    def fail_on(self, method: str) -> None:
        """Make the next call or read named ``method`` fail."""
        self._failures.append(method)

    def balance(self, wallet: str, asset: str) -> int:
        return self._view(wallet).balances.get(_key(asset), 0)

    # ------------------------------------------------------------------
    # TransactionHost
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def atomic(self, wallet: str) -> AsyncIterator[None]:
        snapshot = copy.deepcopy((self._markets, self._accounts))
        try:
            yield
        except Exception:
            self._markets, self._accounts = snapshot
            logger.debug("Rolled back state for %s", wallet)
            raise

    # ------------------------------------------------------------------
    # AuthorizationGate
    # ------------------------------------------------------------------

    async def is_owner(self, wallet: str, caller: str) -> bool:
        account = self._accounts.get(_key(wallet))
        return account is not None and _key(account.owner) == _key(caller)

    async def is_locked(self, wallet: str) -> bool:
        account = self._accounts.get(_key(wallet))
        return account is not None and account.locked

    # ------------------------------------------------------------------
    # MoneyMarket reads
    # ------------------------------------------------------------------

    async def check_membership(self, wallet: str, market_token: str) -> bool:
        self._check_failure("check_membership")
        return _key(market_token) in self._view(wallet).assets_in

    async def get_assets_in(self, wallet: str) -> list[str]:
        self._check_failure("get_assets_in")
        return [self._markets[k].token for k in self._view(wallet).assets_in]

    async def balance_of(self, market_token: str, wallet: str) -> int:
        self._check_failure("balance_of")
        self._market(market_token)
        return self._view(wallet).shares.get(_key(market_token), 0)

    async def borrow_balance_current(self, market_token: str, wallet: str) -> int:
        self._check_failure("borrow_balance_current")
        self._market(market_token)
        account = self._view(wallet)
        key = _key(market_token)
        interest = account.pending_interest.pop(key, 0)
        if interest:
            account.borrows[key] = account.borrows.get(key, 0) + interest
        return account.borrows.get(key, 0)

    async def borrow_balance_stored(self, market_token: str, wallet: str) -> int:
        self._check_failure("borrow_balance_stored")
        self._market(market_token)
        return self._view(wallet).borrows.get(_key(market_token), 0)

    async def exchange_rate_stored(self, market_token: str) -> int:
        self._check_failure("exchange_rate_stored")
        return self._market(market_token).exchange_rate

    async def get_account_liquidity(self, wallet: str) -> tuple[int, int, int]:
        self._check_failure("get_account_liquidity")
        if self.liquidity_error:
            return self.liquidity_error, 0, 0
        liquidity, shortfall = self._liquidity(self._view(wallet))
        return 0, liquidity, shortfall

    async def symbol(self, market_token: str) -> str:
        self._check_failure("symbol")
        return self._market(market_token).symbol

    async def underlying(self, market_token: str) -> str:
        self._check_failure("underlying")
        market = self._market(market_token)
        if market.is_native:
            raise CallReverted(f"{market.symbol} has no underlying token")
        return market.underlying

    # ------------------------------------------------------------------
    # CallInvoker
    # ------------------------------------------------------------------

    async def invoke(self, wallet: str, call: ContractCall) -> Any:
        self.calls.append((wallet, call))
        self._check_failure(call.method)
        account = self._account(wallet)

        snapshot = copy.deepcopy(account)
        try:
            if _key(call.target) == _key(self.comptroller):
                self._comptroller_call(account, call)
            elif _key(call.target) in self._markets:
                self._market_call(account, self._markets[_key(call.target)], call)
            else:
                self._token_call(account, call)
        except CallReverted:
            self._accounts[_key(wallet)] = snapshot
            raise
        return None

    def _comptroller_call(self, account: _Account, call: ContractCall) -> None:
        self._require_no_value(call)
        if call.method == "enterMarkets":
            (tokens,) = call.args
            for token in tokens:
                key = _key(self._market(token).token)
                if key not in account.assets_in:
                    account.assets_in.append(key)
        elif call.method == "exitMarket":
            (token,) = call.args
            key = _key(self._market(token).token)
            if account.borrows.get(key, 0):
                raise CallReverted("exitMarket: nonzero borrow balance")
            if key in account.assets_in:
                account.assets_in.remove(key)
                if self._liquidity(account)[1] > 0:
                    raise CallReverted("exitMarket: would cause shortfall")
        else:
            raise CallReverted(f"comptroller has no method {call.method}")

    def _token_call(self, account: _Account, call: ContractCall) -> None:
        self._require_no_value(call)
        if call.method != "approve":
            raise CallReverted(f"token has no method {call.method}")
        spender, amount = call.args
        account.allowances[(_key(call.target), _key(spender))] = amount

    def _market_call(self, account: _Account, market: _Market, call: ContractCall) -> None:
        key = _key(market.token)
        if call.method == "mint":
            amount = self._pull(account, market, call)
            account.shares[key] = account.shares.get(key, 0) + amount * EXP_SCALE // market.exchange_rate
        elif call.method == "redeem":
            self._require_no_value(call)
            (shares,) = call.args
            self._redeem(account, market, shares, shares * market.exchange_rate // EXP_SCALE)
        elif call.method == "redeemUnderlying":
            self._require_no_value(call)
            (amount,) = call.args
            self._redeem(account, market, amount * EXP_SCALE // market.exchange_rate, amount)
        elif call.method == "borrow":
            self._require_no_value(call)
            (amount,) = call.args
            if key not in account.assets_in:
                raise CallReverted("borrow: market not entered")
            account.borrows[key] = account.borrows.get(key, 0) + amount
            self._credit(account, market.underlying, amount)
            if self._liquidity(account)[1] > 0:
                raise CallReverted("borrow: insufficient liquidity")
        elif call.method == "repayBorrow":
            amount = self._pull(account, market, call)
            owed = account.borrows.get(key, 0)
            if amount > owed:
                raise CallReverted("repayBorrow: amount exceeds borrow balance")
            account.borrows[key] = owed - amount
        else:
            raise CallReverted(f"{market.symbol} has no method {call.method}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _pull(self, account: _Account, market: _Market, call: ContractCall) -> int:
        """Take the amount a mint/repay call pays in, from value or allowance."""
        if market.is_native:
            if call.args:
                raise CallReverted(f"{call.method}: native market takes value, not arguments")
            amount = call.value
        else:
            self._require_no_value(call)
            (amount,) = call.args
            allowance_key = (_key(market.underlying), _key(market.token))
            allowance = account.allowances.get(allowance_key, 0)
            if allowance < amount:
                raise CallReverted(f"{call.method}: insufficient allowance")
            account.allowances[allowance_key] = allowance - amount
        self._debit(account, market.underlying, amount)
        return amount

    def _redeem(self, account: _Account, market: _Market, shares: int, payout: int) -> None:
        key = _key(market.token)
        held = account.shares.get(key, 0)
        if shares > held:
            raise CallReverted("redeem: insufficient shares")
        account.shares[key] = held - shares
        self._credit(account, market.underlying, payout)
        if self._liquidity(account)[1] > 0:
            raise CallReverted("redeem: would cause shortfall")

    def _liquidity(self, account: _Account) -> tuple[int, int]:
        collateral = 0
        borrowed = 0
        for key in account.assets_in:
            market = self._markets[key]
            underlying_value = account.shares.get(key, 0) * market.exchange_rate // EXP_SCALE
            collateral += underlying_value * market.collateral_factor // EXP_SCALE * market.price // EXP_SCALE
            borrowed += account.borrows.get(key, 0) * market.price // EXP_SCALE
        if collateral >= borrowed:
            return collateral - borrowed, 0
        return 0, borrowed - collateral

    def _debit(self, account: _Account, asset: str, amount: int) -> None:
        balance = account.balances.get(_key(asset), 0)
        if balance < amount:
            raise CallReverted(f"insufficient balance of {asset}")
        account.balances[_key(asset)] = balance - amount

    def _credit(self, account: _Account, asset: str, amount: int) -> None:
        account.balances[_key(asset)] = account.balances.get(_key(asset), 0) + amount

    @staticmethod
    def _require_no_value(call: ContractCall) -> None:
        if call.value:
            raise CallReverted(f"{call.method} is not payable")

    def _check_failure(self, method: str) -> None:
        if method in self._failures:
            self._failures.remove(method)
            raise CallReverted(f"{method} failed (programmed)")

    def _market(self, market_token: str) -> _Market:
        market = self._markets.get(_key(market_token))
        if market is None:
            raise CallReverted(f"unknown market {market_token}")
        return market

    def _account(self, wallet: str) -> _Account:
        account = self._accounts.get(_key(wallet))
        if account is None:
            account = self._accounts[_key(wallet)] = _Account()
        return account

    def _view(self, wallet: str) -> _Account:
        """Stored account, or an empty one that is not kept."""
        return self._accounts.get(_key(wallet)) or _Account()
