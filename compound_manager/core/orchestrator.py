"""Position orchestrator — the wallet-facing loan and investment operations."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

from ..errors import InvalidFraction, LendingError, Unauthorized, WalletLocked
from ..interfaces.authorization import AuthorizationGate
from ..interfaces.invoker import CallInvoker
from ..interfaces.money_market import MoneyMarket
from ..interfaces.registry import MarketRegistry
from ..interfaces.transaction import TransactionHost
from ..models import (
    LOAN_ID,
    MAX_FRACTION_BPS,
    CallerContext,
    EventName,
    LifecycleEvent,
    MarketInfo,
)
from ..notifications.bus import EventBus
from .gateway import ProtocolGateway
from .market_adapter import (
    DEFAULT_NATIVE_MARKET_SYMBOL,
    MarketAdapter,
    require_amount,
    require_market,
)
from .membership import MembershipManager

logger = logging.getLogger(__name__)


class PassthroughHost:
    """Atomic boundary for hosts that already commit each submission as a unit."""

    @asynccontextmanager
    async def atomic(self, wallet: str) -> AsyncIterator[None]:
        yield


class PositionOrchestrator:
    """Open, adjust and close a wallet's loan and investments.

    Each operation checks the caller against the authorization gate,
    validates its arguments, then runs all of its protocol calls inside one
    atomic boundary supplied by the host. The lifecycle event is published
    only after that boundary commits.
    """

    def __init__(
        self,
        gate: AuthorizationGate,
        registry: MarketRegistry,
        gateway: ProtocolGateway,
        adapter: MarketAdapter,
        membership: MembershipManager,
        host: TransactionHost | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._gate = gate
        self._registry = registry
        self._gateway = gateway
        self._adapter = adapter
        self._membership = membership
        self._host: TransactionHost = host or PassthroughHost()
        self._bus = bus or EventBus()

    @classmethod
    def create(
        cls,
        gate: AuthorizationGate,
        invoker: CallInvoker,
        market: MoneyMarket,
        registry: MarketRegistry,
        comptroller: str,
        host: TransactionHost | None = None,
        bus: EventBus | None = None,
        native_market_symbol: str = DEFAULT_NATIVE_MARKET_SYMBOL,
    ) -> PositionOrchestrator:
        gateway = ProtocolGateway(invoker, market)
        return cls(
            gate,
            registry,
            gateway,
            MarketAdapter(gateway, registry, native_market_symbol),
            MembershipManager(gateway, comptroller),
            host=host,
            bus=bus,
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    async def _authorize(self, ctx: CallerContext) -> None:
        if not await self._gate.is_owner(ctx.wallet, ctx.caller):
            raise Unauthorized(ctx.wallet, ctx.caller)
        if await self._gate.is_locked(ctx.wallet):
            raise WalletLocked(ctx.wallet)

    def _resolve(self, asset: str) -> MarketInfo:
        return require_market(self._registry.market_for(asset), asset)

    async def _run(
        self,
        ctx: CallerContext,
        event: LifecycleEvent,
        body: Callable[[], Awaitable[Any]],
    ) -> Any:
        try:
            async with self._host.atomic(ctx.wallet):
                result = await body()
        except LendingError as e:
            logger.warning("%s aborted for %s: %s", event.name.value, ctx.wallet, e)
            raise

        logger.info("%s committed for %s %s", event.name.value, ctx.wallet, event.params)
        await self._bus.publish(event)
        return result

    # ------------------------------------------------------------------
    # Loan
    # ------------------------------------------------------------------

    async def open_loan(
        self,
        ctx: CallerContext,
        collateral_asset: str,
        collateral_amount: int,
        debt_asset: str,
        debt_amount: int,
    ) -> int:
        await self._authorize(ctx)
        collateral = self._resolve(collateral_asset)
        debt = self._resolve(debt_asset)
        require_amount(collateral_amount)
        require_amount(debt_amount)

        async def body() -> int:
            await self._membership.enter_unconditionally(
                ctx.wallet, [collateral.market_token, debt.market_token]
            )
            await self._adapter.supply(ctx.wallet, collateral, collateral_amount)
            await self._adapter.borrow(ctx.wallet, debt, debt_amount)
            return LOAN_ID

        event = LifecycleEvent(
            EventName.LOAN_OPENED,
            ctx.wallet,
            {
                "loan_id": LOAN_ID,
                "collateral_asset": collateral_asset,
                "collateral_amount": collateral_amount,
                "debt_asset": debt_asset,
                "debt_amount": debt_amount,
            },
        )
        return await self._run(ctx, event, body)

    async def close_loan(self, ctx: CallerContext, loan_id: int = LOAN_ID) -> None:
        """Repay every outstanding debt of the wallet.

        Collateral is never redeemed here; a market is exited only when the
        repayment leaves it with no collateral either.
        """
        await self._authorize(ctx)

        async def body() -> None:
            for token in await self._gateway.read("get_assets_in", ctx.wallet):
                debt = await self._gateway.read("borrow_balance_current", token, ctx.wallet)
                if debt == 0:
                    continue
                market = await self._adapter.describe(token)
                await self._adapter.repay(ctx.wallet, market, debt)
                collateral = await self._gateway.read("balance_of", token, ctx.wallet)
                if collateral == 0:
                    await self._membership.exit(ctx.wallet, token)

        event = LifecycleEvent(EventName.LOAN_CLOSED, ctx.wallet, {"loan_id": loan_id})
        await self._run(ctx, event, body)

    async def add_collateral(self, ctx: CallerContext, asset: str, amount: int) -> None:
        await self._authorize(ctx)
        market = self._resolve(asset)
        require_amount(amount)

        async def body() -> None:
            await self._membership.ensure_entered(ctx.wallet, market.market_token)
            await self._adapter.supply(ctx.wallet, market, amount)

        event = LifecycleEvent(
            EventName.COLLATERAL_ADDED, ctx.wallet, {"asset": asset, "amount": amount}
        )
        await self._run(ctx, event, body)

    async def remove_collateral(self, ctx: CallerContext, asset: str, amount: int) -> None:
        await self._authorize(ctx)
        market = self._resolve(asset)
        require_amount(amount)

        async def body() -> None:
            await self._adapter.withdraw_by_underlying(ctx.wallet, market, amount)
            await self._membership.exit_if_unused(ctx.wallet, market.market_token)

        event = LifecycleEvent(
            EventName.COLLATERAL_REMOVED, ctx.wallet, {"asset": asset, "amount": amount}
        )
        await self._run(ctx, event, body)

    async def add_debt(self, ctx: CallerContext, asset: str, amount: int) -> None:
        await self._authorize(ctx)
        market = self._resolve(asset)
        require_amount(amount)

        async def body() -> None:
            await self._membership.ensure_entered(ctx.wallet, market.market_token)
            await self._adapter.borrow(ctx.wallet, market, amount)

        event = LifecycleEvent(
            EventName.DEBT_ADDED, ctx.wallet, {"asset": asset, "amount": amount}
        )
        await self._run(ctx, event, body)

    async def remove_debt(self, ctx: CallerContext, asset: str, amount: int) -> None:
        await self._authorize(ctx)
        market = self._resolve(asset)
        require_amount(amount)

        async def body() -> None:
            await self._adapter.repay(ctx.wallet, market, amount)
            await self._membership.exit_if_unused(ctx.wallet, market.market_token)

        event = LifecycleEvent(
            EventName.DEBT_REMOVED, ctx.wallet, {"asset": asset, "amount": amount}
        )
        await self._run(ctx, event, body)

    # ------------------------------------------------------------------
    # Investment
    # ------------------------------------------------------------------

    async def add_investment(
        self, ctx: CallerContext, asset: str, amount: int, period: int = 0
    ) -> int:
        """Supply ``amount`` without entering the market. Returns the invested amount."""
        await self._authorize(ctx)
        market = self._resolve(asset)
        require_amount(amount)

        async def body() -> int:
            await self._adapter.supply(ctx.wallet, market, amount)
            return amount

        event = LifecycleEvent(
            EventName.INVESTMENT_ADDED,
            ctx.wallet,
            {"asset": asset, "amount": amount, "period": period},
        )
        return await self._run(ctx, event, body)

    async def remove_investment(
        self, ctx: CallerContext, asset: str, fraction_bps: int
    ) -> None:
        """Redeem ``fraction_bps`` / 10000 of the wallet's shares, rounded down.

        A fraction that rounds to zero shares fails with ``ZeroAmount``.
        """
        await self._authorize(ctx)
        if fraction_bps < 0 or fraction_bps > MAX_FRACTION_BPS:
            raise InvalidFraction(fraction_bps)
        market = self._resolve(asset)

        async def body() -> None:
            shares = await self._gateway.read("balance_of", market.market_token, ctx.wallet)
            await self._adapter.withdraw_by_shares(
                ctx.wallet, market, shares * fraction_bps // MAX_FRACTION_BPS
            )

        event = LifecycleEvent(
            EventName.INVESTMENT_REMOVED,
            ctx.wallet,
            {"asset": asset, "fraction_bps": fraction_bps},
        )
        await self._run(ctx, event, body)
