"""Membership manager: keeps market membership in step with open positions."""
from __future__ import annotations

import logging
from typing import Iterable

from ..models import ContractCall
from .gateway import ProtocolGateway

logger = logging.getLogger(__name__)


class MembershipManager:
    """Enter markets lazily on first use and exit them once unused."""

    def __init__(self, gateway: ProtocolGateway, comptroller: str) -> None:
        self._gateway = gateway
        self._comptroller = comptroller

    async def ensure_entered(self, wallet: str, market_token: str) -> bool:
        """Enter ``market_token`` unless already a member. Returns True if a call was issued."""
        if await self._gateway.read("check_membership", wallet, market_token):
            return False
        await self._enter(wallet, [market_token])
        return True

    async def enter_unconditionally(self, wallet: str, market_tokens: Iterable[str]) -> None:
        tokens = list(dict.fromkeys(market_tokens))
        await self._enter(wallet, tokens)

    async def exit_if_unused(self, wallet: str, market_token: str) -> bool:
        """Exit ``market_token`` when both collateral and debt are zero.

        Debt is read with the stored (non-accruing) balance.
        """
        collateral = await self._gateway.read("balance_of", market_token, wallet)
        if collateral != 0:
            return False
        debt = await self._gateway.read("borrow_balance_stored", market_token, wallet)
        if debt != 0:
            return False
        await self.exit(wallet, market_token)
        return True

    async def exit(self, wallet: str, market_token: str) -> None:
        await self._gateway.invoke(
            wallet, ContractCall(self._comptroller, "exitMarket", (market_token,))
        )
        logger.info("Wallet %s exited market %s", wallet, market_token)

    async def _enter(self, wallet: str, market_tokens: list[str]) -> None:
        await self._gateway.invoke(
            wallet,
            ContractCall(self._comptroller, "enterMarkets", (tuple(market_tokens),)),
        )
        logger.info("Wallet %s entered markets %s", wallet, ", ".join(market_tokens))
