"""Unit tests for market membership bookkeeping."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from compound_manager.models import ContractCall


class TestEnsureEntered:
    @pytest.mark.asyncio
    async def test_enters_when_not_member(self, membership, mock_market, mock_invoker, addrs) -> None:
        mock_market.check_membership.return_value = False
        assert await membership.ensure_entered(addrs.wallet, addrs.cdai) is True
        mock_invoker.invoke.assert_awaited_once_with(
            addrs.wallet, ContractCall(addrs.comptroller, "enterMarkets", ((addrs.cdai,),))
        )

    @pytest.mark.asyncio
    async def test_noop_when_member(self, membership, mock_market, mock_invoker, addrs) -> None:
        mock_market.check_membership.return_value = True
        assert await membership.ensure_entered(addrs.wallet, addrs.cdai) is False
        mock_invoker.invoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_idempotent(self, membership, mock_market, mock_invoker, addrs) -> None:
        mock_market.check_membership.side_effect = [False, True]
        await membership.ensure_entered(addrs.wallet, addrs.cdai)
        await membership.ensure_entered(addrs.wallet, addrs.cdai)
        assert mock_invoker.invoke.await_count == 1


class TestEnterUnconditionally:
    @pytest.mark.asyncio
    async def test_single_call_without_membership_read(
        self, membership, mock_market, mock_invoker, addrs
    ) -> None:
        await membership.enter_unconditionally(addrs.wallet, [addrs.ceth, addrs.cdai])
        mock_market.check_membership.assert_not_awaited()
        mock_invoker.invoke.assert_awaited_once_with(
            addrs.wallet,
            ContractCall(addrs.comptroller, "enterMarkets", ((addrs.ceth, addrs.cdai),)),
        )

    @pytest.mark.asyncio
    async def test_duplicates_collapsed(self, membership, mock_invoker, addrs) -> None:
        await membership.enter_unconditionally(addrs.wallet, [addrs.cdai, addrs.cdai])
        call = mock_invoker.invoke.await_args.args[1]
        assert call.args == ((addrs.cdai,),)


class TestExitIfUnused:
    @pytest.mark.asyncio
    async def test_exits_when_both_zero(self, membership, mock_market, mock_invoker, addrs) -> None:
        assert await membership.exit_if_unused(addrs.wallet, addrs.cdai) is True
        mock_invoker.invoke.assert_awaited_once_with(
            addrs.wallet, ContractCall(addrs.comptroller, "exitMarket", (addrs.cdai,))
        )

    @pytest.mark.asyncio
    async def test_noop_with_collateral(self, membership, mock_market, mock_invoker, addrs) -> None:
        mock_market.balance_of.return_value = 1
        assert await membership.exit_if_unused(addrs.wallet, addrs.cdai) is False
        mock_invoker.invoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_noop_with_debt(self, membership, mock_market, mock_invoker, addrs) -> None:
        mock_market.borrow_balance_stored.return_value = 5
        assert await membership.exit_if_unused(addrs.wallet, addrs.cdai) is False
        mock_invoker.invoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_stored_debt_read(self, membership, mock_market: AsyncMock, addrs) -> None:
        await membership.exit_if_unused(addrs.wallet, addrs.cdai)
        mock_market.borrow_balance_stored.assert_awaited_once_with(addrs.cdai, addrs.wallet)
        mock_market.borrow_balance_current.assert_not_awaited()
