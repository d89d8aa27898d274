"""Unit tests for the protocol gateway's error wrapping."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from compound_manager.core import ProtocolGateway
from compound_manager.errors import ExternalCallFailed, ZeroAmount
from compound_manager.models import ContractCall


class TestRead:
    @pytest.mark.asyncio
    async def test_returns_view_result(self, gateway, mock_market, addrs) -> None:
        mock_market.balance_of.return_value = 42
        assert await gateway.read("balance_of", addrs.cdai, addrs.wallet) == 42

    @pytest.mark.asyncio
    async def test_failing_view_wrapped(self, gateway, mock_market, addrs) -> None:
        mock_market.balance_of.side_effect = RuntimeError("node down")
        with pytest.raises(ExternalCallFailed) as exc_info:
            await gateway.read("balance_of", addrs.cdai, addrs.wallet)
        assert exc_info.value.target == addrs.cdai
        assert exc_info.value.method == "balance_of"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_missing_view_wrapped(self, mock_invoker, addrs) -> None:
        gateway = ProtocolGateway(mock_invoker, object())
        with pytest.raises(ExternalCallFailed) as exc_info:
            await gateway.read("balance_of", addrs.cdai, addrs.wallet)
        assert isinstance(exc_info.value.__cause__, AttributeError)

    @pytest.mark.asyncio
    async def test_read_without_args(self, mock_invoker) -> None:
        market = AsyncMock()
        market.markets.side_effect = RuntimeError("boom")
        gateway = ProtocolGateway(mock_invoker, market)
        with pytest.raises(ExternalCallFailed, match="money market"):
            await gateway.read("markets")


class TestInvoke:
    @pytest.mark.asyncio
    async def test_failing_call_wrapped(self, gateway, mock_invoker, addrs) -> None:
        mock_invoker.invoke.side_effect = RuntimeError("reverted")
        with pytest.raises(ExternalCallFailed, match="reverted"):
            await gateway.invoke(addrs.wallet, ContractCall(addrs.cdai, "mint", (1,)))

    @pytest.mark.asyncio
    async def test_lending_errors_pass_through(self, gateway, mock_invoker, addrs) -> None:
        mock_invoker.invoke.side_effect = ZeroAmount()
        with pytest.raises(ZeroAmount):
            await gateway.invoke(addrs.wallet, ContractCall(addrs.cdai, "mint", (1,)))
