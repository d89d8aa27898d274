"""Market adapter — turns supply/withdraw/borrow/repay intents into protocol calls."""
from __future__ import annotations

import logging

from ..errors import UnsupportedMarket, ZeroAmount
from ..interfaces.registry import MarketRegistry
from ..models import ContractCall, MarketInfo, is_null_address
from .gateway import ProtocolGateway

logger = logging.getLogger(__name__)

DEFAULT_NATIVE_MARKET_SYMBOL = "cETH"


def require_market(market: MarketInfo | None, asset: str | None = None) -> MarketInfo:
    if market is None or is_null_address(market.market_token):
        raise UnsupportedMarket(asset)
    return market


def require_amount(amount: int) -> int:
    if amount <= 0:
        raise ZeroAmount()
    return amount


class MarketAdapter:
    """Issue the call sequences the money market expects for each primitive.

    Native-asset markets take value attached to the call; token markets
    need an allowance granted on the underlying first.
    """

    def __init__(
        self,
        gateway: ProtocolGateway,
        registry: MarketRegistry,
        native_market_symbol: str = DEFAULT_NATIVE_MARKET_SYMBOL,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._native_market_symbol = native_market_symbol

    async def describe(self, market_token: str) -> MarketInfo:
        """Return registry info for a market token, reading it from the protocol if unknown."""
        known = self._registry.market_by_token(market_token)
        if known is not None:
            return known

        symbol = await self._gateway.read("symbol", market_token)
        if symbol == self._native_market_symbol:
            return MarketInfo(market_token=market_token, underlying="", symbol=symbol, is_native=True)
        underlying = await self._gateway.read("underlying", market_token)
        return MarketInfo(market_token=market_token, underlying=underlying, symbol=symbol)

    async def _approve(self, wallet: str, market: MarketInfo, amount: int) -> None:
        await self._gateway.invoke(
            wallet,
            ContractCall(market.underlying, "approve", (market.market_token, amount)),
        )

    async def supply(self, wallet: str, market: MarketInfo | None, amount: int) -> None:
        market = require_market(market)
        require_amount(amount)

        if market.is_native:
            await self._gateway.invoke(
                wallet, ContractCall(market.market_token, "mint", value=amount)
            )
        else:
            await self._approve(wallet, market, amount)
            await self._gateway.invoke(
                wallet, ContractCall(market.market_token, "mint", (amount,))
            )
        logger.debug("Supplied %d to %s for %s", amount, market.market_token, wallet)

    async def withdraw_by_shares(
        self, wallet: str, market: MarketInfo | None, shares: int
    ) -> None:
        market = require_market(market)
        require_amount(shares)
        await self._gateway.invoke(
            wallet, ContractCall(market.market_token, "redeem", (shares,))
        )

    async def withdraw_by_underlying(
        self, wallet: str, market: MarketInfo | None, amount: int
    ) -> None:
        market = require_market(market)
        require_amount(amount)
        await self._gateway.invoke(
            wallet, ContractCall(market.market_token, "redeemUnderlying", (amount,))
        )

    async def borrow(self, wallet: str, market: MarketInfo | None, amount: int) -> None:
        market = require_market(market)
        require_amount(amount)
        await self._gateway.invoke(
            wallet, ContractCall(market.market_token, "borrow", (amount,))
        )

    async def repay(self, wallet: str, market: MarketInfo | None, amount: int) -> None:
        market = require_market(market)
        require_amount(amount)

        if market.is_native:
            await self._gateway.invoke(
                wallet, ContractCall(market.market_token, "repayBorrow", value=amount)
            )
        else:
            await self._approve(wallet, market, amount)
            await self._gateway.invoke(
                wallet, ContractCall(market.market_token, "repayBorrow", (amount,))
            )
        logger.debug("Repaid %d to %s for %s", amount, market.market_token, wallet)
