"""Risk and valuation reader — read-only queries on live protocol state."""
from __future__ import annotations

from ..errors import LiquidityQueryFailed
from ..interfaces.registry import MarketRegistry
from ..models import EXP_SCALE, InvestmentValue, LoanStatus, RiskLevel
from .gateway import ProtocolGateway
from .market_adapter import require_market


class RiskReader:
    def __init__(self, gateway: ProtocolGateway, registry: MarketRegistry) -> None:
        self._gateway = gateway
        self._registry = registry

    async def get_loan_status(self, wallet: str) -> LoanStatus:
        """Classify the wallet's loan from the comptroller's account liquidity.

        Liquidity and shortfall are mutually exclusive; liquidity wins if not.
        """
        error, liquidity, shortfall = await self._gateway.read(
            "get_account_liquidity", wallet
        )
        if error != 0:
            raise LiquidityQueryFailed(error)
        if liquidity > 0:
            return LoanStatus(RiskLevel.SAFE, liquidity)
        if shortfall > 0:
            return LoanStatus(RiskLevel.UNSAFE, shortfall)
        return LoanStatus(RiskLevel.NONE, 0)

    async def get_investment_value(self, wallet: str, asset: str) -> InvestmentValue:
        """Value of the wallet's shares in ``asset``'s market at the stored exchange rate.

        There is no lock-up period, so ``period_end`` is always 0.
        """
        market = require_market(self._registry.market_for(asset), asset)
        shares = await self._gateway.read("balance_of", market.market_token, wallet)
        rate = await self._gateway.read("exchange_rate_stored", market.market_token)
        return InvestmentValue(token_value=shares * rate // EXP_SCALE, period_end=0)
