"""Market registry protocol."""
from typing import Protocol

from ..models import MarketInfo


class MarketRegistry(Protocol):
    def market_for(self, underlying: str) -> MarketInfo | None: ...

    def market_by_token(self, market_token: str) -> MarketInfo | None: ...

    def markets(self) -> tuple[MarketInfo, ...]: ...
