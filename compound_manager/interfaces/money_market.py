"""Money market protocol — read side of a Compound-style lending protocol."""
from typing import Protocol


class MoneyMarket(Protocol):
    """Read-only views on the comptroller and its market tokens.

    ``*_current`` reads accrue interest first; ``*_stored`` reads return the
    last computed value.
    """

    async def check_membership(self, wallet: str, market_token: str) -> bool: ...

    async def get_assets_in(self, wallet: str) -> list[str]: ...

    async def balance_of(self, market_token: str, wallet: str) -> int: ...

    async def borrow_balance_current(self, market_token: str, wallet: str) -> int: ...

    async def borrow_balance_stored(self, market_token: str, wallet: str) -> int: ...

    async def exchange_rate_stored(self, market_token: str) -> int: ...

    async def get_account_liquidity(self, wallet: str) -> tuple[int, int, int]: ...

    async def symbol(self, market_token: str) -> str: ...

    async def underlying(self, market_token: str) -> str: ...
