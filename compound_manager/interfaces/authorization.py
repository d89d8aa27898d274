"""Authorization gate protocol — ownership and lock status of a wallet."""
from typing import Protocol


class AuthorizationGate(Protocol):
    """Decides whether a caller may act on a wallet."""

    async def is_owner(self, wallet: str, caller: str) -> bool: ...

    async def is_locked(self, wallet: str) -> bool: ...
