"""Transaction host protocol — all-or-nothing execution boundary."""
from typing import AsyncContextManager, Protocol


class TransactionHost(Protocol):
    """Supplies the atomic boundary a whole operation runs in.

    Leaving the context with an exception discards every effect issued
    inside it.
    """

    def atomic(self, wallet: str) -> AsyncContextManager[None]: ...
