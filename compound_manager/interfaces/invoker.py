"""Wallet call primitive."""
from typing import Any, Protocol

from ..models import ContractCall


class CallInvoker(Protocol):
    """Performs an arbitrary call on behalf of a wallet.

    Raising from ``invoke`` means the call aborted.
    """

    async def invoke(self, wallet: str, call: ContractCall) -> Any: ...
