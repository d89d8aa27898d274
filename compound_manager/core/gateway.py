"""Single path for reads and invocations against the money market."""
from __future__ import annotations

import logging
from typing import Any

from ..errors import ExternalCallFailed, LendingError
from ..interfaces.invoker import CallInvoker
from ..interfaces.money_market import MoneyMarket
from ..models import ContractCall

logger = logging.getLogger(__name__)


class ProtocolGateway:
    """Wraps the call primitive and the money-market views.

    Every failure of a collaborator surfaces as ``ExternalCallFailed``;
    errors from the taxonomy pass through untouched.
    """

    def __init__(self, invoker: CallInvoker, market: MoneyMarket) -> None:
        self._invoker = invoker
        self._market = market

    async def invoke(self, wallet: str, call: ContractCall) -> Any:
        logger.debug(
            "invoke %s.%s%s value=%d for %s",
            call.target, call.method, call.args, call.value, wallet,
        )
        try:
            return await self._invoker.invoke(wallet, call)
        except LendingError:
            raise
        except Exception as e:
            raise ExternalCallFailed(call.target, call.method, str(e)) from e

    async def read(self, method: str, *args: Any) -> Any:
        """Call a read-only view on the money market by name."""
        try:
            view = getattr(self._market, method)
            return await view(*args)
        except LendingError:
            raise
        except Exception as e:
            target = str(args[0]) if args else "money market"
            raise ExternalCallFailed(target, method, str(e)) from e
