"""Protocol interfaces for the external collaborators."""
from .authorization import AuthorizationGate
from .invoker import CallInvoker
from .money_market import MoneyMarket
from .notifier import EventSink
from .registry import MarketRegistry
from .transaction import TransactionHost

__all__ = [
    "AuthorizationGate",
    "CallInvoker",
    "EventSink",
    "MarketRegistry",
    "MoneyMarket",
    "TransactionHost",
]
