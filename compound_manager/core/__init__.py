"""Lending orchestration core."""
from .gateway import ProtocolGateway
from .market_adapter import MarketAdapter
from .membership import MembershipManager
from .orchestrator import PassthroughHost, PositionOrchestrator
from .risk_reader import RiskReader

__all__ = [
    "MarketAdapter",
    "MembershipManager",
    "PassthroughHost",
    "PositionOrchestrator",
    "ProtocolGateway",
    "RiskReader",
]
