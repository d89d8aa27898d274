"""Event sink protocol — consumers of lifecycle notifications."""
from typing import Protocol

from ..models import LifecycleEvent


class EventSink(Protocol):
    """Abstract interface for receiving lifecycle events."""

    async def publish(self, event: LifecycleEvent) -> None: ...
