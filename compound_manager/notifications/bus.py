"""Fan-out of committed lifecycle events to notification sinks."""
from __future__ import annotations

import logging
from typing import Iterable

from ..interfaces.notifier import EventSink
from ..models import LifecycleEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Fan out lifecycle events; a failing sink never fails the operation."""

    def __init__(self, sinks: Iterable[EventSink] = ()) -> None:
        self._sinks: list[EventSink] = list(sinks)

    def subscribe(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    async def publish(self, event: LifecycleEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(event)
            except Exception as e:
                logger.error("Event sink %s failed on %s: %s", type(sink).__name__, event.name.value, e)


class LoggingEventSink:
    """Write each event as one INFO log line."""

    def __init__(self, logger_name: str = "compound_manager.events") -> None:
        self._logger = logging.getLogger(logger_name)

    async def publish(self, event: LifecycleEvent) -> None:
        params = " ".join(f"{k}={v}" for k, v in event.params.items())
        self._logger.info("%s wallet=%s %s", event.name.value, event.wallet, params)
