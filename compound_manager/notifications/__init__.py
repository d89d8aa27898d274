"""Lifecycle event fan-out and sinks."""
from .bus import EventBus, LoggingEventSink
from .telegram import TelegramNotifier

__all__ = ["EventBus", "LoggingEventSink", "TelegramNotifier"]
