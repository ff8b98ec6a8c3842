"""알림/이벤트 모듈"""
from .events import (
    EventType,
    Event,
    EventEmitter,
    EventHandler,
    Subscription,
)

__all__ = [
    "EventType",
    "Event",
    "EventEmitter",
    "EventHandler",
    "Subscription",
]
