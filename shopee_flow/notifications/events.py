"""
이벤트 시스템

대시보드 이벤트 발행 및 구독.
구독은 해제 핸들(Subscription)을 돌려준다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Callable, Optional
from enum import Enum

logger = logging.getLogger(__name__)


class EventType(Enum):
    """이벤트 유형"""
    # 세션
    SESSION_STARTED = "session.started"
    SESSION_ENDED = "session.ended"

    # 목록 동기화
    RECORDS_REFRESHED = "records.refreshed"
    REFRESH_FAILED = "records.refresh_failed"

    # 마감 등록
    CLOSING_SUBMITTED = "closing.submitted"
    SUBMISSION_REJECTED = "closing.rejected"
    SUBMISSION_FAILED = "closing.failed"

    # 삭제
    CLOSING_DELETED = "closing.deleted"
    DELETE_FAILED = "closing.delete_failed"


@dataclass
class Event:
    """이벤트 데이터"""
    event_type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    source: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "event_type": self.event_type.value,
            "data": self.data,
            "timestamp": self.timestamp,
            "source": self.source,
        }


EventHandler = Callable[[Event], None]


class Subscription:
    """구독 해제 핸들 (여러 번 호출해도 안전)"""

    def __init__(self, cancel: Callable[[], None], name: str = ""):
        self._cancel = cancel
        self.name = name
        self.active = True

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self._cancel()

    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"<Subscription {self.name or '?'} {state}>"


class EventEmitter:
    """이벤트 발행/구독 시스템 (단일 이벤트 루프 전용)"""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def on(self, event_type: EventType, handler: EventHandler) -> Subscription:
        """특정 이벤트 구독"""
        self._handlers.setdefault(event_type, []).append(handler)
        return Subscription(lambda: self.off(event_type, handler), name=event_type.value)

    def on_all(self, handler: EventHandler) -> Subscription:
        """모든 이벤트 구독"""
        self._global_handlers.append(handler)
        return Subscription(lambda: self._remove(self._global_handlers, handler), name="*")

    def off(self, event_type: EventType, handler: EventHandler):
        """이벤트 구독 해제"""
        self._remove(self._handlers.get(event_type, []), handler)

    @staticmethod
    def _remove(handlers: List[EventHandler], handler: EventHandler):
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: Optional[EventType] = None) -> int:
        if event_type is None:
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
        return len(self._handlers.get(event_type, []))

    def emit(
        self,
        event_type: EventType,
        data: Dict[str, Any] = None,
        source: str = ""
    ) -> Event:
        """이벤트 발행"""
        event = Event(event_type=event_type, data=data or {}, source=source)

        # 핸들러 목록 복사: 핸들러 안에서 구독 해제 가능
        handlers = list(self._handlers.get(event_type, [])) + list(self._global_handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # 핸들러 에러가 발행자를 중단시키지 않도록 로그만 남김
                logger.exception("Event handler failed for %s", event_type.value)

        return event
