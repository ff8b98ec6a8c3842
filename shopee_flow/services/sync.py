"""
sync.py - 마감 목록 동기화

기능:
1. 저장소 변경 알림 구독 (insert/update/delete)
2. 알림마다 전체 목록 재조회 후 통째로 교체 (부분 패치 없음)
3. 조회 실패 시 목록 유지 + 경고 로그 + REFRESH_FAILED 이벤트

사용법:
    state = RecordListState()
    sync = RecordSynchronizer(store, state)
    await sync.start(user_id)
    ...
    sync.stop()
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..api.base import RecordStore
from ..config.logging_config import get_context_logger
from ..core.error_handler import ErrorHandler
from ..core.exceptions import FetchError
from ..domain.logic import MetricsAggregator
from ..domain.models import MetricsSnapshot, OrderRecord
from ..notifications.events import EventEmitter, EventType, Subscription


class RecordListState:
    """현재 사용자의 마감 목록 (최신순, 교체만 가능)"""

    def __init__(self):
        self._records: Tuple[OrderRecord, ...] = ()
        self._aggregator = MetricsAggregator()
        self.version = 0

    @property
    def records(self) -> Tuple[OrderRecord, ...]:
        return self._records

    @property
    def metrics(self) -> MetricsSnapshot:
        # 목록 객체가 그대로면 캐시된 집계를 돌려준다
        return self._aggregator.snapshot(self._records)

    def replace(self, records: Sequence[OrderRecord]):
        self._records = tuple(records)
        self.version += 1

    def clear(self):
        self.replace(())

    def __len__(self) -> int:
        return len(self._records)


class RecordSynchronizer:
    """저장소 → 메모리 목록 동기화

    단일 이벤트 루프에서만 동작한다. 변경 알림 콜백은 동기 함수이므로
    재조회는 실행 중인 루프에 태스크로 예약한다.
    마지막으로 끝난 조회 결과가 이긴다 (이전 조회 취소 없음).
    """

    def __init__(
        self,
        store: RecordStore,
        state: Optional[RecordListState] = None,
        error_handler: Optional[ErrorHandler] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.store = store
        self.state = state or RecordListState()
        self.error_handler = error_handler or ErrorHandler()
        self.emitter = emitter or EventEmitter()

        self.user_id: Optional[str] = None
        self.last_error: Optional[FetchError] = None
        self.refresh_count = 0

        self._subscription: Optional[Subscription] = None
        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        # stop() 이후 도착한 조회 결과를 버리기 위한 세대 번호
        self._generation = 0
        self._log = get_context_logger(__name__, operation="sync")

    @property
    def is_running(self) -> bool:
        return self.user_id is not None

    @property
    def is_live(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self, user_id: str, live: bool = True) -> bool:
        """동기화 시작: 구독 후 전체 조회

        Args:
            user_id: 세션 사용자
            live: False면 변경 알림을 구독하지 않는다 (새로고침은 수동)

        Returns:
            새로 시작했으면 True, 같은 사용자로 이미 동작 중이면 False

        Raises:
            StoreError: 변경 알림 구독 실패
        """
        if self.user_id == user_id:
            self._log.debug("Already syncing for %s", user_id)
            return False

        if self.user_id is not None:
            self.stop()
            # 이전 사용자의 목록을 넘겨받지 않는다
            self.state.clear()

        self._loop = asyncio.get_running_loop()

        # 구독이 실패하면 (StoreError) 시작하지 않은 상태로 남는다
        if live:
            self._subscription = await self.store.subscribe(self._on_change)

        self.user_id = user_id
        self._log = get_context_logger(__name__, user_id=user_id, operation="sync")
        self._log.info("Sync started (live=%s)", live)
        await self.refresh()
        return True

    def _on_change(self, payload: Optional[Dict[str, Any]] = None):
        """저장소 변경 알림 (페이로드는 참고만 하고 전체 재조회)"""
        if self.user_id is None or self._loop is None:
            return

        event_type = (payload or {}).get("eventType", "?")
        self._log.debug("Change notification: %s", event_type)

        task = self._loop.create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refresh(self) -> bool:
        """전체 목록을 다시 읽어 교체

        Returns:
            교체했으면 True. 실패하거나 중지 후 도착한 결과면 False (목록 유지)
        """
        if self.user_id is None:
            return False

        generation = self._generation
        try:
            records = await self.store.list_records()
        except FetchError as e:
            if generation != self._generation:
                return False
            self.last_error = e
            self.error_handler.handle(e, {"user_id": self.user_id, "operation": "refresh"})
            self.emitter.emit(
                EventType.REFRESH_FAILED,
                {"error": e.to_dict(), "kept_records": len(self.state)},
                source="sync",
            )
            return False

        if generation != self._generation:
            self._log.debug("Discarding refresh result after stop")
            return False

        self.state.replace(records)
        self.last_error = None
        self.refresh_count += 1
        self.emitter.emit(
            EventType.RECORDS_REFRESHED,
            {"count": len(records), "version": self.state.version},
            source="sync",
        )
        return True

    def stop(self):
        """구독 해제 (목록은 호출자가 정리)"""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        if self.user_id is not None:
            self._log.info("Sync stopped")

        self.user_id = None
        self._generation += 1

    async def wait_idle(self):
        """예약된 재조회가 모두 끝날 때까지 대기"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_refreshes(self) -> List[asyncio.Task]:
        return list(self._tasks)
