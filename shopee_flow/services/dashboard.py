"""
dashboard.py - 대시보드 컨텍스트

전역 상태 대신 인증/저장소/목록/이벤트를 하나의 객체로 묶는다.

사용법:
    ctx = await open_dashboard(use_mock=True)
    result = await ctx.submit_closing({
        "order_id": "A", "product_name": "Capa",
        "sale_price": "100", "product_cost": "40", "commission_rate": "18",
    })
    print(ctx.metrics.total_profit)
    await ctx.close()
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Set, Tuple

from ..api.base import AuthProvider, RecordStore
from ..api.supabase_client import create_backend
from ..config.settings import AppSettings
from ..core.config import AppConfig, DEFAULT_CONFIG
from ..core.error_handler import ErrorHandler
from ..core.exceptions import (
    AuthError,
    ConfigurationError,
    ShopeeFlowError,
    StoreError,
    ValidationError,
)
from ..domain.logic import assess_health, recent_sales
from ..domain.models import HealthReport, MetricsSnapshot, OrderRecord, SalesPoint, Session
from ..notifications.events import EventEmitter, EventType, Subscription
from ..utils.validators import build_order_payload
from .sync import RecordListState, RecordSynchronizer

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """등록/삭제 결과"""
    ok: bool
    record: Optional[OrderRecord] = None
    error: Optional[ShopeeFlowError] = None
    operation: str = "submit"

    SUCCESS_MESSAGES = {
        "submit": "저장되었습니다.",
        "delete": "삭제되었습니다.",
    }

    @property
    def message(self) -> str:
        if self.ok:
            return self.SUCCESS_MESSAGES.get(self.operation, "완료되었습니다.")
        return self.error.message if self.error else "알 수 없는 오류"

    @property
    def field(self) -> Optional[str]:
        """검증 실패 필드"""
        return getattr(self.error, "field", None)


class DashboardContext:
    """대시보드 상태 + 동작

    - 세션이 생기면 동기화 시작, 세션이 사라지면 중지하고 목록 비움
    - 등록/삭제는 저장소에만 반영하고 화면은 변경 알림(또는 명시적 새로고침)으로 갱신
    """

    def __init__(
        self,
        auth: Optional[AuthProvider],
        store: Optional[RecordStore],
        config: Optional[AppConfig] = None,
        emitter: Optional[EventEmitter] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.auth = auth
        self.store = store
        self.config = config or DEFAULT_CONFIG
        self.emitter = emitter or EventEmitter()
        self.error_handler = error_handler or ErrorHandler()

        self.state = RecordListState()
        self.sync: Optional[RecordSynchronizer] = None
        if store is not None:
            self.sync = RecordSynchronizer(store, self.state, self.error_handler, self.emitter)

        self.session: Optional[Session] = None
        self.config_error: Optional[ConfigurationError] = None
        self.live = True

        self._auth_subscription: Optional[Subscription] = None
        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ========== 수명 주기 ==========

    @classmethod
    def unconfigured(cls, error: ConfigurationError, **kwargs) -> "DashboardContext":
        """백엔드 없이 생성 (배너 표시 + 쓰기 비활성)"""
        ctx = cls(None, None, **kwargs)
        ctx.config_error = error
        return ctx

    async def initialize(self, live: bool = True) -> Optional[Session]:
        """세션 확보 후 동기화 시작

        Args:
            live: 실시간 변경 알림 구독 여부

        Returns:
            현재 세션. 미설정 또는 인증 실패면 None
        """
        self.live = live
        self._loop = asyncio.get_running_loop()

        if self.auth is None or self.store is None:
            if self.config_error is None:
                self.config_error = ConfigurationError("저장소가 설정되지 않았습니다.")
            self.error_handler.handle(self.config_error, {"operation": "initialize"})
            return None

        # 인증 변경 핸들러는 한 번만 등록
        if self._auth_subscription is None:
            self._auth_subscription = self.auth.on_session_change(self._on_session_change)

        try:
            session = await self.auth.get_current_session()
            if session is None:
                session = await self.auth.sign_in_anonymously()
        except AuthError as e:
            self.error_handler.handle(e, {"operation": "initialize"})
            return None

        await self._activate(session)
        return self.session

    def _on_session_change(self, session: Optional[Session]):
        """인증 상태 변경 (동기 콜백 → 태스크 예약)"""
        if self._loop is None:
            return

        coro = self._activate(session) if session is not None else self._deactivate()
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _activate(self, session: Session):
        if self.sync is None:
            return

        if self.session is not None and self.session.user_id != session.user_id:
            self.state.clear()
        self.session = session

        try:
            started = await self.sync.start(session.user_id, live=self.live)
        except StoreError as e:
            self.error_handler.handle(e, {"operation": "activate", "user_id": session.user_id})
            return

        if started:
            self.emitter.emit(
                EventType.SESSION_STARTED,
                {"user_id": session.user_id, "anonymous": session.is_anonymous},
                source="dashboard",
            )

    async def _deactivate(self):
        if self.session is None:
            return

        user_id = self.session.user_id
        self.session = None
        if self.sync is not None:
            self.sync.stop()
        self.state.clear()
        self.emitter.emit(EventType.SESSION_ENDED, {"user_id": user_id}, source="dashboard")

    async def wait_idle(self):
        """예약된 세션 처리 + 재조회 완료 대기"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self.sync is not None:
            await self.sync.wait_idle()

    async def close(self):
        """구독 해제 및 리소스 정리"""
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None

        await self.wait_idle()
        if self.sync is not None:
            self.sync.stop()
        if self.store is not None:
            await self.store.close()
        logger.debug("Dashboard closed")

    # ========== 조회 ==========

    @property
    def writes_enabled(self) -> bool:
        return self.config_error is None and self.session is not None

    @property
    def records(self) -> Tuple[OrderRecord, ...]:
        return self.state.records

    @property
    def metrics(self) -> MetricsSnapshot:
        return self.state.metrics

    @property
    def last_error(self):
        return self.sync.last_error if self.sync else None

    def health(self) -> HealthReport:
        return assess_health(self.metrics, self.config)

    def recent_sales(self, limit: Optional[int] = None) -> List[SalesPoint]:
        if limit is None:
            limit = self.config.recent_orders_limit
        return recent_sales(self.records, limit)

    async def refresh(self) -> bool:
        """수동 새로고침 (실시간 구독을 쓰지 않는 화면용)"""
        if self.sync is None or not self.sync.is_running:
            return False
        return await self.sync.refresh()

    # ========== 등록 / 삭제 ==========

    def _write_blocked(self) -> Optional[SubmissionResult]:
        if self.config_error is not None:
            return SubmissionResult(ok=False, error=self.config_error)
        if self.session is None:
            return SubmissionResult(ok=False, error=AuthError("로그인 세션이 없습니다."))
        return None

    async def submit_closing(self, data: Mapping[str, Any]) -> SubmissionResult:
        """새 마감 등록

        검증 실패 시 저장소를 호출하지 않는다.
        성공해도 목록에 직접 추가하지 않는다 (변경 알림으로 갱신).
        """
        blocked = self._write_blocked()
        if blocked is not None:
            return blocked

        try:
            payload = build_order_payload(data, self.session.user_id)
        except ValidationError as e:
            self.error_handler.handle(e, {"operation": "submit"})
            self.emitter.emit(EventType.SUBMISSION_REJECTED, e.to_dict(), source="dashboard")
            return SubmissionResult(ok=False, error=e)

        try:
            record = await self.store.insert(payload)
        except StoreError as e:
            self.error_handler.handle(e, {"operation": "submit", "user_id": self.session.user_id})
            self.emitter.emit(EventType.SUBMISSION_FAILED, e.to_dict(), source="dashboard")
            return SubmissionResult(ok=False, error=e)

        logger.info("Closing saved: %s (%s)", record.order_id, record.id)
        self.emitter.emit(EventType.CLOSING_SUBMITTED, record.to_dict(), source="dashboard")
        return SubmissionResult(ok=True, record=record)

    async def delete_closing(self, record_id: str) -> SubmissionResult:
        """id로 삭제 (목록에서 직접 빼지 않는다)"""
        blocked = self._write_blocked()
        if blocked is not None:
            return blocked

        try:
            await self.store.delete_by_id(record_id)
        except StoreError as e:
            self.error_handler.handle(e, {"operation": "delete", "record_id": record_id})
            self.emitter.emit(EventType.DELETE_FAILED, e.to_dict(), source="dashboard")
            return SubmissionResult(ok=False, error=e)

        logger.info("Closing deleted: %s", record_id)
        self.emitter.emit(EventType.CLOSING_DELETED, {"id": record_id}, source="dashboard")
        return SubmissionResult(ok=True, operation="delete")


async def open_dashboard(
    settings: Optional[AppSettings] = None,
    use_mock: Optional[bool] = None,
    config: Optional[AppConfig] = None,
    live: bool = True,
) -> DashboardContext:
    """백엔드 생성 + 컨텍스트 초기화

    설정이 없으면 예외 대신 config_error가 채워진 컨텍스트를 돌려준다.
    """
    try:
        backend = await create_backend(settings, use_mock=use_mock)
    except ConfigurationError as e:
        ctx = DashboardContext.unconfigured(e, config=config)
    else:
        ctx = DashboardContext(backend.auth, backend.store, config=config)

    await ctx.initialize(live=live)
    return ctx
