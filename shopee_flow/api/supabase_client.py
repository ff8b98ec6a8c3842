"""
supabase_client.py - Supabase 연동 (저장소 + 인증 + 실시간 변경 알림)

테이블 `closings` 는 RLS로 사용자별로 격리되어 있다고 가정한다.

사용법:
    # 환경변수 설정 필요
    # SUPABASE_URL=https://xxx.supabase.co
    # SUPABASE_KEY=eyJxxx...

    backend = await create_backend()
    records = await backend.store.list_records()
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Set

from supabase import AsyncClient, acreate_client

from .base import AuthProvider, ChangeCallback, RecordStore, SessionCallback
from .memory_store import InMemoryAuthProvider, InMemoryRecordStore
from ..config.settings import AppSettings, get_settings
from ..core.exceptions import AuthError, ConfigurationError, ErrorCodes, FetchError, StoreError
from ..domain.models import OrderPayload, OrderRecord, Session
from ..notifications.events import Subscription

logger = logging.getLogger(__name__)


class SupabaseRecordStore(RecordStore):
    """Supabase 테이블 기반 저장소"""

    def __init__(self, client: AsyncClient, table: str = "closings", channel_name: str = "db-changes"):
        self.client = client
        self.table = table
        self.channel_name = channel_name
        self._channel_ids = itertools.count(1)
        self._pending: Set[asyncio.Task] = set()

    async def list_records(self) -> List[OrderRecord]:
        try:
            response = await (
                self.client.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise FetchError(f"목록 조회 실패: {e}", table=self.table, cause=e) from e

        return [OrderRecord.from_row(row) for row in response.data or []]

    async def insert(self, payload: OrderPayload) -> OrderRecord:
        try:
            response = await self.client.table(self.table).insert(payload.to_row()).execute()
        except Exception as e:
            raise StoreError(f"저장 실패: {e}", table=self.table, operation="insert", cause=e) from e

        if not response.data:
            raise StoreError("저장 결과가 비어 있습니다.", table=self.table, operation="insert")
        return OrderRecord.from_row(response.data[0])

    async def delete_by_id(self, record_id: str) -> None:
        try:
            response = await self.client.table(self.table).delete().eq("id", record_id).execute()
        except Exception as e:
            raise StoreError(f"삭제 실패: {e}", table=self.table, operation="delete", cause=e) from e

        # RLS로 가려진 행도 '없음'으로 보인다
        if not response.data:
            raise StoreError(
                f"삭제할 레코드가 없습니다: {record_id}",
                table=self.table,
                operation="delete",
                error_code=ErrorCodes.RECORD_NOT_FOUND,
            )

    async def subscribe(self, callback: ChangeCallback) -> Subscription:
        topic = f"{self.channel_name}-{next(self._channel_ids)}"
        channel = self.client.channel(topic)
        channel.on_postgres_changes("*", schema="public", table=self.table, callback=callback)

        try:
            await channel.subscribe()
        except Exception as e:
            raise StoreError(f"실시간 구독 실패: {e}", table=self.table, operation="subscribe", cause=e) from e

        loop = asyncio.get_running_loop()

        def cancel():
            task = loop.create_task(self.client.remove_channel(channel))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        logger.debug("Subscribed to %s (%s)", self.table, topic)
        return Subscription(cancel, name=topic)

    async def close(self) -> None:
        """진행 중인 채널 해제 대기"""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


class SupabaseAuthProvider(AuthProvider):
    """Supabase Auth 기반 인증"""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def get_current_session(self) -> Optional[Session]:
        try:
            session = await self.client.auth.get_session()
        except Exception as e:
            raise AuthError(f"세션 조회 실패: {e}", cause=e) from e
        return _to_session(session)

    async def sign_in_anonymously(self) -> Session:
        try:
            response = await self.client.auth.sign_in_anonymously()
        except Exception as e:
            raise AuthError(f"익명 로그인 실패: {e}", cause=e) from e

        if response.user is None:
            raise AuthError("익명 로그인 응답에 사용자가 없습니다.")

        return Session(
            user_id=response.user.id,
            access_token=response.session.access_token if response.session else None,
            is_anonymous=True,
        )

    def on_session_change(self, callback: SessionCallback) -> Subscription:
        def listener(event: str, session: Any):
            callback(_to_session(session))

        subscription = self.client.auth.on_auth_state_change(listener)
        return Subscription(subscription.unsubscribe, name="auth")


def _to_session(session: Any) -> Optional[Session]:
    """gotrue Session → 도메인 Session"""
    if session is None or getattr(session, "user", None) is None:
        return None
    return Session(
        user_id=session.user.id,
        access_token=getattr(session, "access_token", None),
        is_anonymous=bool(getattr(session.user, "is_anonymous", False)),
    )


# --- 팩토리 ---

@dataclass
class Backend:
    """인증 + 저장소 묶음"""
    auth: AuthProvider
    store: RecordStore
    is_mock: bool = False

    async def close(self):
        await self.store.close()


async def create_backend(settings: AppSettings = None, use_mock: Optional[bool] = None) -> Backend:
    """설정에 따라 Supabase 또는 메모리 백엔드 생성

    Raises:
        ConfigurationError: Supabase 접속 정보 누락 또는 클라이언트 생성 실패
    """
    settings = settings or get_settings()
    if use_mock is None:
        use_mock = settings.use_mock

    if use_mock:
        logger.info("Using in-memory backend")
        return Backend(
            auth=InMemoryAuthProvider(),
            store=InMemoryRecordStore(settings.table_name),
            is_mock=True,
        )

    problems = settings.validate()
    if problems:
        config_key = "SUPABASE_URL" if not settings.supabase_url else "SUPABASE_KEY"
        raise ConfigurationError(
            "Supabase가 설정되지 않았습니다. SUPABASE_URL과 SUPABASE_KEY를 설정해 주세요.",
            config_key=config_key,
            details={"problems": problems},
        )

    try:
        client = await acreate_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        raise ConfigurationError(f"Supabase 연결 실패: {e}", config_key="SUPABASE_URL", cause=e) from e

    return Backend(
        auth=SupabaseAuthProvider(client),
        store=SupabaseRecordStore(client, settings.table_name, settings.realtime_channel),
    )
