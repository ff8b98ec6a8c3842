"""
memory_store.py - 메모리 기반 저장소/인증 (테스트 및 데모용)

Supabase와 같은 인터페이스를 제공하며 실패 주입이 가능하다.
"""

import itertools
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .base import AuthProvider, ChangeCallback, RecordStore, SessionCallback
from ..core.exceptions import AuthError, ErrorCodes, FetchError, ShopeeFlowError, StoreError
from ..domain.models import OrderPayload, OrderRecord, Session, parse_timestamp
from ..notifications.events import Subscription

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """메모리 저장소"""

    def __init__(self, table: str = "closings"):
        self.table = table
        self._rows: List[Dict[str, Any]] = []
        self._subscribers: List[ChangeCallback] = []
        self._failures: Dict[str, ShopeeFlowError] = {}
        self._seq = itertools.count(1)

        # 호출 횟수 (테스트 확인용)
        self.list_calls = 0
        self.insert_calls = 0
        self.delete_calls = 0

    # ========== 실패 주입 ==========

    def fail_next(self, operation: str, error: Optional[ShopeeFlowError] = None):
        """다음 operation(list/insert/delete/subscribe) 호출을 실패시킨다"""
        if error is None:
            if operation == "list":
                error = FetchError("목록 조회 실패 (주입)", table=self.table)
            else:
                error = StoreError(f"{operation} 실패 (주입)", table=self.table, operation=operation)
        self._failures[operation] = error

    def _raise_if_failing(self, operation: str):
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    # ========== RecordStore ==========

    async def list_records(self) -> List[OrderRecord]:
        self.list_calls += 1
        self._raise_if_failing("list")

        rows = sorted(self._rows, key=lambda r: (r["created_at"], r["_seq"]), reverse=True)
        return [OrderRecord.from_row(row) for row in rows]

    async def insert(self, payload: OrderPayload) -> OrderRecord:
        self.insert_calls += 1
        self._raise_if_failing("insert")

        row = self._new_row(payload.to_row())
        self._rows.append(row)
        self._notify({"eventType": "INSERT", "table": self.table, "new": dict(row)})
        return OrderRecord.from_row(row)

    async def delete_by_id(self, record_id: str) -> None:
        self.delete_calls += 1
        self._raise_if_failing("delete")

        for i, row in enumerate(self._rows):
            if row["id"] == record_id:
                del self._rows[i]
                self._notify({"eventType": "DELETE", "table": self.table, "old": {"id": record_id}})
                return

        raise StoreError(
            f"삭제할 레코드가 없습니다: {record_id}",
            table=self.table,
            operation="delete",
            error_code=ErrorCodes.RECORD_NOT_FOUND,
        )

    async def subscribe(self, callback: ChangeCallback) -> Subscription:
        self._raise_if_failing("subscribe")
        self._subscribers.append(callback)

        def cancel():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return Subscription(cancel, name=f"{self.table}-changes")

    # ========== 기타 ==========

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def seed(self, rows: Iterable[Mapping[str, Any]]) -> List[OrderRecord]:
        """샘플 데이터 추가 (알림 없음)"""
        added = []
        for data in rows:
            row = self._new_row(data)
            self._rows.append(row)
            added.append(OrderRecord.from_row(row))
        return added

    def _new_row(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        row = dict(data)
        row.setdefault("id", str(uuid.uuid4()))

        created_at = parse_timestamp(row.get("created_at")) or datetime.now(timezone.utc)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        row["created_at"] = created_at
        row["_seq"] = next(self._seq)
        return row

    def _notify(self, payload: Dict[str, Any]):
        for callback in list(self._subscribers):
            try:
                callback(payload)
            except Exception:
                logger.exception("Change subscriber failed")


class InMemoryAuthProvider(AuthProvider):
    """메모리 인증 제공자"""

    def __init__(self, session: Optional[Session] = None, fail_sign_in: bool = False):
        self._session = session
        self._callbacks: List[SessionCallback] = []
        self.fail_sign_in = fail_sign_in
        self.sign_in_calls = 0

    async def get_current_session(self) -> Optional[Session]:
        return self._session

    async def sign_in_anonymously(self) -> Session:
        self.sign_in_calls += 1
        if self.fail_sign_in:
            raise AuthError("익명 로그인 실패 (주입)")

        self.set_session(Session(user_id=str(uuid.uuid4()), is_anonymous=True))
        return self._session

    def on_session_change(self, callback: SessionCallback) -> Subscription:
        self._callbacks.append(callback)

        def cancel():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return Subscription(cancel, name="auth")

    @property
    def listener_count(self) -> int:
        return len(self._callbacks)

    def set_session(self, session: Optional[Session]):
        """세션 변경 후 구독자에게 알림"""
        self._session = session
        for callback in list(self._callbacks):
            callback(session)

    def sign_out(self):
        self.set_session(None)
