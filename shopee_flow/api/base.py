"""
base.py - 외부 협력자 인터페이스

- RecordStore: 마감 레코드 저장소 (insert / list / delete / 변경 알림)
- AuthProvider: 세션 발급 및 사용자 식별
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..domain.models import OrderPayload, OrderRecord, Session
from ..notifications.events import Subscription

# 변경 알림 콜백: 페이로드는 보장되지 않으므로 소비자가 다시 조회해야 한다
ChangeCallback = Callable[[Optional[Dict[str, Any]]], None]
SessionCallback = Callable[[Optional[Session]], None]


class RecordStore(ABC):
    """마감 레코드 저장소"""

    table: str = "closings"

    @abstractmethod
    async def list_records(self) -> List[OrderRecord]:
        """전체 목록 (created_at 내림차순)

        Raises:
            FetchError: 조회 실패
        """

    @abstractmethod
    async def insert(self, payload: OrderPayload) -> OrderRecord:
        """레코드 추가. id와 created_at은 저장소가 부여

        Raises:
            StoreError: 저장 실패
        """

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> None:
        """id로 삭제

        Raises:
            StoreError: 삭제 실패 (존재하지 않는 id 포함)
        """

    @abstractmethod
    async def subscribe(self, callback: ChangeCallback) -> Subscription:
        """insert/update/delete 변경 알림 구독"""

    async def close(self) -> None:
        """리소스 정리"""


class AuthProvider(ABC):
    """인증 제공자"""

    @abstractmethod
    async def get_current_session(self) -> Optional[Session]:
        """현재 세션 (없으면 None)"""

    @abstractmethod
    async def sign_in_anonymously(self) -> Session:
        """익명 로그인

        Raises:
            AuthError: 세션 발급 실패
        """

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Subscription:
        """세션 변경 구독 (로그아웃 시 None 전달)"""
