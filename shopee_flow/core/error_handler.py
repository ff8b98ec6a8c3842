"""
에러 핸들러

중앙 집중식 에러 기록 및 처리 방식 결정.
재시도는 하지 않는다: 모든 작업은 1회 시도이며 실패는 해당 작업에 한정된다.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime

from .exceptions import (
    ShopeeFlowError,
    ValidationError,
    ConfigurationError,
    AuthError,
    StoreError,
    FetchError,
)


class RecoveryAction(Enum):
    """처리 방식"""
    SKIP = "skip"                           # 입력 지점에서 인라인 표시
    NOTIFY = "notify"                       # 사용자에게 차단형 알림
    LOG_AND_CONTINUE = "log_and_continue"   # 로그만 남기고 계속
    ABORT = "abort"                         # 쓰기 작업 비활성화


@dataclass
class ErrorRecord:
    """에러 기록"""
    error_code: str
    message: str
    timestamp: str
    traceback: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    recovery_action: Optional[RecoveryAction] = None


class ErrorHandler:
    """에러 핸들러"""

    def __init__(self, logger: logging.Logger = None, max_history: int = 100):
        self.logger = logger or logging.getLogger(__name__)
        self.max_history = max_history
        self.error_history: List[ErrorRecord] = []

        # 에러별 처리 방식 (하위 클래스 먼저)
        self._recovery_strategies = [
            (ValidationError, RecoveryAction.SKIP),
            (FetchError, RecoveryAction.LOG_AND_CONTINUE),
            (StoreError, RecoveryAction.NOTIFY),
            (AuthError, RecoveryAction.NOTIFY),
            (ConfigurationError, RecoveryAction.ABORT),
        ]

    def handle(
        self,
        error: Exception,
        context: Dict[str, Any] = None
    ) -> RecoveryAction:
        """
        에러 처리

        Args:
            error: 발생한 예외
            context: 에러 컨텍스트

        Returns:
            처리 방식
        """
        context = context or {}

        record = self._create_record(error, context)
        record.recovery_action = self._determine_recovery(error)

        self.error_history.append(record)
        if len(self.error_history) > self.max_history:
            del self.error_history[:-self.max_history]

        self._log_error(error, record.recovery_action, context)
        return record.recovery_action

    def _create_record(
        self,
        error: Exception,
        context: Dict[str, Any]
    ) -> ErrorRecord:
        """에러 기록 생성"""
        error_code = "UNKNOWN"
        details = {}

        if isinstance(error, ShopeeFlowError):
            error_code = error.error_code
            details = error.details

        tb = None
        if error.__traceback__ is not None:
            tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))

        return ErrorRecord(
            error_code=error_code,
            message=str(error),
            timestamp=datetime.now().isoformat(),
            traceback=tb,
            details={**details, **context}
        )

    def _log_error(
        self,
        error: Exception,
        action: RecoveryAction,
        context: Dict[str, Any]
    ):
        """에러 로깅"""
        if isinstance(error, ValidationError):
            # 사용자 입력 오류는 경고 수준
            self.logger.warning(str(error), extra={"context": {**error.details, **context}})
        elif isinstance(error, ShopeeFlowError):
            level = logging.WARNING if action == RecoveryAction.LOG_AND_CONTINUE else logging.ERROR
            self.logger.log(
                level,
                f"[{error.error_code}] {error.message}",
                extra={"context": {**error.details, **context}},
                exc_info=error.cause is not None
            )
        else:
            self.logger.error(
                f"Unhandled error: {str(error)}",
                extra={"context": context},
                exc_info=True
            )

    def _determine_recovery(self, error: Exception) -> RecoveryAction:
        """처리 방식 결정"""
        for error_type, action in self._recovery_strategies:
            if isinstance(error, error_type):
                return action

        if isinstance(error, ShopeeFlowError):
            return RecoveryAction.LOG_AND_CONTINUE
        return RecoveryAction.ABORT

    def get_error_summary(self) -> Dict[str, Any]:
        """에러 요약 반환"""
        if not self.error_history:
            return {"total_errors": 0, "by_code": {}}

        by_code = {}
        for record in self.error_history:
            code = record.error_code
            by_code[code] = by_code.get(code, 0) + 1

        return {
            "total_errors": len(self.error_history),
            "by_code": by_code,
            "recent_errors": [
                {"code": r.error_code, "message": r.message, "time": r.timestamp}
                for r in self.error_history[-5:]
            ]
        }

    def clear_history(self):
        """에러 히스토리 초기화"""
        self.error_history.clear()
