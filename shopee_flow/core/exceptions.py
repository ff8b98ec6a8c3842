"""
커스텀 예외 클래스

ShopeeFlow에서 사용하는 모든 커스텀 예외를 정의
"""

from typing import Optional, Dict, Any


class ShopeeFlowError(Exception):
    """기본 예외 클래스"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        """
        Args:
            message: 에러 메시지
            error_code: 에러 코드
            details: 추가 상세 정보
            cause: 원인 예외
        """
        self.message = message
        self.error_code = error_code or self._default_code()
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def _default_code(self) -> str:
        return "SF_UNKNOWN"

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(ShopeeFlowError):
    """입력값 검증 오류 (저장소 호출 전에 거부)"""

    def __init__(
        self,
        message: str,
        field: str = None,
        value: Any = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        details = kwargs.pop("details", {})
        details["field"] = field
        details["value"] = str(value)[:100]  # 값 길이 제한
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "SF_VALIDATION"


class ConfigurationError(ShopeeFlowError):
    """설정 오류 (백엔드 미설정/연결 불가)"""

    def __init__(
        self,
        message: str,
        config_key: str = None,
        **kwargs
    ):
        self.config_key = config_key
        details = kwargs.pop("details", {})
        details["config_key"] = config_key
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "SF_CONFIG"


class AuthError(ShopeeFlowError):
    """세션 획득 실패"""

    def _default_code(self) -> str:
        return "SF_AUTH"


class StoreError(ShopeeFlowError):
    """레코드 저장소 오류 (insert/delete 실패)"""

    def __init__(
        self,
        message: str,
        table: str = None,
        operation: str = None,
        **kwargs
    ):
        self.table = table
        self.operation = operation
        details = kwargs.pop("details", {})
        details["table"] = table
        details["operation"] = operation
        super().__init__(message, details=details, **kwargs)

    def _default_code(self) -> str:
        return "SF_STORE"


class FetchError(StoreError):
    """목록 새로고침 실패"""

    def __init__(self, message: str, table: str = None, **kwargs):
        kwargs.setdefault("operation", "list")
        super().__init__(message, table=table, **kwargs)

    def _default_code(self) -> str:
        return "SF_FETCH"


# 에러 코드 상수
class ErrorCodes:
    """에러 코드 상수"""

    # 일반
    UNKNOWN = "SF_UNKNOWN"
    VALIDATION = "SF_VALIDATION"
    CONFIG = "SF_CONFIG"
    AUTH = "SF_AUTH"

    # 저장소
    STORE = "SF_STORE"
    FETCH = "SF_FETCH"
    RECORD_NOT_FOUND = "SF_RECORD_NOT_FOUND"
