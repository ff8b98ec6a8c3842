"""코어 모듈"""
from .exceptions import (
    ShopeeFlowError,
    ValidationError,
    ConfigurationError,
    AuthError,
    StoreError,
    FetchError,
    ErrorCodes,
)
from .error_handler import ErrorHandler, ErrorRecord, RecoveryAction
from .config import AppConfig, DEFAULT_CONFIG

__all__ = [
    # 예외
    "ShopeeFlowError",
    "ValidationError",
    "ConfigurationError",
    "AuthError",
    "StoreError",
    "FetchError",
    "ErrorCodes",
    "ErrorHandler",
    "ErrorRecord",
    "RecoveryAction",
    # 설정
    "AppConfig",
    "DEFAULT_CONFIG",
]
