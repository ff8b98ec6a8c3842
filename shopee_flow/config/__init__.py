"""설정 모듈"""
from .settings import (
    settings,
    get_settings,
    reload_settings,
    AppSettings,
    ROOT_DIR,
    OUTPUT_DIR,
    LOGS_DIR,
)
from .logging_config import (
    setup_logging,
    get_logger,
    get_context_logger,
    LogContext,
    ContextAdapter,
    JSONFormatter,
)

__all__ = [
    "settings",
    "get_settings",
    "reload_settings",
    "AppSettings",
    "ROOT_DIR",
    "OUTPUT_DIR",
    "LOGS_DIR",
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "LogContext",
    "ContextAdapter",
    "JSONFormatter",
]
