"""
logging_config.py - 로깅 설정

기능:
- Rich 콘솔 출력
- 구조화된 로깅 (JSON 형식 지원)
- 컨텍스트 로깅 (user_id, operation)
"""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from dataclasses import dataclass, asdict

from rich.logging import RichHandler

from .settings import LOGS_DIR


class JSONFormatter(logging.Formatter):
    """JSON 형식 로그 포맷터"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # 추가 컨텍스트
        if hasattr(record, "context"):
            log_data["context"] = record.context

        # 예외 정보
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


@dataclass
class LogContext:
    """로그 컨텍스트"""
    user_id: Optional[str] = None
    operation: Optional[str] = None
    record_id: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for key, value in asdict(self).items():
            if value is not None:
                result[key] = value
        return result


class ContextAdapter(logging.LoggerAdapter):
    """컨텍스트 포함 로거 어댑터"""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})

        if hasattr(self.extra, "to_dict"):
            context = self.extra.to_dict()
        elif isinstance(self.extra, dict):
            context = dict(self.extra)
        else:
            context = {}

        # 호출 시 넘긴 context가 우선
        context.update(extra.get("context", {}))
        extra["context"] = context
        return msg, kwargs


def setup_logging(
    name: str = "shopee_flow",
    level: str = "INFO",
    log_to_file: bool = False,
    log_to_console: bool = True,
    json_format: bool = False,
    log_dir: Path = None,
) -> logging.Logger:
    """
    로깅 설정

    Args:
        name: 로거 이름
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: 파일 로깅 여부
        log_to_console: 콘솔 로깅 여부
        json_format: JSON 형식 사용 여부 (파일/콘솔 공통)
        log_dir: 로그 디렉토리 (기본: LOGS_DIR)

    Returns:
        설정된 로거
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # 기존 핸들러 제거
    logger.handlers.clear()

    if log_to_console:
        if json_format:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(JSONFormatter())
        else:
            console_handler = RichHandler(rich_tracebacks=True, show_path=False)
            console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    if log_to_file:
        log_dir = Path(log_dir) if log_dir else LOGS_DIR
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """패키지 하위 로거 반환 (핸들러는 setup_logging에서 한 번만 설정)"""
    if not name:
        return logging.getLogger("shopee_flow")
    return logging.getLogger(name)


def get_context_logger(
    name: str = None,
    context: LogContext = None,
    **kwargs
) -> ContextAdapter:
    """컨텍스트 포함 로거 반환"""
    logger = get_logger(name)
    ctx = context if context else LogContext(**kwargs)
    return ContextAdapter(logger, ctx)
