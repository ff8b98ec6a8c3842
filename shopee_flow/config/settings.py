"""
settings.py - 환경변수 기반 설정 관리

.env 파일이 있으면 먼저 읽어들인다 (python-dotenv).
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

load_dotenv()

# 작업 디렉토리 기준 경로
ROOT_DIR = Path.cwd()
OUTPUT_DIR = ROOT_DIR / "output"
LOGS_DIR = Path(os.getenv("SHOPEE_FLOW_LOG_DIR", str(ROOT_DIR / "logs")))


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppSettings:
    """애플리케이션 설정"""

    # --- Supabase ---
    supabase_url: str = ""
    supabase_key: str = ""
    table_name: str = "closings"
    realtime_channel: str = "db-changes"

    # --- 실행 모드 ---
    use_mock: bool = False          # 메모리 저장소 사용 (데모/테스트)

    # --- 기타 ---
    debug_mode: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppSettings":
        """환경변수에서 설정 로드"""
        return cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY", ""),
            table_name=os.getenv("SHOPEE_FLOW_TABLE", "closings"),
            use_mock=_env_flag("SHOPEE_FLOW_MOCK"),
            debug_mode=_env_flag("DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def is_configured(self) -> bool:
        """Supabase 접속 정보가 모두 있는지"""
        return bool(self.supabase_url and self.supabase_key)

    def validate(self) -> List[str]:
        """설정 유효성 검사"""
        errors = []

        if not self.supabase_url:
            errors.append("SUPABASE_URL이 설정되지 않았습니다.")
        elif not self.supabase_url.startswith(("http://", "https://")):
            errors.append("SUPABASE_URL은 http(s):// 로 시작해야 합니다.")

        if not self.supabase_key:
            errors.append("SUPABASE_KEY(또는 SUPABASE_ANON_KEY)가 설정되지 않았습니다.")

        if not self.table_name:
            errors.append("테이블명이 비어 있습니다.")

        return errors


# 전역 설정 인스턴스
settings = AppSettings.from_env()


def get_settings() -> AppSettings:
    """설정 인스턴스 반환"""
    return settings


def reload_settings() -> AppSettings:
    """설정 다시 로드"""
    global settings
    settings = AppSettings.from_env()
    return settings
