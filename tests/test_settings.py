"""설정 + 로깅 테스트"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from shopee_flow.config.logging_config import (
    ContextAdapter,
    JSONFormatter,
    LogContext,
    get_context_logger,
    setup_logging,
)
from shopee_flow.config.settings import AppSettings, reload_settings


class TestAppSettings:
    """AppSettings 테스트"""

    def test_defaults(self):
        s = AppSettings()

        assert s.table_name == "closings"
        assert s.use_mock is False
        assert s.is_configured is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co")
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SHOPEE_FLOW_MOCK", "yes")
        monkeypatch.setenv("SHOPEE_FLOW_TABLE", "closings_test")

        s = AppSettings.from_env()

        assert s.supabase_key == "anon"
        assert s.use_mock is True
        assert s.table_name == "closings_test"
        assert s.is_configured

    def test_validate(self):
        problems = AppSettings(supabase_url="ftp://x", supabase_key="").validate()
        assert len(problems) == 2

    def test_validate_ok(self):
        s = AppSettings(supabase_url="https://x.supabase.co", supabase_key="k")
        assert s.validate() == []

    def test_reload(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert reload_settings().log_level == "DEBUG"


class TestLogging:
    """로깅 설정 테스트"""

    def test_setup_console(self):
        logger = setup_logging(name="shopee_flow.test_console", level="debug")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_setup_file_json(self, tmp_path):
        logger = setup_logging(
            name="shopee_flow.test_file",
            log_to_file=True,
            log_to_console=False,
            json_format=True,
            log_dir=tmp_path,
        )
        logger.info("hello", extra={"context": {"user_id": "u1"}})
        for handler in logger.handlers:
            handler.flush()

        files = list(tmp_path.glob("*.log"))
        assert len(files) == 1
        line = json.loads(files[0].read_text(encoding="utf-8").splitlines()[0])
        assert line["message"] == "hello"
        assert line["context"] == {"user_id": "u1"}

        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def test_json_formatter(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "msg %s", ("a",), None)
        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["message"] == "msg a"

    def test_log_context(self):
        ctx = LogContext(user_id="u1", operation="sync")
        assert ctx.to_dict() == {"user_id": "u1", "operation": "sync"}

    def test_context_adapter(self):
        adapter = get_context_logger("x", user_id="u1")
        assert isinstance(adapter, ContextAdapter)

        _, kwargs = adapter.process("m", {"extra": {"context": {"record_id": "r1"}}})

        assert kwargs["extra"]["context"] == {"user_id": "u1", "record_id": "r1"}
