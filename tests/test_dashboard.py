"""대시보드 컨텍스트 테스트 (등록 / 삭제 / 세션 수명 주기)"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from shopee_flow.api.memory_store import InMemoryAuthProvider, InMemoryRecordStore
from shopee_flow.config.settings import AppSettings
from shopee_flow.core.exceptions import ConfigurationError, ErrorCodes
from shopee_flow.domain.models import MarginHealth, Session
from shopee_flow.notifications.events import EventType
from shopee_flow.services.dashboard import DashboardContext, SubmissionResult, open_dashboard

CLOSING_A = {
    "order_id": "A",
    "product_name": "Capa iPhone",
    "sale_price": "100",
    "product_cost": "40",
    "commission_rate": "18",
    "fixed_fee": "3",
}
CLOSING_B = {
    "order_id": "B",
    "product_name": "Película",
    "sale_price": "50",
    "product_cost": "20",
    "commission_rate": "18",
    "fixed_fee": "3",
}


class TestDashboardContext:
    """DashboardContext 테스트"""

    def setup_method(self):
        self.auth = InMemoryAuthProvider()
        self.store = InMemoryRecordStore()
        self.ctx = DashboardContext(self.auth, self.store)
        self.events = []
        self.ctx.emitter.on_all(self.events.append)

    def event_types(self):
        return [e.event_type for e in self.events]

    @pytest.mark.asyncio
    async def test_initialize_signs_in_anonymously(self):
        session = await self.ctx.initialize()
        await self.ctx.wait_idle()

        assert session is not None
        assert session.is_anonymous
        assert self.ctx.writes_enabled
        assert self.auth.listener_count == 1
        assert self.store.subscriber_count == 1
        assert self.event_types().count(EventType.SESSION_STARTED) == 1

    @pytest.mark.asyncio
    async def test_initialize_existing_session(self):
        auth = InMemoryAuthProvider(session=Session(user_id="u1"))
        ctx = DashboardContext(auth, self.store)

        session = await ctx.initialize()

        assert session.user_id == "u1"
        assert auth.sign_in_calls == 0

    @pytest.mark.asyncio
    async def test_submit_two_closings(self):
        """A + B 등록 → 150 / 60 / 33 / 57 / 38%"""
        await self.ctx.initialize()

        first = await self.ctx.submit_closing(CLOSING_A)
        second = await self.ctx.submit_closing(CLOSING_B)
        await self.ctx.wait_idle()

        assert first.ok and second.ok
        m = self.ctx.metrics
        assert m.total_gross == Decimal("150")
        assert m.total_cogs == Decimal("60")
        assert m.total_fees == Decimal("33")
        assert m.total_profit == Decimal("57")
        assert m.margin == Decimal("38")
        assert [r.order_id for r in self.ctx.records] == ["B", "A"]
        assert self.ctx.records[0].user_id == self.ctx.session.user_id

    @pytest.mark.asyncio
    async def test_submit_not_optimistic(self):
        """저장 직후 목록은 알림 처리 전까지 그대로"""
        await self.ctx.initialize()

        result = await self.ctx.submit_closing(CLOSING_A)

        assert result.ok
        assert self.ctx.records == ()
        await self.ctx.wait_idle()
        assert len(self.ctx.records) == 1

    @pytest.mark.asyncio
    async def test_missing_sale_price_rejected(self):
        """판매가 누락 → 저장소 호출 없이 거부"""
        await self.ctx.initialize()
        data = dict(CLOSING_A)
        del data["sale_price"]

        result = await self.ctx.submit_closing(data)
        await self.ctx.wait_idle()

        assert result.ok is False
        assert result.field == "sale_price"
        assert self.store.insert_calls == 0
        assert self.ctx.records == ()
        assert EventType.SUBMISSION_REJECTED in self.event_types()

    @pytest.mark.asyncio
    async def test_fixed_fee_omitted_stored_as_zero(self):
        await self.ctx.initialize()
        data = dict(CLOSING_A)
        del data["fixed_fee"]

        result = await self.ctx.submit_closing(data)

        assert result.record.fixed_fee == Decimal("0")
        assert result.record.shopee_fee == Decimal("18.00")

    @pytest.mark.asyncio
    async def test_store_failure_keeps_state(self):
        """저장 실패 → 로컬 상태 변화 없음"""
        await self.ctx.initialize()
        await self.ctx.submit_closing(CLOSING_A)
        await self.ctx.wait_idle()
        version = self.ctx.state.version

        self.store.fail_next("insert")
        result = await self.ctx.submit_closing(CLOSING_B)
        await self.ctx.wait_idle()

        assert result.ok is False
        assert result.error.error_code == ErrorCodes.STORE
        assert self.ctx.state.version == version
        assert len(self.ctx.records) == 1
        assert EventType.SUBMISSION_FAILED in self.event_types()

    @pytest.mark.asyncio
    async def test_delete(self):
        """삭제 → 목록에서 제외"""
        await self.ctx.initialize()
        a = (await self.ctx.submit_closing(CLOSING_A)).record
        await self.ctx.submit_closing(CLOSING_B)
        await self.ctx.wait_idle()

        result = await self.ctx.delete_closing(a.id)
        await self.ctx.wait_idle()

        assert result.ok
        assert result.message == "삭제되었습니다."
        assert [r.order_id for r in self.ctx.records] == ["B"]
        assert self.ctx.metrics.total_gross == Decimal("50")

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self):
        """없는 id 삭제 → 실패, 목록 그대로"""
        await self.ctx.initialize()
        await self.ctx.submit_closing(CLOSING_A)
        await self.ctx.wait_idle()
        before = self.ctx.records

        result = await self.ctx.delete_closing("missing")
        await self.ctx.wait_idle()

        assert result.ok is False
        assert result.error.error_code == ErrorCodes.RECORD_NOT_FOUND
        assert self.ctx.records is before
        assert EventType.DELETE_FAILED in self.event_types()

    @pytest.mark.asyncio
    async def test_sign_out_tears_down(self):
        """세션 종료 → 구독 해제 + 목록 비움"""
        await self.ctx.initialize()
        await self.ctx.submit_closing(CLOSING_A)
        await self.ctx.wait_idle()

        self.auth.sign_out()
        await self.ctx.wait_idle()

        assert self.ctx.session is None
        assert self.ctx.records == ()
        assert self.store.subscriber_count == 0
        assert not self.ctx.writes_enabled
        assert EventType.SESSION_ENDED in self.event_types()

        result = await self.ctx.submit_closing(CLOSING_B)
        assert result.ok is False
        assert self.store.insert_calls == 1

    @pytest.mark.asyncio
    async def test_reauth_no_duplicate_handlers(self):
        """재로그인해도 핸들러는 하나"""
        await self.ctx.initialize()
        self.auth.sign_out()
        await self.ctx.wait_idle()

        await self.auth.sign_in_anonymously()
        await self.ctx.wait_idle()
        await self.ctx.initialize()
        await self.ctx.wait_idle()

        assert self.ctx.session is not None
        assert self.auth.listener_count == 1
        assert self.store.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_refresh_failure_observable(self):
        await self.ctx.initialize()
        self.store.fail_next("list")

        ok = await self.ctx.refresh()

        assert ok is False
        assert self.ctx.last_error is not None
        assert EventType.REFRESH_FAILED in self.event_types()

    @pytest.mark.asyncio
    async def test_views(self):
        await self.ctx.initialize()
        await self.ctx.submit_closing(CLOSING_A)
        await self.ctx.submit_closing(CLOSING_B)
        await self.ctx.wait_idle()

        assert self.ctx.health().level == MarginHealth.HEALTHY
        assert [p.order_id for p in self.ctx.recent_sales()] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_close(self):
        await self.ctx.initialize()
        await self.ctx.close()

        assert self.auth.listener_count == 0
        assert self.store.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_auth_failure(self):
        ctx = DashboardContext(InMemoryAuthProvider(fail_sign_in=True), self.store)

        session = await ctx.initialize()

        assert session is None
        assert not ctx.writes_enabled
        assert ctx.error_handler.get_error_summary()["by_code"] == {"SF_AUTH": 1}
    @pytest.mark.asyncio
    async def test_direct_user_switch_clears_list(self):
        """세션이 u1 → u2로 바로 바뀌면 u1 목록을 보여주지 않음"""
        self.store.seed([{"user_id": "u1", "order_id": "A", "sale_price": "100"}])
        auth = InMemoryAuthProvider(session=Session(user_id="u1"))
        ctx = DashboardContext(auth, self.store)
        await ctx.initialize()
        assert len(ctx.records) == 1

        self.store.fail_next("list")
        auth.set_session(Session(user_id="u2"))
        await ctx.wait_idle()

        assert ctx.session.user_id == "u2"
        assert ctx.records == ()
        assert ctx.metrics.total_gross == 0

    @pytest.mark.asyncio
    async def test_subscribe_failure_handled(self):
        """구독 실패는 에러 핸들러로 넘기고 initialize()는 예외 없이 끝남"""
        auth = InMemoryAuthProvider(session=Session(user_id="u1"))
        ctx = DashboardContext(auth, self.store)
        self.store.fail_next("subscribe")

        session = await ctx.initialize()

        assert session.user_id == "u1"
        assert ctx.sync.is_running is False
        assert ctx.error_handler.get_error_summary()["by_code"] == {"SF_STORE": 1}

        await ctx.initialize()

        assert ctx.sync.is_running
        assert self.store.subscriber_count == 1
        assert auth.listener_count == 1
    @pytest.mark.asyncio
    async def test_huge_amount_rejected(self):
        """범위 밖 금액 → 예외 대신 검증 실패 결과"""
        await self.ctx.initialize()

        result = await self.ctx.submit_closing({**CLOSING_A, "sale_price": "9e999999"})

        assert result.ok is False
        assert result.field == "sale_price"
        assert self.store.insert_calls == 0


class TestUnconfigured:
    """백엔드 미설정 테스트"""

    @pytest.mark.asyncio
    async def test_writes_disabled(self):
        ctx = DashboardContext.unconfigured(ConfigurationError("없음", config_key="SUPABASE_URL"))

        assert await ctx.initialize() is None
        result = await ctx.submit_closing(CLOSING_A)

        assert result.ok is False
        assert result.error.error_code == ErrorCodes.CONFIG
        assert ctx.metrics.order_count == 0
        assert (await ctx.delete_closing("x")).ok is False

    @pytest.mark.asyncio
    async def test_open_dashboard_without_credentials(self):
        ctx = await open_dashboard(AppSettings(), use_mock=False)

        assert ctx.config_error is not None
        assert ctx.config_error.config_key == "SUPABASE_URL"
        assert not ctx.writes_enabled

    @pytest.mark.asyncio
    async def test_open_dashboard_mock(self):
        ctx = await open_dashboard(AppSettings(), use_mock=True)

        assert ctx.config_error is None
        assert ctx.writes_enabled
        await ctx.close()


class TestSubmissionResult:
    """SubmissionResult 테스트"""

    def test_messages(self):
        assert SubmissionResult(ok=True).message == "저장되었습니다."
        assert SubmissionResult(ok=True, operation="delete").message == "삭제되었습니다."
        failed = SubmissionResult(ok=False, error=ConfigurationError("설정 없음"))
        assert failed.message == "설정 없음"
        assert failed.field is None
