"""목록 동기화 테스트"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from shopee_flow.api.memory_store import InMemoryRecordStore
from shopee_flow.core.error_handler import ErrorHandler
from shopee_flow.core.exceptions import StoreError
from shopee_flow.domain.models import OrderPayload, OrderRecord
from shopee_flow.notifications.events import EventEmitter, EventType
from shopee_flow.services.sync import RecordListState, RecordSynchronizer


def make_payload(order_id="A", sale="100", cost="40", fee="18", fixed="3"):
    return OrderPayload(
        user_id="u1",
        order_id=order_id,
        product_name="상품",
        sale_price=Decimal(sale),
        product_cost=Decimal(cost),
        shopee_fee=Decimal(fee),
        fixed_fee=Decimal(fixed),
    )


class TestRecordListState:
    """RecordListState 테스트"""

    def test_replace_bumps_version(self):
        state = RecordListState()
        state.replace([])
        state.replace([])

        assert state.version == 2
        assert state.records == ()

    def test_metrics_memoized_until_replace(self):
        state = RecordListState()

        first = state.metrics
        assert state.metrics is first

        state.replace([OrderRecord.from_row({"id": "r1", "sale_price": "10"})])
        assert state.metrics is not first
        assert state.metrics.total_gross == Decimal("10")


class TestRecordSynchronizer:
    """RecordSynchronizer 테스트"""

    def setup_method(self):
        self.store = InMemoryRecordStore()
        self.emitter = EventEmitter()
        self.handler = ErrorHandler()
        self.state = RecordListState()
        self.sync = RecordSynchronizer(self.store, self.state, self.handler, self.emitter)
        self.events = []
        self.emitter.on_all(self.events.append)

    @pytest.mark.asyncio
    async def test_start_loads_list(self):
        await self.store.insert(make_payload("A"))

        started = await self.sync.start("u1")

        assert started is True
        assert len(self.state) == 1
        assert self.store.subscriber_count == 1
        assert self.events[-1].event_type == EventType.RECORDS_REFRESHED

    @pytest.mark.asyncio
    async def test_start_same_user_is_noop(self):
        """같은 세션으로 두 번 시작해도 구독은 하나"""
        await self.sync.start("u1")
        started = await self.sync.start("u1")

        assert started is False
        assert self.store.subscriber_count == 1
        assert self.store.list_calls == 1

    @pytest.mark.asyncio
    async def test_start_other_user_replaces_subscription(self):
        await self.sync.start("u1")
        await self.sync.start("u2")

        assert self.sync.user_id == "u2"
        assert self.store.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_change_triggers_refetch(self):
        """변경 알림 → 전체 재조회 → 집계 갱신"""
        await self.sync.start("u1")

        await self.store.insert(make_payload("A", "100", "40", "18", "3"))
        await self.store.insert(make_payload("B", "50", "20", "9", "3"))
        await self.sync.wait_idle()

        metrics = self.state.metrics
        assert metrics.total_gross == Decimal("150")
        assert metrics.total_profit == Decimal("57")
        assert metrics.margin == Decimal("38")
        assert [r.order_id for r in self.state.records] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_delete_notification(self):
        await self.sync.start("u1")
        record = await self.store.insert(make_payload("A"))
        await self.sync.wait_idle()

        await self.store.delete_by_id(record.id)
        await self.sync.wait_idle()

        assert self.state.records == ()
        assert self.state.metrics.margin == 0

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_list(self):
        """조회 실패 → 목록 유지 + 이벤트 + 에러 기록"""
        await self.store.insert(make_payload("A"))
        await self.sync.start("u1")
        before = self.state.records

        self.store.fail_next("list")
        ok = await self.sync.refresh()

        assert ok is False
        assert self.state.records is before
        assert self.sync.last_error is not None
        assert self.events[-1].event_type == EventType.REFRESH_FAILED
        assert self.events[-1].data["kept_records"] == 1
        assert self.handler.get_error_summary()["by_code"] == {"SF_FETCH": 1}

    @pytest.mark.asyncio
    async def test_success_clears_last_error(self):
        await self.sync.start("u1")
        self.store.fail_next("list")
        await self.sync.refresh()

        await self.sync.refresh()

        assert self.sync.last_error is None

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self):
        await self.sync.start("u1")
        self.sync.stop()

        await self.store.insert(make_payload("A"))
        await self.sync.wait_idle()

        assert self.store.subscriber_count == 0
        assert self.state.records == ()
        assert await self.sync.refresh() is False

    @pytest.mark.asyncio
    async def test_not_live(self):
        """live=False → 구독 없이 수동 새로고침"""
        await self.sync.start("u1", live=False)
        await self.store.insert(make_payload("A"))

        assert self.store.subscriber_count == 0
        assert len(self.state) == 0

        await self.sync.refresh()
        assert len(self.state) == 1

    @pytest.mark.asyncio
    async def test_switch_user_clears_previous_list(self):
        """다른 사용자로 전환 후 첫 조회가 실패해도 이전 사용자 목록은 남지 않음"""
        self.store.seed([{"user_id": "u1", "order_id": "u1", "sale_price": "10"}])
        await self.sync.start("u1")
        assert [r.order_id for r in self.state.records] == ["u1"]

        self.store.fail_next("list")
        await self.sync.start("u2")

        assert self.sync.user_id == "u2"
        assert self.state.records == ()
        assert self.state.metrics.order_count == 0
        assert self.sync.last_error is not None

    @pytest.mark.asyncio
    async def test_subscribe_failure_leaves_stopped(self):
        """구독 실패 → 시작 안 된 상태, 재시도하면 정상 시작"""
        self.store.fail_next("subscribe")

        with pytest.raises(StoreError):
            await self.sync.start("u1")

        assert self.sync.is_running is False
        assert self.store.list_calls == 0

        started = await self.sync.start("u1")

        assert started is True
        assert self.sync.is_live
        assert self.store.subscriber_count == 1
        assert self.store.list_calls == 1
