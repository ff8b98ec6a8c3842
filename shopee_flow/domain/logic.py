"""
logic.py - 핵심 비즈니스 로직 (손익 집계)

DDD 원칙: 외부 의존성 없는 순수 파이썬 코드
- UI/저장소 독립적
- 입력 순서/식별자와 무관한 결정적 결과
- 잘못된 레코드가 있어도 예외 없이 0으로 취급
"""

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .models import (
    ZERO,
    HealthReport,
    MarginHealth,
    MetricsSnapshot,
    OrderRecord,
    SalesPoint,
    to_decimal,
)
from ..core.config import AppConfig, DEFAULT_CONFIG

HUNDRED = Decimal("100")

RecordLike = Union[OrderRecord, Mapping[str, Any]]


def _field(item: RecordLike, name: str) -> Decimal:
    if isinstance(item, Mapping):
        return to_decimal(item.get(name))
    return to_decimal(getattr(item, name, None))


def compute_shopee_fee(sale_price: Any, commission_rate: Any) -> Decimal:
    """Shopee 수수료 = 판매가 × (수수료율 / 100)"""
    return to_decimal(sale_price) * (to_decimal(commission_rate) / HUNDRED)


def record_profit(record: RecordLike) -> Decimal:
    """주문별 순이익 = 판매가 - 원가 - Shopee 수수료 - 고정 수수료"""
    return (
        _field(record, "sale_price")
        - _field(record, "product_cost")
        - _field(record, "shopee_fee")
        - _field(record, "fixed_fee")
    )


def aggregate_metrics(records: Iterable[RecordLike]) -> MetricsSnapshot:
    """주문 목록 → 집계 결과 (순수 함수)

    Args:
        records: OrderRecord 또는 저장소 행(dict) 목록. 순서 무관.

    Returns:
        MetricsSnapshot. 빈 목록이면 마진 포함 전부 0.
    """
    total_gross = ZERO
    total_cogs = ZERO
    total_fees = ZERO
    count = 0

    for record in records:
        total_gross += _field(record, "sale_price")
        total_cogs += _field(record, "product_cost")
        total_fees += _field(record, "shopee_fee") + _field(record, "fixed_fee")
        count += 1

    total_profit = total_gross - total_cogs - total_fees
    margin = (total_profit / total_gross * HUNDRED) if total_gross > 0 else ZERO

    return MetricsSnapshot(
        total_gross=total_gross,
        total_cogs=total_cogs,
        total_fees=total_fees,
        total_profit=total_profit,
        margin=margin,
        order_count=count,
    )


class MetricsAggregator:
    """목록 참조가 바뀔 때만 다시 계산하는 집계기"""

    def __init__(self):
        self._last_input: Optional[Sequence[RecordLike]] = None
        self._last_snapshot: Optional[MetricsSnapshot] = None
        self.compute_count = 0

    def snapshot(self, records: Sequence[RecordLike]) -> MetricsSnapshot:
        if self._last_snapshot is not None and records is self._last_input:
            return self._last_snapshot

        self._last_snapshot = aggregate_metrics(records)
        self._last_input = records
        self.compute_count += 1
        return self._last_snapshot

    def reset(self):
        self._last_input = None
        self._last_snapshot = None


def assess_health(
    snapshot: MetricsSnapshot,
    config: Optional[AppConfig] = None
) -> HealthReport:
    """운영 건전성 판정 (마진율 + 원가 비중)"""
    cfg = config or DEFAULT_CONFIG
    margin = snapshot.margin

    if margin >= cfg.warning_margin:
        level = MarginHealth.HEALTHY
    elif margin >= cfg.danger_margin:
        level = MarginHealth.WARNING
    else:
        level = MarginHealth.DANGER

    cost_ratio = (
        snapshot.total_cogs / snapshot.total_gross
        if snapshot.total_gross > 0 else ZERO
    )
    progress = min(max(margin * 2, ZERO), HUNDRED)
    within_ceiling = cost_ratio <= cfg.cost_ratio_ceiling

    return HealthReport(
        level=level,
        margin=margin,
        cost_ratio=cost_ratio,
        progress_percent=progress,
        costs_within_ceiling=within_ceiling,
        message=_health_message(snapshot, level, cfg),
    )


def _health_message(snapshot: MetricsSnapshot, level: MarginHealth, cfg: AppConfig) -> str:
    if snapshot.order_count == 0:
        return "등록된 주문이 없습니다. 첫 마감을 등록해 주세요."

    ceiling = cfg.cost_ratio_ceiling * HUNDRED
    base = (
        f"현재 마진율 {snapshot.margin:.1f}%는 최근 {snapshot.order_count}건 기준입니다. "
        f"원가를 매출의 {ceiling:.0f}% 이하로 유지하세요."
    )
    if level == MarginHealth.DANGER:
        return f"🔴 {base}"
    if level == MarginHealth.WARNING:
        return f"🟡 {base}"
    return f"🟢 {base}"


def recent_sales(records: Sequence[OrderRecord], limit: int = 10) -> List[SalesPoint]:
    """최신순 목록에서 최근 limit건을 골라 오래된 순으로 반환 (차트용)"""
    if limit <= 0:
        return []
    newest = list(records[:limit])
    newest.reverse()
    return [
        SalesPoint(order_id=str(r.order_id), sale_price=to_decimal(r.sale_price))
        for r in newest
    ]
