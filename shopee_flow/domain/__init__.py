"""도메인 모듈 - 순수 비즈니스 로직"""
from .models import (
    ZERO,
    OrderRecord,
    OrderPayload,
    MetricsSnapshot,
    Session,
    MarginHealth,
    HealthReport,
    SalesPoint,
    to_decimal,
    in_amount_range,
    parse_timestamp,
)
from .logic import (
    MetricsAggregator,
    aggregate_metrics,
    assess_health,
    compute_shopee_fee,
    recent_sales,
    record_profit,
)

__all__ = [
    # 모델
    "ZERO",
    "OrderRecord",
    "OrderPayload",
    "MetricsSnapshot",
    "Session",
    "MarginHealth",
    "HealthReport",
    "SalesPoint",
    "to_decimal",
    "in_amount_range",
    "parse_timestamp",
    # 로직
    "MetricsAggregator",
    "aggregate_metrics",
    "assess_health",
    "compute_shopee_fee",
    "recent_sales",
    "record_profit",
]
