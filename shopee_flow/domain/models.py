"""
models.py - 도메인 모델

순수 파이썬 데이터 클래스. 외부 의존성 없음.
금액은 모두 Decimal (통화 단위 그대로, 집계 중 반올림 없음).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional

ZERO = Decimal("0")

# 금액으로 인정하는 자릿수 범위 (10^-15 ~ 10^15)
MAX_AMOUNT_EXPONENT = 15


def in_amount_range(number: Decimal) -> bool:
    """유한하고 금액 자릿수 범위 안의 값인지"""
    if not number.is_finite():
        return False
    if number.is_zero():
        return True
    return -MAX_AMOUNT_EXPONENT <= number.adjusted() <= MAX_AMOUNT_EXPONENT


def to_decimal(value: Any) -> Decimal:
    """방어적 숫자 변환: 변환 불가 값과 범위 밖 값은 모두 0 (예외 없음)"""
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not in_amount_range(number):
        return ZERO
    return number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """저장소 타임스탬프 파싱 (ISO 8601, 'Z' 허용)"""
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class MarginHealth(Enum):
    """운영 건전성 레벨"""
    HEALTHY = "healthy"     # 🟢 30% 이상
    WARNING = "warning"     # 🟡 15~30%
    DANGER = "danger"       # 🔴 15% 미만


@dataclass(frozen=True)
class Session:
    """인증 세션 (코어는 user_id만 사용)"""
    user_id: str
    access_token: Optional[str] = None
    is_anonymous: bool = False


@dataclass(frozen=True)
class OrderRecord:
    """마감된 주문 1건 (저장 후 불변)"""
    id: str                         # 저장소가 부여
    user_id: str                    # 등록 시점의 사용자
    order_id: str                   # 외부 주문번호
    product_name: str               # 상품명 / SKU
    sale_price: Decimal             # 판매가
    product_cost: Decimal           # 상품 원가 (CMV)
    shopee_fee: Decimal             # Shopee 수수료 = 판매가 × 수수료율
    fixed_fee: Decimal = ZERO       # 건당 고정 수수료
    created_at: Optional[datetime] = None

    @property
    def profit(self) -> Decimal:
        """주문별 순이익 (저장하지 않는 파생값)"""
        return self.sale_price - self.product_cost - self.shopee_fee - self.fixed_fee

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OrderRecord":
        """저장소 행(snake_case 컬럼) → OrderRecord"""
        return cls(
            id=str(row.get("id", "")),
            user_id=str(row.get("user_id") or ""),
            order_id=str(row.get("order_id") or ""),
            product_name=str(row.get("product_name") or ""),
            sale_price=to_decimal(row.get("sale_price")),
            product_cost=to_decimal(row.get("product_cost")),
            shopee_fee=to_decimal(row.get("shopee_fee")),
            fixed_fee=to_decimal(row.get("fixed_fee")),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "order_id": self.order_id,
            "product_name": self.product_name,
            "sale_price": self.sale_price,
            "product_cost": self.product_cost,
            "shopee_fee": self.shopee_fee,
            "fixed_fee": self.fixed_fee,
            "profit": self.profit,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class OrderPayload:
    """검증을 통과한 insert 요청 데이터"""
    user_id: str
    order_id: str
    product_name: str
    sale_price: Decimal
    product_cost: Decimal
    shopee_fee: Decimal
    fixed_fee: Decimal = ZERO

    def to_row(self) -> Dict[str, Any]:
        """저장소 행으로 변환 (numeric 컬럼에는 문자열로 전달)"""
        return {
            "user_id": self.user_id,
            "order_id": self.order_id,
            "product_name": self.product_name,
            "sale_price": str(self.sale_price),
            "product_cost": str(self.product_cost),
            "shopee_fee": str(self.shopee_fee),
            "fixed_fee": str(self.fixed_fee),
        }


@dataclass(frozen=True)
class MetricsSnapshot:
    """주문 목록 전체에 대한 집계 결과"""
    total_gross: Decimal = ZERO     # 매출 합계
    total_cogs: Decimal = ZERO      # 원가 합계
    total_fees: Decimal = ZERO      # 수수료 합계 (Shopee + 고정)
    total_profit: Decimal = ZERO    # 순이익
    margin: Decimal = ZERO          # 마진율 (%)
    order_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_gross": self.total_gross,
            "total_cogs": self.total_cogs,
            "total_fees": self.total_fees,
            "total_profit": self.total_profit,
            "margin": self.margin,
            "order_count": self.order_count,
        }


@dataclass(frozen=True)
class HealthReport:
    """운영 건전성 분석"""
    level: MarginHealth
    margin: Decimal                 # 마진율 (%)
    cost_ratio: Decimal             # 원가 / 매출
    progress_percent: Decimal       # 진행 바 (0~100)
    costs_within_ceiling: bool      # 원가 비중이 상한 이하인지
    message: str


@dataclass(frozen=True)
class SalesPoint:
    """매출 차트 데이터 포인트"""
    order_id: str
    sale_price: Decimal
