"""
config.py - 비즈니스 설정값

손익 계산과 대시보드 표시에 쓰이는 상수를 중앙 관리
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 비즈니스 설정

    수수료율은 주문마다 입력받는다 (상품/카테고리별로 다름).
    여기 값은 입력 폼의 기본값으로만 사용된다.
    """
    # 입력 폼 기본값
    default_commission_rate: Decimal = Decimal("18")    # Shopee 수수료 (%)
    default_fixed_fee: Decimal = Decimal("3.00")        # 건당 고정 수수료

    # 마진 기준 (%)
    warning_margin: Decimal = Decimal("30")     # 30% 미만 = 주의
    danger_margin: Decimal = Decimal("15")      # 15% 미만 = 위험

    # 원가 비중 상한 (매출 대비)
    cost_ratio_ceiling: Decimal = Decimal("0.60")

    # 차트에 표시할 최근 주문 수
    recent_orders_limit: int = 10

    # 통화 표시
    currency_symbol: str = "R$"


# 기본 설정 인스턴스
DEFAULT_CONFIG = AppConfig()
