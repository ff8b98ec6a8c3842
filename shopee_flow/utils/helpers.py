"""
helpers.py - 표시용 헬퍼
"""

from decimal import Decimal
from typing import Union

from ..domain.models import to_decimal

Number = Union[Decimal, int, float]


def format_currency(amount: Number, symbol: str = "R$") -> str:
    """통화 포맷 (pt-BR: R$ 1.234,56)"""
    value = to_decimal(amount)
    text = f"{value:,.2f}"
    # 1,234.56 → 1.234,56
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{symbol} {text}"


def format_percent(value: Number, decimals: int = 1) -> str:
    """퍼센트 포맷"""
    return f"{to_decimal(value):.{decimals}f}%"


def safe_divide(numerator: Number, denominator: Number, default: Decimal = Decimal("0")) -> Decimal:
    """안전한 나눗셈"""
    denominator = to_decimal(denominator)
    if denominator == 0:
        return default
    return to_decimal(numerator) / denominator
