"""
validators.py - 마감(closing) 입력 검증

폼에서 받은 원시 값(대부분 문자열)을 검사하고
통과하면 저장소에 넘길 OrderPayload를 만든다.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional
from enum import Enum

from ..core.exceptions import ValidationError
from ..domain.logic import compute_shopee_fee
from ..domain.models import ZERO, OrderPayload, in_amount_range


class ValidationSeverity(Enum):
    """검증 심각도"""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """검증 이슈"""
    field: str
    message: str
    severity: ValidationSeverity = ValidationSeverity.ERROR


@dataclass
class ValidationResult:
    """검증 결과"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    issues: List[ValidationIssue] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)   # 파싱된 값

    def add_error(self, field_name: str, message: str):
        """에러 추가"""
        self.is_valid = False
        self.errors.append(message)
        self.issues.append(ValidationIssue(field=field_name, message=message, severity=ValidationSeverity.ERROR))

    def add_warning(self, field_name: str, message: str):
        """경고 추가"""
        self.warnings.append(message)
        self.issues.append(ValidationIssue(field=field_name, message=message, severity=ValidationSeverity.WARNING))

    def merge(self, other: "ValidationResult"):
        """다른 결과 병합"""
        if not other.is_valid:
            self.is_valid = False
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.issues.extend(other.issues)
        self.values.update(other.values)

    @property
    def first_error(self) -> Optional[ValidationIssue]:
        for issue in self.issues:
            if issue.severity == ValidationSeverity.ERROR:
                return issue
        return None


# 필드명 → 표시명
FIELD_LABELS = {
    "order_id": "주문번호",
    "product_name": "상품명",
    "sale_price": "판매가",
    "product_cost": "원가",
    "commission_rate": "수수료율",
    "fixed_fee": "고정 수수료",
}

REQUIRED_TEXT_FIELDS = ["order_id", "product_name"]
REQUIRED_DECIMAL_FIELDS = ["sale_price", "product_cost", "commission_rate"]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_decimal(value: Any) -> Optional[Decimal]:
    """엄격한 숫자 파싱. 실패 시 None

    '12,50' 처럼 쉼표 소수점도 허용한다 (점이 없을 때만).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    # 범위 밖 값은 숫자가 아닌 것으로 본다
    if not in_amount_range(number):
        return None
    return number


class DataValidator:
    """필드 단위 검증기"""

    @staticmethod
    def required_text(value: Any, field_name: str) -> ValidationResult:
        """필수 텍스트 검증"""
        result = ValidationResult()
        label = FIELD_LABELS.get(field_name, field_name)
        if _is_blank(value):
            result.add_error(field_name, f"{label}은(는) 필수입니다.")
        elif not isinstance(value, str):
            result.add_error(field_name, f"{label}은(는) 텍스트여야 합니다.")
        else:
            result.values[field_name] = value.strip()
        return result

    @staticmethod
    def required_decimal(value: Any, field_name: str) -> ValidationResult:
        """필수 숫자 검증 (0 이상)"""
        result = ValidationResult()
        label = FIELD_LABELS.get(field_name, field_name)
        if _is_blank(value):
            result.add_error(field_name, f"{label}은(는) 필수입니다.")
            return result

        number = parse_decimal(value)
        if number is None:
            result.add_error(field_name, f"{label}은(는) 숫자여야 합니다.")
        elif number < 0:
            result.add_error(field_name, f"{label}은(는) 0 이상이어야 합니다.")
        else:
            result.values[field_name] = number
        return result

    @staticmethod
    def optional_decimal(value: Any, field_name: str, default: Decimal = ZERO) -> ValidationResult:
        """선택 숫자 검증: 없거나 파싱 불가면 기본값"""
        result = ValidationResult()
        number = parse_decimal(value) if not _is_blank(value) else None
        if number is None:
            result.values[field_name] = default
        elif number < 0:
            label = FIELD_LABELS.get(field_name, field_name)
            result.add_error(field_name, f"{label}은(는) 0 이상이어야 합니다.")
        else:
            result.values[field_name] = number
        return result


def validate_closing_input(data: Mapping[str, Any]) -> ValidationResult:
    """마감 입력 데이터 검증"""
    result = ValidationResult()

    for field_name in REQUIRED_TEXT_FIELDS:
        result.merge(DataValidator.required_text(data.get(field_name), field_name))

    for field_name in REQUIRED_DECIMAL_FIELDS:
        result.merge(DataValidator.required_decimal(data.get(field_name), field_name))

    result.merge(DataValidator.optional_decimal(data.get("fixed_fee"), "fixed_fee"))

    commission = result.values.get("commission_rate")
    if commission is not None and commission > 100:
        result.add_warning("commission_rate", "수수료율이 100%를 넘습니다. 확인해주세요.")

    sale_price = result.values.get("sale_price")
    product_cost = result.values.get("product_cost")
    if sale_price is not None and product_cost is not None and product_cost > sale_price:
        result.add_warning("product_cost", "원가가 판매가보다 큽니다.")

    return result


def build_order_payload(data: Mapping[str, Any], user_id: str) -> OrderPayload:
    """검증 후 insert 페이로드 생성

    Raises:
        ValidationError: 필수값 누락 또는 숫자 파싱 실패
    """
    result = validate_closing_input(data)
    if not result.is_valid:
        issue = result.first_error
        raise ValidationError(
            issue.message,
            field=issue.field,
            value=data.get(issue.field),
            details={"errors": list(result.errors)},
        )

    values = result.values
    return OrderPayload(
        user_id=user_id,
        order_id=values["order_id"],
        product_name=values["product_name"],
        sale_price=values["sale_price"],
        product_cost=values["product_cost"],
        shopee_fee=compute_shopee_fee(values["sale_price"], values["commission_rate"]),
        fixed_fee=values["fixed_fee"],
    )
