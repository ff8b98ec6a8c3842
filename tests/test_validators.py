"""마감 입력 검증 테스트"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from shopee_flow.core.exceptions import ValidationError
from shopee_flow.utils.validators import (
    DataValidator,
    ValidationResult,
    ValidationSeverity,
    build_order_payload,
    parse_decimal,
    validate_closing_input,
)


def valid_input(**overrides):
    data = {
        "order_id": "240501A",
        "product_name": "Capa iPhone 15",
        "sale_price": "100",
        "product_cost": "40",
        "commission_rate": "18",
        "fixed_fee": "3",
    }
    data.update(overrides)
    return data


class TestParseDecimal:
    """숫자 파싱 테스트"""

    def test_plain(self):
        assert parse_decimal("12.50") == Decimal("12.50")

    def test_comma_decimal(self):
        """쉼표 소수점 허용"""
        assert parse_decimal("12,50") == Decimal("12.50")

    def test_numbers(self):
        assert parse_decimal(7) == Decimal("7")
        assert parse_decimal(2.5) == Decimal("2.5")

    def test_invalid(self):
        """파싱 불가 → None"""
        for value in ["abc", "", "1.234,56", "NaN", "inf", None, True, []]:
            assert parse_decimal(value) is None

    def test_out_of_range(self):
        """자릿수 범위 밖 → None"""
        assert parse_decimal("9e999999") is None
        assert parse_decimal("1e-999999") is None
        assert parse_decimal("0") == Decimal("0")


class TestDataValidator:
    """필드 검증기 테스트"""

    def test_required_text_blank(self):
        result = DataValidator.required_text("   ", "order_id")
        assert result.is_valid is False
        assert "주문번호" in result.errors[0]

    def test_required_text_stripped(self):
        result = DataValidator.required_text("  A1 ", "order_id")
        assert result.values["order_id"] == "A1"

    def test_required_decimal_negative(self):
        result = DataValidator.required_decimal("-1", "sale_price")
        assert result.is_valid is False

    def test_optional_decimal_default(self):
        """없으면 기본값"""
        result = DataValidator.optional_decimal(None, "fixed_fee")
        assert result.is_valid
        assert result.values["fixed_fee"] == Decimal("0")

    def test_optional_decimal_unparseable(self):
        """파싱 불가도 기본값"""
        result = DataValidator.optional_decimal("abc", "fixed_fee", default=Decimal("1"))
        assert result.values["fixed_fee"] == Decimal("1")


class TestValidationResult:
    """ValidationResult 테스트"""

    def test_merge(self):
        a = ValidationResult()
        b = ValidationResult()
        b.add_error("x", "에러")
        b.add_warning("y", "경고")

        a.merge(b)

        assert a.is_valid is False
        assert a.errors == ["에러"]
        assert a.warnings == ["경고"]
        assert a.first_error.field == "x"

    def test_first_error_skips_warnings(self):
        result = ValidationResult()
        result.add_warning("a", "경고")
        assert result.first_error is None
        assert result.issues[0].severity == ValidationSeverity.WARNING


class TestValidateClosingInput:
    """validate_closing_input 테스트"""

    def test_valid(self):
        result = validate_closing_input(valid_input())
        assert result.is_valid
        assert result.warnings == []

    def test_missing_sale_price(self):
        """판매가 누락 → 에러"""
        data = valid_input()
        del data["sale_price"]

        result = validate_closing_input(data)

        assert result.is_valid is False
        assert result.first_error.field == "sale_price"

    def test_missing_commission(self):
        """수수료율도 필수"""
        result = validate_closing_input(valid_input(commission_rate=""))
        assert result.first_error.field == "commission_rate"

    def test_non_numeric(self):
        result = validate_closing_input(valid_input(product_cost="quarenta"))
        assert result.first_error.field == "product_cost"

    def test_commission_over_100_is_warning(self):
        """수수료율 100% 초과는 경고만"""
        result = validate_closing_input(valid_input(commission_rate="120"))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_cost_above_price_warning(self):
        result = validate_closing_input(valid_input(product_cost="150"))
        assert result.is_valid
        assert any("원가" in w for w in result.warnings)


class TestBuildOrderPayload:
    """build_order_payload 테스트"""

    def test_payload(self):
        """수수료 계산 + 사용자 지정"""
        payload = build_order_payload(valid_input(), "user-1")

        assert payload.user_id == "user-1"
        assert payload.order_id == "240501A"
        assert payload.shopee_fee == Decimal("18.00")
        assert payload.fixed_fee == Decimal("3")

    def test_fixed_fee_omitted(self):
        """고정 수수료 생략 → 0.00"""
        data = valid_input()
        del data["fixed_fee"]

        payload = build_order_payload(data, "user-1")

        assert payload.fixed_fee == Decimal("0")
        assert payload.to_row()["fixed_fee"] == "0"

    def test_comma_input(self):
        payload = build_order_payload(valid_input(sale_price="59,90", commission_rate="20"), "u")
        assert payload.sale_price == Decimal("59.90")
        assert payload.shopee_fee == Decimal("11.98")

    def test_missing_sale_price_raises(self):
        """판매가 누락 → ValidationError (필드 포함)"""
        data = valid_input()
        del data["sale_price"]

        with pytest.raises(ValidationError) as exc_info:
            build_order_payload(data, "user-1")

        assert exc_info.value.field == "sale_price"
        assert exc_info.value.error_code == "SF_VALIDATION"

    def test_negative_fixed_fee_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            build_order_payload(valid_input(fixed_fee="-3"), "user-1")
        assert exc_info.value.field == "fixed_fee"

    def test_huge_price_rejected(self):
        """범위 밖 판매가 → 수수료 계산 전에 ValidationError"""
        with pytest.raises(ValidationError) as exc_info:
            build_order_payload(valid_input(sale_price="9e999999", commission_rate="9e999999"), "user-1")
        assert exc_info.value.field == "sale_price"

    def test_row_uses_strings(self):
        """numeric 컬럼에는 문자열로 전달"""
        row = build_order_payload(valid_input(), "user-1").to_row()
        assert row["sale_price"] == "100"
        assert row["shopee_fee"] == "18.00"
