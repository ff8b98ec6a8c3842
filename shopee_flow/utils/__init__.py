"""유틸리티 모듈"""
from .validators import (
    DataValidator,
    ValidationResult,
    ValidationIssue,
    ValidationSeverity,
    validate_closing_input,
    build_order_payload,
    parse_decimal,
)
from .helpers import (
    format_currency,
    format_percent,
    safe_divide,
)

__all__ = [
    "DataValidator",
    "ValidationResult",
    "ValidationIssue",
    "ValidationSeverity",
    "validate_closing_input",
    "build_order_payload",
    "parse_decimal",
    "format_currency",
    "format_percent",
    "safe_divide",
]
