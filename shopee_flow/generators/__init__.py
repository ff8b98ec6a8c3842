"""생성기 모듈"""
from .excel_export import ClosingExcelExporter

__all__ = ["ClosingExcelExporter"]
