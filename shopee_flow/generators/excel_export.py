"""
excel_export.py - 마감 내역 엑셀 내보내기

기능:
- 마감 목록 시트 (주문별 순이익, 적자 주문 강조)
- 요약 시트 (매출 / 원가 / 수수료 / 순이익 / 마진율)

Usage:
    exporter = ClosingExcelExporter()
    path = exporter.generate(ctx.records, ctx.metrics, "output/closings.xlsx")
"""

import io
import logging
import os
from datetime import datetime
from typing import Optional, Sequence

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from ..config.settings import OUTPUT_DIR
from ..domain.models import MetricsSnapshot, OrderRecord

logger = logging.getLogger(__name__)


class ClosingExcelExporter:
    """마감 내역 엑셀 생성기"""

    # (헤더, 너비, 숫자 서식)
    COLUMNS = [
        ("주문번호", 18, None),
        ("상품명", 36, None),
        ("판매가", 12, "#,##0.00"),
        ("원가", 12, "#,##0.00"),
        ("Shopee 수수료", 14, "#,##0.00"),
        ("고정 수수료", 12, "#,##0.00"),
        ("순이익", 12, "#,##0.00"),
        ("등록일시", 20, None),
    ]

    SUMMARY_ROWS = [
        ("총 매출", "total_gross", "#,##0.00"),
        ("총 원가", "total_cogs", "#,##0.00"),
        ("총 수수료", "total_fees", "#,##0.00"),
        ("순이익", "total_profit", "#,##0.00"),
        ("마진율 (%)", "margin", "0.0"),
        ("주문 수", "order_count", "0"),
    ]

    def __init__(self):
        self.HEADER_FILL = PatternFill(start_color="EE4D2D", end_color="EE4D2D", fill_type="solid")
        self.HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
        self.LOSS_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
        self.LABEL_FONT = Font(bold=True)

    def generate(
        self,
        records: Sequence[OrderRecord],
        snapshot: MetricsSnapshot,
        output_path: Optional[str] = None
    ) -> str:
        """엑셀 파일 생성

        Args:
            records: 마감 목록 (최신순)
            snapshot: 집계 결과
            output_path: 출력 경로 (없으면 OUTPUT_DIR/closings_<시각>.xlsx)

        Returns:
            생성된 파일 경로
        """
        if not output_path:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = str(OUTPUT_DIR / f"closings_{timestamp}.xlsx")

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)

        wb = self.build_workbook(records, snapshot)
        wb.save(output_path)
        logger.info("Excel exported: %s (%d rows)", output_path, len(records))
        return str(output_path)

    def to_bytes(self, records: Sequence[OrderRecord], snapshot: MetricsSnapshot) -> bytes:
        """다운로드 버튼용 바이트"""
        buffer = io.BytesIO()
        self.build_workbook(records, snapshot).save(buffer)
        return buffer.getvalue()

    def build_workbook(self, records: Sequence[OrderRecord], snapshot: MetricsSnapshot):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "마감내역"

        self._write_header(ws)
        for row, record in enumerate(records, start=2):
            self._write_record_row(ws, row, record)

        if records:
            ws.auto_filter.ref = ws.dimensions

        self._add_summary_sheet(wb, snapshot)
        return wb

    def _write_header(self, ws):
        for col, (title, width, _) in enumerate(self.COLUMNS, start=1):
            cell = ws.cell(row=1, column=col, value=title)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = Alignment(horizontal="center", vertical="center")
            ws.column_dimensions[get_column_letter(col)].width = width

        ws.freeze_panes = "A2"

    def _write_record_row(self, ws, row: int, record: OrderRecord):
        values = [
            record.order_id,
            record.product_name,
            float(record.sale_price),
            float(record.product_cost),
            float(record.shopee_fee),
            float(record.fixed_fee),
            float(record.profit),
            record.created_at.strftime("%Y-%m-%d %H:%M") if record.created_at else "",
        ]

        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row, column=col, value=value)
            number_format = self.COLUMNS[col - 1][2]
            if number_format:
                cell.number_format = number_format

        # 적자 주문 강조
        if record.profit < 0:
            for col in range(1, len(self.COLUMNS) + 1):
                ws.cell(row=row, column=col).fill = self.LOSS_FILL

    def _add_summary_sheet(self, wb, snapshot: MetricsSnapshot):
        ws = wb.create_sheet("요약")
        ws.column_dimensions["A"].width = 16
        ws.column_dimensions["B"].width = 16

        for row, (label, attr, number_format) in enumerate(self.SUMMARY_ROWS, start=1):
            label_cell = ws.cell(row=row, column=1, value=label)
            label_cell.font = self.LABEL_FONT

            value = getattr(snapshot, attr)
            cell = ws.cell(row=row, column=2, value=value if isinstance(value, int) else float(value))
            cell.number_format = number_format

        ws.cell(row=len(self.SUMMARY_ROWS) + 2, column=1, value="생성일시")
        ws.cell(row=len(self.SUMMARY_ROWS) + 2, column=2, value=datetime.now().strftime("%Y-%m-%d %H:%M"))
