"""
app.py - Streamlit 대시보드

UI는 껍데기일 뿐, 로직은 services/domain에서 가져옴
- 대시보드 컨텍스트와 이벤트 루프는 st.session_state에 보관
- Streamlit은 재실행 모델이므로 실시간 구독 대신 매 실행마다 새로고침

실행:
    streamlit run shopee_flow/ui/app.py
"""

import asyncio
import sys
from pathlib import Path

import streamlit as st

# 프로젝트 루트를 Python 경로에 추가 (streamlit run은 스크립트로 실행)
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from shopee_flow import __version__
from shopee_flow.config.logging_config import setup_logging
from shopee_flow.config.settings import get_settings
from shopee_flow.generators.excel_export import ClosingExcelExporter
from shopee_flow.services.dashboard import DashboardContext, open_dashboard
from shopee_flow.ui.styles import (
    build_sales_chart,
    inject_custom_css,
    records_dataframe,
    render_config_banner,
    render_health_card,
)
from shopee_flow.utils.helpers import format_currency, format_percent

# ============================================================
# 페이지 설정
# ============================================================
st.set_page_config(
    page_title="ShopeeFlow",
    page_icon="🧾",
    layout="wide"
)
inject_custom_css()


def get_loop() -> asyncio.AbstractEventLoop:
    """세션 전용 이벤트 루프 (재실행 사이에 유지)"""
    if "loop" not in st.session_state:
        st.session_state.loop = asyncio.new_event_loop()
    return st.session_state.loop


def run(coro):
    return get_loop().run_until_complete(coro)


def get_context() -> DashboardContext:
    if "ctx" not in st.session_state:
        settings = get_settings()
        setup_logging(level=settings.log_level)
        st.session_state.ctx = run(open_dashboard(settings, live=False))
    else:
        run(st.session_state.ctx.refresh())
    return st.session_state.ctx


ctx = get_context()
symbol = ctx.config.currency_symbol

st.title("🧾 ShopeeFlow")
st.markdown(f"**v{__version__}** | Shopee 주문 마감 손익 대시보드")

if ctx.config_error is not None:
    render_config_banner(ctx.config_error.message)
elif ctx.session is None:
    st.warning("로그인 세션을 만들지 못했습니다. 잠시 후 새로고침해 주세요.")

if ctx.last_error is not None:
    st.warning(f"목록을 새로 불러오지 못했습니다 (이전 목록 표시 중): {ctx.last_error.message}")

# 직전 실행에서 남긴 알림
if "flash" in st.session_state:
    level, text = st.session_state.pop("flash")
    getattr(st, level)(text)

# ============================================================
# KPI
# ============================================================
metrics = ctx.metrics
col1, col2, col3, col4 = st.columns(4)
col1.metric("총 매출", format_currency(metrics.total_gross, symbol))
col2.metric("총 원가 (CMV)", format_currency(metrics.total_cogs, symbol))
col3.metric("총 수수료", format_currency(metrics.total_fees, symbol))
col4.metric(
    "순이익",
    format_currency(metrics.total_profit, symbol),
    delta=f"마진 {format_percent(metrics.margin)}",
    delta_color="normal" if metrics.total_profit >= 0 else "inverse",
)

st.markdown("---")

# ============================================================
# 목록 + 차트
# ============================================================
left, right = st.columns([3, 2])

with left:
    st.subheader(f"📋 마감 내역 ({metrics.order_count}건)")

    if not ctx.records:
        st.info("등록된 마감이 없습니다.")
    else:
        df = records_dataframe(ctx.records)
        st.dataframe(
            df,
            hide_index=True,
            use_container_width=True,
            column_config={
                "판매가": st.column_config.NumberColumn(format=f"{symbol} %.2f"),
                "원가": st.column_config.NumberColumn(format=f"{symbol} %.2f"),
                "수수료": st.column_config.NumberColumn(format=f"{symbol} %.2f"),
                "순이익": st.column_config.NumberColumn(format=f"{symbol} %.2f"),
            },
        )

        with st.expander("🗑️ 마감 삭제"):
            for record in ctx.records:
                c1, c2 = st.columns([4, 1])
                c1.write(f"**{record.order_id}** · {record.product_name} · "
                         f"{format_currency(record.profit, symbol)}")
                if c2.button("삭제", key=f"del_{record.id}", disabled=not ctx.writes_enabled):
                    result = run(ctx.delete_closing(record.id))
                    if result.ok:
                        st.session_state.flash = ("success", f"{record.order_id} 삭제되었습니다.")
                    else:
                        st.session_state.flash = ("error", f"삭제 실패: {result.message}")
                    st.rerun()

        d1, d2 = st.columns(2)
        d1.download_button(
            label="📥 CSV 다운로드",
            data=df.to_csv(index=False).encode("utf-8-sig"),
            file_name="closings.csv",
            mime="text/csv",
        )
        d2.download_button(
            label="📥 엑셀 다운로드",
            data=ClosingExcelExporter().to_bytes(ctx.records, metrics),
            file_name="closings.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

with right:
    st.subheader(f"📈 최근 {ctx.config.recent_orders_limit}건 매출")
    points = ctx.recent_sales()
    if points:
        st.plotly_chart(build_sales_chart(points, symbol), use_container_width=True)
    else:
        st.caption("차트에 표시할 주문이 없습니다.")

    render_health_card(ctx.health())

st.markdown("---")

# ============================================================
# 새 마감 등록
# ============================================================
st.subheader("➕ 새 마감 등록")

with st.form("new_closing", clear_on_submit=True):
    f1, f2 = st.columns(2)
    order_id = f1.text_input("주문번호")
    product_name = f2.text_input("상품명 / SKU")

    f3, f4 = st.columns(2)
    sale_price = f3.text_input(f"판매가 ({symbol})", placeholder="0,00")
    product_cost = f4.text_input(f"상품 원가 ({symbol})", placeholder="0,00")

    f5, f6 = st.columns(2)
    commission_rate = f5.number_input(
        "Shopee 수수료율 (%)",
        min_value=0.0,
        value=float(ctx.config.default_commission_rate),
        step=0.5,
    )
    fixed_fee = f6.number_input(
        f"고정 수수료 ({symbol})",
        min_value=0.0,
        value=float(ctx.config.default_fixed_fee),
        step=0.5,
    )

    submitted = st.form_submit_button(
        "저장",
        type="primary",
        disabled=not ctx.writes_enabled,
    )

if submitted:
    result = run(ctx.submit_closing({
        "order_id": order_id,
        "product_name": product_name,
        "sale_price": sale_price,
        "product_cost": product_cost,
        "commission_rate": str(commission_rate),
        "fixed_fee": str(fixed_fee),
    }))
    if result.ok:
        st.session_state.flash = ("success", f"{result.record.order_id} 저장되었습니다.")
        st.rerun()
    else:
        st.error(f"저장 실패: {result.message}")

# ============================================================
# 사이드바
# ============================================================
st.sidebar.header("⚙️ 상태")
if ctx.session is not None:
    st.sidebar.caption(f"사용자: `{ctx.session.user_id}`")
if st.sidebar.button("🔄 새로고침"):
    st.rerun()

summary = ctx.error_handler.get_error_summary()
if summary["total_errors"]:
    with st.sidebar.expander(f"⚠️ 최근 오류 ({summary['total_errors']})"):
        for err in summary.get("recent_errors", []):
            st.caption(f"{err['time'][:19]} · {err['message']}")
