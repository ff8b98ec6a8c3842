"""
styles.py - UI 스타일 유틸리티

- Shopee 브랜드 컬러
- Plotly 매출 차트
- 건전성 카드 / 설정 배너
"""

from typing import Sequence

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from ..domain.models import HealthReport, MarginHealth, OrderRecord, SalesPoint


# ============================================================
# 색상 팔레트
# ============================================================
COLORS = {
    "primary": "#EE4D2D",        # Shopee Orange
    "primary_light": "#FFF1EE",
    "success": "#4CAF50",
    "warning": "#FFC107",
    "danger": "#F44336",
    "text_main": "#191F28",
    "text_sub": "#8B95A1",
    "card_bg": "#FFFFFF",
    "border": "#E5E8EB",
}

RADIUS = {"sm": "8px", "md": "12px"}
SHADOW = "0 4px 20px rgba(0, 0, 0, 0.05)"

HEALTH_COLORS = {
    MarginHealth.HEALTHY: COLORS["success"],
    MarginHealth.WARNING: COLORS["warning"],
    MarginHealth.DANGER: COLORS["danger"],
}

RECORD_COLUMNS = ["주문번호", "상품명", "판매가", "원가", "수수료", "순이익", "등록일시"]


def inject_custom_css():
    """앱 시작 시 호출 - 전역 CSS 주입"""
    st.markdown(f"""
    <style>
    [data-testid="stMetric"] {{
        background: {COLORS['card_bg']};
        border-radius: {RADIUS['md']};
        padding: 16px 20px;
        box-shadow: {SHADOW};
        border: 1px solid {COLORS['border']};
    }}

    .stButton > button[kind="primary"] {{
        background-color: {COLORS['primary']};
        border: none;
    }}
    </style>
    """, unsafe_allow_html=True)


# ============================================================
# 데이터 변환 (Streamlit 없이 테스트 가능)
# ============================================================
def records_dataframe(records: Sequence[OrderRecord]) -> pd.DataFrame:
    """마감 목록 → 표시용 DataFrame (수수료 = Shopee + 고정)"""
    rows = [
        {
            "주문번호": r.order_id,
            "상품명": r.product_name,
            "판매가": float(r.sale_price),
            "원가": float(r.product_cost),
            "수수료": float(r.shopee_fee + r.fixed_fee),
            "순이익": float(r.profit),
            "등록일시": r.created_at.strftime("%Y-%m-%d %H:%M") if r.created_at else "",
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def build_sales_chart(points: Sequence[SalesPoint], symbol: str = "R$") -> go.Figure:
    """최근 주문 매출 막대 차트"""
    fig = go.Figure(go.Bar(
        x=[p.order_id for p in points],
        y=[float(p.sale_price) for p in points],
        marker_color=COLORS["primary"],
        hovertemplate=f"<b>%{{x}}</b><br>{symbol} %{{y:,.2f}}<extra></extra>",
    ))
    fig.update_layout(
        height=260,
        margin=dict(t=20, b=20, l=20, r=20),
        paper_bgcolor="rgba(0,0,0,0)",
        xaxis=dict(type="category", title=None),
        yaxis=dict(title=None, showgrid=True, gridcolor=COLORS["border"]),
    )
    return fig


# ============================================================
# 커스텀 컴포넌트
# ============================================================
def render_config_banner(message: str):
    """백엔드 미설정 안내 배너"""
    st.error(
        f"⚠️ 저장소가 설정되지 않았습니다. 등록/삭제가 비활성화됩니다.\n\n{message}\n\n"
        "`.env`에 SUPABASE_URL과 SUPABASE_KEY를 설정하거나 SHOPEE_FLOW_MOCK=true 로 실행하세요."
    )


def render_health_card(report: HealthReport):
    """운영 건전성 카드"""
    color = HEALTH_COLORS[report.level]
    ratio = float(report.cost_ratio) * 100
    st.markdown(f"""
    <div style="
        border-left: 4px solid {color};
        border-radius: {RADIUS['md']};
        padding: 16px 20px;
        box-shadow: {SHADOW};
        background: {COLORS['card_bg']};
    ">
        <div style="font-weight: 700; color: {COLORS['text_main']};">운영 건전성</div>
        <div style="font-size: 13px; color: {COLORS['text_sub']}; margin-top: 6px;">
            원가 비중 {ratio:.1f}%
        </div>
    </div>
    """, unsafe_allow_html=True)

    st.progress(int(report.progress_percent), text=f"마진율 {float(report.margin):.1f}%")
    st.caption(report.message)
