"""
ShopeeFlow - Shopee 판매자용 주문 마감(closing) 손익 대시보드

구성:
- domain: 순수 손익 집계 로직
- services: 목록 동기화 + 대시보드 컨텍스트
- api: Supabase / 메모리 저장소와 인증
- ui / cli: Streamlit 화면과 명령줄 도구
"""

__version__ = "1.0.0"
