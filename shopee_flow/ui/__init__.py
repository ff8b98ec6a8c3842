"""UI 모듈 (Streamlit)"""
