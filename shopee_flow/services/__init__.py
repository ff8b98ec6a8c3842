"""서비스 모듈 (동기화 + 대시보드 컨텍스트)"""
from .sync import RecordListState, RecordSynchronizer
from .dashboard import DashboardContext, SubmissionResult, open_dashboard

__all__ = [
    "RecordListState",
    "RecordSynchronizer",
    "DashboardContext",
    "SubmissionResult",
    "open_dashboard",
]
