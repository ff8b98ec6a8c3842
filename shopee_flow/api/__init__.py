"""API 모듈 (외부 협력자: 저장소 / 인증)"""
from .base import AuthProvider, RecordStore, ChangeCallback, SessionCallback
from .memory_store import InMemoryAuthProvider, InMemoryRecordStore
from .supabase_client import (
    Backend,
    SupabaseAuthProvider,
    SupabaseRecordStore,
    create_backend,
)

__all__ = [
    "AuthProvider",
    "RecordStore",
    "ChangeCallback",
    "SessionCallback",
    "InMemoryAuthProvider",
    "InMemoryRecordStore",
    "Backend",
    "SupabaseAuthProvider",
    "SupabaseRecordStore",
    "create_backend",
]
