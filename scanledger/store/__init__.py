"""
ストアの集約エントリポイント。
scan_sessions / scan_results / scan_progress の操作を SessionStore で一元提供。
"""
from __future__ import annotations

from scanledger.store.models import (
    DatabaseStats,
    DeletionSummary,
    ProgressRow,
    ProgressUpdate,
    ResultRow,
    ScanResultInput,
    SessionRow,
    SessionStatistics,
    SessionSummaryRow,
)
from scanledger.store.session_store import SessionStore

__all__ = [
    "SessionStore",
    "DatabaseStats",
    "DeletionSummary",
    "ProgressRow",
    "ProgressUpdate",
    "ResultRow",
    "ScanResultInput",
    "SessionRow",
    "SessionStatistics",
    "SessionSummaryRow",
]
