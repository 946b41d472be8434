"""CLI 表示用データ取得（セッション一覧・統計）。"""
from __future__ import annotations

import pandas as pd

from scanledger.store import DatabaseStats, SessionStore


def get_sessions_dataframe(store: SessionStore) -> pd.DataFrame:
    """セッション一覧を DataFrame で取得。常にDBから最新を読み込む。"""
    sessions = store.get_all_sessions()
    if not sessions:
        return pd.DataFrame()
    data = [
        {
            "Session ID": s.id,
            "Started": s.started_at,
            "Completed": s.completed_at or "running",
            "Status": s.status,
            "Total Items": s.total_items,
            "Results": s.result_count,
            "Success": s.success_count,
            "Failed": s.failed_count,
        }
        for s in sessions
    ]
    return pd.DataFrame(data)


def stats_to_series(stats: DatabaseStats) -> pd.Series:
    return pd.Series(
        {
            "Sessions": stats.session_count,
            "Results": stats.result_count,
            "Size (bytes)": stats.file_size_bytes,
            "Size (MB)": f"{stats.file_size_mb:.2f}",
            "Oldest": stats.oldest_session or "N/A",
            "Newest": stats.newest_session or "N/A",
        }
    )
