"""scan_progress テーブルの CRUD。セッションごとに1行（最新のみ保持）。"""
from __future__ import annotations

import sqlite3
from typing import Optional

from scanledger.store.models import ProgressRow, ProgressUpdate


def upsert_progress(
    conn: sqlite3.Connection, session_id: str, progress: ProgressUpdate, updated_at: str
) -> None:
    """進捗を登録または更新。"""
    conn.execute(
        """
        INSERT INTO scan_progress (
            session_id, current_store, current_item, total_items, last_updated
        ) VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(session_id) DO UPDATE SET
            current_store = excluded.current_store,
            current_item = excluded.current_item,
            total_items = excluded.total_items,
            last_updated = excluded.last_updated
        """,
        (session_id, progress.current_store, progress.current_item, progress.total_items, updated_at),
    )


def get_progress(conn: sqlite3.Connection, session_id: str) -> Optional[ProgressRow]:
    row = conn.execute(
        "SELECT * FROM scan_progress WHERE session_id = ?", (session_id,)
    ).fetchone()
    if not row:
        return None
    return ProgressRow(
        session_id=row["session_id"],
        current_store=row["current_store"],
        current_item=row["current_item"] or 0,
        total_items=row["total_items"] or 0,
        last_updated=row["last_updated"],
    )
