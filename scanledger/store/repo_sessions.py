"""scan_sessions テーブルの CRUD と、セッション単位の連鎖削除。

コミットは呼び出し側（SessionStore）のトランザクションで行う。
"""
from __future__ import annotations

import sqlite3
from typing import Any, Optional

from scanledger.store.models import (
    STATUS_COMPLETED,
    STATUS_RUNNING,
    DeletionSummary,
    SessionRow,
    SessionSummaryRow,
)


def _row_to_session(row: sqlite3.Row) -> SessionRow:
    return SessionRow(
        id=row["id"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        total_items=row["total_items"] or 0,
        processed_items=row["processed_items"] or 0,
        success_count=row["success_count"] or 0,
        failed_count=row["failed_count"] or 0,
        status=row["status"],
    )


def insert_session(
    conn: sqlite3.Connection, session_id: str, total_items: int, started_at: str
) -> None:
    """新規セッションを running で登録。id 重複時は IntegrityError。"""
    conn.execute(
        "INSERT INTO scan_sessions (id, started_at, total_items, status) VALUES (?, ?, ?, ?)",
        (session_id, started_at, total_items, STATUS_RUNNING),
    )


def get_session(conn: sqlite3.Connection, session_id: str) -> Optional[SessionRow]:
    row = conn.execute("SELECT * FROM scan_sessions WHERE id = ?", (session_id,)).fetchone()
    return _row_to_session(row) if row else None


def complete_session(conn: sqlite3.Connection, session_id: str, completed_at: str) -> bool:
    """
    セッションを completed にし、結果件数を集計して保存する。
    completed_at は最初の完了時刻を保持（2回目以降は上書きしない）。
    """
    cursor = conn.execute(
        """
        UPDATE scan_sessions SET
            completed_at = COALESCE(completed_at, ?),
            status = ?,
            processed_items = (SELECT COUNT(*) FROM scan_results WHERE session_id = ?),
            success_count = (
                SELECT COUNT(*) FROM scan_results WHERE session_id = ? AND success = 1
            ),
            failed_count = (
                SELECT COUNT(*) FROM scan_results WHERE session_id = ? AND success = 0
            )
        WHERE id = ?
        """,
        (completed_at, STATUS_COMPLETED, session_id, session_id, session_id, session_id),
    )
    return cursor.rowcount > 0


def list_sessions_with_counts(conn: sqlite3.Connection) -> list[SessionSummaryRow]:
    """全セッションを結果件数付きで新しい順に取得。"""
    rows = conn.execute(
        """
        SELECT
            s.id, s.started_at, s.completed_at, s.total_items, s.status,
            COUNT(r.id) AS result_count,
            COALESCE(SUM(CASE WHEN r.success = 1 THEN 1 ELSE 0 END), 0) AS success_count,
            COALESCE(SUM(CASE WHEN r.success = 0 THEN 1 ELSE 0 END), 0) AS failed_count
        FROM scan_sessions s
        LEFT JOIN scan_results r ON s.id = r.session_id
        GROUP BY s.id
        ORDER BY s.started_at DESC, s.id DESC
        """
    ).fetchall()
    return [
        SessionSummaryRow(
            id=r["id"],
            started_at=r["started_at"],
            completed_at=r["completed_at"],
            total_items=r["total_items"] or 0,
            status=r["status"],
            result_count=r["result_count"],
            success_count=r["success_count"],
            failed_count=r["failed_count"],
        )
        for r in rows
    ]


def count_sessions(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM scan_sessions").fetchone()[0]


def session_date_range(conn: sqlite3.Connection) -> tuple[Optional[str], Optional[str]]:
    """(最古, 最新) の started_at。"""
    row = conn.execute(
        "SELECT MIN(started_at) AS oldest, MAX(started_at) AS newest FROM scan_sessions"
    ).fetchone()
    return row["oldest"], row["newest"]


def _delete_cascade(
    conn: sqlite3.Connection, selector_sql: str, args: tuple[Any, ...]
) -> DeletionSummary:
    """
    selector_sql（scan_sessions の id を返す SELECT）に該当するセッションを
    results → progress → sessions の順に削除する。
    """
    cursor = conn.execute(
        f"DELETE FROM scan_results WHERE session_id IN ({selector_sql})", args
    )
    deleted_results = cursor.rowcount
    conn.execute(f"DELETE FROM scan_progress WHERE session_id IN ({selector_sql})", args)
    cursor = conn.execute(f"DELETE FROM scan_sessions WHERE id IN ({selector_sql})", args)
    return DeletionSummary(deleted_sessions=cursor.rowcount, deleted_results=deleted_results)


def delete_session_cascade(conn: sqlite3.Connection, session_id: str) -> DeletionSummary:
    return _delete_cascade(conn, "SELECT ?", (session_id,))


def delete_sessions_started_before(
    conn: sqlite3.Connection, cutoff_iso: str
) -> DeletionSummary:
    """started_at < cutoff のセッションを削除。"""
    return _delete_cascade(
        conn, "SELECT id FROM scan_sessions WHERE started_at < ?", (cutoff_iso,)
    )


def delete_sessions_beyond_rank(conn: sqlite3.Connection, keep: int) -> DeletionSummary:
    """
    started_at 降順（同時刻は id 降順）で keep 件目より後ろのセッションを削除。
    keep 件以下しかなければ何もしない。
    """
    return _delete_cascade(
        conn,
        "SELECT id FROM scan_sessions ORDER BY started_at DESC, id DESC LIMIT -1 OFFSET ?",
        (keep,),
    )
