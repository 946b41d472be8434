"""scan_results テーブルの CRUD。可変構造の4列は JSON 文字列で保存する。"""
from __future__ import annotations

import json
import sqlite3
from typing import Any, Callable, Iterator, Optional

from scanledger.store.models import ResultRow, ScanResultInput, SessionStatistics


def _loads(value: Optional[str], empty: Any) -> Any:
    return json.loads(value) if value else empty


def _row_to_result(row: sqlite3.Row) -> ResultRow:
    return ResultRow(
        id=row["id"],
        session_id=row["session_id"],
        store=row["store"],
        asin=row["asin"],
        success=bool(row["success"]),
        timestamp=row["timestamp"],
        extracted_name=row["extracted_name"],
        name=row["name"],
        price=row["price"],
        image_url=row["image_url"],
        product_url=row["product_url"],
        load_time=row["load_time"],
        error_message=row["error_message"],
        retry_count=row["retry_count"] or 0,
        variations=_loads(row["variations"], []),
        bundle_parts=_loads(row["bundle_parts"], []),
        extraction_details=_loads(row["extraction_details"], {}),
        merchandising_data=_loads(row["merchandising_data"], {}),
    )


def insert_result(
    conn: sqlite3.Connection, session_id: str, result: ScanResultInput, timestamp: str
) -> int:
    """結果を1件登録し id を返す。JSON 化できない値は TypeError / ValueError。"""
    params = (
        session_id,
        result.store,
        result.asin,
        1 if result.success else 0,
        result.timestamp or timestamp,
        result.extracted_name,
        result.name,
        result.price,
        result.image_url,
        result.product_url,
        result.load_time,
        result.error_message,
        result.retry_count or 0,
        json.dumps(result.variations or []),
        json.dumps(result.bundle_parts or []),
        json.dumps(result.extraction_details or {}),
        json.dumps(result.merchandising_data or {}),
    )
    cursor = conn.execute(
        """
        INSERT INTO scan_results (
            session_id, store, asin, success, timestamp, extracted_name, name, price,
            image_url, product_url, load_time, error_message, retry_count,
            variations, bundle_parts, extraction_details, merchandising_data
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        params,
    )
    return cursor.lastrowid


def count_results(conn: sqlite3.Connection, session_id: Optional[str] = None) -> int:
    """session_id 指定時はそのセッションの件数、未指定なら全件数。"""
    if session_id is None:
        return conn.execute("SELECT COUNT(*) FROM scan_results").fetchone()[0]
    return conn.execute(
        "SELECT COUNT(*) FROM scan_results WHERE session_id = ?", (session_id,)
    ).fetchone()[0]


def get_results_range(
    conn: sqlite3.Connection, session_id: str, offset: int, limit: int
) -> list[ResultRow]:
    """新しい順にページ取得。"""
    rows = conn.execute(
        "SELECT * FROM scan_results WHERE session_id = ? ORDER BY id DESC LIMIT ? OFFSET ?",
        (session_id, limit, offset),
    ).fetchall()
    return [_row_to_result(r) for r in rows]


def iter_results(conn: sqlite3.Connection, session_id: str) -> Iterator[ResultRow]:
    """登録順に1行ずつ返す。全件をメモリに載せない。"""
    cursor = conn.execute(
        "SELECT * FROM scan_results WHERE session_id = ? ORDER BY id", (session_id,)
    )
    for row in cursor:
        yield _row_to_result(row)


def stream_results(
    conn: sqlite3.Connection, session_id: str, visit: Callable[[ResultRow], Any]
) -> int:
    count = 0
    for result in iter_results(conn, session_id):
        visit(result)
        count += 1
    return count


def get_statistics(conn: sqlite3.Connection, session_id: str) -> SessionStatistics:
    row = conn.execute(
        """
        SELECT
            COUNT(*) AS total,
            COALESCE(SUM(CASE WHEN success = 1 THEN 1 ELSE 0 END), 0) AS success_count,
            COALESCE(SUM(CASE WHEN success = 0 THEN 1 ELSE 0 END), 0) AS failed_count,
            AVG(load_time) AS avg_load_time,
            MIN(timestamp) AS started_at,
            MAX(timestamp) AS last_updated
        FROM scan_results
        WHERE session_id = ?
        """,
        (session_id,),
    ).fetchone()
    return SessionStatistics(
        total=row["total"],
        success_count=row["success_count"],
        failed_count=row["failed_count"],
        avg_load_time=row["avg_load_time"],
        started_at=row["started_at"],
        last_updated=row["last_updated"],
    )
