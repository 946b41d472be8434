"""SQLite テーブル作成・接続・トランザクション。"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from scanledger import config

MEMORY = ":memory:"


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    path = db_path or config.db_path()
    if path != MEMORY:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    # トランザクション外でしか効かないので接続直後に設定
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS scan_sessions (
            id TEXT PRIMARY KEY,
            started_at TEXT NOT NULL,
            completed_at TEXT,
            total_items INTEGER DEFAULT 0,
            processed_items INTEGER DEFAULT 0,
            success_count INTEGER DEFAULT 0,
            failed_count INTEGER DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'running'
        );

        CREATE TABLE IF NOT EXISTS scan_results (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id TEXT NOT NULL,
            store TEXT NOT NULL,
            asin TEXT NOT NULL,
            success INTEGER NOT NULL,
            timestamp TEXT NOT NULL,

            extracted_name TEXT,
            name TEXT,
            price TEXT,
            image_url TEXT,
            product_url TEXT,

            load_time INTEGER,
            error_message TEXT,
            retry_count INTEGER DEFAULT 0,

            variations TEXT,
            bundle_parts TEXT,
            extraction_details TEXT,
            merchandising_data TEXT,

            FOREIGN KEY (session_id) REFERENCES scan_sessions(id)
        );

        CREATE TABLE IF NOT EXISTS scan_progress (
            session_id TEXT PRIMARY KEY,
            current_store TEXT,
            current_item INTEGER,
            total_items INTEGER,
            last_updated TEXT NOT NULL,
            FOREIGN KEY (session_id) REFERENCES scan_sessions(id)
        );

        CREATE INDEX IF NOT EXISTS idx_results_session ON scan_results(session_id);
        CREATE INDEX IF NOT EXISTS idx_results_store ON scan_results(store);
        CREATE INDEX IF NOT EXISTS idx_results_asin ON scan_results(asin);
        CREATE INDEX IF NOT EXISTS idx_results_success ON scan_results(success);
        CREATE INDEX IF NOT EXISTS idx_results_timestamp ON scan_results(timestamp);
        CREATE INDEX IF NOT EXISTS idx_sessions_started_at ON scan_sessions(started_at);
    """)
    conn.commit()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    ブロック全体を1トランザクションで実行。例外時はロールバックして再送出。
    既にトランザクション中なら外側に委ねる（commit / rollback しない）。
    """
    if conn.in_transaction:
        yield conn
        return
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()
