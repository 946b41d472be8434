"""
スキャン結果ストア。
scan_sessions / scan_results / scan_progress への読み書きを一元提供する。
1インスタンス = 1接続。複数テーブルにまたがる変更はすべて1トランザクション。
"""
from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, Optional

from scanledger import config
from scanledger.errors import (
    BatchWriteError,
    ConstraintError,
    DuplicateSessionError,
    StorageError,
    WriteError,
)
from scanledger.store import db, repo_progress, repo_results, repo_sessions
from scanledger.store.models import (
    DeletionSummary,
    ProgressRow,
    ProgressUpdate,
    ResultRow,
    ScanResultInput,
    SessionRow,
    SessionStatistics,
    SessionSummaryRow,
)
from scanledger.util.datetime_utils import to_iso, utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _translate_write_error(e: Exception) -> StorageError:
    if isinstance(e, sqlite3.IntegrityError):
        return ConstraintError(str(e))
    return WriteError(str(e))


class SessionStore:
    """スキャンセッション・結果・進捗の永続化。"""

    def __init__(
        self,
        db_path: Optional[str] = None,
        *,
        conn: Optional[sqlite3.Connection] = None,
        clock: Clock = utc_now,
    ) -> None:
        if conn is not None:
            self.db_path = db_path or db.MEMORY
        else:
            self.db_path = db_path or config.db_path()
        try:
            self.conn = conn or db.get_connection(self.db_path)
            db.init_schema(self.conn)
        except sqlite3.Error as e:
            raise StorageError(f"Database connection error: {e}") from e
        self.clock = clock
        logger.info("Database connected: %s", self.db_path)

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.conn.close()
        logger.debug("Database closed")

    def now_iso(self) -> str:
        return to_iso(self.clock())

    # --- sessions -----------------------------------------------------------

    def create_session(self, session_id: str, total_items: int) -> str:
        """新規セッションを running で作成。id 重複は DuplicateSessionError。"""
        try:
            with db.transaction(self.conn):
                repo_sessions.insert_session(self.conn, session_id, total_items, self.now_iso())
        except sqlite3.IntegrityError as e:
            raise DuplicateSessionError(session_id) from e
        except sqlite3.Error as e:
            raise WriteError(str(e)) from e
        logger.info("Session created: %s (total_items=%d)", session_id, total_items)
        return session_id

    def get_session(self, session_id: str) -> Optional[SessionRow]:
        return repo_sessions.get_session(self.conn, session_id)

    def get_all_sessions(self) -> list[SessionSummaryRow]:
        return repo_sessions.list_sessions_with_counts(self.conn)

    def complete_session(self, session_id: str) -> None:
        """完了にする。2回目以降は何も変わらない（完了時刻は最初のまま）。"""
        try:
            with db.transaction(self.conn):
                found = repo_sessions.complete_session(self.conn, session_id, self.now_iso())
        except sqlite3.Error as e:
            raise WriteError(str(e)) from e
        if not found:
            logger.warning("complete_session: session %s not found", session_id)

    def delete_session(self, session_id: str) -> int:
        """
        セッションと紐づく結果・進捗を削除し、削除した結果件数を返す。
        存在しない id はエラーにせず 0 を返す。
        """
        try:
            with db.transaction(self.conn):
                summary = repo_sessions.delete_session_cascade(self.conn, session_id)
        except sqlite3.Error as e:
            raise StorageError(f"Error deleting session {session_id}: {e}") from e
        if summary.deleted_sessions == 0:
            logger.info("Session %s not found", session_id)
        else:
            logger.info(
                "Deleted session %s (%d results)", session_id, summary.deleted_results
            )
        return summary.deleted_results

    # --- results ------------------------------------------------------------

    def insert_result(self, session_id: str, result: ScanResultInput) -> int:
        """結果を1件登録し id を返す。"""
        try:
            with db.transaction(self.conn):
                return repo_results.insert_result(
                    self.conn, session_id, result, self.now_iso()
                )
        except sqlite3.Error as e:
            raise _translate_write_error(e) from e
        except (TypeError, ValueError) as e:
            raise WriteError(f"Cannot serialize result payload: {e}") from e

    def insert_batch(self, session_id: str, results: Iterable[ScanResultInput]) -> int:
        """
        渡された順に全件登録する。1件でも失敗したらバッチ全体をロールバックし、
        ロールバック完了後に BatchWriteError（失敗件数付き）を送出する。
        """
        results = list(results)
        if not results:
            return 0
        failures: list[Exception] = []
        timestamp = self.now_iso()
        try:
            with db.transaction(self.conn):
                for result in results:
                    try:
                        repo_results.insert_result(self.conn, session_id, result, timestamp)
                    except (sqlite3.Error, TypeError, ValueError) as e:
                        failures.append(e)
                if failures:
                    raise BatchWriteError(len(failures), len(results))
        except BatchWriteError:
            logger.error(
                "Batch insert rolled back: session=%s failed=%d/%d first_error=%s",
                session_id,
                len(failures),
                len(results),
                failures[0],
            )
            raise
        except sqlite3.Error as e:
            raise WriteError(str(e)) from e
        return len(results)

    def get_result_count(self, session_id: str) -> int:
        return repo_results.count_results(self.conn, session_id)

    def get_results_range(self, session_id: str, offset: int, limit: int) -> list[ResultRow]:
        return repo_results.get_results_range(self.conn, session_id, offset, limit)

    def iter_results(self, session_id: str) -> Iterator[ResultRow]:
        return repo_results.iter_results(self.conn, session_id)

    def stream_results(self, session_id: str, visit: Callable[[ResultRow], Any]) -> int:
        """登録順に visit を1行ずつ呼ぶ。呼び出した件数を返す。"""
        return repo_results.stream_results(self.conn, session_id, visit)

    def get_statistics(self, session_id: str) -> SessionStatistics:
        return repo_results.get_statistics(self.conn, session_id)

    # --- progress -----------------------------------------------------------

    def update_progress(self, session_id: str, progress: ProgressUpdate) -> None:
        try:
            with db.transaction(self.conn):
                repo_progress.upsert_progress(self.conn, session_id, progress, self.now_iso())
        except sqlite3.Error as e:
            raise _translate_write_error(e) from e

    def get_progress(self, session_id: str) -> Optional[ProgressRow]:
        return repo_progress.get_progress(self.conn, session_id)

    # --- retention primitives ----------------------------------------------

    def delete_sessions_started_before(self, cutoff: datetime) -> DeletionSummary:
        """started_at が cutoff より前のセッションを連鎖削除（1トランザクション）。"""
        try:
            with db.transaction(self.conn):
                return repo_sessions.delete_sessions_started_before(self.conn, to_iso(cutoff))
        except sqlite3.Error as e:
            raise StorageError(f"Error deleting old sessions: {e}") from e

    def delete_sessions_beyond_rank(self, keep: int) -> DeletionSummary:
        """新しい順に keep 件を残し、それ以外を連鎖削除（1トランザクション）。"""
        try:
            with db.transaction(self.conn):
                return repo_sessions.delete_sessions_beyond_rank(self.conn, keep)
        except sqlite3.Error as e:
            raise StorageError(f"Error deleting sessions beyond rank {keep}: {e}") from e

    def vacuum(self) -> None:
        """削除で空いた領域を回収する。書き込みトランザクション中は実行しない。"""
        if self.conn.in_transaction:
            raise StorageError("Cannot vacuum while a transaction is open")
        try:
            self.conn.execute("VACUUM")
        except sqlite3.Error as e:
            raise StorageError(f"Vacuum error: {e}") from e
        logger.info("Database vacuumed successfully")

    # --- footprint ----------------------------------------------------------

    def count_sessions(self) -> int:
        return repo_sessions.count_sessions(self.conn)

    def count_all_results(self) -> int:
        return repo_results.count_results(self.conn)

    def session_date_range(self) -> tuple[Optional[str], Optional[str]]:
        return repo_sessions.session_date_range(self.conn)

    def file_size_bytes(self) -> int:
        """DB ファイルのサイズ。メモリ DB や未作成なら 0。"""
        if self.db_path == db.MEMORY:
            return 0
        try:
            return os.path.getsize(self.db_path)
        except OSError:
            return 0
