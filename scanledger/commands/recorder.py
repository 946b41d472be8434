"""スキャナーのイベントをストアへ記録する。結果はまとめてバッチ登録。"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from scanledger.errors import BatchWriteError, StorageError
from scanledger.store import ProgressUpdate, ScanResultInput, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class ScanRecorder:
    """ScanEvents の実装。進捗は都度 upsert、結果は batch_size 件ごとに登録。"""

    def __init__(
        self,
        store: SessionStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_progress: Optional[Callable[[dict[str, Any]], None]] = None,
        on_result: Optional[Callable[[dict[str, Any]], None]] = None,
    ) -> None:
        self.store = store
        self.batch_size = batch_size
        self.on_progress = on_progress
        self.on_result = on_result
        self.session_id: Optional[str] = None
        self._pending: list[ScanResultInput] = []
        self.recorded = 0
        self.dropped = 0

    def session_started(self, session_id: str, total_items: int) -> None:
        self.store.create_session(session_id, total_items)
        self.session_id = session_id

    def progress(self, event: dict[str, Any]) -> None:
        if self.session_id is None:
            raise StorageError("progress received before session_started")
        self.store.update_progress(self.session_id, ProgressUpdate.from_event(event))
        if self.on_progress:
            self.on_progress(event)

    def result(self, event: dict[str, Any]) -> None:
        if self.session_id is None:
            raise StorageError("result received before session_started")
        self._pending.append(ScanResultInput.from_event(event))
        if len(self._pending) >= self.batch_size:
            self.flush()
        if self.on_result:
            self.on_result(event)

    def flush(self) -> int:
        """保留中の結果を登録。バッチが失敗したら1件ずつ登録し直し、失敗分は捨てる。"""
        if not self._pending or self.session_id is None:
            return 0
        pending, self._pending = self._pending, []
        try:
            inserted = self.store.insert_batch(self.session_id, pending)
        except BatchWriteError as e:
            logger.warning("%s; retrying %d results one by one", e, e.total)
            inserted = 0
            for result in pending:
                try:
                    self.store.insert_result(self.session_id, result)
                    inserted += 1
                except StorageError as row_error:
                    self.dropped += 1
                    logger.error(
                        "Dropped result store=%s asin=%s: %s",
                        result.store,
                        result.asin,
                        row_error,
                    )
        self.recorded += inserted
        return inserted

    def finish(self) -> None:
        """残りを登録してセッションを完了にする。"""
        self.flush()
        if self.session_id is not None:
            self.store.complete_session(self.session_id)
            logger.info(
                "scan_recorded session_id=%s recorded=%d dropped=%d",
                self.session_id,
                self.recorded,
                self.dropped,
            )
