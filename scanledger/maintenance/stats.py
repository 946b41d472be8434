"""DB 統計（セッション数・結果数・ファイルサイズ）。読み取りのみ、キャッシュしない。"""
from __future__ import annotations

from scanledger.store import DatabaseStats, SessionStore

BYTES_PER_MB = 1024 * 1024


class StatsReporter:
    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def get_database_stats(self) -> DatabaseStats:
        size = self.store.file_size_bytes()
        oldest, newest = self.store.session_date_range()
        return DatabaseStats(
            session_count=self.store.count_sessions(),
            result_count=self.store.count_all_results(),
            file_size_bytes=size,
            file_size_mb=round(size / BYTES_PER_MB, 2),
            oldest_session=oldest,
            newest_session=newest,
        )
