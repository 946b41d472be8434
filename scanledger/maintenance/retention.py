"""
保持ポリシー（日数 / 件数）による古いセッションの削除と領域回収。
削除は SessionStore のトランザクション付きプリミティブ経由のみ。
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from scanledger.errors import ScanLedgerError
from scanledger.maintenance.stats import StatsReporter
from scanledger.store import DatabaseStats, DeletionSummary, SessionStore
from scanledger.util.datetime_utils import to_iso
from scanledger.util.log import log_cleanup_summary, log_stats

logger = logging.getLogger(__name__)

DEFAULT_DAYS_TO_KEEP = 3
DEFAULT_KEEP_LATEST = 10


def _cutoff(now: datetime, days_to_keep: int) -> datetime:
    """now - days_to_keep 日。表現できない範囲は datetime の端に丸める。"""
    try:
        return now - timedelta(days=days_to_keep)
    except OverflowError:
        edge = datetime.min if days_to_keep > 0 else datetime.max
        return edge.replace(tzinfo=timezone.utc)


@dataclass
class MaintenanceReport:
    """起動時メンテナンスの結果。"""

    before: DatabaseStats
    after: DatabaseStats
    cleanup: DeletionSummary
    vacuumed: bool

    @property
    def space_saved_mb(self) -> float:
        return round(self.before.file_size_mb - self.after.file_size_mb, 2)


class RetentionManager:
    def __init__(self, store: SessionStore, stats: Optional[StatsReporter] = None) -> None:
        self.store = store
        self.stats = stats or StatsReporter(store)

    def cleanup_old_sessions(self, days_to_keep: int = DEFAULT_DAYS_TO_KEEP) -> DeletionSummary:
        """
        started_at が (現在 - days_to_keep 日) より前のセッションを削除する。
        0 以下も有効（現在より前のものをすべて削除）。
        """
        cutoff = _cutoff(self.store.clock(), days_to_keep)
        if days_to_keep <= 0:
            logger.warning(
                "days_to_keep=%d: all sessions started before %s will be deleted",
                days_to_keep,
                to_iso(cutoff),
            )
        logger.info(
            "Cleaning up sessions older than %d days (before %s)...",
            days_to_keep,
            to_iso(cutoff),
        )
        summary = self.store.delete_sessions_started_before(cutoff)
        log_cleanup_summary(
            logger, f"older_than_{days_to_keep}d", summary.deleted_sessions, summary.deleted_results
        )
        return summary

    def keep_latest_scans(self, count: int = DEFAULT_KEEP_LATEST) -> DeletionSummary:
        """
        新しい順に count 件のセッションだけ残す。
        同時刻のセッションは id の辞書順で大きい方を新しいとみなす。
        """
        if count < 1:
            raise ValueError(f"count must be at least 1 (got {count})")
        logger.info("Keeping only the latest %d scan sessions...", count)
        summary = self.store.delete_sessions_beyond_rank(count)
        if not summary.anything_deleted:
            logger.info("%d sessions or fewer exist, nothing to clean up", count)
        log_cleanup_summary(
            logger, f"keep_latest_{count}", summary.deleted_sessions, summary.deleted_results
        )
        return summary

    def vacuum(self) -> None:
        logger.info("Vacuuming database to reclaim disk space...")
        self.store.vacuum()

    def reclaim_if_needed(self, summary: DeletionSummary) -> bool:
        """削除があった場合のみ VACUUM。実行したら True。"""
        if not summary.anything_deleted:
            return False
        self.vacuum()
        return True

    def startup_maintenance(
        self, days_to_keep: int = DEFAULT_DAYS_TO_KEEP
    ) -> Optional[MaintenanceReport]:
        """
        起動時のクリーンアップ。統計 → 古いセッション削除 → 必要なら VACUUM → 統計。
        失敗してもログのみで起動は継続させる（None を返す）。
        """
        logger.info("Performing database cleanup...")
        try:
            before = self.stats.get_database_stats()
            log_stats(
                logger,
                "before_cleanup",
                before.session_count,
                before.result_count,
                before.file_size_mb,
                before.oldest_session,
                before.newest_session,
            )
            summary = self.cleanup_old_sessions(days_to_keep)
            vacuumed = self.reclaim_if_needed(summary)
            after = self.stats.get_database_stats()
        except (ScanLedgerError, sqlite3.Error):
            logger.exception("Database cleanup failed")
            return None
        report = MaintenanceReport(before=before, after=after, cleanup=summary, vacuumed=vacuumed)
        log_stats(
            logger,
            "after_cleanup",
            after.session_count,
            after.result_count,
            after.file_size_mb,
            after.oldest_session,
            after.newest_session,
        )
        logger.info("Database cleanup complete. Space saved: %.2f MB", report.space_saved_mb)
        return report
