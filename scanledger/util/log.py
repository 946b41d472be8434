"""簡易ロギング。クリーンアップ結果と DB 統計を必ず出せるようにする。"""
import logging
import sys
from typing import Optional


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def log_cleanup_summary(
    logger: logging.Logger,
    policy: str,
    deleted_sessions: int,
    deleted_results: int,
) -> None:
    logger.info(
        "cleanup_summary policy=%s deleted_sessions=%s deleted_results=%s",
        policy,
        deleted_sessions,
        deleted_results,
    )


def log_stats(
    logger: logging.Logger,
    label: str,
    session_count: int,
    result_count: int,
    file_size_mb: float,
    oldest_session: Optional[str] = None,
    newest_session: Optional[str] = None,
) -> None:
    logger.info(
        "db_stats label=%s sessions=%s results=%s size_mb=%.2f oldest=%s newest=%s",
        label,
        session_count,
        result_count,
        file_size_mb,
        oldest_session or "N/A",
        newest_session or "N/A",
    )
