"""
CLI エントリーポイント。DB 統計・セッション一覧・削除・保持ポリシーを処理。
"""
from __future__ import annotations

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Scan results ledger maintenance")
    parser.add_argument("--db", type=str, metavar="PATH", help="Database file (default: data dir)")
    parser.add_argument("--stats", action="store_true", help="Show database statistics")
    parser.add_argument("--sessions", action="store_true", help="List all scan sessions")
    parser.add_argument("--delete-session", type=str, metavar="SESSION_ID", help="Delete one session")
    parser.add_argument(
        "--cleanup",
        type=int,
        nargs="?",
        const=3,
        metavar="DAYS",
        help="Delete sessions older than DAYS days (default 3)",
    )
    parser.add_argument(
        "--keep-latest",
        type=int,
        nargs="?",
        const=10,
        metavar="N",
        help="Keep only the N most recent sessions (default 10)",
    )
    parser.add_argument(
        "--startup-maintenance",
        action="store_true",
        help="Run the startup cleanup (retention from config) and vacuum",
    )
    args = parser.parse_args(argv)

    actions = (
        args.stats,
        args.sessions,
        args.delete_session,
        args.cleanup is not None,
        args.keep_latest is not None,
        args.startup_maintenance,
    )
    if not any(actions):
        parser.print_help()
        return 0

    from scanledger import config
    from scanledger.commands import build_dispatcher
    from scanledger.commands.data_queries import get_sessions_dataframe, stats_to_series
    from scanledger.util.log import setup_logging

    setup_logging()
    dispatcher = build_dispatcher(args.db)
    exit_code = 0
    try:
        if args.startup_maintenance:
            days_to_keep, _ = config.retention_defaults(config.load_config())
            report = dispatcher.retention.startup_maintenance(days_to_keep)
            if report is None:
                exit_code = 1
            else:
                print(
                    f"Deleted {report.cleanup.deleted_sessions} sessions, "
                    f"{report.cleanup.deleted_results} results "
                    f"(saved {report.space_saved_mb:.2f} MB)"
                )
        if args.delete_session:
            exit_code |= _report(dispatcher.delete_session(args.delete_session))
        if args.cleanup is not None:
            exit_code |= _report(dispatcher.cleanup_old_sessions(args.cleanup))
        if args.keep_latest is not None:
            exit_code |= _report(dispatcher.keep_latest_scans(args.keep_latest))
        if args.stats:
            stats = dispatcher.stats.get_database_stats()
            print(stats_to_series(stats).to_string())
        if args.sessions:
            df = get_sessions_dataframe(dispatcher.store)
            print(df.to_string(index=False) if not df.empty else "No sessions")
    finally:
        dispatcher.store.close()
    return exit_code


def _report(result) -> int:
    if result.success:
        print(", ".join(f"{k}={v}" for k, v in result.data.items()))
        return 0
    print(f"Error: {result.error}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
