"""
管理コマンドの受け口。
ガード対象の操作はレート制限 → スキーマ検証を通ってからストアに到達する。
どのハンドラも例外を外に出さず、CommandResult（成功 or エラーメッセージ）を返す。
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from scanledger import config as config_module
from scanledger.commands.collaborators import ExportSink, ScannerFactory, ScanProducer
from scanledger.commands.recorder import ScanRecorder
from scanledger.errors import (
    NoActiveSessionError,
    NotFoundError,
    ScanLedgerError,
    TypeMismatchError,
    ValidationError,
)
from scanledger.gate import CommandGate, RateLimiter
from scanledger.maintenance import RetentionManager, StatsReporter
from scanledger.store import SessionStore
from scanledger.util.datetime_utils import export_timestamp

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, **self.data}
        return {"success": False, "error": self.error}


def _ok(**data: Any) -> CommandResult:
    return CommandResult(success=True, data=data)


def _require_int(name: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeMismatchError(name, "integer")
    return value


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeMismatchError(name, "string")
    if not value:
        raise ValidationError(f"Field {name} must be non-empty", name)
    return value


class CommandDispatcher:
    def __init__(
        self,
        store: SessionStore,
        gate: CommandGate,
        rate_limiter: RateLimiter,
        *,
        retention: Optional[RetentionManager] = None,
        stats: Optional[StatsReporter] = None,
        scanner_factory: Optional[ScannerFactory] = None,
        exporter: Optional[ExportSink] = None,
        config_path: Optional[str] = None,
        export_dir: Optional[Path] = None,
    ) -> None:
        self.store = store
        self.gate = gate
        self.rate_limiter = rate_limiter
        self.stats = stats or StatsReporter(store)
        self.retention = retention or RetentionManager(store, self.stats)
        self.scanner_factory = scanner_factory
        self.exporter = exporter
        self.config_path = config_path
        self.export_dir = export_dir
        self.current_scanner: Optional[ScanProducer] = None
        self.current_session_id: Optional[str] = None
        self.on_progress: Optional[Callable[[dict[str, Any]], None]] = None
        self.on_result: Optional[Callable[[dict[str, Any]], None]] = None

    def _run(self, operation: str, handler: Callable[[], CommandResult]) -> CommandResult:
        try:
            return handler()
        except ScanLedgerError as e:
            logger.warning("%s rejected: %s", operation, e)
            return CommandResult(success=False, error=str(e))
        except Exception as e:
            logger.exception("%s failed", operation)
            return CommandResult(success=False, error=str(e))

    # --- configuration ------------------------------------------------------

    def load_config(self) -> CommandResult:
        return self._run(
            "load-config", lambda: _ok(config=config_module.load_config(self.config_path))
        )

    def save_config(self, config: Any) -> CommandResult:
        def handler() -> CommandResult:
            self.rate_limiter.check("save-config")
            validated = self.gate.validate("save-config", {"config": config})
            path = config_module.save_config(dict(validated["config"]), self.config_path)
            logger.info("Configuration saved to %s", path)
            return _ok(path=path)

        return self._run("save-config", handler)

    # --- scan ---------------------------------------------------------------

    def start_scan(self, payload: Any) -> CommandResult:
        def handler() -> CommandResult:
            self.rate_limiter.check("start-scan")
            validated = self.gate.validate("start-scan", payload)
            logger.info("Scan configuration validated")
            if self.scanner_factory is None:
                raise ScanLedgerError("No scanner available")

            scanner = self.scanner_factory(validated)
            recorder = ScanRecorder(
                self.store, on_progress=self.on_progress, on_result=self.on_result
            )
            self.current_scanner = scanner
            try:
                outcome = scanner.start_scan(recorder)
            finally:
                self.current_scanner = None
                # 中止・失敗しても登録済みの結果は残す
                recorder.finish()
            self.current_session_id = outcome.session_id

            data: dict[str, Any] = {
                "message": "Scan completed successfully",
                "session_id": outcome.session_id,
                "results_count": self.store.get_result_count(outcome.session_id),
                "stats": outcome.stats,
            }
            if self.exporter is not None:
                export_dir = self.export_dir or config_module.export_dir()
                target = export_dir / f"Scan_Results_{export_timestamp()}.xlsx"
                data["export_path"] = self.exporter.export(
                    self.store, outcome.session_id, str(target)
                )
            logger.info("Scan completed successfully: %s", outcome.session_id)
            return _ok(**data)

        return self._run("start-scan", handler)

    def stop_scan(self) -> CommandResult:
        def handler() -> CommandResult:
            self.rate_limiter.check("stop-scan")
            scanner = self.current_scanner
            if scanner is None:
                logger.info("No active scanner to stop")
                return _ok(message="No active scan to stop")
            logger.info("Stopping current scanner...")
            scanner.stop_scan()
            self.current_scanner = None
            return _ok(message="Scan stopped successfully")

        return self._run("stop-scan", handler)

    # --- export -------------------------------------------------------------

    def export_results(self, export_path: Any) -> CommandResult:
        def handler() -> CommandResult:
            self.rate_limiter.check("export-results")
            validated = self.gate.validate("export-results", {"exportPath": export_path})
            if not self.current_session_id:
                raise NoActiveSessionError()
            count = self.store.get_result_count(self.current_session_id)
            if count == 0:
                raise NotFoundError("No results to export")
            if self.exporter is None:
                raise ScanLedgerError("No exporter available")
            path = self.exporter.export(
                self.store, self.current_session_id, validated["exportPath"]
            )
            return _ok(file_path=path, results_count=count)

        return self._run("export-results", handler)

    # --- database management ------------------------------------------------

    def get_database_stats(self) -> CommandResult:
        return self._run(
            "get-database-stats", lambda: _ok(stats=asdict(self.stats.get_database_stats()))
        )

    def get_all_sessions(self) -> CommandResult:
        return self._run(
            "get-all-sessions",
            lambda: _ok(sessions=[asdict(s) for s in self.store.get_all_sessions()]),
        )

    def delete_session(self, session_id: Any) -> CommandResult:
        def handler() -> CommandResult:
            sid = _require_str("session_id", session_id)
            deleted_results = self.store.delete_session(sid)
            self.retention.vacuum()
            if self.current_session_id == sid:
                self.current_session_id = None
            return _ok(deleted_results=deleted_results)

        return self._run("delete-session", handler)

    def cleanup_old_sessions(self, days_to_keep: Any = 3) -> CommandResult:
        def handler() -> CommandResult:
            days = _require_int("days_to_keep", days_to_keep)
            summary = self.retention.cleanup_old_sessions(days)
            vacuumed = self.retention.reclaim_if_needed(summary)
            return _ok(vacuumed=vacuumed, **asdict(summary))

        return self._run("cleanup-old-sessions", handler)

    def keep_latest_scans(self, count: Any = 10) -> CommandResult:
        def handler() -> CommandResult:
            n = _require_int("count", count)
            if n < 1:
                raise ValidationError("Field count must be at least 1", "count")
            summary = self.retention.keep_latest_scans(n)
            vacuumed = self.retention.reclaim_if_needed(summary)
            return _ok(vacuumed=vacuumed, **asdict(summary))

        return self._run("keep-latest-scans", handler)
