"""
コマンド層の組み立て。
ストア・ゲート・レート制限・保守を一度だけ生成し、ディスパッチャに注入する。
"""
from __future__ import annotations

from typing import Optional

from scanledger import config
from scanledger.commands.collaborators import ExportSink, ScannerFactory
from scanledger.commands.dispatcher import CommandDispatcher
from scanledger.gate import RateLimiter, default_gate
from scanledger.maintenance import RetentionManager, StatsReporter
from scanledger.store import SessionStore


def build_dispatcher(
    db_path: Optional[str] = None,
    *,
    scanner_factory: Optional[ScannerFactory] = None,
    exporter: Optional[ExportSink] = None,
) -> CommandDispatcher:
    store = SessionStore(db_path)
    stats = StatsReporter(store)
    if exporter is None:
        from scanledger.output.excel_writer import ExcelExporter

        exporter = ExcelExporter()
    return CommandDispatcher(
        store,
        default_gate(config.allowed_directories()),
        RateLimiter(),
        retention=RetentionManager(store, stats),
        stats=stats,
        scanner_factory=scanner_factory,
        exporter=exporter,
        config_path=config.config_path(),
        export_dir=config.export_dir(),
    )
