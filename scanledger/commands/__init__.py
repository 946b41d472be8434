"""
管理コマンドの集約エントリポイント。
"""
from __future__ import annotations

from scanledger.commands.collaborators import ExportSink, ScanEvents, ScanOutcome, ScanProducer
from scanledger.commands.dispatcher import CommandDispatcher, CommandResult
from scanledger.commands.recorder import ScanRecorder
from scanledger.commands.services import build_dispatcher

__all__ = [
    "CommandDispatcher",
    "CommandResult",
    "ExportSink",
    "ScanEvents",
    "ScanOutcome",
    "ScanProducer",
    "ScanRecorder",
    "build_dispatcher",
]
