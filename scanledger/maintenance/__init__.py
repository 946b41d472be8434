"""保守処理（保持ポリシー・統計）。"""
from __future__ import annotations

from scanledger.maintenance.retention import MaintenanceReport, RetentionManager
from scanledger.maintenance.stats import StatsReporter

__all__ = ["MaintenanceReport", "RetentionManager", "StatsReporter"]
