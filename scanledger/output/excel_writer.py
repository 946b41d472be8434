"""セッションの結果を Excel (.xlsx) に出力する既定のエクスポーター。"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from openpyxl import Workbook

if TYPE_CHECKING:
    from scanledger.store import ResultRow, SessionStore

logger = logging.getLogger(__name__)

SHEET_NAME = "Results"

COLUMNS = [
    "Store",
    "ASIN",
    "Success",
    "Name",
    "Extracted Name",
    "Price",
    "Image URL",
    "Product URL",
    "Load Time (ms)",
    "Retries",
    "Variations",
    "Bundle Parts",
    "Error",
    "Timestamp",
]


def result_to_row(r: "ResultRow") -> dict[str, Any]:
    return {
        "Store": r.store,
        "ASIN": r.asin,
        "Success": "Yes" if r.success else "No",
        "Name": r.name or "",
        "Extracted Name": r.extracted_name or "",
        "Price": r.price or "",
        "Image URL": r.image_url or "",
        "Product URL": r.product_url or "",
        "Load Time (ms)": r.load_time,
        "Retries": r.retry_count,
        "Variations": len(r.variations),
        "Bundle Parts": len(r.bundle_parts),
        "Error": r.error_message or "",
        "Timestamp": r.timestamp,
    }


def result_to_values(r: "ResultRow") -> list[Any]:
    row = result_to_row(r)
    return [row[c] for c in COLUMNS]


class ExcelExporter:
    def export(self, store: "SessionStore", session_id: str, export_path: str) -> str:
        """
        結果を登録順に1行ずつシートへ追記して書き出す。出力パスを返す。
        write_only ブックなので全件をメモリに載せない。
        """
        path = Path(export_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        wb = Workbook(write_only=True)
        ws = wb.create_sheet(SHEET_NAME)
        ws.append(COLUMNS)
        count = store.stream_results(session_id, lambda r: ws.append(result_to_values(r)))
        wb.save(path)
        logger.info("Exported %d results of session %s to %s", count, session_id, path)
        return str(path)
