"""ストア用データモデル。"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"


@dataclass
class ScanResultInput:
    """スキャナーが1件ごとに出力する結果。"""

    store: str
    asin: str
    success: bool
    extracted_name: Optional[str] = None
    name: Optional[str] = None
    price: Optional[str] = None
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    load_time: Optional[int] = None
    error_message: Optional[str] = None
    retry_count: int = 0
    variations: list[Any] = field(default_factory=list)
    bundle_parts: list[Any] = field(default_factory=list)
    extraction_details: dict[str, Any] = field(default_factory=dict)
    merchandising_data: dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None  # 未指定ならストアの時計で採番

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> ScanResultInput:
        """スキャナーの result イベント（camelCase の dict）から生成。"""
        return cls(
            store=event.get("store"),
            asin=event.get("asin"),
            success=bool(event.get("success")),
            extracted_name=event.get("extractedName"),
            name=event.get("name"),
            price=event.get("price"),
            image_url=event.get("imageUrl"),
            product_url=event.get("productUrl"),
            load_time=event.get("loadTime"),
            error_message=event.get("errorMessage"),
            retry_count=event.get("retryCount") or 0,
            variations=event.get("variations") or [],
            bundle_parts=event.get("bundleParts") or [],
            extraction_details=event.get("extractionDetails") or {},
            merchandising_data=event.get("merchandisingData") or {},
        )


@dataclass
class ResultRow:
    id: int
    session_id: str
    store: str
    asin: str
    success: bool
    timestamp: str
    extracted_name: Optional[str]
    name: Optional[str]
    price: Optional[str]
    image_url: Optional[str]
    product_url: Optional[str]
    load_time: Optional[int]
    error_message: Optional[str]
    retry_count: int
    variations: list[Any]
    bundle_parts: list[Any]
    extraction_details: dict[str, Any]
    merchandising_data: dict[str, Any]


@dataclass
class SessionRow:
    id: str
    started_at: str
    completed_at: Optional[str]
    total_items: int
    processed_items: int
    success_count: int
    failed_count: int
    status: str  # running / completed


@dataclass
class SessionSummaryRow:
    """セッション一覧用。結果件数を結合済み。"""

    id: str
    started_at: str
    completed_at: Optional[str]
    total_items: int
    status: str
    result_count: int
    success_count: int
    failed_count: int


@dataclass
class ProgressUpdate:
    current_store: Optional[str]
    current_item: int
    total_items: int

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> ProgressUpdate:
        """スキャナーの progress イベントから生成。"""
        return cls(
            current_store=event.get("currentStore"),
            current_item=int(event.get("currentItem") or 0),
            total_items=int(event.get("totalItems") or 0),
        )


@dataclass
class ProgressRow:
    session_id: str
    current_store: Optional[str]
    current_item: int
    total_items: int
    last_updated: str


@dataclass
class SessionStatistics:
    total: int
    success_count: int
    failed_count: int
    avg_load_time: Optional[float]
    started_at: Optional[str]  # 最初の結果の時刻
    last_updated: Optional[str]  # 最後の結果の時刻


@dataclass
class DeletionSummary:
    deleted_sessions: int = 0
    deleted_results: int = 0

    @property
    def anything_deleted(self) -> bool:
        return self.deleted_sessions > 0 or self.deleted_results > 0


@dataclass
class DatabaseStats:
    session_count: int
    result_count: int
    file_size_bytes: int
    file_size_mb: float
    oldest_session: Optional[str]
    newest_session: Optional[str]
