"""
外部コラボレータ（スキャナー・エクスポーター）とのインターフェース。
永続化層はこれらを直接 import しない。コマンド層に注入される。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol

if TYPE_CHECKING:
    from scanledger.store import SessionStore


class ScanEvents(Protocol):
    """スキャナーが呼び出すイベント受け口。"""

    def session_started(self, session_id: str, total_items: int) -> None: ...

    def progress(self, event: dict[str, Any]) -> None: ...

    def result(self, event: dict[str, Any]) -> None: ...


@dataclass
class ScanOutcome:
    session_id: str
    stats: dict[str, Any] = field(default_factory=dict)


class ScanProducer(Protocol):
    """ブラウザ自動操作によるスキャン本体。"""

    def start_scan(self, events: ScanEvents) -> ScanOutcome: ...

    def stop_scan(self) -> None: ...


# 検証済みのスキャン設定を受け取り、1回分のスキャナーを生成する
ScannerFactory = Callable[[dict[str, Any]], ScanProducer]


class ExportSink(Protocol):
    """セッションの結果を読み出してファイルに書き出す。"""

    def export(self, store: SessionStore, session_id: str, export_path: str) -> str: ...
