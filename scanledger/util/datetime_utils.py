"""日時ユーティリティ。"""
from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    datetime を DB 保存用の UTC ISO 文字列に変換。naive は UTC とみなす。
    年4桁・マイクロ秒付きの固定幅なので、文字列比較 = 時系列比較。
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="microseconds") + "Z"


def export_timestamp(now: datetime | None = None) -> str:
    """ファイル名用タイムスタンプ（: や . を含まない）。"""
    return (now or utc_now()).strftime("%Y-%m-%dT%H-%M-%S")
