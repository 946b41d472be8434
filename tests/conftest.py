"""共通フィクスチャ。メモリ上の SQLite と操作可能な時計。"""
from datetime import datetime, timedelta, timezone

import pytest

from scanledger.config import AllowedDirectories
from scanledger.store import ScanResultInput, SessionStore

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """datetime を返す時計。advance で進める。"""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """RateLimiter 用の秒単位の時計。"""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_result(asin: str = "B08X4FN2K9", success: bool = True, **kwargs) -> ScanResultInput:
    kwargs.setdefault("store", "10001")
    kwargs.setdefault("load_time", 100)
    return ScanResultInput(asin=asin, success=success, **kwargs)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    s = SessionStore(":memory:", clock=clock)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def dirs(tmp_path):
    d = AllowedDirectories(
        app_data=tmp_path / "appdata",
        documents=tmp_path / "Documents",
        downloads=tmp_path / "Downloads",
        desktop=tmp_path / "Desktop",
    )
    for p in d.for_source_files():
        p.mkdir(parents=True, exist_ok=True)
    return d
