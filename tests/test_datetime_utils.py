"""datetime_utils のテスト。"""
from datetime import datetime, timedelta, timezone

from scanledger.util.datetime_utils import export_timestamp, to_iso


def test_to_iso_is_fixed_width_utc():
    jst = timezone(timedelta(hours=9))
    assert to_iso(datetime(2026, 1, 1, 21, 0, tzinfo=jst)) == "2026-01-01T12:00:00.000000Z"
    assert to_iso(datetime(2026, 1, 1, 12, 0)) == "2026-01-01T12:00:00.000000Z"


def test_iso_strings_sort_chronologically():
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    moments = [base + timedelta(microseconds=n) for n in (0, 5, 999999, 10**6 + 1)]
    assert sorted(to_iso(m) for m in moments) == [to_iso(m) for m in moments]


def test_export_timestamp_is_filename_safe():
    stamp = export_timestamp(datetime(2026, 3, 4, 5, 6, 7, 890, tzinfo=timezone.utc))
    assert stamp == "2026-03-04T05-06-07"
    assert ":" not in stamp and "." not in stamp


def test_to_iso_pads_extreme_years():
    assert to_iso(datetime.min.replace(tzinfo=timezone.utc)) == "0001-01-01T00:00:00.000000Z"
    assert to_iso(datetime.max.replace(tzinfo=timezone.utc)) == "9999-12-31T23:59:59.999999Z"
