"""Excel エクスポーターのテスト。"""
import pandas as pd
from openpyxl.worksheet._write_only import WriteOnlyWorksheet

from conftest import make_result
from scanledger.output.excel_writer import COLUMNS, SHEET_NAME, ExcelExporter


def test_export_writes_results_in_insertion_order(store, tmp_path):
    store.create_session("S1", 3)
    store.insert_result("S1", make_result(asin="B000000003", name="Bananas", variations=[1, 2]))
    store.insert_result("S1", make_result(asin="B000000001", success=False, error_message="timeout"))
    store.create_session("S2", 1)
    store.insert_result("S2", make_result(asin="B000000009"))

    target = tmp_path / "exports" / "results.xlsx"
    path = ExcelExporter().export(store, "S1", str(target))

    assert path == str(target)
    df = pd.read_excel(target, sheet_name=SHEET_NAME)
    assert list(df.columns) == COLUMNS
    assert list(df["ASIN"]) == ["B000000003", "B000000001"]
    assert list(df["Success"]) == ["Yes", "No"]
    assert df["Variations"].tolist() == [2, 0]
    assert df.loc[1, "Error"] == "timeout"


def test_export_empty_session_writes_header_only(store, tmp_path):
    store.create_session("S1", 0)
    target = tmp_path / "empty.xlsx"
    ExcelExporter().export(store, "S1", str(target))
    df = pd.read_excel(target, sheet_name=SHEET_NAME)
    assert df.empty
    assert list(df.columns) == COLUMNS


class _RowByRowStore:
    """stream_results の各行が訪問中にシートへ追記されたかを確認する。"""

    def __init__(self, store, appended):
        self.store = store
        self.appended = appended
        self.visited = 0

    def stream_results(self, session_id, visit):
        def checked(row):
            before = len(self.appended)
            visit(row)
            self.visited += 1
            assert len(self.appended) == before + 1

        return self.store.stream_results(session_id, checked)


def test_export_appends_each_row_as_it_is_streamed(store, tmp_path, monkeypatch):
    store.create_session("S1", 3)
    store.insert_batch("S1", [make_result(asin=f"B00000000{i}") for i in range(3)])

    appended = []
    original_append = WriteOnlyWorksheet.append

    def spy(self, row):
        appended.append(list(row))
        return original_append(self, row)

    monkeypatch.setattr(WriteOnlyWorksheet, "append", spy)
    wrapped = _RowByRowStore(store, appended)
    ExcelExporter().export(wrapped, "S1", str(tmp_path / "out.xlsx"))

    assert wrapped.visited == 3
    assert appended[0] == COLUMNS
    assert [row[1] for row in appended[1:]] == ["B000000000", "B000000001", "B000000002"]
