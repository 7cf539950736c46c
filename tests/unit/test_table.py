from __future__ import annotations

import pytest

from cgrain_sum.models.cell import Cell, CellValue
from cgrain_sum.models.table import Row, Table


def test_from_values_round_trip_by_name_and_position():
    headers = ["external-sample-id", "Area", "Red"]
    values = [["S1", "7.8", "55"], ["S2", "5.6", "60"]]
    table = Table.from_values(headers, values)

    assert table.headers == tuple(headers)
    assert len(table) == 2
    area_idx = table.header_index("Area")
    assert area_idx == 1
    assert table.cell(0, area_idx).value == CellValue.float_(7.8)
    assert table.cell(1, 2).value == CellValue.integer(60)
    assert table.cell(1, 0).value == CellValue.text("S2")
    assert [r.index for r in table.rows] == [0, 1]


def test_lookups_out_of_range_return_none():
    table = Table.from_values(["a", "b"], [["1"]])
    assert table.cell(0, 1) is None  # short row
    assert table.cell(5, 0) is None
    assert table.rows[0].cell(-1) is None
    assert table.header_index("missing") is None


def test_duplicate_headers_lookup_returns_first():
    table = Table.from_values(["x", "x"], [["1", "2"]])
    assert table.headers == ("x", "x")
    assert table.header_index("x") == 0


def test_row_identity_and_immutability():
    cells = [Cell("a", CellValue.integer(1))]
    r1 = Row(0, cells)
    r2 = Row(0, cells)
    assert r1 != r2  # 同じ内容でも別の行
    assert isinstance(r1.cells, tuple)
    with pytest.raises(AttributeError):
        r1.index = 3  # type: ignore[misc]


def test_row_set_is_a_view_over_same_rows():
    table = Table.from_values(["a"], [["1"], ["2"]])
    view = table.row_set()
    assert view is not table.rows
    assert all(a is b for a, b in zip(view, table.rows))
    view.clear()
    assert len(table) == 2


def test_column_count():
    assert Table.from_rows(["a", "b", "c"], []).column_count == 3
