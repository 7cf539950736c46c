from __future__ import annotations

from collections.abc import Sequence

from ..models.cell import CellValue
from ..models.table import Row, RowSet

"""Row-set algebra: filter and split over references to Rows.

Both operations return new lists holding the *same* Row objects they were
given, in their original relative order. Unlike lenient cell access, a row
that has no cell at the requested column is an error here: silently dropping
it would change the statistics computed on the result.
"""

__all__ = [
    "RowSetError",
    "GroupedRowSet",
    "filter_rows",
    "split_rows",
]

# (distinct value, rows with that value) in first-seen order
GroupedRowSet = list[tuple[CellValue, RowSet]]


class RowSetError(Exception):
    """A participating row has no cell at the requested column."""

    def __init__(self, row: Row, col_idx: int) -> None:
        super().__init__(
            f"row idx {row.index} has no cell at col idx {col_idx} "
            f"(row has {len(row.cells)} cells)"
        )
        self.row = row
        self.col_idx = col_idx


def _value_at(row: Row, col_idx: int) -> CellValue:
    cell = row.cell(col_idx)
    if cell is None:
        raise RowSetError(row, col_idx)
    return cell.value


def filter_rows(rows: Sequence[Row], col_idx: int, target: CellValue) -> RowSet:
    """Rows whose cell at ``col_idx`` structurally equals ``target``."""
    return [row for row in rows if _value_at(row, col_idx) == target]


def split_rows(rows: Sequence[Row], col_idx: int) -> GroupedRowSet:
    """Group rows by their value at ``col_idx``.

    Group order is the order in which each value first appears; rows keep
    their relative order inside each group.

        >>> [(str(v), len(g)) for v, g in split_rows(rows, class_idx)]
        [('Sorghum', 2), ('Sound', 1)]
    """
    groups: dict[CellValue, RowSet] = {}
    for row in rows:
        # dict は挿入順を保持する
        groups.setdefault(_value_at(row, col_idx), []).append(row)
    return list(groups.items())
