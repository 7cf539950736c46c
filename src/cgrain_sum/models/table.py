from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .cell import Cell

"""Row / Table models.

A Table is built once (by a source parser or from explicit header + row
lists) and then only read. Rows keep the index they were given at
construction; row-set operations in ``services.rowset`` pass plain lists of
references to these Row objects around, never copies.

Rows are not required to have one cell per header: parsers keep short or
long rows as they are and lenient lookups simply return ``None``.
"""

__all__ = [
    "Row",
    "Table",
    "RowSet",
]


@dataclass(frozen=True, eq=False)
class Row:
    """One source record: ordered cells plus its index within the source.

    Compared by identity; two rows with equal cells are still different rows.
    """
    index: int
    cells: tuple[Cell, ...]

    def __post_init__(self) -> None:
        # list で渡されても不変にしておく
        object.__setattr__(self, "cells", tuple(self.cells))

    def cell(self, col_idx: int) -> Cell | None:
        """Lenient positional access (``None`` when out of range)."""
        if 0 <= col_idx < len(self.cells):
            return self.cells[col_idx]
        return None

    def __len__(self) -> int:
        return len(self.cells)


# Non-owning, ordered view over rows of one Table.
RowSet = list[Row]


@dataclass(frozen=True)
class Table:
    """Ordered headers plus ordered rows, immutable after construction."""
    headers: tuple[str, ...]
    rows: tuple[Row, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "rows", tuple(self.rows))

    @staticmethod
    def from_rows(headers: Iterable[str], rows: Iterable[Row]) -> Table:
        return Table(headers=tuple(headers), rows=tuple(rows))

    @staticmethod
    def from_values(headers: Sequence[str], values: Iterable[Sequence[str]]) -> Table:
        """Build a table from raw string rows, indexing rows from 0."""
        built = []
        for row_idx, raw_row in enumerate(values):
            cells = tuple(Cell.parse(h, raw) for h, raw in zip(headers, raw_row))
            built.append(Row(index=row_idx, cells=cells))
        return Table(headers=tuple(headers), rows=tuple(built))

    def header_index(self, name: str) -> int | None:
        """Column index of the first header equal to ``name``."""
        for idx, header in enumerate(self.headers):
            if header == name:
                return idx
        return None

    def cell(self, row_idx: int, col_idx: int) -> Cell | None:
        """Lenient (row position, column) lookup."""
        if 0 <= row_idx < len(self.rows):
            return self.rows[row_idx].cell(col_idx)
        return None

    def row_set(self) -> RowSet:
        """All rows as a fresh view list (rows themselves are shared)."""
        return list(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def __len__(self) -> int:
        return len(self.rows)
