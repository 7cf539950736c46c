from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.cell import ValueKind
from ..models.table import Row

"""Per-column statistics over a row-set.

Two families:

- separated: integer and float cells are separate populations (each gets
  its own mean / stdev) and text cells are only counted
- unified (``*_combined``): integers are widened to float and pooled with
  float cells into one numeric population

All standard deviations are population standard deviations
(``sqrt(mean of squared deviations)``).
Non-finite or overflowing inputs (``inf``, ``1e308``) give ``inf`` / ``nan``
results rather than arithmetic exceptions.

Every function reads the cell at ``col_idx`` of every row; a row without
that cell raises MissingCellError.
"""

__all__ = [
    "StatisticsError",
    "MissingCellError",
    "ColumnIndexError",
    "EmptyColumnError",
    "NonNumericDataError",
    "SumCount",
    "ColumnAverage",
    "ColumnStdev",
    "sum_count",
    "column_average",
    "column_average_combined",
    "column_stdev",
    "column_stdev_combined",
]


class StatisticsError(Exception):
    """Base class for aggregation failures."""


class MissingCellError(StatisticsError):
    def __init__(self, row: Row, col_idx: int) -> None:
        super().__init__(
            f"couldn't get data at col idx {col_idx} for row idx {row.index} "
            f"(row has {len(row.cells)} cells)"
        )
        self.row = row
        self.col_idx = col_idx


class ColumnIndexError(StatisticsError):
    def __init__(self, col_idx: int, column_count: int) -> None:
        super().__init__(f"column index {col_idx} is not valid for {column_count} columns")
        self.col_idx = col_idx
        self.column_count = column_count


class EmptyColumnError(StatisticsError):
    """No numeric cell at all in the column."""


class NonNumericDataError(StatisticsError):
    """A text cell was found where the unified statistics need a number.

    Report builders catch this one specifically and substitute a sentinel.
    """

    def __init__(self, row: Row, col_idx: int, text: str) -> None:
        super().__init__(
            f"encountered a string where there should be a number: row idx {row.index}, "
            f"col idx {col_idx}, data in cell is {text!r}"
        )
        self.row = row
        self.col_idx = col_idx
        self.text = text


@dataclass(frozen=True)
class SumCount:
    """Sums and counts per value kind. Integers and floats are never mixed."""
    int_sum: int = 0
    float_sum: float = 0.0
    int_count: int = 0
    float_count: int = 0
    text_count: int = 0

    @property
    def sums(self) -> tuple[int, float]:
        return (self.int_sum, self.float_sum)

    @property
    def counts(self) -> tuple[int, int, int]:
        return (self.int_count, self.float_count, self.text_count)

    @property
    def numeric_count(self) -> int:
        return self.int_count + self.float_count


@dataclass(frozen=True)
class ColumnAverage:
    int_avg: float
    float_avg: float
    text_count: int


@dataclass(frozen=True)
class ColumnStdev:
    int_stdev: float
    float_stdev: float
    text_count: int


def _cell_at(row: Row, col_idx: int):
    cell = row.cell(col_idx)
    if cell is None:
        raise MissingCellError(row, col_idx)
    return cell.value


def sum_count(rows: Sequence[Row], col_idx: int) -> SumCount:
    """Single pass: sums of ints / floats and counts of ints / floats / text."""
    int_sum = 0
    float_sum = 0.0
    int_count = float_count = text_count = 0
    for row in rows:
        value = _cell_at(row, col_idx)
        if value.kind is ValueKind.INT:
            int_sum += value.value
            int_count += 1
        elif value.kind is ValueKind.FLOAT:
            float_sum += value.value
            float_count += 1
        else:
            text_count += 1
    # inf / 1e308 級の値は例外にせず inf / nan として伝播させる
    return SumCount(int_sum, float_sum, int_count, float_count, text_count)


def column_average(rows: Sequence[Row], col_idx: int) -> ColumnAverage:
    """Separate int / float averages (0.0 for an empty population)."""
    sc = sum_count(rows, col_idx)
    int_avg = sc.int_sum / sc.int_count if sc.int_count else 0.0
    float_avg = sc.float_sum / sc.float_count if sc.float_count else 0.0
    return ColumnAverage(int_avg, float_avg, sc.text_count)


def _check_column(col_idx: int, column_count: int | None) -> None:
    if col_idx < 0 or (column_count is not None and col_idx >= column_count):
        raise ColumnIndexError(col_idx, column_count if column_count is not None else 0)


def column_average_combined(
    rows: Sequence[Row], col_idx: int, *, column_count: int | None = None
) -> float:
    """Mean of all int and float cells as one population (0.0 if none).

    ``column_count`` (the table's header count) bounds-checks ``col_idx``.
    """
    _check_column(col_idx, column_count)
    sc = sum_count(rows, col_idx)
    if sc.numeric_count == 0:
        return 0.0
    return (float(sc.int_sum) + sc.float_sum) / sc.numeric_count


def column_stdev(rows: Sequence[Row], col_idx: int) -> ColumnStdev:
    """Separate population stdev for ints and floats; text cells are skipped."""
    sc = sum_count(rows, col_idx)
    avg = column_average(rows, col_idx)
    int_sq = 0.0
    float_sq = 0.0
    for row in rows:
        value = _cell_at(row, col_idx)
        if value.kind is ValueKind.INT:
            d = value.value - avg.int_avg
            int_sq += d * d
        elif value.kind is ValueKind.FLOAT:
            d = value.value - avg.float_avg
            float_sq += d * d
    int_var = int_sq / sc.int_count if sc.int_count else 0.0
    float_var = float_sq / sc.float_count if sc.float_count else 0.0
    return ColumnStdev(math.sqrt(int_var), math.sqrt(float_var), sc.text_count)


def column_stdev_combined(
    rows: Sequence[Row], col_idx: int, *, column_count: int | None = None
) -> float:
    """Population stdev over ints and floats pooled together.

    Raises:
        NonNumericDataError: a text cell is present in the column
        MissingCellError: a row has no cell at ``col_idx``
        ColumnIndexError: ``col_idx`` is outside ``column_count``
        EmptyColumnError: no numeric cells at all
    """
    _check_column(col_idx, column_count)
    sc = sum_count(rows, col_idx)
    avg = column_average_combined(rows, col_idx)
    sq_sum = 0.0
    for row in rows:
        value = _cell_at(row, col_idx)
        if value.kind is ValueKind.TEXT:
            raise NonNumericDataError(row, col_idx, value.value)
        d = float(value.value) - avg
        sq_sum += d * d
    if sc.numeric_count == 0:
        raise EmptyColumnError(f"no numeric cells at col idx {col_idx}; count was 0")
    return math.sqrt(sq_sum / sc.numeric_count)
