from __future__ import annotations

import logging

from ..logging.error_log import ErrorLogBuffer
from ..models.cell import CellValue
from ..models.config_models import ProcessingConfig
from ..models.report_output import HeaderSpec, ReportOutput, SampleRow
from ..models.table import RowSet, Table
from .aggregation import (
    NonNumericDataError,
    StatisticsError,
    column_average_combined,
    column_stdev_combined,
)
from .rowset import RowSetError, filter_rows, split_rows

"""Report builders: Table + ProcessingConfig -> ReportOutput.

Each builder produces the contents of one worksheet keyed by sample id.
Builders hold no state between calls; running one twice on the same table
and config gives equal outputs.

Problems that only affect one output column or one row are logged (and
recorded in the diagnostics log when an ErrorLogBuffer is given); problems
that make the whole report meaningless raise ReportError.
"""

__all__ = [
    "ReportError",
    "STDEV_TEXT_SENTINEL",
    "STAT_COLUMNS_SHEET",
    "CLASS_PERCENT_SHEET",
    "SIEVE_DATA_SHEET",
    "decimal_places_for",
    "build_stat_columns",
    "build_class_percentages",
    "build_sieve_data",
]

logger = logging.getLogger(__name__)

# Std 計算不能 (文字列混入) 時に出力する値
STDEV_TEXT_SENTINEL = -1000.0

STAT_COLUMNS_SHEET = "CSV Stats"
CLASS_PERCENT_SHEET = "Class Percents"
SIEVE_DATA_SHEET = "Sieve Data"

_FOUR_PLACES = frozenset({"Weight", "Light", "Saturation"})
_ONE_PLACE = frozenset({"Hue", "Red", "Green", "Blue"})


class ReportError(Exception):
    """The report cannot be built (disabled, no sample id column, bad data)."""


def decimal_places_for(column: str) -> int:
    if column in _FOUR_PLACES:
        return 4
    if column in _ONE_PLACE:
        return 1
    return 2


def _note(
    error_log: ErrorLogBuffer | None,
    source: str,
    sheet: str,
    row: int,
    error_type: str,
    message: str,
) -> None:
    logger.warning(f"{sheet}: {message}")
    if error_log is not None:
        error_log.add(source, sheet, row, error_type, message)


def _sample_id_index(table: Table, header: str, sheet: str) -> int:
    idx = table.header_index(header)
    if idx is None:
        raise ReportError(f"{sheet}: couldn't find sample id header {header!r} in {list(table.headers)}")
    return idx


def _class_filtered(
    table: Table,
    config: ProcessingConfig,
    source: str,
    error_log: ErrorLogBuffer | None,
) -> RowSet:
    rows = table.row_set()
    if not config.csv_class_filter_enabled or not config.csv_class_filter_filters:
        return rows
    class_idx = table.header_index(config.csv_class_header)
    if class_idx is None:
        _note(
            error_log, source, STAT_COLUMNS_SHEET, -1, "MISSING_COLUMN",
            f"couldn't find class filter header {config.csv_class_header!r}; rows not filtered",
        )
        return rows
    filtered: RowSet = []
    try:
        for class_name in config.csv_class_filter_filters:
            filtered.extend(filter_rows(rows, class_idx, CellValue.parse(class_name)))
    except RowSetError as e:
        raise ReportError(f"{STAT_COLUMNS_SHEET}: couldn't filter records: {e}") from e
    return filtered


def build_stat_columns(
    table: Table,
    config: ProcessingConfig,
    *,
    source: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> ReportOutput:
    """``Avg <col>`` / ``Std <col>`` per sample for every configured stat column."""
    sheet = STAT_COLUMNS_SHEET
    if not config.csv_stat_columns_enabled:
        raise ReportError(f"{sheet}: stat columns are disabled in config")
    if not config.csv_stat_columns_columns:
        raise ReportError(f"{sheet}: no columns set in config to calculate stats on")

    rows = _class_filtered(table, config, source, error_log)
    sample_idx = _sample_id_index(table, config.csv_sample_id_header, sheet)
    try:
        groups = split_rows(rows, sample_idx)
    except RowSetError as e:
        raise ReportError(
            f"{sheet}: couldn't split records on {config.csv_sample_id_header!r} "
            f"(col idx {sample_idx}): {e}"
        ) from e

    # 見つからない列はヘッダごと出力から外す
    stat_columns: list[tuple[str, int]] = []
    headers: list[HeaderSpec] = []
    for column in config.csv_stat_columns_columns:
        col_idx = table.header_index(column)
        if col_idx is None:
            _note(error_log, source, sheet, -1, "MISSING_COLUMN", f"stat column {column!r} not found; omitted")
            continue
        stat_columns.append((column, col_idx))
        places = decimal_places_for(column)
        headers.append(HeaderSpec(f"Avg {column}", places))
        headers.append(HeaderSpec(f"Std {column}", places))

    out_rows: list[SampleRow] = []
    for sample_id, sample_rows in groups:
        values: list[CellValue] = []
        for column, col_idx in stat_columns:
            try:
                avg = column_average_combined(sample_rows, col_idx, column_count=table.column_count)
            except StatisticsError as e:
                raise ReportError(
                    f"{sheet}: couldn't average column {column!r} for sample id {sample_id}: {e}"
                ) from e
            try:
                std = column_stdev_combined(sample_rows, col_idx, column_count=table.column_count)
            except NonNumericDataError as e:
                _note(
                    error_log, source, sheet, e.row.index, "NON_NUMERIC_STDEV",
                    f"Std {column} for sample id {sample_id} listed as {STDEV_TEXT_SENTINEL}: {e}",
                )
                std = STDEV_TEXT_SENTINEL
            except StatisticsError as e:
                raise ReportError(
                    f"{sheet}: couldn't get standard deviation of column {column!r} "
                    f"for sample id {sample_id}: {e}"
                ) from e
            values.append(CellValue.float_(avg))
            values.append(CellValue.float_(std))
        out_rows.append(SampleRow(str(sample_id), values))

    return ReportOutput(
        name=sheet,
        headers=headers,
        rows=out_rows,
        sample_id_label=config.csv_sample_id_header,
    )


def build_class_percentages(
    table: Table,
    config: ProcessingConfig,
    *,
    source: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> ReportOutput:
    """Fraction of each sample's rows in every class (``%<class>`` columns)."""
    sheet = CLASS_PERCENT_SHEET
    if not config.csv_class_percent_enabled:
        raise ReportError(f"{sheet}: class percents are disabled in config")

    sample_idx = _sample_id_index(table, config.csv_sample_id_header, sheet)
    try:
        groups = split_rows(table.row_set(), sample_idx)
    except RowSetError as e:
        raise ReportError(
            f"{sheet}: couldn't split records on {config.csv_sample_id_header!r} "
            f"(col idx {sample_idx}): {e}"
        ) from e

    class_idx = table.header_index(config.csv_class_header)
    if class_idx is None:
        _note(
            error_log, source, sheet, -1, "MISSING_COLUMN",
            f"couldn't find class header {config.csv_class_header!r}; class columns omitted",
        )

    # sample id -> {class value: count} (いずれも初出順)
    per_sample: list[tuple[CellValue, dict[CellValue, int]]] = []
    all_classes: dict[CellValue, None] = {}
    for sample_id, sample_rows in groups:
        counts: dict[CellValue, int] = {}
        if class_idx is not None:
            for row in sample_rows:
                cell = row.cell(class_idx)
                if cell is None:
                    _note(
                        error_log, source, sheet, row.index, "MISSING_CELL",
                        f"couldn't access class cell at col idx {class_idx} for row idx {row.index}",
                    )
                    continue
                counts[cell.value] = counts.get(cell.value, 0) + 1
                all_classes.setdefault(cell.value, None)
        per_sample.append((sample_id, counts))

    headers = [HeaderSpec(f"%{class_value}", 1, True) for class_value in all_classes]
    out_rows: list[SampleRow] = []
    for sample_id, counts in per_sample:
        total = sum(counts.values())
        values = [
            CellValue.float_(counts.get(class_value, 0) / total if total else 0.0)
            for class_value in all_classes
        ]
        out_rows.append(SampleRow(str(sample_id), values))

    return ReportOutput(
        name=sheet,
        headers=headers,
        rows=out_rows,
        sample_id_label=config.csv_sample_id_header,
    )


def build_sieve_data(
    table: Table,
    config: ProcessingConfig,
    *,
    source: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> ReportOutput:
    """Pass XML sample rows through: every column after the sample id column."""
    sheet = SIEVE_DATA_SHEET
    if not config.xml_sieve_cols_enabled:
        raise ReportError(f"{sheet}: xml sieve data is disabled in config")

    sample_idx = _sample_id_index(table, config.xml_sample_id_header, sheet)
    headers = [HeaderSpec(h, 2) for h in table.headers[sample_idx + 1:]]

    out_rows: list[SampleRow] = []
    for row in table.rows:
        sample_cell = row.cell(sample_idx)
        if sample_cell is None:
            _note(
                error_log, source, sheet, row.index, "MISSING_CELL",
                f"skipping row idx {row.index}: no sample id at col idx {sample_idx} "
                f"(row has {len(row.cells)} cells)",
            )
            continue
        values = [cell.value for cell in row.cells[sample_idx + 1:]]
        out_rows.append(SampleRow(str(sample_cell.value), values))

    return ReportOutput(
        name=sheet,
        headers=headers,
        rows=out_rows,
        sample_id_label=config.xml_sample_id_header,
    )
