from __future__ import annotations

import codecs
import csv
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from ..logging.error_log import ErrorLogBuffer
from ..models.cell import Cell
from ..models.table import Row, Table

"""CSV reader and delimited-record Table builder.

The first record is the header line, every following record is one data
row. Records are one physical line each, UTF-8 (optional BOM). All fields are
read as raw strings; type inference happens per cell in ``CellValue.parse``.

Malformed data is tolerated per record:
- a field beyond the header count is dropped and logged
- a line that cannot be decoded or has unbalanced quotes becomes a
  ``RecordError``: it is logged and left out of the table. It still consumes
  its row index, so ``Row.index`` always equals the record's position among
  the data records of the source.

A source that cannot be read at all raises ``CsvReadError``.
"""

__all__ = [
    "CsvReadError",
    "RecordError",
    "build_table_from_records",
    "read_csv_records",
    "read_csv_file",
]

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class CsvReadError(Exception):
    """Raised when a CSV source cannot be read or has no header record."""


@dataclass(frozen=True)
class RecordError:
    """Stand-in for one data record that failed to parse at the source level."""
    message: str
    line: int | None = None  # 1-based source line when known


def build_table_from_records(
    headers: Sequence[str],
    records: Iterable[Sequence[str] | RecordError],
    *,
    source: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> Table:
    """Zip each record positionally against ``headers`` and build a Table."""
    headers = tuple(headers)
    rows: list[Row] = []
    for row_idx, record in enumerate(records):
        if isinstance(record, RecordError):
            where = f" (line {record.line})" if record.line is not None else ""
            logger.warning(f"csv: skipping record {row_idx}{where}: {record.message}")
            if error_log is not None:
                error_log.add(source, "", row_idx, "RECORD_SKIPPED", record.message)
            continue

        cells: list[Cell] = []
        for col_idx, raw in enumerate(record):
            if col_idx >= len(headers):
                break
            cells.append(Cell.parse(headers[col_idx], raw))
        if len(record) > len(headers):
            msg = (
                f"record {row_idx} has {len(record)} fields but there are "
                f"{len(headers)} headers; dropped fields from col index {len(headers)}"
            )
            logger.warning(f"csv: {msg}")
            if error_log is not None:
                error_log.add(source, "", row_idx, "FIELD_DROPPED", msg)
        rows.append(Row(index=row_idx, cells=tuple(cells)))
    return Table(headers=headers, rows=tuple(rows))


def _split_record(text: str) -> list[str]:
    """Split one physical line into fields. Raises csv.Error on broken quoting."""
    # 引用符が閉じていない行は次の行を巻き込まない
    if text.count('"') % 2:
        raise csv.Error("unterminated quoted field")
    return next(csv.reader([text], strict=True))


def _parse_line(raw: bytes, line_no: int) -> list[str] | RecordError:
    try:
        text = raw.decode(ENCODING)
    except UnicodeDecodeError as e:
        return RecordError(f"undecodable bytes at offset {e.start}: {e.reason}", line=line_no)
    try:
        return _split_record(text)
    except csv.Error as e:
        return RecordError(f"malformed record: {e}", line=line_no)


def _iter_lines(stream: BinaryIO) -> Iterator[tuple[int, bytes]]:
    """(1-based line number, line without terminator); a leading BOM is dropped."""
    for line_no, raw in enumerate(stream, start=1):
        if line_no == 1 and raw.startswith(codecs.BOM_UTF8):
            raw = raw[len(codecs.BOM_UTF8):]
        yield line_no, raw.rstrip(b"\r\n")


def read_csv_records(path: Path) -> tuple[list[str], list[list[str] | RecordError]]:
    """Read a CSV file into (header record, data records).

    Every physical line is decoded and split on its own, so one bad line
    (invalid UTF-8, unbalanced quotes) becomes a RecordError in place of that
    record and never affects its neighbours. Blank lines are skipped.

    Raises:
        CsvReadError: the file cannot be opened, or there is no usable header.
    """
    headers: list[str] | None = None
    records: list[list[str] | RecordError] = []
    try:
        with path.open("rb") as f:
            for line_no, raw in _iter_lines(f):
                if not raw.strip():
                    continue
                parsed = _parse_line(raw, line_no)
                if headers is None:
                    if isinstance(parsed, RecordError):
                        raise CsvReadError(
                            f"unreadable header record in {path} (line {line_no}): {parsed.message}"
                        )
                    headers = parsed
                    continue
                records.append(parsed)
    except FileNotFoundError as e:
        raise CsvReadError(f"csv file not found: {path}") from e
    except OSError as e:
        raise CsvReadError(f"failed to read csv {path}: {e}") from e

    if headers is None:
        raise CsvReadError(f"csv file has no header record: {path}")
    return headers, records


def read_csv_file(path: Path, *, error_log: ErrorLogBuffer | None = None) -> Table:
    """Read and build a Table from a CSV export."""
    headers, records = read_csv_records(path)
    table = build_table_from_records(headers, records, source=path.name, error_log=error_log)
    logger.debug(f"csv: {path.name} headers={len(table.headers)} rows={len(table)}")
    return table
