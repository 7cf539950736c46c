from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd
from openpyxl.styles import Font

from ..models.cell import ValueKind
from ..models.report_output import DEFAULT_NUMBER_FORMAT, ReportOutput

"""Workbook sink: one worksheet per ReportOutput.

Layout of every sheet:
- row 1: sample id label, then each HeaderSpec label (bold)
- following rows: sample id in column A, computed values after it

Numeric cells get the number format of their HeaderSpec (``0.00``,
``0.0%`` ...). Cells beyond the declared headers fall back to ``0.00``.
Text values are written as text.
"""

__all__ = [
    "WorkbookWriteError",
    "report_to_frame",
    "write_workbook",
]

logger = logging.getLogger(__name__)


class WorkbookWriteError(Exception):
    """Raised when the output workbook cannot be written."""


def report_to_frame(report: ReportOutput) -> pd.DataFrame:
    """Rectangular DataFrame for one report (short rows padded with None)."""
    width = max([len(report.headers)] + [len(r.values) for r in report.rows])
    labels = report.labels + [""] * (width - len(report.headers))
    records = []
    for row in report.rows:
        values: list[object] = [v.value for v in row.values]
        values += [None] * (width - len(values))
        records.append([row.sample_id] + values)
    return pd.DataFrame(records, columns=[report.sample_id_label] + labels)


def _apply_formats(worksheet, report: ReportOutput) -> None:
    bold = Font(bold=True)
    for cell in worksheet[1]:
        cell.font = bold
    formats = [h.number_format for h in report.headers]
    for row_offset, row in enumerate(report.rows):
        excel_row = row_offset + 2  # 1 行目はヘッダ
        for col_offset, value in enumerate(row.values):
            if value.kind is ValueKind.TEXT:
                continue
            fmt = formats[col_offset] if col_offset < len(formats) else DEFAULT_NUMBER_FORMAT
            worksheet.cell(row=excel_row, column=col_offset + 2).number_format = fmt


def write_workbook(reports: Sequence[ReportOutput], path: Path) -> Path:
    """Write all ``reports`` into a new .xlsx workbook at ``path``."""
    if not reports:
        raise WorkbookWriteError("no reports to write")
    names = [r.name for r in reports]
    if len(set(names)) != len(names):
        raise WorkbookWriteError(f"duplicate sheet names: {names}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for report in reports:
                frame = report_to_frame(report)
                frame.to_excel(writer, sheet_name=report.name, index=False)
                _apply_formats(writer.sheets[report.name], report)
                logger.debug(
                    f"workbook: sheet {report.name!r} samples={len(report.rows)} "
                    f"columns={len(report.headers)}"
                )
    except (OSError, ValueError) as e:
        raise WorkbookWriteError(f"failed to write workbook {path}: {e}") from e
    return path
