from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
from openpyxl import load_workbook

from cgrain_sum.models.cell import CellValue
from cgrain_sum.models.report_output import HeaderSpec, ReportOutput, SampleRow
from cgrain_sum.output.workbook import WorkbookWriteError, report_to_frame, write_workbook

F, I, S = CellValue.float_, CellValue.integer, CellValue.text


def _stats_report() -> ReportOutput:
    return ReportOutput(
        name="CSV Stats",
        headers=[HeaderSpec("Avg Weight", 4), HeaderSpec("Std Weight", 4)],
        rows=[
            SampleRow("23GRY_DTD_264", [F(0.0304), F(0.00059)]),
            SampleRow("23GRY_DTD_265", [F(0.0285), F(-1000.0)]),
        ],
    )


def _percent_report() -> ReportOutput:
    return ReportOutput(
        name="Class Percents",
        headers=[HeaderSpec("%Sound", 1, True)],
        rows=[SampleRow("23GRY_DTD_264", [F(0.6667)])],
    )


@pytest.mark.parametrize(
    "header, fmt",
    [(HeaderSpec("a", 2), "0.00"), (HeaderSpec("a", 4), "0.0000"),
     (HeaderSpec("a", 1, True), "0.0%"), (HeaderSpec("a", 0), "0")],
)
def test_number_format(header: HeaderSpec, fmt: str):
    assert header.number_format == fmt


def test_report_to_frame_pads_short_rows():
    report = ReportOutput(
        name="Sieve Data",
        headers=[HeaderSpec("sieve-6")],
        rows=[SampleRow("S1", [F(1.0), I(2)]), SampleRow("S2", [])],
        sample_id_label="reference",
    )
    frame = report_to_frame(report)
    assert list(frame.columns) == ["reference", "sieve-6", ""]
    assert frame.shape == (2, 3)
    assert frame.iloc[0, 0] == "S1"
    assert pd.isna(frame.iloc[1, 1])


def test_write_workbook_layout_and_formats(temp_workdir: Path):
    out = temp_workdir / "out" / "summary.xlsx"
    assert write_workbook([_stats_report(), _percent_report()], out) == out

    wb = load_workbook(out)
    assert wb.sheetnames == ["CSV Stats", "Class Percents"]
    ws = wb["CSV Stats"]
    assert [c.value for c in ws[1]] == ["external-sample-id", "Avg Weight", "Std Weight"]
    assert all(c.font.bold for c in ws[1])
    assert ws["A2"].value == "23GRY_DTD_264"
    assert ws["B2"].value == pytest.approx(0.0304)
    assert ws["B2"].number_format == "0.0000"
    assert ws["C3"].value == -1000.0
    assert wb["Class Percents"]["B2"].number_format == "0.0%"


def test_text_values_are_written_as_text(temp_workdir: Path):
    report = ReportOutput(
        name="Sieve Data",
        headers=[HeaderSpec("grade")],
        rows=[SampleRow("S1", [S("A")])],
        sample_id_label="reference",
    )
    out = temp_workdir / "t.xlsx"
    write_workbook([report], out)
    ws = load_workbook(out)["Sieve Data"]
    assert ws["B2"].value == "A"
    assert ws["B2"].data_type == "s"


def test_read_back_with_pandas(temp_workdir: Path):
    out = temp_workdir / "rb.xlsx"
    write_workbook([_stats_report()], out)
    frame = pd.read_excel(out, sheet_name="CSV Stats", engine="openpyxl")
    assert list(frame["external-sample-id"]) == ["23GRY_DTD_264", "23GRY_DTD_265"]


def test_write_workbook_rejects_empty_and_duplicates(temp_workdir: Path):
    with pytest.raises(WorkbookWriteError):
        write_workbook([], temp_workdir / "e.xlsx")
    with pytest.raises(WorkbookWriteError):
        write_workbook([_stats_report(), _stats_report()], temp_workdir / "d.xlsx")
