from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from cgrain_sum.cli import EXIT_SUCCESS_ALL, main


def test_full_run(write_config: Path, sample_csv: Path, sample_xml: Path, temp_workdir: Path, capsys):
    out = temp_workdir / "reports" / "summary.xlsx"
    code = main(["--csv", str(sample_csv), "--xml", str(sample_xml), "-o", str(out), "--no-progress"])
    assert code == EXIT_SUCCESS_ALL

    stdout = capsys.readouterr().out
    assert "SUMMARY reports=3 success=3 failed=0 csv_rows=5 xml_rows=2 samples=2" in stdout

    sheets = pd.read_excel(out, sheet_name=None, engine="openpyxl")
    assert list(sheets) == ["CSV Stats", "Class Percents", "Sieve Data"]

    stats = sheets["CSV Stats"].set_index("external-sample-id")
    assert stats.loc["23GRY_DTD_265", "Avg Area"] == pytest.approx(9.875)
    assert stats.loc["23GRY_DTD_264", "Std Red"] == pytest.approx(2.0548, abs=1e-4)

    percents = sheets["Class Percents"].set_index("external-sample-id")
    assert list(percents.columns) == ["%Sound", "%Sorghum", "%Broken"]
    assert percents.loc["23GRY_DTD_265", "%Broken"] == pytest.approx(0.5)

    sieve = sheets["Sieve Data"].set_index("reference")
    assert sieve.loc["23GRY_DTD_264", "sieve-8"] == 97

    # 診断ログは出ない
    assert list((temp_workdir / "logs").iterdir()) == []
