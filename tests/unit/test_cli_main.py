from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from openpyxl import load_workbook

from cgrain_sum.cli import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main


def test_requires_an_input(temp_workdir: Path, capsys):
    assert main(["--output", "out.xlsx"]) == EXIT_FATAL
    assert "ERROR input:" in capsys.readouterr().out


def test_requires_output(sample_csv: Path, capsys):
    assert main(["--csv", str(sample_csv)]) == EXIT_FATAL
    assert "ERROR output:" in capsys.readouterr().out


def test_missing_input_file(temp_workdir: Path, capsys):
    assert main(["--csv", "data/nope.csv", "-o", "out.xlsx"]) == EXIT_FATAL
    assert "input file not found" in capsys.readouterr().out


def test_invalid_config(temp_workdir: Path, sample_csv: Path, capsys):
    cfg = temp_workdir / "config" / "bad.yml"
    cfg.write_text("csv_stat_columns_enabled: maybe-not\nfoo: 1\n", encoding="utf-8")
    assert main(["--config", str(cfg), "--csv", str(sample_csv), "-o", "o.xlsx"]) == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().out


def test_default_config_path_is_used(write_config: Path, sample_csv: Path, temp_workdir: Path):
    assert main(["--csv", str(sample_csv), "-o", "out.xlsx", "--no-progress"]) == EXIT_SUCCESS_ALL
    header = [c.value for c in load_workbook(temp_workdir / "out.xlsx")["CSV Stats"][1]]
    assert header == [
        "external-sample-id", "Avg Area", "Std Area", "Avg Weight", "Std Weight", "Avg Red", "Std Red",
    ]


def test_env_var_selects_config(temp_workdir: Path, sample_csv: Path, monkeypatch):
    cfg = temp_workdir / "config" / "env.yml"
    cfg.write_text("csv_stat_columns_columns: [Area]\n", encoding="utf-8")
    monkeypatch.setenv("CGRAIN_CONFIG", str(cfg))
    saved = temp_workdir / "effective.yml"
    assert main(["--save-config", str(saved)]) == EXIT_SUCCESS_ALL
    assert yaml.safe_load(saved.read_text(encoding="utf-8"))["csv_stat_columns_columns"] == ["Area"]


def test_dotenv_file_is_loaded(temp_workdir: Path, monkeypatch):
    cfg = temp_workdir / "config" / "dot.yml"
    cfg.write_text("xml_include_prefixes: [mesh-]\n", encoding="utf-8")
    (temp_workdir / ".env").write_text(f"CGRAIN_CONFIG={cfg}\n", encoding="utf-8")
    saved = temp_workdir / "effective.yml"
    try:
        assert main(["--save-config", str(saved)]) == EXIT_SUCCESS_ALL
    finally:
        monkeypatch.delenv("CGRAIN_CONFIG", raising=False)
    assert yaml.safe_load(saved.read_text(encoding="utf-8"))["xml_include_prefixes"] == ["mesh-"]


def test_inspect_data(sample_csv: Path, sample_xml: Path, capsys):
    code = main(["--csv", str(sample_csv), "--xml", str(sample_xml), "--inspect-data"])
    assert code == EXIT_SUCCESS_ALL
    out = capsys.readouterr().out
    assert "FILE: kernels.csv rows=5" in out
    assert "FILE: samples.xml rows=2" in out
    assert "headers=['reference', 'sieve-6', 'sieve-8']" in out


def test_debug_flag(sample_csv: Path, capsys):
    main(["--debug", "--csv", str(sample_csv), "-o", "o.xlsx", "--no-progress"])
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


@pytest.mark.parametrize("flag", ["--csv", "--xml"])
def test_unreadable_source_is_fatal(temp_workdir: Path, flag: str, capsys):
    bad = temp_workdir / "data" / "empty"
    bad.write_text("", encoding="utf-8")
    assert main([flag, str(bad), "-o", "o.xlsx", "--no-progress"]) == EXIT_FATAL
    assert "ERROR processing:" in capsys.readouterr().out


def test_failed_report_gives_partial_exit(temp_workdir: Path, sample_csv: Path, sample_xml: Path):
    cfg = temp_workdir / "config" / "cgrain.yml"
    cfg.write_text("xml_sample_id_header: sample-ref\n", encoding="utf-8")
    code = main(["--csv", str(sample_csv), "--xml", str(sample_xml), "-o", "o.xlsx", "--no-progress"])
    assert code == EXIT_PARTIAL_FAILURE
