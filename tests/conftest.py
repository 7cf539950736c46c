# Shared pytest fixtures
from __future__ import annotations
import logging
import tempfile
from pathlib import Path
import pytest

from cgrain_sum.logging.init import LOGGER_NAME, reset_logging
from cgrain_sum.models.cell import Cell, CellValue
from cgrain_sum.models.table import Row, Table

SAMPLE_CSV = """Id,timestamp,external-sample-id,Area,Weight,Red,cor-filtered-as
1,202403190019,23GRY_DTD_264,10.5,0.0312,55,Sound
2,202403190019,23GRY_DTD_264,12.5,0.0298,60,Sorghum
3,202403190019,23GRY_DTD_264,11,0.0301,58,Sound
4,202403190020,23GRY_DTD_265,9.5,0.0280,61,Sound
5,202403190020,23GRY_DTD_265,10.25,0.0290,57,Broken
"""

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<export>
  <sample-result>
    <reference>23GRY_DTD_264</reference>
    <test-weight>58.2</test-weight>
    <sieve-6>1.25</sieve-6>
    <sieve-8>97</sieve-8>
    <operator>jdoe</operator>
  </sample-result>
  <sample-result>
    <reference>23GRY_DTD_265</reference>
    <test-weight>57.9</test-weight>
    <sieve-6>2.5</sieve-6>
    <sieve-8>96.75</sieve-8>
    <operator>jdoe</operator>
  </sample-result>
</export>
"""


@pytest.fixture(autouse=True)
def _isolate_logging():
    # setup_logging() は sys.stdout を掴むので capsys と合わせてテスト毎に張り直す
    reset_logging()
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("CGRAIN_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """csv_class_filter_enabled: false
csv_class_filter_filters: [Sound]
csv_stat_columns_enabled: true
csv_stat_columns_columns: [Area, Weight, Red]
csv_class_percent_enabled: true
csv_sample_id_header: external-sample-id
csv_class_header: cor-filtered-as
xml_sieve_cols_enabled: true
xml_sample_id_header: reference
xml_sample_closing_tag: sample-result
xml_include_tags: []
xml_include_prefixes: [sieve-]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "cgrain.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_csv(temp_workdir: Path) -> Path:
    f = temp_workdir / "data" / "kernels.csv"
    f.write_text(SAMPLE_CSV, encoding="utf-8")
    return f


@pytest.fixture()
def sample_xml(temp_workdir: Path) -> Path:
    f = temp_workdir / "data" / "samples.xml"
    f.write_text(SAMPLE_XML, encoding="utf-8")
    return f


def make_table(headers: list[str], rows: list[list[CellValue]]) -> Table:
    """Table from already-typed values, rows indexed from 0."""
    built = [
        Row(index=i, cells=tuple(Cell(h, v) for h, v in zip(headers, values)))
        for i, values in enumerate(rows)
    ]
    return Table.from_rows(headers, built)


@pytest.fixture()
def kernel_table() -> Table:
    """Class / Area / Red table with three rows."""
    S, F, I = CellValue.text, CellValue.float_, CellValue.integer
    return make_table(
        ["Class", "Area", "Red"],
        [
            [S("Sorghum"), F(7.8), I(55)],
            [S("Sound"), F(5.6), I(60)],
            [S("Sorghum"), F(6.1), I(58)],
        ],
    )


@pytest.fixture()
def table_of():
    return make_table
