from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ProcessingConfig
from ..models.processing_result import STATUS_FAILED, STATUS_SUCCESS, ProcessingResult, ReportStat
from ..models.report_output import ReportOutput
from ..models.table import Table
from ..output.workbook import WorkbookWriteError, write_workbook
from ..sources.csv_reader import CsvReadError, read_csv_file
from ..sources.xml_reader import MarkupParseError, read_xml_file
from .progress import ReportProgressIndicator
from .reports import (
    CLASS_PERCENT_SHEET,
    SIEVE_DATA_SHEET,
    STAT_COLUMNS_SHEET,
    ReportError,
    build_class_percentages,
    build_sieve_data,
    build_stat_columns,
)

"""Service orchestration for the grain summarizer.

process_files() sequences one run:
1. read the CSV and/or XML export into Tables (fatal on failure)
2. run every enabled report builder that has a source to work on
3. write the successful reports into one workbook
4. flush the diagnostics log and return a ProcessingResult

A failing report is recorded and the remaining reports still run.
"""

__all__ = [
    "ProcessingError",
    "planned_reports",
    "process_files",
]

logger = logging.getLogger(__name__)

Builder = Callable[..., ReportOutput]


class ProcessingError(Exception):
    """Base exception for fatal processing errors."""
    pass


def planned_reports(
    config: ProcessingConfig,
    csv_table: Table | None,
    xml_table: Table | None,
    *,
    csv_name: str = "",
    xml_name: str = "",
) -> list[tuple[str, Builder, Table, str]]:
    """(sheet name, builder, table, source name) for every enabled report with a source."""
    plan: list[tuple[str, Builder, Table, str]] = []
    if csv_table is not None:
        if config.csv_stat_columns_enabled:
            plan.append((STAT_COLUMNS_SHEET, build_stat_columns, csv_table, csv_name))
        if config.csv_class_percent_enabled:
            plan.append((CLASS_PERCENT_SHEET, build_class_percentages, csv_table, csv_name))
    if xml_table is not None and config.xml_sieve_cols_enabled:
        plan.append((SIEVE_DATA_SHEET, build_sieve_data, xml_table, xml_name))
    return plan


def _read_sources(
    config: ProcessingConfig,
    csv_path: Path | None,
    xml_path: Path | None,
    error_log: ErrorLogBuffer,
    show_progress: bool,
) -> tuple[Table | None, Table | None]:
    csv_table = xml_table = None
    if csv_path is not None:
        try:
            csv_table = read_csv_file(csv_path, error_log=error_log)
        except CsvReadError as e:
            error_log.add(csv_path.name, "", -1, "SOURCE_UNREADABLE", str(e))
            raise ProcessingError(f"csv: {e}") from e
        logger.info(f"Read {len(csv_table)} rows from {csv_path.name}")
    if xml_path is not None:
        try:
            xml_table = read_xml_file(xml_path, config, show_progress=show_progress)
        except MarkupParseError as e:
            error_log.add(xml_path.name, "", -1, "SOURCE_UNREADABLE", str(e))
            raise ProcessingError(f"xml: {e}") from e
        logger.info(f"Read {len(xml_table)} samples from {xml_path.name}")
    return csv_table, xml_table


def process_files(
    config: ProcessingConfig,
    *,
    csv_path: Path | None = None,
    xml_path: Path | None = None,
    output_path: Path,
    error_log: ErrorLogBuffer | None = None,
    show_progress: bool = True,
) -> ProcessingResult:
    """Build every enabled report from the given sources and write the workbook.

    Raises:
        ProcessingError: no source given, a source is unreadable, or the
            workbook cannot be written.
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    if csv_path is None and xml_path is None:
        raise ProcessingError("no input file given (csv and/or xml required)")

    try:
        csv_table, xml_table = _read_sources(config, csv_path, xml_path, error_log, show_progress)
    finally:
        error_log.flush()

    plan = planned_reports(
        config,
        csv_table,
        xml_table,
        csv_name=csv_path.name if csv_path else "",
        xml_name=xml_path.name if xml_path else "",
    )
    if not plan:
        logger.warning("no reports enabled for the given sources")

    outputs: list[ReportOutput] = []
    stats: list[ReportStat] = []
    indicator = ReportProgressIndicator(len(plan))
    for sheet, builder, table, source in plan:
        indicator.start_report(sheet)
        try:
            report = builder(table, config, source=source, error_log=error_log)
        except ReportError as e:
            logger.error(f"report: {e}")
            error_log.add(source, sheet, -1, "REPORT_FAILED", str(e))
            stats.append(ReportStat(sheet, STATUS_FAILED, error=str(e)))
            indicator.finish_report(success=False)
            continue
        outputs.append(report)
        stats.append(ReportStat(sheet, STATUS_SUCCESS, samples=len(report.rows), columns=len(report.headers)))
        indicator.finish_report(success=True, samples=len(report.rows))

    written: Path | None = None
    try:
        if outputs:
            try:
                written = write_workbook(outputs, output_path)
            except WorkbookWriteError as e:
                error_log.add(output_path.name, "", -1, "WORKBOOK_WRITE_FAILED", str(e))
                raise ProcessingError(str(e)) from e
            logger.info(f"Wrote {len(outputs)} sheet(s) to {written}")
        else:
            logger.warning("no report succeeded; workbook not written")
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"Diagnostics written to {log_path}")

    end_time = datetime.now(UTC)
    success = sum(1 for s in stats if s.status == STATUS_SUCCESS)
    return ProcessingResult(
        success_reports=success,
        failed_reports=len(stats) - success,
        csv_rows=len(csv_table) if csv_table is not None else 0,
        xml_rows=len(xml_table) if xml_table is not None else 0,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        output_path=written,
        report_stats=stats,
    )
