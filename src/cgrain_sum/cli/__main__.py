from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config, save_config
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import ProcessingConfig
from ..services.orchestrator import ProcessingError, process_files
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load .env, resolve and load the config (defaults when none exists)
- read the CSV and/or XML export, build every enabled report
- write the workbook, print one SUMMARY line, exit with a status code
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/cgrain.yml")
CONFIG_ENV_VAR = "CGRAIN_CONFIG"
INSPECT_ROWS = 3


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env via python-dotenv (CGRAIN_CONFIG etc.)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="cgrain-sum",
        description="Summarize grain inspection CSV / XML exports into an Excel workbook",
    )
    p.add_argument("--csv", type=Path, help="Per-kernel CSV export")
    p.add_argument("--xml", type=Path, help="Per-sample XML export (sieve data)")
    p.add_argument("--output", "-o", type=Path, help="Output .xlsx workbook")
    p.add_argument("--config", type=Path, help=f"YAML config (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})")
    p.add_argument("--save-config", type=Path, metavar="PATH", help="Write the effective config to PATH")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    p.add_argument("--inspect-data", action="store_true", help="Print source headers & first rows then exit")
    return p.parse_args(argv)


def _resolve_config(explicit: Path | None) -> ProcessingConfig:
    """--config > $CGRAIN_CONFIG > config/cgrain.yml > built-in defaults."""
    if explicit is not None:
        return load_config(explicit)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return load_config(Path(env_path))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ProcessingConfig()


def _inspect_data(cfg: ProcessingConfig, csv_path: Path | None, xml_path: Path | None) -> int:
    from ..sources.csv_reader import CsvReadError, read_csv_file
    from ..sources.xml_reader import MarkupParseError, read_xml_file

    tables = []
    try:
        if csv_path is not None:
            tables.append((csv_path, read_csv_file(csv_path)))
        if xml_path is not None:
            tables.append((xml_path, read_xml_file(xml_path, cfg, show_progress=False)))
    except (CsvReadError, MarkupParseError) as e:
        print(f"inspect: read_error: {e}")
        return EXIT_FATAL
    for path, table in tables:
        print(f"FILE: {path.name} rows={len(table)}")
        print(f"  headers={list(table.headers)}")
        for row in table.rows[:INSPECT_ROWS]:
            print(f"  row {row.index}: {[c.value.value for c in row.cells]}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストで [] を渡すケース)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.save_config is not None:
        try:
            save_config(cfg, args.save_config)
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL
        logger.info(f"Config written to {args.save_config}")

    if args.csv is None and args.xml is None:
        if args.save_config is not None:
            return EXIT_SUCCESS_ALL
        logger.error("input: at least one of --csv / --xml is required")
        return EXIT_FATAL

    for path in (args.csv, args.xml):
        if path is not None and not path.exists():
            logger.error(f"input file not found: {path}")
            return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, args.csv, args.xml)

    if args.output is None:
        logger.error("output: --output is required")
        return EXIT_FATAL

    try:
        result = process_files(
            cfg,
            csv_path=args.csv,
            xml_path=args.xml,
            output_path=args.output,
            show_progress=not args.no_progress,
        )
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    # 先頭の "SUMMARY " は log_summary 側で付与される
    summary_content = render_summary_line(result)[len("SUMMARY "):]
    log_summary(summary_content)

    if result.failed_reports > 0 or result.total_reports == 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
