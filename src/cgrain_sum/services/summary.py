from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering.

Format:
SUMMARY reports={n} success={s} failed={f} csv_rows={r} xml_rows={x}
samples={k} elapsed_sec={e}
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(seconds: float) -> str:
    """Integers without decimals, tiny values without scientific notation."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip('0').rstrip('.')
    return str(round(seconds, 3))


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line for a run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 3, 19, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 3, 19, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_reports=3, failed_reports=0, csv_rows=1200, xml_rows=12,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY reports=3 success=3 failed=0 csv_rows=1200 xml_rows=12 samples=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY reports={result.total_reports} "
        f"success={result.success_reports} "
        f"failed={result.failed_reports} "
        f"csv_rows={result.csv_rows} "
        f"xml_rows={result.xml_rows} "
        f"samples={result.total_samples} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
