from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

"""Processing result models for one summarizer run.

ProcessingResult aggregates what the orchestrator did: which reports were
built and written, how many source rows were read and how long it took.
The SUMMARY line is rendered from it by ``services.summary``.
"""

__all__ = [
    "ReportStat",
    "ProcessingResult",
]

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class ReportStat:
    """Per-report outcome (one worksheet)."""
    report_name: str
    status: str  # success/failed
    samples: int = 0  # 出力サンプル行数
    columns: int = 0  # 出力データ列数 (sample id 列除く)
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of a run."""
    success_reports: int
    failed_reports: int
    csv_rows: int  # CSV から読んだ行数
    xml_rows: int  # XML から読んだサンプル数
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    output_path: Path | None = None  # None = workbook 未出力
    report_stats: list[ReportStat] | None = None

    @property
    def total_reports(self) -> int:
        return self.success_reports + self.failed_reports

    @property
    def total_samples(self) -> int:
        """Largest sample count among written reports."""
        if not self.report_stats:
            return 0
        return max((s.samples for s in self.report_stats if s.status == STATUS_SUCCESS), default=0)
