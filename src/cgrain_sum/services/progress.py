from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

- ProgressTracker: byte progress while a large export is streamed
- ReportProgressIndicator: one status line per report being built

Both are silent when stdout is not a TTY (CI, redirected output), so no ANSI
control sequences end up in log files.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
    "ReportProgressIndicator",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """tqdm byte counter for a single streamed file."""

    def __init__(
        self,
        total_bytes: int,
        *,
        description: str = "Reading",
        enabled: bool = True,
    ) -> None:
        self.total_bytes = total_bytes
        self.description = description
        self.consumed = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_bytes,
                desc=description,
                unit="B",
                unit_scale=True,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def update(self, n_bytes: int) -> None:
        self.consumed += n_bytes
        if self.enabled and self.pbar is not None:
            self.pbar.update(n_bytes)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class ReportProgressIndicator:
    """Simple per-report status lines (no bar; reports are fast)."""

    def __init__(self, total_reports: int) -> None:
        self.total_reports = total_reports
        self.current_report = 0
        self.enabled = is_tty_enabled()

    def start_report(self, report_name: str) -> None:
        self.current_report += 1
        if self.enabled:
            print(f"  Report {self.current_report}/{self.total_reports}: {report_name}", end="", flush=True)

    def finish_report(self, success: bool = True, samples: int = 0) -> None:
        if self.enabled:
            status = "✓" if success else "✗"
            if samples > 0:
                print(f" - {samples} samples {status}")
            else:
                print(f" {status}")
