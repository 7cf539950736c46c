from __future__ import annotations

from dataclasses import dataclass, field

from .cell import CellValue

"""ReportOutput model: the sink-agnostic result of one report builder.

One ReportOutput becomes one worksheet: a header row (sample id label
followed by every HeaderSpec label) and one row per sample.
"""

__all__ = [
    "HeaderSpec",
    "SampleRow",
    "ReportOutput",
    "DEFAULT_SAMPLE_ID_LABEL",
    "DEFAULT_NUMBER_FORMAT",
]

DEFAULT_SAMPLE_ID_LABEL = "external-sample-id"
DEFAULT_NUMBER_FORMAT = "0.00"


@dataclass(frozen=True)
class HeaderSpec:
    """Output column descriptor (display label + numeric formatting)."""
    label: str
    decimal_places: int = 2
    is_percent: bool = False

    @property
    def number_format(self) -> str:
        """Excel number format, e.g. ``0.0000`` or ``0.0%``."""
        fmt = "0"
        if self.decimal_places > 0:
            fmt += "." + "0" * self.decimal_places
        if self.is_percent:
            fmt += "%"
        return fmt


@dataclass(frozen=True)
class SampleRow:
    sample_id: str
    values: tuple[CellValue, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class ReportOutput:
    """Named, typed output table (sample id -> computed values)."""
    name: str  # シート名
    headers: tuple[HeaderSpec, ...] = field(default_factory=tuple)
    rows: tuple[SampleRow, ...] = field(default_factory=tuple)
    sample_id_label: str = DEFAULT_SAMPLE_ID_LABEL

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "rows", tuple(self.rows))

    @property
    def labels(self) -> list[str]:
        return [h.label for h in self.headers]

    def row_for(self, sample_id: str) -> SampleRow | None:
        for row in self.rows:
            if row.sample_id == sample_id:
                return row
        return None
