from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

"""CellValue / Cell models for the grain summarizer.

A CellValue is one scalar datum inferred from raw text. Inference is purely
syntactic: an integer is attempted first, then a floating-point number, and
anything else is kept as text. Construction never fails.

    >>> CellValue.parse("55")
    CellValue(kind=<ValueKind.INT: 'int'>, value=55)
    >>> CellValue.parse("007").value
    7
    >>> CellValue.parse("5.0").kind
    <ValueKind.FLOAT: 'float'>
"""

__all__ = [
    "ValueKind",
    "CellValue",
    "Cell",
]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# base 10, optional sign, no separators / whitespace
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)


class ValueKind(Enum):
    """Variant tag of a CellValue."""
    INT = "int"
    FLOAT = "float"
    TEXT = "text"


@dataclass(frozen=True)
class CellValue:
    """Tagged scalar value (INT | FLOAT | TEXT).

    Equality is structural: kind and payload must both match, so
    ``CellValue.integer(5) != CellValue.float_(5.0)``.
    """
    kind: ValueKind
    value: int | float | str

    @staticmethod
    def integer(value: int) -> CellValue:
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError(f"integer out of 64-bit range: {value}")
        return CellValue(ValueKind.INT, int(value))

    @staticmethod
    def float_(value: float) -> CellValue:
        return CellValue(ValueKind.FLOAT, float(value))

    @staticmethod
    def text(value: str) -> CellValue:
        return CellValue(ValueKind.TEXT, str(value))

    @staticmethod
    def parse(raw: str) -> CellValue:
        """Build the most specific CellValue for a raw token (total, never raises)."""
        if _INT_RE.fullmatch(raw):
            parsed = int(raw)
            if INT64_MIN <= parsed <= INT64_MAX:
                return CellValue(ValueKind.INT, parsed)
            # 範囲外は float 扱いへフォールスルー
        if _FLOAT_RE.fullmatch(raw):
            return CellValue(ValueKind.FLOAT, float(raw))
        return CellValue(ValueKind.TEXT, raw)

    @property
    def is_numeric(self) -> bool:
        return self.kind is not ValueKind.TEXT

    def as_float(self) -> float:
        """Widen a numeric payload to float. Raises TypeError for TEXT."""
        if self.kind is ValueKind.TEXT:
            raise TypeError(f"text value is not numeric: {self.value!r}")
        return float(self.value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Cell:
    """One CellValue together with the name of the column it was read under."""
    header: str
    value: CellValue

    @staticmethod
    def parse(header: str, raw: str) -> Cell:
        return Cell(header=header, value=CellValue.parse(raw))
