"""Domain models for the grain summarizer.

Cell values, rows and tables (the parsed source data), report outputs (the
hand-off to the workbook writer) and run configuration / results.
"""

from .cell import Cell, CellValue, ValueKind
from .config_models import ProcessingConfig
from .error_record import ErrorRecord
from .processing_result import ProcessingResult, ReportStat
from .report_output import HeaderSpec, ReportOutput, SampleRow
from .table import Row, RowSet, Table

__all__ = [
    # Source data models
    "ValueKind",
    "CellValue",
    "Cell",
    "Row",
    "RowSet",
    "Table",
    # Output models
    "HeaderSpec",
    "SampleRow",
    "ReportOutput",
    # Configuration / run models
    "ProcessingConfig",
    "ErrorRecord",
    "ProcessingResult",
    "ReportStat",
]
