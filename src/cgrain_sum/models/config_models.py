from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclass for the grain summarizer.

ProcessingConfig is a plain value threaded explicitly through every report
builder and through the orchestrator; there is no process-wide config
singleton. The YAML loader in ``cgrain_sum.config.loader`` produces it.
"""

__all__ = [
    "ProcessingConfig",
    "DEFAULT_STAT_COLUMNS",
]

DEFAULT_STAT_COLUMNS: tuple[str, ...] = (
    "Area",
    "Length",
    "Width",
    "Thickness",
    "Weight",
    "Light",
    "Hue",
    "Saturation",
    "Red",
    "Green",
    "Blue",
)


@dataclass(frozen=True)
class ProcessingConfig:
    """Every option the report builders and source parsers consume.

    CSV and XML sources name their sample-id column independently, because
    the instrument exports use different field names for the same thing.
    """
    # --- CSV: classification filter ---
    csv_class_filter_enabled: bool = False
    csv_class_filter_filters: tuple[str, ...] = ("Sound",)
    # --- CSV: statistics columns (Avg / Std) ---
    csv_stat_columns_enabled: bool = True
    csv_stat_columns_columns: tuple[str, ...] = DEFAULT_STAT_COLUMNS
    # --- CSV: classification percentage columns ---
    csv_class_percent_enabled: bool = True
    csv_sample_id_header: str = "external-sample-id"
    csv_class_header: str = "cor-filtered-as"
    # --- XML: sieve data ---
    xml_sieve_cols_enabled: bool = True
    xml_sample_id_header: str = "reference"
    xml_sample_closing_tag: str = "sample-result"
    xml_include_tags: tuple[str, ...] = field(default_factory=tuple)
    xml_include_prefixes: tuple[str, ...] = ("sieve-",)

    def __post_init__(self) -> None:
        # YAML から list で来るので tuple に揃える (frozen / hashable 維持)
        for name in (
            "csv_class_filter_filters",
            "csv_stat_columns_columns",
            "xml_include_tags",
            "xml_include_prefixes",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def xml_tags_of_interest(self) -> tuple[str, ...]:
        """Exact tag names captured from XML; the sample id tag always comes first."""
        tags = [self.xml_sample_id_header]
        for tag in self.xml_include_tags:
            if tag not in tags:
                tags.append(tag)
        return tuple(tags)
