"""
Lightweight data profiling for record datasets.

Builds the per-column "Data Summary" shown alongside the insights: counts,
nulls, numeric statistics or categorical frequencies.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from core.schema import Dataset, parse_number

SummaryType = Literal["numeric", "categorical", "empty"]


@dataclass
class ColumnSummary:
    """Summary statistics for a single column."""

    name: str
    detected_type: SummaryType
    count: int
    null_count: int

    # Numeric columns
    mean: Optional[float] = None
    median: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    # Categorical columns
    unique_count: Optional[int] = None
    most_common: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _is_null(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def summarize_column(name: str, values: List[Any]) -> ColumnSummary:
    """
    Summarize one column.

    A column is numeric when every non-null value parses as a number.

    Args:
        name: Column name
        values: Raw values in row order

    Returns:
        ColumnSummary
    """
    present = [v for v in values if not _is_null(v)]
    summary = ColumnSummary(
        name=name,
        detected_type="empty",
        count=len(present),
        null_count=len(values) - len(present),
    )
    if not present:
        return summary

    parsed = [parse_number(v) for v in present]
    if all(p.ok for p in parsed):
        numbers = pd.Series([p.value for p in parsed], dtype="float64")
        summary.detected_type = "numeric"
        summary.mean = float(numbers.mean())
        summary.median = float(numbers.median())
        summary.min = float(numbers.min())
        summary.max = float(numbers.max())
        return summary

    as_text = pd.Series([str(v) for v in present])
    counts = as_text.value_counts()
    summary.detected_type = "categorical"
    summary.unique_count = int(counts.size)
    summary.most_common = counts.index[0]
    return summary


def summarize_dataset(records: Dataset) -> List[ColumnSummary]:
    """Summarize every column of the schema defined by the first record."""
    if len(records) == 0:
        return []

    columns = list(records[0].keys())
    return [
        summarize_column(column, [row.get(column) for row in records])
        for column in columns
    ]
