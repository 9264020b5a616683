"""
Column classification and typed value parsing for record-oriented datasets.

A dataset is an ordered sequence of mappings (column name -> scalar). The
first record defines the schema; every later cell is coerced individually and
either yields a value or a recorded skip reason.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

Record = Mapping[str, Any]
Dataset = Sequence[Record]

ValueKind = Literal["numeric", "date", "other"]
SkipReason = Literal[
    "missing", "boolean", "not_numeric", "non_finite", "unparsable_date"
]


@dataclass(frozen=True)
class ParsedValue:
    """Outcome of coercing a single cell: a value, or the reason it was skipped."""

    value: Any = None
    reason: Optional[SkipReason] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass(frozen=True)
class TimeSeriesPoint:
    date: pd.Timestamp
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "value": self.value}


@dataclass
class ColumnSchema:
    """Inferred column kinds, computed once per dataset."""

    columns: List[str] = field(default_factory=list)
    kinds: Dict[str, ValueKind] = field(default_factory=dict)
    date_column: Optional[str] = None

    @property
    def numeric_columns(self) -> List[str]:
        return [col for col in self.columns if self.kinds[col] == "numeric"]


def parse_number(raw: Any) -> ParsedValue:
    """
    Coerce a raw cell to a finite float.

    Args:
        raw: Cell value (string, number, or anything else)

    Returns:
        ParsedValue with the float, or a skip reason
    """
    if raw is None:
        return ParsedValue(reason="missing")
    if isinstance(raw, (bool, np.bool_)):
        return ParsedValue(reason="boolean")

    if isinstance(raw, (int, float, np.number)):
        number = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ParsedValue(reason="missing")
        # float() accepts digit separators, plain decimal notation does not
        if "_" in text:
            return ParsedValue(reason="not_numeric")
        try:
            number = float(text)
        except ValueError:
            return ParsedValue(reason="not_numeric")
    else:
        return ParsedValue(reason="not_numeric")

    if not math.isfinite(number):
        return ParsedValue(reason="non_finite")
    return ParsedValue(value=number)


def _normalize_timestamp(ts: pd.Timestamp) -> pd.Timestamp:
    # Mixed aware/naive timestamps cannot be compared
    if ts.tzinfo is not None:
        return ts.tz_convert("UTC").tz_localize(None)
    return ts


def parse_date(raw: Any) -> ParsedValue:
    """
    Coerce a raw cell to a pandas Timestamp.

    Numbers and numeric strings are read as milliseconds since the Unix epoch,
    so an integer id column orders like its values.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return ParsedValue(reason="missing")
    if isinstance(raw, (bool, np.bool_)):
        return ParsedValue(reason="boolean")
    if isinstance(raw, (pd.Timestamp, datetime, date, np.datetime64)):
        ts = pd.Timestamp(raw)
        if pd.isna(ts):
            return ParsedValue(reason="unparsable_date")
        return ParsedValue(value=_normalize_timestamp(ts))
    number = parse_number(raw)
    if number.ok:
        try:
            return ParsedValue(value=pd.Timestamp(number.value, unit="ms"))
        except (ValueError, OverflowError):
            return ParsedValue(reason="unparsable_date")
    if not isinstance(raw, str):
        return ParsedValue(reason="unparsable_date")

    try:
        ts = pd.to_datetime(raw.strip(), errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return ParsedValue(reason="unparsable_date")
    if pd.isna(ts):
        return ParsedValue(reason="unparsable_date")
    return ParsedValue(value=_normalize_timestamp(ts))


def classify_columns(records: Dataset) -> ColumnSchema:
    """
    Classify columns as numeric or date-like from the first record.

    Later rows are not re-validated here; they are filtered when values are
    extracted. The two tests are independent: a numeric column can also be the
    date column. The first date-like column in schema order wins; a zero in the
    first record never marks a column as date-like.
    """
    if len(records) == 0:
        return ColumnSchema()

    first = records[0]
    schema = ColumnSchema(columns=list(first.keys()))
    for column in schema.columns:
        value = first[column]
        numeric = parse_number(value)
        is_zero = numeric.ok and numeric.value == 0 and not isinstance(value, str)
        date_like = not is_zero and parse_date(value).ok

        if numeric.ok:
            schema.kinds[column] = "numeric"
        elif date_like:
            schema.kinds[column] = "date"
        else:
            schema.kinds[column] = "other"

        if date_like and schema.date_column is None:
            schema.date_column = column
    return schema


class AnalysisFrame:
    """
    Read-only view of a dataset with its schema and parsed columns.

    All parsing happens in the constructor, so one frame can be shared by
    analyzers running on different threads.
    """

    def __init__(self, records: Dataset, schema: ColumnSchema):
        self.records: List[Record] = list(records)
        self.schema = schema
        self._skipped: Dict[str, Dict[int, SkipReason]] = {}

        numeric_data: Dict[str, List[float]] = {}
        for column in schema.numeric_columns:
            parsed = [parse_number(row.get(column)) for row in self.records]
            numeric_data[column] = [p.value if p.ok else np.nan for p in parsed]
            self._skipped[column] = {i: p.reason for i, p in enumerate(parsed) if not p.ok}
        self.numeric = pd.DataFrame(numeric_data, index=pd.RangeIndex(len(self.records)), dtype="float64")

        self.dates: Optional[pd.Series] = None
        if schema.date_column is not None:
            parsed = [parse_date(row.get(schema.date_column)) for row in self.records]
            self.dates = pd.Series(
                [p.value if p.ok else pd.NaT for p in parsed],
                index=pd.RangeIndex(len(self.records)),
            )
            # A numeric date column keeps its numeric skip reasons
            self._skipped.setdefault(schema.date_column, {
                i: p.reason for i, p in enumerate(parsed) if not p.ok
            })

    @classmethod
    def from_records(cls, records: Dataset) -> "AnalysisFrame":
        return cls(records, classify_columns(records))

    @property
    def row_count(self) -> int:
        return len(self.records)

    def valid_values(self, column: str) -> pd.Series:
        """Parsed values of a numeric column with skipped rows removed."""
        return self.numeric[column].dropna()

    def skipped(self, column: str) -> Dict[int, SkipReason]:
        """Row index -> skip reason for every cell dropped from the column."""
        return dict(self._skipped.get(column, {}))

    def time_series(self, column: str) -> List[TimeSeriesPoint]:
        """
        Pair the date column with a numeric column.

        Rows with an unparsable date or value are dropped; the rest are
        stable-sorted ascending by date.
        """
        if self.dates is None:
            return []

        pairs = pd.DataFrame({"date": self.dates, "value": self.numeric[column]}).dropna()
        pairs = pairs.sort_values("date", kind="mergesort")
        return [
            TimeSeriesPoint(date=row.date, value=float(row.value))
            for row in pairs.itertuples(index=False)
        ]
