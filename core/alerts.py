"""
Alert evaluation for automation rules.

Pure checks over a dataset: values above a configured maximum, and values
outside a sensitivity-dependent standard-deviation band. Delivering the
alerts is left to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from config.settings import AlertConfig, Config
from core.schema import Dataset, parse_number
from core.statistics import detect_outliers_stddev

logger = logging.getLogger(__name__)


@dataclass
class ThresholdAlert:
    column: str
    index: int
    value: float
    threshold: float
    row: Mapping[str, Any]

    @property
    def message(self) -> str:
        return f"Value {self.value:g} exceeds maximum threshold {self.threshold:g}"


@dataclass
class AnomalyAlert:
    column: str
    index: int
    value: float
    deviation: float  # distance from the mean in standard deviations
    row: Mapping[str, Any]


def check_thresholds(records: Dataset, column: str, maximum: float) -> List[ThresholdAlert]:
    """
    Flag every row whose value in `column` exceeds `maximum`.

    Rows where the value does not parse are ignored.
    """
    alerts = []
    for index, row in enumerate(records):
        parsed = parse_number(row.get(column))
        if parsed.ok and parsed.value > maximum:
            alerts.append(ThresholdAlert(
                column=column,
                index=index,
                value=parsed.value,
                threshold=maximum,
                row=row,
            ))
    if alerts:
        logger.info("%d value(s) in %s exceed %g", len(alerts), column, maximum)
    return alerts


def scan_anomalies(
    records: Dataset,
    columns: Iterable[str],
    sensitivity: str = "medium",
    config: Optional[AlertConfig] = None,
) -> List[AnomalyAlert]:
    """
    Flag values further from the column mean than the sensitivity allows.

    Args:
        records: Dataset to scan
        columns: Columns to check
        sensitivity: low (3.0 std), medium (2.5 std) or high (2.0 std)
        config: Sensitivity thresholds (defaults to the global config)

    Returns:
        AnomalyAlert per flagged cell, grouped by column in the given order
    """
    config = config or Config.load().alerts
    multiplier = config.threshold_for(sensitivity)

    alerts: List[AnomalyAlert] = []
    for column in columns:
        values = _numeric_values(records, column)
        if values.empty:
            logger.debug("No numeric values in %s; skipping anomaly scan", column)
            continue

        scan = detect_outliers_stddev(values, multiplier=multiplier)
        for index, value in scan.outliers.items():
            alerts.append(AnomalyAlert(
                column=column,
                index=int(index),
                value=float(value),
                deviation=abs(value - scan.mean) / scan.std_dev,
                row=records[index],
            ))

    return alerts


def _numeric_values(records: Dataset, column: str) -> pd.Series:
    """Parsed values of a column indexed by row position, skipped rows removed."""
    parsed = {i: parse_number(row.get(column)) for i, row in enumerate(records)}
    return pd.Series({i: p.value for i, p in parsed.items() if p.ok}, dtype="float64")
