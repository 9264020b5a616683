"""Test fixtures and configuration for pytest."""

import pytest
import pandas as pd
import numpy as np

from config.settings import AnalysisConfig


@pytest.fixture
def analysis_config():
    """Default thresholds with a fixed clustering seed."""
    return AnalysisConfig(random_state=0)


@pytest.fixture
def daily_revenue_records():
    """Ten days of revenue growing by exactly 10 per day."""
    dates = pd.date_range("2024-01-01", periods=10, freq="D")
    return [
        {"Date": d.strftime("%Y-%m-%d"), "Revenue": 100 + 10 * i}
        for i, d in enumerate(dates)
    ]


@pytest.fixture
def identical_columns_records():
    """Two numeric columns carrying the same values, no date column."""
    values = [3, 1, 4, 1, 5, 9, 2, 6, 5, 3]
    return [{"Name": f"item_{i}", "A": v, "B": v} for i, v in enumerate(values)]


@pytest.fixture
def sales_records():
    """Thirty days of sales with a revenue spike on day 18."""
    np.random.seed(42)
    dates = pd.date_range("2024-01-01", periods=30, freq="D")
    revenue = 1000 + 25 * np.arange(30) + np.random.normal(0, 20, 30)
    revenue[17] = 3000
    units = revenue / 10 + np.random.normal(0, 2, 30)
    regions = ["North", "South", "East", "West"]
    return [
        {
            "Date": d.strftime("%Y-%m-%d"),
            "Region": regions[i % 4],
            "Revenue": round(float(revenue[i]), 2),
            "Units": round(float(units[i]), 2),
        }
        for i, d in enumerate(dates)
    ]


@pytest.fixture
def clustered_records():
    """Twelve records forming three well separated groups."""
    centers = [(0, 0), (50, 50), (100, 0)]
    offsets = [(0, 0), (1, 0), (0, 1), (1, 1)]
    return [
        {"Label": f"p{i}", "X": cx + dx, "Y": cy + dy}
        for i, ((cx, cy), (dx, dy)) in enumerate(
            (center, offset) for center in centers for offset in offsets
        )
    ]
