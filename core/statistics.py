"""
Statistical routines behind the analyzers: linear trend fitting, Pearson
correlation, standard-deviation outlier scans and k-means clustering.

Functions take plain numeric sequences and return small result dataclasses;
none of them know about records or column names.
"""

import warnings
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.cluster import KMeans
from sklearn.linear_model import LinearRegression

Numbers = Union[Sequence[float], np.ndarray, pd.Series]


@dataclass
class LinearFit:
    """Least-squares line of value against sequence index 0..n-1."""

    slope: float
    intercept: float
    r_squared: float
    n: int

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    @property
    def direction(self) -> str:
        return "Upward" if self.slope > 0 else "Downward"


@dataclass
class CorrelationResult:
    """Result of correlation analysis between two variables."""

    variable1: str
    variable2: str
    correlation: float
    p_value: float
    n: int

    @property
    def direction(self) -> str:
        return "positive" if self.correlation > 0 else "negative"


@dataclass
class OutlierScan:
    """Mean, population standard deviation and the values beyond the threshold."""

    mean: float
    std_dev: float
    threshold: float
    outliers: pd.Series


@dataclass
class Segment:
    id: int
    size: int
    centroid: List[float]
    points: List[List[float]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "size": self.size,
            "centroid": self.centroid,
            "points": self.points,
        }


@dataclass
class ClusteringResult:
    k: int
    labels: np.ndarray
    segments: List[Segment]
    inertia: float


def r_squared_score(y: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Coefficient of determination 1 - SS_res / SS_tot.

    Returns NaN for a constant target instead of sklearn's finite fallback,
    so a flat series never passes a fit-quality gate.
    """
    ss_res = float(np.sum((y - y_pred) ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0:
        return float("nan")
    return 1 - ss_res / ss_tot


def fit_linear_trend(values: Numbers) -> LinearFit:
    """
    Fit a linear trend over sequential values.

    Args:
        values: Numeric values already in chronological order

    Returns:
        LinearFit with slope, intercept and R²
    """
    y = np.asarray(values, dtype="float64")
    if len(y) < 2:
        raise ValueError("Insufficient data points for trend fitting")

    x = np.arange(len(y)).reshape(-1, 1)
    model = LinearRegression()
    model.fit(x, y)
    y_pred = model.predict(x)

    return LinearFit(
        slope=float(model.coef_[0]),
        intercept=float(model.intercept_),
        r_squared=r_squared_score(y, y_pred),
        n=len(y),
    )


def calculate_correlation(
    values1: Numbers,
    values2: Numbers,
    name1: str = "x",
    name2: str = "y",
) -> CorrelationResult:
    """
    Pearson correlation between two equally long samples.

    Args:
        values1: First sample
        values2: Second sample
        name1: Label of the first variable
        name2: Label of the second variable

    Returns:
        CorrelationResult; correlation is NaN when either sample is constant
    """
    x = np.asarray(values1, dtype="float64")
    y = np.asarray(values2, dtype="float64")

    if len(x) != len(y):
        raise ValueError("Samples must have equal length for correlation analysis")
    if len(x) < 3:
        raise ValueError("Insufficient data points for correlation analysis")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        corr, p_val = stats.pearsonr(x, y)

    return CorrelationResult(
        variable1=name1,
        variable2=name2,
        correlation=float(corr),
        p_value=float(p_val),
        n=len(x),
    )


def detect_outliers_stddev(values: pd.Series, multiplier: float = 2.0) -> OutlierScan:
    """
    Flag values more than `multiplier` population standard deviations from the mean.

    Args:
        values: Numeric series without missing values
        multiplier: Width of the accepted band in standard deviations

    Returns:
        OutlierScan with the flagged values, index preserved
    """
    if multiplier <= 0:
        raise ValueError("Multiplier must be positive for outlier detection")
    if values.empty:
        raise ValueError("Cannot scan an empty series for outliers")

    mean = float(values.mean())
    std_dev = float(values.std(ddof=0))
    threshold = multiplier * std_dev
    mask = (values - mean).abs() > threshold

    return OutlierScan(
        mean=mean,
        std_dev=std_dev,
        threshold=threshold,
        outliers=values[mask],
    )


def cluster_points(
    points: np.ndarray,
    k: int,
    init: str = "random",
    random_state: Optional[int] = None,
) -> ClusteringResult:
    """
    Partition 2-D points into k clusters with k-means.

    Args:
        points: Array of shape (n, 2)
        k: Number of clusters
        init: KMeans initialization strategy
        random_state: Seed for reproducible initialization (None = random)

    Returns:
        ClusteringResult with one Segment per cluster, ids starting at 1
    """
    points = np.asarray(points, dtype="float64")
    if k < 1 or len(points) < k:
        raise ValueError(f"Cannot form {k} clusters from {len(points)} points")

    with warnings.catch_warnings():
        # Fewer distinct points than clusters is tolerated
        warnings.simplefilter("ignore")
        model = KMeans(n_clusters=k, init=init, n_init=1, random_state=random_state)
        labels = model.fit_predict(points)

    segments = []
    for index in range(k):
        members = points[labels == index]
        segments.append(Segment(
            id=index + 1,
            size=int(len(members)),
            centroid=[float(c) for c in model.cluster_centers_[index]],
            points=members.tolist(),
        ))

    return ClusteringResult(
        k=k,
        labels=labels,
        segments=segments,
        inertia=float(model.inertia_),
    )


def welch_t_test(sample1: Numbers, sample2: Numbers) -> tuple:
    """Welch's t-test for unequal variances; returns (t_statistic, p_value)."""
    a = np.asarray(sample1, dtype="float64")
    b = np.asarray(sample2, dtype="float64")
    if len(a) < 2 or len(b) < 2:
        raise ValueError("Insufficient data in one or both samples for Welch's t-test")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        t_stat, p_val = stats.ttest_ind(a, b, equal_var=False)
    return float(t_stat), float(p_val)
