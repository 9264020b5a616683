"""
Analysis engine: five independent analyzers over a parsed dataset and the
ranker that merges their insights.

Every analyzer degrades to "no insight" on bad data. Per-column faults are
logged and skipped, and `generate_insights` isolates whole analyzers so one
failure never hides the others' results.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

import numpy as np

from config.settings import AnalysisConfig, Config
from core.insights import Insight
from core.schema import AnalysisFrame, Dataset, parse_number
from core.statistics import (
    calculate_correlation,
    cluster_points,
    detect_outliers_stddev,
    fit_linear_trend,
)

logger = logging.getLogger(__name__)

# Fixed confidence for segmentation insights, independent of cluster quality.
SEGMENT_CONFIDENCE = 75.0

Analyzer = Callable[[AnalysisFrame, AnalysisConfig], List[Insight]]


def _resolve_config(config: Optional[AnalysisConfig]) -> AnalysisConfig:
    return config if config is not None else Config.load().analysis


def identify_trends(frame: AnalysisFrame, config: Optional[AnalysisConfig] = None) -> List[Insight]:
    """
    Fit a linear trend per numeric column ordered by the date column.

    Args:
        frame: Parsed dataset
        config: Analysis thresholds

    Returns:
        One trend insight per column whose slope magnitude exceeds the threshold
    """
    config = _resolve_config(config)
    insights: List[Insight] = []
    numeric_columns = frame.schema.numeric_columns

    if frame.schema.date_column is None or not numeric_columns:
        return insights

    for column in numeric_columns:
        try:
            series = frame.time_series(column)
            if len(series) < config.trend_min_points:
                logger.debug("Skipping trend for %s: %d valid points", column, len(series))
                continue

            fit = fit_linear_trend([point.value for point in series])
            if abs(fit.slope) <= config.trend_slope_threshold:
                continue

            direction = fit.direction
            rate_word = "growth" if direction == "Upward" else "decline"
            insights.append(Insight(
                type="trend",
                title=f"{direction} Trend in {column}",
                description=(
                    f"{column} shows a {direction.lower()} trend with a {rate_word} rate of "
                    f"{abs(fit.slope):.4f} per time period. R² = {fit.r_squared:.3f}"
                ),
                confidence=min(fit.r_squared * 100, config.trend_confidence_cap),
                data={
                    "column": column,
                    "slope": fit.slope,
                    "intercept": fit.intercept,
                    "r_squared": fit.r_squared,
                    "direction": direction,
                    "time_series": series,
                },
            ))
        except Exception:
            logger.exception("Error analyzing trend for %s", column)

    return insights


def find_correlations(frame: AnalysisFrame, config: Optional[AnalysisConfig] = None) -> List[Insight]:
    """
    Pearson correlation for every unordered pair of numeric columns.

    Each column is filtered on its own; pairs whose filtered lengths differ
    are skipped rather than re-aligned.
    """
    config = _resolve_config(config)
    insights: List[Insight] = []
    numeric_columns = frame.schema.numeric_columns

    if len(numeric_columns) < 2:
        return insights

    for i, col1 in enumerate(numeric_columns):
        for col2 in numeric_columns[i + 1:]:
            try:
                values1 = frame.valid_values(col1)
                values2 = frame.valid_values(col2)
                if len(values1) != len(values2) or len(values1) < config.correlation_min_points:
                    logger.debug("Skipping correlation %s/%s: %d vs %d values",
                                 col1, col2, len(values1), len(values2))
                    continue

                result = calculate_correlation(values1.values, values2.values, col1, col2)
                correlation = result.correlation
                if not abs(correlation) > config.correlation_threshold:
                    continue

                strength = "strong" if abs(correlation) > config.strong_correlation_threshold else "moderate"
                direction = result.direction
                rising = correlation > 0
                insights.append(Insight(
                    type="correlation",
                    title=f"{strength.capitalize()} {direction} correlation",
                    description=(
                        f"{col1} and {col2} show a {strength} {direction} correlation "
                        f"(r = {correlation:.3f}). When {col1} {'increases' if rising else 'decreases'}, "
                        f"{col2} tends to {'increase' if rising else 'decrease'} as well."
                    ),
                    confidence=abs(correlation) * 100,
                    data={
                        "column1": col1,
                        "column2": col2,
                        "correlation": correlation,
                        "p_value": result.p_value,
                        "strength": strength,
                        "direction": direction,
                    },
                ))
            except Exception:
                logger.exception("Error calculating correlation between %s and %s", col1, col2)

    return insights


def detect_anomalies(frame: AnalysisFrame, config: Optional[AnalysisConfig] = None) -> List[Insight]:
    """Flag values beyond the standard-deviation band in each numeric column."""
    config = _resolve_config(config)
    insights: List[Insight] = []

    for column in frame.schema.numeric_columns:
        try:
            values = frame.valid_values(column)
            if len(values) < config.anomaly_min_values:
                logger.debug("Skipping anomalies for %s: %d valid values", column, len(values))
                continue

            scan = detect_outliers_stddev(values, multiplier=config.anomaly_std_multiplier)
            count = len(scan.outliers)
            if count == 0:
                continue

            anomalies = [
                {"index": int(index), "value": frame.records[index].get(column), "row": frame.records[index]}
                for index in scan.outliers.index
            ]
            plural = count != 1
            insights.append(Insight(
                type="anomaly",
                title=f"{count} Anomal{'ies' if plural else 'y'} in {column}",
                description=(
                    f"Detected {count} unusual value{'s' if plural else ''} in {column} that deviate "
                    f"significantly from the mean ({scan.mean:.2f} ± {scan.threshold:.2f})."
                ),
                confidence=min(
                    count / len(values) * config.anomaly_confidence_scale,
                    config.anomaly_confidence_cap,
                ),
                data={
                    "column": column,
                    "anomalies": anomalies,
                    "mean": scan.mean,
                    "std_dev": scan.std_dev,
                    "threshold": scan.threshold,
                },
            ))
        except Exception:
            logger.exception("Error detecting anomalies in %s", column)

    return insights


def _coerce_or_zero(raw) -> float:
    parsed = parse_number(raw)
    return parsed.value if parsed.ok else 0.0


def perform_segmentation(
    frame: AnalysisFrame,
    config: Optional[AnalysisConfig] = None,
    random_state: Optional[int] = None,
) -> List[Insight]:
    """
    Cluster records on the first two numeric columns.

    Unparsable cells count as 0 so every record keeps its place. Emits a
    single insight describing all segments.
    """
    config = _resolve_config(config)
    insights: List[Insight] = []
    numeric_columns = frame.schema.numeric_columns

    if len(numeric_columns) < 2 or frame.row_count < config.segmentation_min_records:
        return insights

    col1, col2 = numeric_columns[0], numeric_columns[1]
    try:
        points = np.array(
            [[_coerce_or_zero(row.get(col1)), _coerce_or_zero(row.get(col2))] for row in frame.records],
            dtype="float64",
        )
        points = points[~np.isnan(points).any(axis=1)]
        if len(points) < config.segmentation_min_points:
            return insights

        k = min(config.segmentation_max_clusters, len(points) // 3)
        seed = random_state if random_state is not None else config.random_state
        result = cluster_points(points, k, init=config.kmeans_init, random_state=seed)

        sizes = ", ".join(f"Segment {seg.id}: {seg.size} records" for seg in result.segments)
        insights.append(Insight(
            type="segment",
            title=f"Data Segmented into {k} Groups",
            description=(
                f"Based on {col1} and {col2}, the data naturally groups into {k} distinct segments. "
                f"{sizes}."
            ),
            confidence=SEGMENT_CONFIDENCE,
            data={
                "columns": [col1, col2],
                "segments": [seg.to_dict() for seg in result.segments],
                "k": k,
            },
        ))
    except Exception:
        logger.exception("Error performing segmentation on %s and %s", col1, col2)

    return insights


def generate_predictions(frame: AnalysisFrame, config: Optional[AnalysisConfig] = None) -> List[Insight]:
    """Predict the next value of each numeric column from its linear trend."""
    config = _resolve_config(config)
    insights: List[Insight] = []
    numeric_columns = frame.schema.numeric_columns

    if (
        frame.schema.date_column is None
        or not numeric_columns
        or frame.row_count < config.prediction_min_points
    ):
        return insights

    for column in numeric_columns:
        try:
            series = frame.time_series(column)
            if len(series) < config.prediction_min_points:
                continue

            history = [point.value for point in series]
            fit = fit_linear_trend(history)
            next_index = len(series)
            prediction = fit.predict(next_index)

            # NaN R² (flat series) never passes
            if not fit.r_squared > config.prediction_min_r_squared:
                continue

            insights.append(Insight(
                type="prediction",
                title=f"Predicted Next Value for {column}",
                description=(
                    f"Based on historical trends, the next predicted value for {column} is "
                    f"{prediction:.2f}. Model accuracy: {fit.r_squared * 100:.1f}%"
                ),
                confidence=min(fit.r_squared * 100, config.prediction_confidence_cap),
                data={
                    "column": column,
                    "prediction": prediction,
                    "r_squared": fit.r_squared,
                    "slope": fit.slope,
                    "intercept": fit.intercept,
                    "historical": history,
                    "next_index": next_index,
                },
            ))
        except Exception:
            logger.exception("Error generating prediction for %s", column)

    return insights


def rank_insights(groups: Sequence[List[Insight]]) -> List[Insight]:
    """
    Concatenate analyzer outputs in order and sort by descending confidence.

    The sort is stable, so equal confidences keep generation order.
    """
    merged = [insight for group in groups for insight in group]
    return sorted(merged, key=lambda insight: insight.confidence, reverse=True)


def generate_insights(
    records: Dataset,
    config: Optional[AnalysisConfig] = None,
    random_state: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> List[Insight]:
    """
    Run every analyzer over a dataset and return the ranked insights.

    Args:
        records: Ordered sequence of column -> value mappings
        config: Analysis thresholds (defaults to the global config)
        random_state: Seed for the segmentation k-means initialization
        max_workers: Run analyzers on a thread pool of this size when set

    Returns:
        Insights sorted by descending confidence; empty for an empty dataset
    """
    if len(records) == 0:
        return []

    config = _resolve_config(config)
    frame = AnalysisFrame.from_records(records)

    analyzers: List[Analyzer] = [
        identify_trends,
        find_correlations,
        detect_anomalies,
        lambda f, c: perform_segmentation(f, c, random_state=random_state),
        generate_predictions,
    ]
    names = ["trend", "correlation", "anomaly", "segment", "prediction"]

    def _run(index: int) -> List[Insight]:
        try:
            return analyzers[index](frame, config)
        except Exception:
            logger.exception("%s analyzer failed", names[index].capitalize())
            return []

    if max_workers:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            groups = list(pool.map(_run, range(len(analyzers))))
    else:
        groups = [_run(index) for index in range(len(analyzers))]

    insights = rank_insights(groups)
    logger.info("Generated %d insights from %d records", len(insights), frame.row_count)
    return insights
