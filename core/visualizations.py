"""
Visualization components using Plotly for insight charts.

Each insight type maps to one figure; the overview adds a data summary table
and distribution histograms.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from config.settings import AppConfig, Config
from core.insights import Insight
from core.profiling import summarize_dataset
from core.schema import AnalysisFrame, Dataset

logger = logging.getLogger(__name__)

VisualizationType = Literal["chart", "table"]

NORMAL_COLOR = "rgba(75, 192, 192, 0.8)"
HIGHLIGHT_COLOR = "rgba(255, 99, 132, 0.9)"
SEGMENT_COLORS = [
    "rgba(255, 99, 132, 0.8)",
    "rgba(54, 162, 235, 0.8)",
    "rgba(255, 205, 86, 0.8)",
    "rgba(75, 192, 192, 0.8)",
    "rgba(153, 102, 255, 0.8)",
]


@dataclass
class Visualization:
    id: str
    type: VisualizationType
    title: str
    figure: go.Figure
    data: Dict[str, Any] = field(default_factory=dict)


def _apply_layout(fig: go.Figure, title: str, x_title: Optional[str] = None, y_title: Optional[str] = None) -> go.Figure:
    fig.update_layout(
        title=title,
        xaxis_title=x_title,
        yaxis_title=y_title,
        legend=dict(orientation="h", yanchor="bottom", y=1.02),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
    )
    return fig


def create_trend_chart(insight: Insight) -> go.Figure:
    """
    Line chart of the chronologically ordered series behind a trend.

    Args:
        insight: Trend insight

    Returns:
        Plotly figure object
    """
    column = insight.data["column"]
    series = insight.data["time_series"]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[point.date for point in series],
        y=[point.value for point in series],
        name=column,
        mode="lines+markers",
        line=dict(color=NORMAL_COLOR),
    ))

    slope = insight.data["slope"]
    intercept = insight.data["intercept"]
    fig.add_trace(go.Scatter(
        x=[series[0].date, series[-1].date],
        y=[intercept, intercept + slope * (len(series) - 1)],
        name="Fitted trend",
        mode="lines",
        line=dict(color=HIGHLIGHT_COLOR, dash="dash"),
    ))

    return _apply_layout(fig, insight.title, "Date", column)


def create_correlation_scatter(insight: Insight, frame: AnalysisFrame) -> go.Figure:
    """Scatter plot of the rows where both correlated columns parse."""
    col1 = insight.data["column1"]
    col2 = insight.data["column2"]
    pairs = frame.numeric[[col1, col2]].dropna()

    fig = px.scatter(
        pairs,
        x=col1,
        y=col2,
        title=insight.title,
        opacity=0.6,
    )
    fig.update_layout(hovermode="closest")
    return _apply_layout(fig, insight.title, col1, col2)


def create_segment_chart(insight: Insight) -> go.Figure:
    """Doughnut chart of segment sizes."""
    segments = insight.data["segments"]

    fig = go.Figure(go.Pie(
        labels=[f"Segment {seg['id']}" for seg in segments],
        values=[seg["size"] for seg in segments],
        hole=0.5,
        marker=dict(colors=SEGMENT_COLORS[:len(segments)]),
        sort=False,
    ))
    return _apply_layout(fig, insight.title)


def create_anomaly_chart(insight: Insight, frame: AnalysisFrame) -> go.Figure:
    """Scatter of a column by row index with anomalous rows highlighted."""
    column = insight.data["column"]
    values = frame.valid_values(column)
    anomalous = {item["index"] for item in insight.data["anomalies"]}
    is_anomaly = values.index.isin(list(anomalous))

    normal = values[~is_anomaly]
    flagged = values[is_anomaly]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=normal.index,
        y=normal.values,
        mode="markers",
        name="Normal Values",
        marker=dict(color=NORMAL_COLOR),
    ))
    fig.add_trace(go.Scatter(
        x=flagged.index,
        y=flagged.values,
        mode="markers",
        name="Anomalies",
        marker=dict(color=HIGHLIGHT_COLOR, size=12, symbol="x"),
    ))

    mean = insight.data["mean"]
    threshold = insight.data["threshold"]
    fig.add_hline(y=mean, line_dash="dash", line_color="#2ECC71",
                  annotation=dict(text="Mean"))
    fig.add_hrect(y0=mean - threshold, y1=mean + threshold,
                  fillcolor="rgba(46,204,113,0.08)", line_width=0)

    return _apply_layout(fig, insight.title, "Index", column)


def create_prediction_chart(insight: Insight) -> go.Figure:
    """Historical line plus a dashed segment to the predicted next value."""
    column = insight.data["column"]
    history = insight.data["historical"]
    next_index = insight.data["next_index"]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=list(range(len(history))),
        y=history,
        mode="lines+markers",
        name="Historical Data",
        line=dict(color=NORMAL_COLOR),
    ))
    fig.add_trace(go.Scatter(
        x=[len(history) - 1, next_index],
        y=[history[-1], insight.data["prediction"]],
        mode="lines+markers",
        name="Prediction",
        line=dict(color=HIGHLIGHT_COLOR, dash="dash"),
    ))
    return _apply_layout(fig, insight.title, "Time Period", column)


def create_histogram(values: pd.Series, column: str, bins: int = 20) -> go.Figure:
    """Distribution of a numeric column."""
    fig = go.Figure(go.Histogram(
        x=values,
        nbinsx=bins,
        marker=dict(color=NORMAL_COLOR),
        name=column,
    ))
    fig.update_layout(bargap=0.05, showlegend=False)
    return _apply_layout(fig, f"Distribution of {column}", column, "Count")


def create_summary_table(records: Dataset) -> go.Figure:
    """Table with one row per column of the dataset summary."""
    headers = ["Column", "Type", "Count", "Nulls", "Mean", "Median", "Min", "Max", "Unique", "Most Common"]
    keys = ["name", "detected_type", "count", "null_count", "mean", "median", "min", "max",
            "unique_count", "most_common"]
    summaries = [summary.to_dict() for summary in summarize_dataset(records)]

    def _format(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, float):
            return f"{value:.2f}"
        return str(value)

    cells = [[_format(summary[key]) for summary in summaries] for key in keys]

    fig = go.Figure(go.Table(
        header=dict(values=headers, fill_color="#2E86DE", font=dict(color="white")),
        cells=dict(values=cells),
    ))
    fig.update_layout(title="Data Summary")
    return fig


def create_visualization(insight: Insight, frame: AnalysisFrame) -> Optional[Visualization]:
    """Build the chart matching an insight's type."""
    builders = {
        "trend": lambda: create_trend_chart(insight),
        "correlation": lambda: create_correlation_scatter(insight, frame),
        "segment": lambda: create_segment_chart(insight),
        "anomaly": lambda: create_anomaly_chart(insight, frame),
        "prediction": lambda: create_prediction_chart(insight),
    }
    builder = builders.get(insight.type)
    if builder is None:
        return None

    data = insight.data
    if insight.type == "correlation":
        suffix = f"{data['column1']}-{data['column2']}"
    elif insight.type == "segment":
        suffix = "-".join(data["columns"])
    else:
        suffix = data["column"]

    return Visualization(
        id=f"{insight.type}-{suffix}",
        type="chart",
        title=insight.title,
        figure=builder(),
        data=data,
    )


def create_overview_visualizations(frame: AnalysisFrame, app: Optional[AppConfig] = None) -> List[Visualization]:
    """Data summary table and histograms for the leading numeric columns."""
    app = app or Config.load().app
    visualizations: List[Visualization] = []
    if frame.row_count == 0:
        return visualizations

    visualizations.append(Visualization(
        id="data-summary",
        type="table",
        title="Data Summary",
        figure=create_summary_table(frame.records),
        data={"columns": frame.schema.columns},
    ))

    for column in frame.schema.numeric_columns[:app.overview_histogram_columns]:
        values = frame.valid_values(column)
        if values.empty:
            continue
        visualizations.append(Visualization(
            id=f"histogram-{column}",
            type="chart",
            title=f"Distribution of {column}",
            figure=create_histogram(values, column, bins=app.histogram_bins),
            data={"column": column, "count": int(values.size)},
        ))

    return visualizations


def create_visualizations(records: Dataset, insights: List[Insight]) -> List[Visualization]:
    """
    One visualization per insight followed by the overview figures.

    A figure that fails to build is logged and left out.
    """
    frame = AnalysisFrame.from_records(records)
    visualizations: List[Visualization] = []

    for insight in insights:
        try:
            visualization = create_visualization(insight, frame)
        except Exception:
            logger.exception("Error creating visualization for %s", insight.type)
            continue
        if visualization is not None:
            visualizations.append(visualization)

    try:
        visualizations.extend(create_overview_visualizations(frame))
    except Exception:
        logger.exception("Error creating overview visualizations")

    return visualizations
