"""
Insight records and the generator that turns them into narratives and
report analyses for non-technical readers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from core.profiling import summarize_dataset
from core.schema import AnalysisFrame, Dataset, TimeSeriesPoint
from core.statistics import welch_t_test

InsightType = Literal["trend", "correlation", "anomaly", "prediction", "segment"]

INSIGHT_TYPES = ("trend", "correlation", "anomaly", "segment", "prediction")


@dataclass
class Insight:
    """A single ranked finding produced by one analyzer."""

    type: InsightType
    title: str
    description: str
    confidence: float
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation; time series points become dicts."""
        data = {}
        for key, value in self.data.items():
            if isinstance(value, list) and value and isinstance(value[0], TimeSeriesPoint):
                value = [point.to_dict() for point in value]
            data[key] = value
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "data": data,
        }


class InsightGenerator:
    """
    Generates human-readable summaries and report analyses from a ranked
    insight list.
    """

    @staticmethod
    def _describe_confidence(confidence: float) -> str:
        if confidence >= 80:
            return "high"
        if confidence >= 50:
            return "medium"
        return "low"

    @staticmethod
    def group_by_type(insights: List[Insight]) -> Dict[str, List[Insight]]:
        """Bucket insights by type, keeping ranked order within each bucket."""
        grouped: Dict[str, List[Insight]] = {kind: [] for kind in INSIGHT_TYPES}
        for insight in insights:
            grouped[insight.type].append(insight)
        return grouped

    @staticmethod
    def generate_recommendations(insights: List[Insight]) -> List[str]:
        """Rule-based next steps derived from the insight types present."""
        grouped = InsightGenerator.group_by_type(insights)
        recommendations = []

        for insight in grouped["trend"]:
            data = insight.data
            if data["direction"] == "Downward":
                recommendations.append(
                    f"Investigate the drivers behind the decline in '{data['column']}'."
                )
            else:
                recommendations.append(
                    f"Sustain the factors behind the growth in '{data['column']}'."
                )

        if grouped["anomaly"]:
            columns = ", ".join(f"'{i.data['column']}'" for i in grouped["anomaly"])
            recommendations.append(f"Review the unusual values flagged in {columns}.")

        strong = [i for i in grouped["correlation"] if i.data["strength"] == "strong"]
        for insight in strong[:3]:
            recommendations.append(
                f"Consider '{insight.data['column1']}' as a leading indicator for "
                f"'{insight.data['column2']}'."
            )

        if grouped["segment"]:
            recommendations.append("Tailor actions to each identified segment.")

        if not recommendations:
            recommendations.append("Collect more data to surface reliable patterns.")
        return recommendations

    @staticmethod
    def generate_summary_narrative(records: Dataset, insights: List[Insight]) -> str:
        """
        Multi-paragraph narrative of the analysis.

        Args:
            records: Analyzed dataset
            insights: Ranked insights for the dataset

        Returns:
            Paragraphs separated by blank lines
        """
        paragraphs = []
        column_count = len(records[0]) if len(records) else 0
        paragraphs.append(
            f"Analysis of {len(records):,} records across {column_count} columns "
            f"produced {len(insights)} insight(s)."
        )

        if not insights:
            paragraphs.append("No significant patterns were detected in this dataset.")
            return "\n\n".join(paragraphs)

        top = insights[0]
        paragraphs.append(
            f"The strongest finding is '{top.title}' with "
            f"{InsightGenerator._describe_confidence(top.confidence)} confidence "
            f"({top.confidence:.1f}%). {top.description}"
        )

        grouped = InsightGenerator.group_by_type(insights)
        counts = ", ".join(f"{len(items)} {kind}" for kind, items in grouped.items() if items)
        paragraphs.append(f"Findings by type: {counts}.")

        return "\n\n".join(paragraphs)

    @staticmethod
    def generate_report(records: Dataset, insights: List[Insight], report_type: str) -> Dict[str, Any]:
        """
        Build the analysis payload for a report of the given type.

        Unknown report types produce a custom report.
        """
        builders = {
            "Executive Summary": InsightGenerator.generate_executive_summary,
            "Detailed Analysis": InsightGenerator.generate_detailed_analysis,
            "Trend Report": InsightGenerator.generate_trend_report,
            "Comparison Report": InsightGenerator.generate_comparison_report,
        }
        builder = builders.get(report_type, InsightGenerator.generate_custom_report)
        return builder(records, insights)

    @staticmethod
    def calculate_key_metrics(records: Dataset, insights: List[Insight]) -> Dict[str, Any]:
        frame = AnalysisFrame.from_records(records)
        return {
            "total_records": len(records),
            "column_count": len(frame.schema.columns),
            "numeric_columns": frame.schema.numeric_columns,
            "date_column": frame.schema.date_column,
            "insight_count": len(insights),
            "top_confidence": insights[0].confidence if insights else None,
        }

    @staticmethod
    def generate_executive_summary(records: Dataset, insights: List[Insight]) -> Dict[str, Any]:
        return {
            "type": "Executive Summary",
            "key_metrics": InsightGenerator.calculate_key_metrics(records, insights),
            "insights": [insight.title for insight in insights[:3]],
            "recommendations": InsightGenerator.generate_recommendations(insights),
        }

    @staticmethod
    def generate_detailed_analysis(records: Dataset, insights: List[Insight]) -> Dict[str, Any]:
        grouped = InsightGenerator.group_by_type(insights)
        return {
            "type": "Detailed Analysis",
            "methodology": (
                "Linear trend fitting, Pearson correlation, standard-deviation anomaly "
                "detection, k-means segmentation and linear next-period prediction."
            ),
            "findings": {
                kind: [insight.to_dict() for insight in items]
                for kind, items in grouped.items()
            },
            "column_summaries": [summary.to_dict() for summary in summarize_dataset(records)],
            "narrative": InsightGenerator.generate_summary_narrative(records, insights),
        }

    @staticmethod
    def _timeframe(frame: AnalysisFrame) -> Optional[Dict[str, str]]:
        if frame.dates is None:
            return None
        dates = frame.dates.dropna()
        if dates.empty:
            return None
        return {"start": dates.min().isoformat(), "end": dates.max().isoformat()}

    @staticmethod
    def generate_trend_report(records: Dataset, insights: List[Insight]) -> Dict[str, Any]:
        grouped = InsightGenerator.group_by_type(insights)
        frame = AnalysisFrame.from_records(records)
        return {
            "type": "Trend Report",
            "timeframe": InsightGenerator._timeframe(frame),
            "trends": [
                {
                    "column": i.data["column"],
                    "direction": i.data["direction"],
                    "slope": i.data["slope"],
                    "r_squared": i.data["r_squared"],
                }
                for i in grouped["trend"]
            ],
            "forecast": [
                {
                    "column": i.data["column"],
                    "prediction": i.data["prediction"],
                    "confidence": i.confidence,
                }
                for i in grouped["prediction"]
            ],
        }

    @staticmethod
    def calculate_differences(frame: AnalysisFrame) -> List[Dict[str, Any]]:
        """Compare the first and second half of each numeric column."""
        differences = []
        for column in frame.schema.numeric_columns:
            values = frame.valid_values(column)
            half = len(values) // 2
            if half < 2:
                continue

            baseline, recent = values.iloc[:half], values.iloc[half:]
            baseline_mean = float(baseline.mean())
            recent_mean = float(recent.mean())
            change = recent_mean - baseline_mean
            pct_change = change / abs(baseline_mean) * 100 if baseline_mean != 0 else None
            t_stat, p_val = welch_t_test(baseline, recent)

            differences.append({
                "column": column,
                "baseline_mean": baseline_mean,
                "recent_mean": recent_mean,
                "change": change,
                "pct_change": pct_change,
                "t_statistic": t_stat,
                "p_value": p_val,
                "significant": bool(p_val < 0.05),
            })
        return differences

    @staticmethod
    def generate_comparison_report(records: Dataset, insights: List[Insight]) -> Dict[str, Any]:
        frame = AnalysisFrame.from_records(records)
        return {
            "type": "Comparison Report",
            "baseline": "First half of the records versus the second half",
            "differences": InsightGenerator.calculate_differences(frame),
            "significance": "Welch's t-test, alpha = 0.05",
        }

    @staticmethod
    def generate_custom_report(records: Dataset, insights: List[Insight]) -> Dict[str, Any]:
        grouped = InsightGenerator.group_by_type(insights)
        return {
            "type": "Custom Report",
            "sections": [
                InsightGenerator.generate_summary_narrative(records, insights),
                *InsightGenerator.generate_recommendations(insights),
            ],
            "custom_metrics": {
                "insights_by_type": {kind: len(items) for kind, items in grouped.items()},
                "average_confidence": (
                    sum(i.confidence for i in insights) / len(insights) if insights else None
                ),
            },
        }
