"""
Centralized configuration management for the insight engine.

Holds analysis thresholds, alert sensitivities and logging settings loaded
from environment variables with typed defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


@dataclass
class AnalysisConfig:
    """Thresholds and caps used by the analyzers."""

    # Trend
    trend_min_points: int = 3
    trend_slope_threshold: float = 0.01
    trend_confidence_cap: float = 95.0

    # Correlation
    correlation_min_points: int = 3
    correlation_threshold: float = 0.5
    strong_correlation_threshold: float = 0.8

    # Anomaly
    anomaly_min_values: int = 10
    anomaly_std_multiplier: float = 2.0
    anomaly_confidence_scale: float = 500.0
    anomaly_confidence_cap: float = 90.0

    # Segmentation
    segmentation_min_records: int = 10
    segmentation_min_points: int = 6
    segmentation_max_clusters: int = 3
    kmeans_init: str = "random"
    random_state: Optional[int] = None

    # Prediction
    prediction_min_points: int = 5
    prediction_min_r_squared: float = 0.3
    prediction_confidence_cap: float = 85.0

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Load analysis thresholds from environment variables."""
        return cls(
            trend_slope_threshold=float(os.getenv("TREND_SLOPE_THRESHOLD", "0.01")),
            correlation_threshold=float(os.getenv("CORRELATION_THRESHOLD", "0.5")),
            anomaly_std_multiplier=float(os.getenv("ANOMALY_STD_MULTIPLIER", "2.0")),
            random_state=_optional_int(os.getenv("INSIGHT_RANDOM_STATE")),
        )


@dataclass
class AlertConfig:
    """Standard-deviation multipliers for anomaly alert sensitivities."""

    sensitivity_thresholds: Dict[str, float] = field(
        default_factory=lambda: {"low": 3.0, "medium": 2.5, "high": 2.0}
    )

    def threshold_for(self, sensitivity: str) -> float:
        try:
            return self.sensitivity_thresholds[sensitivity]
        except KeyError:
            raise ValueError(f"Unknown sensitivity: {sensitivity}") from None


@dataclass
class AppConfig:
    """Application-level configuration."""

    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Overview figures
    overview_histogram_columns: int = 3
    histogram_bins: int = 20

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load app config from environment variables."""
        return cls(log_level=os.getenv("LOG_LEVEL", "INFO").upper())


class Config:
    """Global configuration manager."""

    _instance: Optional["Config"] = None

    def __init__(self):
        self.analysis = AnalysisConfig.from_env()
        self.alerts = AlertConfig()
        self.app = AppConfig.from_env()

    @classmethod
    def load(cls) -> "Config":
        """Singleton pattern - load or return existing config."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance


def configure_logging(app: Optional[AppConfig] = None) -> None:
    """Apply the configured level and format to the root logger."""
    app = app or Config.load().app
    logging.basicConfig(level=app.log_level, format=app.log_format)
