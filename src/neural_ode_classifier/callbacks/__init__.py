"""Training callbacks for neural_ode_classifier."""

from neural_ode_classifier.callbacks.model_info import ModelInfoCallback
from neural_ode_classifier.callbacks.progress import (
    AccuracyReportCallback,
    format_progress,
)
from neural_ode_classifier.callbacks.statistics import DatasetStatisticsCallback

__all__ = [
    "AccuracyReportCallback",
    "DatasetStatisticsCallback",
    "ModelInfoCallback",
    "format_progress",
]
