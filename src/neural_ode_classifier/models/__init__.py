"""Classification model implementations."""

from neural_ode_classifier.models.base import BaseClassificationModel
from neural_ode_classifier.models.neural_ode import (
    MLPClassificationModel,
    NeuralODEClassificationModel,
)
from neural_ode_classifier.models.ode import ODEBlock, ODEFunc, TrajectoryEndpoint

__all__ = [
    "BaseClassificationModel",
    "MLPClassificationModel",
    "NeuralODEClassificationModel",
    "ODEBlock",
    "ODEFunc",
    "TrajectoryEndpoint",
]
