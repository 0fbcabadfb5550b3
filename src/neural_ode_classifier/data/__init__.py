"""Data pipeline for neural_ode_classifier."""

from neural_ode_classifier.data.datamodule import MNISTDataModule
from neural_ode_classifier.data.dataset import MNISTDigits
from neural_ode_classifier.data.utils import onecold, onehot

__all__ = [
    "MNISTDataModule",
    "MNISTDigits",
    "onecold",
    "onehot",
]
