"""Type aliases and TypedDicts for neural_ode_classifier inter-module contracts."""

from typing import TypedDict

import torch


class ClassificationBatch(TypedDict):
    """A single batch from an MNIST DataLoader.

    images: Float tensor of shape (B, 1, 28, 28), pixel values in [0, 1].
    labels: Long tensor of shape (B,), integer class indices.
    targets: Float tensor of shape (B, num_classes), one-hot encoded labels.
    """

    images: torch.Tensor
    labels: torch.Tensor
    targets: torch.Tensor
