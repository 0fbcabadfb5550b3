"""Arg-max accuracy over tensors and bounded DataLoader sweeps."""

from __future__ import annotations

from collections.abc import Iterable
from itertools import islice

import torch
from torch import nn

from neural_ode_classifier.data.utils import onecold
from neural_ode_classifier.types import ClassificationBatch


def accuracy(logits: torch.Tensor, targets: torch.Tensor) -> float:
    """Fraction of rows whose arg-max logit matches the target class.

    ``targets`` may be one-hot ``(B, C)`` or class indices ``(B,)``.
    An empty batch scores 0.0.
    """
    if targets.ndim == logits.ndim:
        targets = onecold(targets)
    if targets.numel() == 0:
        return 0.0
    correct = (onecold(logits) == targets.to(logits.device)).sum().item()
    return correct / targets.numel()


@torch.no_grad()
def evaluate_accuracy(
    model: nn.Module,
    dataloader: Iterable[ClassificationBatch],
    max_batches: int | None = None,
) -> float:
    """Accuracy of ``model`` over the first ``max_batches`` batches.

    The model runs in eval mode on its own device; its previous
    train/eval mode is restored afterwards.  Returns a ratio in [0, 1].
    """
    was_training = model.training
    model.eval()
    device = next(model.parameters()).device
    correct = 0.0
    total = 0
    try:
        for batch in islice(dataloader, max_batches):
            logits = model(batch["images"].to(device))
            labels = batch["labels"]
            correct += accuracy(logits, labels) * labels.numel()
            total += labels.numel()
    finally:
        model.train(was_training)
    return correct / total if total else 0.0
