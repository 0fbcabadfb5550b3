"""Loss functions for classification training."""

from __future__ import annotations

import torch
import torch.nn as nn
import torch.nn.functional as F


class OneHotCrossEntropyLoss(nn.Module):
    """Cross-entropy between raw logits and one-hot targets.

    Softmax is folded into the loss (``log_softmax``), so the model emits
    unnormalized scores.  Equivalent to ``nn.CrossEntropyLoss`` with
    probability targets, but checks that logits and targets line up
    instead of broadcasting silently.

    Parameters
    ----------
    label_smoothing:
        Label smoothing factor in ``[0, 1)``.
    """

    def __init__(self, label_smoothing: float = 0.0) -> None:
        super().__init__()
        if not 0.0 <= label_smoothing < 1.0:
            msg = f"label_smoothing must be in [0, 1), got {label_smoothing}"
            raise ValueError(msg)
        self.label_smoothing = label_smoothing

    def forward(self, logits: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        """Compute the mean cross-entropy over the batch.

        Parameters
        ----------
        logits:
            Raw model output of shape ``(B, C)``.
        targets:
            One-hot (or probability) targets of shape ``(B, C)``.
        """
        if logits.shape != targets.shape:
            msg = (
                f"logits and targets must have the same shape, "
                f"got {tuple(logits.shape)} and {tuple(targets.shape)}"
            )
            raise ValueError(msg)
        targets = targets.to(logits.dtype)
        if self.label_smoothing > 0.0:
            num_classes = targets.shape[-1]
            targets = (
                targets * (1.0 - self.label_smoothing)
                + self.label_smoothing / num_classes
            )
        log_probs = F.log_softmax(logits, dim=-1)
        return -(targets * log_probs).sum(dim=-1).mean()
