"""Label encoding helpers for the data pipeline."""

import torch
import torch.nn.functional as F


def onehot(labels: torch.Tensor, num_classes: int) -> torch.Tensor:
    """Encode integer class indices as float one-hot rows.

    Args:
        labels: Long tensor of shape (N,) with values in [0, num_classes).
        num_classes: Width of the encoding.

    Returns:
        Float32 tensor of shape (N, num_classes).

    Raises:
        ValueError: If labels is not 1-D or holds an index outside the range.
    """
    if labels.ndim != 1:
        msg = f"Expected 1-D labels, got shape {tuple(labels.shape)}"
        raise ValueError(msg)
    if labels.numel() and (labels.min() < 0 or labels.max() >= num_classes):
        msg = (
            f"Labels must lie in [0, {num_classes}), "
            f"got min={labels.min().item()}, max={labels.max().item()}"
        )
        raise ValueError(msg)
    return F.one_hot(labels.long(), num_classes=num_classes).to(torch.float32)


def onecold(targets: torch.Tensor) -> torch.Tensor:
    """Inverse of :func:`onehot`: arg-max over the class axis."""
    return targets.argmax(dim=-1)
