"""Accelerator selection with CPU fallback."""

from __future__ import annotations

import torch
from loguru import logger

_GPU_ACCELERATORS = ("gpu", "cuda")


def resolve_accelerator(requested: str = "auto") -> str:
    """Map a requested Lightning accelerator to one that can run here.

    ``"auto"`` and ``"cpu"`` pass through unchanged.  ``"gpu"``/``"cuda"``
    fall back to ``"cpu"`` when CUDA is unavailable and ``"mps"`` when the
    MPS backend is unavailable; the fallback is logged as a warning, the
    run continues.
    """
    accelerator = requested.lower()
    if accelerator in _GPU_ACCELERATORS and not torch.cuda.is_available():
        logger.warning(f"Accelerator '{requested}' requested but CUDA is unavailable; using CPU")
        return "cpu"
    if accelerator == "mps" and not torch.backends.mps.is_available():
        logger.warning("Accelerator 'mps' requested but MPS is unavailable; using CPU")
        return "cpu"
    return accelerator
