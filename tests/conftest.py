"""Shared pytest fixtures for neural_ode_classifier tests."""

import struct
from pathlib import Path

import pytest
import torch

TRAIN_SAMPLES = 200
TEST_SAMPLES = 50


def _write_idx(path: Path, data: torch.Tensor) -> None:
    """Write a uint8 tensor in the idx format torchvision's MNIST reader expects."""
    header = struct.pack(">BBBB", 0, 0, 0x08, data.ndim)
    header += struct.pack(f">{data.ndim}I", *data.shape)
    path.write_bytes(header + bytes(data.to(torch.uint8).flatten().tolist()))


def _digits(num_samples: int, seed: int) -> tuple[torch.Tensor, torch.Tensor]:
    """Separable fake digits: class k lights up rows 2k+4 and 2k+5."""
    gen = torch.Generator().manual_seed(seed)
    labels = torch.arange(num_samples) % 10
    images = torch.randint(0, 40, (num_samples, 28, 28), generator=gen)
    for i, k in enumerate(labels.tolist()):
        images[i, 2 * k + 4 : 2 * k + 6, 4:24] = 255
    return images.to(torch.uint8), labels.to(torch.uint8)


@pytest.fixture()
def tmp_mnist_dir(tmp_path: Path) -> Path:
    """Minimal MNIST in the raw idx layout: ``<root>/MNIST/raw``.

    200 train and 50 test samples, classes cycling 0..9, so every digit is
    present in both splits.  torchvision reads it without downloading.
    """
    raw = tmp_path / "MNIST" / "raw"
    raw.mkdir(parents=True)
    for prefix, n, seed in (("train", TRAIN_SAMPLES, 0), ("t10k", TEST_SAMPLES, 1)):
        images, labels = _digits(n, seed)
        _write_idx(raw / f"{prefix}-images-idx3-ubyte", images)
        _write_idx(raw / f"{prefix}-labels-idx1-ubyte", labels)
    return tmp_path


@pytest.fixture()
def split_sizes() -> dict[str, int]:
    """Sample counts of the ``tmp_mnist_dir`` splits."""
    return {"train": TRAIN_SAMPLES, "test": TEST_SAMPLES}
