"""MNIST handwritten digit dataset backed by torchvision."""

from collections.abc import Callable
from pathlib import Path

import torch
from loguru import logger
from torch.utils.data import Dataset
from torchvision import datasets
from torchvision.transforms import v2


def default_transform() -> v2.Compose:
    """uint8 (1, 28, 28) image tensor -> float32 in [0, 1]."""
    return v2.Compose([
        v2.ToImage(),
        v2.ToDtype(torch.float32, scale=True),
    ])


class MNISTDigits(Dataset[tuple[torch.Tensor, int]]):
    """One MNIST split held in memory as uint8 tensors.

    torchvision reads the idx files under ``root/MNIST/raw`` (downloading them
    first when ``download=True``). Images are kept as a single
    ``(N, 1, 28, 28)`` uint8 tensor and converted per sample, so no PIL round
    trip happens in ``__getitem__``.

    Args:
        root: Directory holding (or receiving) the ``MNIST`` folder.
        train: Load the 60k training split if True, else the 10k test split.
        download: Fetch the dataset if it is not on disk.
        transform: Callable applied to each uint8 image tensor.
            Defaults to :func:`default_transform`.
        max_samples: Keep only the first ``max_samples`` samples.
    """

    def __init__(
        self,
        root: Path,
        train: bool = True,
        download: bool = True,
        transform: Callable[[torch.Tensor], torch.Tensor] | None = None,
        max_samples: int | None = None,
    ) -> None:
        self.root = Path(root)
        self.train = train
        self.transform = transform or default_transform()

        mnist = datasets.MNIST(root=str(self.root), train=train, download=download)
        images = mnist.data
        labels = mnist.targets.long()
        if max_samples is not None:
            images = images[:max_samples]
            labels = labels[:max_samples]

        # (N, 28, 28) -> (N, 1, 28, 28)
        self.images: torch.Tensor = images.unsqueeze(1)
        self.labels: torch.Tensor = labels
        self.classes: list[str] = [str(i) for i in range(10)]

        split = "train" if train else "test"
        logger.debug(
            f"MNISTDigits: loaded {len(self.labels)} {split} samples from {self.root}"
        )

    def __len__(self) -> int:
        return len(self.labels)

    def __getitem__(self, idx: int) -> tuple[torch.Tensor, int]:
        image = self.transform(self.images[idx])
        return image, int(self.labels[idx])
