"""LightningDataModule for the MNIST handwritten digits dataset."""

from pathlib import Path
from typing import Any

import lightning as L
import torch
from loguru import logger
from torch.utils.data import DataLoader

from neural_ode_classifier.config import MNISTDataModuleConfig
from neural_ode_classifier.data.dataset import MNISTDigits
from neural_ode_classifier.data.utils import onehot
from neural_ode_classifier.types import ClassificationBatch

NUM_CLASSES = 10


class MNISTDataModule(L.LightningDataModule):
    """DataModule for the MNIST handwritten digits dataset.

    Serves shuffled minibatches of ``(B, 1, 28, 28)`` images with one-hot
    ``(B, 10)`` targets.  The last batch of an epoch is kept even when it is
    smaller than ``batch_size``.

    MNIST ships only train and test splits, so ``val_dataloader`` and
    ``test_dataloader`` both read the test split.  Validation during fit is
    bounded with the trainer's ``limit_val_batches``.

    Args:
        config: MNISTDataModuleConfig frozen model with all DataLoader
            parameters.  If provided, flat kwargs are ignored.
        data_root: Directory holding the ``MNIST`` folder (used when config
            is None, e.g. Hydra).
        batch_size: Samples per minibatch (default: 128).
        num_workers: Number of DataLoader workers (default: 0).
        pin_memory: Whether to pin memory (default: False).
        persistent_workers: Keep workers alive between epochs (default: False).
        download: Download MNIST if missing (default: True).
        shuffle: Reshuffle the train split every epoch (default: True).
        max_train_samples: Truncate the train split (default: all).
        max_test_samples: Truncate the test split (default: all).
        **kwargs: Absorbs extra Hydra-injected keys (_target_, _recursive_, etc.).
    """

    def __init__(
        self,
        config: MNISTDataModuleConfig | None = None,
        *,
        data_root: str = "data",
        batch_size: int = 128,
        num_workers: int = 0,
        pin_memory: bool = False,
        persistent_workers: bool = False,
        download: bool = True,
        shuffle: bool = True,
        max_train_samples: int | None = None,
        max_test_samples: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__()
        if config is not None:
            self._config = config
        else:
            self._config = MNISTDataModuleConfig(
                data_root=data_root,
                batch_size=batch_size,
                num_workers=num_workers,
                pin_memory=pin_memory,
                persistent_workers=persistent_workers,
                download=download,
                shuffle=shuffle,
                max_train_samples=max_train_samples,
                max_test_samples=max_test_samples,
            )
        self._data_root = Path(self._config.data_root)

        # MPS guard: multiprocessing DataLoader workers crash on Apple Silicon.
        num_workers = self._config.num_workers
        if torch.backends.mps.is_available() and num_workers > 0:
            logger.warning(
                "MPS detected: setting num_workers=0 to avoid multiprocessing "
                "crash. Use linux-64 / CUDA for multi-worker DataLoading."
            )
            num_workers = 0

        self._num_workers = num_workers
        self._pin_memory = self._config.pin_memory
        self._persistent_workers = self._config.persistent_workers and num_workers > 0
        self._batch_size = self._config.batch_size

        self._train_dataset: MNISTDigits | None = None
        self._test_dataset: MNISTDigits | None = None

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def num_classes(self) -> int:
        return NUM_CLASSES

    @property
    def class_names(self) -> list[str]:
        """Digit names indexed by class id."""
        return [str(i) for i in range(NUM_CLASSES)]

    # ------------------------------------------------------------------
    # LightningDataModule lifecycle
    # ------------------------------------------------------------------

    def prepare_data(self) -> None:
        """Download both splits once, before any process calls setup()."""
        if self._config.download:
            MNISTDigits(self._data_root, train=True, download=True)
            MNISTDigits(self._data_root, train=False, download=True)

    def setup(self, stage: str | None = None) -> None:
        """Load the splits needed by the given stage.

        Args:
            stage: "fit", "validate", "test", or None (all stages).
                   "fit" loads train + test (test doubles as validation).
                   "validate" and "test" load test only.
        """
        if stage in ("fit", None) and self._train_dataset is None:
            self._train_dataset = MNISTDigits(
                self._data_root,
                train=True,
                download=self._config.download,
                max_samples=self._config.max_train_samples,
            )
        if stage in ("fit", "validate", "test", None) and self._test_dataset is None:
            self._test_dataset = MNISTDigits(
                self._data_root,
                train=False,
                download=self._config.download,
                max_samples=self._config.max_test_samples,
            )
        logger.info(
            f"Setup {stage or 'all'}: "
            f"train={len(self._train_dataset) if self._train_dataset else 0}, "
            f"test={len(self._test_dataset) if self._test_dataset else 0} samples"
        )

    # ------------------------------------------------------------------
    # Class distribution
    # ------------------------------------------------------------------

    def class_counts(self) -> torch.Tensor:
        """Per-digit sample counts of the train split, shape (num_classes,)."""
        if self._train_dataset is None:
            raise RuntimeError("Call setup('fit') before class_counts")
        return torch.bincount(self._train_dataset.labels, minlength=NUM_CLASSES)

    # ------------------------------------------------------------------
    # Collate — converts (image, label) tuples to ClassificationBatch dict
    # ------------------------------------------------------------------

    @staticmethod
    def _collate_fn(
        batch: list[tuple[torch.Tensor, int]],
    ) -> ClassificationBatch:
        """Stack samples and attach one-hot targets.

        Images and labels come from the same list, so their sample counts
        always agree.
        """
        images = torch.stack([item[0] for item in batch]).as_subclass(torch.Tensor)
        labels = torch.tensor([item[1] for item in batch], dtype=torch.long)
        return {
            "images": images,
            "labels": labels,
            "targets": onehot(labels, NUM_CLASSES),
        }

    # ------------------------------------------------------------------
    # DataLoaders
    # ------------------------------------------------------------------

    def _loader(
        self,
        dataset: MNISTDigits,
        shuffle: bool,
        generator: torch.Generator | None = None,
    ) -> DataLoader[Any]:
        return DataLoader(
            dataset,
            batch_size=self._batch_size,
            shuffle=shuffle,
            generator=generator,
            drop_last=False,
            num_workers=self._num_workers,
            pin_memory=self._pin_memory,
            persistent_workers=self._persistent_workers,
            collate_fn=self._collate_fn,
        )

    def train_dataloader(
        self, generator: torch.Generator | None = None
    ) -> DataLoader[Any]:
        """Return the training DataLoader, reshuffled every epoch.

        Without *generator* the shuffle order and worker seeds are drawn from
        torch's global RNG.  Loaders built outside the fit loop pass their
        own generator so that iterating them leaves training unchanged.
        """
        if self._train_dataset is None:
            raise RuntimeError("Call setup('fit') first")
        return self._loader(
            self._train_dataset, shuffle=self._config.shuffle, generator=generator
        )

    def val_dataloader(self) -> DataLoader[Any]:
        """Return the test split in fixed order for validation."""
        if self._test_dataset is None:
            raise RuntimeError("Call setup('fit') first")
        return self._loader(self._test_dataset, shuffle=False)

    def test_dataloader(
        self, generator: torch.Generator | None = None
    ) -> DataLoader[Any]:
        """Return the test split in fixed order."""
        if self._test_dataset is None:
            raise RuntimeError("Call setup('test') first")
        return self._loader(self._test_dataset, shuffle=False, generator=generator)
