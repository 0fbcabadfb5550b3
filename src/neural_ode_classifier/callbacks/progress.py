"""Periodic train/test accuracy report during fitting."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import lightning as L
import torch
from loguru import logger

from neural_ode_classifier.evaluation import evaluate_accuracy
from neural_ode_classifier.types import ClassificationBatch


def format_progress(iteration: int, train_acc: float, test_acc: float) -> str:
    """``Iter: <n> || Train Accuracy: <pct> || Test Accuracy: <pct>``."""
    return (
        f"Iter: {iteration:3d} || "
        f"Train Accuracy: {train_acc * 100:2.3f} || "
        f"Test Accuracy: {test_acc * 100:2.3f}"
    )


class AccuracyReportCallback(L.Callback):
    """Report train and test accuracy every ``every_n_steps`` optimizer steps.

    Accuracy is measured over at most ``max_batches`` batches of the
    datamodule's train and test loaders, so each report costs a bounded
    number of forward passes.  Results go to the console through loguru and
    to the trainer's loggers as ``progress/train_acc`` and
    ``progress/test_acc``.

    A report fires at most once per optimizer step, so gradient accumulation
    does not repeat it.  Report loaders draw their shuffle order from the
    callback's own generator, leaving the global RNG that drives training
    untouched.

    Args:
        every_n_steps: Reporting period in global steps.
        max_batches: Batches per split per report (``None`` = whole split).
        seed: Seed of the generator used by the report loaders.
    """

    def __init__(
        self,
        every_n_steps: int = 50,
        max_batches: int | None = 10,
        seed: int = 0,
    ) -> None:
        super().__init__()
        if every_n_steps < 1:
            raise ValueError(f"every_n_steps must be >= 1, got {every_n_steps}")
        self.every_n_steps = every_n_steps
        self.max_batches = max_batches
        self.history: list[tuple[int, float, float]] = []
        self._generator = torch.Generator().manual_seed(seed)
        self._last_reported_step: int | None = None

    def on_train_batch_end(
        self,
        trainer: L.Trainer,
        pl_module: L.LightningModule,
        outputs: torch.Tensor | Mapping[str, Any] | None,
        batch: ClassificationBatch,
        batch_idx: int,
    ) -> None:
        step = trainer.global_step
        if step == 0 or step % self.every_n_steps != 0:
            return
        # Accumulating micro-batches share one global_step.
        if step == self._last_reported_step:
            return

        datamodule = getattr(trainer, "datamodule", None)
        if datamodule is None:
            logger.warning("No datamodule found. Skipping accuracy report.")
            return

        self._last_reported_step = step
        train_acc = evaluate_accuracy(
            pl_module,
            datamodule.train_dataloader(generator=self._generator),
            self.max_batches,
        )
        test_acc = evaluate_accuracy(
            pl_module,
            datamodule.test_dataloader(generator=self._generator),
            self.max_batches,
        )
        self.history.append((step, train_acc, test_acc))
        logger.info(format_progress(step, train_acc, test_acc))
        pl_module.log_dict(
            {"progress/train_acc": train_acc, "progress/test_acc": test_acc},
            on_step=True,
            on_epoch=False,
        )
