"""Base LightningModule for all digit classification models."""

from __future__ import annotations

from typing import Any

import lightning as L
import torch
from torchmetrics.classification import MulticlassAccuracy

from neural_ode_classifier.losses import OneHotCrossEntropyLoss
from neural_ode_classifier.types import ClassificationBatch


class BaseClassificationModel(L.LightningModule):
    """Abstract base for MNIST classification models.

    Subclasses must set ``self.model`` (nn.Module mapping ``(B, 1, 28, 28)``
    images to ``(B, num_classes)`` logits) in ``__init__``.  The loss is
    cross-entropy against the batch's one-hot ``targets``; accuracy is
    tracked against the integer ``labels``.
    """

    def __init__(
        self,
        num_classes: int = 10,
        learning_rate: float = 0.05,
        weight_decay: float = 0.0,
        label_smoothing: float = 0.0,
    ) -> None:
        super().__init__()
        self.save_hyperparameters()
        self.loss_fn = OneHotCrossEntropyLoss(label_smoothing=label_smoothing)

        # Pattern A metrics -- one set per split, auto device placement.
        self.train_acc = MulticlassAccuracy(
            num_classes=num_classes, top_k=1, average="micro"
        )
        self.val_acc = MulticlassAccuracy(
            num_classes=num_classes, top_k=1, average="micro"
        )
        self.test_acc = MulticlassAccuracy(
            num_classes=num_classes, top_k=1, average="micro"
        )
        self.test_per_cls = MulticlassAccuracy(
            num_classes=num_classes, top_k=1, average="none"
        )

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        return self.model(images)  # type: ignore[no-any-return]

    def _shared_step(
        self, batch: ClassificationBatch
    ) -> tuple[torch.Tensor, torch.Tensor]:
        logits = self(batch["images"])
        loss: torch.Tensor = self.loss_fn(logits, batch["targets"])
        return logits, loss

    def training_step(
        self, batch: ClassificationBatch, batch_idx: int
    ) -> torch.Tensor:
        logits, loss = self._shared_step(batch)
        self.log(
            "train/loss", loss, on_step=True, on_epoch=True, prog_bar=True
        )
        # Pattern A: update only in step; compute+log+reset in epoch_end
        self.train_acc.update(logits, batch["labels"])
        return loss

    def on_train_epoch_end(self) -> None:
        self.log("train/acc", self.train_acc.compute())
        self.train_acc.reset()

    def validation_step(
        self, batch: ClassificationBatch, batch_idx: int
    ) -> None:
        logits, loss = self._shared_step(batch)
        self.log(
            "val/loss", loss, on_step=False, on_epoch=True, prog_bar=True
        )
        self.val_acc.update(logits, batch["labels"])

    def on_validation_epoch_end(self) -> None:
        self.log("val/acc", self.val_acc.compute(), prog_bar=True)
        self.val_acc.reset()

    def test_step(
        self, batch: ClassificationBatch, batch_idx: int
    ) -> None:
        logits, loss = self._shared_step(batch)
        self.log("test/loss", loss, on_step=False, on_epoch=True)
        self.test_acc.update(logits, batch["labels"])
        self.test_per_cls.update(logits, batch["labels"])

    def on_test_epoch_end(self) -> None:
        self.log("test/acc", self.test_acc.compute())
        per_cls: torch.Tensor = self.test_per_cls.compute()
        for i, acc in enumerate(per_cls):
            self.log(f"test/acc_digit_{i}", acc)
        self.test_acc.reset()
        self.test_per_cls.reset()

    def configure_optimizers(self) -> dict[str, Any]:  # type: ignore[override]
        optimizer = torch.optim.Adam(
            self.parameters(),
            lr=self.hparams["learning_rate"],
            weight_decay=self.hparams["weight_decay"],
        )
        return {"optimizer": optimizer}
