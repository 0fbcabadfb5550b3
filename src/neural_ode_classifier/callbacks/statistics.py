"""Dataset statistics callback — prints digit distribution at training start."""

from __future__ import annotations

import lightning as L
import torch
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table


class DatasetStatisticsCallback(L.Callback):
    """Print a rich table of the digit distribution of the training split.

    Reads counts from ``trainer.datamodule.class_counts()``; skipped with a
    warning when the datamodule is missing or not set up.
    """

    def on_fit_start(self, trainer: L.Trainer, pl_module: L.LightningModule) -> None:
        """Compute and display class distribution at training start."""
        datamodule = getattr(trainer, "datamodule", None)
        if datamodule is None:
            logger.warning("No datamodule found. Skipping dataset statistics.")
            return

        try:
            counts: torch.Tensor = datamodule.class_counts()
        except RuntimeError as e:
            logger.warning(f"Skipping dataset statistics: {e}")
            return

        class_names: list[str] = list(datamodule.class_names)
        total = int(counts.sum().item())
        logger.info(f"Training dataset: {total} samples, {len(counts)} classes")

        table = Table(
            title="Dataset Class Distribution",
            header_style="bold magenta",
            box=box.SQUARE,
            show_lines=True,
        )
        table.add_column("Digit", style="cyan")
        table.add_column("Count", justify="right", style="green")
        table.add_column("Percentage", justify="right", style="yellow")

        for idx, count in enumerate(counts.tolist()):
            name = class_names[idx] if idx < len(class_names) else f"unknown_{idx}"
            pct = count / total * 100 if total > 0 else 0.0
            table.add_row(name, str(count), f"{pct:.1f}%")

        Console().print(table)
