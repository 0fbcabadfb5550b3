"""Model info callback — reports parameter counts per pipeline stage."""

from __future__ import annotations

import lightning as L
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table
from torch import nn


def _count(module: nn.Module) -> tuple[int, int]:
    params = list(module.parameters())
    total = sum(p.numel() for p in params)
    trainable = sum(p.numel() for p in params if p.requires_grad)
    return total, trainable


class ModelInfoCallback(L.Callback):
    """Display model statistics at training start.

    One row per child of ``pl_module.model`` (downsample, ode, endpoint,
    classifier for the Neural ODE model) followed by the totals and the
    in-memory size of parameters plus buffers.
    """

    def on_fit_start(
        self, trainer: L.Trainer, pl_module: L.LightningModule
    ) -> None:
        """Compute model stats and print the table."""
        total_params, trainable_params = _count(pl_module)
        param_size = sum(
            p.numel() * p.element_size() for p in pl_module.parameters()
        )
        buffer_size = sum(
            b.numel() * b.element_size() for b in pl_module.buffers()
        )
        model_size_mb = (param_size + buffer_size) / (1024 * 1024)

        console = Console()
        table = Table(
            title="Model Information",
            header_style="bold magenta",
            box=box.SQUARE,
            show_lines=True,
        )
        table.add_column("Stage", style="cyan")
        table.add_column("Module", style="cyan")
        table.add_column("Parameters", justify="right", style="green")

        stages = getattr(pl_module, "model", None)
        if isinstance(stages, nn.Module):
            for stage_name, stage in stages.named_children():
                stage_total, _ = _count(stage)
                table.add_row(stage_name, type(stage).__name__, f"{stage_total:,}")

        table.add_row("total", type(pl_module).__name__, f"{total_params:,}")
        table.add_row("trainable", "", f"{trainable_params:,}")
        table.add_row("size", "", f"{model_size_mb:.3f} MB")
        console.print(table)

        logger.info(
            f"Model: {type(pl_module).__name__} | "
            f"Params: {total_params:,} ({trainable_params:,} trainable) | "
            f"Size: {model_size_mb:.3f} MB"
        )
