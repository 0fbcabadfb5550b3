"""Tests for the console reporting callbacks.

All tests use minimal models, mocked trainers, and CPU only.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any
from unittest.mock import MagicMock

import pytest
import torch
import torch.nn as nn
from loguru import logger

from neural_ode_classifier.callbacks.model_info import ModelInfoCallback
from neural_ode_classifier.callbacks.progress import (
    AccuracyReportCallback,
    format_progress,
)
from neural_ode_classifier.callbacks.statistics import DatasetStatisticsCallback
from neural_ode_classifier.data.utils import onehot

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _TinyModule(nn.Module):
    """Minimal staged model: flatten -> linear."""

    def __init__(self, num_classes: int = 10) -> None:
        super().__init__()
        self.model = nn.Sequential(
            OrderedDict(
                downsample=nn.Flatten(),
                classifier=nn.Linear(16, num_classes),
            )
        )
        self.logged: dict[str, float] = {}

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.model(x)

    def log_dict(self, metrics: dict[str, float], **kwargs: Any) -> None:
        self.logged.update(metrics)


def _batches(n: int, batch_size: int = 4) -> list[dict[str, torch.Tensor]]:
    out = []
    for _ in range(n):
        labels = torch.randint(0, 10, (batch_size,))
        out.append(
            {
                "images": torch.randn(batch_size, 1, 4, 4),
                "labels": labels,
                "targets": onehot(labels, 10),
            }
        )
    return out


def _mock_datamodule(train_batches: int = 5, test_batches: int = 5) -> MagicMock:
    dm = MagicMock()
    dm.train_dataloader.return_value = _batches(train_batches)
    dm.test_dataloader.return_value = _batches(test_batches)
    dm.class_counts.return_value = torch.tensor([3, 2, 0, 1, 1, 1, 1, 1, 1, 1])
    dm.class_names = [str(i) for i in range(10)]
    return dm


def _mock_trainer(datamodule: Any = None, global_step: int = 0) -> MagicMock:
    trainer = MagicMock()
    trainer.datamodule = datamodule
    trainer.global_step = global_step
    return trainer


@pytest.fixture()
def log_lines() -> Any:
    lines: list[str] = []
    handler_id = logger.add(lambda msg: lines.append(str(msg)), level="INFO")
    yield lines
    logger.remove(handler_id)


# ---------------------------------------------------------------------------
# AccuracyReportCallback
# ---------------------------------------------------------------------------


class TestFormatProgress:
    def test_line_layout(self) -> None:
        line = format_progress(421, 0.8912, 0.9001)
        assert line == "Iter: 421 || Train Accuracy: 89.120 || Test Accuracy: 90.010"

    def test_pads_short_iterations(self) -> None:
        assert format_progress(7, 0.0, 1.0).startswith("Iter:   7 ||")


class TestAccuracyReportCallback:
    def test_reports_on_period(self, log_lines: list[str]) -> None:
        cb = AccuracyReportCallback(every_n_steps=10, max_batches=2)
        pl_module = _TinyModule()
        trainer = _mock_trainer(_mock_datamodule(), global_step=20)

        cb.on_train_batch_end(trainer, pl_module, None, {}, 19)  # type: ignore[arg-type]

        assert len(cb.history) == 1
        step, train_acc, test_acc = cb.history[0]
        assert step == 20
        assert 0.0 <= train_acc <= 1.0
        assert 0.0 <= test_acc <= 1.0
        assert any("Iter:  20 || Train Accuracy:" in line for line in log_lines)
        assert set(pl_module.logged) == {"progress/train_acc", "progress/test_acc"}

    def test_skips_off_period(self) -> None:
        cb = AccuracyReportCallback(every_n_steps=10)
        dm = _mock_datamodule()
        trainer = _mock_trainer(dm, global_step=15)

        cb.on_train_batch_end(trainer, _TinyModule(), None, {}, 14)  # type: ignore[arg-type]

        assert cb.history == []
        dm.train_dataloader.assert_not_called()

    def test_skips_step_zero(self) -> None:
        cb = AccuracyReportCallback(every_n_steps=1)
        trainer = _mock_trainer(_mock_datamodule(), global_step=0)
        cb.on_train_batch_end(trainer, _TinyModule(), None, {}, 0)  # type: ignore[arg-type]
        assert cb.history == []

    def test_handles_missing_datamodule(self) -> None:
        cb = AccuracyReportCallback(every_n_steps=1)
        trainer = _mock_trainer(None, global_step=1)
        cb.on_train_batch_end(trainer, _TinyModule(), None, {}, 0)  # type: ignore[arg-type]
        assert cb.history == []

    def test_reports_once_per_global_step(self, log_lines: list[str]) -> None:
        """Accumulated micro-batches end with the same global_step."""
        cb = AccuracyReportCallback(every_n_steps=2, max_batches=1)
        dm = _mock_datamodule()
        pl_module = _TinyModule()
        trainer = _mock_trainer(dm, global_step=2)

        cb.on_train_batch_end(trainer, pl_module, None, {}, 3)  # type: ignore[arg-type]
        cb.on_train_batch_end(trainer, pl_module, None, {}, 4)  # type: ignore[arg-type]

        assert len(cb.history) == 1
        assert dm.train_dataloader.call_count == 1
        assert sum("Iter:" in line for line in log_lines) == 1

        trainer.global_step = 4
        cb.on_train_batch_end(trainer, pl_module, None, {}, 6)  # type: ignore[arg-type]
        assert [step for step, _, _ in cb.history] == [2, 4]

    def test_report_loaders_use_own_generator(self) -> None:
        cb = AccuracyReportCallback(every_n_steps=1, max_batches=1)
        dm = _mock_datamodule()
        trainer = _mock_trainer(dm, global_step=1)

        cb.on_train_batch_end(trainer, _TinyModule(), None, {}, 0)  # type: ignore[arg-type]

        for loader_fn in (dm.train_dataloader, dm.test_dataloader):
            generator = loader_fn.call_args.kwargs["generator"]
            assert isinstance(generator, torch.Generator)

    def test_rejects_non_positive_period(self) -> None:
        with pytest.raises(ValueError, match="every_n_steps"):
            AccuracyReportCallback(every_n_steps=0)


# ---------------------------------------------------------------------------
# DatasetStatisticsCallback
# ---------------------------------------------------------------------------


class TestDatasetStatisticsCallback:
    def test_runs_without_error(self, log_lines: list[str]) -> None:
        cb = DatasetStatisticsCallback()
        trainer = _mock_trainer(datamodule=_mock_datamodule())
        cb.on_fit_start(trainer, MagicMock())
        assert any("12 samples, 10 classes" in line for line in log_lines)

    def test_handles_missing_datamodule(self) -> None:
        cb = DatasetStatisticsCallback()
        cb.on_fit_start(_mock_trainer(datamodule=None), MagicMock())

    def test_handles_datamodule_not_set_up(self) -> None:
        cb = DatasetStatisticsCallback()
        dm = MagicMock()
        dm.class_counts.side_effect = RuntimeError("Call setup('fit') first")
        cb.on_fit_start(_mock_trainer(datamodule=dm), MagicMock())


# ---------------------------------------------------------------------------
# ModelInfoCallback
# ---------------------------------------------------------------------------


class TestModelInfoCallback:
    def test_logs_parameter_totals(self, log_lines: list[str]) -> None:
        cb = ModelInfoCallback()
        cb.on_fit_start(_mock_trainer(), _TinyModule())  # type: ignore[arg-type]
        expected = 16 * 10 + 10
        assert any(f"Params: {expected:,}" in line for line in log_lines)

    def test_handles_module_without_stages(self, log_lines: list[str]) -> None:
        cb = ModelInfoCallback()
        cb.on_fit_start(_mock_trainer(), nn.Linear(3, 2))  # type: ignore[arg-type]
        assert any("Model: Linear" in line for line in log_lines)
