"""Neural ODE and plain MLP digit classifiers."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any

import torch
from torch import nn

from neural_ode_classifier.config import ODEMethod, ODESolverConfig
from neural_ode_classifier.models.base import BaseClassificationModel
from neural_ode_classifier.models.ode import ODEBlock, ODEFunc, TrajectoryEndpoint
from neural_ode_classifier.types import ClassificationBatch
from neural_ode_classifier.utils.hydra import register

INPUT_FEATURES = 28 * 28


def _downsample(latent_dim: int) -> nn.Sequential:
    """(B, 1, 28, 28) -> (B, latent_dim)."""
    return nn.Sequential(
        nn.Flatten(),
        nn.Linear(INPUT_FEATURES, latent_dim),
        nn.Tanh(),
    )


@register(
    group="model",
    name="neural_ode",
    num_classes=10,
    learning_rate=0.05,
    latent_dim=20,
    hidden_dim=10,
    rtol=1e-3,
    atol=1e-3,
    method="dopri5",
)
class NeuralODEClassificationModel(BaseClassificationModel):
    """Flatten -> Linear+tanh -> ODE block -> endpoint -> Linear head.

    The ODE block integrates a small tanh MLP over ``[t0, t1]`` in the
    ``latent_dim`` space; its input and output widths are both
    ``latent_dim``.  Trainable parameters live in ``downsample``, ``ode``
    and ``classifier``; ``endpoint`` only reshapes.
    """

    def __init__(
        self,
        num_classes: int = 10,
        latent_dim: int = 20,
        hidden_dim: int = 10,
        t0: float = 0.0,
        t1: float = 1.0,
        rtol: float = 1e-3,
        atol: float = 1e-3,
        method: ODEMethod = "dopri5",
        step_size: float | None = None,
        adjoint: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(num_classes=num_classes, **kwargs)
        solver_config = ODESolverConfig(
            t0=t0,
            t1=t1,
            rtol=rtol,
            atol=atol,
            method=method,
            step_size=step_size,
            adjoint=adjoint,
        )
        self.model = nn.Sequential(
            OrderedDict(
                downsample=_downsample(latent_dim),
                ode=ODEBlock(ODEFunc(latent_dim, hidden_dim), solver_config),
                endpoint=TrajectoryEndpoint(),
                classifier=nn.Linear(latent_dim, num_classes),
            )
        )

    @property
    def ode_block(self) -> ODEBlock:
        return self.model.ode  # type: ignore[return-value]

    def training_step(
        self, batch: ClassificationBatch, batch_idx: int
    ) -> torch.Tensor:
        self.ode_block.nfe = 0
        loss = super().training_step(batch, batch_idx)
        # Forward-pass evaluations only; backward evaluations happen later.
        self.log("train/nfe", float(self.ode_block.nfe), on_step=True, on_epoch=False)
        return loss


@register(group="model", name="mlp", num_classes=10, learning_rate=0.05)
class MLPClassificationModel(BaseClassificationModel):
    """Same pipeline with the ODE block replaced by a tanh Linear layer.

    Baseline for judging what the continuous-depth block adds.
    """

    def __init__(
        self,
        num_classes: int = 10,
        latent_dim: int = 20,
        **kwargs: Any,
    ) -> None:
        super().__init__(num_classes=num_classes, **kwargs)
        self.model = nn.Sequential(
            OrderedDict(
                downsample=_downsample(latent_dim),
                hidden=nn.Sequential(nn.Linear(latent_dim, latent_dim), nn.Tanh()),
                classifier=nn.Linear(latent_dim, num_classes),
            )
        )
