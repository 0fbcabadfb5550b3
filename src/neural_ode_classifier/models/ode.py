"""Continuous-depth building blocks: dynamics network, ODE block, endpoint adapter."""

from __future__ import annotations

import torch
from torch import nn
from torchdiffeq import odeint, odeint_adjoint

from neural_ode_classifier.config import ODESolverConfig


class ODEFunc(nn.Module):
    """Autonomous dynamics dz/dt = f(z) for a latent vector.

    latent_dim -> hidden_dim -> hidden_dim -> latent_dim, tanh after every
    layer.  The time argument required by torchdiffeq is ignored.

    ``nfe`` counts calls made by the solver; reset it before a forward pass
    to measure a single solve.
    """

    def __init__(self, latent_dim: int = 20, hidden_dim: int = 10) -> None:
        super().__init__()
        self.latent_dim = latent_dim
        self.net = nn.Sequential(
            nn.Linear(latent_dim, hidden_dim),
            nn.Tanh(),
            nn.Linear(hidden_dim, hidden_dim),
            nn.Tanh(),
            nn.Linear(hidden_dim, latent_dim),
            nn.Tanh(),
        )
        self.nfe = 0

    def forward(self, t: torch.Tensor, z: torch.Tensor) -> torch.Tensor:
        self.nfe += 1
        return self.net(z)  # type: ignore[no-any-return]


class ODEBlock(nn.Module):
    """Integrate ``func`` from ``config.t0`` to ``config.t1``.

    Returns the solution saved at ``t1`` only, shape ``(1, B, D)``; the
    leading axis is the solver's time axis and is removed downstream by
    :class:`TrajectoryEndpoint`.  Solver failures (step size underflow,
    non-finite state) propagate as raised by torchdiffeq.

    Args:
        func: Dynamics module mapping ``(t, z)`` to ``dz/dt`` with the
            same shape as ``z``.
        config: Interval, tolerances, method and adjoint flag.

    Raises:
        ValueError: If the first and last ``nn.Linear`` of ``func`` do not
            share a width, so ``func`` cannot map the latent space onto itself.
    """

    integration_times: torch.Tensor

    def __init__(self, func: ODEFunc, config: ODESolverConfig | None = None) -> None:
        super().__init__()
        linears = [m for m in func.modules() if isinstance(m, nn.Linear)]
        if linears and linears[0].in_features != linears[-1].out_features:
            msg = (
                "ODE dynamics must map latent_dim to latent_dim, got "
                f"{linears[0].in_features} -> {linears[-1].out_features}"
            )
            raise ValueError(msg)
        self.func = func
        self.config = config or ODESolverConfig()
        self.register_buffer(
            "integration_times",
            torch.tensor([self.config.t0, self.config.t1], dtype=torch.float32),
            persistent=False,
        )

    @property
    def nfe(self) -> int:
        return self.func.nfe

    @nfe.setter
    def nfe(self, value: int) -> None:
        self.func.nfe = value

    def forward(self, z0: torch.Tensor) -> torch.Tensor:
        solver = odeint_adjoint if self.config.adjoint else odeint
        options = (
            {"step_size": self.config.step_size}
            if self.config.step_size is not None
            else None
        )
        trajectory: torch.Tensor = solver(
            self.func,
            z0,
            self.integration_times.to(z0),
            rtol=self.config.rtol,
            atol=self.config.atol,
            method=self.config.method,
            options=options,
        )
        # Drop the initial state; only the end point is saved.
        return trajectory[1:]


class TrajectoryEndpoint(nn.Module):
    """(T, B, D) solver output -> (B, D) state at the last saved time."""

    def forward(self, trajectory: torch.Tensor) -> torch.Tensor:
        if trajectory.ndim != 3:
            msg = f"Expected (T, B, D) trajectory, got shape {tuple(trajectory.shape)}"
            raise ValueError(msg)
        return trajectory[-1]
