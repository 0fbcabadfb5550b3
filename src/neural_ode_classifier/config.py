"""Pydantic frozen configuration models for neural_ode_classifier."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

# Solvers shipped by torchdiffeq.
ODEMethod = Literal[
    "dopri8",
    "dopri5",
    "bosh3",
    "fehlberg2",
    "adaptive_heun",
    "euler",
    "midpoint",
    "rk4",
    "explicit_adams",
    "implicit_adams",
]

# Fixed-grid solvers ignore rtol/atol and step by ``step_size``.
FIXED_GRID_METHODS = frozenset(
    {"euler", "midpoint", "rk4", "explicit_adams", "implicit_adams"}
)


class MNISTDataModuleConfig(BaseModel, frozen=True):
    """Configuration for MNISTDataModule.

    All fields are validated at construction time. Frozen — no mutation after creation.
    """

    data_root: str = "data"
    batch_size: int = Field(default=128, ge=1)
    num_workers: int = Field(default=0, ge=0)
    pin_memory: bool = False
    persistent_workers: bool = False
    download: bool = True
    shuffle: bool = True
    max_train_samples: Annotated[int, Field(ge=1)] | None = None
    max_test_samples: Annotated[int, Field(ge=1)] | None = None

    @model_validator(mode="after")
    def _persistent_workers_requires_workers(self) -> "MNISTDataModuleConfig":
        """persistent_workers=True with num_workers=0 is rejected by DataLoader."""
        if self.persistent_workers and self.num_workers == 0:
            # Use object.__setattr__ because model is frozen
            object.__setattr__(self, "persistent_workers", False)
        return self


class ODESolverConfig(BaseModel, frozen=True):
    """Integration interval and tolerances for an ODEBlock.

    ``adjoint=True`` backpropagates with torchdiffeq's adjoint method
    (constant memory, one extra solve per backward pass).
    ``step_size`` is required by the fixed-grid methods and rejected by the
    adaptive ones.
    """

    t0: float = 0.0
    t1: float = 1.0
    rtol: float = Field(default=1e-3, gt=0.0)
    atol: float = Field(default=1e-3, gt=0.0)
    method: ODEMethod = "dopri5"
    step_size: Annotated[float, Field(gt=0.0)] | None = None
    adjoint: bool = False

    @model_validator(mode="after")
    def _check_interval_and_grid(self) -> "ODESolverConfig":
        if self.t1 <= self.t0:
            msg = f"t1 must be greater than t0, got t0={self.t0}, t1={self.t1}"
            raise ValueError(msg)
        if self.method in FIXED_GRID_METHODS and self.step_size is None:
            msg = f"method {self.method!r} uses a fixed grid and needs step_size"
            raise ValueError(msg)
        if self.method not in FIXED_GRID_METHODS and self.step_size is not None:
            msg = f"step_size only applies to fixed-grid methods, not {self.method!r}"
            raise ValueError(msg)
        return self
