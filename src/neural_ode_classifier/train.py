"""Training entrypoint for neural_ode_classifier.

Usage:
    train                                   # defaults
    train model=mlp                         # baseline without the ODE block
    train data.batch_size=64                # override batch size
    train model.learning_rate=0.01          # override learning rate
    train trainer.accelerator=gpu           # falls back to CPU without CUDA
"""

import sys
from typing import Any

import hydra
import lightning as L
from hydra.core.hydra_config import HydraConfig
from loguru import logger
from omegaconf import DictConfig, OmegaConf

# CRITICAL: import models to trigger @register decorators BEFORE Hydra parses config
import neural_ode_classifier.models  # noqa: F401
from neural_ode_classifier.utils.device import resolve_accelerator


def _instantiate_group(group: DictConfig | None) -> list[Any]:
    """Instantiate every entry of a config group that has a ``_target_``."""
    if not group:
        return []
    return [
        hydra.utils.instantiate(v)
        for v in group.values()
        if v is not None and "_target_" in v
    ]


def _local_root() -> str:
    """Launch directory, where the relative ``logs/`` and ``checkpoints/`` land.

    Hydra leaves the working directory unchanged, so the trainer root matches
    it; Hydra's run directory keeps only its config snapshot and log.
    """
    return HydraConfig.get().runtime.cwd


@hydra.main(
    version_base=None, config_path="conf", config_name="train_mnist_neural_ode"
)
def main(cfg: DictConfig) -> None:
    """Run training with the given Hydra config."""
    # Setup logging
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    # Seed everything for reproducibility
    L.seed_everything(cfg.get("seed", 42), workers=True)

    datamodule: L.LightningDataModule = hydra.utils.instantiate(cfg.data)
    model: L.LightningModule = hydra.utils.instantiate(cfg.model)

    loggers: list[Any] = _instantiate_group(cfg.get("logging"))
    callbacks: list[L.Callback] = _instantiate_group(cfg.get("callbacks"))

    trainer_cfg = dict(cfg.trainer)
    trainer_cfg["accelerator"] = resolve_accelerator(
        trainer_cfg.get("accelerator", "auto")
    )
    trainer = L.Trainer(
        **trainer_cfg,
        callbacks=callbacks,
        logger=loggers or False,
        default_root_dir=_local_root(),
    )

    trainer.fit(model, datamodule=datamodule)
    results = trainer.test(model, datamodule=datamodule)
    logger.info(f"Test results: {results}")


if __name__ == "__main__":
    main()
