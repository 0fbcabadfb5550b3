"""Hydra ConfigStore registration for model classes."""

from __future__ import annotations

from typing import Any

from hydra.core.config_store import ConfigStore
from loguru import logger


def config_node(target_cls: type[Any], **defaults: Any) -> dict[str, Any]:
    """Config node that instantiates *target_cls* with *defaults*."""
    node: dict[str, Any] = {
        "_target_": f"{target_cls.__module__}.{target_cls.__qualname__}"
    }
    node.update(defaults)
    return node


def register(
    cls: type[Any] | None = None,
    *,
    group: str | None = None,
    name: str | None = None,
    **defaults: Any,
) -> type[Any] | Any:
    """Decorator storing a class in Hydra's ConfigStore.

    The stored node carries a ``_target_`` for the decorated class plus
    *defaults*, so ``model=<name>`` on the command line selects it and
    ``hydra.utils.instantiate(cfg.model)`` builds it.

    Arguments:
        cls: The class to register (when used without parentheses).
        group: ConfigStore group.  Defaults to the name of the package
            that contains the class's module (``models`` for
            ``neural_ode_classifier.models.neural_ode``).
        name: Option name within the group.  Defaults to the class name.
        **defaults: Constructor arguments written into the node.
    """

    def _store(target_cls: type[Any]) -> type[Any]:
        config_group = group or target_cls.__module__.split(".")[-2]
        config_name = name or target_cls.__name__
        logger.debug(
            f"Registering {target_cls.__name__} as "
            f"'{config_group}/{config_name}' in ConfigStore"
        )
        ConfigStore.instance().store(
            group=config_group,
            name=config_name,
            node=config_node(target_cls, **defaults),
        )
        return target_cls

    if cls is None:
        return _store
    return _store(cls)
