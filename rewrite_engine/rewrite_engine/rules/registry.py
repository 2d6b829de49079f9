"""Stage registry for looking up stage factories by name.

Configuration and the CLI refer to stages by name (``"presto"``); the
registry maps those names to the factories the pipeline calls.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from rewrite_engine.rules.presto import STAGE_NAME as PRESTO_STAGE_NAME
from rewrite_engine.rules.presto import presto_stage
from rewrite_engine.tokens import TokenStream
from rewrite_engine.walker import Stage

logger = logging.getLogger(__name__)

StageFactory = Callable[[TokenStream], Stage]


class StageRegistry:
    """Registry of named stage factories."""

    def __init__(self) -> None:
        self._factories: dict[str, StageFactory] = {}

    def register(self, name: str, factory: StageFactory) -> None:
        """Register *factory* under *name*.

        Raises
        ------
        ValueError
            If a factory with the same name is already registered.
        """
        key = name.lower()
        if key in self._factories:
            raise ValueError(f"Stage {key} is already registered. Unregister the existing stage first.")
        self._factories[key] = factory
        logger.debug("Registered stage: %s", key)

    def unregister(self, name: str) -> None:
        """Remove a stage factory.

        Raises
        ------
        KeyError
            If the stage is not registered.
        """
        key = name.lower()
        if key not in self._factories:
            raise KeyError(f"Stage {key} is not registered.")
        del self._factories[key]
        logger.debug("Unregistered stage: %s", key)

    def get(self, name: str) -> StageFactory | None:
        return self._factories.get(name.lower())

    def get_names(self) -> list[str]:
        """Return all registered stage names, sorted."""
        return sorted(self._factories)

    def resolve(self, names: Iterable[str]) -> list[StageFactory]:
        """Map *names* to factories, preserving order.

        Raises
        ------
        ValueError
            If any name is not registered.
        """
        factories: list[StageFactory] = []
        for name in names:
            factory = self.get(name)
            if factory is None:
                known = ", ".join(self.get_names()) or "none"
                raise ValueError(f"Unknown stage {name!r}. Registered stages: {known}")
            factories.append(factory)
        return factories

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._factories


def default_registry() -> StageRegistry:
    """Build a registry holding the built-in stages."""
    registry = StageRegistry()
    registry.register(PRESTO_STAGE_NAME, presto_stage)
    return registry


def resolve_stages(names: Iterable[str]) -> list[StageFactory]:
    """Resolve stage names against the built-in stages."""
    return default_registry().resolve(names)
