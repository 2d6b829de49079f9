"""Dialect rule catalogs and the stage registry."""

from rewrite_engine.rules.presto import PRESTO_RULES, PRESTO_STAGES, presto_stage
from rewrite_engine.rules.registry import StageRegistry, default_registry, resolve_stages

__all__ = [
    "PRESTO_RULES",
    "PRESTO_STAGES",
    "StageRegistry",
    "default_registry",
    "presto_stage",
    "resolve_stages",
]
