"""Model adapters: one fitted structured equation per adapter.

Usage::

    from pwsem.adapters import fit_equation

    eq = fit_equation("mixed", data, "growth", ["light", "soil"], groups="site")

New families are added with ``register_adapter(name, cls)``; the d-sep
engine needs no changes because it only talks to ``ModelAdapter``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd

from pwsem.errors import ConfigError

from .base import INTERCEPT, ModelAdapter, StatsmodelsAdapter
from .glm import GLMAdapter
from .gls import GLSAdapter, PhylogeneticGLSAdapter
from .mixed import MixedLMAdapter
from .ols import OLSAdapter

_ADAPTERS: dict[str, type] = {
    "ols": OLSAdapter,
    "lm": OLSAdapter,
    "glm": GLMAdapter,
    "mixed": MixedLMAdapter,
    "lmer": MixedLMAdapter,
    "gls": GLSAdapter,
    "pgls": PhylogeneticGLSAdapter,
}
"""Registry mapping family names to adapter classes."""

_REQUIRED = ("coefficient_table", "log_likelihood", "parameter_count", "refit_with_extra", "predict")


def register_adapter(name: str, cls: type) -> None:
    """Register an adapter class under *name*.

    Raises:
        TypeError: If *cls* lacks a ModelAdapter method.
    """
    missing = [m for m in _REQUIRED if not callable(getattr(cls, m, None))]
    if missing:
        raise TypeError(f"{cls!r} does not implement ModelAdapter: missing {missing}")
    _ADAPTERS[name] = cls


def resolve_adapter(name: str) -> type:
    """Look up the adapter class registered under *name*."""
    try:
        return _ADAPTERS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown model family: {name!r}. Available: {sorted(_ADAPTERS)}. "
            f"Register custom families with register_adapter()."
        ) from None


def available_families() -> list[str]:
    return sorted(_ADAPTERS)


def fit_equation(
    family: str,
    data: pd.DataFrame,
    response: str,
    predictors: Sequence[str],
    **options: Any,
) -> ModelAdapter:
    """Fit one structured equation with the adapter registered as *family*.

    Raises:
        ConfigError: Unknown family or unsupported option.
        FitError: The model could not be estimated.
    """
    cls = resolve_adapter(family)
    try:
        return cls(data=data, response=response, predictors=tuple(predictors), **options)
    except TypeError as err:
        raise ConfigError(f"Bad options for {family!r} equation on {response!r}: {err}") from err


__all__ = [
    "INTERCEPT",
    "ModelAdapter",
    "StatsmodelsAdapter",
    "OLSAdapter",
    "GLMAdapter",
    "MixedLMAdapter",
    "GLSAdapter",
    "PhylogeneticGLSAdapter",
    "register_adapter",
    "resolve_adapter",
    "available_families",
    "fit_equation",
]
