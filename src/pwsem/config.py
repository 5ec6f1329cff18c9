"""Analysis configuration: YAML file + env var overrides.

Priority: env var > YAML file > default.
Env vars use the PWSEM_{FIELD} convention (e.g. PWSEM_ADJUST_P=on).

Configuration is always passed explicitly to an analysis run; there is
no process-wide instance.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

_TRUTHY = {"1", "true", "on", "yes"}
_FALSY = {"0", "false", "off", "no"}
_ARROW_RE = re.compile(r"\s*(->|<-|~~)\s*")


def _parse_pair(raw: Any, arrow: str) -> tuple[str, str]:
    """Accept ``"A -> B"`` / ``"A ~~ B"`` strings or two-item lists."""
    if isinstance(raw, str):
        # Names may contain "-", "~", "<" or ">"; only the arrow token splits.
        parts = _ARROW_RE.split(raw.strip())
        if len(parts) != 3 or not parts[0] or not parts[2]:
            raise ConfigError(f"Cannot parse {raw!r}; expected 'A {arrow} B'")
        left, op, right = parts
        if op == "<-":
            return right, left
        return left, right
    items = list(raw)
    if len(items) != 2:
        raise ConfigError(f"Expected a pair, got {raw!r}")
    return str(items[0]), str(items[1])


@dataclass(frozen=True)
class AnalysisConfig:
    # Variables added to the basis set for nested / extended comparisons
    additional_variables: frozenset[str] = frozenset()
    # Report p-values against the full model's df instead of per-test df
    adjust_p: bool = False
    # Test both orientations of ambiguous claims, keep the smaller p-value
    conserve: bool = False
    # (cause, effect) pairs fixing the tested orientation
    directions: frozenset[tuple[str, str]] = frozenset()
    # Pairs with correlated errors, removed from the basis set
    correlated_errors: frozenset[frozenset[str]] = frozenset()
    # Sample size for AICc / BIC; None means the largest equation nobs
    n_obs: int | None = None
    # Thread pool size for claim refits
    max_workers: int = 1
    # Log each claim as it is tested
    progress: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "additional_variables", frozenset(self.additional_variables))
        object.__setattr__(
            self,
            "directions",
            frozenset(_parse_pair(d, "->") for d in self.directions),
        )
        object.__setattr__(
            self,
            "correlated_errors",
            frozenset(frozenset(_parse_pair(p, "~~")) for p in self.correlated_errors),
        )
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.n_obs is not None and self.n_obs < 1:
            raise ConfigError(f"n_obs must be positive, got {self.n_obs}")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> AnalysisConfig:
        """Build from a plain mapping (e.g. the ``options:`` block of a model file)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"Unknown analysis options: {', '.join(unknown)}")
        kwargs: dict[str, Any] = {}
        for name, value in raw.items():
            if name in ("additional_variables", "directions", "correlated_errors"):
                kwargs[name] = _as_list(value, name)
            else:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path | None = None) -> AnalysisConfig:
        """Load from an optional YAML file, then apply PWSEM_* env overrides."""
        raw: dict[str, Any] = {}
        if path is not None and path.exists():
            loaded = yaml.safe_load(path.read_text()) or {}
            if not isinstance(loaded, dict):
                raise ConfigError(f"{path} must hold a mapping, got {type(loaded).__name__}")
            raw = dict(loaded)
        return cls.from_mapping(raw).with_env()

    def with_env(self, environ: Mapping[str, str] | None = None) -> AnalysisConfig:
        """Copy with scalar fields overridden from PWSEM_* variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for name in ("adjust_p", "conserve", "progress"):
            val = env.get(f"PWSEM_{name.upper()}")
            if val is None:
                continue
            val = val.lower()
            if val in _TRUTHY:
                overrides[name] = True
            elif val in _FALSY:
                overrides[name] = False
        for name in ("max_workers", "n_obs"):
            val = env.get(f"PWSEM_{name.upper()}")
            if val is None:
                continue
            try:
                overrides[name] = int(val)
            except ValueError as err:
                raise ConfigError(f"PWSEM_{name.upper()}={val!r} is not a valid integer") from err
        return replace(self, **overrides) if overrides else self

    def to_dict(self) -> dict[str, Any]:
        return {
            "additional_variables": sorted(self.additional_variables),
            "adjust_p": self.adjust_p,
            "conserve": self.conserve,
            "directions": [f"{c} -> {e}" for c, e in sorted(self.directions)],
            "correlated_errors": sorted(" ~~ ".join(sorted(p)) for p in self.correlated_errors),
            "n_obs": self.n_obs,
            "max_workers": self.max_workers,
            "progress": self.progress,
        }


def _as_list(value: Any, name: str) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    raise ConfigError(f"{name} must be a list, got {value!r}")
