"""Model files: YAML description of the equation set plus analysis options.

Example::

    equations:
      - response: B
        predictors: [A]
      - response: C
        predictors: [B]
        family: mixed
        groups: site
      - response: D
        predictors: [C]
        family: pgls
        taxon: species
        covariance_csv: tree_vcv.csv
    options:
      adjust_p: false
      correlated_errors: ["B ~~ D"]

``family`` defaults to ``ols``. Any other key is passed to the adapter;
``*_csv`` keys are read relative to the model file (``sigma_csv`` as a
plain matrix, ``covariance_csv`` as a labelled DataFrame).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from pwsem.adapters import fit_equation
from pwsem.adapters.base import ModelAdapter
from pwsem.config import AnalysisConfig
from pwsem.errors import ConfigError


@dataclass
class EquationSpec:
    response: str
    predictors: tuple[str, ...]
    family: str = "ols"
    options: dict[str, Any] | None = None


@dataclass
class ModelFile:
    equations: list[EquationSpec]
    options: dict[str, Any]
    base_dir: Path

    @classmethod
    def load(cls, path: Path) -> ModelFile:
        try:
            raw = yaml.safe_load(path.read_text())
        except yaml.YAMLError as err:
            raise ConfigError(f"Invalid YAML in {path}: {err}") from err
        if not isinstance(raw, dict) or not isinstance(raw.get("equations"), list):
            raise ConfigError(f"{path} must contain an 'equations' list")

        specs: list[EquationSpec] = []
        for i, entry in enumerate(raw["equations"]):
            if not isinstance(entry, dict) or "response" not in entry:
                raise ConfigError(f"Equation #{i + 1} in {path} needs a 'response'")
            entry = dict(entry)
            response = str(entry.pop("response"))
            predictors = entry.pop("predictors", []) or []
            if isinstance(predictors, str):
                predictors = [p.strip() for p in predictors.split("+")]
            family = str(entry.pop("family", "ols"))
            specs.append(
                EquationSpec(
                    response=response,
                    predictors=tuple(str(p) for p in predictors),
                    family=family,
                    options=entry,
                )
            )

        options = raw.get("options") or {}
        if not isinstance(options, dict):
            raise ConfigError(f"'options' in {path} must be a mapping")
        return cls(equations=specs, options=options, base_dir=path.parent)

    def _resolve_options(self, options: dict[str, Any]) -> dict[str, Any]:
        resolved: dict[str, Any] = {}
        for key, value in options.items():
            if key == "sigma_csv":
                resolved["sigma"] = pd.read_csv(self.base_dir / value, index_col=0).to_numpy()
            elif key == "covariance_csv":
                resolved["covariance"] = pd.read_csv(self.base_dir / value, index_col=0)
            else:
                resolved[key] = value
        return resolved

    def fit(self, data: pd.DataFrame) -> list[ModelAdapter]:
        """Fit every equation on *data*."""
        return [
            fit_equation(
                spec.family,
                data,
                spec.response,
                spec.predictors,
                **self._resolve_options(spec.options or {}),
            )
            for spec in self.equations
        ]

    def config(self, **overrides: Any) -> AnalysisConfig:
        """Options block as an AnalysisConfig, with env and CLI overrides applied."""
        base = AnalysisConfig.from_mapping(self.options).with_env()
        merged = {**base.to_dict(), **{k: v for k, v in overrides.items() if v is not None}}
        return AnalysisConfig.from_mapping(merged)
