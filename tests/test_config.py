"""Tests for AnalysisConfig: YAML + env overrides."""

from __future__ import annotations

import pytest
import yaml

from pwsem.config import AnalysisConfig
from pwsem.errors import ConfigError


class TestDefaults:
    def test_defaults(self):
        cfg = AnalysisConfig()
        assert cfg.adjust_p is False
        assert cfg.conserve is False
        assert cfg.max_workers == 1
        assert cfg.n_obs is None
        assert cfg.directions == frozenset()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            AnalysisConfig().adjust_p = True  # type: ignore[misc]


class TestPairs:
    def test_direction_arrow(self):
        assert AnalysisConfig(directions=["A -> B"]).directions == frozenset({("A", "B")})

    def test_direction_reverse_arrow(self):
        assert AnalysisConfig(directions=["A <- B"]).directions == frozenset({("B", "A")})

    def test_direction_list(self):
        assert AnalysisConfig(directions=[["X", "Y"]]).directions == frozenset({("X", "Y")})

    def test_correlated_errors_unordered(self):
        cfg = AnalysisConfig(correlated_errors=["B ~~ A"])
        assert cfg.correlated_errors == frozenset({frozenset({"A", "B"})})

    def test_hyphenated_names(self):
        cfg = AnalysisConfig(
            directions=["log-mass -> growth", "x<y <- z>0"],
            correlated_errors=["soil~pH ~~ root-depth"],
        )
        assert cfg.directions == frozenset({("log-mass", "growth"), ("z>0", "x<y")})
        assert cfg.correlated_errors == frozenset({frozenset({"soil~pH", "root-depth"})})

    def test_no_spaces_around_arrow(self):
        assert AnalysisConfig(directions=["log-mass->growth"]).directions == frozenset(
            {("log-mass", "growth")}
        )

    @pytest.mark.parametrize("bad", ["A B", "A -> ", "-> B", "A -> B -> C", "A - B"])
    def test_unparseable(self, bad):
        with pytest.raises(ConfigError, match="Cannot parse"):
            AnalysisConfig(directions=[bad])

    def test_wrong_arity(self):
        with pytest.raises(ConfigError, match="pair"):
            AnalysisConfig(directions=[["A", "B", "C"]])


class TestValidation:
    def test_max_workers(self):
        with pytest.raises(ConfigError):
            AnalysisConfig(max_workers=0)

    def test_n_obs(self):
        with pytest.raises(ConfigError):
            AnalysisConfig(n_obs=0)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            AnalysisConfig(max_workers=-1)


class TestFromMapping:
    def test_scalar_string_becomes_list(self):
        cfg = AnalysisConfig.from_mapping({"correlated_errors": "A ~~ C", "adjust_p": True})
        assert cfg.correlated_errors == frozenset({frozenset({"A", "C"})})
        assert cfg.adjust_p is True

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown analysis options: bogus"):
            AnalysisConfig.from_mapping({"bogus": 1})

    def test_round_trip_through_dict(self):
        cfg = AnalysisConfig(
            additional_variables={"E"},
            directions=["A -> B"],
            correlated_errors=["C ~~ D"],
            n_obs=50,
            max_workers=2,
        )
        assert AnalysisConfig.from_mapping(cfg.to_dict()) == cfg


class TestLoad:
    def test_yaml(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PWSEM_ADJUST_P", raising=False)
        path = tmp_path / "pwsem.yaml"
        path.write_text(yaml.dump({"adjust_p": True, "directions": ["B -> D"]}))
        cfg = AnalysisConfig.load(path)
        assert cfg.adjust_p is True
        assert cfg.directions == frozenset({("B", "D")})

    def test_missing_file_gives_defaults(self, tmp_path, monkeypatch):
        for var in ("PWSEM_ADJUST_P", "PWSEM_CONSERVE", "PWSEM_MAX_WORKERS"):
            monkeypatch.delenv(var, raising=False)
        assert AnalysisConfig.load(tmp_path / "absent.yaml") == AnalysisConfig()

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "pwsem.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            AnalysisConfig.load(path)


class TestEnvOverrides:
    def test_booleans(self):
        cfg = AnalysisConfig().with_env({"PWSEM_ADJUST_P": "on", "PWSEM_CONSERVE": "yes"})
        assert cfg.adjust_p is True
        assert cfg.conserve is True

    def test_false_overrides_yaml(self):
        cfg = AnalysisConfig(adjust_p=True).with_env({"PWSEM_ADJUST_P": "0"})
        assert cfg.adjust_p is False

    def test_unrecognized_boolean_ignored(self):
        assert AnalysisConfig().with_env({"PWSEM_PROGRESS": "maybe"}).progress is False

    def test_integers(self):
        cfg = AnalysisConfig().with_env({"PWSEM_MAX_WORKERS": "4", "PWSEM_N_OBS": "120"})
        assert cfg.max_workers == 4
        assert cfg.n_obs == 120

    def test_bad_integer(self):
        with pytest.raises(ConfigError, match="PWSEM_MAX_WORKERS"):
            AnalysisConfig().with_env({"PWSEM_MAX_WORKERS": "many"})

    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "pwsem.yaml"
        path.write_text(yaml.dump({"max_workers": 2}))
        monkeypatch.setenv("PWSEM_MAX_WORKERS", "8")
        assert AnalysisConfig.load(path).max_workers == 8
