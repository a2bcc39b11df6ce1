from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from oddsengine.betting.configuration import (
    DEFAULT_CONFIG,
    ConfigurationError,
    EngineConfig,
    load_engine_config,
    validate_engine_config,
)

REPO_CONFIG = Path(__file__).resolve().parents[2] / "config" / "engine.yaml"


def test_defaults_without_files() -> None:
    config = load_engine_config()
    assert config == DEFAULT_CONFIG
    assert config.normalizer.margins.correct_score == pytest.approx(1.10)
    assert len(config.normalizer.correct_score) == 16
    assert [row.weight for row in config.distributor.away_win] == [
        row.weight for row in config.distributor.home_win
    ]


def test_shipped_yaml_matches_builtin_defaults() -> None:
    assert load_engine_config(base_path=REPO_CONFIG) == EngineConfig()


def test_configuration_layers_and_env_overrides(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    base = tmp_path / "engine.yaml"
    base.write_text(
        """
normalizer:
  default_draw_probability: 0.30
  margins:
    totals: 1.08
distributor:
  evidence_weight: 0.5
"""
    )
    (tmp_path / "engine.production.yaml").write_text(
        """
distributor:
  evidence_weight: 0.4
"""
    )
    extra_override = tmp_path / "override.yaml"
    extra_override.write_text(
        """
normalizer:
  margins:
    correct_score: 1.2
"""
    )

    monkeypatch.setenv("ODDSENGINE_ENV", "production")
    monkeypatch.setenv("ODDSENGINE_CONFIG", str(extra_override))
    monkeypatch.setenv("ODDSENGINE__normalizer__margins__totals", "1.12")

    config = load_engine_config(base_path=base)

    assert config.environment == "production"
    assert config.distributor.evidence_weight == pytest.approx(0.4)
    assert config.normalizer.margins.totals == pytest.approx(1.12)
    assert config.normalizer.margins.correct_score == pytest.approx(1.2)
    assert config.normalizer.margins.both_teams_to_score == pytest.approx(1.05)
    assert config.normalizer.default_draw_probability == pytest.approx(0.30)


def test_explicit_environment_wins_over_variable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    base = tmp_path / "engine.yaml"
    base.write_text("environment: default\n")
    (tmp_path / "engine.staging.yaml").write_text("distributor:\n  evidence_weight: 0.25\n")
    monkeypatch.setenv("ODDSENGINE_ENV", "production")

    config = load_engine_config(base_path=base, environment="staging")

    assert config.environment == "staging"
    assert config.distributor.evidence_weight == pytest.approx(0.25)


def test_environment_token_substitution(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    base = tmp_path / "engine.yaml"
    monkeypatch.setenv("DRAW_SHARE", "0.31")
    base.write_text(
        """
normalizer:
  default_draw_probability: "${DRAW_SHARE}"
"""
    )

    config = load_engine_config(base_path=base)
    assert config.normalizer.default_draw_probability == pytest.approx(0.31)


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    base = tmp_path / "engine.yaml"
    base.write_text("normalizer:\n  margin: 1.2\n")
    with pytest.raises(ValidationError):
        load_engine_config(base_path=base)


def test_configuration_must_be_a_mapping(tmp_path: Path) -> None:
    base = tmp_path / "engine.yaml"
    base.write_text("- 1\n- 2\n")
    with pytest.raises(TypeError):
        load_engine_config(base_path=base)


def test_missing_base_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_engine_config(base_path=tmp_path / "absent.yaml")


def test_default_configuration_is_valid() -> None:
    assert validate_engine_config(DEFAULT_CONFIG) == []


def test_validation_collects_every_error() -> None:
    config = EngineConfig.model_validate(
        {
            "normalizer": {
                "margins": {"totals": 0.9},
                "correct_score": [
                    {"score": "1-0", "outcomes": ["home"], "weight": 0.2},
                    {"score": "1-0", "outcomes": ["home"], "weight": 0.1},
                    {"score": "one-nil", "outcomes": ["home"], "weight": 0.1},
                ],
            },
            "distributor": {
                "draw": [{"home": 0, "away": 0, "weight": 0.9}],
                "evidence_weight": 1.5,
            },
        }
    )

    with pytest.raises(ConfigurationError) as excinfo:
        validate_engine_config(config)

    message = str(excinfo.value)
    assert message.startswith("Configuration validation failed:")
    assert "normalizer.margins.totals must be at least 1.0" in message
    assert "'1-0' is duplicated" in message
    assert "'one-nil' must look like 'H-A'" in message
    assert "distributor.draw weights must sum to 1" in message
    assert "distributor.evidence_weight must be within [0, 1]" in message


def test_validation_rejects_unbounded_heuristics() -> None:
    config = EngineConfig.model_validate(
        {"normalizer": {"both_teams_to_score": {"base": 0.6}, "default_draw_probability": 1.0}}
    )
    with pytest.raises(ConfigurationError, match="both_teams_to_score coefficients"):
        validate_engine_config(config)


def test_validation_warnings() -> None:
    config = EngineConfig.model_validate(
        {
            "normalizer": {"margins": {"both_teams_to_score": 1.0}, "totals": {"point": 3}},
            "distributor": {"evidence_weight": 0.0},
        }
    )
    warnings = validate_engine_config(config)
    assert len(warnings) == 3
    assert any("margins.both_teams_to_score is 1.0" in message for message in warnings)
    assert any(
        "whole number" in message and "settle as lost" in message for message in warnings
    )
    assert any("evidence_weight is 0" in message for message in warnings)


def test_configuration_models_are_frozen() -> None:
    with pytest.raises(ValidationError):
        DEFAULT_CONFIG.distributor.evidence_weight = 0.2  # type: ignore[misc]
