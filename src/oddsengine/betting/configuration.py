"""Layered configuration for the odds engine.

Every heuristic constant used by the market normaliser and the probability
distributor lives here as immutable pydantic models.  The defaults reproduce
the tuning values the betting client has always shipped with; changing them
changes observable prices, so overrides are loaded explicitly from YAML or
environment variables rather than edited in code.
"""

from __future__ import annotations

import json
import math
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Literal, Mapping, MutableMapping, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field

ENVIRONMENT_VARIABLE = "ODDSENGINE_ENV"
EXTRA_CONFIG_VARIABLE = "ODDSENGINE_CONFIG"
ENV_OVERRIDE_PREFIX = "ODDSENGINE__"

OutcomeClass = Literal["home", "draw", "away"]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class BothTeamsToScoreHeuristic(_FrozenModel):
    """``p = base + balance_weight * balance + win_probability_weight * avg``."""

    base: float = 0.4
    balance_weight: float = 0.3
    win_probability_weight: float = 0.2
    fallback_win_probability: float = 0.33


class TotalsHeuristic(_FrozenModel):
    """``p_over = base + attack_weight * attack - draw_weight * draw``."""

    point: float = 2.5
    base: float = 0.3
    attack_weight: float = 0.4
    draw_weight: float = 0.2


class MarginConfig(_FrozenModel):
    """Overround multipliers applied when re-pricing synthesised markets."""

    both_teams_to_score: float = 1.05
    totals: float = 1.05
    correct_score: float = 1.10


class CorrectScoreWeight(_FrozenModel):
    """Scoreline whose probability is ``weight`` times the summed class mass."""

    score: str
    outcomes: tuple[OutcomeClass, ...]
    weight: float


def _default_correct_score_catalogue() -> tuple[CorrectScoreWeight, ...]:
    rows: Sequence[tuple[str, tuple[OutcomeClass, ...], float]] = (
        ("0-0", ("draw",), 0.20),
        ("1-0", ("home",), 0.15),
        ("0-1", ("away",), 0.15),
        ("1-1", ("draw",), 0.30),
        ("2-0", ("home",), 0.12),
        ("0-2", ("away",), 0.12),
        ("2-1", ("home",), 0.18),
        ("1-2", ("away",), 0.18),
        ("2-2", ("draw",), 0.20),
        ("3-0", ("home",), 0.08),
        ("0-3", ("away",), 0.08),
        ("3-1", ("home",), 0.10),
        ("1-3", ("away",), 0.10),
        ("3-2", ("home", "away"), 0.05),
        ("4-0", ("home",), 0.03),
        ("0-4", ("away",), 0.03),
    )
    return tuple(
        CorrectScoreWeight(score=score, outcomes=outcomes, weight=weight)
        for score, outcomes, weight in rows
    )


class NormalizerConfig(_FrozenModel):
    """Constants used to synthesise missing markets."""

    default_draw_probability: float = 0.34
    both_teams_to_score: BothTeamsToScoreHeuristic = Field(
        default_factory=BothTeamsToScoreHeuristic
    )
    totals: TotalsHeuristic = Field(default_factory=TotalsHeuristic)
    margins: MarginConfig = Field(default_factory=MarginConfig)
    correct_score: tuple[CorrectScoreWeight, ...] = Field(
        default_factory=_default_correct_score_catalogue
    )


class ScorelineWeight(_FrozenModel):
    home: int = Field(ge=0)
    away: int = Field(ge=0)
    weight: float


_HOME_WIN_ROWS = ((1, 0, 0.35), (2, 0, 0.20), (2, 1, 0.18), (3, 0, 0.10), (3, 1, 0.10), (4, 0, 0.04), (3, 2, 0.03))
_DRAW_ROWS = ((0, 0, 0.30), (1, 1, 0.40), (2, 2, 0.20), (3, 3, 0.10))


def _default_home_win() -> tuple[ScorelineWeight, ...]:
    return tuple(ScorelineWeight(home=h, away=a, weight=w) for h, a, w in _HOME_WIN_ROWS)


def _default_draw() -> tuple[ScorelineWeight, ...]:
    return tuple(ScorelineWeight(home=h, away=a, weight=w) for h, a, w in _DRAW_ROWS)


def _default_away_win() -> tuple[ScorelineWeight, ...]:
    return tuple(ScorelineWeight(home=a, away=h, weight=w) for h, a, w in _HOME_WIN_ROWS)


class DistributorConfig(_FrozenModel):
    """Scoreline catalogues and the evidence blending weight.

    Each evidence source scales matching scorelines by
    ``(1 - evidence_weight) + evidence_weight * p`` where ``p`` is the
    normalised market probability.
    """

    home_win: tuple[ScorelineWeight, ...] = Field(default_factory=_default_home_win)
    draw: tuple[ScorelineWeight, ...] = Field(default_factory=_default_draw)
    away_win: tuple[ScorelineWeight, ...] = Field(default_factory=_default_away_win)
    evidence_weight: float = 0.5


class EngineConfig(_FrozenModel):
    """Aggregate configuration for the odds engine."""

    environment: str = "default"
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    distributor: DistributorConfig = Field(default_factory=DistributorConfig)


DEFAULT_CONFIG = EngineConfig()


class ConfigurationError(ValueError):
    """Raised when engine configuration validation fails."""


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise TypeError(f"Configuration at {path} must be a mapping")
    return dict(data)


def _merge_layers(base: Dict[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in layer.items():
        if (
            key in merged
            and isinstance(merged[key], Mapping)
            and isinstance(value, Mapping)
        ):
            merged[key] = _merge_layers(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _resolve_env_tokens(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda match: os.getenv(match.group(1), ""), value)
    if isinstance(value, Mapping):
        return {k: _resolve_env_tokens(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_resolve_env_tokens(item) for item in value]
    return value


def _coerce_env_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return raw


def _set_nested(mapping: MutableMapping[str, Any], path: Iterable[str], value: Any) -> None:
    segments = list(path)
    if not segments:
        return
    head, *tail = segments
    key = head.lower().replace("-", "_")
    if not tail:
        mapping[key] = value
        return
    child = mapping.get(key)
    if not isinstance(child, MutableMapping):
        child = {}
    else:
        child = dict(child)
    mapping[key] = child
    _set_nested(child, tail, value)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    updated = dict(data)
    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_OVERRIDE_PREFIX):
            continue
        suffix = key[len(ENV_OVERRIDE_PREFIX) :]
        path = [segment for segment in suffix.split("__") if segment]
        if not path:
            continue
        _set_nested(updated, path, _coerce_env_value(raw_value))
    return updated


def load_engine_config(
    *,
    base_path: str | os.PathLike[str] | None = None,
    environment: str | None = None,
    extra_paths: Sequence[str | os.PathLike[str]] | None = None,
) -> EngineConfig:
    """Load layered configuration for the odds engine.

    The loader starts from the built-in defaults, merges ``base_path`` (for
    example ``config/engine.yaml``) when given, then an environment-specific
    sibling (``config/engine.<env>.yaml``, selectable through
    ``ODDSENGINE_ENV``), any additional override files (including the
    ``ODDSENGINE_CONFIG`` path list), and finally environment variable
    overrides that use the ``ODDSENGINE__`` prefix.
    """

    data: Dict[str, Any] = {}
    config_path: Path | None = Path(base_path) if base_path is not None else None
    if config_path is not None:
        data = _load_yaml(config_path)

    env_name = environment or os.getenv(ENVIRONMENT_VARIABLE) or data.get("environment")
    if isinstance(env_name, str):
        if config_path is not None:
            env_path = config_path.with_name(
                f"{config_path.stem}.{env_name}{config_path.suffix}"
            )
            if env_path.exists():
                data = _merge_layers(data, _load_yaml(env_path))
        data["environment"] = env_name

    merged = dict(data)
    override_sources: list[Path] = []
    if extra_paths:
        override_sources.extend(Path(path) for path in extra_paths)
    env_overrides = os.getenv(EXTRA_CONFIG_VARIABLE)
    if env_overrides:
        override_sources.extend(Path(token) for token in env_overrides.split(os.pathsep) if token)

    for override in override_sources:
        if override.exists():
            merged = _merge_layers(merged, _load_yaml(override))

    merged = _apply_env_overrides(merged)
    merged = _resolve_env_tokens(merged)

    return EngineConfig.model_validate(merged)


def _check_catalogue(
    name: str,
    rows: Sequence[ScorelineWeight],
    errors: list[str],
) -> None:
    if not rows:
        errors.append(f"distributor.{name} must list at least one scoreline")
        return
    if any(row.weight < 0 for row in rows):
        errors.append(f"distributor.{name} weights must be non-negative")
    total = sum(row.weight for row in rows)
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        errors.append(f"distributor.{name} weights must sum to 1 (got {total:.6f})")


def validate_engine_config(config: EngineConfig) -> list[str]:
    """Validate an :class:`EngineConfig` instance.

    Returns:
        A list of warning messages. :class:`ConfigurationError` is raised when
        any fatal issue is detected.
    """

    errors: list[str] = []
    warnings: list[str] = []

    normalizer = config.normalizer
    if not 0 < normalizer.default_draw_probability < 1:
        errors.append("normalizer.default_draw_probability must be within (0, 1)")

    btts = normalizer.both_teams_to_score
    if not 0 < btts.fallback_win_probability < 1:
        errors.append(
            "normalizer.both_teams_to_score.fallback_win_probability must be within (0, 1)"
        )
    btts_low = btts.base + min(0.0, btts.balance_weight) + min(0.0, btts.win_probability_weight)
    btts_high = btts.base + max(0.0, btts.balance_weight) + max(0.0, btts.win_probability_weight)
    if btts_low <= 0 or btts_high >= 1:
        errors.append(
            "normalizer.both_teams_to_score coefficients can produce a probability outside (0, 1)"
        )

    totals = normalizer.totals
    totals_low = totals.base + min(0.0, totals.attack_weight) - max(0.0, totals.draw_weight)
    totals_high = totals.base + max(0.0, totals.attack_weight) - min(0.0, totals.draw_weight)
    if totals_low <= 0 or totals_high >= 1:
        errors.append("normalizer.totals coefficients can produce a probability outside (0, 1)")
    if totals.point < 0:
        errors.append("normalizer.totals.point must be non-negative")
    elif float(totals.point).is_integer():
        warnings.append(
            "normalizer.totals.point is a whole number; scorelines on the line are not "
            "reweighted and totals bets landing on it settle as lost"
        )

    for name, margin in normalizer.margins.model_dump().items():
        if margin < 1:
            errors.append(f"normalizer.margins.{name} must be at least 1.0")
        elif margin == 1:
            warnings.append(f"normalizer.margins.{name} is 1.0; synthesised prices carry no overround")

    labels: set[str] = set()
    for entry in normalizer.correct_score:
        if not re.fullmatch(r"\d+-\d+", entry.score):
            errors.append(f"normalizer.correct_score label '{entry.score}' must look like 'H-A'")
        if entry.score in labels:
            errors.append(f"normalizer.correct_score label '{entry.score}' is duplicated")
        labels.add(entry.score)
        if entry.weight <= 0:
            errors.append(f"normalizer.correct_score weight for '{entry.score}' must be positive")
        if not entry.outcomes:
            errors.append(f"normalizer.correct_score entry '{entry.score}' needs an outcome class")

    distributor = config.distributor
    _check_catalogue("home_win", distributor.home_win, errors)
    _check_catalogue("draw", distributor.draw, errors)
    _check_catalogue("away_win", distributor.away_win, errors)
    if not 0 <= distributor.evidence_weight <= 1:
        errors.append("distributor.evidence_weight must be within [0, 1]")
    elif distributor.evidence_weight == 0:
        warnings.append("distributor.evidence_weight is 0; totals and BTTS markets will be ignored")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{bullet_list}")

    return warnings


__all__ = [
    "BothTeamsToScoreHeuristic",
    "ConfigurationError",
    "CorrectScoreWeight",
    "DEFAULT_CONFIG",
    "DistributorConfig",
    "EngineConfig",
    "MarginConfig",
    "NormalizerConfig",
    "ScorelineWeight",
    "TotalsHeuristic",
    "load_engine_config",
    "validate_engine_config",
]
