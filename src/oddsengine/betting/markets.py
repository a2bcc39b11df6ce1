"""Value objects describing the markets offered on a single match.

The odds provider adapter hands the engine a plain mapping in the shape the
web client uses (``h2h``, ``totals``, ``bothTeamsToScore``, ``correctScore``).
:class:`MatchMarkets` parses that shape once into frozen dataclasses so the
normaliser and distributor can rely on validated decimal odds throughout.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any, Dict, Iterable, Literal, Mapping

from .utils import validate_decimal_odds

OutcomeLiteral = Literal["home", "draw", "away"]

_SCORE_PATTERN = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def parse_score_label(label: str) -> tuple[int, int]:
    """Split an ``"H-A"`` scoreline label into home and away goals."""

    match = _SCORE_PATTERN.match(label)
    if match is None:
        raise ValueError(f"Malformed score label: {label!r}")
    return int(match.group(1)), int(match.group(2))


def format_score_label(home_score: int, away_score: int) -> str:
    return f"{home_score}-{away_score}"


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class WinMarketOdds:
    """Three-way (or two-way when ``draw`` is ``None``) match result market.

    Fields are keyword-only so a positional ``(home, draw, away)`` call cannot
    swap the draw and away prices.
    """

    home: float
    draw: float | None = None
    away: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "home", validate_decimal_odds(self.home))
        object.__setattr__(self, "away", validate_decimal_odds(self.away))
        if self.draw is not None:
            object.__setattr__(self, "draw", validate_decimal_odds(self.draw))

    @property
    def has_draw(self) -> bool:
        return self.draw is not None


@dataclasses.dataclass(frozen=True, slots=True)
class TotalsOdds:
    """Over/under market at a single goal threshold."""

    point: float
    over: float
    under: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", float(self.point))
        object.__setattr__(self, "over", validate_decimal_odds(self.over))
        object.__setattr__(self, "under", validate_decimal_odds(self.under))


@dataclasses.dataclass(frozen=True, slots=True)
class BothTeamsToScoreOdds:
    yes: float
    no: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "yes", validate_decimal_odds(self.yes))
        object.__setattr__(self, "no", validate_decimal_odds(self.no))


@dataclasses.dataclass(frozen=True, slots=True)
class ScoreOdds:
    """A single correct-score price such as ``("2-1", 8.5)``."""

    score: str
    odds: float

    def __post_init__(self) -> None:
        parse_score_label(self.score)
        object.__setattr__(self, "odds", validate_decimal_odds(self.odds))

    @property
    def home_goals(self) -> int:
        return parse_score_label(self.score)[0]

    @property
    def away_goals(self) -> int:
        return parse_score_label(self.score)[1]


@dataclasses.dataclass(frozen=True, slots=True)
class CorrectScoreOdds:
    """Ordered correct-score grid."""

    scores: tuple[ScoreOdds, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "scores", tuple(self.scores))

    def odds_for(self, label: str) -> float | None:
        home, away = parse_score_label(label)
        for entry in self.scores:
            if entry.home_goals == home and entry.away_goals == away:
                return entry.odds
        return None

    def labels(self) -> list[str]:
        return [entry.score for entry in self.scores]


@dataclasses.dataclass(frozen=True, slots=True)
class MatchMarkets:
    """All markets known for one match; any of them may be absent."""

    h2h: WinMarketOdds | None = None
    totals: TotalsOdds | None = None
    both_teams_to_score: BothTeamsToScoreOdds | None = None
    correct_score: CorrectScoreOdds | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MatchMarkets:
        """Build markets from the provider-adapted mapping shape.

        Both the web client's camelCase keys and snake_case keys are accepted
        for the supplementary markets.
        """

        if not isinstance(data, Mapping):
            raise TypeError("Match markets must be provided as a mapping")

        h2h = None
        raw_h2h = data.get("h2h")
        if isinstance(raw_h2h, Mapping):
            h2h = WinMarketOdds(
                home=raw_h2h["home"],
                draw=raw_h2h.get("draw"),
                away=raw_h2h["away"],
            )

        totals = None
        raw_totals = data.get("totals")
        if isinstance(raw_totals, Mapping):
            totals = TotalsOdds(
                point=raw_totals["point"],
                over=raw_totals["over"],
                under=raw_totals["under"],
            )

        btts = None
        raw_btts = _first_present(data, "bothTeamsToScore", "both_teams_to_score")
        if isinstance(raw_btts, Mapping):
            btts = BothTeamsToScoreOdds(yes=raw_btts["yes"], no=raw_btts["no"])

        correct_score = None
        raw_scores = _first_present(data, "correctScore", "correct_score")
        if isinstance(raw_scores, Mapping):
            correct_score = CorrectScoreOdds(
                tuple(
                    ScoreOdds(score=str(item["score"]), odds=item["odds"])
                    for item in _iter_mappings(raw_scores.get("scores", []))
                )
            )

        return cls(
            h2h=h2h,
            totals=totals,
            both_teams_to_score=btts,
            correct_score=correct_score,
        )

    def to_mapping(self) -> Dict[str, Any]:
        """Serialise back into the web client's camelCase mapping shape."""

        payload: Dict[str, Any] = {}
        if self.h2h is not None:
            h2h: Dict[str, float] = {"home": self.h2h.home}
            if self.h2h.draw is not None:
                h2h["draw"] = self.h2h.draw
            h2h["away"] = self.h2h.away
            payload["h2h"] = h2h
        if self.totals is not None:
            payload["totals"] = {
                "point": self.totals.point,
                "over": self.totals.over,
                "under": self.totals.under,
            }
        if self.both_teams_to_score is not None:
            payload["bothTeamsToScore"] = {
                "yes": self.both_teams_to_score.yes,
                "no": self.both_teams_to_score.no,
            }
        if self.correct_score is not None:
            payload["correctScore"] = {
                "scores": [
                    {"score": entry.score, "odds": entry.odds}
                    for entry in self.correct_score.scores
                ]
            }
        return payload

    def available_markets(self) -> list[str]:
        names = []
        for field in dataclasses.fields(self):
            if getattr(self, field.name) is not None:
                names.append(field.name)
        return names


@dataclasses.dataclass(frozen=True, slots=True)
class ScoreProbability:
    """Probability mass assigned to one final scoreline."""

    home_score: int
    away_score: int
    probability: float

    def __post_init__(self) -> None:
        if self.home_score < 0 or self.away_score < 0:
            raise ValueError("Scores must be non-negative")
        # Small tolerance for floating-point drift after renormalisation.
        if not -1e-12 <= self.probability <= 1.0 + 1e-9:
            raise ValueError(f"Probability must be within [0, 1], got {self.probability!r}")

    @property
    def score(self) -> str:
        return format_score_label(self.home_score, self.away_score)

    @property
    def total_goals(self) -> int:
        return self.home_score + self.away_score

    @property
    def both_scored(self) -> bool:
        return self.home_score > 0 and self.away_score > 0

    @property
    def outcome(self) -> OutcomeLiteral:
        if self.home_score > self.away_score:
            return "home"
        if self.home_score < self.away_score:
            return "away"
        return "draw"

    def with_probability(self, probability: float) -> ScoreProbability:
        return dataclasses.replace(self, probability=probability)

    def to_dict(self) -> Dict[str, float | int]:
        return {
            "home_score": self.home_score,
            "away_score": self.away_score,
            "probability": self.probability,
        }


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _iter_mappings(items: object) -> Iterable[Mapping[str, Any]]:
    if not isinstance(items, (list, tuple)):
        return []
    return [item for item in items if isinstance(item, Mapping)]


__all__ = [
    "BothTeamsToScoreOdds",
    "CorrectScoreOdds",
    "MatchMarkets",
    "OutcomeLiteral",
    "ScoreOdds",
    "ScoreProbability",
    "TotalsOdds",
    "WinMarketOdds",
    "format_score_label",
    "parse_score_label",
]
