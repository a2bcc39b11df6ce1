"""Score distributions derived from bookmaker odds.

The distributor builds an 18-scoreline probability mass function from the
match-result market and then conditions it on any further market evidence
(over/under, both teams to score).  Each evidence source scales the
scorelines it speaks about and the distribution is renormalised after every
step.  This is a sequential approximation of a joint model: it keeps the
distribution responsive to every market without a bivariate scoring model.

New evidence (corners, cards, ...) can be added by implementing
:class:`EvidenceSource` and passing a factory to
:class:`ProbabilityDistributor`; the core loop does not change.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Sequence

import polars as pl

from .configuration import DEFAULT_CONFIG, DistributorConfig, EngineConfig, ScorelineWeight
from .markets import BothTeamsToScoreOdds, MatchMarkets, ScoreProbability, TotalsOdds, WinMarketOdds
from .utils import implied_probability, normalize

logger = logging.getLogger(__name__)

Distribution = List[ScoreProbability]


def renormalize(distribution: Sequence[ScoreProbability], masses: Sequence[float]) -> Distribution:
    """Rebuild ``distribution`` from raw ``masses`` rescaled to sum to one.

    A zero-mass list is left as zeros.
    """

    if len(masses) != len(distribution):
        raise ValueError(
            f"Evidence returned {len(masses)} masses for {len(distribution)} scorelines"
        )
    scaled = normalize(list(masses))
    return [entry.with_probability(value) for entry, value in zip(distribution, scaled)]


def _binary_share(first: float, second: float) -> float:
    """Margin-free probability of the first side of a two-way market."""

    return normalize([implied_probability(first), implied_probability(second)])[0]


class EvidenceSource(ABC):
    """A market signal that reweights a score distribution."""

    name: str = "evidence"

    def __init__(self, weight: float) -> None:
        self.weight = weight

    def factor(self, probability: float) -> float:
        return (1.0 - self.weight) + self.weight * probability

    @abstractmethod
    def apply(self, distribution: Sequence[ScoreProbability]) -> List[float]:
        """Return one reweighted (not yet renormalised) mass per scoreline.

        The masses are plain floats aligned with ``distribution``; they may
        exceed one, as the distributor renormalises before building the next
        distribution.
        """


class TotalsEvidence(EvidenceSource):
    """Shift mass towards scorelines on the favoured side of the goal line."""

    name = "totals"

    def __init__(self, totals: TotalsOdds, weight: float) -> None:
        super().__init__(weight)
        self.point = totals.point
        self.over_probability = _binary_share(totals.over, totals.under)

    def apply(self, distribution: Sequence[ScoreProbability]) -> List[float]:
        over = self.factor(self.over_probability)
        under = self.factor(1.0 - self.over_probability)
        adjusted: List[float] = []
        for entry in distribution:
            if entry.total_goals > self.point:
                adjusted.append(entry.probability * over)
            elif entry.total_goals < self.point:
                adjusted.append(entry.probability * under)
            else:
                adjusted.append(entry.probability)
        return adjusted


class BothTeamsToScoreEvidence(EvidenceSource):
    name = "both_teams_to_score"

    def __init__(self, btts: BothTeamsToScoreOdds, weight: float) -> None:
        super().__init__(weight)
        self.yes_probability = _binary_share(btts.yes, btts.no)

    def apply(self, distribution: Sequence[ScoreProbability]) -> List[float]:
        yes = self.factor(self.yes_probability)
        no = self.factor(1.0 - self.yes_probability)
        return [entry.probability * (yes if entry.both_scored else no) for entry in distribution]


EvidenceFactory = Callable[[MatchMarkets, DistributorConfig], "EvidenceSource | None"]


def totals_evidence(markets: MatchMarkets, config: DistributorConfig) -> EvidenceSource | None:
    if markets.totals is None:
        return None
    return TotalsEvidence(markets.totals, config.evidence_weight)


def both_teams_to_score_evidence(
    markets: MatchMarkets, config: DistributorConfig
) -> EvidenceSource | None:
    if markets.both_teams_to_score is None:
        return None
    return BothTeamsToScoreEvidence(markets.both_teams_to_score, config.evidence_weight)


DEFAULT_EVIDENCE: tuple[EvidenceFactory, ...] = (totals_evidence, both_teams_to_score_evidence)


class ProbabilityDistributor:
    """Turn a :class:`MatchMarkets` aggregate into a score distribution."""

    def __init__(
        self,
        config: DistributorConfig | None = None,
        evidence: Sequence[EvidenceFactory] = DEFAULT_EVIDENCE,
    ) -> None:
        self.config = config or DEFAULT_CONFIG.distributor
        self.evidence = tuple(evidence)

    def base_distribution(self, h2h: WinMarketOdds) -> Distribution:
        """Spread the margin-free match-result mass over the catalogues.

        A market without a draw price contributes no draw mass; the draw
        scorelines are still listed with zero probability.
        """

        draw = implied_probability(h2h.draw) if h2h.draw is not None else 0.0
        home, draw, away = normalize([implied_probability(h2h.home), draw, implied_probability(h2h.away)])
        distribution: Distribution = []
        for mass, catalogue in (
            (home, self.config.home_win),
            (draw, self.config.draw),
            (away, self.config.away_win),
        ):
            distribution.extend(_spread(mass, catalogue))
        return distribution

    def distribute(self, markets: MatchMarkets) -> Distribution:
        """Return the conditioned distribution, or ``[]`` without a win market.

        Entries keep catalogue order (home wins, draws, away wins); they are
        not sorted by probability.
        """

        if markets.h2h is None:
            logger.debug("No match-result market; returning an empty distribution")
            return []
        distribution = self.base_distribution(markets.h2h)
        for factory in self.evidence:
            source = factory(markets, self.config)
            if source is None:
                continue
            distribution = renormalize(distribution, source.apply(distribution))
            logger.debug("Applied %s evidence to %d scorelines", source.name, len(distribution))
        return distribution


def _spread(mass: float, catalogue: Sequence[ScorelineWeight]) -> Distribution:
    return [
        ScoreProbability(home_score=row.home, away_score=row.away, probability=mass * row.weight)
        for row in catalogue
    ]


def odds_to_probabilities(
    markets: MatchMarkets,
    config: EngineConfig | None = None,
) -> Distribution:
    """Score distribution for ``markets`` under the default or given config."""

    return ProbabilityDistributor((config or DEFAULT_CONFIG).distributor).distribute(markets)


def odds_to_score_probabilities(
    home: float,
    draw: float | None,
    away: float,
    totals_point: float | None = None,
    over: float | None = None,
    under: float | None = None,
    *,
    config: EngineConfig | None = None,
) -> Distribution:
    """Distribution from match-result prices and an optional totals line.

    The totals market is only used when the point and both prices are given.
    """

    totals = None
    if totals_point is not None and over is not None and under is not None:
        totals = TotalsOdds(point=totals_point, over=over, under=under)
    markets = MatchMarkets(h2h=WinMarketOdds(home=home, draw=draw, away=away), totals=totals)
    return odds_to_probabilities(markets, config)


def distribution_frame(distribution: Sequence[ScoreProbability]) -> pl.DataFrame:
    """Tabulate a distribution for inspection."""

    return pl.DataFrame(
        {
            "home_score": [entry.home_score for entry in distribution],
            "away_score": [entry.away_score for entry in distribution],
            "probability": [entry.probability for entry in distribution],
            "total_goals": [entry.total_goals for entry in distribution],
            "both_scored": [entry.both_scored for entry in distribution],
            "outcome": [entry.outcome for entry in distribution],
        },
        schema={
            "home_score": pl.Int64,
            "away_score": pl.Int64,
            "probability": pl.Float64,
            "total_goals": pl.Int64,
            "both_scored": pl.Boolean,
            "outcome": pl.Utf8,
        },
    )


__all__ = [
    "BothTeamsToScoreEvidence",
    "DEFAULT_EVIDENCE",
    "Distribution",
    "EvidenceFactory",
    "EvidenceSource",
    "ProbabilityDistributor",
    "TotalsEvidence",
    "both_teams_to_score_evidence",
    "distribution_frame",
    "odds_to_probabilities",
    "odds_to_score_probabilities",
    "renormalize",
    "totals_evidence",
]
