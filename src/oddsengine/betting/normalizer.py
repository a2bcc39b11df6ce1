"""Synthesise supplementary markets the odds provider did not return.

The provider reliably quotes the match-result market and sometimes a totals
line.  Downstream consumers expect a complete set of markets, so this module
derives both-teams-to-score, over/under 2.5 and a correct-score grid from the
match-result prices.

The derivations are heuristics rather than a statistical model: fixed
coefficients applied to odds-implied probabilities, re-priced with a
bookmaker margin.  They are deterministic for the same input prices.
"""

from __future__ import annotations

import dataclasses
import logging

from .configuration import DEFAULT_CONFIG, EngineConfig, NormalizerConfig
from .markets import (
    BothTeamsToScoreOdds,
    CorrectScoreOdds,
    MatchMarkets,
    ScoreOdds,
    TotalsOdds,
    WinMarketOdds,
)
from .utils import apply_margin, implied_probability, normalize

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ImpliedOutcomes:
    """Raw (margin-inclusive) implied probabilities of the match result."""

    home: float
    draw: float
    away: float

    @classmethod
    def from_win_market(cls, h2h: WinMarketOdds, default_draw: float) -> ImpliedOutcomes:
        draw = implied_probability(h2h.draw) if h2h.draw is not None else default_draw
        return cls(
            home=implied_probability(h2h.home),
            draw=draw,
            away=implied_probability(h2h.away),
        )


class MarketNormalizer:
    """Fill gaps in a :class:`MatchMarkets` aggregate."""

    def __init__(self, config: NormalizerConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG.normalizer

    def generate_missing_markets(self, markets: MatchMarkets) -> MatchMarkets:
        """Return ``markets`` with every absent supplementary market filled in.

        Markets that are already present are passed through unchanged, so the
        operation is idempotent.
        """

        btts = markets.both_teams_to_score
        if btts is None:
            btts = self.synthesise_both_teams_to_score(markets.h2h)

        totals = markets.totals
        if totals is None and markets.h2h is not None:
            totals = self.synthesise_totals(markets.h2h)

        correct_score = markets.correct_score
        if correct_score is None and markets.h2h is not None:
            correct_score = self.synthesise_correct_score(markets.h2h)

        return MatchMarkets(
            h2h=markets.h2h,
            totals=totals,
            both_teams_to_score=btts,
            correct_score=correct_score,
        )

    def both_teams_to_score_probability(self, h2h: WinMarketOdds | None) -> float:
        heuristic = self.config.both_teams_to_score
        if h2h is None:
            home = away = heuristic.fallback_win_probability
        else:
            home = implied_probability(h2h.home)
            away = implied_probability(h2h.away)
        # 1.0 for evenly matched sides, towards 0 for a mismatch.
        balance = min(home, away) / max(home, away)
        average_win = (home + away) / 2
        return (
            heuristic.base
            + heuristic.balance_weight * balance
            + heuristic.win_probability_weight * average_win
        )

    def synthesise_both_teams_to_score(self, h2h: WinMarketOdds | None) -> BothTeamsToScoreOdds:
        probability = self.both_teams_to_score_probability(h2h)
        margin = self.config.margins.both_teams_to_score
        market = BothTeamsToScoreOdds(
            yes=apply_margin(probability, margin),
            no=apply_margin(1.0 - probability, margin),
        )
        logger.debug("Synthesised BTTS market p(yes)=%.4f -> %s", probability, market)
        return market

    def over_probability(self, h2h: WinMarketOdds) -> float:
        heuristic = self.config.totals
        implied = ImpliedOutcomes.from_win_market(h2h, self.config.default_draw_probability)
        attack_rating = (implied.home + implied.away) / 2
        return heuristic.base + heuristic.attack_weight * attack_rating - heuristic.draw_weight * implied.draw

    def synthesise_totals(self, h2h: WinMarketOdds) -> TotalsOdds:
        probability = self.over_probability(h2h)
        margin = self.config.margins.totals
        market = TotalsOdds(
            point=self.config.totals.point,
            over=apply_margin(probability, margin),
            under=apply_margin(1.0 - probability, margin),
        )
        logger.debug("Synthesised totals market p(over)=%.4f -> %s", probability, market)
        return market

    def correct_score_probabilities(self, h2h: WinMarketOdds) -> list[tuple[str, float]]:
        implied = ImpliedOutcomes.from_win_market(h2h, self.config.default_draw_probability)
        by_class = {"home": implied.home, "draw": implied.draw, "away": implied.away}
        labels = [entry.score for entry in self.config.correct_score]
        weighted = [
            sum(by_class[outcome] for outcome in entry.outcomes) * entry.weight
            for entry in self.config.correct_score
        ]
        return list(zip(labels, normalize(weighted)))

    def synthesise_correct_score(self, h2h: WinMarketOdds) -> CorrectScoreOdds:
        margin = self.config.margins.correct_score
        market = CorrectScoreOdds(
            tuple(
                ScoreOdds(score=label, odds=apply_margin(probability, margin))
                for label, probability in self.correct_score_probabilities(h2h)
            )
        )
        logger.debug("Synthesised correct score grid with %d scorelines", len(market.scores))
        return market


def generate_missing_markets(
    markets: MatchMarkets,
    config: EngineConfig | None = None,
) -> MatchMarkets:
    """Complete ``markets`` using the default or supplied configuration."""

    normalizer = MarketNormalizer((config or DEFAULT_CONFIG).normalizer)
    return normalizer.generate_missing_markets(markets)


__all__ = ["ImpliedOutcomes", "MarketNormalizer", "generate_missing_markets"]
