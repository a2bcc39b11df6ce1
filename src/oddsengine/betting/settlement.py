"""Bet-slip preparation and a local settlement approximation.

The remote simulation service resolves bet slips against score
distributions.  :func:`build_simulation_request` prepares the JSON body it
expects.  :class:`LocalSettlementSimulator` settles a slip in-process by
drawing a final score from each match's distribution, which is enough for
offline demos and tests.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import random
from typing import Any, Dict, List, Mapping, Sequence

from .configuration import DEFAULT_CONFIG, EngineConfig
from .distribution import Distribution, ProbabilityDistributor
from .markets import MatchMarkets, ScoreProbability, parse_score_label
from .normalizer import MarketNormalizer
from .translation import convert_market_to_api
from .utils import validate_decimal_odds

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class BetLeg:
    """One selection on a bet slip, in the client's vocabulary."""

    match_id: str
    market: str
    side: str
    odds: float
    point: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "odds", validate_decimal_odds(self.odds))


@dataclasses.dataclass(frozen=True, slots=True)
class MatchContext:
    match_id: str
    home_team: str
    away_team: str
    markets: MatchMarkets


@dataclasses.dataclass(slots=True)
class LegResult:
    leg: BetLeg
    won: bool


@dataclasses.dataclass(slots=True)
class SlipSettlement:
    """Outcome of settling one bet slip."""

    final_scores: Dict[str, tuple[int, int]]
    leg_results: List[LegResult]
    won: bool
    stake: float
    payout: float

    @property
    def profit(self) -> float:
        return self.payout - self.stake


@dataclasses.dataclass(slots=True)
class SimulationSummary:
    """Aggregate of repeated local settlements of the same slip."""

    wins: int
    losses: int
    total_staked: float
    total_payout: float
    results: List[SlipSettlement] = dataclasses.field(default_factory=list)

    @property
    def net_profit(self) -> float:
        return self.total_payout - self.total_staked

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wins": self.wins,
            "losses": self.losses,
            "total_staked": self.total_staked,
            "total_payout": self.total_payout,
            "net_profit": self.net_profit,
        }


def total_odds(legs: Sequence[BetLeg]) -> float:
    """Accumulator price: the product of every leg's odds."""

    return math.prod(leg.odds for leg in legs)


def potential_payout(stake: float, legs: Sequence[BetLeg]) -> float:
    return stake * total_odds(legs)


def _group_legs(legs: Sequence[BetLeg]) -> Dict[str, List[BetLeg]]:
    grouped: Dict[str, List[BetLeg]] = {}
    for leg in legs:
        grouped.setdefault(leg.match_id, []).append(leg)
    return grouped


def _check_stake(stake: float) -> None:
    if not stake > 0:
        raise ValueError(f"Stake must be positive, got {stake!r}")


class _DistributionBuilder:
    def __init__(self, config: EngineConfig) -> None:
        self.normalizer = MarketNormalizer(config.normalizer)
        self.distributor = ProbabilityDistributor(config.distributor)

    def __call__(self, markets: MatchMarkets) -> Distribution:
        return self.distributor.distribute(self.normalizer.generate_missing_markets(markets))


def build_simulation_request(
    legs: Sequence[BetLeg],
    matches: Mapping[str, MatchContext],
    stake: float,
    *,
    user_id: str = "guest",
    volatility: str = "medium",
    seed: int | None = None,
    config: EngineConfig | None = None,
) -> Dict[str, Any]:
    """Build the JSON body for the simulation service's bet-slip endpoint.

    Legs are grouped by match in first-seen order.  Matches that are unknown
    or lack a match-result market are skipped together with their legs, as
    no score distribution can be produced for them.
    """

    _check_stake(stake)
    build = _DistributionBuilder(config or DEFAULT_CONFIG)
    matches_payload: List[Dict[str, Any]] = []
    slip_payload: List[Dict[str, Any]] = []

    for match_id, match_legs in _group_legs(legs).items():
        context = matches.get(match_id)
        if context is None or context.markets.h2h is None:
            logger.info("Skipping match %s: no match-result market available", match_id)
            continue
        distribution = build(context.markets)
        matches_payload.append(
            {
                "match_id": match_id,
                "home_team": context.home_team,
                "away_team": context.away_team,
                "score_probabilities": [entry.to_dict() for entry in distribution],
            }
        )
        for leg in match_legs:
            selection = convert_market_to_api(leg.market, leg.side, leg.point)
            slip_payload.append(
                {
                    "match_id": match_id,
                    "home_team": context.home_team,
                    "away_team": context.away_team,
                    "market": selection.market,
                    "outcome": selection.outcome,
                    "odds": leg.odds,
                }
            )

    return {
        "user_id": user_id,
        "matches": matches_payload,
        "bet_slip": slip_payload,
        "stake": stake,
        "volatility": volatility,
        "seed": seed,
    }


def sample_score(distribution: Sequence[ScoreProbability], rng: random.Random) -> tuple[int, int]:
    """Draw a scoreline with probability proportional to its mass."""

    total = sum(entry.probability for entry in distribution)
    if not distribution or total <= 0:
        raise ValueError("Cannot sample from an empty distribution")
    threshold = rng.random() * total
    cumulative = 0.0
    for entry in distribution:
        cumulative += entry.probability
        if threshold < cumulative:
            return entry.home_score, entry.away_score
    last = next(entry for entry in reversed(distribution) if entry.probability > 0)
    return last.home_score, last.away_score


def leg_won(leg: BetLeg, home_score: int, away_score: int) -> bool:
    """Settle a single leg against a final score.

    Totals landing exactly on the line are treated as lost.
    """

    if leg.market == "h2h":
        if home_score > away_score:
            return leg.side == "home"
        if home_score < away_score:
            return leg.side == "away"
        return leg.side == "draw"
    if leg.market == "totals":
        if leg.point is None:
            raise ValueError("Totals legs require a point")
        goals = home_score + away_score
        if leg.side == "over":
            return goals > leg.point
        if leg.side == "under":
            return goals < leg.point
        raise ValueError(f"Unknown totals side: {leg.side}")
    if leg.market == "btts":
        both = home_score > 0 and away_score > 0
        return both if leg.side == "yes" else not both
    if leg.market == "correct_score":
        return parse_score_label(leg.side) == (home_score, away_score)
    raise ValueError(f"Unsupported market: {leg.market}")


class LocalSettlementSimulator:
    """Approximate the remote settlement service in-process."""

    def __init__(self, seed: int | None = None, config: EngineConfig | None = None) -> None:
        self._rng = random.Random(seed)
        self._build = _DistributionBuilder(config or DEFAULT_CONFIG)

    def settle(
        self,
        legs: Sequence[BetLeg],
        matches: Mapping[str, MatchContext],
        stake: float,
    ) -> SlipSettlement:
        _check_stake(stake)
        if not legs:
            raise ValueError("A bet slip needs at least one leg")
        final_scores: Dict[str, tuple[int, int]] = {}
        results: List[LegResult] = []
        for match_id, match_legs in _group_legs(legs).items():
            context = matches.get(match_id)
            if context is None:
                raise KeyError(f"Unknown match: {match_id}")
            distribution = self._build(context.markets)
            if not distribution:
                raise ValueError(f"Match {match_id} has no match-result market to settle against")
            score = sample_score(distribution, self._rng)
            final_scores[match_id] = score
            results.extend(LegResult(leg, leg_won(leg, *score)) for leg in match_legs)
        won = all(result.won for result in results)
        payout = potential_payout(stake, legs) if won else 0.0
        return SlipSettlement(
            final_scores=final_scores,
            leg_results=results,
            won=won,
            stake=stake,
            payout=payout,
        )

    def run(
        self,
        legs: Sequence[BetLeg],
        matches: Mapping[str, MatchContext],
        stake: float,
        simulations: int,
    ) -> SimulationSummary:
        if simulations <= 0:
            raise ValueError("simulations must be greater than zero")
        summary = SimulationSummary(wins=0, losses=0, total_staked=0.0, total_payout=0.0)
        for _ in range(simulations):
            result = self.settle(legs, matches, stake)
            summary.results.append(result)
            summary.total_staked += stake
            summary.total_payout += result.payout
            if result.won:
                summary.wins += 1
            else:
                summary.losses += 1
        logger.debug(
            "Settled %d simulations: %d won, %d lost", simulations, summary.wins, summary.losses
        )
        return summary


__all__ = [
    "BetLeg",
    "LegResult",
    "LocalSettlementSimulator",
    "MatchContext",
    "SimulationSummary",
    "SlipSettlement",
    "build_simulation_request",
    "leg_won",
    "potential_payout",
    "sample_score",
    "total_odds",
]
