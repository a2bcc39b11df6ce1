"""Odds-to-outcome probability engine for the betting client.

The engine takes bookmaker decimal odds for the markets quoted on a football
match and derives two things: synthesised prices for the markets the odds
provider omitted, and a score probability distribution that the simulation
service (or the local settlement approximation) draws final scores from.

The pieces are kept in small modules so that heuristics can be tuned via
configuration and new market evidence can be plugged into the distributor
without touching the rest of the stack.
"""

from .configuration import (
    ConfigurationError,
    EngineConfig,
    load_engine_config,
    validate_engine_config,
)
from .distribution import (
    BothTeamsToScoreEvidence,
    EvidenceSource,
    ProbabilityDistributor,
    TotalsEvidence,
    distribution_frame,
    odds_to_probabilities,
    odds_to_score_probabilities,
)
from .markets import (
    BothTeamsToScoreOdds,
    CorrectScoreOdds,
    MatchMarkets,
    ScoreOdds,
    ScoreProbability,
    TotalsOdds,
    WinMarketOdds,
)
from .normalizer import MarketNormalizer, generate_missing_markets
from .settlement import (
    BetLeg,
    LocalSettlementSimulator,
    MatchContext,
    SimulationSummary,
    SlipSettlement,
    build_simulation_request,
    leg_won,
    potential_payout,
)
from .translation import ApiSelection, convert_market_to_api, market_display_name
from .utils import InvalidOddsError, apply_margin, implied_probability, normalize

__all__ = [
    "ApiSelection",
    "BetLeg",
    "BothTeamsToScoreEvidence",
    "BothTeamsToScoreOdds",
    "ConfigurationError",
    "CorrectScoreOdds",
    "EngineConfig",
    "EvidenceSource",
    "InvalidOddsError",
    "LocalSettlementSimulator",
    "MarketNormalizer",
    "MatchContext",
    "MatchMarkets",
    "ProbabilityDistributor",
    "ScoreOdds",
    "ScoreProbability",
    "SimulationSummary",
    "SlipSettlement",
    "TotalsEvidence",
    "TotalsOdds",
    "WinMarketOdds",
    "apply_margin",
    "build_simulation_request",
    "convert_market_to_api",
    "distribution_frame",
    "generate_missing_markets",
    "implied_probability",
    "leg_won",
    "load_engine_config",
    "market_display_name",
    "normalize",
    "odds_to_probabilities",
    "odds_to_score_probabilities",
    "potential_payout",
    "validate_engine_config",
]
