"""
oddsengine: turn bookmaker odds into score distributions and synthesised markets.

The engine itself lives in :mod:`oddsengine.betting`; the most common entry
points are re-exported here and imported lazily.
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - exercised in packaging workflows
    __version__ = version("oddsengine")
except PackageNotFoundError:  # pragma: no cover - local editable installs
    __version__ = "0.0.0"

_EXPORTS = {
    # Market completion and score distributions
    "generate_missing_markets": ".betting.normalizer",
    "odds_to_probabilities": ".betting.distribution",
    "odds_to_score_probabilities": ".betting.distribution",
    "MatchMarkets": ".betting.markets",
    "ScoreProbability": ".betting.markets",
    # Simulation service vocabulary
    "convert_market_to_api": ".betting.translation",
    "build_simulation_request": ".betting.settlement",
    # Configuration
    "get_config": ".config",
    "load_engine_config": ".betting.configuration",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:  # pragma: no cover - thin lazy importer
    from importlib import import_module

    target_module = _EXPORTS.get(name)
    if not target_module:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    module = import_module(target_module, __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr
