from __future__ import annotations

import json
import os
import random
from pathlib import Path
from typing import Any, Dict, List

import pytest

from oddsengine.betting.markets import MatchMarkets, TotalsOdds, WinMarketOdds
from oddsengine.betting.settlement import MatchContext


class FixedRandom(random.Random):
    """Random source replaying a fixed sequence of ``random()`` draws."""

    def __init__(self, values: List[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


@pytest.fixture(autouse=True)
def _isolate_engine_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("ODDSENGINE"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def fixed_random():
    return FixedRandom


@pytest.fixture()
def win_market() -> WinMarketOdds:
    return WinMarketOdds(home=2.00, draw=3.00, away=4.00)


@pytest.fixture()
def favourite_market() -> WinMarketOdds:
    return WinMarketOdds(home=1.80, draw=3.40, away=4.50)


@pytest.fixture()
def h2h_only(win_market: WinMarketOdds) -> MatchMarkets:
    return MatchMarkets(h2h=win_market)


@pytest.fixture()
def h2h_with_totals(win_market: WinMarketOdds) -> MatchMarkets:
    return MatchMarkets(
        h2h=win_market,
        totals=TotalsOdds(point=2.5, over=1.50, under=2.50),
    )


@pytest.fixture()
def provider_payload() -> Dict[str, Any]:
    return {
        "h2h": {"home": 1.80, "draw": 3.40, "away": 4.50},
        "totals": {"point": 2.5, "over": 1.95, "under": 1.85},
    }


@pytest.fixture()
def match_contexts(provider_payload: Dict[str, Any]) -> Dict[str, MatchContext]:
    return {
        "ars-che": MatchContext(
            match_id="ars-che",
            home_team="Arsenal",
            away_team="Chelsea",
            markets=MatchMarkets.from_mapping(provider_payload),
        ),
        "liv-mci": MatchContext(
            match_id="liv-mci",
            home_team="Liverpool",
            away_team="Manchester City",
            markets=MatchMarkets.from_mapping({"h2h": {"home": 2.6, "draw": 3.5, "away": 2.7}}),
        ),
        "no-odds": MatchContext(
            match_id="no-odds",
            home_team="Everton",
            away_team="Fulham",
            markets=MatchMarkets(),
        ),
    }


@pytest.fixture()
def matches_file(tmp_path: Path, provider_payload: Dict[str, Any]) -> Path:
    path = tmp_path / "matches.json"
    path.write_text(
        json.dumps(
            [
                {"match_id": "ars-che", "home_team": "Arsenal", "away_team": "Chelsea", **provider_payload},
                {"match_id": "empty", "home_team": "Everton", "away_team": "Fulham"},
            ]
        )
    )
    return path
