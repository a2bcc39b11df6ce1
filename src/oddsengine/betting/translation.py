"""Translate the client's market vocabulary into the simulation service's."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class ApiSelection:
    market: str
    outcome: str


_DISPLAY_NAMES = {
    "1X2": "1X2",
    "over_under": "Over/Under",
    "both_teams_to_score": "Both Teams To Score",
    "correct_score": "Correct Score",
}


def _format_point(point: float | int | None) -> str:
    # Matches how the web client interpolated the line: 2.5 -> "2.5", 3.0 -> "3".
    if point is None:
        return "undefined"
    value = float(point)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def convert_market_to_api(
    market: str,
    side: str,
    point: float | int | None = None,
) -> ApiSelection:
    """Map ``(market, side)`` onto the simulation service's market/outcome codes.

    Examples::

        convert_market_to_api("h2h", "home")          -> ApiSelection("1X2", "1")
        convert_market_to_api("totals", "over", 2.5)  -> ApiSelection("over_under", "over_2.5")
        convert_market_to_api("btts", "yes")          -> ApiSelection("both_teams_to_score", "yes")
        convert_market_to_api("correct_score", "2-1") -> ApiSelection("correct_score", "2-1")

    Unknown markets are passed through untouched.
    """

    if market == "h2h":
        outcome = "1" if side == "home" else "X" if side == "draw" else "2"
        return ApiSelection("1X2", outcome)
    if market == "totals":
        return ApiSelection("over_under", f"{side}_{_format_point(point)}")
    if market == "btts":
        return ApiSelection("both_teams_to_score", "yes" if side == "yes" else "no")
    if market == "correct_score":
        return ApiSelection("correct_score", side)
    return ApiSelection(market, side)


def market_display_name(api_market: str) -> str:
    """Human readable label for a simulation-service market code."""

    return _DISPLAY_NAMES.get(api_market, api_market)


__all__ = ["ApiSelection", "convert_market_to_api", "market_display_name"]
