"""Integration-style tests for the odds engine CLI wiring."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from oddsengine.betting import cli
from oddsengine.betting.distribution import odds_to_probabilities
from oddsengine.betting.markets import MatchMarkets


@pytest.mark.parametrize(
    "command", ["complete", "distribute", "simulate", "request", "validate-config"]
)
def test_cli_parser_registers_subcommands(command: str) -> None:
    names = [subcommand.name for subcommand in cli.APP.commands]
    assert command in names


def test_parser_reads_shared_options() -> None:
    parser = cli._build_parser()
    args = parser.parse_args(
        ["distribute", "--home", "2.0", "--away", "4.0", "--environment", "staging", "--log-level", "DEBUG"]
    )
    assert args.command == "distribute"
    assert args.config_environment == "staging"
    assert args.log_level == "DEBUG"
    assert args.draw is None
    assert callable(args.handler)


def test_leg_parsing() -> None:
    leg = cli._parse_leg("ars-che:totals:over:1.95:2.5")
    assert (leg.match_id, leg.market, leg.side, leg.odds, leg.point) == (
        "ars-che",
        "totals",
        "over",
        1.95,
        2.5,
    )
    with pytest.raises(SystemExit):
        cli._build_parser().parse_args(["request", "--matches", "x.json", "--leg", "ars-che:h2h"])


def test_distribute_prints_json(
    capsys: pytest.CaptureFixture[str], h2h_with_totals: MatchMarkets
) -> None:
    cli.main(
        [
            "distribute",
            "--home", "2.0", "--draw", "3.0", "--away", "4.0",
            "--total-point", "2.5", "--over", "1.5", "--under", "2.5",
        ]
    )
    out = json.loads(capsys.readouterr().out)
    expected = [entry.to_dict() for entry in odds_to_probabilities(h2h_with_totals)]
    assert out == expected


def test_distribute_table_output(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["distribute", "--home", "2.0", "--draw", "3.0", "--away", "4.0", "--format", "table"])
    out = capsys.readouterr().out
    assert "home_score" in out
    assert "shape: (18, 6)" in out


def test_distribute_requires_odds() -> None:
    with pytest.raises(SystemExit):
        cli.main(["distribute", "--home", "2.0"])


def test_complete_reads_markets_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], provider_payload
) -> None:
    source = tmp_path / "markets.json"
    source.write_text(json.dumps(provider_payload))

    cli.main(["complete", "--markets", str(source)])

    out = json.loads(capsys.readouterr().out)
    assert out["h2h"] == provider_payload["h2h"]
    assert out["totals"] == provider_payload["totals"]
    assert set(out["bothTeamsToScore"]) == {"yes", "no"}
    assert len(out["correctScore"]["scores"]) == 16


def test_simulate_prints_summary(matches_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(
        [
            "simulate",
            "--matches", str(matches_file),
            "--leg", "ars-che:h2h:home:1.8",
            "--stake", "10",
            "--seed", "5",
            "--simulations", "4",
        ]
    )
    out = json.loads(capsys.readouterr().out)
    assert out["wins"] + out["losses"] == 4
    assert out["total_staked"] == pytest.approx(40.0)
    assert len(out["final_scores"]) == 4
    assert all(set(scores) == {"ars-che"} for scores in out["final_scores"])


def test_simulate_requires_a_leg(matches_file: Path) -> None:
    with pytest.raises(SystemExit):
        cli.main(["simulate", "--matches", str(matches_file)])


def test_request_prints_service_payload(
    matches_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.main(
        [
            "request",
            "--matches", str(matches_file),
            "--leg", "ars-che:totals:over:1.95:2.5",
            "--leg", "empty:h2h:home:2.0",
            "--stake", "25",
            "--user-id", "punter-1",
            "--volatility", "high",
        ]
    )
    out = json.loads(capsys.readouterr().out)
    assert out["user_id"] == "punter-1"
    assert out["volatility"] == "high"
    assert out["stake"] == 25.0
    assert [match["match_id"] for match in out["matches"]] == ["ars-che"]
    assert out["bet_slip"][0]["market"] == "over_under"
    assert out["bet_slip"][0]["outcome"] == "over_2.5"


def test_validate_config_reports_success(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["validate-config"])
    out = capsys.readouterr().out
    assert "Configuration 'default' is valid." in out


def test_validate_config_reports_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    base = tmp_path / "engine.yaml"
    base.write_text("distributor:\n  evidence_weight: 2.0\n")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["validate-config", "--config", str(base)])
    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "Configuration invalid:" in out
    assert "- distributor.evidence_weight must be within [0, 1]" in out


def test_validate_config_warnings_as_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    base = tmp_path / "engine.yaml"
    base.write_text("normalizer:\n  totals:\n    point: 3\n")
    cli.main(["validate-config", "--config", str(base)])
    assert "whole number" in capsys.readouterr().out

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["validate-config", "--config", str(base), "--warnings-as-errors"])
    assert excinfo.value.code == 1


def test_invalid_odds_exit_with_a_message() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["distribute", "--home", "0.5", "--away", "2.0"])
    assert "oddsengine distribute: Invalid odds" in str(excinfo.value.code)


def test_unknown_match_exits_with_a_message(matches_file: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["simulate", "--matches", str(matches_file), "--leg", "nowhere:h2h:home:2.0"])
    assert excinfo.value.code == "oddsengine simulate: Unknown match: nowhere"


def test_missing_markets_file_exits_with_a_message(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["complete", "--markets", str(tmp_path / "absent.json")])
    assert str(excinfo.value.code).startswith("oddsengine complete:")
