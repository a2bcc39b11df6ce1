"""Command line interface for the odds engine."""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from typing import Any, Callable, Dict, Mapping, Sequence

from ..config import get_config
from .configuration import (
    ConfigurationError,
    EngineConfig,
    load_engine_config,
    validate_engine_config,
)
from .distribution import distribution_frame, odds_to_probabilities
from .logging import configure_logging
from .markets import MatchMarkets, TotalsOdds, WinMarketOdds
from .normalizer import MarketNormalizer
from .settlement import BetLeg, LocalSettlementSimulator, MatchContext, build_simulation_request

CommandHandler = Callable[[EngineConfig, argparse.Namespace], None]


@dataclasses.dataclass(slots=True)
class Subcommand:
    """Container describing a CLI sub-command."""

    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    handler: CommandHandler

    def add_to_parser(
        self,
        subparsers,
        parent: argparse.ArgumentParser,
    ) -> argparse.ArgumentParser:
        """Create the parser for this subcommand."""

        parser = subparsers.add_parser(self.name, parents=[parent], help=self.help)
        self.configure(parser)
        parser.set_defaults(handler=self.handler, command=self.name)
        return parser


class SubcommandApp:
    """Registry that wires handlers into an :class:`argparse` parser."""

    def __init__(self, description: str | None = None) -> None:
        self._commands: list[Subcommand] = []
        self._description = description

    def command(
        self,
        name: str,
        *,
        help: str,
        configure: Callable[[argparse.ArgumentParser], None],
    ) -> Callable[[CommandHandler], CommandHandler]:
        """Register ``handler`` as a sub-command with configuration callback."""

        def _decorator(handler: CommandHandler) -> CommandHandler:
            self._commands.append(
                Subcommand(name=name, help=help, configure=configure, handler=handler)
            )
            return handler

        return _decorator

    @property
    def commands(self) -> Sequence[Subcommand]:
        return tuple(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parent = argparse.ArgumentParser(add_help=False)
        parent.add_argument("--config", dest="config_file")
        parent.add_argument("--environment", dest="config_environment")
        parent.add_argument("--log-level")

        parser = argparse.ArgumentParser(prog="oddsengine", description=self._description)
        subparsers = parser.add_subparsers(dest="command", required=True)
        for command in self._commands:
            command.add_to_parser(subparsers, parent)
        return parser


APP = SubcommandApp(description=__doc__)


def _read_json(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    with open(source, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _markets_from_args(args: argparse.Namespace) -> MatchMarkets:
    if args.markets:
        payload = _read_json(args.markets)
        if not isinstance(payload, Mapping):
            raise SystemExit("Markets input must be a JSON object")
        return MatchMarkets.from_mapping(payload)
    if args.home is None or args.away is None:
        raise SystemExit("Provide --markets or both --home and --away odds")
    totals = None
    if args.total_point is not None and args.over is not None and args.under is not None:
        totals = TotalsOdds(point=args.total_point, over=args.over, under=args.under)
    return MatchMarkets(
        h2h=WinMarketOdds(home=args.home, draw=args.draw, away=args.away),
        totals=totals,
    )


def _matches_from_file(source: str) -> Dict[str, MatchContext]:
    payload = _read_json(source)
    if not isinstance(payload, list):
        raise SystemExit("Matches input must be a JSON list")
    matches: Dict[str, MatchContext] = {}
    for item in payload:
        if not isinstance(item, Mapping) or "match_id" not in item:
            raise SystemExit("Every match needs a match_id")
        match_id = str(item["match_id"])
        matches[match_id] = MatchContext(
            match_id=match_id,
            home_team=str(item.get("home_team", "Home")),
            away_team=str(item.get("away_team", "Away")),
            markets=MatchMarkets.from_mapping(item),
        )
    return matches


def _parse_leg(value: str) -> BetLeg:
    """Parse ``match_id:market:side:odds[:point]``."""

    parts = value.split(":")
    if len(parts) not in {4, 5}:
        raise argparse.ArgumentTypeError(
            f"Invalid leg '{value}'; expected match_id:market:side:odds[:point]"
        )
    try:
        odds = float(parts[3])
        point = float(parts[4]) if len(parts) == 5 else None
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid number in leg '{value}'") from exc
    return BetLeg(match_id=parts[0], market=parts[1], side=parts[2], odds=odds, point=point)


def _configure_market_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--markets", help="JSON file with match markets, '-' for stdin")
    parser.add_argument("--home", type=float)
    parser.add_argument("--draw", type=float)
    parser.add_argument("--away", type=float)
    parser.add_argument("--total-point", type=float)
    parser.add_argument("--over", type=float)
    parser.add_argument("--under", type=float)


def _configure_distribute_parser(parser: argparse.ArgumentParser) -> None:
    _configure_market_parser(parser)
    parser.add_argument("--complete", action="store_true", default=False,
                        help="Synthesise missing markets before distributing")
    parser.add_argument("--format", choices=("json", "table"), default="json")


def _configure_slip_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--matches", required=True, help="JSON list of matches, '-' for stdin")
    parser.add_argument("--leg", action="append", type=_parse_leg, default=[], dest="legs")
    parser.add_argument("--stake", type=float)
    parser.add_argument("--seed", type=int)


def _configure_simulate_parser(parser: argparse.ArgumentParser) -> None:
    _configure_slip_parser(parser)
    parser.add_argument("--simulations", type=int, default=1)


def _configure_request_parser(parser: argparse.ArgumentParser) -> None:
    _configure_slip_parser(parser)
    parser.add_argument("--user-id", default="guest")
    parser.add_argument("--volatility")


def _configure_validate_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--warnings-as-errors",
        action="store_true",
        help="Fail validation when configuration warnings are encountered.",
    )


@APP.command("complete", help="Synthesise missing markets for a match", configure=_configure_market_parser)
def _cmd_complete(config: EngineConfig, args: argparse.Namespace) -> None:
    markets = MarketNormalizer(config.normalizer).generate_missing_markets(_markets_from_args(args))
    print(json.dumps(markets.to_mapping(), indent=2))


@APP.command("distribute", help="Print the score distribution for a match", configure=_configure_distribute_parser)
def _cmd_distribute(config: EngineConfig, args: argparse.Namespace) -> None:
    markets = _markets_from_args(args)
    if args.complete:
        markets = MarketNormalizer(config.normalizer).generate_missing_markets(markets)
    distribution = odds_to_probabilities(markets, config)
    if args.format == "table":
        print(distribution_frame(distribution))
        return
    print(json.dumps([entry.to_dict() for entry in distribution], indent=2))


@APP.command("simulate", help="Settle a bet slip locally", configure=_configure_simulate_parser)
def _cmd_simulate(config: EngineConfig, args: argparse.Namespace) -> None:
    if not args.legs:
        raise SystemExit("At least one --leg is required")
    matches = _matches_from_file(args.matches)
    stake = args.stake if args.stake is not None else get_config().default_stake
    simulator = LocalSettlementSimulator(seed=args.seed, config=config)
    summary = simulator.run(args.legs, matches, stake, args.simulations)
    payload: Dict[str, Any] = summary.to_dict()
    payload["final_scores"] = [
        {match_id: list(score) for match_id, score in result.final_scores.items()}
        for result in summary.results
    ]
    print(json.dumps(payload, indent=2))


@APP.command("request", help="Print the simulation service request body", configure=_configure_request_parser)
def _cmd_request(config: EngineConfig, args: argparse.Namespace) -> None:
    matches = _matches_from_file(args.matches)
    settings = get_config()
    payload = build_simulation_request(
        args.legs,
        matches,
        args.stake if args.stake is not None else settings.default_stake,
        user_id=args.user_id,
        volatility=args.volatility or settings.volatility,
        seed=args.seed,
        config=config,
    )
    print(json.dumps(payload, indent=2))


@APP.command("validate-config", help="Validate engine configuration", configure=_configure_validate_parser)
def _cmd_validate_config(config: EngineConfig, args: argparse.Namespace) -> None:
    try:
        warnings = validate_engine_config(config)
    except ConfigurationError as exc:
        print("Configuration invalid:")
        for line in str(exc).splitlines()[1:]:
            text = line if line.startswith("-") else f"- {line}"
            print(text)
        raise SystemExit(1) from exc

    print(f"Configuration '{config.environment}' is valid.")
    if warnings:
        print("Warnings:")
        for message in warnings:
            print(f"- {message}")
        if args.warnings_as_errors:
            raise SystemExit(1)


def _build_parser() -> argparse.ArgumentParser:
    return APP.build_parser()


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = get_config()
    configure_logging(args.log_level or settings.log_level)
    config = load_engine_config(
        base_path=args.config_file or settings.config_path,
        environment=args.config_environment,
    )
    handler: CommandHandler = args.handler
    try:
        handler(config, args)
    except KeyError as exc:
        raise SystemExit(f"oddsengine {args.command}: {exc.args[0]}") from exc
    except (ValueError, OSError) as exc:
        raise SystemExit(f"oddsengine {args.command}: {exc}") from exc


__all__ = ["APP", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
