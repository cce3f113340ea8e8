"""Command line interface for the options strategy ranker."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Sequence

import pandas as pd

from options_ranker.config import AppSettings, get_settings
from options_ranker.models import RankingMode, RankingResult, recommendation_rows, serialize_ranking_result
from options_ranker.scanner import ActiveSymbolSource, build_ranker, get_market_status

LOGGER = logging.getLogger("options_ranker.cli")


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Expected an integer") from exc
    if value < 1:
        raise argparse.ArgumentTypeError("Value must be at least 1")
    return value


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--env", type=str, default=None, help="Settings environment (defaults to APP_ENV or dev)")

    parser = argparse.ArgumentParser(description="Rank option strategies across actively traded symbols")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    rank = subparsers.add_parser("rank", parents=[common], help="Score and rank strategies")
    rank.add_argument(
        "symbols",
        nargs="*",
        help="Symbols to rank (defaults to the screener universe)",
    )
    rank.add_argument(
        "--watchlist",
        type=str,
        default=None,
        help="Rank a named watchlist from settings instead of the screener universe",
    )
    rank.add_argument(
        "--mode",
        choices=[mode.value for mode in RankingMode],
        default=None,
        help="Ranking mode (defaults to settings)",
    )
    rank.add_argument("--top-k", type=_positive_int, default=None, help="Limit on recommendations")
    rank.add_argument("--synthetic", action="store_true", help="Use deterministic demo data")
    rank.add_argument("--json", action="store_true", help="Print the full result as JSON")

    subparsers.add_parser("symbols", parents=[common], help="Print the active symbol universe")
    subparsers.add_parser("market-status", help="Print the current US market session")
    return parser


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_symbols(args: argparse.Namespace, settings: AppSettings) -> List[str]:
    if args.symbols:
        return [token.strip().upper() for raw in args.symbols for token in raw.split(",") if token.strip()]
    if args.watchlist:
        watchlist = settings.get_watchlist(args.watchlist)
        if not watchlist:
            raise SystemExit(f"Watchlist '{args.watchlist}' is empty or not configured")
        return watchlist
    if args.synthetic:
        return settings.get_watchlist()
    source = ActiveSymbolSource(settings.universe, watchlist=settings.get_watchlist())
    return source.get_symbols().symbols


def _display(result: RankingResult) -> None:
    if not result.recommendations:
        print("No recommendations found.")
        return
    frame = pd.DataFrame(recommendation_rows(result.recommendations))
    with pd.option_context("display.max_columns", None, "display.width", 160):
        print(frame.to_string(index=False))


def _print_summary(result: RankingResult) -> None:
    if result.market_status is not None:
        print(f"{result.market_status.message}: {result.market_status.note}")
    if result.fallback_mode:
        print("Live data unavailable for every symbol; results use fallback data.")
    if result.skipped:
        detail = ", ".join(f"{reason}={count}" for reason, count in sorted(result.skipped.items()))
        print(f"Skipped {result.skipped_total}/{result.evaluated_symbols} symbols ({detail})")


def _run_rank(args: argparse.Namespace, settings: AppSettings) -> int:
    symbols = _resolve_symbols(args, settings)
    LOGGER.info("Ranking %d symbols", len(symbols))
    ranker = build_ranker(settings, synthetic=args.synthetic)
    result = ranker.rank(symbols, mode=args.mode, top_k=args.top_k)

    if args.json:
        print(json.dumps(serialize_ranking_result(result), indent=2))
        return 0

    _display(result)
    _print_summary(result)
    return 0


def _run_symbols(settings: AppSettings) -> int:
    snapshot = ActiveSymbolSource(settings.universe, watchlist=settings.get_watchlist()).get_symbols()
    print(f"{len(snapshot.symbols)} symbols ({snapshot.source}):")
    print(", ".join(snapshot.symbols))
    return 0


def _run_market_status() -> int:
    status = get_market_status()
    print(f"{status.message} [{status.session}]")
    print(status.note)
    return 0


def run_from_args(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "market-status":
        return _run_market_status()

    settings = get_settings(args.env)
    if args.command == "symbols":
        return _run_symbols(settings)
    if args.command == "rank":
        return _run_rank(args, settings)

    parser.error("Unknown command")
    return 2


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    _configure_logging(verbose="--verbose" in args)
    return run_from_args(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
