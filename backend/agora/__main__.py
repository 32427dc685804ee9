"""Agora CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from agora import __version__
from agora.config import get_settings
from agora.services.quotes import PriceUnavailable, QuoteClient
from agora.settlement.exceptions import ConfigurationError, GameNotFound
from agora.settlement.models import SettlementSummary
from agora.storage import check_db_connection, create_mongo_client, sanitize_mongodb_url
from agora.worker import run_settlement, settle_game

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Reduce noise from HTTP libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from agora.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _set_debug(args: argparse.Namespace) -> None:
    if getattr(args, "debug", False):
        logging.getLogger().setLevel(logging.DEBUG)


def _print_summary(summary: SettlementSummary) -> None:
    print(f"Games selected: {summary.selected}")
    print(f"Settled: {summary.settled}")
    print(f"Skipped: {summary.skipped}")
    print(f"Conflicts: {summary.conflicts}")
    print(f"Errored: {summary.errored}\n")

    for outcome in summary.outcomes:
        if outcome.status == "settled" and outcome.result:
            print(
                f"  ✓ {outcome.game_id}: {outcome.result.winning_side} "
                f"@ {outcome.result.settlement_price} "
                f"({outcome.result.winners_count} winners, "
                f"{outcome.result.total_distributed:,.2f} distributed)"
            )
        else:
            print(f"  • {outcome.game_id}: {outcome.status} ({outcome.stage.value}) {outcome.reason}")
    if summary.outcomes:
        print()


def cmd_settle(args: argparse.Namespace) -> int:
    """Run one settlement batch."""
    _set_debug(args)
    _init_logfire()

    try:
        print("\n=== Settlement Run ===\n")
        summary = asyncio.run(run_settlement(get_settings()))
        _print_summary(summary)
        return 0

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\n❌ Configuration error: {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Settlement run failed: {e}", exc_info=True)
        print(f"\n❌ Settlement run failed: {e}\n")
        return 1


def cmd_settle_game(args: argparse.Namespace) -> int:
    """Settle a single game by id."""
    _set_debug(args)
    _init_logfire()

    try:
        print(f"\n=== Settle Game {args.game_id} ===\n")
        outcome = asyncio.run(settle_game(get_settings(), args.game_id))

        print(f"Status: {outcome.status}")
        print(f"Stage: {outcome.stage.value}")
        if outcome.reason:
            print(f"Reason: {outcome.reason}")
        if outcome.result:
            result = outcome.result
            print(f"Winning Side: {result.winning_side}")
            print(f"Settlement Price: {result.settlement_price}")
            print(f"Total Pool: {result.total_pool:,.2f}")
            print(f"Total Distributed: {result.total_distributed:,.2f}")
            print(f"Winners / Losers: {result.winners_count} / {result.losers_count}")
        print()
        return 0

    except GameNotFound as e:
        print(f"\n❌ {e}\n")
        return 1
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\n❌ Configuration error: {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Settlement failed: {e}", exc_info=True)
        print(f"\n❌ Settlement failed: {e}\n")
        return 1


def cmd_quote(args: argparse.Namespace) -> int:
    """Fetch the price a settlement would use for a ticker."""
    settings = get_settings()

    async def _fetch():
        async with QuoteClient(settings.quotes) as client:
            return await client.fetch_quote(args.ticker)

    try:
        chart_quote = asyncio.run(_fetch())
    except PriceUnavailable as e:
        print(f"\n❌ {e}\n")
        return 1

    print(f"\n{chart_quote.ticker}: {chart_quote.close} {chart_quote.currency or ''}".rstrip())
    if chart_quote.market_time:
        print(f"Market Time: {chart_quote.market_time.isoformat()}")
    print(f"Daily Closes Seen: {chart_quote.points}\n")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Agora Configuration ===\n")

        print("Store:")
        print(f"  MongoDB URL: {sanitize_mongodb_url(settings.mongodb_url) or '✗ Not set'}")
        print(f"  Database: {settings.mongodb_database or '✗ Not set'}")
        print(f"  Games Collection: {settings.settlement.games_collection}")
        print(f"  Participants Collection: {settings.settlement.participants_collection}\n")

        print("Settlement:")
        print(f"  Batch Size: {settings.settlement.batch_size}")
        print(f"  Default Band: {settings.settlement.default_band_pct:.2%}")
        print(f"  Commit Timeout: {settings.settlement.commit_timeout_seconds}s\n")

        print("Quotes:")
        print(f"  Base URL: {settings.quotes.base_url}")
        print(f"  Series: range={settings.quotes.range} interval={settings.quotes.interval}")
        print(f"  Timeout: {settings.quotes.timeout_seconds}s\n")

        print("Scheduler (minutes):")
        print(f"  Settle Interval: {settings.scheduler.settle_interval_minutes}\n")

        print(f"Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        if args.check_store:
            settings.require_store_credentials()
            client = create_mongo_client(settings)
            try:
                reachable = asyncio.run(check_db_connection(client))
            finally:
                client.close()
            print(f"Store reachable: {'✓ Yes' if reachable else '✗ No'}\n")
            return 0 if reachable else 1

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except ConfigurationError as e:
        print(f"\n❌ Configuration error: {e}\n")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Start the periodic settlement worker."""
    try:
        _set_debug(args)
        _init_logfire()

        settings = get_settings()

        if args.once:
            summary = asyncio.run(run_settlement(settings))
            _print_summary(summary)
            return 0

        from agora.scheduler import start_scheduler

        print("\n=== Agora Settlement Worker ===\n")
        print(f"Version: {__version__}")
        print(f"Interval: every {settings.scheduler.settle_interval_minutes} min\n")
        start_scheduler(settings)

        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\n❌ Configuration error: {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Failed to start worker: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Agora: settlement worker for community price-prediction games",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Agora {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_settle = subparsers.add_parser(
        "settle",
        help="Settle every open game past its deadline, then exit",
    )
    parser_settle.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_settle.set_defaults(func=cmd_settle)

    parser_settle_game = subparsers.add_parser(
        "settle-game",
        help="Settle one game by id",
    )
    parser_settle_game.add_argument("--game-id", required=True, help="Game document id")
    parser_settle_game.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_settle_game.set_defaults(func=cmd_settle_game)

    parser_quote = subparsers.add_parser(
        "quote",
        help="Fetch the latest close a settlement would use",
    )
    parser_quote.add_argument("--ticker", required=True, help="Instrument ticker, e.g. AAPL")
    parser_quote.set_defaults(func=cmd_quote)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.add_argument(
        "--check-store",
        action="store_true",
        help="Also ping the configured MongoDB deployment",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_run = subparsers.add_parser(
        "run",
        help="Start the periodic settlement worker",
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_run.add_argument(
        "--once",
        action="store_true",
        help="Run a single settlement batch then exit",
    )
    parser_run.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
