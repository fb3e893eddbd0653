#!/usr/bin/env python3
"""
Command-line entry point for the liquidity pool snippets.

Example:
    pool-snippets --network local deploy
    pool-snippets --network devnet lend-token
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import PROFILES, load_config
from .errors import ConfigurationError, MoapyCommandError, SnippetError
from .interactor import LiquidityPoolInteractor
from .watch import watch_queries

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

QUERY_COMMANDS = {
    "pool-asset": "get_pool_asset",
    "lend-token": "get_lend_token",
    "borrow-token": "get_borrow_token",
}


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Configure root logging the same way for every command"""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pool-snippets",
        description="Deploy and interact with the liquidity pool contract through moapy",
    )
    parser.add_argument("--network", choices=sorted(PROFILES), default="devnet",
                        help="Network profile to use (default: devnet)")
    parser.add_argument("--env-file", default=None, help="Path to a .env file with overrides")
    parser.add_argument("--address", default=None,
                        help="Contract address to use instead of the stored one")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("deploy", help="Deploy the contract and store its address")
    sub.add_parser("upgrade", help="Upgrade the deployed contract")
    sub.add_parser("issue-lend", help="Issue the lend token")
    sub.add_parser("issue-borrow", help="Issue the borrow token")
    for name, method in QUERY_COMMANDS.items():
        sub.add_parser(name, help=f"Query {method[4:].replace('_', ' ')}")

    status = sub.add_parser("deploy-status", help="Show the status of the stored deploy transaction")
    status.add_argument("--wait", action="store_true", help="Wait until the transaction is final")
    status.add_argument("--timeout", type=float, default=120, help="Seconds to wait (default: 120)")

    watch = sub.add_parser("watch", help="Periodically query the pool fields")
    watch.add_argument("--every", type=int, default=60, help="Seconds between checks (default: 60)")
    watch.add_argument("--iterations", type=int, default=None, help="Stop after this many checks")
    return parser


def _echo(result) -> int:
    if result.stdout:
        print(result.stdout, end="" if result.stdout.endswith("\n") else "\n")
    if result.stderr and not result.ok:
        print(result.stderr, file=sys.stderr, end="" if result.stderr.endswith("\n") else "\n")
    return result.returncode


def run_command(interactor: LiquidityPoolInteractor, args: argparse.Namespace) -> int:
    if args.command == "deploy":
        interactor.deploy()
        return 0
    if args.command == "upgrade":
        return _echo(interactor.upgrade())
    if args.command == "issue-lend":
        return _echo(interactor.issue_lend())
    if args.command == "issue-borrow":
        return _echo(interactor.issue_borrow())
    if args.command in QUERY_COMMANDS:
        result = getattr(interactor, QUERY_COMMANDS[args.command])()
        return _echo(result.command)
    if args.command == "deploy-status":
        print(interactor.deploy_status(wait=args.wait, timeout=args.timeout))
        return 0
    if args.command == "watch":
        watch_queries(interactor, every_seconds=args.every, iterations=args.iterations)
        return 0
    raise ConfigurationError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level, args.log_file)
        config = load_config(args.network, env_file=args.env_file)
        interactor = LiquidityPoolInteractor(config, address=args.address)
        return run_command(interactor, args)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130
    except MoapyCommandError as e:
        logger.error(f"{args.command} failed: {e}")
        return e.returncode
    except SnippetError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
