"""
Command-line interface for the Rummy coin ledger.

Provides operational commands:
- init-db: Initialize the database schema
- reconcile: Compare stored balances with economy log sums
- verify-ledger: Replay one user's hash chain
- show-config: Print the resolved configuration

Usage:
    rummy-ledger init-db
    rummy-ledger reconcile [--user-id ID]
    rummy-ledger verify-ledger --user-id ID
    rummy-ledger show-config

Exit codes:
    0 on success, 1 when drift or corruption is found or a command fails.
"""

import argparse
import logging
import sys

_LOG_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


def configure_logging() -> None:
    """Configure root logging from the ``[logging]`` config section."""
    from rummy_ledger.config import config

    logging.basicConfig(
        level=getattr(logging, config.logging.level, logging.INFO),
        format=_LOG_FORMATS.get(config.logging.format, _LOG_FORMATS["detailed"]),
    )


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the database schema.

    Returns:
        0 on success, 1 on error
    """
    from rummy_ledger.db.schema import init_database

    try:
        init_database()
        print("Database initialized successfully.")
        return 0
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1


def cmd_reconcile(args: argparse.Namespace) -> int:
    """
    Reconcile one user (``--user-id``) or every user.

    Returns:
        0 when every checked balance matches its ledger sum, 1 otherwise
    """
    from rummy_ledger.db.errors import DatabaseError, RecordNotFoundError
    from rummy_ledger.ledger.reconcile import reconcile_all, reconcile_user

    try:
        if args.user_id is not None:
            results = [reconcile_user(args.user_id)]
        else:
            results = reconcile_all()
    except RecordNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except DatabaseError as e:
        print(f"Error reconciling ledger: {e}", file=sys.stderr)
        return 1

    drifted = [result for result in results if not result.is_consistent]
    for result in drifted:
        print(
            f"DRIFT user {result.user_id}: balance={result.balance} "
            f"ledger_sum={result.ledger_sum} drift={result.drift:+d}"
        )
    print(f"Checked {len(results)} user(s), {len(drifted)} drifted.")
    return 1 if drifted else 0


def cmd_verify_ledger(args: argparse.Namespace) -> int:
    """
    Verify the economy log hash chain of one user.

    Returns:
        0 for an intact or empty chain, 1 when corrupt or on error
    """
    from rummy_ledger.db.errors import DatabaseError
    from rummy_ledger.ledger.checksum import verify_user_ledger

    try:
        result = verify_user_ledger(args.user_id)
    except DatabaseError as e:
        print(f"Error verifying ledger: {e}", file=sys.stderr)
        return 1

    if result.status == "corrupt":
        print(f"CORRUPT user {args.user_id}: {result.error_detail}")
        return 1
    if result.status == "empty":
        print(f"User {args.user_id} has no ledger entries.")
        return 0
    print(f"OK user {args.user_id}: {result.entries_checked} entries verified.")
    return 0


def cmd_show_config(args: argparse.Namespace) -> int:
    """Print the resolved configuration."""
    from rummy_ledger.config import print_config_summary

    print_config_summary()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="rummy-ledger",
        description="Rummy coin ledger - balance authority and audit tooling",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser(
        "init-db",
        help="Initialize the database schema",
        description="Create tables, indexes and triggers. Safe to run repeatedly.",
    )
    init_parser.set_defaults(func=cmd_init_db)

    reconcile_parser = subparsers.add_parser(
        "reconcile",
        help="Compare balances with economy log sums",
        description="Report every user whose stored balance differs from their ledger sum.",
    )
    reconcile_parser.add_argument("--user-id", type=int, help="Check a single user")
    reconcile_parser.set_defaults(func=cmd_reconcile)

    verify_parser = subparsers.add_parser(
        "verify-ledger",
        help="Verify a user's economy log hash chain",
    )
    verify_parser.add_argument("--user-id", type=int, required=True, help="User to verify")
    verify_parser.set_defaults(func=cmd_verify_ledger)

    config_parser = subparsers.add_parser("show-config", help="Print the resolved configuration")
    config_parser.set_defaults(func=cmd_show_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
