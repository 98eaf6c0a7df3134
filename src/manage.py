"""Campus Dispatch management CLI.

Usage:
    python src/manage.py setup-db     # Create all tables
    python src/manage.py drop-db      # Drop all tables
    python src/manage.py redispatch   # Retry dispatch for orders waiting for an agent
"""

import argparse
import sys


def _domain():
    from delivery.domain import delivery

    delivery.init()
    return delivery


def setup_database():
    from delivery.dispatch.board import ensure_board
    from delivery.utils.db import setup_db

    domain = _domain()
    print("Creating delivery database schema...")
    setup_db(domain)
    with domain.domain_context():
        ensure_board()
    print("Done.")


def drop_database():
    from delivery.utils.db import drop_db

    domain = _domain()
    print("Dropping delivery database schema...")
    drop_db(domain)
    print("Done.")


def redispatch():
    from delivery.order.controller import redispatch_waiting_orders
    from delivery.utils.logging import configure_logging

    configure_logging()
    domain = _domain()
    with domain.domain_context():
        results = redispatch_waiting_orders()

    assigned = sum(1 for r in results if r.assigned)
    print(f"{assigned} of {len(results)} waiting orders assigned.")
    for result in results:
        if not result.assigned:
            print(f"  {result.order_id}: {result.reason}")


def main():
    parser = argparse.ArgumentParser(description="Campus Dispatch management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("redispatch", help="Retry dispatch for orders waiting for an agent")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "redispatch":
        redispatch()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
