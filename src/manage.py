"""Stock ledger database management CLI.

Creates and drops the relational schema for the stockledger domain using
the setup_db/drop_db utilities in ``stockledger.utils.db``.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create database tables for every aggregate, entity and projection."""
    from stockledger.domain import ledger
    from stockledger.utils.db import setup_db

    print("Initializing stockledger domain...")
    ledger.init()
    print("Creating stockledger database schema...")
    providers = setup_db(ledger)
    if providers:
        print(f"  schema ready on: {', '.join(providers)}")
    else:
        print("  no relational database configured; nothing to create.")

    print("Done.")


def drop_database():
    """Drop all stockledger database tables."""
    from stockledger.domain import ledger
    from stockledger.utils.db import drop_db

    print("Initializing stockledger domain...")
    ledger.init()
    print("Dropping stockledger database schema...")
    providers = drop_db(ledger)
    if providers:
        print(f"  schema dropped on: {', '.join(providers)}")
    else:
        print("  no relational database configured; nothing to drop.")

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Stock ledger database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
