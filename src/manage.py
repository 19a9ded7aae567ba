"""Marketplace database management CLI.

Creates and drops the database schema of the marketplace domain, reusing the
setup_db/drop_db utilities in ``marketplace.utils.db``.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create the marketplace database schema."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Creating marketplace database schema...")
    setup_db(marketplace)
    print("Done.")


def drop_database():
    """Drop the marketplace database schema."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Dropping marketplace database schema...")
    drop_db(marketplace)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Marketplace database management")
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
