"""Storefront ledger management CLI.

Usage:
    python src/manage.py setup-db                   # Create all tables
    python src/manage.py drop-db                    # Drop all tables
    python src/manage.py seed [--stock 25]          # Load the default catalogue
    python src/manage.py expire-reservations [--older-than 15]
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_databases():
    from storefront.utils.db import setup_db

    domain = _domain()
    print("Creating storefront database schema...")
    touched = setup_db(domain)
    if touched:
        print(f"  schema ready for: {', '.join(touched)}")
    else:
        print("  no SQL providers configured; nothing to create")
    print("Done.")


def drop_databases():
    from storefront.utils.db import drop_db

    domain = _domain()
    print("Dropping storefront database schema...")
    touched = drop_db(domain)
    print(f"  dropped: {', '.join(touched) or 'nothing'}")
    print("Done.")


def seed(stock):
    from storefront.catalogue.seed import seed_catalogue
    from storefront.services import get_catalog

    domain = _domain()
    with domain.domain_context():
        added = seed_catalogue(get_catalog(), stock=stock)
    print(f"Seeded {added} products.")


def expire_reservations(older_than):
    from storefront.services import get_inventory

    domain = _domain()
    with domain.domain_context():
        released = get_inventory().expire_stale_reservations(older_than_minutes=older_than)
    print(f"Released {released} stale reservations.")


def main():
    parser = argparse.ArgumentParser(description="Storefront ledger management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed", help="Load the default product catalogue")
    seed_parser.add_argument("--stock", type=int, default=25, help="Initial stock for every product")

    expire_parser = subparsers.add_parser("expire-reservations", help="Release abandoned stock reservations")
    expire_parser.add_argument(
        "--older-than",
        type=int,
        default=None,
        help="Age in minutes (default: STOREFRONT_RESERVATION_TTL_MINUTES)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "seed":
        seed(args.stock)
    elif args.command == "expire-reservations":
        expire_reservations(args.older_than)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
