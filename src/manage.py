"""OrderFlow management CLI.

Schema management for every service, plus the two sweeps that keep the
cross-service protocol moving after a crash or an outage.

Usage:
    python src/manage.py setup-db             # Create all tables
    python src/manage.py drop-db              # Drop all tables
    python src/manage.py resume-sagas         # Continue paid orders stuck between saga steps
    python src/manage.py redeliver-outcomes   # Retry payment outcomes the orders service never accepted
"""

import argparse
import sys

_DOMAIN_NAMES = ["ordering", "payments", "inventory"]


def _domains():
    from inventory.domain import inventory
    from ordering.domain import ordering
    from payments.domain import payments

    return {"ordering": ordering, "payments": payments, "inventory": inventory}


def _ledger_database_url():
    # Importing the adapters registers their tables on shared.database.metadata.
    import inventory.ledger.sql_adapter  # noqa: F401
    import payments.claims  # noqa: F401
    from shared.settings import get_settings

    return get_settings().database_url


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    from shared.database import create_tables, setup_domain_db

    all_domains = _domains()
    targets = {d: all_domains[d] for d in domains} if domains else all_domains

    for name, domain in targets.items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Creating {name} database schema...")
        setup_domain_db(domain)
        print(f"  {name} schema ready.")

    database_url = _ledger_database_url()
    if database_url:
        print("Creating ledger tables...")
        create_tables(database_url)

    print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    from shared.database import drop_domain_db, drop_tables

    all_domains = _domains()
    targets = {d: all_domains[d] for d in domains} if domains else all_domains

    for name, domain in targets.items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Dropping {name} database schema...")
        drop_domain_db(domain)
        print(f"  {name} schema dropped.")

    database_url = _ledger_database_url()
    if database_url:
        print("Dropping ledger tables...")
        drop_tables(database_url)

    print("Done.")


def resume_sagas():
    from ordering.checkout.saga import resume_pending_sagas
    from ordering.domain import ordering

    ordering.init()
    with ordering.domain_context():
        resumed = resume_pending_sagas()
    print(f"Resumed {resumed} order saga(s).")


def redeliver_outcomes():
    from payments.domain import payments
    from payments.payment.delivery import redeliver_pending_outcomes

    payments.init()
    with payments.domain_context():
        delivered = redeliver_pending_outcomes()
    print(f"Delivered {delivered} payment outcome(s).")


def main():
    from shared.logging import configure_logging

    configure_logging()

    parser = argparse.ArgumentParser(description="OrderFlow management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create all database tables")
    setup_parser.add_argument(
        "--domain",
        choices=_DOMAIN_NAMES,
        nargs="*",
        help="Specific domain(s) to set up (default: all)",
    )

    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument(
        "--domain",
        choices=_DOMAIN_NAMES,
        nargs="*",
        help="Specific domain(s) to drop (default: all)",
    )

    subparsers.add_parser("resume-sagas", help="Resume order sagas stopped between steps")
    subparsers.add_parser("redeliver-outcomes", help="Retry undelivered payment outcomes")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    elif args.command == "resume-sagas":
        resume_sagas()
    elif args.command == "redeliver-outcomes":
        redeliver_outcomes()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
