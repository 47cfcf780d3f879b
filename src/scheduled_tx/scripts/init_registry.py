"""Utility script to prepare the database-backed permit registry."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from scheduled_tx.core.settings import settings
from scheduled_tx.db.session import Base, make_engine


def init_registry(db_url: str, *, drop_tables: bool = False) -> None:
    """Create the replay marker table, optionally dropping it first."""
    engine = make_engine(db_url)
    try:
        if drop_tables:
            Base.metadata.drop_all(bind=engine)
            print("[init_registry] dropped registry tables")
        Base.metadata.create_all(bind=engine)
        print(f"[init_registry] registry tables ready at {engine.url.render_as_string(hide_password=True)}")
    finally:
        engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the consumed-nonce table")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop existing registry tables first. Consumed nonces are lost.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    args = parser.parse_args()

    try:
        init_registry(args.url or settings.database_url_sync, drop_tables=args.drop_tables)
    except SQLAlchemyError as exc:
        print(f"[init_registry] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
