"""Command line tooling for provisioning and repairing the user count."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from headcount.core.logging import configure_logging
from headcount.core.settings import settings
from headcount.db.session import SessionLocal, engine
from headcount.services.counter import check_consistency, recalculate
from headcount.services.errors import AggregateDrift
from headcount.services.member_service import seed_members

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
REQUIRED_TABLES = ("user_list", "user_stats")

SAMPLE_MEMBERS = (
    {"username": "john_doe", "email": "john@example.com"},
    {"username": "jane_smith", "email": "jane@example.com"},
    {"username": "bob_wilson", "email": "bob@example.com"},
    {"username": "alice_brown", "email": "alice@example.com"},
    {"username": "charlie_davis", "email": "charlie@example.com"},
)


def alembic_config() -> Config:
    """Build the Alembic config pointing at the project's migrations folder."""
    ini_path = Path(os.getenv("ALEMBIC_CONFIG", PROJECT_ROOT / "alembic.ini"))
    cfg = Config(str(ini_path))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.effective_database_url)
    return cfg


def run_upgrade_head() -> None:
    """Apply every pending migration."""
    command.upgrade(alembic_config(), "head")


def verify_schema(session_factory: Callable[[], Session] | None = None) -> None:
    """Check that both tables exist and log the provisioned counter row.

    Raises:
        RuntimeError: If a required table is missing
    """
    with (session_factory or SessionLocal)() as db:
        tables = set(inspect(db.get_bind()).get_table_names())
        missing = [name for name in REQUIRED_TABLES if name not in tables]
        if missing:
            raise RuntimeError(f"Missing tables after migration: {', '.join(missing)}")
        logger.info("Tables present: %s", ", ".join(REQUIRED_TABLES))

        report = check_consistency(db)
        logger.info(
            "User stats initialized: %s users, last updated: %s",
            report.stored,
            report.last_updated,
        )


def cmd_migrate(args: argparse.Namespace) -> int:
    logger.info("Starting database migration")
    run_upgrade_head()
    verify_schema()
    logger.info("Migration completed successfully")
    return 0


def cmd_sample(args: argparse.Namespace) -> int:
    cmd_migrate(args)
    with SessionLocal() as db:
        added, skipped = seed_members(db, SAMPLE_MEMBERS)
        total = check_consistency(db).stored
    logger.info("Sample data: %d added, %d skipped", added, skipped)
    print(f"Total users after sample data: {total}")
    return 0


def cmd_recalculate(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        count = recalculate(db)
    print(count)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        try:
            report = check_consistency(db, strict=True)
        except AggregateDrift as exc:
            print(f"DRIFT: stored={exc.stored} actual={exc.actual}", file=sys.stderr)
            return 1
    print(f"OK: {report.actual} users")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="headcount-manage",
        description="Provision, seed and repair the headcount database",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply migrations and verify the schema").set_defaults(
        func=cmd_migrate
    )
    subparsers.add_parser("sample", help="Migrate, then load sample members").set_defaults(
        func=cmd_sample
    )
    subparsers.add_parser(
        "recalculate", help="Rebuild the user count from the ledger"
    ).set_defaults(func=cmd_recalculate)
    subparsers.add_parser(
        "check", help="Exit non-zero if the stored count has drifted"
    ).set_defaults(func=cmd_check)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging(settings.effective_log_level)
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except Exception as exc:
        logger.error("%s failed: %s", args.command, exc, exc_info=settings.debug)
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
