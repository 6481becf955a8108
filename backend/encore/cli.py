"""Command-line entry points for operators.

    encore run --type artists --force
    encore review staged_artists <id> approve --notes "looks right"
    encore init-db
"""

import argparse
import asyncio
import json
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from encore.config import get_settings
from encore.core.exceptions import ReviewError
from encore.core.logging import setup_logging
from encore.models.base import make_engine
from encore.services.review import ReviewService
from encore.store.sql import SqlAlchemyStore, create_all
from encore.tasks.scrape_tasks import execute_run

logger = logging.getLogger(__name__)


async def _with_store(handler, args):
    settings = get_settings()
    engine = make_engine(settings.database_url, echo=settings.debug)
    try:
        store = SqlAlchemyStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        return await handler(store, args)
    finally:
        await engine.dispose()


async def _run(store, args) -> int:
    result = await execute_run(store, args.run_id, args.type, args.force)
    print(json.dumps(result, indent=2, default=str))
    return 0 if result["status"] == "completed" else 1


async def _review(store, args) -> int:
    service = ReviewService(store)
    try:
        result = await service.review(args.table, args.id, args.action, args.notes, is_admin=True)
    except ReviewError as e:
        print(json.dumps({"success": False, "error": {"code": e.code, "message": e.message}}, indent=2))
        return 1
    print(json.dumps({"success": True, "status": result.status.value}, indent=2))
    return 0


async def _init_db(store, args) -> int:
    await create_all(store)
    print("Database tables created")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="encore", description="Encore scraping pipeline")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Scrape due data sources and stage the results")
    run.add_argument("--type", default="all",
                     choices=["all", "parks", "venues", "artists", "festivals", "concerts"])
    run.add_argument("--force", action="store_true", help="Ignore scraping frequency")
    run.add_argument("--run-id", help="Existing scraping run id to drive")
    run.set_defaults(handler=_run)

    review = commands.add_parser("review", help="Approve or reject a staged record")
    review.add_argument("table", help="e.g. staged_artists")
    review.add_argument("id")
    review.add_argument("action", choices=["approve", "reject"])
    review.add_argument("--notes")
    review.set_defaults(handler=_review)

    init_db = commands.add_parser("init-db", help="Create all tables (local development)")
    init_db.set_defaults(handler=_init_db)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(_with_store(args.handler, args))


if __name__ == "__main__":
    sys.exit(main())
