from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from sellfast.core.config import settings
from sellfast.core.log import setup_logging
from sellfast.services.catalog_seed import create_user_session, seed_catalog

log = logging.getLogger(__name__)


async def run(path: str, user_email: str | None) -> int:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with Session() as db:
            counts = await seed_catalog(db, data)
            token = None
            if user_email:
                _, token = await create_user_session(db, email=user_email)
            await db.commit()
    finally:
        await engine.dispose()

    print(
        f"categories={counts.categories} companies={counts.companies} "
        f"items={counts.items} specifications={counts.specifications}"
    )
    if token:
        print(f"session token for {user_email}: {token}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the SellFast catalog from a JSON file.")
    parser.add_argument("path", help="catalog JSON (categories -> brands -> items -> specifications)")
    parser.add_argument("--user-email", default=None, help="also create a user and print a session token")
    args = parser.parse_args()

    setup_logging()
    try:
        return asyncio.run(run(args.path, args.user_email))
    except (OSError, ValueError) as e:
        print(f"seed failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
