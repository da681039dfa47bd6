#!/usr/bin/env python3
"""
Seed the job type / location / category catalogs from the jobs.ge search form.

Existing rows are kept (skip-duplicate insert). Use --dry-run to print the
discovered options without touching the database.
"""

import os
import sys
import json
import asyncio
import logging
import argparse

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from app.config import Settings
from app.db_config import db_config
from core.job_store import PostgresJobStore
from core.net import ClientConfig, PageFetcher
from crawler.filter_options import parse_filter_options
from crawler.urls import build_listing_url

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def discover(settings: Settings):
    async with PageFetcher(ClientConfig.from_settings(settings)) as fetcher:
        html = await fetcher.fetch(build_listing_url(list_url=settings.list_url))
    return parse_filter_options(html)


def main(args) -> int:
    settings = Settings.from_env()
    catalogs = asyncio.run(discover(settings))

    if args.dry_run:
        print(json.dumps({
            kind.value: [{"id": o.id, "name": o.name, "value": o.value} for o in options]
            for kind, options in catalogs.items()
        }, indent=2, ensure_ascii=False))
        return 0

    conn_params = db_config.get_connection_params()
    if not conn_params:
        logger.error("DATABASE_URL not set")
        return 1

    store = PostgresJobStore(conn_params=conn_params)
    store.ensure_schema()
    for kind, options in catalogs.items():
        if not options:
            logger.warning(f"No {kind.value} options discovered, skipping")
            continue
        created = store.seed_filter_options(kind, options)
        logger.info(f"Seeded {kind.value}: {created} created, {len(options) - created} already present")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed filter catalogs from jobs.ge")
    parser.add_argument("--dry-run", action="store_true", help="Print options instead of saving")
    sys.exit(main(parser.parse_args()))
