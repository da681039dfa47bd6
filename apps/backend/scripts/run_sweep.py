#!/usr/bin/env python3
"""
Run the scheduled jobs by hand, without the API.

Usage:
    python scripts/run_sweep.py sweep
    python scripts/run_sweep.py purge
    python scripts/run_sweep.py crawl --q developer --max-pages 2
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

from app.config import settings
from app.db_config import db_config
from core.job_store import PostgresJobStore
from core.net import ClientConfig, PageFetcher
from crawler.models import CrawlRequest
from crawler.scraper import JobsScraper
from crawler.sweep import FullCatalogSweep
from orchestrator import purge_expired, run_full_sweep

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def get_store() -> PostgresJobStore:
    conn_params = db_config.get_connection_params()
    if not conn_params:
        raise SystemExit("DATABASE_URL not set")
    return PostgresJobStore(conn_params=conn_params)


async def main(args) -> int:
    if args.command == "purge":
        deleted = await purge_expired(get_store())
        print(json.dumps({"deleted": deleted}))
        return 0

    async with PageFetcher(ClientConfig.from_settings(settings)) as fetcher:
        scraper = JobsScraper(fetcher, base_url=settings.base_url, list_url=settings.list_url)

        if args.command == "crawl":
            result = await scraper.crawl(CrawlRequest(
                q=args.q, cid=args.cid, lid=args.lid, jid=args.jid,
                max_pages=args.max_pages, delay_ms=args.delay_ms,
            ))
            print(json.dumps({
                "total_pages": result.total_pages,
                "total_jobs": result.total_jobs,
                "stop_reason": result.stop_reason.value,
                "jobs": [{"id": j.id, "title": j.title, "company": j.company, "url": j.url} for j in result.jobs],
            }, indent=2, ensure_ascii=False))
            return 0

        sweep = FullCatalogSweep(scraper, get_store(), combination_delay=settings.combination_delay_seconds)
        report = await run_full_sweep(sweep)
        print(json.dumps(report.to_dict(), indent=2))
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run crawler jobs manually")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("sweep", help="Crawl every filter combination and save the jobs")
    sub.add_parser("purge", help="Delete jobs whose deadline has passed")
    crawl = sub.add_parser("crawl", help="Crawl one query and print the listings")
    crawl.add_argument("--q", default="")
    crawl.add_argument("--cid", default="0")
    crawl.add_argument("--lid", default="0")
    crawl.add_argument("--jid", default="0")
    crawl.add_argument("--max-pages", type=int, default=settings.default_max_pages)
    crawl.add_argument("--delay-ms", type=int, default=settings.default_delay_ms)

    sys.exit(asyncio.run(main(parser.parse_args())))
