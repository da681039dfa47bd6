"""
Single-query crawler: walks sequential listing pages for one filter
combination.

Fetching -> Parsing -> Deciding -> {Continuing, Stopped}. Pages are fetched
one at a time with a courtesy delay in between; any page error voids the
whole request.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from core.dates import normalize_date
from core.net import PageFetcher
from crawler.listing_parser import parse_listing_page
from crawler.models import (
    CrawlRequest,
    CrawlResult,
    FilterOption,
    JobRecord,
    RawListing,
    StopReason,
)
from crawler.urls import BASE_URL, LIST_URL, build_listing_url

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class JobsScraper:
    """Crawls jobs.ge listing pages for one query at a time"""

    def __init__(
        self,
        fetcher: PageFetcher,
        base_url: str = BASE_URL,
        list_url: str = LIST_URL,
        sleep: Sleep = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.base_url = base_url
        self.list_url = list_url
        self._sleep = sleep

    async def crawl(self, request: Optional[CrawlRequest] = None) -> CrawlResult:
        """
        Crawl up to `request.max_pages` pages starting at `request.start_page`.

        Stops early, without another fetch, once a page reports no next page.
        Raises whatever the fetcher or parser raised; nothing partial is
        returned.
        """
        request = request or CrawlRequest()
        logger.info(
            f"[scraper] Starting crawl q={request.q!r} cid={request.cid} lid={request.lid} "
            f"jid={request.jid} start_page={request.start_page} max_pages={request.max_pages} "
            f"delay_ms={request.delay_ms}"
        )

        result = CrawlResult()
        current_page = request.start_page

        for i in range(request.max_pages):
            try:
                list_url = build_listing_url(
                    page=current_page,
                    q=request.q,
                    cid=request.cid,
                    lid=request.lid,
                    jid=request.jid,
                    list_url=self.list_url,
                )
                logger.info(f"[scraper] Fetching page: {list_url}")
                html = await self.fetcher.fetch(list_url)
                page = parse_listing_page(html, self.base_url)
            except Exception as e:
                logger.error(f"[scraper] Error crawling page {current_page}: {e}")
                raise

            result.jobs.extend(page.listings)
            result.total_pages += 1
            logger.debug(
                f"[scraper] Page {current_page}: Found {len(page.listings)} jobs. "
                f"Total so far: {result.total_jobs}"
            )

            if not page.has_next:
                logger.info(f"[scraper] No more pages available (last page {current_page})")
                result.stop_reason = StopReason.EXHAUSTED
                break

            if i < request.max_pages - 1:
                await self._sleep(request.delay_ms / 1000)
                current_page += 1
            else:
                result.stop_reason = StopReason.PAGE_CAP

        logger.info(
            f"[scraper] Crawl completed: {result.total_jobs} jobs from {result.total_pages} pages "
            f"({result.stop_reason.value})"
        )
        return result

    async def search_jobs(self, query: str, **options) -> List[RawListing]:
        result = await self.crawl(CrawlRequest(q=query, **options))
        return result.jobs

    async def jobs_by_category(self, category: str, **options) -> List[RawListing]:
        result = await self.crawl(CrawlRequest(cid=category, **options))
        return result.jobs


def to_job_record(
    listing: RawListing,
    job_type: FilterOption,
    location: FilterOption,
    category: FilterOption,
    now: Optional[datetime] = None,
) -> Optional[JobRecord]:
    """
    Convert a raw listing found under one filter combination into a
    persistable record. Returns None when the listing has no numeric id,
    since it could never be upserted.
    """
    external_id = listing.external_id
    if external_id is None:
        return None

    return JobRecord(
        id=str(uuid.uuid4()),
        external_id=external_id,
        title=listing.title,
        company=listing.company,
        company_img_url=listing.company_image or '',
        type=job_type.name,
        location=location.name,
        category=category.name,
        type_id=job_type.id,
        location_id=location.id,
        category_id=category.id,
        published_at=normalize_date(listing.published_at, now),
        deadline_at=normalize_date(listing.deadline, now),
    )
