"""
Full-catalog sweep.

The site only serves a few pages per query, so the whole catalog is
approximated by crawling one page for every type x location x category
combination and merging the results by job id. Requests are strictly
sequential with a fixed pause after every combination.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence

from core.errors import CombinationFailed, SweepAlreadyRunning
from core.job_store import JobStore
from crawler.models import CrawlRequest, FilterKind, FilterOption, JobRecord
from crawler.scraper import JobsScraper, Sleep, to_job_record

logger = logging.getLogger(__name__)

COMBINATION_DELAY_SECONDS = 5.0
PROGRESS_EVERY = 50


@dataclass(frozen=True)
class Combination:
    job_type: FilterOption
    location: FilterOption
    category: FilterOption

    @property
    def label(self) -> str:
        return f"{self.job_type.name}/{self.location.name}/{self.category.name}"

    def to_request(self) -> CrawlRequest:
        # One page per combination, so the in-request delay never applies
        return CrawlRequest(
            jid=str(self.job_type.value),
            lid=str(self.location.value),
            cid=str(self.category.value),
            max_pages=1,
            delay_ms=0,
        )


@dataclass
class SweepReport:
    combinations: int = 0
    unique_jobs: int = 0
    saved: int = 0
    failed_combinations: List[str] = field(default_factory=list)
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            'combinations': self.combinations,
            'unique_jobs': self.unique_jobs,
            'saved': self.saved,
            'failed_combinations': list(self.failed_combinations),
            'duration_ms': self.duration_ms,
        }


def iter_combinations(
    types: Sequence[FilterOption],
    locations: Sequence[FilterOption],
    categories: Sequence[FilterOption],
) -> Iterator[Combination]:
    """Type-major nested enumeration of all non-wildcard combinations"""
    valid_types = [t for t in types if not t.is_wildcard]
    valid_locations = [l for l in locations if not l.is_wildcard]
    valid_categories = [c for c in categories if not c.is_wildcard]

    for job_type in valid_types:
        for location in valid_locations:
            for category in valid_categories:
                yield Combination(job_type, location, category)


class FullCatalogSweep:
    """
    Crawls every filter combination once and bulk-saves the deduplicated
    jobs. Only one sweep per instance runs at a time.
    """

    def __init__(
        self,
        scraper: JobsScraper,
        store: JobStore,
        combination_delay: float = COMBINATION_DELAY_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.scraper = scraper
        self.store = store
        self.combination_delay = combination_delay
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> SweepReport:
        """
        Run a full sweep.

        Raises:
            SweepAlreadyRunning: if another sweep on this instance is in progress
            PersistenceFailed: if the catalogs cannot be read or the final save fails
        """
        if self._lock.locked():
            raise SweepAlreadyRunning("A full sweep is already in progress")

        async with self._lock:
            return await self._run()

    async def _run(self) -> SweepReport:
        start_time = time.time()
        logger.info("[sweep] Starting full catalog sweep")

        types = await asyncio.to_thread(self.store.list_filter_options, FilterKind.TYPE)
        locations = await asyncio.to_thread(self.store.list_filter_options, FilterKind.LOCATION)
        categories = await asyncio.to_thread(self.store.list_filter_options, FilterKind.CATEGORY)

        combinations = list(iter_combinations(types, locations, categories))
        total = len(combinations)
        logger.info(
            f"[sweep] Processing {sum(not t.is_wildcard for t in types)} types x "
            f"{sum(not l.is_wildcard for l in locations)} locations x "
            f"{sum(not c.is_wildcard for c in categories)} categories = {total} combinations "
            f"(1 page per combination, {self.combination_delay}s delay between combinations)"
        )

        report = SweepReport(combinations=total)
        jobs: Dict[int, JobRecord] = {}

        for index, combination in enumerate(combinations, start=1):
            logger.debug(f"[sweep] Scraping [{index}/{total}]: {combination.label}")
            try:
                await self._crawl_combination(combination, jobs)
            except Exception as e:
                failure = CombinationFailed(combination, e)
                report.failed_combinations.append(combination.label)
                logger.error(f"[sweep] {failure}", exc_info=True)

            if index % PROGRESS_EVERY == 0:
                logger.info(
                    f"[sweep] Progress: {index}/{total} combinations processed. "
                    f"Found {len(jobs)} unique jobs so far."
                )

            await self._sleep(self.combination_delay)

        report.unique_jobs = len(jobs)
        logger.info(
            f"[sweep] Sweep completed. Processed {total} combinations "
            f"({len(report.failed_combinations)} failed). Total unique jobs: {len(jobs)}"
        )

        if jobs:
            counts = await asyncio.to_thread(self.store.upsert_jobs_by_external_id, list(jobs.values()))
            report.saved = counts.total
            logger.info(f"[sweep] Saved {report.saved} jobs to database")
        else:
            logger.warning("[sweep] No jobs found to save")

        report.duration_ms = int((time.time() - start_time) * 1000)
        return report

    async def _crawl_combination(self, combination: Combination, jobs: Dict[int, JobRecord]):
        result = await self.scraper.crawl(combination.to_request())
        for listing in result.jobs:
            record = to_job_record(listing, combination.job_type, combination.location, combination.category)
            if record is None:
                continue
            # First combination to surface a job wins
            jobs.setdefault(record.external_id, record)
