"""
Scheduled entry points: daily expiry purge and daily full-catalog sweep.

Each trigger is a plain async function; CrawlScheduler only decides when to
call them. The two jobs run as independent asyncio tasks so a long sweep
never delays the purge.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from core.errors import SweepAlreadyRunning
from core.job_store import JobStore
from crawler.sweep import FullCatalogSweep, SweepReport

logger = logging.getLogger(__name__)

PURGE_JOB = "purge-expired"
SWEEP_JOB = "full-sweep"


async def purge_expired(store: JobStore, now: Optional[datetime] = None) -> int:
    """Delete jobs whose deadline has passed; returns the number removed"""
    now = now or datetime.now()
    logger.info("[orchestrator] Starting cleanup of expired jobs")
    deleted = await asyncio.to_thread(store.delete_jobs_with_deadline_before, now)
    logger.info(f"[orchestrator] Cleanup completed. Deleted {deleted} expired jobs")
    return deleted


async def run_full_sweep(sweep: FullCatalogSweep) -> SweepReport:
    report = await sweep.run()
    logger.info(
        f"[orchestrator] Full sweep saved {report.saved} unique jobs "
        f"({report.combinations} combinations, {len(report.failed_combinations)} failed)"
    )
    return report


async def purge_job(store: JobStore) -> Optional[int]:
    """Scheduled purge: never raises"""
    try:
        return await purge_expired(store)
    except Exception as e:
        logger.error(f"[orchestrator] Failed to cleanup expired jobs: {e}", exc_info=True)
        return None


async def sweep_job(sweep: FullCatalogSweep) -> Optional[SweepReport]:
    """Scheduled sweep: never raises"""
    try:
        return await run_full_sweep(sweep)
    except SweepAlreadyRunning:
        logger.warning("[orchestrator] Full sweep still running from a previous trigger, skipping")
        return None
    except Exception as e:
        logger.error(f"[orchestrator] Full sweep failed: {e}", exc_info=True)
        return None


def next_run_at(hour: int, now: datetime, minute: int = 0) -> datetime:
    """Next daily fire time at hour:minute strictly after `now` (same tzinfo)"""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class CrawlScheduler:
    """Fires the purge and sweep jobs once a day at fixed local times"""

    def __init__(self, store: JobStore, sweep: FullCatalogSweep, settings):
        self.store = store
        self.sweep = sweep
        self.settings = settings
        self.tz = ZoneInfo(settings.scheduler_timezone)
        self.running = False
        self._tasks: Dict[str, asyncio.Task] = {}
        self.jobs: Dict[str, tuple] = {
            PURGE_JOB: (settings.purge_cron_hour, lambda: purge_job(self.store)),
            SWEEP_JOB: (settings.sweep_cron_hour, lambda: sweep_job(self.sweep)),
        }

    async def _job_loop(self, name: str, hour: int, trigger: Callable[[], Awaitable]):
        logger.info(f"[orchestrator] Job {name} scheduled daily at {hour:02d}:00 {self.tz.key}")
        while self.running:
            now = datetime.now(self.tz)
            fire_at = next_run_at(hour, now)
            await asyncio.sleep((fire_at - now).total_seconds())
            logger.info(f"[orchestrator] Running scheduled job {name}")
            await trigger()

    async def start(self):
        """Start the scheduler"""
        if self.settings.scheduler_disabled:
            logger.info("[orchestrator] Scheduler disabled by BETTERJOBS_DISABLE_SCHEDULER")
            return

        self.running = True
        for name, (hour, trigger) in self.jobs.items():
            self._tasks[name] = asyncio.create_task(self._job_loop(name, hour, trigger), name=name)
        logger.info(f"[orchestrator] Scheduler started with jobs: {', '.join(self._tasks)}")

    async def stop(self):
        """Stop the scheduler and cancel pending jobs"""
        self.running = False
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("[orchestrator] Scheduler stopped")


# Global instance
_scheduler: Optional[CrawlScheduler] = None


async def start_scheduler(store: JobStore, sweep: FullCatalogSweep, settings) -> CrawlScheduler:
    """Start the crawl scheduler (call from FastAPI startup)"""
    global _scheduler
    if _scheduler is None:
        _scheduler = CrawlScheduler(store, sweep, settings)
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the crawl scheduler (call from FastAPI shutdown)"""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None
