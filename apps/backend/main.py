from fastapi import FastAPI
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from contextlib import asynccontextmanager
import asyncio
import os
import logging

load_dotenv()

from app.config import Capabilities, Settings
from app.db_config import db_config
from app.jobs_api import router as jobs_router
from app.rate_limit import limiter
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from core.errors import CrawlerError
from core.job_store import PostgresJobStore
from core.net import ClientConfig, PageFetcher
from crawler.scraper import JobsScraper
from crawler.sweep import FullCatalogSweep

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the crawler components and start the scheduler."""
    settings = Settings.from_env()
    fetcher = PageFetcher(ClientConfig.from_settings(settings))
    scraper = JobsScraper(fetcher, base_url=settings.base_url, list_url=settings.list_url)
    app.state.settings = settings
    app.state.scraper = scraper
    app.state.store = None
    app.state.sweep = None

    conn_params = db_config.get_connection_params()
    if conn_params:
        store = PostgresJobStore(conn_params=conn_params)
        sweep = FullCatalogSweep(scraper, store, combination_delay=settings.combination_delay_seconds)
        app.state.store = store
        app.state.sweep = sweep
        try:
            await asyncio.to_thread(store.ensure_schema)
        except CrawlerError as e:
            logger.error(f"[betterjobs] Could not ensure database schema: {e}")

        try:
            from orchestrator import start_scheduler
            await start_scheduler(store, sweep, settings)
        except Exception as e:
            logger.error(f"[orchestrator] Failed to start scheduler: {e}")
    else:
        logger.warning("[orchestrator] DATABASE_URL not configured, scheduler not started")

    yield

    # Shutdown
    try:
        from orchestrator import stop_scheduler
        await stop_scheduler()
    except Exception as e:
        logger.error(f"[orchestrator] Failed to stop scheduler: {e}")
    await fetcher.aclose()


app = FastAPI(
    title="Better Jobs API",
    description="API for scraping and managing job listings from jobs.ge",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiter state
app.state.limiter = limiter

# Rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(CrawlerError)
async def crawler_error_handler(request, exc: CrawlerError):
    logger.error(f"Unhandled crawler error: {exc}")
    return JSONResponse(status_code=500, content={"status": "error", "error": str(exc)})


app.include_router(jobs_router)


@app.get("/api/healthz")
async def healthz():
    return Capabilities.get_status()
