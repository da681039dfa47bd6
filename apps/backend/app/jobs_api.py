"""
Job endpoints: live crawl, sweep trigger, stored jobs and filter catalogs.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from app.config import Settings, settings as default_settings
from app.rate_limit import limiter, RATE_LIMIT_CRAWL
from core.errors import FetchFailed, PersistenceFailed
from core.job_store import JobStore
from crawler.models import CrawlRequest, FilterKind
from crawler.scraper import JobsScraper
from crawler.sweep import FullCatalogSweep
from orchestrator import purge_expired, sweep_job

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])


class ListingOut(BaseModel):
    title: str
    url: str
    company: str
    dates: str
    published_at: Optional[str] = None
    deadline: Optional[str] = None
    company_image: Optional[str] = None
    id: Optional[str] = None


class CrawlResultOut(BaseModel):
    jobs: List[ListingOut]
    total_pages: int
    total_jobs: int
    stop_reason: Optional[str] = None


class JobOut(BaseModel):
    id: str
    external_id: int
    title: str
    company: str
    company_img_url: str
    type: str
    location: str
    category: str
    type_id: Optional[int] = None
    location_id: Optional[int] = None
    category_id: Optional[int] = None
    published_at: datetime
    deadline_at: datetime


class FilterOptionOut(BaseModel):
    id: int
    name: str
    value: int


class SearchParamsStatus(BaseModel):
    is_seeded: bool
    types_count: int
    locations_count: int
    categories_count: int


def get_store(request: Request) -> JobStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return store


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_scraper(request: Request) -> JobsScraper:
    return request.app.state.scraper


def get_sweep(request: Request) -> FullCatalogSweep:
    sweep = getattr(request.app.state, "sweep", None)
    if sweep is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return sweep


async def _call_store(method, *args):
    try:
        return await asyncio.to_thread(method, *args)
    except PersistenceFailed as e:
        logger.error(f"[jobs_api] {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.get("", response_model=CrawlResultOut)
@limiter.limit(RATE_LIMIT_CRAWL)
async def get_jobs(
    request: Request,
    q: str = "",
    cid: str = "0",
    lid: str = "0",
    jid: str = "0",
    max_pages: Optional[int] = Query(None, ge=1, le=10),
    start_page: int = Query(1, ge=1),
    delay_ms: Optional[int] = Query(None, ge=0, le=60000),
    scraper: JobsScraper = Depends(get_scraper),
    settings: Settings = Depends(get_settings),
):
    """Crawl jobs.ge live for one query (fails on any page error)"""
    if max_pages is None:
        max_pages = settings.default_max_pages
    if delay_ms is None:
        delay_ms = settings.default_delay_ms
    crawl_request = CrawlRequest(
        q=q, cid=cid, lid=lid, jid=jid,
        max_pages=max_pages, start_page=start_page, delay_ms=delay_ms,
    )
    try:
        result = await scraper.crawl(crawl_request)
    except FetchFailed as e:
        raise HTTPException(status_code=502, detail=str(e))

    return CrawlResultOut(
        jobs=[
            ListingOut(
                title=job.title,
                url=job.url,
                company=job.company,
                dates=job.dates,
                published_at=job.published_at,
                deadline=job.deadline,
                company_image=job.company_image,
                id=job.id,
            )
            for job in result.jobs
        ],
        total_pages=result.total_pages,
        total_jobs=result.total_jobs,
        stop_reason=result.stop_reason.value if result.stop_reason else None,
    )


@router.post("/scrape-all", status_code=202)
async def scrape_all_jobs(
    background_tasks: BackgroundTasks,
    sweep: FullCatalogSweep = Depends(get_sweep),
):
    """Start a full catalog sweep in the background"""
    if sweep.is_running:
        raise HTTPException(status_code=409, detail="A full sweep is already in progress")
    background_tasks.add_task(sweep_job, sweep)
    return {"message": "Full catalog sweep started"}


@router.post("/purge-expired")
async def purge_expired_jobs(store: JobStore = Depends(get_store)):
    try:
        deleted = await purge_expired(store)
    except PersistenceFailed as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"deleted": deleted}


@router.get("/scraped", response_model=List[JobOut])
@router.get("/database", response_model=List[JobOut])
async def get_scraped_jobs(store: JobStore = Depends(get_store)):
    jobs = await _call_store(store.list_all_jobs)
    return [JobOut(**job.to_dict()) for job in jobs]


@router.delete("/database")
async def delete_scraped_jobs(store: JobStore = Depends(get_store)):
    deleted = await _call_store(store.delete_all_jobs)
    return {"deleted": deleted}


@router.get("/database/count")
async def get_scraped_jobs_count(store: JobStore = Depends(get_store)):
    count = await _call_store(store.count_jobs)
    return {"count": count}


async def _filter_options(store: JobStore, kind: FilterKind) -> List[FilterOptionOut]:
    options = await _call_store(store.list_filter_options, kind)
    return [FilterOptionOut(id=o.id, name=o.name, value=o.value) for o in options]


@router.get("/types", response_model=List[FilterOptionOut])
async def get_job_types(store: JobStore = Depends(get_store)):
    return await _filter_options(store, FilterKind.TYPE)


@router.get("/locations", response_model=List[FilterOptionOut])
async def get_locations(store: JobStore = Depends(get_store)):
    return await _filter_options(store, FilterKind.LOCATION)


@router.get("/categories", response_model=List[FilterOptionOut])
async def get_categories(store: JobStore = Depends(get_store)):
    return await _filter_options(store, FilterKind.CATEGORY)


@router.get("/search-params-status", response_model=SearchParamsStatus)
async def get_search_params_status(store: JobStore = Depends(get_store)):
    types = await _call_store(store.list_filter_options, FilterKind.TYPE)
    locations = await _call_store(store.list_filter_options, FilterKind.LOCATION)
    categories = await _call_store(store.list_filter_options, FilterKind.CATEGORY)
    return SearchParamsStatus(
        is_seeded=bool(types and locations and categories),
        types_count=len(types),
        locations_count=len(locations),
        categories_count=len(categories),
    )
