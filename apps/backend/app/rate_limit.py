"""
IP-based rate limiting for endpoints that hit jobs.ge live.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

# Each live crawl costs the source site up to max_pages requests
RATE_LIMIT_CRAWL = settings.rate_limit_crawl

limiter = Limiter(key_func=get_remote_address)
