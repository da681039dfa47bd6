import os
from dataclasses import dataclass

import psycopg2

from app.db_config import db_config


DEFAULT_BASE_URL = "https://jobs.ge/"
DEFAULT_LIST_PATH = "/en/"
DEFAULT_UA = "BetterJobsGE/1.0 (+contact@email)"
DEFAULT_ACCEPT_LANGUAGE = "ka, en;q=0.8"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Crawler and scheduler settings read from the environment"""

    base_url: str = DEFAULT_BASE_URL
    list_path: str = DEFAULT_LIST_PATH
    user_agent: str = DEFAULT_UA
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    timeout_seconds: float = 20.0
    default_max_pages: int = 3
    default_delay_ms: int = 2000
    combination_delay_seconds: float = 5.0
    scheduler_timezone: str = "Asia/Tbilisi"
    purge_cron_hour: int = 0
    sweep_cron_hour: int = 4
    scheduler_disabled: bool = False
    rate_limit_crawl: str = "10/minute"

    @property
    def list_url(self) -> str:
        return self.base_url.rstrip("/") + "/" + self.list_path.lstrip("/")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            base_url=os.getenv("JOBS_GE_BASE_URL", DEFAULT_BASE_URL),
            list_path=os.getenv("JOBS_GE_LIST_PATH", DEFAULT_LIST_PATH),
            user_agent=os.getenv("CRAWLER_USER_AGENT", DEFAULT_UA),
            accept_language=os.getenv("CRAWLER_ACCEPT_LANGUAGE", DEFAULT_ACCEPT_LANGUAGE),
            timeout_seconds=float(os.getenv("CRAWLER_TIMEOUT_SECONDS", "20")),
            default_max_pages=int(os.getenv("CRAWL_DEFAULT_MAX_PAGES", "3")),
            default_delay_ms=int(os.getenv("CRAWL_DEFAULT_DELAY_MS", "2000")),
            combination_delay_seconds=float(os.getenv("SWEEP_COMBINATION_DELAY_SECONDS", "5")),
            scheduler_timezone=os.getenv("SCHEDULER_TIMEZONE", "Asia/Tbilisi"),
            purge_cron_hour=int(os.getenv("PURGE_CRON_HOUR", "0")),
            sweep_cron_hour=int(os.getenv("SWEEP_CRON_HOUR", "4")),
            scheduler_disabled=_env_bool("BETTERJOBS_DISABLE_SCHEDULER"),
            rate_limit_crawl=os.getenv("RATE_LIMIT_CRAWL", "10/minute"),
        )


class Capabilities:
    @staticmethod
    def is_db_enabled() -> bool:
        return db_config.is_db_enabled

    @staticmethod
    def check_db_connection() -> bool:
        """Verify database connection with a trivial query"""
        if not Capabilities.is_db_enabled():
            return False

        conn_params = db_config.get_connection_params()
        if not conn_params:
            return False

        try:
            # Use very short timeout for health checks (1 second max)
            conn = psycopg2.connect(**conn_params, connect_timeout=1)
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.fetchone()
            cursor.close()
            conn.close()
            return True
        except Exception:
            return False

    @classmethod
    def get_status(cls) -> dict:
        db = cls.check_db_connection()
        return {
            "status": "green" if db else "amber",
            "components": {
                "db": db,
            },
        }


settings = Settings.from_env()
