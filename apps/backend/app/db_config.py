"""
Database configuration module.
Reads the PostgreSQL DSN from DATABASE_URL.
"""

import os
import logging
from urllib.parse import urlparse, unquote

logger = logging.getLogger(__name__)


class DBConfig:
    """Database configuration read from DATABASE_URL"""

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url if database_url is not None else os.getenv("DATABASE_URL")

        # Log the configured database URL (mask password for security)
        if self.database_url:
            try:
                parsed = urlparse(self.database_url.replace('[', '').replace(']', ''))
                logger.info(f"[db_config] DATABASE_URL configured: {parsed.scheme}://{parsed.username}:***@{parsed.hostname}:{parsed.port or 5432}{parsed.path}")
            except Exception as e:
                logger.info(f"[db_config] DATABASE_URL configured (unable to parse for logging: {e})")
        else:
            logger.warning("[db_config] DATABASE_URL not set - database connections will fail")

    @property
    def is_db_enabled(self) -> bool:
        return bool(self.database_url)

    def get_connection_params(self) -> dict | None:
        """
        Get psycopg2 connection parameters.
        Returns dict with host, port, database, user, password.
        """
        if not self.database_url:
            return None

        # Handle URLs like: postgresql://user:pass@[hostname]:port/db
        cleaned_url = self.database_url.replace('[', '').replace(']', '')

        try:
            parsed = urlparse(cleaned_url)
        except Exception as e:
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            return None

        if not parsed.hostname:
            return None

        params = {
            "host": parsed.hostname,
            "port": parsed.port or 5432,
            "database": parsed.path.lstrip('/') or 'postgres',
            "user": parsed.username or 'postgres',
        }

        # URL-decode the password to handle special characters
        if parsed.password:
            params["password"] = unquote(parsed.password)

        logger.debug(f"[db_config] Database connection params: host={params['host']}, port={params['port']}, database={params['database']}, user={params['user']}")

        return params


# Global instance
db_config = DBConfig()
