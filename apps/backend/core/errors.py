"""
Error taxonomy for the crawler.

FetchFailed and PersistenceFailed abort a single crawl request. Inside the
full sweep every failure is wrapped in CombinationFailed, logged, and the
sweep moves on to the next combination.
"""
from typing import Optional


class CrawlerError(Exception):
    """Base class for crawler errors"""


class FetchFailed(CrawlerError):
    """Network failure, timeout, or non-2xx response for one page"""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(f"Failed to fetch page {url}: {message}")
        self.url = url
        self.status_code = status_code
        self.cause = cause


class ParseAnomaly(CrawlerError):
    """
    A listing row that could not be turned into a record.

    Never raised by the parser: rows are skipped and the anomaly is recorded
    on the parsed page so callers can log or inspect it.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"Skipped listing {url}: {reason}")
        self.url = url
        self.reason = reason


class PersistenceFailed(CrawlerError):
    """Storage collaborator error"""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to {operation}: {cause}")
        self.operation = operation
        self.cause = cause


class CombinationFailed(CrawlerError):
    """Failure scoped to one type/location/category combination of a sweep"""

    def __init__(self, combination, cause: BaseException):
        super().__init__(f"Error scraping combination {combination.label}: {cause}")
        self.combination = combination
        self.cause = cause


class SweepAlreadyRunning(CrawlerError):
    """A full sweep was requested while another one is still in progress"""
