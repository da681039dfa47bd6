"""
Records passed between the crawler stages.

RawListing comes straight out of the listing parser; JobRecord is what gets
persisted. CrawlRequest/CrawlResult describe one bounded multi-page query.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional

# Source-site value meaning "no filter on this dimension"
WILDCARD = 0


class FilterKind(str, Enum):
    TYPE = "type"
    LOCATION = "location"
    CATEGORY = "category"


@dataclass(frozen=True)
class FilterOption:
    """One entry of a filter catalog (job type, location or category)"""

    id: int
    name: str
    value: int

    @property
    def is_wildcard(self) -> bool:
        return self.value == WILDCARD


@dataclass
class RawListing:
    title: str
    url: str
    company: str = ""
    id: Optional[str] = None
    published_at: str = ""
    deadline: str = ""
    company_image: Optional[str] = None

    @property
    def dates(self) -> str:
        return " - ".join(d for d in (self.published_at, self.deadline) if d)

    @property
    def external_id(self) -> Optional[int]:
        """Source-assigned numeric id, or None if missing or not numeric"""
        if not self.id or not self.id.strip().isdigit():
            return None
        return int(self.id.strip())


@dataclass
class JobRecord:
    id: str
    external_id: int
    title: str
    company: str
    company_img_url: str
    type: str
    location: str
    category: str
    type_id: Optional[int]
    location_id: Optional[int]
    category_id: Optional[int]
    published_at: datetime
    deadline_at: datetime

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CrawlRequest:
    """Configuration for one query; filter values are source-site values"""

    q: str = ""
    cid: str = "0"
    lid: str = "0"
    jid: str = "0"
    start_page: int = 1
    max_pages: int = 3
    delay_ms: int = 2000

    def __post_init__(self):
        self.cid = str(self.cid)
        self.lid = str(self.lid)
        self.jid = str(self.jid)
        self.q = self.q or ""
        if self.start_page < 1:
            raise ValueError(f"start_page must be >= 1, got {self.start_page}")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {self.delay_ms}")


class StopReason(str, Enum):
    EXHAUSTED = "exhausted"
    PAGE_CAP = "page-cap reached"


@dataclass
class CrawlResult:
    jobs: List[RawListing] = field(default_factory=list)
    total_pages: int = 0
    stop_reason: Optional[StopReason] = None

    @property
    def total_jobs(self) -> int:
        return len(self.jobs)
