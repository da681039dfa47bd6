"""
Shared fixtures: saved jobs.ge pages and an in-memory job store.
"""
from pathlib import Path
from typing import Dict, List

import pytest

from core.errors import PersistenceFailed
from core.job_store import UpsertCounts
from crawler.models import FilterKind, FilterOption

FIXTURES_DIR = Path(__file__).parent / 'fixtures'


class FakeJobStore:
    """In-memory JobStore used in place of PostgreSQL"""

    def __init__(self, options: Dict[FilterKind, List[FilterOption]] = None):
        self.jobs = {}
        self.options = {kind: list((options or {}).get(kind, [])) for kind in FilterKind}
        self.upsert_calls = []
        self.fail_with = None

    def _check(self, operation):
        if self.fail_with is not None:
            raise PersistenceFailed(operation, self.fail_with)

    def upsert_jobs_by_external_id(self, records):
        self._check("save scraped jobs")
        self.upsert_calls.append(list(records))
        counts = UpsertCounts()
        for record in records:
            if record.external_id in self.jobs:
                counts.updated += 1
            else:
                counts.inserted += 1
            self.jobs[record.external_id] = record
        return counts

    def list_all_jobs(self):
        self._check("fetch scraped jobs")
        return list(self.jobs.values())

    def count_jobs(self):
        self._check("get jobs count")
        return len(self.jobs)

    def delete_all_jobs(self):
        self._check("delete scraped jobs")
        deleted = len(self.jobs)
        self.jobs.clear()
        return deleted

    def delete_jobs_with_deadline_before(self, now):
        self._check("delete expired jobs")
        expired = [key for key, job in self.jobs.items() if job.deadline_at < now]
        for key in expired:
            del self.jobs[key]
        return len(expired)

    def list_filter_options(self, kind):
        self._check(f"fetch {kind}")
        return sorted(self.options[FilterKind(kind)], key=lambda o: o.id)

    def seed_filter_options(self, kind, options):
        self._check(f"seed {kind}")
        existing = {o.id for o in self.options[FilterKind(kind)]}
        created = 0
        for option in options:
            if option.id not in existing:
                self.options[FilterKind(kind)].append(option)
                existing.add(option.id)
                created += 1
        return created


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding='utf-8')


@pytest.fixture
def page1_html():
    return read_fixture('jobs_ge_page1.html')


@pytest.fixture
def last_page_html():
    return read_fixture('jobs_ge_last_page.html')


@pytest.fixture
def search_form_html():
    return read_fixture('jobs_ge_search_form.html')


@pytest.fixture
def catalogs():
    """2 types x 1 location x 2 categories, plus a wildcard in each dimension"""
    return {
        FilterKind.TYPE: [
            FilterOption(id=1, name="All", value=0),
            FilterOption(id=2, name="Vacancy", value=1),
            FilterOption(id=3, name="Internship", value=5),
        ],
        FilterKind.LOCATION: [
            FilterOption(id=1, name="All locations", value=0),
            FilterOption(id=2, name="Tbilisi", value=1),
        ],
        FilterKind.CATEGORY: [
            FilterOption(id=1, name="All categories", value=0),
            FilterOption(id=2, name="Administration", value=1),
            FilterOption(id=3, name="IT", value=6),
        ],
    }


@pytest.fixture
def fake_store(catalogs):
    return FakeJobStore(catalogs)


@pytest.fixture
def empty_store():
    return FakeJobStore()
