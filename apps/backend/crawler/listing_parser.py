"""
Parser for the jobs.ge listing table.

The listing page has no API and no stable markup, so extraction leans on two
assumptions about the page:

1. Each posting is a table row (<tr>) holding an anchor to the detail page
   (`?view=jobs&id=<n>`).
2. Cells sit at fixed positions inside that row (ROW_LAYOUT below). If the
   site reorders its columns, dates and logos silently come back empty or
   wrong; bump ROW_LAYOUT_VERSION when the layout is re-verified.

Malformed rows are skipped, never raised.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from core.errors import ParseAnomaly
from crawler.models import RawListing
from crawler.urls import BASE_URL, absolute_url

logger = logging.getLogger(__name__)

ROW_LAYOUT_VERSION = "jobs.ge/2024"
ROW_LAYOUT = {
    'id_image': 0,      # favourite star, <img id="<job id>">
    'company_logo': 2,  # <img src="...">
    'published': 4,
    'deadline': 5,
}

JOB_ID_RE = re.compile(r'(?:view=jobs&id=|&id=)(\d+)')
ID_PARAM_RE = re.compile(r'[?&]id=')
PAGE_PARAM_RE = re.compile(r'page=\d+')
MAX_COMPANY_NAME_LENGTH = 80
NEXT_LABELS = ('შემდეგი', 'Next')


@dataclass
class ListingPage:
    listings: List[RawListing] = field(default_factory=list)
    has_next: bool = False
    anomalies: List[ParseAnomaly] = field(default_factory=list)


def _is_listing_link(href: str) -> bool:
    # Detail view with an id parameter; the value may be empty
    return 'view=jobs' in href and bool(ID_PARAM_RE.search(href))


def _cell_text(cells: List[Tag], index: int) -> str:
    if index >= len(cells):
        return ""
    return cells[index].get_text().strip()


def _cell_image(cells: List[Tag], index: int) -> Optional[Tag]:
    if index >= len(cells):
        return None
    return cells[index].find('img')


def _resolve_id(href: str, cells: List[Tag]) -> Optional[str]:
    match = JOB_ID_RE.search(href)
    if match:
        return match.group(1)

    # Fallback: the favourite-star image in the first cell carries the job id
    img = _cell_image(cells, ROW_LAYOUT['id_image'])
    if img is not None:
        img_id = (img.get('id') or '').strip()
        if img_id:
            return img_id
    return None


def _extract_company(row: Tag) -> str:
    for link in row.select('a[href*="view=client"]'):
        text = link.get_text().strip()
        if text and len(text) <= MAX_COMPANY_NAME_LENGTH:
            return text
    return ""


def _extract_logo(cells: List[Tag], base_url: str) -> Optional[str]:
    img = _cell_image(cells, ROW_LAYOUT['company_logo'])
    if img is None:
        return None
    src = img.get('src') or ''
    return absolute_url(src, base_url) if src else None


def has_next_page(soup: BeautifulSoup) -> bool:
    """
    Guess whether another results page exists.

    Approximate: the checks run in order and the first hit wins. The last
    one (any `page=N` link) is broad on purpose and can yield false
    positives, which cost one extra empty fetch.
    """
    checks = (
        lambda: soup.select_one("a[rel='next']") is not None,
        lambda: any(
            label in link.get_text()
            for link in soup.select('.pagination a')
            for label in NEXT_LABELS
        ),
        lambda: soup.select_one('a.page_next, a.next') is not None,
        lambda: any(
            PAGE_PARAM_RE.search(link.get('href') or '')
            for link in soup.select('a[href*="page="]')
        ),
    )
    return any(check() for check in checks)


def parse_listing_page(html: str, base_url: str = BASE_URL) -> ListingPage:
    """
    Parse one listing page into raw listings (document order) plus the
    "more pages exist" signal.
    """
    soup = BeautifulSoup(html, 'html.parser')
    page = ListingPage()
    seen = set()

    for anchor in soup.find_all('a', href=True):
        href = anchor['href']
        if not _is_listing_link(href):
            continue

        url = absolute_url(href, base_url)
        if url in seen:
            continue

        # An untitled anchor (e.g. a logo link) must not hide the titled one
        title = anchor.get_text().strip()
        if not title:
            page.anomalies.append(ParseAnomaly(url, "no title text"))
            continue

        row = anchor.find_parent('tr')
        if row is None:
            page.anomalies.append(ParseAnomaly(url, "no enclosing table row"))
            continue

        cells = row.find_all('td')

        seen.add(url)
        page.listings.append(RawListing(
            title=title,
            url=url,
            company=_extract_company(row),
            id=_resolve_id(href, cells),
            published_at=_cell_text(cells, ROW_LAYOUT['published']),
            deadline=_cell_text(cells, ROW_LAYOUT['deadline']),
            company_image=_extract_logo(cells, base_url),
        ))

    page.has_next = has_next_page(soup)

    if page.anomalies:
        logger.debug(f"[listing_parser] Skipped {len(page.anomalies)} malformed rows")
    logger.debug(f"[listing_parser] Parsed {len(page.listings)} jobs from page (has_next={page.has_next})")
    return page
