"""
Discovery of the filter catalogs from the listing page's search form.

The search form carries one <select> per filter dimension; option values are
the source-site values used in listing URLs (0 = any).
"""

import logging
from typing import Dict, List

from bs4 import BeautifulSoup

from crawler.models import FilterKind, FilterOption

logger = logging.getLogger(__name__)

SELECT_NAMES = {
    FilterKind.TYPE: "jid",
    FilterKind.LOCATION: "lid",
    FilterKind.CATEGORY: "cid",
}


def parse_filter_options(html: str) -> Dict[FilterKind, List[FilterOption]]:
    """
    Read the type/location/category catalogs from the search form.

    Storage ids are assigned 1..n in document order. Options with a
    non-numeric value are ignored; a missing <select> yields an empty list.
    """
    soup = BeautifulSoup(html, 'html.parser')
    catalogs: Dict[FilterKind, List[FilterOption]] = {}

    for kind, select_name in SELECT_NAMES.items():
        options: List[FilterOption] = []
        select = soup.find('select', attrs={'name': select_name})
        if select is None:
            logger.warning(f"[filter_options] No <select name={select_name!r}> on page")
        else:
            for option in select.find_all('option'):
                value = (option.get('value') or '').strip()
                if not value.isdigit():
                    continue
                options.append(FilterOption(
                    id=len(options) + 1,
                    name=option.get_text().strip(),
                    value=int(value),
                ))
        catalogs[kind] = options
        logger.debug(f"[filter_options] Found {len(options)} {kind.value} options")

    return catalogs
