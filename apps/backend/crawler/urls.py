"""
Listing URL construction for jobs.ge.
"""
from urllib.parse import urlencode, urljoin

BASE_URL = "https://jobs.ge/"
LIST_URL = "https://jobs.ge/en/"

# Fixed parameter order keeps URLs byte-identical for identical inputs
QUERY_PARAMS = ("page", "q", "cid", "lid", "jid")


def build_listing_url(
    page: int = 1,
    q: str = "",
    cid="0",
    lid="0",
    jid="0",
    list_url: str = LIST_URL,
) -> str:
    """
    Build the listing URL for one page of one filter combination.

    Filter values are only coerced to strings; unknown values are forwarded
    as-is and the site answers with an empty listing.
    """
    values = {
        "page": str(page),
        "q": "" if q is None else str(q),
        "cid": str(cid),
        "lid": str(lid),
        "jid": str(jid),
    }
    query = urlencode([(name, values[name]) for name in QUERY_PARAMS])
    return f"{list_url}?{query}"


def absolute_url(href: str, base_url: str = BASE_URL) -> str:
    return urljoin(base_url, href)
