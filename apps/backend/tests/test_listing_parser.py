"""
Tests for the jobs.ge listing table parser.
"""

import pytest
from bs4 import BeautifulSoup

from crawler.listing_parser import has_next_page, parse_listing_page


def _row(*cells):
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


def _table(*rows):
    return "<html><body><table>" + "".join(rows) + "</table></body></html>"


class TestParseListingFixture:
    """Parse the saved first results page."""

    @pytest.fixture
    def page(self, page1_html):
        return parse_listing_page(page1_html)

    def test_listing_count_and_order(self, page):
        assert [l.title for l in page.listings] == ["Senior Python Developer", "Sales Manager"]

    def test_first_listing_fields(self, page):
        job = page.listings[0]
        assert job.url == "https://jobs.ge/en/?view=jobs&id=401"
        assert job.id == "401"
        assert job.company == "Acme LLC"
        assert job.company_image == "https://jobs.ge/logos/acme.png"
        assert job.published_at == "05.03.2025"
        assert job.deadline == "5 April"
        assert job.dates == "05.03.2025 - 5 April"

    def test_id_falls_back_to_row_image(self, page):
        job = page.listings[1]
        assert job.url == "https://jobs.ge/en/?view=jobs&id=&ref=featured"
        assert job.id == "402"
        assert job.external_id == 402

    def test_missing_logo_is_none(self, page):
        assert page.listings[1].company_image is None
        assert page.listings[1].company == "Beta Group"

    def test_urls_are_unique(self, page):
        urls = [l.url for l in page.listings]
        assert len(urls) == len(set(urls))

    def test_anchor_outside_table_is_anomaly(self, page):
        assert len(page.anomalies) == 1
        assert page.anomalies[0].url == "https://jobs.ge/en/?view=jobs&id=999"
        assert page.anomalies[0].reason == "no enclosing table row"

    def test_pagination_links_mean_next_page(self, page):
        assert page.has_next is True


class TestParseListingEdgeCases:
    """Inline markup edge cases."""

    def test_last_page(self, last_page_html):
        page = parse_listing_page(last_page_html)
        assert page.listings == []
        assert page.has_next is False

    def test_empty_document(self):
        page = parse_listing_page("")
        assert page.listings == []
        assert page.has_next is False

    def test_short_row_yields_empty_dates(self):
        html = _table(_row('<img id="7">', '<a href="/en/?view=jobs&amp;id=7">Driver</a>'))
        page = parse_listing_page(html)
        assert len(page.listings) == 1
        job = page.listings[0]
        assert job.published_at == ""
        assert job.deadline == ""
        assert job.company == ""
        assert job.company_image is None

    def test_untitled_anchor_does_not_hide_titled_one(self):
        html = _table(_row(
            '<a href="?view=jobs&amp;id=5"><img src="/x.png"></a>',
            '<a href="?view=jobs&amp;id=5">Cashier</a>',
        ))
        page = parse_listing_page(html)
        assert [l.title for l in page.listings] == ["Cashier"]
        assert page.listings[0].url == "https://jobs.ge/?view=jobs&id=5"
        assert page.anomalies[0].reason == "no title text"

    def test_title_whitespace_is_trimmed(self):
        html = _table(_row("", '<a href="/en/?view=jobs&amp;id=8">\n   Accountant  \n</a>'))
        assert parse_listing_page(html).listings[0].title == "Accountant"

    def test_row_without_any_id(self):
        html = _table(_row("", '<a href="/en/?view=jobs&amp;id=">Courier</a>'))
        job = parse_listing_page(html).listings[0]
        assert job.id is None
        assert job.external_id is None

    def test_overlong_company_name_skipped(self):
        long_name = "X" * 81
        html = _table(_row(
            "",
            '<a href="/en/?view=jobs&amp;id=9">Cook</a>',
            "",
            f'<a href="/en/?view=client&amp;client=1">{long_name}</a>'
            '<a href="/en/?view=client&amp;client=1">Real Name</a>',
        ))
        assert parse_listing_page(html).listings[0].company == "Real Name"

    def test_custom_base_url(self):
        html = _table(_row("", '<a href="/en/?view=jobs&amp;id=3">Nurse</a>'))
        page = parse_listing_page(html, base_url="http://localhost:8000/")
        assert page.listings[0].url == "http://localhost:8000/en/?view=jobs&id=3"

    def test_non_listing_links_ignored(self):
        html = _table(_row("", '<a href="/en/?view=client&amp;client=2">Some Company</a>'))
        page = parse_listing_page(html)
        assert page.listings == []
        assert page.anomalies == []

    def test_nav_and_pagination_links_in_row_ignored(self):
        html = _table(_row(
            '<a href="/en/?view=jobs">Vacancies</a>',
            '<a href="/en/?view=jobs&amp;page=2">2</a>',
            '<a href="/en/?view=jobs&amp;cid=6&amp;paid=1">IT</a>',
        ))
        page = parse_listing_page(html)
        assert page.listings == []
        assert page.anomalies == []


class TestHasNextPage:
    """Test the ordered next-page heuristics."""

    @pytest.mark.parametrize("html", [
        '<a rel="next" href="/en/">more</a>',
        '<div class="pagination"><a href="#">Next &raquo;</a></div>',
        '<div class="pagination"><a href="#">შემდეგი</a></div>',
        '<a class="page_next" href="#">&gt;</a>',
        '<a class="next" href="#">&gt;</a>',
        '<a href="/en/?page=4&amp;q=">4</a>',
    ])
    def test_next_page_signals(self, html):
        assert has_next_page(BeautifulSoup(html, "html.parser")) is True

    @pytest.mark.parametrize("html", [
        '<div class="pagination"><span>1</span></div>',
        '<a href="/en/?pagex">x</a>',
        '<a href="/en/?view=about">About</a>',
    ])
    def test_no_next_page(self, html):
        assert has_next_page(BeautifulSoup(html, "html.parser")) is False
