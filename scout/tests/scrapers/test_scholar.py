"""
Tests for the Google Scholar scraper.
"""

import random
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest

from scout.models import PublicationSource
from scout.scrapers.scholar import (
    ScholarScraper,
    is_captcha_page,
    parse_author_profile,
    parse_search_results,
)
from scout.utils.fetch import FetchError, RateLimitError

RESULTS_PAGE = """
<html><body>
<div class="gs_r gs_or gs_scl">
  <h3 class="gs_rt"><a href="https://dl.example.org/raft">In Search of an
    Understandable Consensus Algorithm</a></h3>
  <div class="gs_a">J Smith, D Ongaro - USENIX ATC, 2014 - usenix.org</div>
  <div class="gs_rs">Raft is a consensus algorithm for managing a replicated log.</div>
  <div class="gs_fl">
    <a href="/scholar?cites=1">Cited by 4321</a>
    <a href="/scholar?related=1">Related articles</a>
  </div>
</div>
<div class="gs_r gs_or gs_scl">
  <h3 class="gs_rt"><span>[CITATION]</span> Notes on Paxos</h3>
  <div class="gs_a">J Smith - 1998</div>
</div>
<div class="gs_r gs_or gs_scl">
  <div class="gs_a">No title here - 2001</div>
</div>
<h4 class="gs_rt2">
  <a href="/citations?user=AbC123&amp;hl=en">User profiles for author:"Jane Smith"</a>
</h4>
</body></html>
"""

CAPTCHA_PAGE = """
<html><body>
<form id="gs_captcha_f" action="/sorry/index">
  <p>Our systems have detected unusual traffic from your computer network.</p>
  <div class="gs_r gs_or gs_scl"><h3 class="gs_rt"><a href="#">Fake</a></h3></div>
</form>
</body></html>
"""

PROFILE_PAGE = """
<html><body>
<table><tbody id="gsc_a_b">
  <tr class="gsc_a_tr">
    <td class="gsc_a_t">
      <a class="gsc_a_at" href="/citations?view_op=view_citation&amp;citation_for_view=AbC123:x">Consensus in the Wild</a>
      <div class="gs_gray">J Smith, A Kim</div>
      <div class="gs_gray">OSDI 2020</div>
    </td>
    <td class="gsc_a_c"><a class="gsc_a_ac">87</a></td>
    <td class="gsc_a_y"><span class="gsc_a_h">2020</span></td>
  </tr>
  <tr class="gsc_a_tr">
    <td class="gsc_a_t">
      <a class="gsc_a_at" href="/citations?view_op=view_citation">Uncited Preprint</a>
      <div class="gs_gray">J Smith</div>
    </td>
    <td class="gsc_a_c"><a class="gsc_a_ac"></a></td>
    <td class="gsc_a_y"><span class="gsc_a_h"></span></td>
  </tr>
</tbody></table>
</body></html>
"""  # noqa: E501


@pytest.fixture
def scraper(fetcher):
    return ScholarScraper(fetcher=fetcher, sleep=AsyncMock(), rng=random.Random(1))


def test_parse_search_results():
    result = parse_search_results(RESULTS_PAGE)

    assert len(result.papers) == 2
    raft, paxos = result.papers

    assert raft.title == "In Search of an Understandable Consensus Algorithm"
    assert raft.url == "https://dl.example.org/raft"
    assert raft.authors == "J Smith, D Ongaro"
    assert raft.year == 2014
    assert raft.cited_by == 4321
    assert raft.abstract.startswith("Raft is a consensus algorithm")
    assert raft.source == PublicationSource.GOOGLE_SCHOLAR

    assert paxos.title == "[CITATION] Notes on Paxos"
    assert paxos.url is None
    assert paxos.year == 1998
    assert paxos.cited_by is None

    profile_url = "https://scholar.google.com/citations?user=AbC123&hl=en"
    assert result.profile_url == profile_url


def test_parse_author_profile():
    profile_url = "https://scholar.google.com/citations?user=AbC123"

    result = parse_author_profile(PROFILE_PAGE, profile_url)

    assert result.profile_url == profile_url
    first, second = result.papers
    assert first.title == "Consensus in the Wild"
    assert first.authors == "J Smith, A Kim"
    assert first.year == 2020
    assert first.cited_by == 87
    assert first.url.startswith("https://scholar.google.com/citations?view_op=")
    assert second.year is None
    assert second.cited_by is None


def test_captcha_detection():
    assert is_captcha_page(CAPTCHA_PAGE)
    assert is_captcha_page("<p>Please show you're not a robot</p>")
    assert not is_captcha_page(RESULTS_PAGE)
    assert is_captcha_page("<p>Our systems have detected unusual traffic.</p>")


def test_result_mentioning_captcha_wording_is_not_a_captcha():
    html = RESULTS_PAGE.replace(
        "In Search of an\n    Understandable Consensus Algorithm",
        "Query optimization for automated queries over unusual traffic",
    )

    assert not is_captcha_page(html)
    assert len(parse_search_results(html).papers) == 2


@pytest.mark.asyncio
async def test_search_keeps_results_with_captcha_like_titles(scraper, fetcher):
    fetcher.fetch.return_value = """
    <div class="gs_r gs_or gs_scl">
      <h3 class="gs_rt">Automated queries from bots: not a robot?</h3>
      <div class="gs_a">J Smith - 2019</div>
    </div>
    """

    result = await scraper.search_by_name("Jane Smith")

    assert result.message is None
    assert [p.year for p in result.value.papers] == [2019]


def test_search_url_quotes_author():
    scraper = ScholarScraper(fetcher=AsyncMock())

    url = scraper.search_url("Jane Smith")

    parsed = urlparse(url)
    assert parsed.netloc == "scholar.google.com"
    assert parsed.path == "/scholar"
    query = parse_qs(parsed.query)
    assert query["q"] == ['author:"Jane Smith"']
    assert query["hl"] == ["en"]
    assert query["num"] == ["20"]


@pytest.mark.asyncio
async def test_search_waits_before_requesting(scraper, fetcher):
    fetcher.fetch.return_value = RESULTS_PAGE

    result = await scraper.search_by_name("Jane Smith")

    assert result.ok
    assert len(result.value.papers) == 2
    scraper.sleep.assert_awaited_once()
    delay = scraper.sleep.await_args.args[0]
    assert 1.0 <= delay <= 3.0


@pytest.mark.asyncio
async def test_captcha_short_circuits_to_empty_result(scraper, fetcher):
    fetcher.fetch.return_value = CAPTCHA_PAGE

    result = await scraper.search_by_name("Jane Smith")

    assert result.ok
    assert result.value.papers == []
    assert "CAPTCHA" in result.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        RateLimitError("https://scholar.google.com/scholar"),
        FetchError("https://scholar.google.com/scholar", status=503),
        ValueError("unexpected"),
    ],
)
async def test_search_failures_are_swallowed(scraper, fetcher, error):
    fetcher.fetch.side_effect = error

    result = await scraper.search_by_name("Jane Smith")

    assert result.ok
    assert result.value.papers == []


@pytest.mark.asyncio
async def test_author_profile_pagination(scraper, fetcher):
    fetcher.fetch.return_value = PROFILE_PAGE
    profile_url = "https://scholar.google.com/citations?user=AbC123&hl=en"

    result = await scraper.get_author_profile(profile_url, start=100, page_size=50)

    assert len(result.value.papers) == 2
    requested = urlparse(fetcher.fetch.await_args.args[0])
    query = parse_qs(requested.query)
    assert query["user"] == ["AbC123"]
    assert query["cstart"] == ["100"]
    assert query["pagesize"] == ["50"]


@pytest.mark.asyncio
async def test_author_profile_failure_keeps_profile_url(scraper, fetcher):
    fetcher.fetch.side_effect = FetchError("https://scholar.google.com", status=500)
    profile_url = "https://scholar.google.com/citations?user=AbC123"

    result = await scraper.get_author_profile(profile_url)

    assert result.ok
    assert result.value.papers == []
    assert result.value.profile_url == profile_url
