"""
Scraper for Google Scholar search results and author profiles.

Scholar has no public API and blocks aggressive clients, so every request is
preceded by a randomized politeness delay and a CAPTCHA page is treated as an
empty result. Failures never propagate: callers always get a (possibly empty)
successful result.
"""

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable
from pathlib import Path
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from bs4 import BeautifulSoup
from bs4.element import Tag
from pydantic import ValidationError

from scout.config import load_config
from scout.models import PaperSearchResult, Publication, PublicationSource, ScrapeResult
from scout.utils.extraction import clean_text, resolve_url
from scout.utils.fetch import PageFetcher

logger = logging.getLogger(__name__)

CAPTCHA_SELECTORS = [
    "#gs_captcha_f",
    "#captcha-form",
    "#recaptcha",
    "form[action*='sorry']",
]
CAPTCHA_PHRASES = [
    "unusual traffic",
    "please show you're not a robot",
]
RESULT_BLOCK_SELECTOR = ".gs_r, .gsc_a_tr"

CAPTCHA_MESSAGE = "Google Scholar answered with a CAPTCHA challenge"

YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
CITED_BY_PATTERN = re.compile(r"Cited by (\d+)")
BYLINE_SEPARATOR = re.compile(r"\s+-\s+")


def is_captcha_page(html: str) -> bool:
    """
    Detect Scholar's bot-challenge page by its form or its wording.

    The wording check is skipped when the page has result blocks, since titles
    and snippets can contain the same phrases.
    """
    soup = BeautifulSoup(html, "html.parser")
    if any(soup.select_one(selector) for selector in CAPTCHA_SELECTORS):
        return True
    if soup.select_one(RESULT_BLOCK_SELECTOR):
        return False
    text = soup.get_text(" ").lower()
    return any(phrase in text for phrase in CAPTCHA_PHRASES)


def _to_int(text: str) -> int | None:
    digits = re.sub(r"\D", "", text)
    return int(digits) if digits else None


def _parse_result_block(block: Tag, base_url: str) -> Publication | None:
    title_link = block.select_one(".gs_rt a")
    # Citation-only entries have no link, just a [CITATION] marker and text
    title = clean_text(title_link) or clean_text(block.select_one(".gs_rt"))
    if not title:
        return None

    byline = clean_text(block.select_one(".gs_a"))
    authors = BYLINE_SEPARATOR.split(byline)[0].strip() if byline else ""
    year_match = YEAR_PATTERN.search(byline)

    cited_by = None
    for link in block.select(".gs_fl a"):
        match = CITED_BY_PATTERN.search(clean_text(link))
        if match:
            cited_by = int(match.group(1))
            break

    href = title_link.get("href") if title_link is not None else None
    return Publication(
        title=title,
        authors=authors or None,
        year=int(year_match.group()) if year_match else None,
        url=resolve_url(href, base_url) or None,
        cited_by=cited_by,
        abstract=clean_text(block.select_one(".gs_rs")) or None,
        source=PublicationSource.GOOGLE_SCHOLAR,
    )


def parse_search_results(
    html: str, base_url: str = "https://scholar.google.com"
) -> PaperSearchResult:
    """Extract papers and the author profile link from a results page."""
    soup = BeautifulSoup(html, "html.parser")
    papers = []
    for block in soup.select(".gs_r.gs_or.gs_scl"):
        try:
            paper = _parse_result_block(block, base_url)
        except ValidationError as e:
            logger.warning(f"Skipping malformed Scholar result: {e}")
            continue
        if paper is not None:
            papers.append(paper)

    profile_link = soup.select_one('a[href*="/citations?user="]')
    profile_url = (
        resolve_url(profile_link.get("href"), base_url) if profile_link else None
    )
    return PaperSearchResult(papers=papers, profile_url=profile_url or None)


def parse_author_profile(html: str, profile_url: str) -> PaperSearchResult:
    """Extract the publication table of a Scholar author profile."""
    soup = BeautifulSoup(html, "html.parser")
    papers = []
    for row in soup.select("#gsc_a_b .gsc_a_tr"):
        title_link = row.select_one(".gsc_a_at")
        title = clean_text(title_link)
        if not title:
            continue

        href = title_link.get("href")
        try:
            papers.append(
                Publication(
                    title=title,
                    authors=clean_text(row.select_one(".gs_gray")) or None,
                    year=_to_int(clean_text(row.select_one(".gsc_a_y span"))),
                    url=resolve_url(href, profile_url) or None,
                    cited_by=_to_int(clean_text(row.select_one(".gsc_a_ac"))),
                    source=PublicationSource.GOOGLE_SCHOLAR,
                )
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed Scholar profile row: {e}")

    return PaperSearchResult(papers=papers, profile_url=profile_url)


def with_query_params(url: str, **params) -> str:
    """Return url with the given query parameters set or replaced."""
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query))
    query.update({key: str(value) for key, value in params.items()})
    return urlunparse(parsed._replace(query=urlencode(query)))


class ScholarScraper:
    """Searches Google Scholar for an author's papers"""

    def __init__(
        self,
        config_path: Path | None = None,
        fetcher: PageFetcher | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the scraper with configuration

        Args:
            config_path: Path to the configuration file
            fetcher: Optional pre-built fetcher
            sleep: Coroutine used for politeness delays (default asyncio.sleep)
            rng: Random source for delay lengths
        """
        config = load_config(config_path)
        self.config = config["sources"]["scholar"]
        self.base_url = self.config["base_url"].rstrip("/")
        self.results_per_page = self.config["results_per_page"]
        self.profile_page_size = self.config["profile_page_size"]
        self.delay_min = self.config["request_delay_min"]
        self.delay_max = self.config["request_delay_max"]
        self.sleep = sleep or asyncio.sleep
        self.rng = rng or random.Random()
        self.fetcher = fetcher or PageFetcher.from_config(
            config["fetch"], self.config, sleep=self.sleep, rng=self.rng
        )

    def search_url(self, name: str) -> str:
        query = urlencode(
            {"q": f'author:"{name}"', "hl": "en", "num": self.results_per_page}
        )
        return f"{self.base_url}/scholar?{query}"

    async def _polite_fetch(self, url: str) -> str:
        delay = self.rng.uniform(self.delay_min, self.delay_max)
        logger.debug(f"Waiting {delay:.2f}s before requesting {url}")
        await self.sleep(delay)
        return await self.fetcher.fetch(url)

    async def search_by_name(self, name: str) -> ScrapeResult[PaperSearchResult]:
        """
        Search Scholar for papers authored by name.

        Returns:
            Always a successful result; empty when Scholar blocks or fails
        """
        logger.info(f"Searching Google Scholar for: {name}")
        try:
            html = await self._polite_fetch(self.search_url(name))
            if is_captcha_page(html):
                logger.warning(f"{CAPTCHA_MESSAGE} while searching for {name}")
                return ScrapeResult.success(
                    PaperSearchResult(), message=CAPTCHA_MESSAGE
                )
            result = parse_search_results(html, self.base_url)
        except Exception as e:
            logger.warning(f"Google Scholar search failed (may be rate-limited): {e}")
            return ScrapeResult.success(PaperSearchResult())

        logger.info(f"Found {len(result.papers)} papers for {name}")
        return ScrapeResult.success(result)

    async def get_author_profile(
        self,
        profile_url: str,
        start: int = 0,
        page_size: int | None = None,
    ) -> ScrapeResult[PaperSearchResult]:
        """
        Fetch one page of an author profile's publication table.

        Args:
            profile_url: Scholar profile URL (``/citations?user=...``)
            start: Offset of the first row (Scholar's ``cstart``)
            page_size: Rows per page (Scholar's ``pagesize``)
        """
        logger.info(f"Fetching Scholar profile: {profile_url}")
        url = with_query_params(
            profile_url,
            cstart=start,
            pagesize=page_size or self.profile_page_size,
        )
        try:
            html = await self._polite_fetch(url)
            if is_captcha_page(html):
                logger.warning(f"{CAPTCHA_MESSAGE} while fetching {profile_url}")
                return ScrapeResult.success(
                    PaperSearchResult(profile_url=profile_url), message=CAPTCHA_MESSAGE
                )
            result = parse_author_profile(html, profile_url)
        except Exception as e:
            logger.warning(f"Scholar profile fetch failed: {e}")
            return ScrapeResult.success(PaperSearchResult(profile_url=profile_url))

        logger.info(f"Found {len(result.papers)} papers on profile {profile_url}")
        return ScrapeResult.success(result)
