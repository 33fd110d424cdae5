"""
Scraper for faculty directory (department listing) pages
"""

import logging
from pathlib import Path

from bs4 import BeautifulSoup
from bs4.element import Tag

from scout.config import load_config
from scout.models import (
    DepartmentListing,
    FailureKind,
    ProfessorLink,
    ScrapeResult,
)
from scout.utils.extraction import clean_text, first_text, resolve_url
from scout.utils.fetch import FetchError, PageFetcher, RateLimitError
from scout.utils.names import looks_like_person_name

logger = logging.getLogger(__name__)

# Container selectors, most specific layouts first: card grids, tables, lists,
# then generic content blocks
LISTING_SELECTORS = [
    ".faculty-member",
    ".faculty-listing .faculty",
    ".people-listing .person",
    ".directory-listing .listing-item",
    ".views-row",
    ".faculty-card",
    ".profile-card",
    ".staff-member",
    ".person-card",
    "table.faculty tbody tr",
    ".faculty-list li",
    ".people-list li",
    ".field-content",
    ".content-area .item",
]

# A group needs this many matches before it is trusted as the listing
MIN_GROUP_SIZE = 3

NAME_SELECTORS = ["h2, h3, h4, .name, .title"]
TITLE_SELECTORS = [".position, .job-title, .rank, .field-title"]
DEPARTMENT_SELECTORS = [".department, .dept, .affiliation"]

PROFILE_PATH_SEGMENTS = ("/people/", "/faculty/", "/profile/", "/directory/", "/staff/")


def _parse_card(element: Tag, page_url: str) -> ProfessorLink | None:
    """Build a candidate from one listing element, or None if it is not a person."""
    link = element.find("a")
    name = clean_text(link) or first_text(element, NAME_SELECTORS) or ""
    if not name or not looks_like_person_name(name):
        return None

    href = link.get("href", "") if link is not None else ""
    image = element.find("img")
    image_url = resolve_url(image.get("src"), page_url) if image is not None else ""

    return ProfessorLink(
        name=name,
        url=resolve_url(href, page_url),
        title=first_text(element, TITLE_SELECTORS),
        department=first_text(element, DEPARTMENT_SELECTORS),
        image_url=image_url or None,
    )


def _parse_profile_links(soup: BeautifulSoup, page_url: str) -> list[ProfessorLink]:
    """Fallback: anchors pointing at profile-like paths, deduplicated by URL."""
    links: list[ProfessorLink] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a"):
        href = anchor.get("href", "")
        if not any(segment in href for segment in PROFILE_PATH_SEGMENTS):
            continue
        text = clean_text(anchor)
        if not looks_like_person_name(text):
            continue

        url = resolve_url(href, page_url)
        if url in seen:
            continue
        seen.add(url)
        links.append(ProfessorLink(name=text, url=url))

    return links


def parse_listing(html: str, page_url: str) -> DepartmentListing:
    """
    Extract professor candidates from a directory page.

    The first selector group with at least three matches is committed and no
    other group is consulted, even when none of its elements reads as a name.
    Only when no group qualifies are profile-looking anchors used instead.

    Args:
        html: Raw page markup
        page_url: URL the page was fetched from, used to resolve relative links

    Returns:
        DepartmentListing with candidates in document order
    """
    soup = BeautifulSoup(html, "html.parser")

    department_name = clean_text(soup.find("h1")) or clean_text(soup.find("title"))

    professor_links: list[ProfessorLink] = []
    committed = False
    for selector in LISTING_SELECTORS:
        elements = soup.select(selector)
        if len(elements) < MIN_GROUP_SIZE:
            continue

        logger.debug(f"Using listing selector {selector!r} ({len(elements)} elements)")
        for element in elements:
            candidate = _parse_card(element, page_url)
            if candidate is not None:
                professor_links.append(candidate)
        committed = True
        break

    if not committed:
        professor_links = _parse_profile_links(soup, page_url)

    return DepartmentListing(
        department_name=department_name or None,
        professor_links=professor_links,
    )


class DepartmentScraper:
    """Finds professor candidates on a department's faculty directory page"""

    def __init__(
        self,
        config_path: Path | None = None,
        fetcher: PageFetcher | None = None,
    ):
        """
        Initialize the scraper with configuration

        Args:
            config_path: Path to the configuration file
            fetcher: Optional pre-built fetcher (tests inject one)
        """
        config = load_config(config_path)
        self.config = config["sources"]["department"]
        self.fetcher = fetcher or PageFetcher.from_config(config["fetch"], self.config)

    async def scrape(self, url: str) -> ScrapeResult[DepartmentListing]:
        """Fetch and parse a listing page; fetch failures become failed results."""
        logger.info(f"Scraping department page: {url}")
        try:
            html = await self.fetcher.fetch(url)
        except RateLimitError as e:
            logger.error(f"Rate limited while fetching {url}: {e}")
            return ScrapeResult.fail(
                FailureKind.RATE_LIMITED, str(e), url=url, status=e.status
            )
        except FetchError as e:
            logger.error(f"Error fetching department page {url}: {e}")
            return ScrapeResult.fail(
                FailureKind.TRANSPORT, str(e), url=url, status=e.status
            )

        listing = parse_listing(html, url)
        logger.info(f"Found {len(listing.professor_links)} professor links")
        return ScrapeResult.success(listing)
