"""
Scraper for individual professor profile pages
"""

import logging
import re
from pathlib import Path

from bs4 import BeautifulSoup
from bs4.element import Tag
from pydantic import ValidationError

from scout.config import load_config
from scout.models import (
    FailureKind,
    LabMember,
    ProfessorProfile,
    Publication,
    PublicationSource,
    ScrapeResult,
)
from scout.utils.emails import collect_email_candidates, select_email
from scout.utils.extraction import (
    clean_text,
    first_match,
    first_text,
    resolve_url,
    select_all,
    select_attr,
    select_text,
)
from scout.utils.fetch import FetchError, PageFetcher, RateLimitError

logger = logging.getLogger(__name__)

MAX_FIELD_LENGTH = 100
MAX_SUMMARY_LENGTH = 2000
MAX_PUBLICATIONS = 20
MAX_PUBLICATION_TITLE = 200

YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")

NAME_EXTRACTORS = [
    select_text("h1.professor-name, h1.page-title, h1.entry-title, h1"),
    select_attr('meta[property="og:title"]', "content"),
]

TITLE_EXTRACTORS = [
    select_text(selector)
    for selector in (
        ".title",
        ".position",
        ".job-title",
        ".rank",
        ".field-field-title",
        ".professor-title",
    )
]

DEPARTMENT_EXTRACTORS = [
    select_text(selector)
    for selector in (".department", ".dept", ".affiliation", ".field-department")
]

PHONE_EXTRACTORS = [
    select_text('a[href^="tel:"]'),
    select_text(".phone"),
    select_text(".telephone"),
    select_text(".field-phone"),
]

OFFICE_EXTRACTORS = [
    select_text(".office"),
    select_text(".office-location"),
    select_text(".location"),
    select_text(".field-office"),
]

IMAGE_EXTRACTORS = [
    select_attr(selector, "src")
    for selector in (
        ".profile-image img",
        ".faculty-photo img",
        ".portrait img",
        ".headshot img",
        ".photo img",
        "img.professor",
        "img.profile-pic",
        ".content img",
    )
]

BIO_EXTRACTORS = [
    select_text(selector)
    for selector in (
        ".biography",
        ".bio",
        ".research-interests",
        ".research-description",
        ".about",
        ".profile-body",
        "#research",
        "#biography",
        ".field-body",
    )
]

MAIN_CONTENT_EXTRACTORS = [
    select_text("main, .content, .main-content, article, #content"),
]

RESEARCH_AREA_GROUPS = [
    select_all(selector)
    for selector in (
        ".research-areas li",
        ".interests li",
        ".research-topics li",
        ".keywords li",
        ".tags a",
    )
]

PUBLICATION_GROUPS = [
    select_all(selector, limit=MAX_PUBLICATIONS)
    for selector in (
        ".publications li",
        ".pub-list li",
        ".bibliography li",
        "#publications li",
        ".publication-item",
    )
]

LAB_MEMBER_GROUPS = [
    select_all(selector)
    for selector in (
        ".lab-members li",
        ".people-list li",
        ".team-member",
        ".group-member",
        "#people li",
        "#lab-members li",
    )
]


def _short(text: str) -> bool:
    return len(text) < MAX_FIELD_LENGTH


def _parse_research_area(element: Tag) -> str | None:
    text = clean_text(element)
    return text if text and _short(text) else None


def _parse_publication(element: Tag, page_url: str) -> Publication | None:
    """Turn one publication list item into a record, or None if implausible."""
    title = first_text(element, ["a, .title, strong, em"]) or clean_text(element)
    if not 10 < len(title) < 300:
        return None

    link = element.find("a")
    url = resolve_url(link.get("href"), page_url) if link is not None else ""
    year_match = YEAR_PATTERN.search(clean_text(element))

    try:
        return Publication(
            title=title[:MAX_PUBLICATION_TITLE],
            year=int(year_match.group()) if year_match else None,
            url=url or None,
            source=PublicationSource.FACULTY_PAGE,
        )
    except ValidationError as e:
        logger.warning(f"Skipping publication entry on {page_url}: {e}")
        return None


def _parse_lab_member(element: Tag, page_url: str) -> LabMember | None:
    name = first_text(element, ["a, .name, strong"]) or clean_text(element)
    if not 2 < len(name) < 80:
        return None

    mailto = element.select_one('a[href^="mailto:"]')
    email = mailto.get("href", "")[len("mailto:") :].split("?")[0] if mailto else ""
    link = element.select_one('a[href]:not([href^="mailto:"])')
    url = resolve_url(link.get("href"), page_url) if link is not None else ""

    return LabMember(
        name=name,
        role=first_text(element, [".role, .position, .title"]),
        email=email.strip() or None,
        url=url or None,
    )


def _first_group(root: Tag, groups, parse) -> list:
    """Parse the first selector group that yields at least one record."""
    for group in groups:
        records = [r for r in (parse(element) for element in group(root)) if r]
        if records:
            return records
    return []


def parse_profile(html: str, page_url: str) -> ProfessorProfile:
    """
    Extract a best-effort profile from arbitrary profile page markup.

    Every field is optional except website_url, which is always page_url.
    """
    soup = BeautifulSoup(html, "html.parser")

    name = first_match(soup, NAME_EXTRACTORS)

    summary = first_match(soup, BIO_EXTRACTORS, accept=lambda t: len(t) > 50)
    if summary is None:
        summary = first_match(
            soup, MAIN_CONTENT_EXTRACTORS, accept=lambda t: len(t) > 100
        )

    image_src = first_match(soup, IMAGE_EXTRACTORS)

    return ProfessorProfile(
        name=name,
        title=first_match(soup, TITLE_EXTRACTORS, accept=_short),
        department=first_match(soup, DEPARTMENT_EXTRACTORS, accept=_short),
        email=select_email(collect_email_candidates(soup), professor_name=name),
        phone=first_match(soup, PHONE_EXTRACTORS, accept=_short),
        office=first_match(soup, OFFICE_EXTRACTORS, accept=_short),
        image_url=resolve_url(image_src, page_url) or None,
        research_summary=summary[:MAX_SUMMARY_LENGTH] if summary else None,
        research_areas=_first_group(
            soup, RESEARCH_AREA_GROUPS, _parse_research_area
        ),
        publications=_first_group(
            soup, PUBLICATION_GROUPS, lambda el: _parse_publication(el, page_url)
        ),
        lab_members=_first_group(
            soup, LAB_MEMBER_GROUPS, lambda el: _parse_lab_member(el, page_url)
        ),
        website_url=page_url,
    )


class ProfessorScraper:
    """Enriches a professor record from their profile page"""

    def __init__(
        self,
        config_path: Path | None = None,
        fetcher: PageFetcher | None = None,
    ):
        config = load_config(config_path)
        self.config = config["sources"]["professor"]
        self.fetcher = fetcher or PageFetcher.from_config(config["fetch"], self.config)

    async def scrape(self, url: str) -> ScrapeResult[ProfessorProfile]:
        """Fetch and parse a profile page; fetch failures become failed results."""
        logger.info(f"Scraping professor profile: {url}")
        try:
            html = await self.fetcher.fetch(url)
        except RateLimitError as e:
            logger.error(f"Rate limited while fetching {url}: {e}")
            return ScrapeResult.fail(
                FailureKind.RATE_LIMITED, str(e), url=url, status=e.status
            )
        except FetchError as e:
            logger.error(f"Error fetching professor profile {url}: {e}")
            return ScrapeResult.fail(
                FailureKind.TRANSPORT, str(e), url=url, status=e.status
            )

        profile = parse_profile(html, url)
        logger.info(f"Scraped professor profile: {profile.name or 'unknown'}")
        return ScrapeResult.success(profile)
