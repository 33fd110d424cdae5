"""
Publication discovery across bibliographic sources.

Semantic Scholar is asked first because its API is cheap and structured.
Google Scholar is only scraped when that produced nothing.
"""

import logging
from pathlib import Path

from scout.models import FailureKind, PaperSearchResult, ScrapeResult
from scout.scrapers.scholar import ScholarScraper
from scout.scrapers.semantic_scholar import SemanticScholarScraper

logger = logging.getLogger(__name__)

NO_PAPERS_MESSAGE = "Could not find papers. The source may be rate-limiting requests."


class PublicationDiscovery:
    """Finds an author's publications, falling back from one source to the next"""

    def __init__(
        self,
        config_path: Path | None = None,
        semantic_scholar: SemanticScholarScraper | None = None,
        scholar: ScholarScraper | None = None,
    ):
        self.semantic_scholar = semantic_scholar or SemanticScholarScraper(config_path)
        self.scholar = scholar or ScholarScraper(config_path)

    async def find_publications(self, name: str) -> ScrapeResult[PaperSearchResult]:
        """
        Find publications for an author name.

        Returns:
            The first source's result that has papers. If the fallback source
            raised, a NOT_FOUND failure; if it found nothing, an empty successful
            result carrying a user-facing message.
        """
        try:
            result = await self.semantic_scholar.search_by_name(name)
            if result.ok and result.value is not None and result.value.papers:
                return result
        except Exception as e:
            logger.warning(f"Semantic Scholar failed, trying Google Scholar: {e}")

        try:
            result = await self.scholar.search_by_name(name)
        except Exception as e:
            logger.error(f"All paper search methods failed for {name}: {e}")
            return ScrapeResult.fail(FailureKind.NOT_FOUND, NO_PAPERS_MESSAGE)

        if not result.ok or result.value is None or not result.value.papers:
            value = result.value if result.value is not None else PaperSearchResult()
            return ScrapeResult.success(value, message=NO_PAPERS_MESSAGE)
        return result
