"""
Client for the Semantic Scholar Graph API paper search.

Name searches are cached for the process lifetime (stale after a fixed TTL) so
repeated lookups do not burn the shared rate limit. Results are filtered to
papers the named person actually authored.
"""

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from scout.config import load_config
from scout.models import PaperSearchResult, Publication, PublicationSource, ScrapeResult
from scout.settings import get_settings
from scout.utils.cache import TTLCache
from scout.utils.fetch import FetchError, PageFetcher, RateLimitError
from scout.utils.names import name_fragments, normalize_author_name

logger = logging.getLogger(__name__)

SEARCH_FIELDS = "title,authors,year,url,citationCount,abstract,externalIds"

_shared_caches: dict[float, TTLCache] = {}


def shared_cache(ttl: float) -> TTLCache:
    """Return the process-wide search cache for ttl, creating it on first use."""
    if ttl not in _shared_caches:
        _shared_caches[ttl] = TTLCache(ttl)
    return _shared_caches[ttl]


def is_authored_by(paper: dict[str, Any], fragments: list[str]) -> bool:
    """
    True if some author's name contains every name fragment.

    Matching is by substring on the lower-cased author name, so initials never
    match: "J. Smith" is not accepted for the fragments of "Jane Smith".
    """
    for author in paper.get("authors") or []:
        author_name = (author.get("name") or "").lower()
        if all(fragment in author_name for fragment in fragments):
            return True
    return False


def paper_to_publication(paper: dict[str, Any]) -> Publication:
    """Map one API paper object to a Publication, preferring DOI links."""
    doi = (paper.get("externalIds") or {}).get("DOI")
    authors = [a.get("name") for a in paper.get("authors") or [] if a.get("name")]
    return Publication(
        title=paper["title"],
        authors=", ".join(authors) or None,
        year=paper.get("year") or None,
        url=f"https://doi.org/{doi}" if doi else paper.get("url") or None,
        cited_by=paper.get("citationCount"),
        abstract=paper.get("abstract") or None,
        source=PublicationSource.SEMANTIC_SCHOLAR,
    )


class SemanticScholarScraper:
    """Finds an author's papers through the Semantic Scholar API"""

    def __init__(
        self,
        config_path: Path | None = None,
        fetcher: PageFetcher | None = None,
        cache: TTLCache | None = None,
        api_key: str | None = None,
    ):
        """
        Initialize the scraper with configuration

        Args:
            config_path: Path to the configuration file
            fetcher: Optional pre-built fetcher
            cache: Search cache (defaults to the process-wide one)
            api_key: API key sent as ``x-api-key``; read from settings if omitted
        """
        config = load_config(config_path)
        self.config = config["sources"]["semantic_scholar"]
        self.api_base = self.config["api_base"].rstrip("/")
        self.search_limit = self.config["search_limit"]
        self.max_papers = self.config["max_papers"]
        if cache is None:
            cache = shared_cache(self.config["cache_ttl"])
        self.cache = cache

        if fetcher is None:
            api_key = api_key or get_settings().semantic_scholar_api_key
            extra_headers = {"x-api-key": api_key} if api_key else None
            fetcher = PageFetcher.from_config(
                config["fetch"], self.config, extra_headers=extra_headers
            )
        self.fetcher = fetcher

    def search_url(self, name: str) -> str:
        query = urlencode(
            {"query": f'"{name}"', "fields": SEARCH_FIELDS, "limit": self.search_limit}
        )
        return f"{self.api_base}/paper/search?{query}"

    async def _fetch_payload(self, url: str) -> dict[str, Any] | None:
        """Fetch a search payload; rate limiting and HTTP errors give None."""
        try:
            return await self.fetcher.fetch_json(url)
        except RateLimitError:
            logger.warning("Semantic Scholar rate limit exceeded after retries")
        except FetchError as e:
            logger.warning(f"Semantic Scholar request failed: {e}")
        return None

    def _collect_papers(
        self, payload: dict[str, Any], fragments: list[str]
    ) -> list[Publication]:
        papers: list[Publication] = []
        for paper in payload.get("data") or []:
            if not paper.get("title") or not is_authored_by(paper, fragments):
                continue
            try:
                papers.append(paper_to_publication(paper))
            except ValidationError as e:
                logger.warning(f"Skipping paper {paper.get('paperId')}: {e}")
                continue
            if len(papers) >= self.max_papers:
                break
        return papers

    async def search_by_name(self, name: str) -> ScrapeResult[PaperSearchResult]:
        """
        Search for papers authored by name.

        Args:
            name: Author name, either "First Last" or "Last, First"

        Returns:
            Always a successful result, possibly with no papers
        """
        cache_key = name.lower().strip()
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(
                f"Semantic Scholar cache hit for: {name} ({len(cached.papers)} papers)"
            )
            return ScrapeResult.success(cached)

        logger.info(f"Searching Semantic Scholar for author: {name}")
        normalized = normalize_author_name(name)
        fragments = name_fragments(normalized)

        try:
            payload = await self._fetch_payload(self.search_url(normalized))
            if payload is None:
                # Failed lookups are not cached so the next call tries again
                return ScrapeResult.success(PaperSearchResult())
            result = PaperSearchResult(papers=self._collect_papers(payload, fragments))
        except Exception as e:
            logger.warning(f"Semantic Scholar search failed: {e}")
            return ScrapeResult.success(PaperSearchResult())

        self.cache.set(cache_key, result)

        logger.info(f"Found {len(result.papers)} papers on Semantic Scholar for {name}")
        return ScrapeResult.success(result)
