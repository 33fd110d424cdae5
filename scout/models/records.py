"""
Record models for Faculty Scout.

This module contains the data models returned by the scrapers. Every record is
a transient value: scrapers build and return them, callers own them afterwards.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class PublicationSource(str, Enum):
    """
    Origin tag attached to every publication.

    FACULTY_PAGE: Listed on the professor's own profile page
    GOOGLE_SCHOLAR: Scraped from a Google Scholar results or profile page
    SEMANTIC_SCHOLAR: Returned by the Semantic Scholar Graph API
    """

    FACULTY_PAGE = "Faculty page"
    GOOGLE_SCHOLAR = "Google Scholar"
    SEMANTIC_SCHOLAR = "Semantic Scholar"


class Publication(BaseModel):
    """Represents a publication found for a professor"""

    title: str
    authors: str | None = None
    year: int | None = None
    url: str | None = None
    cited_by: int | None = Field(default=None, ge=0)
    abstract: str | None = None
    source: PublicationSource

    @field_validator("year")
    def validate_year(cls, v):  # noqa: N805
        """Validate year is a four-digit year"""
        if v is not None and not 1000 <= v <= 9999:
            raise ValueError(f"Year {v} is not a four-digit year")
        return v


class LabMember(BaseModel):
    """A person listed on a professor's lab or team section"""

    name: str
    role: str | None = None
    email: str | None = None
    url: str | None = None


class ProfessorLink(BaseModel):
    """A candidate professor found on a department listing page"""

    name: str = Field(min_length=1)
    url: str = ""
    title: str | None = None
    department: str | None = None
    image_url: str | None = None


class DepartmentListing(BaseModel):
    """Result of scraping a faculty directory page"""

    department_name: str | None = None
    professor_links: list[ProfessorLink] = Field(default_factory=list)


class ProfessorProfile(BaseModel):
    """Best-effort structured view of a single profile page"""

    name: str | None = None
    title: str | None = None
    department: str | None = None
    email: str | None = None
    phone: str | None = None
    office: str | None = None
    image_url: str | None = None
    research_summary: str | None = Field(default=None, max_length=2000)
    research_areas: list[str] = Field(default_factory=list)
    publications: list[Publication] = Field(default_factory=list)
    lab_members: list[LabMember] = Field(default_factory=list)
    website_url: str


class PaperSearchResult(BaseModel):
    """Papers found for an author by one bibliographic source"""

    papers: list[Publication] = Field(default_factory=list)
    profile_url: str | None = None


class EnrichedProfessor(BaseModel):
    """A listing candidate joined with its profile and discovered papers"""

    link: ProfessorLink
    profile: ProfessorProfile | None = None
    publications: list[Publication] = Field(default_factory=list)
    scholar_profile_url: str | None = None
    errors: list[str] = Field(default_factory=list)
