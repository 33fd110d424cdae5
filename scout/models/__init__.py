"""
Models module for Faculty Scout.
"""

# Import models to make them available from scout.models
from scout.models.records import (
    DepartmentListing,
    EnrichedProfessor,
    LabMember,
    PaperSearchResult,
    ProfessorLink,
    ProfessorProfile,
    Publication,
    PublicationSource,
)
from scout.models.result import (
    FailureKind,
    ScrapeError,
    ScrapeFailure,
    ScrapeResult,
)

__all__ = [
    "DepartmentListing",
    "EnrichedProfessor",
    "FailureKind",
    "LabMember",
    "PaperSearchResult",
    "ProfessorLink",
    "ProfessorProfile",
    "Publication",
    "PublicationSource",
    "ScrapeError",
    "ScrapeFailure",
    "ScrapeResult",
]
