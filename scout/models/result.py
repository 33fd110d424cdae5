"""
Result type shared by every scraper operation.

Department and profile scrapes may return a failure (a page that cannot be
fetched is worth showing to the user). Bibliographic searches always return a
successful, possibly empty, result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """
    Categories of scrape failures.

    TRANSPORT: DNS, connection, timeout or non-2xx response
    RATE_LIMITED: 429 responses persisted after all retries
    CAPTCHA: The source answered with a bot challenge page
    NOT_FOUND: Every source was tried and none produced data
    """

    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    CAPTCHA = "captcha"
    NOT_FOUND = "not_found"


@dataclass
class ScrapeFailure:
    """Structured description of why an operation produced no value."""

    kind: FailureKind
    message: str
    url: str | None = None
    status: int | None = None


class ScrapeError(Exception):
    """Raised by ScrapeResult.unwrap() on a failed result."""

    def __init__(self, failure: ScrapeFailure):
        super().__init__(failure.message)
        self.failure = failure


@dataclass
class ScrapeResult(Generic[T]):
    """Either a value or a failure, plus an optional user-facing message."""

    value: T | None = None
    failure: ScrapeFailure | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T, message: str | None = None) -> "ScrapeResult[T]":
        return cls(value=value, message=message)

    @classmethod
    def fail(
        cls,
        kind: FailureKind,
        message: str,
        url: str | None = None,
        status: int | None = None,
    ) -> "ScrapeResult[T]":
        return cls(
            failure=ScrapeFailure(kind=kind, message=message, url=url, status=status),
            message=message,
        )

    def unwrap(self) -> T:
        """Return the value or raise ScrapeError with the failure attached."""
        if self.failure is not None:
            raise ScrapeError(self.failure)
        return self.value  # type: ignore[return-value]
