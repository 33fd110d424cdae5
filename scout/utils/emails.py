"""
Email discovery and selection for profile pages.

Department pages are littered with front-desk and webmaster addresses, so every
address on the page is scored and only a convincingly personal one is kept.
"""

import re
from urllib.parse import unquote

from bs4 import BeautifulSoup
from bs4.element import Comment

from scout.utils.names import name_fragments

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}")

# "jsmith [at] cs [dot] example [dot] edu"
_AT_PATTERN = re.compile(r"\s*[\[(]\s*at\s*[\])]\s*", re.IGNORECASE)
_DOT_PATTERN = re.compile(r"\s*[\[(]\s*dot\s*[\])]\s*", re.IGNORECASE)

GENERIC_PREFIXES = (
    "info",
    "admin",
    "office",
    "webmaster",
    "contact",
    "dept",
    "department",
    "inquiries",
    "enquiries",
    "noreply",
    "no-reply",
    "reception",
    "secretary",
    "frontdesk",
    "general",
    "postmaster",
)
ADMIN_KEYWORDS = ("help", "support")
PLACEHOLDER_DOMAINS = ("example.com", "example.org", "example.edu", "test.com")
_ACADEMIC_DOMAIN = re.compile(r"\.(edu|ac)(\.[a-z]{2})?$")

GENERIC_PENALTY = 100
PLACEHOLDER_PENALTY = 1000
ACADEMIC_BONUS = 5
NAME_FRAGMENT_BONUS = 20

_INVISIBLE_TAGS = {"script", "style", "noscript", "template"}


def deobfuscate(text: str) -> str:
    """Turn "name [at] host [dot] edu" spellings into plain addresses."""
    return _DOT_PATTERN.sub(".", _AT_PATTERN.sub("@", text))


def visible_text(soup: BeautifulSoup) -> str:
    """Concatenate the document's text nodes, skipping scripts and comments."""
    parts = []
    for string in soup.find_all(string=True):
        if isinstance(string, Comment):
            continue
        if string.parent is not None and string.parent.name in _INVISIBLE_TAGS:
            continue
        parts.append(str(string))
    return " ".join(parts)


def collect_email_candidates(soup: BeautifulSoup) -> list[str]:
    """
    Gather mailto targets and email-shaped tokens from the visible text.

    Addresses are lower-cased and deduplicated; first-seen order is kept so
    ties in scoring resolve towards the address that appears first.
    """
    candidates: list[str] = []

    def add(address: str) -> None:
        address = address.strip().strip(".").lower()
        if "@" in address and address not in candidates:
            candidates.append(address)

    for link in soup.select('a[href^="mailto:"]'):
        target = unquote(link.get("href", "")[len("mailto:") :]).split("?")[0]
        add(target)

    for match in EMAIL_PATTERN.findall(deobfuscate(visible_text(soup))):
        add(match)

    return candidates


def score_email(email: str, professor_name: str | None = None) -> int:
    """Score how likely an address is the professor's own mailbox."""
    local, _, domain = email.lower().partition("@")
    score = 0

    if local.startswith(GENERIC_PREFIXES) or any(k in local for k in ADMIN_KEYWORDS):
        score -= GENERIC_PENALTY

    if _ACADEMIC_DOMAIN.search(domain):
        score += ACADEMIC_BONUS

    if professor_name:
        for fragment in name_fragments(professor_name):
            if fragment in local:
                score += NAME_FRAGMENT_BONUS

    if any(domain == d or domain.endswith("." + d) for d in PLACEHOLDER_DOMAINS):
        score -= PLACEHOLDER_PENALTY

    return score


def select_email(
    candidates: list[str], professor_name: str | None = None
) -> str | None:
    """Return the best-scoring candidate, or None unless its score is positive."""
    best: str | None = None
    best_score = 0
    for candidate in candidates:
        score = score_email(candidate, professor_name)
        if score > best_score:
            best, best_score = candidate, score
    return best
