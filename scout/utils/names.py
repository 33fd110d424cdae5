"""
Heuristics for recognising and comparing personal names.

The person-name check favours precision: short or ambiguous link texts are
rejected rather than turned into bogus professor records.
"""

import re

# Link texts that label a section or navigation item rather than a person
NAV_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^(all\s)?people$",
        r"^faculty$",
        r"^staff$",
        r"^students$",
        r"^professors?$",
        r"^associate\s+professors?$",
        r"^assistant\s+professors?$",
        r"^emerit[ia]\s+professors?$",
        r"^visiting\s+professors?$",
        r"^instructors?$",
        r"^postdocs?$",
        r"^researchers?$",
        r"^visitors?\s*[&+]\s*affiliates?$",
        r"^graduate\s+students?$",
        r"^directory$",
        r"^home$",
        r"^contact$",
        r"^about$",
        r"^back$",
        r"^overview$",
        r"^search$",
        r"^news$",
        r"^events$",
        r"^admissions$",
        r"^programs?$",
        r"^courses?$",
        r"^seminars?$",
        r"^resources?$",
        r"^department",
        r"^administration$",
        r"^leadership$",
    )
]

_LEADING_LETTER = re.compile(r"^[A-Za-zÀ-ÿ]")
_LAST_FIRST = re.compile(r"^[A-Za-zÀ-ÿ'-]+,\s+[A-Za-zÀ-ÿ]")
_CAPITALIZED = re.compile(r"^[A-ZÀ-Ý]")


def is_nav_link(text: str) -> bool:
    """True for navigation phrases and for single words."""
    trimmed = text.strip()
    if any(pattern.search(trimmed) for pattern in NAV_PATTERNS):
        return True
    # Mononyms exist but are far rarer than one-word menu entries
    return " " not in trimmed and "," not in trimmed


def looks_like_person_name(text: str) -> bool:
    """Check whether link or heading text reads like "First Last" or "Last, First"."""
    trimmed = text.strip()
    if len(trimmed) < 4 or len(trimmed) > 80:
        return False
    if is_nav_link(trimmed):
        return False
    if not _LEADING_LETTER.match(trimmed):
        return False

    if _LAST_FIRST.match(trimmed):
        return True
    capitalized = [w for w in trimmed.split() if _CAPITALIZED.match(w)]
    return len(capitalized) >= 2


def normalize_author_name(name: str) -> str:
    """Rewrite "Last, First" as "First Last"; other forms are only trimmed."""
    if "," not in name:
        return name.strip()
    parts = [part.strip() for part in name.split(",")]
    return f"{parts[1]} {parts[0]}".strip()


def name_fragments(name: str, min_length: int = 3) -> list[str]:
    """
    Lower-cased, punctuation-free tokens of a name, at least min_length long.

    "Jane Q. Smith-Jones" gives ["jane", "smithjones"].
    """
    letters_only = "".join(c for c in name.lower() if c.isalpha() or c.isspace())
    return [part for part in letters_only.split() if len(part) >= min_length]
