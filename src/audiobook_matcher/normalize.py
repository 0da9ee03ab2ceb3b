"""Title and author canonicalization for comparison and search queries."""

import re

from loguru import logger

log = logger.bind(stage="normalize")

_WHITESPACE = re.compile(r"\s+")
_NUMBER = re.compile(r"\d+")


def normalize_title(title: str | None) -> str:
    """Lowercase, drop punctuation, collapse whitespace.

    "The Fellowship of the Ring (Unabridged)" -> "the fellowship of the ring unabridged"
    """
    if not title:
        return ""
    s = re.sub(r"[^\w\s]", "", title.lower())
    return _WHITESPACE.sub(" ", s).strip()


def normalize_author(author: str | None) -> str:
    """Lowercase author name with punctuation turned into word breaks.

    Apostrophes are dropped so "O'Brien" and "OBrien" compare equal; other
    punctuation (periods, hyphens) becomes a space so "J.K. Rowling" and
    "J. K. Rowling" both normalize to "j k rowling".
    """
    if not author:
        return ""
    s = re.sub(r"['’]", "", author.lower())
    s = re.sub(r"[^\w\s]", " ", s)
    return _WHITESPACE.sub(" ", s).strip()


def clean_search_term(term: str | None) -> str:
    """Prepare free text for a catalog keyword query.

    Removes parenthetical content such as "(Unabridged)" and replaces special
    characters (except apostrophes and hyphens) with spaces. Case is kept.
    """
    if not term:
        return ""
    s = re.sub(r"\(.*?\)", "", term)
    s = re.sub(r"[^\w\s'-]", " ", s)
    cleaned = _WHITESPACE.sub(" ", s).strip()
    if cleaned != term:
        log.debug(f"clean_search_term: {term!r} -> {cleaned!r}")
    return cleaned


def first_number(normalized: str) -> str | None:
    """First run of digits in an already-normalized title, or None."""
    match = _NUMBER.search(normalized)
    return match.group(0) if match else None


def significant_words(normalized: str, min_length: int = 3) -> list[str]:
    """Words of at least min_length characters."""
    return [w for w in normalized.split() if len(w) >= min_length]
