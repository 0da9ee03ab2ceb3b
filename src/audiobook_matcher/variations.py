"""Alternate spellings of an author name for retrying failed author lookups."""

import re

_SUFFIX = re.compile(r" (Jr\.|Sr\.)")


def author_variations(name: str) -> list[str]:
    """Spelling variants of name, original first, without duplicates.

    "J.K. Rowling"        -> ["J.K. Rowling", "J. K. Rowling", "JK Rowling"]
    "George R. R. Martin" -> [..., "George Martin"]
    "Harry Turtledove Jr." -> [..., "Harry Turtledove"]
    """
    variations = [name]

    if "." in name:
        variations.append(re.sub(r"\s+", " ", name.replace(".", ". ")).strip())
        variations.append(re.sub(r"\s+", " ", name.replace(".", "")).strip())

    parts = name.split()
    if len(parts) > 2:
        variations.append(f"{parts[0]} {parts[-1]}")

    if _SUFFIX.search(name):
        variations.append(_SUFFIX.sub("", name, count=1))

    return list(dict.fromkeys(v for v in variations if v))
