# text_utils.py

import re
import unicodedata
from typing import Iterable, List, Optional


def slugify(text: str, max_length: int = 200, fallback: str = "post") -> str:
    """
    Convert text to a URL-friendly slug.

    Accented characters are folded to ASCII, everything that is not a letter
    or digit becomes a single hyphen. Text with no usable characters yields
    ``fallback`` so a slug is never empty.
    """
    text = unicodedata.normalize("NFKD", text or "")
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")

    if len(text) > max_length:
        text = text[:max_length].rsplit("-", 1)[0] or text[:max_length]

    return text or fallback


def suffixed_slug(base: str, n: int) -> str:
    """``base`` for the first claim, ``base-2``, ``base-3``... afterwards."""
    return base if n <= 1 else f"{base}-{n}"


def next_free_slug(base: str, taken: Iterable[str]) -> str:
    """Lowest-numbered suffix of ``base`` not present in ``taken``."""
    taken = set(taken)
    n = 1
    while suffixed_slug(base, n) in taken:
        n += 1
    return suffixed_slug(base, n)


def derive_excerpt(content: str, length: int = 150) -> str:
    # Plain character cut, no ellipsis.
    return (content or "")[:length]


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Trim tags, drop blanks and duplicates; first spelling wins."""
    seen = set()
    result = []
    for tag in tags or []:
        tag = (tag or "").strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def escape_like(text: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return (
        text.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )
