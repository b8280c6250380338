# =============================================================================
# komfort_core/catalog/slugs.py
# URL slug generation and validation for categories
# =============================================================================

from __future__ import annotations
import re
from typing import Iterable, Optional, Tuple

from komfort_core.errors import ValidationError

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

TRANSLIT = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "kh", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "shch",
    "ъ": "", "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def transliterate(text: str) -> str:
    return "".join(TRANSLIT.get(ch, ch) for ch in text.lower())


def generate_slug(title: str) -> str:
    """
    Build an ASCII slug from a (usually Cyrillic) title.

    >>> generate_slug("Мягкая мебель")
    'myagkaya-mebel'
    """
    if not title:
        return ""
    slug = _NON_SLUG.sub("-", transliterate(title.strip()))
    return slug.strip("-")


def clean_slug(slug: str) -> str:
    """Normalize a user-entered slug to the slug alphabet."""
    return generate_slug(slug)


def is_valid_slug(slug: Optional[str]) -> bool:
    return bool(slug) and SLUG_PATTERN.match(slug) is not None


def ensure_slug(
    slug: str,
    taken: Iterable[Tuple[object, str]],
    exclude_id: Optional[object] = None,
) -> str:
    """
    Validate a slug against the pattern and the slugs already in use.

    Args:
        slug: Candidate slug
        taken: (id, slug) pairs of existing categories
        exclude_id: Id of the category being edited

    Raises:
        ValidationError: If the slug is malformed or used by another category
    """
    if not is_valid_slug(slug):
        raise ValidationError(
            "Slug may contain only lowercase latin letters, digits and single hyphens",
            field="slug",
            value=slug,
        )
    for other_id, other_slug in taken:
        if other_slug == slug and (exclude_id is None or other_id != exclude_id):
            raise ValidationError(
                f"Slug '{slug}' is already used by another category",
                field="slug",
                value=slug,
            )
    return slug
