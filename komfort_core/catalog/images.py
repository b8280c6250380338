# =============================================================================
# komfort_core/catalog/images.py
# Image reference normalization for products and categories
# =============================================================================
"""
Product images end up in the database in many shapes: JSON text, Postgres
array literals, absolute URLs copied from other sites, doubled "assets/"
prefixes and inline base64 payloads. Everything is reduced to one canonical
relative reference ("assets/...") or a Supabase Storage URL.
"""

from __future__ import annotations
import json
import posixpath
import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

DEFAULT_PRODUCT_IMAGE = "assets/products/default.jpg"
DEFAULT_CATEGORY_IMAGE = "/assets/default-category.jpg"
DEFAULT_SHOP_IMAGE = "/assets/default-shop.jpg"

PRODUCT_IMAGE_DIR = "assets/products"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".avif")
STORAGE_PATH_MARKER = "/storage/v1/object/public/"


def is_data_uri(ref: str) -> bool:
    return ref.lower().startswith("data:")


def is_storage_url(ref: str) -> bool:
    """Public Supabase Storage object URL."""
    return "supabase.co" in ref and STORAGE_PATH_MARKER in ref


def _has_image_extension(name: str) -> bool:
    return name.lower().endswith(IMAGE_EXTENSIONS)


def _collapse_segments(path: str) -> str:
    """Drop empty, '.' and immediately repeated path segments."""
    segments: List[str] = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segments and segments[-1] == segment:
            continue
        segments.append(segment)
    # "assets/products/assets/x.jpg" style prefix duplication
    while "assets" in segments[1:]:
        segments = segments[segments.index("assets", 1):]
    return "/".join(segments)


def normalize_image_ref(ref: Any) -> Optional[str]:
    """
    Reduce one product image reference to its canonical form.

    Returns:
        Canonical reference, the default placeholder for inline payloads,
        or None when nothing usable remains
    """
    if not isinstance(ref, str):
        return None
    ref = ref.strip().strip("{}").strip().strip('"\'').strip()
    if not ref:
        return None
    if is_data_uri(ref):
        return DEFAULT_PRODUCT_IMAGE
    if is_storage_url(ref):
        return ref

    parsed = urlparse(ref)
    if parsed.scheme in ("http", "https") or ref.startswith("//"):
        filename = posixpath.basename(parsed.path)
        if filename and _has_image_extension(filename):
            return f"{PRODUCT_IMAGE_DIR}/{filename}"
        return None

    # Cache-busting query strings and fragments are not part of the file name
    path = _collapse_segments(parsed.path)
    if not path or not _has_image_extension(path):
        return None
    if path.startswith("assets/"):
        return path
    return f"{PRODUCT_IMAGE_DIR}/{posixpath.basename(path)}"


def parse_image_list(raw: Any) -> List[str]:
    """
    Decode an image list as stored remotely.

    Accepts a list, JSON-encoded text, a Postgres array literal ("{a,b}")
    or a comma/newline separated string. Anything else yields [].
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [item for item in raw if isinstance(item, str)]
    if not isinstance(raw, str):
        return []

    text = raw.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return []
        return parse_image_list(decoded) if isinstance(decoded, list) else []
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1]
    if is_data_uri(text):
        return [text]
    return [part.strip().strip('"') for part in re.split(r"[,\n]", text) if part.strip()]


def normalize_image_list(raw: Any) -> List[str]:
    """
    Canonical, de-duplicated product image list; never empty.

    >>> normalize_image_list(["http://foo.com/x/y/bed1.jpg"])
    ['assets/products/bed1.jpg']
    """
    result: List[str] = []
    for ref in parse_image_list(raw):
        normalized = normalize_image_ref(ref)
        if normalized and normalized not in result:
            result.append(normalized)
    if len(result) > 1 and DEFAULT_PRODUCT_IMAGE in result:
        result.remove(DEFAULT_PRODUCT_IMAGE)
    return result or [DEFAULT_PRODUCT_IMAGE]


def normalize_category_image(ref: Optional[str]) -> str:
    if not ref or not ref.strip():
        return DEFAULT_CATEGORY_IMAGE
    ref = ref.strip()
    if is_data_uri(ref):
        return DEFAULT_CATEGORY_IMAGE
    if "supabase.co" in ref or ref.startswith("/assets/"):
        return ref
    if ref.startswith("assets/"):
        return "/" + ref
    return ref


def image_stats(image_lists: Iterable[List[str]]) -> Dict[str, int]:
    """Count product images by where they live."""
    stats = {"total": 0, "storage": 0, "local": 0, "base64": 0, "default": 0, "external": 0}
    for urls in image_lists:
        for url in urls:
            stats["total"] += 1
            if is_storage_url(url):
                stats["storage"] += 1
            elif url.endswith(("default.jpg", "default-product.jpg")):
                stats["default"] += 1
            elif is_data_uri(url):
                stats["base64"] += 1
            elif url.lstrip("/").startswith("assets/"):
                stats["local"] += 1
            else:
                stats["external"] += 1
    return stats
