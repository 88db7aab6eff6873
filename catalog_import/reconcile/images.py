# catalog_import/reconcile/images.py
from __future__ import annotations

import logging
import unicodedata
from typing import Any, Dict, Iterable, List, Optional

from catalog_import.reconcile.matching import Match, from_candidates
from catalog_import.reconcile.util import dedupe_preserve_order, is_http_url, lower
from catalog_import.sources.columns import MarketplaceDialect

logger = logging.getLogger(__name__)

MAX_VARIATION_SLOTS = 20
MAX_OPTION_SLOTS = 50

Row = Dict[str, Any]
OptionImageMap = Dict[str, List[str]]


def option_key(value: Any) -> str:
    """Lookup key for option text: trimmed, lower-cased, NFC."""
    return unicodedata.normalize("NFC", lower(value))


# ------------------------------------------------------------------------------
# Media row -> {option text: [image urls]}
# ------------------------------------------------------------------------------

def build_option_image_map(
    media_row: Optional[Row],
    dialect: MarketplaceDialect,
    variation: int | None = None,
) -> OptionImageMap:
    """
    Scan the option slot columns of one media row. Keys are option_key(value);
    values keep every distinct URL seen for that text so collisions surface
    as ambiguous matches instead of last-write-wins.
    """
    out: OptionImageMap = {}
    if not media_row:
        return out
    for col, value in media_row.items():
        m = dialect.option_value_re.match(str(col))
        if not m:
            continue
        j = int(m.group(1))
        k = int(m.group(2)) if m.lastindex and m.lastindex >= 2 else 1
        if j > MAX_OPTION_SLOTS or k > MAX_VARIATION_SLOTS:
            continue
        if variation is not None and k != variation:
            continue
        img = media_row.get(dialect.option_image_fmt.format(j=j, k=k))
        key = option_key(value)
        if not key or not is_http_url(img):
            continue
        urls = out.setdefault(key, [])
        img = img.strip()
        if img not in urls:
            urls.append(img)
    return out


def match_option_image(
    value: Any,
    image_map: OptionImageMap,
    strip_prefixes: Iterable[str] = ("Màu",),
) -> Match:
    """
    Exact case/whitespace-insensitive lookup, then one retry with a known
    qualifier removed from the front ("Màu Đỏ" -> "đỏ").
    """
    if not image_map:
        return Match.no_match()
    key = option_key(value)
    if not key:
        return Match.no_match()
    if key in image_map:
        return from_candidates(image_map[key])

    for prefix in strip_prefixes or []:
        p = option_key(prefix)
        if p and key.startswith(p + " "):
            stripped = key[len(p):].strip()
            if stripped in image_map:
                return from_candidates(image_map[stripped])
            break
    return Match.no_match()


# ------------------------------------------------------------------------------
# Product main image + gallery
# ------------------------------------------------------------------------------

def main_image(media_row: Optional[Row], dialect: MarketplaceDialect) -> Optional[str]:
    if not media_row:
        return None
    for col in (dialect.cover_image, dialect.cover_fallback):
        if col and is_http_url(media_row.get(col)):
            return media_row[col].strip()
    return None


def collect_gallery(
    media_row: Optional[Row],
    dialect: MarketplaceDialect,
    main: Optional[str] = None,
    limit: int = 5,
) -> List[str]:
    """
    Gallery image urls in slot order, cover included, duplicates dropped; falls
    back to the main image alone when the gallery is empty. The caller numbers
    them 0..n-1.
    """
    urls: List[str] = []
    if media_row:
        for n in range(1, dialect.gallery_slots + 1):
            u = media_row.get(dialect.gallery_image.format(n=n))
            if is_http_url(u):
                urls.append(u.strip())
    urls = dedupe_preserve_order(urls)
    if not urls and main:
        urls = [main]
    return urls[:max(0, limit)]
