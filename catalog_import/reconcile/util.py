# catalog_import/reconcile/util.py
from __future__ import annotations

from typing import Any, Iterable, List

from slugify import slugify


def norm(s: Any) -> str:
    return "" if s is None else str(s).strip()


def lower(s: Any) -> str:
    return norm(s).lower()


def is_http_url(u: Any) -> bool:
    return isinstance(u, str) and u.strip().lower().startswith(("http://", "https://"))


def dedupe_preserve_order(items: Iterable[Any]) -> List[Any]:
    seen = set()
    out = []
    for x in items or []:
        if not x or x in seen:
            continue
        seen.add(x)
        out.append(x)
    return out


def slugify_name(name: Any) -> str:
    """
    URL slug: lowercase ascii letters, digits and single hyphens, no leading or
    trailing hyphen. Vietnamese diacritics are transliterated ("Áo thun" -> "ao-thun").
    """
    return slugify(norm(name), lowercase=True)
