# catalog_import/reconcile/categories.py
# --------------------------------------------------------------------------------------
# Raw category labels -> category tree nodes.
#   "100358 - Women Clothes/Pants & Leggings/Pants"
#     -> strip "100358 - " -> strip root "Women Clothes" -> ["Pants & Leggings", "Pants"]
#     -> create-or-fetch each node by (slug, parent_id) -> leaf id
# --------------------------------------------------------------------------------------
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from catalog_import.errors import StoreError
from catalog_import.reconcile.util import lower, norm, slugify_name

if TYPE_CHECKING:
    from catalog_import.sync.context import ImportContext

logger = logging.getLogger(__name__)

_ID_PREFIX_RE = re.compile(r"^\d+\s-\s")
# marketplace paths use "/", KiotViet 3-level groups use ">>"
_SEP_RE = re.compile(r"/|>>")


def strip_id_prefix(label: str) -> str:
    return _ID_PREFIX_RE.sub("", norm(label), count=1)


def parse_category_path(label: Any, root_segments: Iterable[str] = ("Women Clothes",)) -> List[str]:
    """
    Path segments of a raw label, root removed. A label that is only the root
    keeps it as a single segment so the product still lands somewhere.
    """
    path = strip_id_prefix(norm(label))
    parts = [p.strip() for p in _SEP_RE.split(path) if p.strip()]
    roots = {lower(r) for r in root_segments or []}
    if len(parts) > 1 and lower(parts[0]) in roots:
        parts = parts[1:]
    return parts


def is_flat_path(name: Any) -> bool:
    """Category rows created before the tree existed: "A/B/C" or "123 - ..."."""
    n = norm(name)
    return bool(_ID_PREFIX_RE.match(n)) or "/" in n or ">>" in n


class CategoryNormalizer:
    def __init__(self, ctx: "ImportContext"):
        self.ctx = ctx
        self._slug_by_id: Dict[Any, str] = {}

    async def resolve(self, label: Any) -> Optional[Any]:
        """Leaf category id for a raw label; cached per label for the whole run."""
        opts = self.ctx.options
        raw = norm(label) or opts.default_category
        cache = self.ctx.category_cache
        if raw in cache:
            return cache[raw]

        segments = parse_category_path(raw, opts.root_segments) or [opts.default_category]
        names = await self.ctx.translator.translate_many(segments)
        leaf = await self.ensure_path([(n or s) for s, n in zip(segments, names)])
        if leaf is not None:
            cache[raw] = leaf
        else:
            self.ctx.report.error(raw, "category could not be resolved")
        return leaf

    async def ensure_path(self, names: List[str]) -> Optional[Any]:
        parent_id = None
        for name in names:
            parent_id = await self.get_or_create(name, parent_id)
            if parent_id is None:
                return None
        return parent_id

    async def get_or_create(self, name: str, parent_id: Any = None) -> Optional[Any]:
        name = norm(name)
        slug = slugify_name(name)
        if not slug:
            logger.warning("[CATEGORY] no usable slug for %r", name)
            return None

        nodes = self.ctx.category_nodes
        key = (parent_id, slug)
        if key in nodes:
            return nodes[key]

        store = self.ctx.store
        try:
            existing = await store.find_category(slug, parent_id)
            if existing:
                cat_id = existing["id"]
            else:
                cat_id = await self._create(name, slug, parent_id)
        except Exception as e:
            logger.error(f"[CATEGORY] Error creating {name}: {e}")
            self.ctx.report.error(name, f"category: {e}")
            return None

        nodes[key] = cat_id
        self._slug_by_id[cat_id] = slug
        return cat_id

    async def _create(self, name: str, slug: str, parent_id: Any) -> Any:
        store = self.ctx.store
        try:
            created = await store.create_category(name, slug, parent_id)
            return created["id"]
        except StoreError as e:
            # the table keeps slugs globally unique; the same leaf name under another
            # parent gets the parent's slug as a qualifier
            if e.status_code != 409 or parent_id is None:
                raise
            parent_slug = self._slug_by_id.get(parent_id) or str(parent_id)
            qualified = f"{parent_slug}-{slug}"
            existing = await store.find_category(qualified, parent_id)
            if existing:
                return existing["id"]
            logger.info("[CATEGORY] slug %s taken, using %s", slug, qualified)
            created = await store.create_category(name, qualified, parent_id)
            return created["id"]
