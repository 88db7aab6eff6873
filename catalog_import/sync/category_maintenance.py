# catalog_import/sync/category_maintenance.py
# =======================================================
# One-off category maintenance against the live store
# - migrate_category_tree: flat "A/B/C" rows -> parent/child
#   nodes, products re-pointed, flat rows removed
# - cleanup_unused_categories: drop categories no product
#   (or descendant category) uses, deepest first
# =======================================================
from __future__ import annotations

import logging
from typing import Any, Dict, List, Set

from catalog_import.reconcile.categories import CategoryNormalizer, is_flat_path, parse_category_path
from catalog_import.sync.context import ImportContext

logger = logging.getLogger(__name__)


async def migrate_category_tree(ctx: ImportContext, translate: bool = False) -> Dict[str, Any]:
    store = ctx.store
    report = ctx.report
    logger.info("--- Migrating Categories to Tree Structure ---")

    categories = await store.list_categories()
    flat = [c for c in categories if is_flat_path(c.get("name"))]
    logger.info(f"Found {len(categories)} existing categories, {len(flat)} flat paths.")

    normalizer = CategoryNormalizer(ctx)
    old_to_new: Dict[Any, Any] = {}
    for cat in flat:
        parts = parse_category_path(cat.get("name"), ctx.options.root_segments)
        if not parts:
            continue
        if translate:
            names = await ctx.translator.translate_many(parts)
            parts = [(n or p) for p, n in zip(parts, names)]
        leaf = await normalizer.ensure_path(parts)
        if leaf is None:
            report.flag(cat.get("id"), "category_not_migrated", name=cat.get("name"))
            continue
        if leaf != cat.get("id"):
            old_to_new[cat["id"]] = leaf

    logger.info(f"Mapped {len(old_to_new)} categories.")

    moved = 0
    deleted = 0
    for old_id, new_id in old_to_new.items():
        try:
            moved += await store.reassign_category(old_id, new_id)
            await store.delete_category(old_id)
            deleted += 1
        except Exception as e:
            # products may still point at the old row; keep it
            logger.error(f"[CATEGORY] Error migrating {old_id} -> {new_id}: {e}")
            report.error(old_id, f"migrate: {e}")

    result = {
        "categories": len(categories),
        "flat": len(flat),
        "migrated": len(old_to_new),
        "products_moved": moved,
        "deleted": deleted,
        "errors": len(report.errors),
    }
    logger.info("--- Migration Complete: %s ---", result)
    return result


def _depth(cat_id: Any, by_id: Dict[Any, Dict[str, Any]]) -> int:
    depth = 0
    seen: Set[Any] = set()
    parent = by_id.get(cat_id, {}).get("parent_id")
    while parent is not None and parent not in seen and parent in by_id:
        seen.add(parent)
        depth += 1
        parent = by_id[parent].get("parent_id")
    return depth


def unused_categories(products: List[Dict[str, Any]], categories: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Categories neither used by a product nor ancestor of a used one, deepest first."""
    by_id = {c["id"]: c for c in categories if c.get("id") is not None}
    keep: Set[Any] = {p.get("category_id") for p in products if p.get("category_id") is not None}

    stack = list(keep)
    while stack:
        parent = by_id.get(stack.pop(), {}).get("parent_id")
        if parent is not None and parent not in keep:
            keep.add(parent)
            stack.append(parent)

    unused = [c for cid, c in by_id.items() if cid not in keep]
    unused.sort(key=lambda c: _depth(c["id"], by_id), reverse=True)
    return unused


async def cleanup_unused_categories(ctx: ImportContext, dry_run: bool = False) -> Dict[str, Any]:
    store = ctx.store
    logger.info("Starting cleanup of unused categories...")

    products = await store.list_products("id,category_id")
    categories = await store.list_categories()
    doomed = unused_categories(products, categories)
    logger.info(f"Total categories in DB: {len(categories)}, unused: {len(doomed)}")

    deleted = 0
    if not dry_run:
        for cat in doomed:
            try:
                await store.delete_category(cat["id"])
                deleted += 1
            except Exception as e:
                logger.error(f"Error deleting category {cat['id']} ({cat.get('name')}): {e}")
                ctx.report.error(cat["id"], f"delete: {e}")

    result = {
        "categories": len(categories),
        "unused": len(doomed),
        "deleted": deleted,
        "dry_run": dry_run,
        "names": [c.get("name") for c in doomed],
    }
    logger.info(f"Successfully deleted {deleted} categories.")
    return result
