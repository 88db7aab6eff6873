# catalog_import/sync/runs.py
# =======================================================
# Settings-driven entry points shared by the CLI scripts
# and the admin API. Each opens a fresh ImportContext and
# returns a JSON-serializable result.
# =======================================================
from __future__ import annotations

import logging
import os
from typing import Any, Dict

from catalog_import.config import settings
from catalog_import.sources.columns import get_dialect
from catalog_import.sync.category_maintenance import cleanup_unused_categories, migrate_category_tree
from catalog_import.sync.context import open_context
from catalog_import.sync.marketplace_import import run_marketplace_import
from catalog_import.sync.pos_import import run_pos_import
from catalog_import.sync.variant_images import run_variant_image_backfill

logger = logging.getLogger(__name__)


def source_path(name: str | None) -> str:
    """Absolute or cwd-relative paths win; bare names are looked up under DATA_DIR."""
    if not name:
        return ""
    if os.path.isabs(name) or os.path.exists(name):
        return name
    return os.path.join(settings.DATA_DIR, name)


async def import_pos(with_media: bool = True) -> Dict[str, Any]:
    ctx = await open_context("pos_import")
    dialect = get_dialect(settings.MARKETPLACE_DIALECT)
    report = await run_pos_import(
        ctx,
        source_path(settings.POS_FILE),
        source_path(settings.MEDIA_FILE) if with_media else None,
        dialect=dialect,
        pos_header_row=settings.POS_HEADER_ROW,
        media_header_row=settings.MARKETPLACE_HEADER_ROW,
    )
    return report.as_dict()


async def import_marketplace(with_pos_categories: bool = True) -> Dict[str, Any]:
    ctx = await open_context("marketplace_import")
    dialect = get_dialect(settings.MARKETPLACE_DIALECT)
    report = await run_marketplace_import(
        ctx,
        source_path(settings.BASIC_FILE),
        source_path(settings.MEDIA_FILE),
        source_path(settings.SALES_FILE),
        source_path(settings.POS_FILE) if with_pos_categories else None,
        dialect=dialect,
        header_row=settings.MARKETPLACE_HEADER_ROW,
        pos_header_row=settings.POS_HEADER_ROW,
    )
    return report.as_dict()


async def migrate_categories(translate: bool = False) -> Dict[str, Any]:
    ctx = await open_context("migrate_categories")
    result = await migrate_category_tree(ctx, translate=translate)
    result["review"] = list(ctx.report.review)
    return result


async def cleanup_categories(dry_run: bool = False) -> Dict[str, Any]:
    ctx = await open_context("cleanup_categories")
    return await cleanup_unused_categories(ctx, dry_run=dry_run)


async def map_variant_images() -> Dict[str, Any]:
    ctx = await open_context("map_variant_images")
    dialect = get_dialect(settings.MARKETPLACE_DIALECT)
    result = await run_variant_image_backfill(
        ctx,
        source_path(settings.MEDIA_FILE),
        dialect=dialect,
        header_row=settings.MARKETPLACE_HEADER_ROW,
    )
    result["review"] = list(ctx.report.review)
    return result


async def _registry():
    from catalog_import.db import get_sessionmaker, init_db
    from catalog_import.mapping.source_key_store import SourceKeyRegistry

    await init_db()
    return SourceKeyRegistry(get_sessionmaker())


async def pin_source_key(source: str, source_key: str, internal_id: str) -> None:
    await (await _registry()).put(source, source_key, internal_id)


async def forget_source_key(source: str, source_key: str) -> bool:
    return await (await _registry()).forget(source, source_key)


async def list_source_keys(source: str | None = None) -> list:
    return await (await _registry()).list(source)
