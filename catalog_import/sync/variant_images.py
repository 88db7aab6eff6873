# catalog_import/sync/variant_images.py
# =======================================================
# Variant image backfill: products registered from the POS
# source get their option images re-matched against the
# marketplace media sheet; only changed urls are written.
# =======================================================
from __future__ import annotations

import logging
from typing import Any, Dict, List

from catalog_import.reconcile.images import build_option_image_map, match_option_image
from catalog_import.reconcile.matching import Match
from catalog_import.sources.columns import LOCALIZED, MarketplaceDialect
from catalog_import.sources.marketplace import MarketplaceIndex
from catalog_import.sources.spreadsheet_reader import read_sheet
from catalog_import.sync.context import ImportContext
from catalog_import.sync.pos_import import SOURCE as POS_SOURCE

logger = logging.getLogger(__name__)


async def backfill_variant_images(
    ctx: ImportContext,
    media_rows: List[Dict[str, Any]],
    dialect: MarketplaceDialect = LOCALIZED,
) -> Dict[str, Any]:
    store = ctx.store
    report = ctx.report
    index = MarketplaceIndex(dialect, media_rows=media_rows)

    entries = await ctx.registry.list(POS_SOURCE)
    logger.info(f"Found {len(entries)} registered POS products.")

    updated = 0
    for entry in entries:
        key, pid = entry["source_key"], entry["internal_id"]
        media = index.media_for_codes([key])
        report.record_media(key, Match.matched(media) if media is not None else Match.no_match())
        if media is None:
            continue
        image_map = build_option_image_map(media, dialect)
        if not image_map:
            continue

        try:
            variants = await store.list_variants(pid)
        except Exception as e:
            logger.error(f"Error fetching variants of {key} ({pid}): {e}")
            report.error(key, f"variants: {e}")
            continue

        for variant in variants:
            for option in variant.get("product_variant_options") or []:
                m = match_option_image(option.get("value"), image_map, ctx.options.option_prefixes)
                report.record_image(key, option.get("value"), m)
                if not m.ok or m.value == option.get("image_url"):
                    continue
                try:
                    await store.update_variant_option(option["id"], {"image_url": m.value})
                    updated += 1
                except Exception as e:
                    logger.error(f"Error updating option {option.get('id')} of {key}: {e}")
                    report.error(key, f"option image: {e}")

    result = {
        "products": len(entries),
        "options_updated": updated,
        "image_matches": dict(report.image_matches),
        "needs_review": len(report.review),
        "errors": len(report.errors),
    }
    logger.info(f"--- Finished. Updated {updated} variant options. ---")
    return result


async def run_variant_image_backfill(
    ctx: ImportContext,
    media_path: str,
    *,
    dialect: MarketplaceDialect = LOCALIZED,
    header_row: int = 2,
) -> Dict[str, Any]:
    logger.info("--- Starting Variant Image Mapping ---")
    media_rows = read_sheet(
        media_path, header_row,
        id_column=dialect.product_id, skip_values=dialect.header_labels, required=True,
    )
    return await backfill_variant_images(ctx, media_rows, dialect)
