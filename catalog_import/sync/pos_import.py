# catalog_import/sync/pos_import.py
# =======================================================
# Point-of-sale (KiotViet) -> storefront import
# - product families via "Mã HH Liên quan"
# - category tree from "Nhóm hàng(3 Cấp)"
# - media row by group SKU, then by name tokens
# - variants from "Thuộc tính" with option images
# =======================================================
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from catalog_import.reconcile.categories import CategoryNormalizer
from catalog_import.reconcile.grouping import OrphanPolicy, ProductGroup, group_key, group_products
from catalog_import.reconcile.images import build_option_image_map, collect_gallery, main_image
from catalog_import.reconcile.price import vnd_to_usd
from catalog_import.reconcile.variants import VariantAccumulator
from catalog_import.sources.columns import LOCALIZED, MarketplaceDialect, PosColumns as C
from catalog_import.sources.marketplace import MarketplaceIndex
from catalog_import.sources.row_indexer import index_prices, text, to_int
from catalog_import.sources.spreadsheet_reader import read_sheet
from catalog_import.sync.context import ImportContext
from catalog_import.sync.plans import ProductPlan
from catalog_import.sync.report import ImportReport
from catalog_import.sync.variant_builder import build_variant_plans
from catalog_import.sync.writer import CatalogWriter

logger = logging.getLogger(__name__)

SOURCE = "pos"

Row = Dict[str, Any]


def _first(rows: List[Row], column: str, main: Row) -> Any:
    """Column value of the main row, else of the first family row that has one."""
    if main.get(column) not in (None, ""):
        return main.get(column)
    for r in rows:
        if r.get(column) not in (None, ""):
            return r.get(column)
    return None


async def build_group_plan(
    ctx: ImportContext,
    group: ProductGroup,
    normalizer: CategoryNormalizer,
    media_index: Optional[MarketplaceIndex] = None,
) -> ProductPlan:
    report = ctx.report
    rows = group.rows
    main = group.main_row
    dialect: MarketplaceDialect = media_index.dialect if media_index else LOCALIZED

    name_vn = text(_first(rows, C.NAME, main))
    category_id = await normalizer.resolve(_first(rows, C.CATEGORY, main))

    media_row = None
    if media_index is not None and media_index.media_rows:
        m = media_index.find_media(group.codes(C.CODE, C.RELATED_CODE), name_vn)
        report.record_media(group.key, m)
        media_row = m.value if m.ok else None

    description_vn = text(media_row.get(dialect.description)) if media_row else ""
    name_en, description = await ctx.translator.translate_many([name_vn, description_vn])

    family = [main] + [r for r in rows if r is not main]
    prices = index_prices(family, lambda r: group_key(r, C.CODE, C.RELATED_CODE), C.PRICE)
    price_vnd = prices.get(group.key, 0)
    cover = main_image(media_row, dialect)

    acc = VariantAccumulator()
    for r in rows:
        acc.add_attribute_string(r.get(C.ATTRIBUTES), to_int(r.get(C.STOCK)))
    variants = build_variant_plans(
        ctx, group.key, acc,
        image_map=build_option_image_map(media_row, dialect) if media_row else None,
    )

    return ProductPlan(
        source=SOURCE,
        source_key=group.key,
        name=name_en or name_vn,
        description=description or description_vn,
        price_vnd=price_vnd,
        price_usd=vnd_to_usd(price_vnd, ctx.options.exchange_rate),
        category_id=category_id,
        main_image_url=cover,
        stock=sum(to_int(r.get(C.STOCK)) for r in rows),
        images=collect_gallery(media_row, dialect, cover, ctx.options.gallery_limit),
        variants=variants,
    )


async def build_pos_plans(
    ctx: ImportContext,
    pos_rows: List[Row],
    media_index: Optional[MarketplaceIndex] = None,
) -> List[ProductPlan]:
    report = ctx.report
    groups = group_products(pos_rows, C.CODE, C.RELATED_CODE)
    logger.info("[IMPORT] %d POS rows grouped into %d products", len(pos_rows), len(groups))

    normalizer = CategoryNormalizer(ctx)
    plans: List[ProductPlan] = []
    for gid, group in groups.items():
        if group.is_orphan:
            report.flag(gid, "orphan_group", rows=len(group.rows), policy=ctx.options.orphan_policy.value)
            if ctx.options.orphan_policy is OrphanPolicy.SKIP:
                report.skipped["orphan_group"] += 1
                continue
        try:
            plans.append(await build_group_plan(ctx, group, normalizer, media_index))
        except Exception as e:
            logger.error(f"Error preparing product {gid}: {e}")
            report.failed += 1
            report.error(gid, f"prepare: {e}")
    return plans


async def run_pos_import(
    ctx: ImportContext,
    pos_path: str,
    media_path: str | None = None,
    *,
    dialect: MarketplaceDialect = LOCALIZED,
    pos_header_row: int = 0,
    media_header_row: int = 2,
) -> ImportReport:
    """Read both sheets (POS file required), reconcile, write, export the SKU map."""
    logger.info("--- Starting POS import ---")
    pos_rows = read_sheet(pos_path, pos_header_row, id_column=C.CODE, required=True)
    media_rows = []
    if media_path:
        media_rows = read_sheet(
            media_path, media_header_row,
            id_column=dialect.product_id, skip_values=dialect.header_labels,
        )
    index = MarketplaceIndex(dialect, media_rows=media_rows)

    logger.info("Processing and Translating data (this may take a while)...")
    plans = await build_pos_plans(ctx, pos_rows, index)

    writer = CatalogWriter(ctx)
    await writer.write(plans)
    await writer.export_sku_map(SOURCE)

    logger.info("--- POS import complete: %s ---", ctx.report.summary())
    return ctx.report
