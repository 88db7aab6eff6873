# catalog_import/sync/marketplace_import.py
# =======================================================
# Marketplace (Shopee mass-update) -> storefront import
# - basic + media + sales joined by product ID
# - out-of-stock sales rows dropped, empty products skipped
# - name / description / category translated concurrently
# - optional POS file supplies the category by parent SKU
# =======================================================
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from catalog_import.reconcile.categories import CategoryNormalizer
from catalog_import.reconcile.images import build_option_image_map, collect_gallery, main_image
from catalog_import.reconcile.price import vnd_to_usd
from catalog_import.reconcile.variants import VariantAccumulator, parse_variation_name
from catalog_import.sources.columns import LOCALIZED, MarketplaceDialect, PosColumns
from catalog_import.sources.marketplace import MarketplaceBundle, MarketplaceIndex
from catalog_import.sources.row_indexer import index_column, index_prices, key_of, text, to_int
from catalog_import.sources.spreadsheet_reader import read_sheet
from catalog_import.sync.context import ImportContext
from catalog_import.sync.plans import ProductPlan
from catalog_import.sync.report import ImportReport
from catalog_import.sync.variant_builder import build_variant_plans
from catalog_import.sync.writer import CatalogWriter

logger = logging.getLogger(__name__)

SOURCE = "marketplace"

Row = Dict[str, Any]


def dimension_names(bundle: MarketplaceBundle, dialect: MarketplaceDialect, count: int) -> List[str]:
    """Group names of variation slots 1..count, "Variation k" where the sheet has none."""
    names = []
    for k in range(1, count + 1):
        names.append(text(bundle.get(dialect.variation_group.format(k=k))) or f"Variation {k}")
    return names


async def build_bundle_plan(
    ctx: ImportContext,
    bundle: MarketplaceBundle,
    dialect: MarketplaceDialect,
    normalizer: CategoryNormalizer,
    pos_categories: Optional[Dict[str, Any]] = None,
) -> Optional[ProductPlan]:
    report = ctx.report
    pid = bundle.product_id

    name_vn = text(bundle.get(dialect.product_name))
    if not name_vn:
        report.skip("missing_name")
        return None

    stocked = [r for r in bundle.sales if to_int(r.get(dialect.stock)) > 0]
    if ctx.options.skip_out_of_stock:
        if not stocked:
            report.skip("out_of_stock")
            return None
        rows = stocked
    else:
        rows = list(bundle.sales)

    label = None
    parent_sku = key_of(bundle.get(dialect.parent_sku))
    if pos_categories and parent_sku:
        label = pos_categories.get(parent_sku)
    if label in (None, ""):
        label = bundle.get(dialect.category) if dialect.category else None

    description_vn = text(bundle.get(dialect.description))
    name_en, description, category_id = await asyncio.gather(
        ctx.translator.translate(name_vn),
        ctx.translator.translate(description_vn),
        normalizer.resolve(label),
    )

    media = bundle.media
    cover = main_image(media, dialect)

    parsed = [(parse_variation_name(r.get(dialect.variation_name)), to_int(r.get(dialect.stock))) for r in rows]
    slots = max((len(values) for values, _ in parsed), default=0)
    dims = dimension_names(bundle, dialect, slots)
    acc = VariantAccumulator()
    for values, stock in parsed:
        for i, value in enumerate(values):
            acc.add(dims[i], value, stock)

    image_maps = {}
    if media:
        for k, dim in enumerate(dims, start=1):
            slot_map = build_option_image_map(media, dialect, variation=k)
            if slot_map:
                image_maps.setdefault(dim, slot_map)
    variants = build_variant_plans(
        ctx, pid, acc,
        image_map=build_option_image_map(media, dialect) if media else None,
        image_maps=image_maps,
    )

    price_vnd = index_prices(rows, dialect.product_id, dialect.price).get(pid, 0)
    return ProductPlan(
        source=SOURCE,
        source_key=pid,
        name=name_en or name_vn,
        description=description or description_vn,
        price_vnd=price_vnd,
        price_usd=vnd_to_usd(price_vnd, ctx.options.exchange_rate),
        category_id=category_id,
        main_image_url=cover,
        stock=sum(to_int(r.get(dialect.stock)) for r in rows),
        images=collect_gallery(media, dialect, cover, ctx.options.gallery_limit),
        variants=variants,
    )


async def build_marketplace_plans(
    ctx: ImportContext,
    index: MarketplaceIndex,
    pos_categories: Optional[Dict[str, Any]] = None,
) -> List[ProductPlan]:
    bundles = index.bundles()
    logger.info("[IMPORT] %d marketplace products found", len(bundles))

    normalizer = CategoryNormalizer(ctx)
    plans: List[ProductPlan] = []
    for pid, bundle in bundles.items():
        try:
            plan = await build_bundle_plan(ctx, bundle, index.dialect, normalizer, pos_categories)
        except Exception as e:
            logger.error(f"Error preparing product {pid}: {e}")
            ctx.report.failed += 1
            ctx.report.error(pid, f"prepare: {e}")
            continue
        if plan is not None:
            plans.append(plan)
    return plans


async def run_marketplace_import(
    ctx: ImportContext,
    basic_path: str,
    media_path: str,
    sales_path: str,
    pos_path: str | None = None,
    *,
    dialect: MarketplaceDialect = LOCALIZED,
    header_row: int = 2,
    pos_header_row: int = 0,
) -> ImportReport:
    """Basic and sales sheets are required; media and POS sheets are optional."""
    logger.info("--- Starting marketplace import ---")
    skip = dialect.header_labels
    basic_rows = read_sheet(basic_path, header_row, id_column=dialect.product_id, skip_values=skip, required=True)
    sales_rows = read_sheet(sales_path, header_row, id_column=dialect.product_id, skip_values=skip, required=True)
    media_rows = read_sheet(media_path, header_row, id_column=dialect.product_id, skip_values=skip)

    pos_categories = None
    if pos_path:
        pos_rows = read_sheet(pos_path, pos_header_row, id_column=PosColumns.CODE)
        pos_categories = index_column(pos_rows, PosColumns.CODE, PosColumns.CATEGORY)

    index = MarketplaceIndex(dialect, basic_rows, media_rows, sales_rows)
    logger.info("Processing and Translating data (this may take a while)...")
    plans = await build_marketplace_plans(ctx, index, pos_categories)

    writer = CatalogWriter(ctx)
    await writer.write(plans)
    await writer.export_sku_map(SOURCE)

    logger.info("--- Marketplace import complete: %s ---", ctx.report.summary())
    return ctx.report
