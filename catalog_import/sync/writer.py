# catalog_import/sync/writer.py
# =======================================================
# Persistence writer
# - products: PATCH when the source key is known, else
#   batched insert + source key registration
# - per product: images, variant dimensions, options
# - no transactions: child failures leave a partial
#   product that is logged and counted
# =======================================================
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from catalog_import.mapping.mapping_store import build_sku_map, save_sku_map
from catalog_import.sync.context import ImportContext
from catalog_import.sync.plans import ProductPlan

logger = logging.getLogger(__name__)


def _chunks(items: List[Any], size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


class CatalogWriter:
    def __init__(self, ctx: ImportContext):
        self.ctx = ctx
        self._done = 0

    def _progress(self) -> None:
        self._done += 1
        every = self.ctx.options.progress_every
        if every and self._done % every == 0:
            logger.info(f"Imported {self._done} products...")

    async def _known_ids(self, plans: List[ProductPlan]) -> Dict[Tuple[str, str], str]:
        by_source: Dict[str, List[str]] = {}
        for p in plans:
            by_source.setdefault(p.source, []).append(p.source_key)
        known: Dict[Tuple[str, str], str] = {}
        for source, keys in by_source.items():
            for key, pid in (await self.ctx.registry.get_many(source, keys)).items():
                known[(source, key)] = pid
        return known

    async def write(self, plans: List[ProductPlan]) -> None:
        report = self.ctx.report
        known = await self._known_ids(plans)

        fresh: List[ProductPlan] = []
        for plan in plans:
            pid = known.get((plan.source, plan.source_key))
            if pid is None:
                fresh.append(plan)
                continue
            updated = await self._update(plan, pid)
            if updated is None:
                # registered id no longer exists in the store: insert again
                logger.warning("[WRITE] %s:%s points at missing product %s, re-inserting",
                               plan.source, plan.source_key, pid)
                fresh.append(plan)

        size = max(1, self.ctx.options.batch_size)
        for batch_no, batch in enumerate(_chunks(fresh, size), start=1):
            try:
                rows = await self.ctx.store.insert_products([p.product_row() for p in batch])
            except Exception as e:
                logger.error(f"Batch {batch_no} Error: {e}")
                report.failed += len(batch)
                for p in batch:
                    report.error(p.source_key, f"batch {batch_no}: {e}")
                continue

            if len(rows) != len(batch):
                logger.error("Batch %d returned %d rows for %d products", batch_no, len(rows), len(batch))
            for i, plan in enumerate(batch):
                pid = rows[i].get("id") if i < len(rows) else None
                if pid is None:
                    report.failed += 1
                    report.error(plan.source_key, "insert returned no id")
                    continue
                await self._register(plan, pid)
                report.created += 1
                await self._write_children(plan, pid, replace=False)
                self._progress()

    async def _register(self, plan: ProductPlan, pid: Any) -> None:
        try:
            await self.ctx.registry.put(plan.source, plan.source_key, str(pid))
        except Exception as e:
            # product exists but the next run will not recognise it
            logger.error("[KEYS] could not register %s:%s -> %s: %s", plan.source, plan.source_key, pid, e)
            self.ctx.report.flag(plan.source_key, "unregistered_product", product_id=str(pid))

    async def _update(self, plan: ProductPlan, pid: str) -> bool | None:
        report = self.ctx.report
        try:
            row = await self.ctx.store.update_product(pid, plan.product_row())
        except Exception as e:
            logger.error(f"Error updating product {plan.source_key} ({pid}): {e}")
            report.failed += 1
            report.error(plan.source_key, f"update: {e}")
            return False
        if row is None:
            return None
        report.updated += 1
        await self._write_children(plan, pid, replace=True)
        self._progress()
        return True

    async def _write_children(self, plan: ProductPlan, pid: Any, *, replace: bool) -> None:
        store = self.ctx.store
        key = plan.source_key
        ok = True

        if replace:
            try:
                await store.delete_product_images(pid)
                await store.delete_product_variants(pid)
            except Exception as e:
                logger.error(f"Error clearing children of {key} ({pid}): {e}")
                self.ctx.report.error(key, f"clear children: {e}")
                self.ctx.report.partial += 1
                return

        if plan.images:
            try:
                await store.insert_product_images([
                    {"product_id": pid, "image_url": url, "display_order": i}
                    for i, url in enumerate(plan.images)
                ])
            except Exception as e:
                ok = False
                logger.error(f"Error inserting images for {key}: {e}")
                self.ctx.report.error(key, f"images: {e}")

        for variant in plan.variants:
            try:
                vrow = await store.insert_variant(pid, variant.name)
                await store.insert_variant_options([
                    {"variant_id": vrow["id"], "value": o.value, "image_url": o.image_url, "stock": o.stock}
                    for o in variant.options
                ])
            except Exception as e:
                ok = False
                logger.error(f"Error inserting variant {variant.name} for {key}: {e}")
                self.ctx.report.error(key, f"variant {variant.name}: {e}")

        if not ok:
            self.ctx.report.partial += 1

    async def export_sku_map(self, source: str | None = None) -> Dict[str, str]:
        """Write product_sku_map.json from the registry (when a path is configured)."""
        path = self.ctx.options.sku_map_path
        entries = await self.ctx.registry.list(source)
        sku_map = build_sku_map(entries)
        if path:
            save_sku_map(path, sku_map)
        return sku_map
