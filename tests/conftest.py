import asyncio
import itertools
from typing import Any, Dict, List

import pytest

from catalog_import.errors import StoreError
from catalog_import.sync.context import ImportContext, ImportOptions
from catalog_import.sync.report import ImportReport


class FakeStore:
    """In-memory stand-in for CatalogStore with the same coroutine surface."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.categories: Dict[int, Dict[str, Any]] = {}
        self.products: Dict[int, Dict[str, Any]] = {}
        self.images: List[Dict[str, Any]] = []
        self.variants: Dict[int, Dict[str, Any]] = {}
        self.options: Dict[int, Dict[str, Any]] = {}
        self.fail_product_batches = False
        self.fail_variant_names: set = set()
        self.taken_slugs: set = set()
        self.insert_batches: List[int] = []

    # ---- categories ----
    async def find_category(self, slug, parent_id=None):
        for c in self.categories.values():
            if c["slug"] == slug and c["parent_id"] == parent_id:
                return dict(c)
        return None

    async def create_category(self, name, slug, parent_id=None):
        if slug in self.taken_slugs or any(c["slug"] == slug for c in self.categories.values()):
            raise StoreError("POST", "categories", 409, "duplicate key value violates unique constraint")
        cid = next(self._ids)
        self.categories[cid] = {"id": cid, "name": name, "slug": slug, "parent_id": parent_id}
        return dict(self.categories[cid])

    async def list_categories(self):
        return [dict(c) for c in self.categories.values()]

    async def delete_category(self, category_id):
        self.categories.pop(category_id, None)

    # ---- products ----
    async def insert_products(self, rows):
        if self.fail_product_batches:
            raise StoreError("POST", "products", 500, "boom")
        self.insert_batches.append(len(rows))
        out = []
        for row in rows:
            pid = next(self._ids)
            self.products[pid] = {"id": pid, **row}
            out.append(dict(self.products[pid]))
        return out

    async def update_product(self, product_id, values):
        pid = int(product_id)
        if pid not in self.products:
            return None
        self.products[pid].update(values)
        return dict(self.products[pid])

    async def list_products(self, columns="id,name,category_id"):
        return [dict(p) for p in self.products.values()]

    async def reassign_category(self, old_id, new_id):
        n = 0
        for p in self.products.values():
            if p.get("category_id") == old_id:
                p["category_id"] = new_id
                n += 1
        return n

    # ---- images ----
    async def insert_product_images(self, rows):
        self.images.extend(dict(r) for r in rows)
        return rows

    async def delete_product_images(self, product_id):
        self.images = [i for i in self.images if str(i["product_id"]) != str(product_id)]

    # ---- variants ----
    async def insert_variant(self, product_id, name):
        if name in self.fail_variant_names:
            raise StoreError("POST", "product_variants", 500, "boom")
        vid = next(self._ids)
        self.variants[vid] = {"id": vid, "product_id": product_id, "name": name}
        return dict(self.variants[vid])

    async def insert_variant_options(self, rows):
        out = []
        for r in rows:
            oid = next(self._ids)
            self.options[oid] = {"id": oid, **r}
            out.append(dict(self.options[oid]))
        return out

    async def list_variants(self, product_id):
        out = []
        for v in self.variants.values():
            if str(v["product_id"]) != str(product_id):
                continue
            opts = [dict(o) for o in self.options.values() if o["variant_id"] == v["id"]]
            out.append({"id": v["id"], "name": v["name"], "product_variant_options": opts})
        return out

    async def delete_product_variants(self, product_id):
        ids = [vid for vid, v in self.variants.items() if str(v["product_id"]) == str(product_id)]
        for oid in [oid for oid, o in self.options.items() if o["variant_id"] in ids]:
            del self.options[oid]
        for vid in ids:
            del self.variants[vid]

    async def update_variant_option(self, option_id, values):
        self.options[option_id].update(values)

    # ---- helpers for assertions ----
    def variants_of(self, product_id) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        for v in self.variants.values():
            if str(v["product_id"]) == str(product_id):
                out[v["name"]] = [o["value"] for o in self.options.values() if o["variant_id"] == v["id"]]
        return out


class FakeTranslator:
    def __init__(self, table: Dict[str, str] | None = None):
        self.table = table or {}
        self.calls: List[str] = []

    async def translate(self, text):
        if not text:
            return ""
        self.calls.append(text)
        return self.table.get(text, text)

    async def translate_many(self, texts):
        return list(await asyncio.gather(*(self.translate(t) for t in texts)))


class MemoryRegistry:
    def __init__(self):
        self.keys: Dict[tuple, str] = {}

    async def get(self, source, key, entity="product"):
        return self.keys.get((source, entity, str(key)))

    async def get_many(self, source, keys, entity="product"):
        out = {}
        for k in keys:
            v = self.keys.get((source, entity, str(k)))
            if v is not None:
                out[str(k)] = v
        return out

    async def put(self, source, key, internal_id, entity="product"):
        self.keys[(source, entity, str(key))] = str(internal_id)

    async def forget(self, source, key, entity="product"):
        return self.keys.pop((source, entity, str(key)), None) is not None

    async def list(self, source=None, entity="product"):
        return [
            {"source": s, "source_key": k, "internal_id": v}
            for (s, e, k), v in self.keys.items()
            if e == entity and (source is None or s == source)
        ]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def ctx(store):
    return ImportContext(
        store=store,
        translator=FakeTranslator(),
        registry=MemoryRegistry(),
        options=ImportOptions(sku_map_path=None),
        report=ImportReport(name="test"),
    )
