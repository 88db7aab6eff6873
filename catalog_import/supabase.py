#==========================================================================================
# catalog_import/supabase.py
# Storefront database interface (Supabase / PostgREST over HTTPS).
# Functions to read and write categories, products, images, variants and options.
#==========================================================================================
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from catalog_import.config import settings
from catalog_import.errors import MissingCredentials, StoreError

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


def _in(values: Iterable[Any]) -> str:
    return "in.(" + ",".join(str(v) for v in values) + ")"


def _parent_filter(parent_id: Any) -> str:
    return "is.null" if parent_id in (None, "") else f"eq.{parent_id}"


class CatalogStore:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "CatalogStore":
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise MissingCredentials("Error: Missing Supabase credentials (SUPABASE_URL / SUPABASE_KEY).")
        return cls(settings.SUPABASE_URL, settings.SUPABASE_KEY, timeout=settings.HTTP_TIMEOUT)

    # ---- raw PostgREST helpers ----

    def _headers(self, prefer: str | None = None) -> Dict[str, str]:
        h = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            h["Prefer"] = prefer
        return h

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/rest/v1/{table}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.request(method, url, params=params or {}, json=json, headers=self._headers(prefer))
        if resp.status_code >= 400:
            raise StoreError(method, table, resp.status_code, resp.text)
        if not resp.content:
            return []
        data = resp.json()
        if isinstance(data, dict):
            return [data]
        return data or []

    async def select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._request("GET", table, params=params)

    async def select_all(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Page through a table (PostgREST caps a single response)."""
        out: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = await self.select(table, {**params, "limit": PAGE_SIZE, "offset": offset})
            out.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return out

    async def insert(self, table: str, rows: List[Dict[str, Any]] | Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._request("POST", table, json=rows, prefer="return=representation")

    async def update(self, table: str, filters: Dict[str, str], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._request("PATCH", table, params=filters, json=values, prefer="return=representation")

    async def delete(self, table: str, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("refusing to delete without a filter")
        return await self._request("DELETE", table, params=filters, prefer="return=representation")

    # ---- Categories ----

    async def find_category(self, slug: str, parent_id: Any = None) -> Optional[Dict[str, Any]]:
        rows = await self.select("categories", {
            "select": "id,name,slug,parent_id",
            "slug": f"eq.{slug}",
            "parent_id": _parent_filter(parent_id),
            "limit": 1,
        })
        return rows[0] if rows else None

    async def create_category(self, name: str, slug: str, parent_id: Any = None) -> Dict[str, Any]:
        rows = await self.insert("categories", {"name": name, "slug": slug, "parent_id": parent_id})
        if not rows:
            raise StoreError("POST", "categories", 204, "no row returned")
        return rows[0]

    async def list_categories(self) -> List[Dict[str, Any]]:
        return await self.select_all("categories", {"select": "id,name,slug,parent_id", "order": "id"})

    async def delete_category(self, category_id: Any) -> None:
        await self.delete("categories", {"id": f"eq.{category_id}"})

    # ---- Products ----

    async def insert_products(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await self.insert("products", rows)

    async def update_product(self, product_id: Any, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = await self.update("products", {"id": f"eq.{product_id}"}, values)
        return rows[0] if rows else None

    async def list_products(self, columns: str = "id,name,category_id") -> List[Dict[str, Any]]:
        return await self.select_all("products", {"select": columns, "order": "id"})

    async def reassign_category(self, old_id: Any, new_id: Any) -> int:
        rows = await self.update("products", {"category_id": f"eq.{old_id}"}, {"category_id": new_id})
        return len(rows)

    # ---- Images ----

    async def insert_product_images(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return await self.insert("product_images", rows)

    async def delete_product_images(self, product_id: Any) -> None:
        await self.delete("product_images", {"product_id": f"eq.{product_id}"})

    # ---- Variants & options ----

    async def insert_variant(self, product_id: Any, name: str) -> Dict[str, Any]:
        rows = await self.insert("product_variants", {"product_id": product_id, "name": name})
        if not rows:
            raise StoreError("POST", "product_variants", 204, "no row returned")
        return rows[0]

    async def insert_variant_options(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return await self.insert("product_variant_options", rows)

    async def list_variants(self, product_id: Any) -> List[Dict[str, Any]]:
        return await self.select("product_variants", {
            "select": "id,name,product_variant_options(id,value,image_url,stock)",
            "product_id": f"eq.{product_id}",
        })

    async def delete_product_variants(self, product_id: Any) -> None:
        variants = await self.select("product_variants", {"select": "id", "product_id": f"eq.{product_id}"})
        ids = [v["id"] for v in variants if v.get("id") is not None]
        if not ids:
            return
        # options first, they reference the variant rows
        await self.delete("product_variant_options", {"variant_id": _in(ids)})
        await self.delete("product_variants", {"id": _in(ids)})

    async def update_variant_option(self, option_id: Any, values: Dict[str, Any]) -> None:
        await self.update("product_variant_options", {"id": f"eq.{option_id}"}, values)
