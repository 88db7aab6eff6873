import asyncio

from catalog_import.sources.columns import LOCALIZED as D
from catalog_import.sync.variant_images import backfill_variant_images

MEDIA = [{
    D.product_id: "900",
    D.parent_sku: "SKU1",
    "Tên phân loại 1": "Đen",
    "Hình ảnh phân loại 1": "https://img/den.jpg",
    "Tên phân loại 2": "Trắng",
    "Hình ảnh phân loại 2": "https://img/trang.jpg",
}]


def test_backfill_updates_only_changed_options(ctx, store):
    async def seed():
        pid = (await store.insert_products([{"name": "Áo"}]))[0]["id"]
        variant = await store.insert_variant(pid, "Color")
        await store.insert_variant_options([
            {"variant_id": variant["id"], "value": "Đen", "image_url": None, "stock": 1},
            {"variant_id": variant["id"], "value": "Trắng", "image_url": "https://img/trang.jpg", "stock": 1},
            {"variant_id": variant["id"], "value": "Xanh", "image_url": None, "stock": 1},
        ])
        await ctx.registry.put("pos", "SKU1", str(pid))
        await ctx.registry.put("pos", "NO-MEDIA", "999")
        return pid

    asyncio.run(seed())
    result = asyncio.run(backfill_variant_images(ctx, MEDIA, D))

    assert result["products"] == 2
    assert result["options_updated"] == 1
    images = {o["value"]: o["image_url"] for o in store.options.values()}
    assert images == {"Đen": "https://img/den.jpg", "Trắng": "https://img/trang.jpg", "Xanh": None}
    assert ctx.report.media_matches["no_match"] == 1
