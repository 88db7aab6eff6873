import asyncio

from catalog_import.sources.columns import LOCALIZED as D
from catalog_import.sources.marketplace import MarketplaceIndex
from catalog_import.sync.marketplace_import import build_marketplace_plans

BASIC = [
    {
        D.product_id: "900", D.product_name: "Váy hoa", D.description: "Váy đẹp",
        D.category: "100017 - Women Clothes/Dresses", D.parent_sku: "SKU1",
    },
    {D.product_id: "901", D.product_name: "Hết hàng"},
]
MEDIA = [
    {
        D.product_id: "900", D.product_name: "Váy hoa",
        "Ảnh bìa": "https://img/c.jpg",
        "Tên nhóm phân loại hàng 1": "Màu sắc",
        "Tên nhóm phân loại hàng 2": "Size",
        "Tên phân loại 1": "Đỏ",
        "Hình ảnh phân loại 1": "https://img/do.jpg",
    },
]
SALES = [
    {D.product_id: "900", D.variation_name: "Đỏ, S", D.price: 0, D.stock: 2},
    {D.product_id: "900", D.variation_name: "Đỏ, M", D.price: 254000, D.stock: 3},
    {D.product_id: "900", D.variation_name: "Xanh, S", D.price: 254000, D.stock: 0},
    {D.product_id: "901", D.variation_name: "Bắt buộc", D.price: 100000, D.stock: 0},
]


def _plans(ctx, pos_categories=None):
    index = MarketplaceIndex(D, BASIC, MEDIA, SALES)
    return asyncio.run(build_marketplace_plans(ctx, index, pos_categories))


def test_stocked_rows_become_variants(ctx, store):
    ctx.translator.table["Váy hoa"] = "Floral dress"
    plans = _plans(ctx)

    assert [p.source_key for p in plans] == ["900"]
    plan = plans[0]
    assert plan.name == "Floral dress"
    assert plan.price_vnd == 254000
    assert plan.price_usd == 10.0
    assert plan.stock == 5
    assert plan.main_image_url == "https://img/c.jpg"

    assert plan.variant("Color").values() == ["Đỏ"]
    assert plan.variant("Size").values() == ["S", "M"]
    assert plan.variant("Color").options[0].image_url == "https://img/do.jpg"
    assert plan.variant("Color").options[0].stock == 5
    assert all(o.image_url is None for o in plan.variant("Size").options)

    assert store.categories[plan.category_id]["name"] == "Dresses"
    assert ctx.report.skipped["out_of_stock"] == 1


def test_pos_category_wins_by_parent_sku(ctx, store):
    plan = _plans(ctx, {"SKU1": "Váy>>Váy hoa"})[0]
    leaf = store.categories[plan.category_id]
    assert leaf["name"] == "Váy hoa"
    assert store.categories[leaf["parent_id"]]["name"] == "Váy"


def test_out_of_stock_kept_when_filter_disabled(ctx):
    ctx.options.skip_out_of_stock = False
    plans = {p.source_key: p for p in _plans(ctx)}

    assert set(plans) == {"900", "901"}
    assert plans["901"].variants == []
    assert plans["901"].price_vnd == 100000
    assert plans["900"].variant("Color").values() == ["Đỏ", "Xanh"]
