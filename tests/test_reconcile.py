import asyncio
import itertools
import re

import pytest

from catalog_import.reconcile.categories import CategoryNormalizer, is_flat_path, parse_category_path
from catalog_import.reconcile.grouping import OrphanPolicy, group_products
from catalog_import.reconcile.images import (
    build_option_image_map,
    collect_gallery,
    main_image,
    match_option_image,
)
from catalog_import.reconcile.matching import MatchStatus
from catalog_import.reconcile.price import vnd_to_usd
from catalog_import.reconcile.util import slugify_name
from catalog_import.reconcile.variants import (
    VariantAccumulator,
    accumulate_attributes,
    merge_dimensions,
    parse_attribute_string,
    parse_variation_name,
    resolve_dimension,
)
from catalog_import.sources.columns import LOCALIZED, TECHNICAL, PosColumns as C

SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


# ---------------- slugs ----------------

@pytest.mark.parametrize("name", [
    "Áo Thun Nữ", "Pants & Leggings", "  Đầm  maxi  ", "100358 - Women Clothes/Pants",
    "Quần--jean__rách", "T-Shirt", "ÁO KHOÁC (2024)",
])
def test_slug_charset_and_idempotent(name):
    slug = slugify_name(name)
    assert SLUG_RE.match(slug)
    assert slugify_name(slug) == slug


def test_slug_transliterates_vietnamese():
    assert slugify_name("Áo Thun Nữ") == "ao-thun-nu"
    assert slugify_name("Pants & Leggings") == "pants-leggings"
    assert slugify_name("") == ""


# ---------------- grouping ----------------

ROWS = [
    {C.CODE: "SKU1", C.NAME: "Áo"},
    {C.CODE: "SKU2", C.RELATED_CODE: "SKU1", C.NAME: "Áo"},
    {C.CODE: "SKU3", C.NAME: "Quần"},
]


def test_grouping_is_order_independent():
    expected = None
    for perm in itertools.permutations(ROWS):
        groups = group_products(list(perm), C.CODE, C.RELATED_CODE)
        shape = {k: sorted(r[C.CODE] for r in g.rows) for k, g in groups.items()}
        assert shape == {"SKU1": ["SKU1", "SKU2"], "SKU3": ["SKU3"]}
        assert groups["SKU1"].main_row[C.CODE] == "SKU1"
        if expected is None:
            expected = shape
        assert shape == expected


def test_orphan_group_uses_first_row():
    rows = [
        {C.CODE: "B2", C.RELATED_CODE: "B1"},
        {C.CODE: "B3", C.RELATED_CODE: "B1"},
    ]
    groups = group_products(rows, C.CODE, C.RELATED_CODE)
    g = groups["B1"]
    assert g.is_orphan
    assert g.main_row[C.CODE] == "B2"
    assert g.codes(C.CODE, C.RELATED_CODE) == ["B1", "B2", "B3"]


def test_orphan_policy_parse():
    assert OrphanPolicy.parse("SKIP") is OrphanPolicy.SKIP
    assert OrphanPolicy.parse("whatever") is OrphanPolicy.IMPORT
    assert OrphanPolicy.parse(None) is OrphanPolicy.IMPORT


# ---------------- category paths ----------------

def test_parse_category_path():
    assert parse_category_path("100358 - Women Clothes/Pants & Leggings/Pants") == ["Pants & Leggings", "Pants"]
    assert parse_category_path("Women Clothes") == ["Women Clothes"]
    assert parse_category_path("Áo>>Áo thun>>Áo thun tay ngắn") == ["Áo", "Áo thun", "Áo thun tay ngắn"]
    assert parse_category_path("") == []
    assert parse_category_path("women clothes / Dresses") == ["Dresses"]


def test_is_flat_path():
    assert is_flat_path("Women Clothes/Dresses")
    assert is_flat_path("100017 - Dresses")
    assert is_flat_path("Áo>>Áo thun")
    assert not is_flat_path("Dresses")


def test_normalizer_builds_chain_once(ctx, store):
    label = "100358 - Women Clothes/Pants & Leggings/Pants"

    async def run():
        n = CategoryNormalizer(ctx)
        first = await n.resolve(label)
        second = await n.resolve(label)
        return first, second

    first, second = asyncio.run(run())
    assert first == second
    assert len(store.categories) == 2
    leaf = store.categories[first]
    parent = store.categories[leaf["parent_id"]]
    assert leaf["name"] == "Pants" and leaf["slug"] == "pants"
    assert parent["name"] == "Pants & Leggings" and parent["parent_id"] is None


def test_normalizer_default_category(ctx, store):
    cat_id = asyncio.run(CategoryNormalizer(ctx).resolve(None))
    assert store.categories[cat_id]["name"] == "Uncategorized"


def test_normalizer_qualifies_taken_slug(ctx, store):
    store.taken_slugs.add("pants")
    cat_id = asyncio.run(CategoryNormalizer(ctx).resolve("Women Clothes/Bottoms/Pants"))
    assert store.categories[cat_id]["slug"] == "bottoms-pants"
    assert store.categories[cat_id]["name"] == "Pants"


# ---------------- variants ----------------

def test_parse_attribute_string():
    assert parse_attribute_string("Màu sắc:Kem|Kíchcỡ:S") == [("Màu sắc", "Kem"), ("Kíchcỡ", "S")]
    assert parse_attribute_string(" Màu : Đen ") == [("Màu", "Đen")]
    assert parse_attribute_string("garbage") == []
    assert parse_attribute_string(None) == []


def test_accumulation_is_idempotent():
    strings = ["Màu:Đen|Size:S", "Màu:Trắng|Size:S"]
    once = accumulate_attributes(strings)
    twice = accumulate_attributes(strings + strings)
    assert once == twice == {"Màu": {"Đen", "Trắng"}, "Size": {"S"}}


def test_parse_variation_name():
    assert parse_variation_name("Kem, S") == ["Kem", "S"]
    assert parse_variation_name("Bắt buộc") == []
    assert parse_variation_name(None) == []


def test_resolve_dimension():
    assert resolve_dimension("Màu sắc").name == "Color"
    assert resolve_dimension("Kíchcỡ").name == "Size"
    assert resolve_dimension("Kích thước áo").name == "Size"
    by_values = resolve_dimension("Variation 2", ["S", "M", "XL"])
    assert (by_values.name, by_values.known, by_values.by) == ("Size", True, "values")
    unknown = resolve_dimension("Hoa văn", ["Sọc", "Chấm bi"])
    assert (unknown.name, unknown.known) == ("Hoa văn", False)


def test_merge_dimensions_combines_synonyms():
    acc = VariantAccumulator()
    acc.add("Màu", "Đen", 1)
    acc.add("Màu sắc", "Đen", 2)
    acc.add("Màu sắc", "Trắng", 4)
    merged = merge_dimensions(acc)
    assert len(merged) == 1
    dim, options = merged[0]
    assert dim.name == "Color"
    assert [(o.value, o.stock) for o in options] == [("Đen", 3), ("Trắng", 4)]


# ---------------- option images ----------------

MEDIA = {
    LOCALIZED.product_id: "900",
    "Ảnh bìa": "https://img/cover.jpg",
    "Hình ảnh sản phẩm 1": "https://img/cover.jpg",
    "Hình ảnh sản phẩm 2": "https://img/2.jpg",
    "Hình ảnh sản phẩm 3": "not a url",
    "Hình ảnh sản phẩm 4": "https://img/4.jpg",
    "Tên phân loại 1": "Đen",
    "Hình ảnh phân loại 1": "https://img/den.jpg",
    "Tên phân loại 2": " TRẮNG ",
    "Hình ảnh phân loại 2": "https://img/trang.jpg",
}


def test_option_image_match_ignores_case_and_whitespace():
    image_map = build_option_image_map(MEDIA, LOCALIZED)
    assert match_option_image("đen ", image_map).value == "https://img/den.jpg"
    assert match_option_image("Trắng", image_map).value == "https://img/trang.jpg"
    assert match_option_image("Màu Đen", image_map).value == "https://img/den.jpg"
    assert match_option_image("Xanh", image_map).status is MatchStatus.NO_MATCH


def test_option_image_collision_is_ambiguous():
    row = dict(MEDIA)
    row["Tên phân loại 3"] = "đen"
    row["Hình ảnh phân loại 3"] = "https://img/den-2.jpg"
    m = match_option_image("Đen", build_option_image_map(row, LOCALIZED))
    assert m.status is MatchStatus.AMBIGUOUS
    assert m.needs_review and m.value is None
    assert set(m.candidates) == {"https://img/den.jpg", "https://img/den-2.jpg"}


def test_technical_option_slots_by_variation():
    row = {
        "et_title_option_1_for_variation_1": "Đỏ",
        "et_title_option_image_1_for_variation_1": "https://img/do.jpg",
        "et_title_option_1_for_variation_2": "S",
        "et_title_option_image_1_for_variation_2": "https://img/s.jpg",
    }
    assert build_option_image_map(row, TECHNICAL, variation=1) == {"đỏ": ["https://img/do.jpg"]}
    assert set(build_option_image_map(row, TECHNICAL)) == {"đỏ", "s"}


def test_main_image_and_gallery():
    cover = main_image(MEDIA, LOCALIZED)
    assert cover == "https://img/cover.jpg"
    assert collect_gallery(MEDIA, LOCALIZED, cover) == [
        "https://img/cover.jpg", "https://img/2.jpg", "https://img/4.jpg"
    ]
    assert collect_gallery({"Ảnh bìa": "https://img/only.jpg"}, LOCALIZED, "https://img/only.jpg") == [
        "https://img/only.jpg"
    ]
    assert main_image(None, LOCALIZED) is None



def test_gallery_keeps_slot_order_and_drops_repeats():
    row = {
        "Ảnh bìa": "https://img/cover.jpg",
        "Hình ảnh sản phẩm 1": "https://img/2.jpg",
        "Hình ảnh sản phẩm 2": "https://img/cover.jpg ",
        "Hình ảnh sản phẩm 3": "https://img/2.jpg",
    }
    gallery = collect_gallery(row, LOCALIZED, main_image(row, LOCALIZED))
    assert gallery == ["https://img/2.jpg", "https://img/cover.jpg"]
    assert len(collect_gallery(
        {f"Hình ảnh sản phẩm {n}": f"https://img/{n}.jpg" for n in range(1, 9)}, LOCALIZED
    )) == 5


def test_option_urls_are_compared_after_trimming():
    row = {
        "Tên phân loại 1": "Đen",
        "Hình ảnh phân loại 1": "https://img/den.jpg  ",
        "Tên phân loại 2": "đen",
        "Hình ảnh phân loại 2": "https://img/den.jpg",
    }
    image_map = build_option_image_map(row, LOCALIZED)
    assert image_map == {"đen": ["https://img/den.jpg"]}
    assert match_option_image("Đen", image_map).status is MatchStatus.MATCHED


# ---------------- price ----------------

def test_vnd_to_usd():
    assert vnd_to_usd(254000, 25400) == 10.0
    assert vnd_to_usd(12345, 25400) == 0.49
    assert vnd_to_usd(0, 25400) == 0.0
    assert vnd_to_usd(100000, 0) == 0.0