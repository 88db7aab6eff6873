# catalog_import/sources/columns.py
# --------------------------------------------------------------------------------------
# Column headers of the source spreadsheets. These strings are load-bearing:
# they must match the exports byte for byte.
# --------------------------------------------------------------------------------------
from __future__ import annotations

import re
from dataclasses import dataclass


# ---- KiotViet point-of-sale export (headers on row 0) ----

class PosColumns:
    CODE = "Mã hàng"
    RELATED_CODE = "Mã HH Liên quan"
    NAME = "Tên hàng"
    CATEGORY = "Nhóm hàng(3 Cấp)"
    ATTRIBUTES = "Thuộc tính"
    PRICE = "Giá bán"
    STOCK = "Tồn kho"


# ---- Shopee mass-update exports ----

@dataclass(frozen=True)
class MarketplaceDialect:
    """Header names of one export flavour (technical keys vs localized labels)."""
    name: str
    product_id: str
    product_name: str
    description: str
    parent_sku: str
    product_sku: str | None
    category: str | None
    price: str
    stock: str
    variation_name: str              # sales row: "A" or "A, B"
    cover_image: str
    cover_fallback: str | None
    gallery_image: str               # format string with {n}
    gallery_slots: int
    variation_group: str             # format string with {k}: dimension name of variation slot k
    option_value_re: re.Pattern      # groups: option slot j, variation slot k (k optional)
    option_image_fmt: str            # format string with {j} and {k}
    header_labels: tuple[str, ...]   # ID cell values that mark a repeated header row


TECHNICAL = MarketplaceDialect(
    name="technical",
    product_id="et_title_product_id",
    product_name="et_title_product_name",
    description="et_title_product_description",
    parent_sku="et_title_parent_sku",
    product_sku=None,
    category="et_title_category",
    price="et_title_variation_price",
    stock="et_title_variation_stock",
    variation_name="et_title_variation_name",
    cover_image="et_title_image_cover",
    cover_fallback="et_title_image1",
    gallery_image="et_title_image{n}",
    gallery_slots=8,
    variation_group="et_title_variation_{k}",
    option_value_re=re.compile(r"^et_title_option_(\d+)_for_variation_(\d+)$"),
    option_image_fmt="et_title_option_image_{j}_for_variation_{k}",
    header_labels=("et_title_product_id", "Mã Sản phẩm", "Product ID", "basic_info", "media_info", "sales_info"),
)

LOCALIZED = MarketplaceDialect(
    name="localized",
    product_id="Mã Sản phẩm",
    product_name="Tên Sản phẩm",
    description="Mô tả Sản phẩm",
    parent_sku="SKU Sản phẩm",
    product_sku="SKU",
    category="Ngành hàng",
    price="Giá",
    stock="Số lượng",
    variation_name="Tên phân loại",
    cover_image="Ảnh bìa",
    cover_fallback="Hình ảnh sản phẩm 1",
    gallery_image="Hình ảnh sản phẩm {n}",
    gallery_slots=8,
    variation_group="Tên nhóm phân loại hàng {k}",
    # localized media files only carry the first variation's option images
    option_value_re=re.compile(r"^Tên phân loại (\d+)$"),
    option_image_fmt="Hình ảnh phân loại {j}",
    header_labels=("Mã Sản phẩm", "Product ID", "et_title_product_id"),
)

DIALECTS = {d.name: d for d in (TECHNICAL, LOCALIZED)}


def get_dialect(name: str | None) -> MarketplaceDialect:
    return DIALECTS.get((name or "").strip().lower(), LOCALIZED)
