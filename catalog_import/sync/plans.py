# catalog_import/sync/plans.py
# Plain data the reconcilers produce and the writer persists.
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class OptionPlan:
    value: str
    image_url: Optional[str] = None
    stock: int = 0


@dataclass
class VariantPlan:
    name: str
    options: List[OptionPlan] = field(default_factory=list)

    def values(self) -> List[str]:
        return [o.value for o in self.options]


@dataclass
class ProductPlan:
    source: str
    source_key: str
    name: str
    description: str = ""
    price_vnd: int | float = 0
    price_usd: float = 0.0
    category_id: Any = None
    main_image_url: Optional[str] = None
    stock: int = 0
    images: List[str] = field(default_factory=list)
    variants: List[VariantPlan] = field(default_factory=list)

    def product_row(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description or "",
            "price_vnd": self.price_vnd,
            "price_usd": self.price_usd,
            "category_id": self.category_id,
            "main_image_url": self.main_image_url,
            "stock": self.stock,
        }

    def variant(self, name: str) -> Optional[VariantPlan]:
        for v in self.variants:
            if v.name == name:
                return v
        return None
