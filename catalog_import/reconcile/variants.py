# catalog_import/reconcile/variants.py
# --------------------------------------------------------------------------------------
# Variant dimensions and options.
#   POS attribute strings:      "Màu sắc:Kem|Kíchcỡ:S"
#   marketplace variation name: "Kem, S"  (one value per variation slot)
# Dimension names are mapped to canonical names through explicit tables; anything
# unknown stays visible as such instead of being guessed.
# --------------------------------------------------------------------------------------
from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple

from catalog_import.reconcile.util import lower, norm

# placeholder the marketplace puts in the variation column of simple products
NO_VARIATION_VALUES = {"bắt buộc"}

COLOR = "Color"
SIZE = "Size"
MATERIAL = "Material"
STYLE = "Style"

# normalized dimension label -> canonical name. Lookup is exact on the whole label
# first, then on its leading word(s).
KNOWN_DIMENSIONS: Dict[str, str] = {
    "màu": COLOR,
    "màu sắc": COLOR,
    "mau": COLOR,
    "mau sac": COLOR,
    "color": COLOR,
    "colour": COLOR,
    "size": SIZE,
    "kích": SIZE,
    "kích cỡ": SIZE,
    "kíchcỡ": SIZE,
    "kích thước": SIZE,
    "kich co": SIZE,
    "cỡ": SIZE,
    "chất liệu": MATERIAL,
    "material": MATERIAL,
    "kiểu": STYLE,
    "kiểu dáng": STYLE,
    "mẫu": STYLE,
    "style": STYLE,
}

# used only for generic slot names ("Variation 1") that say nothing themselves
SIZE_VALUES = {"xs", "s", "m", "l", "xl", "xxl", "2xl", "3xl", "xxxl", "freesize", "free size"}
COLOR_WORDS = ("đỏ", "xanh", "trắng", "đen", "vàng", "hồng", "tím", "nâu", "xám", "kem")


@dataclass(frozen=True)
class DimensionName:
    raw: str
    name: str
    known: bool
    by: str = "name"   # "name" | "values" | "unknown"


def _nfc(s: str) -> str:
    return unicodedata.normalize("NFC", s)


def _label_key(s: Any) -> str:
    return " ".join(_nfc(lower(s)).split())


def is_placeholder_dimension(raw: Any) -> bool:
    key = _label_key(raw)
    return key.startswith("variation") or key.startswith("phân loại") or key == ""


def resolve_dimension(raw: Any, values: Iterable[str] = ()) -> DimensionName:
    """
    Canonical dimension for a raw label. Known terms -> known=True; generic slot
    names can be settled from their option values; anything else comes back
    unchanged with known=False.
    """
    label = norm(raw)
    key = _label_key(raw)
    if key in KNOWN_DIMENSIONS:
        return DimensionName(label, KNOWN_DIMENSIONS[key], True)

    words = key.split()
    for n in (2, 1):
        head = " ".join(words[:n])
        if len(words) >= n and head in KNOWN_DIMENSIONS:
            return DimensionName(label, KNOWN_DIMENSIONS[head], True)

    if is_placeholder_dimension(raw):
        vals = [_label_key(v) for v in values or [] if norm(v)]
        if vals and all(v in SIZE_VALUES for v in vals):
            return DimensionName(label, SIZE, True, by="values")
        if vals and any(any(c in v for c in COLOR_WORDS) for v in vals):
            return DimensionName(label, COLOR, True, by="values")

    return DimensionName(label, label or "Variation", False, by="unknown")


def parse_attribute_string(attr: Any) -> List[Tuple[str, str]]:
    """"Màu sắc:Kem|Kíchcỡ:S" -> [("Màu sắc", "Kem"), ("Kíchcỡ", "S")]"""
    out: List[Tuple[str, str]] = []
    if attr is None:
        return out
    for part in str(attr).split("|"):
        key, sep, val = part.partition(":")
        key, val = key.strip(), val.strip()
        if sep and key and val:
            out.append((key, val))
    return out


def parse_variation_name(raw: Any) -> List[str]:
    """Marketplace "Tên phân loại": "Kem, S" -> ["Kem", "S"]; placeholders -> []."""
    text = norm(raw)
    if not text or lower(text) in NO_VARIATION_VALUES:
        return []
    return [p.strip() for p in text.split(",")]


@dataclass
class OptionTally:
    value: str
    stock: int = 0


@dataclass
class VariantAccumulator:
    """dimension -> ordered unique option values, with summed stock per value."""
    dimensions: Dict[str, Dict[str, OptionTally]] = field(default_factory=dict)

    def add(self, dimension: str, value: str, stock: int = 0) -> None:
        dimension, value = norm(dimension), norm(value)
        if not dimension or not value:
            return
        options = self.dimensions.setdefault(dimension, {})
        tally = options.get(value)
        if tally is None:
            tally = options[value] = OptionTally(value)
        tally.stock += int(stock or 0)

    def add_attribute_string(self, attr: Any, stock: int = 0) -> None:
        for dim, val in parse_attribute_string(attr):
            self.add(dim, val, stock)

    def values(self, dimension: str) -> List[str]:
        return list(self.dimensions.get(dimension, {}).keys())

    def as_sets(self) -> Dict[str, Set[str]]:
        return {dim: set(opts.keys()) for dim, opts in self.dimensions.items()}

    def __bool__(self) -> bool:
        return bool(self.dimensions)


def accumulate_attributes(attr_strings: Iterable[Any]) -> Dict[str, Set[str]]:
    acc = VariantAccumulator()
    for s in attr_strings or []:
        acc.add_attribute_string(s)
    return acc.as_sets()


def merge_dimensions(acc: VariantAccumulator) -> List[Tuple[DimensionName, List[OptionTally]]]:
    """
    Resolve every raw dimension and merge those that land on the same canonical
    name ("Màu" and "Màu sắc" both -> Color), keeping first-seen option order.
    """
    merged: Dict[str, Tuple[DimensionName, Dict[str, OptionTally]]] = {}
    for raw, options in acc.dimensions.items():
        dim = resolve_dimension(raw, options.keys())
        slot = merged.get(dim.name)
        if slot is None:
            merged[dim.name] = (dim, {k: OptionTally(v.value, v.stock) for k, v in options.items()})
            continue
        for k, v in options.items():
            if k in slot[1]:
                slot[1][k].stock += v.stock
            else:
                slot[1][k] = OptionTally(v.value, v.stock)
    return [(dim, list(opts.values())) for dim, opts in merged.values()]
