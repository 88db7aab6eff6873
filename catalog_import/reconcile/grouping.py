# catalog_import/reconcile/grouping.py
# --------------------------------------------------------------------------------------
# Collapse point-of-sale rows into product families via the related-code column.
# --------------------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from catalog_import.sources.row_indexer import key_of

Row = Dict[str, Any]


class OrphanPolicy(str, Enum):
    IMPORT = "import"   # related code with no anchor row still becomes a product
    SKIP = "skip"

    @classmethod
    def parse(cls, value: str | None) -> "OrphanPolicy":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.IMPORT


@dataclass
class ProductGroup:
    key: str
    rows: List[Row] = field(default_factory=list)
    anchor: Row | None = None

    @property
    def is_orphan(self) -> bool:
        return self.anchor is None

    @property
    def main_row(self) -> Row:
        return self.anchor if self.anchor is not None else self.rows[0]

    def codes(self, code_col: str, related_col: str) -> List[str]:
        """Every own/related code in the family, group key first."""
        out = [self.key]
        for r in self.rows:
            for col in (code_col, related_col):
                k = key_of(r.get(col))
                if k and k not in out:
                    out.append(k)
        return out


def group_key(row: Row, code_col: str, related_col: str) -> str:
    return key_of(row.get(related_col)) or key_of(row.get(code_col))


def group_products(rows: List[Row], code_col: str, related_col: str) -> Dict[str, ProductGroup]:
    """
    Groups keyed by `related_code or own_code`. The key depends only on the row
    itself, so membership does not depend on the order rows arrive in.
    The anchor is the row with no related code whose own code equals the key.
    """
    groups: Dict[str, ProductGroup] = {}
    for row in rows or []:
        gid = group_key(row, code_col, related_col)
        if not gid:
            continue
        g = groups.setdefault(gid, ProductGroup(gid))
        g.rows.append(row)
        own = key_of(row.get(code_col))
        related = key_of(row.get(related_col))
        if g.anchor is None and own == gid and related in ("", own):
            g.anchor = row
    return groups
