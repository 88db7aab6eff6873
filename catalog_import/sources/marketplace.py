# catalog_import/sources/marketplace.py
# --------------------------------------------------------------------------------------
# Joins the three marketplace exports (basic info, media, sales) by product ID and
# offers media-row lookups by SKU or product name for the POS import.
# --------------------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from catalog_import.reconcile.matching import Match, MatchStatus
from catalog_import.sources.columns import MarketplaceDialect
from catalog_import.sources.row_indexer import group_rows, index_rows, key_of

Row = Dict[str, Any]


@dataclass
class MarketplaceBundle:
    product_id: str
    basic: Optional[Row] = None
    media: Optional[Row] = None
    sales: List[Row] = field(default_factory=list)

    def get(self, column: str | None) -> Any:
        """First non-empty value of `column` across basic, then media."""
        if not column:
            return None
        for src in (self.basic, self.media):
            if src and src.get(column) not in (None, ""):
                return src.get(column)
        return None


def _tokens(name: str) -> List[str]:
    return [t for t in (name or "").lower().split() if t]


class MarketplaceIndex:
    def __init__(
        self,
        dialect: MarketplaceDialect,
        basic_rows: Iterable[Row] = (),
        media_rows: Iterable[Row] = (),
        sales_rows: Iterable[Row] = (),
    ):
        self.dialect = dialect
        self.basic_rows = list(basic_rows or [])
        self.media_rows = list(media_rows or [])
        self.sales_rows = list(sales_rows or [])

        self._media_by_code: Dict[str, Row] = {}
        for col in (dialect.parent_sku, dialect.product_sku, dialect.product_id):
            if not col:
                continue
            for k, row in index_rows(self.media_rows, col).items():
                self._media_by_code.setdefault(k, row)
        self._media_named = [r for r in self.media_rows if key_of(r.get(dialect.product_name))]

    # ---- product bundles (marketplace import) ----

    def bundles(self) -> Dict[str, MarketplaceBundle]:
        d = self.dialect
        basic = index_rows(self.basic_rows, d.product_id)
        media = index_rows(self.media_rows, d.product_id)
        sales = group_rows(self.sales_rows, d.product_id)
        out: Dict[str, MarketplaceBundle] = {}
        for pid in [*basic, *media, *sales]:
            if pid not in out:
                out[pid] = MarketplaceBundle(pid, basic.get(pid), media.get(pid), sales.get(pid, []))
        return out

    # ---- media lookups (POS import) ----

    def media_for_codes(self, codes: Iterable[str]) -> Optional[Row]:
        """First media row whose parent SKU, SKU or product ID equals one of `codes`."""
        for code in codes or []:
            row = self._media_by_code.get(key_of(code))
            if row is not None:
                return row
        return None

    def media_by_name(self, name: str) -> Match:
        """
        Every whitespace token of `name` must occur in the media product name
        (case-insensitive). Rows of the same marketplace product count once.
        """
        tokens = _tokens(name)
        if not tokens:
            return Match.no_match()
        d = self.dialect
        hits: Dict[str, Row] = {}
        for row in self._media_named:
            media_name = str(row.get(d.product_name)).lower()
            if all(t in media_name for t in tokens):
                pid = key_of(row.get(d.product_id)) or str(id(row))
                hits.setdefault(pid, row)
        if not hits:
            return Match.no_match()
        rows = list(hits.values())
        if len(rows) == 1:
            return Match.matched(rows[0])
        return Match(MatchStatus.AMBIGUOUS, None, tuple(key_of(r.get(d.product_id)) for r in rows))

    def find_media(self, codes: Iterable[str], name: str) -> Match:
        row = self.media_for_codes(codes)
        if row is not None:
            return Match.matched(row)
        return self.media_by_name(name)
