# catalog_import/sources/row_indexer.py
# --------------------------------------------------------------------------------------
# In-memory lookups over spreadsheet rows: key -> row, key -> [rows], key -> price.
# --------------------------------------------------------------------------------------
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Union

Row = Dict[str, Any]
Key = Union[str, Callable[[Row], Any]]

_NON_DIGIT_RE = re.compile(r"[^0-9]")


def key_of(value: Any) -> str:
    """Normalize a join key so 123, 123.0 and " 123 " all meet."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def clean_price(raw: Any) -> int | float:
    if raw is None or raw == "":
        return 0
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return int(raw) if float(raw).is_integer() else raw
    cleaned = _NON_DIGIT_RE.sub("", str(raw))
    return int(cleaned) if cleaned else 0


def to_int(raw: Any) -> int:
    """Stock-style cells: '12', 12.0, ' 3 ' -> int; anything else -> 0."""
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return int(raw)
    try:
        return int(float(str(raw).strip().replace(",", "")))
    except (TypeError, ValueError):
        return 0


def text(raw: Any) -> str:
    if raw is None:
        return ""
    return key_of(raw)


def _key_fn(key: Key) -> Callable[[Row], str]:
    """A column name, or a function computing the key from the whole row."""
    if callable(key):
        return lambda row: key_of(key(row))
    return lambda row: key_of(row.get(key))


def index_rows(rows: Iterable[Row], key: Key) -> Dict[str, Row]:
    """key -> first row seen with that key."""
    out: Dict[str, Row] = {}
    get_key = _key_fn(key)
    for row in rows or []:
        k = get_key(row)
        if k and k not in out:
            out[k] = row
    return out


def group_rows(rows: Iterable[Row], key: Key) -> Dict[str, List[Row]]:
    """key -> all rows with that key, in input order."""
    out: Dict[str, List[Row]] = {}
    get_key = _key_fn(key)
    for row in rows or []:
        k = get_key(row)
        if k:
            out.setdefault(k, []).append(row)
    return out


def index_prices(rows: Iterable[Row], key: Key, price_column: str) -> Dict[str, int | float]:
    """
    key -> price. First seen wins, except that a stored 0 is replaced by the
    first non-zero price for the same key.
    """
    out: Dict[str, int | float] = {}
    get_key = _key_fn(key)
    for row in rows or []:
        k = get_key(row)
        if not k:
            continue
        price = clean_price(row.get(price_column))
        if k not in out or (not out[k] and price > 0):
            out[k] = price
    return out


def index_column(rows: Iterable[Row], key: Key, value_column: str) -> Dict[str, Any]:
    """key -> value of another column, first non-empty value wins."""
    out: Dict[str, Any] = {}
    get_key = _key_fn(key)
    for row in rows or []:
        k = get_key(row)
        v = row.get(value_column)
        if k and v not in (None, "") and k not in out:
            out[k] = v
    return out
