#===========================================================================
# catalog_import/mapping/mapping_store.py
# JSON side-file mapping storefront product ids back to source SKU/group codes.
#===========================================================================

import json
import os
import logging

from typing import Dict, List, Any
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def build_sku_map(entries: List[Dict[str, Any]]) -> Dict[str, str]:
    """
    {internal_id: source_key} from registry rows, the shape the later
    reconciliation scripts expect in product_sku_map.json.
    """
    out: Dict[str, str] = {}
    for e in entries or []:
        pid = e.get("internal_id")
        key = e.get("source_key")
        if pid and key:
            out[str(pid)] = str(key)
    return out


def load_sku_map(path: str) -> Dict[str, str]:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except Exception:
            return {}
    # Support the wrapped format written below as well as a bare dict
    if isinstance(data, dict) and isinstance(data.get("products"), dict):
        return data["products"]
    return data if isinstance(data, dict) else {}


def save_sku_map(path: str, sku_map: Dict[str, str]) -> None:
    record = {
        "products": sku_map,
        "last_synced": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
    }
    folder = os.path.dirname(os.path.abspath(path))
    os.makedirs(folder, exist_ok=True)
    tmp_file = path + ".tmp"

    logger.info(f"Saving product SKU map '{path}' ({len(sku_map)} products)")
    with open(tmp_file, "w", encoding="utf-8") as f:
        json.dump(record, f, indent=2, ensure_ascii=False)
    os.replace(tmp_file, path)
