# ----------------------------------------------------------------
# Import configuration variables to be used throughout the project
# ----------------------------------------------------------------
import os
from dotenv import load_dotenv

# Load .env (allow shell env to override file values)
load_dotenv(override=True)


def _rstrip_slash(s: str) -> str:
    return (s or "").rstrip("/")


def _get_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on", "y"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _get_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


class Settings:
    # ── Supabase / PostgREST ─────────────────────────────────────────────────
    SUPABASE_URL: str = _rstrip_slash(os.getenv("SUPABASE_URL", "") or os.getenv("NEXT_PUBLIC_SUPABASE_URL", ""))
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY", "")
    HTTP_TIMEOUT: float = _get_float("HTTP_TIMEOUT", 30.0)

    # ── Local bookkeeping DB (source key registry) ───────────────────────────
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DATA_DIR: str = os.getenv("DATA_DIR", "./data")

    # ── Source spreadsheets ──────────────────────────────────────────────────
    POS_FILE: str = os.getenv("POS_FILE", "DanhSachSanPham_KV20012026-020153-299.xlsx")
    BASIC_FILE: str = os.getenv("BASIC_FILE", "mass_update_basic_info_111608803_20260120023837.xlsx")
    MEDIA_FILE: str = os.getenv("MEDIA_FILE", "mass_update_media_info_111608803_20260120023826.xlsx")
    SALES_FILE: str = os.getenv("SALES_FILE", "mass_update_sales_info_111608803_20260120023906.xlsx")

    # KiotViet exports have headers on row 0; Shopee mass-update files carry
    # technical keys on row 0 and localized labels on row 2.
    POS_HEADER_ROW: int = _get_int("POS_HEADER_ROW", 0)
    MARKETPLACE_DIALECT: str = os.getenv("MARKETPLACE_DIALECT", "localized").strip().lower()
    MARKETPLACE_HEADER_ROW: int = _get_int(
        "MARKETPLACE_HEADER_ROW",
        0 if os.getenv("MARKETPLACE_DIALECT", "localized").strip().lower() == "technical" else 2,
    )

    # ── Import behaviour ─────────────────────────────────────────────────────
    EXCHANGE_RATE: int = _get_int("EXCHANGE_RATE", 25400)  # 1 USD in VND, fixed at import time
    DEFAULT_CATEGORY: str = os.getenv("DEFAULT_CATEGORY", "Uncategorized")
    CATEGORY_ROOT_SEGMENTS: list[str] = _get_list("CATEGORY_ROOT_SEGMENTS", ["Women Clothes"])
    OPTION_PREFIXES: list[str] = _get_list("OPTION_PREFIXES", ["Màu", "Color"])
    BATCH_SIZE: int = _get_int("BATCH_SIZE", 50)
    SKIP_OUT_OF_STOCK: bool = _get_bool("SKIP_OUT_OF_STOCK", True)
    ORPHAN_GROUP_POLICY: str = os.getenv("ORPHAN_GROUP_POLICY", "import").strip().lower()

    # ── Translation (best-effort) ────────────────────────────────────────────
    TRANSLATE_ENABLED: bool = _get_bool("TRANSLATE_ENABLED", True)
    TRANSLATE_URL: str = os.getenv("TRANSLATE_URL", "https://translate.googleapis.com/translate_a/single")
    TRANSLATE_SOURCE: str = os.getenv("TRANSLATE_SOURCE", "auto")
    TRANSLATE_TARGET: str = os.getenv("TRANSLATE_TARGET", "en")
    TRANSLATE_CONCURRENCY: int = _get_int("TRANSLATE_CONCURRENCY", 3)

    # ── Outputs ──────────────────────────────────────────────────────────────
    SKU_MAP_PATH: str = os.getenv("SKU_MAP_PATH", "product_sku_map.json")

    # ── Admin API ────────────────────────────────────────────────────────────
    ADMIN_USER: str = os.getenv("ADMIN_USER", "admin")
    ADMIN_PASS: str = os.getenv("ADMIN_PASS", "changeme")


settings = Settings()
