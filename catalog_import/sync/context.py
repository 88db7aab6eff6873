# catalog_import/sync/context.py
# =======================================================
# Per-run state threaded through the import pipeline:
# store client, translator, source key registry, options,
# category caches and the run report.
# =======================================================
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from catalog_import.config import settings
from catalog_import.reconcile.grouping import OrphanPolicy
from catalog_import.sync.report import ImportReport


@dataclass
class ImportOptions:
    exchange_rate: int = 25400
    default_category: str = "Uncategorized"
    root_segments: List[str] = field(default_factory=lambda: ["Women Clothes"])
    option_prefixes: List[str] = field(default_factory=lambda: ["Màu", "Color"])
    batch_size: int = 50
    skip_out_of_stock: bool = True
    orphan_policy: OrphanPolicy = OrphanPolicy.IMPORT
    sku_map_path: str | None = None
    progress_every: int = 10
    gallery_limit: int = 5

    @classmethod
    def from_settings(cls) -> "ImportOptions":
        return cls(
            exchange_rate=settings.EXCHANGE_RATE,
            default_category=settings.DEFAULT_CATEGORY,
            root_segments=list(settings.CATEGORY_ROOT_SEGMENTS),
            option_prefixes=list(settings.OPTION_PREFIXES),
            batch_size=max(1, settings.BATCH_SIZE),
            skip_out_of_stock=settings.SKIP_OUT_OF_STOCK,
            orphan_policy=OrphanPolicy.parse(settings.ORPHAN_GROUP_POLICY),
            sku_map_path=settings.SKU_MAP_PATH or None,
        )


@dataclass
class ImportContext:
    store: Any
    translator: Any
    registry: Any
    options: ImportOptions = field(default_factory=ImportOptions)
    report: ImportReport = field(default_factory=ImportReport)
    # raw category label -> leaf category id
    category_cache: Dict[str, Any] = field(default_factory=dict)
    # (parent_id, slug) -> category id
    category_nodes: Dict[Tuple[Any, str], Any] = field(default_factory=dict)


async def open_context(name: str = "import") -> ImportContext:
    """
    Build a context from settings for scripts and the admin API.
    Raises MissingCredentials before anything is written.
    """
    from catalog_import.db import get_sessionmaker, init_db
    from catalog_import.mapping.source_key_store import SourceKeyRegistry
    from catalog_import.supabase import CatalogStore
    from catalog_import.translate import Translator

    store = CatalogStore.from_settings()
    await init_db()
    return ImportContext(
        store=store,
        translator=Translator.from_settings(),
        registry=SourceKeyRegistry(get_sessionmaker()),
        options=ImportOptions.from_settings(),
        report=ImportReport(name=name),
    )
