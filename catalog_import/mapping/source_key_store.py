#===========================================================================
# catalog_import/mapping/source_key_store.py
# Persistent source key -> storefront id registry (upsert-by-natural-key).
#===========================================================================
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_import.models.source_keys import SourceKey

logger = logging.getLogger(__name__)


class SourceKeyRegistry:
    """
    Maps (source, entity, source_key) to the id the storefront DB assigned.
    Re-running an import consults this instead of wiping the catalog.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def get(self, source: str, key: str, entity: str = "product") -> str | None:
        async with self._sessionmaker() as session:
            row = await session.scalar(
                select(SourceKey).where(
                    SourceKey.source == source,
                    SourceKey.entity == entity,
                    SourceKey.source_key == str(key),
                )
            )
            return row.internal_id if row else None

    async def get_many(self, source: str, keys: Iterable[str], entity: str = "product") -> Dict[str, str]:
        wanted = [str(k) for k in keys]
        if not wanted:
            return {}
        out: Dict[str, str] = {}
        async with self._sessionmaker() as session:
            # chunk to stay under SQLite's bound-parameter limit
            for i in range(0, len(wanted), 500):
                chunk = wanted[i:i + 500]
                rows = await session.scalars(
                    select(SourceKey).where(
                        SourceKey.source == source,
                        SourceKey.entity == entity,
                        SourceKey.source_key.in_(chunk),
                    )
                )
                for row in rows:
                    out[row.source_key] = row.internal_id
        return out

    async def put(self, source: str, key: str, internal_id: str, entity: str = "product") -> None:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.scalar(
                    select(SourceKey).where(
                        SourceKey.source == source,
                        SourceKey.entity == entity,
                        SourceKey.source_key == str(key),
                    )
                )
                if row:
                    if row.internal_id != str(internal_id):
                        logger.info("[KEYS] %s:%s re-pointed %s -> %s", source, key, row.internal_id, internal_id)
                    row.internal_id = str(internal_id)
                else:
                    session.add(SourceKey(
                        source=source,
                        entity=entity,
                        source_key=str(key),
                        internal_id=str(internal_id),
                    ))

    async def forget(self, source: str, key: str, entity: str = "product") -> bool:
        async with self._sessionmaker() as session:
            async with session.begin():
                row = await session.scalar(
                    select(SourceKey).where(
                        SourceKey.source == source,
                        SourceKey.entity == entity,
                        SourceKey.source_key == str(key),
                    )
                )
                if not row:
                    return False
                await session.delete(row)
                return True

    async def list(self, source: str | None = None, entity: str = "product") -> List[Dict[str, str]]:
        stmt = select(SourceKey).where(SourceKey.entity == entity)
        if source:
            stmt = stmt.where(SourceKey.source == source)
        async with self._sessionmaker() as session:
            rows = await session.scalars(stmt.order_by(SourceKey.id))
            return [
                {"source": r.source, "source_key": r.source_key, "internal_id": r.internal_id}
                for r in rows
            ]
