import asyncio

from sqlalchemy.ext.asyncio import async_sessionmaker

from catalog_import.db import init_db, make_engine
from catalog_import.mapping.mapping_store import build_sku_map
from catalog_import.mapping.source_key_store import SourceKeyRegistry


def test_registry_round_trip_on_sqlite(tmp_path):
    async def scenario():
        engine = make_engine(f"sqlite+aiosqlite:///{tmp_path}/keys.db")
        try:
            await init_db(engine)
            reg = SourceKeyRegistry(async_sessionmaker(engine, expire_on_commit=False))

            await reg.put("pos", "SKU1", "10")
            await reg.put("pos", "SKU1", "11")
            await reg.put("pos", "SKU2", "12")
            await reg.put("marketplace", "SKU1", "13")

            got = await reg.get("pos", "SKU1")
            many = await reg.get_many("pos", ["SKU1", "SKU2", "nope"])
            pos_entries = await reg.list("pos")
            all_entries = await reg.list()
            removed = await reg.forget("pos", "SKU2")
            removed_again = await reg.forget("pos", "SKU2")
            after = await reg.get("pos", "SKU2")
        finally:
            await engine.dispose()
        return got, many, pos_entries, all_entries, removed, removed_again, after

    got, many, pos_entries, all_entries, removed, removed_again, after = asyncio.run(scenario())

    assert got == "11"
    assert many == {"SKU1": "11", "SKU2": "12"}
    assert [e["source_key"] for e in pos_entries] == ["SKU1", "SKU2"]
    assert len(all_entries) == 3
    assert build_sku_map(pos_entries) == {"11": "SKU1", "12": "SKU2"}
    assert removed is True
    assert removed_again is False
    assert after is None
