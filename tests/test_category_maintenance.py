import asyncio

from catalog_import.sync.category_maintenance import (
    cleanup_unused_categories,
    migrate_category_tree,
    unused_categories,
)


def _cat(cid, name, parent_id=None, slug=None):
    return {"id": cid, "name": name, "slug": slug or f"c{cid}", "parent_id": parent_id}


def test_migrate_flat_paths_into_tree(ctx, store):
    store.categories[100] = _cat(100, "100358 - Women Clothes/Pants & Leggings/Pants")
    store.categories[101] = _cat(101, "Dresses", slug="dresses")
    store.products[500] = {"id": 500, "name": "Quần", "category_id": 100}
    store.products[501] = {"id": 501, "name": "Váy", "category_id": 101}

    result = asyncio.run(migrate_category_tree(ctx))

    assert result["flat"] == 1
    assert result["migrated"] == 1
    assert result["products_moved"] == 1
    assert result["deleted"] == 1
    assert 100 not in store.categories
    leaf = store.categories[store.products[500]["category_id"]]
    assert leaf["name"] == "Pants"
    assert store.categories[leaf["parent_id"]]["name"] == "Pants & Leggings"
    assert store.products[501]["category_id"] == 101


def test_unused_categories_keep_ancestors_and_go_deepest_first():
    categories = [
        _cat(1, "Tops"),
        _cat(2, "Shirts", 1),
        _cat(3, "Unused"),
        _cat(4, "Old", 3),
        _cat(5, "Dead leaf", 1),
    ]
    products = [{"id": 9, "category_id": 2}, {"id": 10, "category_id": None}]
    assert [c["id"] for c in unused_categories(products, categories)] == [4, 5, 3]


def test_cleanup_deletes_and_dry_run_keeps(ctx, store):
    for c in (_cat(1, "Tops"), _cat(2, "Shirts", 1), _cat(3, "Unused")):
        store.categories[c["id"]] = c
    store.products[9] = {"id": 9, "category_id": 2}

    preview = asyncio.run(cleanup_unused_categories(ctx, dry_run=True))
    assert preview["unused"] == 1 and preview["deleted"] == 0
    assert set(store.categories) == {1, 2, 3}

    result = asyncio.run(cleanup_unused_categories(ctx))
    assert result["deleted"] == 1
    assert result["names"] == ["Unused"]
    assert set(store.categories) == {1, 2}
