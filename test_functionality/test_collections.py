import pytest

from application.services.collections import CollectionService
from conftest import make_recipe
from domain.entities import Collection
from domain.exceptions import NotFound, ValidationError


@pytest.fixture
def service(store) -> CollectionService:
    return CollectionService(store)


def test_membership_transforms_are_idempotent() -> None:
    collection = Collection(name="Quick")
    once = collection.add_recipe_id(7)
    twice = once.add_recipe_id(7)
    assert twice is once
    assert twice.recipe_count() == 1

    removed = twice.remove_recipe_id(7)
    assert removed.recipe_count() == 0
    assert removed.remove_recipe_id(7) is removed


@pytest.mark.asyncio
async def test_add_same_recipe_twice(store, service) -> None:
    collection = await service.create("  Weeknight  ", "fast dinners")
    assert collection.name == "Weeknight"

    await service.add_recipe(collection.id, 7)
    version = store.version
    again = await service.add_recipe(collection.id, 7)

    assert again.recipe_ids == (7,)
    # A no-op change writes nothing.
    assert store.version == version

    emptied = await service.remove_recipe(collection.id, 7)
    assert emptied.recipe_count() == 0
    assert store.get_collection(collection.id).recipe_count() == 0


@pytest.mark.asyncio
async def test_membership_keeps_insertion_order(service) -> None:
    collection = await service.create("Ordered")
    for recipe_id in (3, 1, 2):
        collection = await service.add_recipe(collection.id, recipe_id)
    assert collection.recipe_ids == (3, 1, 2)


@pytest.mark.asyncio
async def test_recipes_skip_deleted_members(store, service) -> None:
    keep = await store.insert(make_recipe("Keep"))
    drop = await store.insert(make_recipe("Drop"))
    collection = await service.create("Mixed")
    await service.add_recipe(collection.id, drop)
    await service.add_recipe(collection.id, keep)

    await store.delete(drop)

    assert [r.id for r in service.recipes(collection.id)] == [keep]
    assert store.get_collection(collection.id).recipe_ids == (drop, keep)


@pytest.mark.asyncio
async def test_list_all_newest_first(service, clock) -> None:
    first = await service.create("First")
    clock.advance(minutes=5)
    second = await service.create("Second")
    assert [c.id for c in service.list_all()] == [second.id, first.id]


@pytest.mark.asyncio
async def test_update_details_keeps_members(service) -> None:
    collection = await service.create("Draft")
    await service.add_recipe(collection.id, 4)
    updated = await service.update_details(collection.id, "Final", "done")
    assert (updated.name, updated.description, updated.recipe_ids) == ("Final", "done", (4,))
    assert updated.created_at == collection.created_at


@pytest.mark.asyncio
async def test_blank_collection_name_is_rejected(service) -> None:
    with pytest.raises(ValidationError) as excinfo:
        await service.create("   ")
    assert excinfo.value.field == "name"


@pytest.mark.asyncio
async def test_unknown_collection(store, service) -> None:
    with pytest.raises(NotFound):
        await service.add_recipe(404, 1)
    with pytest.raises(NotFound):
        service.recipes(404)
    with pytest.raises(NotFound):
        await service.delete(404)


@pytest.mark.asyncio
async def test_delete_collection_keeps_recipes(store, service) -> None:
    recipe_id = await store.insert(make_recipe("Survivor"))
    collection = await service.create("Temporary")
    await service.add_recipe(collection.id, recipe_id)

    await service.delete(collection.id)

    assert store.count_collections() == 0
    assert store.get(recipe_id) is not None
