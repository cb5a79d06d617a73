from dataclasses import replace
from datetime import datetime, timezone

import pytest

from conftest import make_recipe, open_store
from domain.entities import Collection, Nutrition, Recipe
from domain.exceptions import NotFound, ValidationError
from domain.models import DifficultyLevel, RecipeCategory
from infrastructure.persistence.collection_repo import SQLiteCollectionRepository
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.recipe_repo import SQLiteRecipeRepository


@pytest.mark.asyncio
async def test_insert_assigns_id_and_stamps_dates(store, clock) -> None:
    recipe_id = await store.insert(make_recipe("Pasta Bake"))
    stored = store.get(recipe_id)
    assert recipe_id > 0
    assert stored.id == recipe_id
    assert stored.date_created == clock.now
    assert stored.date_modified == clock.now
    assert store.count() == 1


@pytest.mark.asyncio
async def test_toggle_favorite_twice_restores_flag(store) -> None:
    recipe_id = await store.insert(make_recipe("Pancakes", RecipeCategory.BREAKFAST))
    original = store.get(recipe_id)

    once = await store.toggle_favorite(recipe_id)
    twice = await store.toggle_favorite(recipe_id)

    assert once.is_favorite is True
    assert twice.is_favorite is original.is_favorite
    # Clock never moved, yet every write advanced date_modified.
    assert original.date_modified < once.date_modified < twice.date_modified
    assert twice.date_created == original.date_created


@pytest.mark.asyncio
async def test_toggle_favorite_with_explicit_value(store) -> None:
    recipe_id = await store.insert(make_recipe("Pancakes"))
    assert (await store.toggle_favorite(recipe_id, True)).is_favorite is True
    assert (await store.toggle_favorite(recipe_id, True)).is_favorite is True
    assert (await store.toggle_favorite(recipe_id, False)).is_favorite is False


@pytest.mark.asyncio
async def test_mismatched_total_time_is_rejected(store) -> None:
    broken = Recipe(
        name="Stew", category=RecipeCategory.DINNER,
        prep_time_min=10, cook_time_min=20, total_time_min=25,
    )
    with pytest.raises(ValidationError) as excinfo:
        await store.insert(broken)
    assert excinfo.value.field == "total_time_min"
    assert store.count() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields,field_name",
    (
        ({"name": "   "}, "name"),
        ({"servings": 0}, "servings"),
        ({"rating": 5.5}, "rating"),
        ({"tags": ("ok", "a,b")}, "tags"),
        ({"ingredients": ("flour", "")}, "ingredients"),
        ({"nutrition": Nutrition(calories=-1)}, "nutrition.calories"),
    ),
)
async def test_invalid_fields_are_named(store, fields, field_name) -> None:
    recipe = replace(make_recipe("Valid"), **fields)
    with pytest.raises(ValidationError) as excinfo:
        await store.insert(recipe)
    assert excinfo.value.field == field_name


@pytest.mark.asyncio
async def test_update_rating_validates(store) -> None:
    recipe_id = await store.insert(make_recipe("Soup"))
    with pytest.raises(ValidationError) as excinfo:
        await store.update_rating(recipe_id, -1)
    assert excinfo.value.field == "rating"
    assert store.get(recipe_id).rating == 0.0

    rated = await store.update_rating(recipe_id, 4)
    assert rated.rating == 4.0


@pytest.mark.asyncio
async def test_unknown_ids_raise_not_found(store) -> None:
    with pytest.raises(NotFound):
        await store.update(make_recipe("Ghost", id=99))
    with pytest.raises(NotFound):
        await store.delete(99)
    with pytest.raises(NotFound):
        await store.toggle_favorite(99)
    with pytest.raises(NotFound):
        await store.mark_as_cooked(99)
    assert store.get(99) is None


@pytest.mark.asyncio
async def test_upsert_keeps_creation_date(store, clock) -> None:
    recipe_id = await store.insert(make_recipe("Old name"))
    created = store.get(recipe_id).date_created

    clock.advance(hours=1)
    same_id = await store.insert(make_recipe("New name", id=recipe_id))

    assert same_id == recipe_id
    assert store.count() == 1
    stored = store.get(recipe_id)
    assert stored.name == "New name"
    assert stored.date_created == created
    assert stored.date_modified == clock.now


@pytest.mark.asyncio
async def test_update_overwrites_fields(store) -> None:
    recipe_id = await store.insert(make_recipe("Curry"))
    current = store.get(recipe_id)
    updated = await store.update(replace(
        current, difficulty=DifficultyLevel.HARD, prep_time_min=30, total_time_min=50,
    ))
    assert store.get(recipe_id) == updated
    assert updated.difficulty is DifficultyLevel.HARD
    assert updated.total_time_min == 50


@pytest.mark.asyncio
async def test_mark_as_cooked_and_reset(store, clock) -> None:
    recipe_id = await store.insert(make_recipe("Risotto"))
    clock.advance(days=1)
    await store.mark_as_cooked(recipe_id)
    cooked = await store.mark_as_cooked(recipe_id)
    assert cooked.times_cooked == 2
    assert cooked.last_cooked == clock.now

    reset = await store.reset_times_cooked(recipe_id)
    assert reset.times_cooked == 0
    assert reset.last_cooked is None


@pytest.mark.asyncio
async def test_bulk_insert_and_delete(store) -> None:
    ids = await store.insert_all([make_recipe(f"Recipe {n}") for n in range(4)])
    assert len(set(ids)) == 4
    assert store.count() == 4

    assert await store.delete_by_ids([ids[0], ids[1], 999]) == 2
    assert store.count() == 2

    assert await store.delete_all() == 2
    assert store.count() == 0


@pytest.mark.asyncio
async def test_every_write_bumps_version_and_notifies(store) -> None:
    seen = []
    unsubscribe = store.subscribe(lambda snapshot: seen.append(snapshot.version))
    start = store.version

    recipe_id = await store.insert(make_recipe("Tacos"))
    await store.update_notes(recipe_id, "extra lime")
    await store.delete(recipe_id)
    unsubscribe()
    await store.insert(make_recipe("Unheard"))

    assert seen == [start + 1, start + 2, start + 3]
    assert store.version == start + 4


@pytest.mark.asyncio
async def test_failed_write_changes_nothing(store) -> None:
    recipe_id = await store.insert(make_recipe("Stable"))
    version = store.version
    with pytest.raises(ValidationError):
        await store.update(replace(store.get(recipe_id), total_time_min=1))
    assert store.version == version
    assert store.get(recipe_id).total_time_min == 30


@pytest.mark.asyncio
async def test_records_survive_reopening(store, db_path, clock) -> None:
    await store.insert(make_recipe(
        "Full Recipe",
        RecipeCategory.LUNCH,
        difficulty=DifficultyLevel.MEDIUM,
        description="All fields set",
        cuisine="Greek",
        servings=4,
        ingredients=("feta", "olives"),
        instructions=("Chop.", "Mix."),
        tags=("salad", "summer"),
        image_url="https://example.com/salad.jpg",
        nutrition=Nutrition(calories=320, protein_g=12.5, carbs_g=9.0, fat_g=25.0),
    ))
    recipe_id = await store.insert(make_recipe("Bare"))
    await store.toggle_favorite(recipe_id)
    await store.update_rating(recipe_id, 3.5)
    await store.mark_as_cooked(recipe_id)
    await store.insert_collection(Collection(name="Weekend", recipe_ids=(recipe_id, 77)))

    reopened = await open_store(db_path, clock)

    assert reopened.get_all() == store.get_all()
    assert reopened.get_all_collections() == store.get_all_collections()


@pytest.mark.asyncio
async def test_deleting_recipe_leaves_collection_membership(store) -> None:
    recipe_id = await store.insert(make_recipe("Doomed"))
    collection_id = await store.insert_collection(
        Collection(name="Favs", recipe_ids=(recipe_id,)),
    )
    await store.delete(recipe_id)

    collection = store.get_collection(collection_id)
    assert recipe_id in collection
    assert collection.recipe_count() == 1


@pytest.mark.asyncio
async def test_update_with_stale_copy_keeps_cooking_history(store, clock) -> None:
    recipe_id = await store.insert(make_recipe("Lasagne"))
    stale = store.get(recipe_id)
    clock.advance(days=1)
    await store.mark_as_cooked(recipe_id)
    await store.mark_as_cooked(recipe_id)

    updated = await store.update(replace(stale, notes="edited"))

    assert updated.notes == "edited"
    assert updated.times_cooked == 2
    assert updated.last_cooked == clock.now
    assert store.get(recipe_id).times_cooked == 2


@pytest.mark.asyncio
async def test_update_cannot_raise_cooking_counter(store) -> None:
    recipe_id = await store.insert(make_recipe("Chili"))
    current = store.get(recipe_id)
    updated = await store.update(replace(current, times_cooked=40))
    assert updated.times_cooked == 0
    assert updated.last_cooked is None


@pytest.mark.asyncio
async def test_upsert_over_cooked_recipe_keeps_cooking_history(store, clock) -> None:
    recipe_id = await store.insert(make_recipe("Goulash"))
    cooked = await store.mark_as_cooked(recipe_id)

    clock.advance(hours=2)
    await store.insert(make_recipe("Goulash v2", id=recipe_id))

    stored = store.get(recipe_id)
    assert stored.name == "Goulash v2"
    assert stored.times_cooked == 1
    assert stored.last_cooked == cooked.last_cooked


@pytest.mark.asyncio
async def test_new_record_starts_uncooked(store) -> None:
    recipe_id = await store.insert(make_recipe(
        "Seeded", times_cooked=9, last_cooked=datetime(2000, 1, 1, tzinfo=timezone.utc),
    ))
    stored = store.get(recipe_id)
    assert stored.times_cooked == 0
    assert stored.last_cooked is None


@pytest.mark.asyncio
async def test_row_removed_behind_the_store_is_dropped(store, db_path) -> None:
    recipe_id = await store.insert(make_recipe("Phantom"))
    collection_id = await store.insert_collection(Collection(name="Phantoms"))
    connection = AsyncSQLiteConnection(db_path)
    await SQLiteRecipeRepository(connection).delete([recipe_id])
    await SQLiteCollectionRepository(connection).delete(collection_id)

    with pytest.raises(NotFound):
        await store.toggle_favorite(recipe_id)
    with pytest.raises(NotFound):
        await store.apply_to_collection(collection_id, lambda c: c.add_recipe_id(1))

    assert store.get(recipe_id) is None
    assert store.get_collection(collection_id) is None
