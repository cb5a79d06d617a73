import pytest

from conftest import make_recipe
from domain.aggregates import (
    average_cooking_time,
    average_rating,
    category_counts,
    compute_statistics,
)
from domain.models import RecipeCategory


def test_average_rating_ignores_unrated() -> None:
    recipes = [
        make_recipe("A", rating=0.0),
        make_recipe("B", rating=4.0),
        make_recipe("C", rating=5.0),
    ]
    assert average_rating(recipes) == pytest.approx(4.5)


def test_average_rating_without_rated_recipes_is_none() -> None:
    assert average_rating([make_recipe("A"), make_recipe("B")]) is None
    assert average_rating([]) is None


def test_average_cooking_time_ignores_zero_totals() -> None:
    recipes = [
        make_recipe("Instant", prep=0, cook=0),
        make_recipe("Short", prep=5, cook=5),
        make_recipe("Long", prep=10, cook=20),
    ]
    assert average_cooking_time(recipes) == pytest.approx(20.0)


def test_category_counts_include_every_category(sample_recipes) -> None:
    counts = category_counts(sample_recipes)
    assert set(counts) == set(RecipeCategory)
    assert counts[RecipeCategory.DESSERT] == 3
    assert counts[RecipeCategory.DINNER] == 1
    assert counts[RecipeCategory.LUNCH] == 1
    assert counts[RecipeCategory.BEVERAGE] == 0


def test_compute_statistics(sample_recipes) -> None:
    stats = compute_statistics(sample_recipes)
    assert stats.count == 5
    assert stats.favorite_count == 2
    assert stats.average_rating == pytest.approx((4.5 + 5.0 + 4.0 + 4.0) / 4)
    assert stats.average_cooking_time == pytest.approx((25 + 20 + 40 + 55 + 15) / 5)
    assert stats.total_times_cooked == 7
    assert sum(stats.per_category_counts.values()) == 5


def test_compute_statistics_on_empty_snapshot() -> None:
    stats = compute_statistics([])
    assert stats.count == 0
    assert stats.average_rating is None
    assert stats.average_cooking_time is None
    assert stats.total_times_cooked == 0
