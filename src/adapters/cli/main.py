"""
adapters.cli.main - CLI adapter for the recipe book.

A thin consumer of the core: every command builds the ServiceFactory, issues
store commands or binds a live view, and renders the result with rich.

Commands
--------
  init        Create the database tables
  add         Add a recipe
  list        List recipes (search, filters, sort)
  show        Show one recipe in full
  favorite    Toggle (or set) a recipe's favorite flag
  rate        Rate a recipe from 0 to 5
  cooked      Mark a recipe as cooked (or reset its counter)
  notes       Replace a recipe's notes
  delete      Delete a recipe
  stats       Show summary statistics
  collection  Manage collections (create, list, show, add, remove, delete)

Usage
-----
  python run_cli.py add "Creamy Pasta Bake" --category Dinner --prep 15 --cook 30
  python run_cli.py list --search pasta --sort NAME_ASC
  python run_cli.py collection add 1 3
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from application.dto import ViewStatus
from application.services.live_view import LiveViewManager
from domain.entities import Recipe, split_tags
from domain.exceptions import NotFound, StorageError, ValidationError
from domain.models import (
    DifficultyLevel,
    RecipeCategory,
    RecipeStatistics,
    SortOption,
    TimeRange,
    ViewSpec,
    parse_category,
)
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "1.0.0"

console = Console()
app = typer.Typer(
    help="Recipe Book CLI",
    add_completion=False,
    no_args_is_help=True,
)
collection_app = typer.Typer(help="Manage recipe collections.", no_args_is_help=True)
app.add_typer(collection_app, name="collection")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    factory = ServiceFactory(Settings.from_env())
    await factory.initialize()
    return factory


def _run(coro) -> Any:
    """Run a coroutine, turning core errors into a message and exit code."""
    try:
        return asyncio.run(coro)
    except (ValidationError, StorageError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except NotFound as exc:
        console.print(f"[bold red]{exc}.[/bold red]")
        raise typer.Exit(code=1)


async def _evaluate_once(views: LiveViewManager, slot: str, bind) -> Any:
    """Bind a live view, wait for it to settle and return its value."""
    bind(views, slot)
    await views.wait_idle()
    state = views.state(slot)
    await views.close()
    if state is None or state.status == ViewStatus.ERROR:
        raise StorageError(state.error if state else f"live view '{slot}' vanished")
    return state.value


def _parse_enum(enum_cls, value: Optional[str], field: str):
    if value is None:
        return None
    member = enum_cls.from_display_name(value)
    if member is None:
        choices = ", ".join(enum_cls.display_names())
        raise ValidationError(field, f"unknown value '{value}' (choose from {choices})")
    return member


def _stars(rating: float) -> str:
    return f"{rating:.1f}★" if rating > 0 else "[dim]-[/dim]"


def _recipe_table(recipes: list[Recipe], title: str) -> Table:
    t = Table(title=title, box=box.SIMPLE_HEAVY)
    t.add_column("ID", justify="right", style="bold")
    t.add_column("Name")
    t.add_column("Category")
    t.add_column("Difficulty")
    t.add_column("Time", justify="right")
    t.add_column("Rating", justify="right")
    t.add_column("Cooked", justify="right")
    t.add_column("♥", justify="center")
    for r in recipes:
        t.add_row(
            str(r.id),
            r.name,
            r.category.display_name,
            r.difficulty.display_name if r.difficulty else "[dim]-[/dim]",
            f"{r.total_time_min} min",
            _stars(r.rating),
            str(r.times_cooked),
            "♥" if r.is_favorite else "",
        )
    return t


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"recipe-book v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Recipes
# ---------------------------------------------------------------------------

@app.command()
def init() -> None:
    """Create the database tables (safe to run repeatedly)."""
    async def _go() -> None:
        factory = await _make_factory()
        console.print(
            f"[green]Database ready[/green] at [bold]{factory.config.db_path}[/bold] "
            f"({factory.store.count()} recipe(s))."
        )

    _run(_go())


@app.command()
def add(
    name: str = typer.Argument(..., help="Recipe name."),
    category: str = typer.Option(..., "--category", "-c", help="Breakfast, Lunch, Dinner, ..."),
    difficulty: Optional[str] = typer.Option(None, "--difficulty", "-d", help="Easy, Medium or Hard."),
    prep: int = typer.Option(0, "--prep", help="Preparation time in minutes."),
    cook: int = typer.Option(0, "--cook", help="Cooking time in minutes."),
    servings: int = typer.Option(1, "--servings"),
    ingredient: Optional[list[str]] = typer.Option(None, "--ingredient", "-i", help="Repeat per ingredient."),
    step: Optional[list[str]] = typer.Option(None, "--step", help="Repeat per instruction step."),
    tags: str = typer.Option("", "--tags", help="Comma-separated tags."),
    description: str = typer.Option("", "--description"),
    cuisine: str = typer.Option("", "--cuisine"),
) -> None:
    """Add a recipe."""
    async def _go() -> None:
        factory = await _make_factory()
        recipe = Recipe.draft(
            name.strip(),
            _parse_enum(RecipeCategory, category, "category"),
            prep_time_min=prep,
            cook_time_min=cook,
            difficulty=_parse_enum(DifficultyLevel, difficulty, "difficulty"),
            servings=servings,
            ingredients=tuple(i.strip() for i in ingredient or [] if i.strip()),
            instructions=tuple(s.strip() for s in step or [] if s.strip()),
            tags=split_tags(tags),
            description=description,
            cuisine=cuisine,
        )
        recipe_id = await factory.store.insert(recipe)
        console.print(f"[green]Added[/green] recipe [bold]{recipe_id}[/bold]: {recipe.name}")

    _run(_go())


@app.command("list")
def list_recipes(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Substring search; overrides filters."),
    category: str = typer.Option("All", "--category", "-c"),
    difficulty: Optional[list[str]] = typer.Option(None, "--difficulty", "-d", help="Repeatable."),
    min_time: Optional[int] = typer.Option(None, "--min-time"),
    max_time: Optional[int] = typer.Option(None, "--max-time"),
    sort: Optional[str] = typer.Option(None, "--sort", help="e.g. NAME_ASC, RATING_DESC, RECENT."),
    favorites: bool = typer.Option(False, "--favorites", "-f", help="Only favorites."),
) -> None:
    """List recipes. A search term bypasses category/difficulty/time filters."""
    async def _go() -> None:
        factory = await _make_factory()
        sort_option = _parse_enum(SortOption, sort, "sort") or factory.config.default_sort
        views = factory.create_live_view_manager()

        if favorites:
            recipes = await _evaluate_once(
                views, "cli:favorites",
                lambda v, slot: v.bind_favorites(slot, lambda _: None, sort_option),
            )
            console.print(_recipe_table(recipes, "Favorite recipes"))
            return

        time_range = None
        if min_time is not None or max_time is not None:
            time_range = TimeRange(min_time or 0, max_time if max_time is not None else sys.maxsize)
        spec = ViewSpec(
            search_text=search,
            category=parse_category(category),
            difficulties=frozenset(
                _parse_enum(DifficultyLevel, d, "difficulty") for d in difficulty or []
            ),
            time_range=time_range,
            sort=sort_option,
        )
        if spec.has_search and spec.has_filters:
            console.print("[yellow]Search text given; category/difficulty/time filters ignored.[/yellow]")
        recipes = await _evaluate_once(
            views, "cli:list", lambda v, slot: v.bind(slot, spec, lambda _: None),
        )
        if not recipes:
            console.print("[dim]No recipes match.[/dim]")
            return
        console.print(_recipe_table(recipes, f"Recipes by {sort_option.display_name}"))

    _run(_go())


@app.command()
def show(recipe_id: int = typer.Argument(...)) -> None:
    """Show one recipe in full."""
    async def _go() -> None:
        factory = await _make_factory()
        r = factory.store.get(recipe_id)
        if r is None:
            raise NotFound("Recipe", recipe_id)

        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Field", style="bold")
        t.add_column("Value")
        t.add_row("Category", r.category.display_name)
        if r.difficulty:
            t.add_row("Difficulty", r.difficulty.display_name)
        if r.cuisine:
            t.add_row("Cuisine", r.cuisine)
        t.add_row("Time", f"{r.prep_time_min} prep + {r.cook_time_min} cook = {r.total_time_min} min")
        t.add_row("Servings", str(r.servings))
        t.add_row("Rating", _stars(r.rating))
        if r.tags:
            t.add_row("Tags", ", ".join(dict.fromkeys(r.tags)))
        if r.times_cooked:
            last = r.last_cooked.strftime("%Y-%m-%d %H:%M") if r.last_cooked else "?"
            t.add_row("Cooked", f"{r.times_cooked}× (last {last})")
        if r.has_nutrition_info():
            n = r.nutrition
            t.add_row("Nutrition", f"{n.calories} kcal, {n.protein_g}g protein, "
                                   f"{n.carbs_g}g carbs, {n.fat_g}g fat")
        title = f"{'♥ ' if r.is_favorite else ''}{r.name}"
        console.print(Panel(t, title=title, subtitle=r.description or None, border_style="blue"))

        if r.ingredients:
            console.print(Panel("\n".join(f"• {i}" for i in r.ingredients),
                                title="Ingredients", border_style="green"))
        if r.instructions:
            console.print(Panel("\n".join(f"{n}. {s}" for n, s in enumerate(r.instructions, 1)),
                                title="Instructions", border_style="yellow"))
        if r.notes:
            console.print(Panel(r.notes, title="Notes", border_style="magenta"))

    _run(_go())


@app.command()
def favorite(
    recipe_id: int = typer.Argument(...),
    on: Optional[bool] = typer.Option(None, "--on/--off", help="Set explicitly instead of toggling."),
) -> None:
    """Toggle a recipe's favorite flag."""
    async def _go() -> None:
        factory = await _make_factory()
        recipe = await factory.store.toggle_favorite(recipe_id, on)
        state = "a favorite" if recipe.is_favorite else "no longer a favorite"
        console.print(f"[green]{recipe.name}[/green] is {state}.")

    _run(_go())


@app.command()
def rate(
    recipe_id: int = typer.Argument(...),
    rating: float = typer.Argument(..., help="0.0 to 5.0"),
) -> None:
    """Rate a recipe."""
    async def _go() -> None:
        factory = await _make_factory()
        recipe = await factory.store.update_rating(recipe_id, rating)
        console.print(f"[green]{recipe.name}[/green] rated {_stars(recipe.rating)}")

    _run(_go())


@app.command()
def cooked(
    recipe_id: int = typer.Argument(...),
    reset: bool = typer.Option(False, "--reset", help="Reset the cooked counter."),
) -> None:
    """Mark a recipe as cooked."""
    async def _go() -> None:
        factory = await _make_factory()
        if reset:
            recipe = await factory.store.reset_times_cooked(recipe_id)
        else:
            recipe = await factory.store.mark_as_cooked(recipe_id)
        console.print(f"[green]{recipe.name}[/green] cooked {recipe.times_cooked}×")

    _run(_go())


@app.command()
def notes(
    recipe_id: int = typer.Argument(...),
    text: str = typer.Argument(..., help="New notes (replaces the old ones)."),
) -> None:
    """Replace a recipe's notes."""
    async def _go() -> None:
        factory = await _make_factory()
        recipe = await factory.store.update_notes(recipe_id, text)
        console.print(f"[green]Notes saved[/green] for {recipe.name}.")

    _run(_go())


@app.command()
def delete(recipe_id: int = typer.Argument(...)) -> None:
    """Delete a recipe. Collections keep their (now orphaned) reference."""
    async def _go() -> None:
        factory = await _make_factory()
        try:
            await factory.store.delete(recipe_id)
        except NotFound:
            console.print(f"[dim]Recipe {recipe_id} is already gone.[/dim]")
            return
        console.print(f"[green]Deleted[/green] recipe {recipe_id}.")

    _run(_go())


@app.command()
def stats() -> None:
    """Show summary statistics."""
    async def _go() -> None:
        factory = await _make_factory()
        views = factory.create_live_view_manager()
        s: RecipeStatistics = await _evaluate_once(
            views, "cli:stats", lambda v, slot: v.bind_statistics(slot, lambda _: None),
        )

        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Statistic", style="bold")
        t.add_column("Value", justify="right")
        t.add_row("Recipes", str(s.count))
        t.add_row("Favorites", str(s.favorite_count))
        t.add_row("Average rating",
                  f"{s.average_rating:.2f}" if s.average_rating is not None else "-")
        t.add_row("Average time",
                  f"{s.average_cooking_time:.0f} min" if s.average_cooking_time is not None else "-")
        t.add_row("Times cooked", str(s.total_times_cooked))
        for category, count in s.per_category_counts.items():
            t.add_row(f"  {category.display_name}", str(count))
        console.print(Panel(t, title="Recipe Book", border_style="cyan"))

    _run(_go())


# ---------------------------------------------------------------------------
# Commands: Collections
# ---------------------------------------------------------------------------

@collection_app.command("create")
def collection_create(
    name: str = typer.Argument(...),
    description: str = typer.Option("", "--description"),
) -> None:
    """Create a collection."""
    async def _go() -> None:
        factory = await _make_factory()
        collection = await factory.create_collection_service().create(name, description)
        console.print(f"[green]Created[/green] collection [bold]{collection.id}[/bold]: {collection.name}")

    _run(_go())


@collection_app.command("list")
def collection_list() -> None:
    """List collections, newest first."""
    async def _go() -> None:
        factory = await _make_factory()
        collections = factory.create_collection_service().list_all()
        if not collections:
            console.print("[dim]No collections yet.[/dim]")
            return
        t = Table(box=box.SIMPLE_HEAVY)
        t.add_column("ID", justify="right", style="bold")
        t.add_column("Name")
        t.add_column("Recipes", justify="right")
        t.add_column("Description")
        for c in collections:
            t.add_row(str(c.id), c.name, str(c.recipe_count()), c.description)
        console.print(t)

    _run(_go())


@collection_app.command("show")
def collection_show(collection_id: int = typer.Argument(...)) -> None:
    """Show the recipes of a collection."""
    async def _go() -> None:
        factory = await _make_factory()
        collection = factory.store.get_collection(collection_id)
        if collection is None:
            raise NotFound("Collection", collection_id)
        views = factory.create_live_view_manager()
        recipes = await _evaluate_once(
            views, "cli:collection",
            lambda v, slot: v.bind_collection(slot, collection_id, lambda _: None),
        )
        console.print(_recipe_table(recipes, collection.name))
        missing = collection.recipe_count() - len(recipes)
        if missing:
            console.print(f"[dim]{missing} member(s) refer to deleted recipes.[/dim]")

    _run(_go())


@collection_app.command("add")
def collection_add(
    collection_id: int = typer.Argument(...),
    recipe_id: int = typer.Argument(...),
) -> None:
    """Add a recipe to a collection (no-op if already a member)."""
    async def _go() -> None:
        factory = await _make_factory()
        collection = await factory.create_collection_service().add_recipe(collection_id, recipe_id)
        console.print(f"[green]{collection.name}[/green] holds {collection.recipe_count()} recipe(s).")

    _run(_go())


@collection_app.command("remove")
def collection_remove(
    collection_id: int = typer.Argument(...),
    recipe_id: int = typer.Argument(...),
) -> None:
    """Remove a recipe from a collection (no-op if not a member)."""
    async def _go() -> None:
        factory = await _make_factory()
        collection = await factory.create_collection_service().remove_recipe(collection_id, recipe_id)
        console.print(f"[green]{collection.name}[/green] holds {collection.recipe_count()} recipe(s).")

    _run(_go())


@collection_app.command("delete")
def collection_delete(collection_id: int = typer.Argument(...)) -> None:
    """Delete a collection (its recipes are kept)."""
    async def _go() -> None:
        factory = await _make_factory()
        try:
            await factory.create_collection_service().delete(collection_id)
        except NotFound:
            console.print(f"[dim]Collection {collection_id} is already gone.[/dim]")
            return
        console.print(f"[green]Deleted[/green] collection {collection_id}.")

    _run(_go())


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Recipe Book CLI"""
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
