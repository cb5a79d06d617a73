"""
Run the Recipe Book CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    init        Create the database tables
    add         Add a recipe
    list        List recipes   (--search overrides --category/--difficulty/--min-time/--max-time)
    show        Show one recipe in full
    favorite    Toggle a recipe's favorite flag (or --on / --off)
    rate        Rate a recipe from 0 to 5
    cooked      Mark a recipe as cooked (--reset clears the counter)
    notes       Replace a recipe's notes
    delete      Delete a recipe
    stats       Show summary statistics
    collection  create | list | show | add | remove | delete

Examples:
    python run_cli.py add "Pasta Bake" -c Dinner --prep 15 --cook 30 -i "200g pasta"
    python run_cli.py list --search pasta
    python run_cli.py list -c Dessert -d Easy --max-time 30 --sort TIME_ASC

Environment variables (all optional):
    RECIPES_DB_PATH     SQLite database file path (default: recipes.db)
    LOG_LEVEL           Logging level (default: INFO)
    LIVE_VIEW_OFFLOAD   Run live-view queries in a worker thread (default: true)
    DEFAULT_SORT        Sort order when --sort is omitted (default: RECENT)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
