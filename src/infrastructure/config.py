"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment or passed
explicitly. Nothing reads settings from module-level globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from domain.models import SortOption


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the recipe book.

    Construct via from_env() or pass explicitly in tests.
    """
    project_root: Path

    # Database
    db_path: str = "recipes.db"

    # Logging
    log_level: str = "INFO"

    # Live views: run recomputations in a worker thread so a slow
    # filter/sort never delays write acknowledgement on the event loop.
    live_view_offload: bool = True

    # Sort order used when a consumer does not name one
    default_sort: SortOption = SortOption.RECENT

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from environment variables (and a .env file, if any)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent
        sort = SortOption.from_display_name(os.getenv("DEFAULT_SORT", "RECENT"))

        return cls(
            project_root=root,
            db_path=os.getenv("RECIPES_DB_PATH", "recipes.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            live_view_offload=_env_flag("LIVE_VIEW_OFFLOAD", True),
            default_sort=sort or SortOption.RECENT,
        )
