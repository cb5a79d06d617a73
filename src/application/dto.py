"""
application.dto - Data Transfer Objects pushed to live-view consumers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ViewStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class ViewState:
    """What a live view currently shows.

    value:      Latest computed result (a recipe list, statistics, ...).
                While LOADING it still holds the previous result, if any.
    error:      Message of the ValidationError/StorageError that failed
                the last recomputation.
    version:    Store snapshot version the value was computed from.
    generation: Per-slot counter; bumps on every (re)schedule.
    """
    status: ViewStatus = ViewStatus.LOADING
    value: Any = None
    error: Optional[str] = None
    version: int = 0
    generation: int = 0

    @property
    def is_loading(self) -> bool:
        return self.status == ViewStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status == ViewStatus.READY
