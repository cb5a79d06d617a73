"""
infrastructure.persistence.codec - Column encodings shared by the repositories.

Timestamps are ISO-8601 text in UTC; lists are delimiter-joined text.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def join_ids(ids: Iterable[int]) -> str:
    return ",".join(str(i) for i in ids)


def split_ids(text: Optional[str]) -> tuple[int, ...]:
    """Parse comma-joined ids; fragments that are not integers are dropped."""
    ids = []
    for part in (text or "").split(","):
        part = part.strip()
        try:
            ids.append(int(part))
        except ValueError:
            continue
    return tuple(ids)
