"""Query filters shared by list endpoints: date windows and text search."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from sqlalchemy import ColumnElement, Select, String, cast, or_


# ── Date window ─────────────────────────────────────────────────────

def apply_date_window(
    query: Select,
    start_col: Any,
    end_col: Any,
    from_date: Optional[date],
    to_date: Optional[date],
) -> Select:
    """
    Keep rows whose inclusive ``[start_col, end_col]`` range intersects
    ``[from_date, to_date]``. Either bound may be omitted.
    """
    if from_date is not None:
        query = query.where(end_col >= from_date)
    if to_date is not None:
        query = query.where(start_col <= to_date)
    return query


# ── Text search ─────────────────────────────────────────────────────

def ilike_any(
    search: Optional[str],
    columns: Sequence[Any],
) -> Optional[ColumnElement[bool]]:
    """
    Case-insensitive substring match of *search* against any of *columns*.

    Returns ``None`` for blank input so callers can skip the filter.
    """
    if not search or not search.strip() or not columns:
        return None

    pattern = f"%{search.strip()}%"
    return or_(*(cast(col, String).ilike(pattern) for col in columns))
