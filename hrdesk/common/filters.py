"""Generic filtering, sorting, and substring search utilities."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import Select, String, and_, cast, or_
from sqlalchemy.orm import InstrumentedAttribute


# ── Sorting ─────────────────────────────────────────────────────────

def apply_sorting(
    query: Select,
    model: Any,
    sort: Optional[str],
    *,
    allowed: Optional[Mapping[str, str]] = None,
    default: Optional[str] = None,
) -> Select:
    """
    Parse a sort string like ``"-hire_date"`` and apply ORDER BY.

    * Leading ``-`` → DESC; otherwise ASC.
    * *allowed* maps public sort keys (case-insensitive) to column names;
      unknown keys fall back to *default*.
    * Keys that do not resolve to a mapped column are ignored, never
      interpolated into SQL.
    """
    sort = sort or default
    if not sort:
        return query

    descending = sort.startswith("-")
    key = sort.lstrip("-")

    if allowed is not None:
        col_name = allowed.get(key.lower())
        if col_name is None:
            if default and default.lstrip("-") != key:
                return apply_sorting(query, model, default, allowed=allowed)
            return query
    else:
        col_name = key

    col = _get_column(model, col_name)
    if col is None:
        return query
    return query.order_by(col.desc() if descending else col.asc())


# ── Generic filtering ──────────────────────────────────────────────

def apply_filters(
    query: Select,
    model: Any,
    filters: dict[str, Any],
) -> Select:
    """
    Apply a dict of filter parameters to a SQLAlchemy ``Select``.

    Key suffixes determine the operator:

    ============  ==================
    Suffix        Operator
    ============  ==================
    (none)        ``==``
    ``__from``    ``>=``
    ``__to``      ``<=``
    ============  ==================

    ``None`` values are silently skipped.
    """
    conditions: list = []

    for key, value in filters.items():
        if value is None:
            continue

        if key.endswith("__from"):
            col = _get_column(model, key.removesuffix("__from"))
            if col is not None:
                conditions.append(col >= value)

        elif key.endswith("__to"):
            col = _get_column(model, key.removesuffix("__to"))
            if col is not None:
                conditions.append(col <= value)

        else:
            col = _get_column(model, key)
            if col is not None:
                conditions.append(col == value)

    if conditions:
        query = query.where(and_(*conditions))

    return query


# ── Substring search ────────────────────────────────────────────────

def apply_search(
    query: Select,
    model: Any,
    search: Optional[str],
    columns: Sequence[str],
) -> Select:
    """
    Case-insensitive substring match of *search* against any of *columns*.

    Blank searches leave the query untouched.
    """
    if not search or not search.strip():
        return query

    search = search.strip()
    like_conds: list = []

    for name in columns:
        col = _get_column(model, name)
        if col is None:
            continue
        like_conds.append(cast(col, String).ilike(f"%{search}%"))

    if not like_conds:
        return query

    return query.where(or_(*like_conds))


# ── Internal helper ─────────────────────────────────────────────────

def _get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Safely retrieve a mapped column attribute by name."""
    attr = getattr(model, name, None)
    if isinstance(attr, InstrumentedAttribute):
        return attr
    return None
