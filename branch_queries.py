"""
branch_queries.py
-----------------
Text search over branches and the foreign-key joins used by the detail view.

- visits join on BranchCode (branch.branch_code == visit.branch_code)
- events join on the branch's display name (branch.branch_name == event.library),
  exact and case-sensitive, which is how the events feed names its libraries

All functions are pure and work on already-loaded lists.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from models import Branch, Coordinate, Event, VisitRecord
from nearest_library import sort_by_distance

__all__ = ["filter_by_name", "visits_for", "events_for", "search_branches"]


def filter_by_name(branches: Sequence[Branch], query: str) -> List[Branch]:
    """Branches whose name contains ``query`` ignoring case; empty query keeps all."""
    if not query:
        return list(branches)
    needle = query.casefold()
    return [b for b in branches if needle in b.branch_name.casefold()]


def visits_for(branch: Branch, visits: Sequence[VisitRecord]) -> List[VisitRecord]:
    """Visit records for ``branch``, most recent year first."""
    matched = [v for v in visits if v.branch_code == branch.branch_code]
    # sorted() is stable, so records sharing a year keep their feed order
    return sorted(matched, key=lambda v: v.year, reverse=True)


def events_for(branch: Branch, events: Sequence[Event]) -> List[Event]:
    """
    Events hosted at ``branch``, earliest start date first.

    Events whose start date does not parse are placed after every dated event,
    keeping their feed order.
    """
    matched = [e for e in events if e.library == branch.branch_name]
    if not matched:
        return []
    frame = pd.DataFrame({"start": pd.Series([e.start_date for e in matched], dtype="object")})
    order = frame.sort_values("start", kind="stable", na_position="last").index
    return [matched[i] for i in order]


def search_branches(
    branches: Sequence[Branch],
    query: str,
    origin: Optional[Coordinate] = None,
) -> List[Branch]:
    """The list view's rows: name filter, then nearest first when a location is known."""
    return sort_by_distance(filter_by_name(branches, query), origin)
