"""
Size delta and revert annotation of an author's edits to one page.

The store returns the author's revisions joined to their parent and child
revisions. A revision counts as reverted when the revision after it restored
the exact content of the revision before it.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from .types import AdjacentRevision, PageEdit

T = TypeVar("T")


def _revision_id(row: AdjacentRevision) -> Hashable:
    return row.revision.id


def complete_edges(
    window: Iterable[T],
    boundary: Iterable[T],
    key: Callable[[T], Hashable] = _revision_id,
) -> list[T]:
    """
    Merge boundary rows that a windowed query cannot return back into its result.

    Boundary rows whose key is not already in ``window`` are placed before the
    window rows, in boundary order. Rows are matched by key, never by position,
    and only the first row seen for a key is kept.
    """
    window_rows = list(window)
    seen = {key(row) for row in window_rows}

    merged: list[T] = []
    for row in boundary:
        row_key = key(row)
        if row_key not in seen:
            seen.add(row_key)
            merged.append(row)

    emitted: set[Hashable] = set()
    for row in window_rows:
        row_key = key(row)
        if row_key in emitted:
            continue
        emitted.add(row_key)
        merged.append(row)
    return merged


def length_change(row: AdjacentRevision) -> int:
    if row.revision.parent_id is None or row.parent_length is None:
        return 0
    return row.revision.length - row.parent_length


def is_reverted(row: AdjacentRevision) -> bool:
    if row.child_sha1 is None or row.parent_sha1 is None:
        return False
    return row.child_sha1 == row.parent_sha1


def annotate_edit(row: AdjacentRevision) -> PageEdit:
    revision = row.revision
    reverted = is_reverted(row)
    return PageEdit(
        id=revision.id,
        timestamp=revision.timestamp,
        minor=revision.minor,
        length=revision.length,
        length_change=length_change(row),
        reverted=reverted,
        user_id=revision.author_id,
        username=revision.author_name,
        comment=revision.comment,
        parent_comment=(row.child_comment or "") if reverted else "",
    )


def annotate_edits(rows: Iterable[AdjacentRevision]) -> list[PageEdit]:
    return [annotate_edit(row) for row in rows]
