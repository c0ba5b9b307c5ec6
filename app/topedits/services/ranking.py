"""Top-N-per-group selection over grouped count rows."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from .types import TopEditedPage

T = TypeVar("T")


def _by_namespace(row: TopEditedPage) -> Hashable:
    return row.namespace


def _by_count(row: TopEditedPage) -> int:
    return row.count


def group_stable(rows: Iterable[T], group: Callable[[T], Hashable]) -> dict[Hashable, list[T]]:
    """Bucket rows by group, keeping groups and rows in first-seen order."""
    groups: dict[Hashable, list[T]] = {}
    for row in rows:
        groups.setdefault(group(row), []).append(row)
    return groups


def rank_top_per_group(
    rows: Iterable[T],
    limit: int,
    group: Callable[[T], Hashable] = _by_namespace,
    count: Callable[[T], int] = _by_count,
) -> list[T]:
    """
    Keep the ``limit`` highest-counted rows of every group.

    Groups are emitted in the order they first appear in ``rows``. Within a
    group rows are ordered by count descending, and rows with equal counts keep
    their input order. The limit applies to each group independently.

    Args:
        rows: Count rows in any order; rows of different groups may interleave.
        limit: Maximum number of rows kept per group.
        group: Returns the group a row belongs to.
        count: Returns the count a row is ranked by.

    Returns:
        A new list; ``rows`` is left untouched.
    """
    if limit <= 0:
        return []

    ordered: list[T] = []
    for members in group_stable(rows, group).values():
        # sorted() is stable, so equal counts keep their input order.
        ordered.extend(sorted(members, key=lambda row: -count(row)))

    ranked: list[T] = []
    current_group: Hashable = object()
    rank = 0
    for row in ordered:
        row_group = group(row)
        if row_group != current_group:
            current_group = row_group
            rank = 0
        rank += 1
        if rank <= limit:
            ranked.append(row)
    return ranked
