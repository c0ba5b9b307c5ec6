"""
Public top edits operations.

Each operation validates its arguments, looks its result up in the result
cache and, on a miss, queries the replica and shapes the rows.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from django.conf import settings

from ..exceptions import InvalidArgument
from .parsers import to_mediawiki_timestamp
from .ranking import rank_top_per_group
from .revisions import annotate_edits, complete_edges
from .types import Page, PageEdit, TopEditedPage

if TYPE_CHECKING:
    from topedits.models import Project

    from .context import TopEditsContext

logger = logging.getLogger(__name__)


def _validate_author(author: str) -> None:
    if not isinstance(author, str) or not author.strip():
        raise InvalidArgument("author must be a non-empty user name")


def _validate_namespace(namespace: int) -> None:
    if isinstance(namespace, bool) or not isinstance(namespace, int):
        raise InvalidArgument(f"namespace must be an integer, got {namespace!r}")
    if namespace < 0:
        raise InvalidArgument(f"namespace must not be negative, got {namespace}")


def _validate_limit(limit: int) -> None:
    max_limit = getattr(settings, "TOPEDITS_MAX_LIMIT", 1000)
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidArgument(f"limit must be an integer, got {limit!r}")
    if not 1 <= limit <= max_limit:
        raise InvalidArgument(f"limit must be between 1 and {max_limit}, got {limit}")


def _validate_offset(offset: int) -> None:
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise InvalidArgument(f"offset must be a non-negative integer, got {offset!r}")


def _validate_date_range(start: date | None, end: date | None) -> None:
    for name, value in (("start", start), ("end", end)):
        if value is not None and not isinstance(value, date):
            raise InvalidArgument(f"{name} must be a date, got {value!r}")
    if start is not None and end is not None:
        if to_mediawiki_timestamp(start) > to_mediawiki_timestamp(end, end_of_day=True):
            raise InvalidArgument(f"start ({start}) is after end ({end})")


class TopEditsService:
    """Top edited pages and per-page edit history of an author."""

    def __init__(self, context: TopEditsContext):
        self.context = context

    def top_edits_namespace(
        self,
        project: Project,
        author: str,
        namespace: int = 0,
        limit: int = 1000,
        offset: int = 0,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TopEditedPage]:
        """
        Get the pages the author edited most in one namespace.

        Args:
            project: Project whose revision log is queried
            author: User name of the author
            namespace: Namespace ID
            limit: Number of pages to return
            offset: Number of pages to skip, for pagination
            start: Only count edits made on or after this day
            end: Only count edits made on or before this day

        Returns:
            list[TopEditedPage]: Ordered by edit count descending, then title
        """
        _validate_author(author)
        _validate_namespace(namespace)
        _validate_limit(limit)
        _validate_offset(offset)
        _validate_date_range(start, end)

        def compute() -> list[TopEditedPage]:
            store = self.context.store_for(project)
            pages = store.count_edits_by_page_in_namespace(
                author, namespace, limit, offset, start, end
            )
            logger.info(
                "Computed %d top edited pages for %s in namespace %d on %s",
                len(pages),
                author,
                namespace,
                project.code,
            )
            return pages

        return self.context.cache.get_or_compute(
            "topedits_ns",
            [project, author, namespace, limit, offset, start, end],
            compute,
        )

    def count_edits_namespace(
        self,
        project: Project,
        author: str,
        namespace: int,
        start: date | None = None,
        end: date | None = None,
    ) -> int:
        """Count the distinct pages the author edited in one namespace."""
        _validate_author(author)
        _validate_namespace(namespace)
        _validate_date_range(start, end)

        def compute() -> int:
            return self.context.store_for(project).count_pages_in_namespace(
                author, namespace, start, end
            )

        return self.context.cache.get_or_compute(
            "topedits_count_ns",
            [project, author, namespace, start, end],
            compute,
        )

    def top_edits_all_namespaces(
        self,
        project: Project,
        author: str,
        limit: int = 10,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TopEditedPage]:
        """
        Get the pages the author edited most in every namespace.

        ``limit`` applies to each namespace separately. Namespaces come in
        ascending order, each with its pages ordered by edit count descending.
        """
        _validate_author(author)
        _validate_limit(limit)
        _validate_date_range(start, end)

        def compute() -> list[TopEditedPage]:
            store = self.context.store_for(project)
            counts = store.count_edits_by_page_all_namespaces(author, start, end)
            pages = rank_top_per_group(counts, limit)
            logger.info(
                "Ranked %d of %d edited pages for %s on %s",
                len(pages),
                len(counts),
                author,
                project.code,
            )
            return pages

        return self.context.cache.get_or_compute(
            "topedits_all",
            [project, author, limit, start, end],
            compute,
        )

    def top_edits_page(self, project: Project, page: Page, author: str) -> list[PageEdit]:
        """
        Get every edit the author made to one page, newest first.

        Each edit carries its size change against the previous revision of the
        page and whether the next revision of the page reverted it.
        """
        _validate_author(author)
        if not isinstance(page, Page):
            raise InvalidArgument(f"page must be a Page, got {page!r}")

        def compute() -> list[PageEdit]:
            store = self.context.store_for(project)
            window = store.edit_sequence_for_page(page.id, author)
            # The windowed query needs a following revision, so the page's
            # newest revision has to be fetched on its own.
            latest = store.latest_edit_for_page(page.id, author)
            edits = annotate_edits(complete_edges(window, latest))
            logger.info(
                "Computed %d edits by %s to page %d on %s",
                len(edits),
                author,
                page.id,
                project.code,
            )
            return edits

        return self.context.cache.get_or_compute(
            "topedits_page",
            [project, page, author],
            compute,
        )
