"""
Read-only access to a project's revision log on the Wikimedia replicas.

Queries are sent through Superset and return raw grouped or joined rows. This
module only shapes the SQL and parses the rows; ranking and annotation happen
in ``ranking`` and ``revisions``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from pywikibot.data.superset import SupersetQuery

from ..exceptions import StoreUnavailable
from .parsers import (
    parse_optional_int,
    parse_superset_bool,
    parse_superset_text,
    parse_superset_timestamp,
    quote_sql_string,
    to_mediawiki_timestamp,
)
from .types import AdjacentRevision, Revision, TopEditedPage

if TYPE_CHECKING:
    import pywikibot

    from topedits.models import Project, ProjectConfiguration

logger = logging.getLogger(__name__)

# Replica views that are indexed on the acting user.
USERINDEX_VIEWS = {
    "revision": "revision_userindex",
}


class RevisionStore:
    """Issues the top edits queries for one project."""

    def __init__(self, project: Project, site: pywikibot.Site):
        self.project = project
        self.site = site
        self.configuration = self._load_configuration(project)

    @staticmethod
    def _load_configuration(project: Project) -> ProjectConfiguration:
        from topedits.models import ProjectConfiguration

        configuration = ProjectConfiguration.objects.filter(project=project).first()
        if configuration is None:
            configuration = ProjectConfiguration(project=project)
        return configuration

    def table_name(self, name: str, *, by_user: bool = False) -> str:
        """Return the replica table or view to read ``name`` from."""
        if by_user and self.configuration.use_userindex_views:
            return USERINDEX_VIEWS.get(name, name)
        return name

    def _query(self, sql_query: str, description: str) -> list[dict[str, Any]]:
        try:
            superset = SupersetQuery(site=self.site)
            payload = superset.query(sql_query)
        except Exception as exc:
            logger.exception("Failed to query %s for %s", description, self.project.code)
            raise StoreUnavailable(
                f"Could not query {description} for {self.project.code}: {exc}"
            ) from exc

        if payload is None:
            return []
        rows = list(payload)
        if any(not isinstance(row, dict) for row in rows):
            logger.error("Malformed %s payload for %s", description, self.project.code)
            raise StoreUnavailable(f"Malformed {description} response for {self.project.code}")
        logger.debug("Fetched %d %s rows for %s", len(rows), description, self.project.code)
        return rows

    def _date_clauses(self, start: date | None, end: date | None, column: str) -> str:
        clauses = []
        if start is not None:
            clauses.append(f"AND {column} >= '{to_mediawiki_timestamp(start)}'")
        if end is not None:
            clauses.append(f"AND {column} <= '{to_mediawiki_timestamp(end, end_of_day=True)}'")
        return "\n  ".join(clauses)

    def _assessment_select(self, page_column: str, namespace: int | None = None) -> str:
        if not self.configuration.has_page_assessments:
            return ", NULL AS pa_class"
        if namespace is not None and not self.configuration.assesses_namespace(namespace):
            return ", NULL AS pa_class"
        return f""",
   (SELECT pa_class
    FROM page_assessments
    WHERE pa_page_id = {page_column}
      AND pa_class != 'Unknown'
    LIMIT 1) AS pa_class"""

    def _parse_top_edited(self, entry: dict[str, Any]) -> TopEditedPage | None:
        page_id = parse_optional_int(entry.get("page_id"))
        namespace = parse_optional_int(entry.get("page_namespace"))
        if page_id is None or namespace is None:
            logger.warning("Skipping top edits row without page id or namespace: %s", entry)
            return None

        assessment = parse_superset_text(entry.get("pa_class")) or None
        if assessment is not None and not self.configuration.assesses_namespace(namespace):
            assessment = None

        return TopEditedPage(
            namespace=namespace,
            page_id=page_id,
            title=parse_superset_text(entry.get("page_title")) or "",
            is_redirect=bool(parse_superset_bool(entry.get("page_is_redirect"))),
            count=parse_optional_int(entry.get("count")) or 0,
            assessment_class=assessment,
        )

    def count_edits_by_page_in_namespace(
        self,
        author: str,
        namespace: int,
        limit: int,
        offset: int = 0,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TopEditedPage]:
        """
        Count the author's edits per page in one namespace.

        Rows are ordered by count descending. Ties are ordered by title so that
        consecutive pages of results never overlap.
        """
        revision_table = self.table_name("revision", by_user=True)
        sql_query = f"""
SELECT
   page_id,
   page_namespace,
   page_title,
   page_is_redirect,
   COUNT(rev_id) AS count{self._assessment_select("page_id", namespace)}
FROM page
JOIN {revision_table} ON page_id = rev_page
JOIN actor_revision ON rev_actor = actor_id
WHERE actor_name = {quote_sql_string(author)}
  AND page_namespace = {int(namespace)}
  {self._date_clauses(start, end, "rev_timestamp")}
GROUP BY page_id
ORDER BY count DESC, page_title ASC
LIMIT {int(limit)}
OFFSET {int(offset)}
"""
        rows = self._query(sql_query, "namespace top edits")
        return [page for page in map(self._parse_top_edited, rows) if page is not None]

    def count_edits_by_page_all_namespaces(
        self,
        author: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TopEditedPage]:
        """Count the author's edits per page in every namespace, grouped by namespace."""
        revision_table = self.table_name("revision", by_user=True)
        sql_query = f"""
SELECT
   page_namespace,
   page_id,
   page_title,
   page_is_redirect,
   COUNT(rev_id) AS count{self._assessment_select("page_id")}
FROM page
JOIN {revision_table} ON page_id = rev_page
JOIN actor_revision ON rev_actor = actor_id
WHERE actor_name = {quote_sql_string(author)}
  {self._date_clauses(start, end, "rev_timestamp")}
GROUP BY page_namespace, page_id
ORDER BY page_namespace ASC
"""
        rows = self._query(sql_query, "all-namespace top edits")
        return [page for page in map(self._parse_top_edited, rows) if page is not None]

    def count_pages_in_namespace(
        self,
        author: str,
        namespace: int,
        start: date | None = None,
        end: date | None = None,
    ) -> int:
        """Count the distinct pages the author edited in one namespace."""
        revision_table = self.table_name("revision", by_user=True)
        sql_query = f"""
SELECT COUNT(DISTINCT page_id) AS count
FROM page
JOIN {revision_table} ON page_id = rev_page
JOIN actor_revision ON rev_actor = actor_id
WHERE actor_name = {quote_sql_string(author)}
  AND page_namespace = {int(namespace)}
  {self._date_clauses(start, end, "rev_timestamp")}
"""
        rows = self._query(sql_query, "namespace page count")
        if not rows:
            return 0
        return parse_optional_int(rows[0].get("count")) or 0

    def _page_edits_sql(self, page_id: int, author: str, with_child: bool) -> str:
        revision_table = self.table_name("revision", by_user=True)
        if with_child:
            child_select = """,
   childrevs.rev_sha1 AS child_sha1,
   childcomments.comment_text AS child_comment"""
            child_join = f"""
JOIN revision AS childrevs
  ON childrevs.rev_parent_id = revs.rev_id
 AND childrevs.rev_page = {int(page_id)}
LEFT JOIN comment_revision AS childcomments
  ON childcomments.comment_id = childrevs.rev_comment_id"""
            limit = ""
        else:
            child_select = """,
   NULL AS child_sha1,
   NULL AS child_comment"""
            child_join = ""
            limit = "LIMIT 1"

        return f"""
SELECT
   revs.rev_id AS id,
   revs.rev_page AS page_id,
   page.page_namespace AS namespace,
   revs.rev_timestamp AS timestamp,
   revs.rev_minor_edit AS minor,
   revs.rev_len AS length,
   revs.rev_sha1 AS sha1,
   revs.rev_parent_id AS parent_id,
   parentrevs.rev_len AS parent_length,
   parentrevs.rev_sha1 AS parent_sha1,
   actor_user AS user_id,
   actor_name AS username,
   comments.comment_text AS comment{child_select}
FROM {revision_table} AS revs
JOIN page ON page.page_id = revs.rev_page
JOIN actor_revision ON revs.rev_actor = actor_id
LEFT JOIN revision AS parentrevs
  ON parentrevs.rev_id = revs.rev_parent_id
LEFT JOIN comment_revision AS comments
  ON comments.comment_id = revs.rev_comment_id{child_join}
WHERE actor_name = {quote_sql_string(author)}
  AND revs.rev_page = {int(page_id)}
ORDER BY revs.rev_timestamp DESC, revs.rev_id DESC
{limit}
"""

    def _parse_adjacent(self, entry: dict[str, Any]) -> AdjacentRevision | None:
        revid = parse_optional_int(entry.get("id"))
        if revid is None:
            logger.warning("Skipping revision row without id: %s", entry)
            return None

        parent_id = parse_optional_int(entry.get("parent_id"))
        revision = Revision(
            id=revid,
            page_id=parse_optional_int(entry.get("page_id")) or 0,
            timestamp=parse_superset_timestamp(entry.get("timestamp")),
            author_id=parse_optional_int(entry.get("user_id")),
            author_name=parse_superset_text(entry.get("username")) or "",
            length=parse_optional_int(entry.get("length")) or 0,
            sha1=parse_superset_text(entry.get("sha1")) or "",
            # MediaWiki stores 0 rather than NULL for page creations.
            parent_id=parent_id or None,
            comment=parse_superset_text(entry.get("comment")) or "",
            minor=bool(parse_superset_bool(entry.get("minor"))),
            namespace=parse_optional_int(entry.get("namespace")),
        )
        return AdjacentRevision(
            revision=revision,
            parent_length=parse_optional_int(entry.get("parent_length")),
            parent_sha1=parse_superset_text(entry.get("parent_sha1")),
            child_sha1=parse_superset_text(entry.get("child_sha1")),
            child_comment=parse_superset_text(entry.get("child_comment")),
        )

    def edit_sequence_for_page(self, page_id: int, author: str) -> list[AdjacentRevision]:
        """
        Fetch the author's revisions of a page, newest first, with both neighbours.

        Each row is joined to the revision that followed it, so the newest
        revision of the page is never part of this result.
        """
        rows = self._query(self._page_edits_sql(page_id, author, with_child=True), "page edits")
        return [row for row in map(self._parse_adjacent, rows) if row is not None]

    def latest_edit_for_page(self, page_id: int, author: str) -> list[AdjacentRevision]:
        """Fetch the author's most recent revision of a page, without child data."""
        rows = self._query(
            self._page_edits_sql(page_id, author, with_child=False), "latest page edit"
        )
        return [row for row in map(self._parse_adjacent, rows) if row is not None]
