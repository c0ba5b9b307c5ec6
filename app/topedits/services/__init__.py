from __future__ import annotations

from .cache import ResultCache, make_cache_key
from .context import TopEditsContext
from .ranking import rank_top_per_group
from .revision_store import RevisionStore
from .revisions import annotate_edits, complete_edges
from .top_edits import TopEditsService
from .types import AdjacentRevision, Page, PageEdit, Revision, TopEditedPage

__all__ = [
    "TopEditsContext",
    "TopEditsService",
    "ResultCache",
    "RevisionStore",
    "make_cache_key",
    "rank_top_per_group",
    "annotate_edits",
    "complete_edges",
    "AdjacentRevision",
    "Page",
    "PageEdit",
    "Revision",
    "TopEditedPage",
]
