from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import pywikibot

from ..exceptions import StoreUnavailable
from .cache import ResultCache
from .revision_store import RevisionStore

if TYPE_CHECKING:
    from topedits.models import Project

logger = logging.getLogger(__name__)

os.environ.setdefault("PYWIKIBOT_NO_USER_CONFIG", "2")


class TopEditsContext:
    """
    Owns the shared resources of the top edits engine.

    The result cache is opened with the context and released by ``close()``.
    Replica stores are created per project on first use and dropped on close.
    """

    def __init__(self, cache: ResultCache | None = None):
        self.cache = cache or ResultCache()
        self._stores: dict[str, RevisionStore] = {}

    def open(self) -> TopEditsContext:
        self.cache.open()
        return self

    def close(self) -> None:
        self._stores.clear()
        self.cache.close()

    def __enter__(self) -> TopEditsContext:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def store_for(self, project: Project) -> RevisionStore:
        store = self._stores.get(project.code)
        if store is not None:
            return store

        try:
            site = pywikibot.Site(code=project.code, fam=project.family)
        except Exception as exc:
            logger.exception("Failed to create site for %s", project.code)
            raise StoreUnavailable(f"Could not connect to {project.code}: {exc}") from exc

        store = RevisionStore(project, site)
        self._stores[project.code] = store
        return store
