"""
Memoization of computed top edits results.

Results are stored in a Django cache under a key derived from the operation
name and the arguments in the order they were passed. Two calls that are
logically equivalent but pass their arguments in a different order get
different keys.
"""

from __future__ import annotations

import dataclasses
import hashlib
import logging
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any, TypeVar

from django.conf import settings
from django.core.cache import caches
from django.core.cache.backends.base import BaseCache
from django.db import models

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_PREFIX = "topedits"
ARGUMENT_SEPARATOR = "|"
_MISSING = object()


def stringify_argument(value: Any) -> str:
    """Reduce one call argument to the string that identifies it in a cache key."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, models.Model):
        # Projects are identified by their code, which is stable across databases.
        code = getattr(value, "code", None)
        return str(code if code is not None else value.pk)
    if dataclasses.is_dataclass(value) and hasattr(value, "id"):
        return str(value.id)
    return str(value)


def make_cache_key(operation: str, args: Sequence[Any]) -> str:
    raw = ARGUMENT_SEPARATOR.join(stringify_argument(arg) for arg in args)
    digest = hashlib.md5(raw.encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}.{operation}.{digest}"


class ResultCache:
    """Read-through cache in front of the expensive top edits operations.

    The backend is looked up from ``caches`` on every use, so each thread talks
    to its own connection.
    """

    def __init__(self, alias: str | None = None, timeout: int | None = None):
        self.alias = alias or getattr(settings, "TOPEDITS_CACHE_ALIAS", "default")
        self.timeout = (
            timeout if timeout is not None else getattr(settings, "TOPEDITS_CACHE_TIMEOUT", 600)
        )
        self._opened = False

    @property
    def backend(self) -> BaseCache:
        return caches[self.alias]

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> None:
        self._opened = True

    def close(self) -> None:
        """Release the calling thread's connection to the cache backend."""
        if not self._opened:
            return
        self._opened = False
        try:
            self.backend.close()
        except Exception:
            logger.warning("Failed to close cache backend %s", self.alias, exc_info=True)

    def get_or_compute(
        self, operation: str, args: Sequence[Any], compute: Callable[[], T]
    ) -> T:
        """
        Return the cached result of ``operation`` for ``args``, computing it on a miss.

        Backend failures never fail the call: a backend that cannot be set up
        or read is treated as a miss, and a failed write only costs the next
        caller a recomputation.
        """
        key = make_cache_key(operation, args)

        try:
            cached = self.backend.get(key, _MISSING)
        except Exception:
            logger.warning("Cache read failed for %s, treating as miss", key, exc_info=True)
            cached = _MISSING

        if cached is not _MISSING:
            logger.debug("Cache hit for %s", key)
            return cached

        result = compute()

        try:
            self.backend.set(key, result, self.timeout)
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)
        return result
