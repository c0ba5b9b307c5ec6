from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Revision:
    id: int
    page_id: int
    timestamp: datetime | None
    author_id: int | None
    author_name: str
    length: int
    sha1: str
    parent_id: int | None
    comment: str = ""
    minor: bool = False
    namespace: int | None = None


@dataclass(frozen=True)
class Page:
    id: int
    namespace: int
    title: str
    is_redirect: bool = False
    assessment_class: str | None = None


@dataclass(frozen=True)
class TopEditedPage:
    """One page in a ranked list of the pages an author edited most."""

    namespace: int
    page_id: int
    title: str
    is_redirect: bool
    count: int
    assessment_class: str | None = None


@dataclass(frozen=True)
class AdjacentRevision:
    """A revision together with what is known about its neighbours on the page.

    ``child_sha1`` and ``child_comment`` describe the revision that directly
    followed this one, by any author. They are ``None`` when no such revision
    was fetched.
    """

    revision: Revision
    parent_length: int | None = None
    parent_sha1: str | None = None
    child_sha1: str | None = None
    child_comment: str | None = None


@dataclass(frozen=True)
class PageEdit:
    id: int
    timestamp: datetime | None
    minor: bool
    length: int
    length_change: int
    reverted: bool
    user_id: int | None
    username: str
    comment: str
    parent_comment: str
