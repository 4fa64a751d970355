"""
Page resolution policy.

Pages are addressed by a 0-based index into the handle's live page list.
Indices shift when pages close, so the list is re-read on every call and
never cached here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import OPEN_PAGE_SUGGESTION, NoActivePage, invalid_index
from .engine import PageHandle

if TYPE_CHECKING:
    from .sessions import Session


@dataclass(frozen=True, slots=True)
class ResolvedPage:
    page: PageHandle
    index: int
    total: int


def index_of(pages: list[PageHandle], page: PageHandle) -> int:
    """Position of `page` by identity, -1 when it is not in the list."""
    for i, candidate in enumerate(pages):
        if candidate is page:
            return i
    return -1


class PageResolver:
    """Turns an optional page index into a concrete page of one session."""

    def find(self, session: Session, requested_index: int | None = None, *, tool: str | None = None) -> ResolvedPage | None:
        """Resolve without creating. None when no page exists at the active index.

        An explicit index outside the live list raises InvalidIndex.
        """
        pages = session.handle.pages()
        if requested_index is not None:
            if not 0 <= requested_index < len(pages):
                raise invalid_index(requested_index, tool=tool, total=len(pages))
            return ResolvedPage(pages[requested_index], requested_index, len(pages))
        index = session.active_page_index
        if pages and index >= len(pages):
            # Pages can vanish outside close_page (window.close, popups).
            index = self.reclamp(session)
        if 0 <= index < len(pages):
            return ResolvedPage(pages[index], index, len(pages))
        return None

    async def resolve(
        self,
        session: Session,
        requested_index: int | None = None,
        *,
        allow_create: bool = False,
        tool: str | None = None,
    ) -> ResolvedPage:
        found = self.find(session, requested_index, tool=tool)
        if found is not None:
            return found
        if not allow_create:
            raise NoActivePage("No active page", tool=tool, suggestion=OPEN_PAGE_SUGGESTION)
        return await self.create(session)

    async def create(self, session: Session) -> ResolvedPage:
        """Open a new page and make it the session's active page."""
        page = await session.handle.new_page()
        pages = session.handle.pages()
        index = index_of(pages, page)
        if index < 0:
            # Engines append new pages at the end.
            index = max(0, len(pages) - 1)
        session.active_page_index = index
        return ResolvedPage(page, index, len(pages))

    def reclamp(self, session: Session) -> int:
        """Pull the active index back into range after a page was removed."""
        count = session.page_count()
        session.active_page_index = min(session.active_page_index, max(0, count - 1))
        return session.active_page_index


__all__ = ["PageResolver", "ResolvedPage", "index_of"]
