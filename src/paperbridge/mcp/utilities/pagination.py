"""Cursor-based pagination for MCP list operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator

from paperbridge.mcp.protocol.errors import INVALID_PARAMS, RpcError

if TYPE_CHECKING:
    from paperbridge.mcp.protocol.session import Session

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of a list method's results."""

    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


class InvalidCursorError(Exception):
    """The server rejected a pagination cursor."""

    pass


class PaginatedListHelper:
    """
    Walks ``nextCursor`` pages of a list method.

    Cursors are opaque strings that clients must not parse or modify.
    """

    def __init__(self, session: "Session") -> None:
        self.session = session

    async def list_page(
        self,
        method: str,
        items_key: str,
        cursor: str | None = None,
    ) -> Page:
        """
        Fetch a single page of results.

        Args:
            method: RPC method (e.g., "tools/list").
            items_key: Key in response containing items (e.g., "tools").
            cursor: Pagination cursor from previous request.

        Returns:
            The page's items and the cursor for the next one.

        Raises:
            InvalidCursorError: If the server rejects the cursor.
        """
        params: dict[str, Any] | None = None
        if cursor:
            params = {"cursor": cursor}

        logger.debug(f"Fetching page: method={method}, cursor={cursor}")

        try:
            result = await self.session.request(method, params)
        except RpcError as e:
            if cursor and e.code == INVALID_PARAMS:
                raise InvalidCursorError(f"Invalid cursor: {cursor}") from e
            raise

        if not isinstance(result, dict):
            result = {}
        items = result.get(items_key)
        next_cursor = result.get("nextCursor")

        return Page(
            items=items if isinstance(items, list) else [],
            next_cursor=next_cursor if isinstance(next_cursor, str) and next_cursor else None,
        )

    async def iter_items(
        self,
        method: str,
        items_key: str,
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield items across all pages."""
        cursor: str | None = None
        while True:
            page = await self.list_page(method, items_key, cursor)
            for item in page.items:
                yield item
            if not page.has_more:
                break
            cursor = page.next_cursor

    async def list_all(
        self,
        method: str,
        items_key: str,
        max_pages: int = 100,
    ) -> list[dict[str, Any]]:
        """
        Fetch all pages of results.

        Args:
            method: RPC method.
            items_key: Key in response containing items.
            max_pages: Maximum pages to fetch (safety limit).

        Returns:
            All items concatenated.
        """
        all_items: list[dict[str, Any]] = []
        cursor: str | None = None

        for page_num in range(max_pages):
            page = await self.list_page(method, items_key, cursor)
            all_items.extend(page.items)

            if not page.has_more:
                logger.debug(f"Fetched {len(all_items)} items in {page_num + 1} pages")
                return all_items

            cursor = page.next_cursor

        logger.warning(
            f"Reached max_pages limit ({max_pages}) for {method}, "
            f"there may be more results"
        )
        return all_items


async def list_all_tools(session: "Session", max_pages: int = 100) -> list[dict[str, Any]]:
    """List every tool the server exposes."""
    return await PaginatedListHelper(session).list_all("tools/list", "tools", max_pages)
