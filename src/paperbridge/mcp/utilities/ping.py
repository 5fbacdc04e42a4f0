"""Ping utility for MCP connection health checks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from paperbridge.mcp.protocol.session import Session

logger = logging.getLogger(__name__)


class PingHandler:
    """
    Answers server-initiated pings.

    Ping is bidirectional; the server may check that the client is still
    reading its output.
    """

    async def handle_ping(self, params: dict[str, Any] | None) -> dict[str, Any]:
        """
        Handle ping request from server.

        Returns:
            Empty result dict.
        """
        logger.debug("Received ping request")
        return {}

    def register_handlers(self, session: "Session") -> None:
        """Register the ping handler on a session."""
        session.on_request("ping", self.handle_ping)


async def ping_server(session: "Session", timeout: float | None = None) -> None:
    """
    Ping the server.

    Args:
        session: An initialized session.
        timeout: Optional timeout in seconds.

    Raises:
        RpcError: If the server answers with an error or times out.
        TransportError: If the server is gone.
    """
    await session.request("ping", timeout=timeout)
    logger.debug("Ping successful")
