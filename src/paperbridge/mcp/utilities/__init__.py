"""
MCP protocol utilities.

- Ping: answering and sending health checks
- Logging: forwarding server log notifications to Python logging
- Pagination: cursor-based list pagination
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from paperbridge.mcp.utilities.ping import PingHandler, ping_server
from paperbridge.mcp.utilities.server_logging import (
    LogLevel,
    LogMessage,
    LoggingHandler,
    LoggingConfig,
    set_server_log_level,
)
from paperbridge.mcp.utilities.pagination import (
    Page,
    PaginatedListHelper,
    InvalidCursorError,
    list_all_tools,
)

if TYPE_CHECKING:
    from paperbridge.mcp.protocol.session import Session

logger = logging.getLogger(__name__)


@dataclass
class UtilityHandlers:
    """Handlers registered on a session by setup_utility_handlers()."""

    ping: PingHandler
    logging: LoggingHandler


def setup_utility_handlers(
    session: "Session",
    logging_config: LoggingConfig | None = None,
) -> UtilityHandlers:
    """
    Register the standard server-to-client handlers on a session.

    Call before the handshake so nothing the server sends early is missed.
    """
    ping_handler = PingHandler()
    ping_handler.register_handlers(session)

    logging_handler = LoggingHandler(logging_config)
    logging_handler.register_handlers(session)

    logger.debug("Registered ping and log handlers")
    return UtilityHandlers(ping=ping_handler, logging=logging_handler)


__all__ = [
    "LogLevel",
    "LogMessage",
    "Page",
    "PingHandler",
    "ping_server",
    "LoggingHandler",
    "LoggingConfig",
    "set_server_log_level",
    "PaginatedListHelper",
    "InvalidCursorError",
    "list_all_tools",
    "UtilityHandlers",
    "setup_utility_handlers",
]
