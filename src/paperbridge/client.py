"""High-level tool client for a stdio MCP server."""

from __future__ import annotations

import logging
from typing import Any, Callable

from paperbridge.mcp.config import ClientConfig
from paperbridge.mcp.capabilities.negotiation import NegotiationResult
from paperbridge.mcp.protocol.session import Session
from paperbridge.mcp.tools.results import unwrap_tool_result
from paperbridge.mcp.transport.base import Transport, ProcessDeadError
from paperbridge.mcp.transport.stdio import StdioTransport
from paperbridge.mcp.utilities import (
    PaginatedListHelper,
    UtilityHandlers,
    ping_server,
    setup_utility_handlers,
)

logger = logging.getLogger(__name__)

TransportFactory = Callable[[ClientConfig], Transport]


def _default_transport(config: ClientConfig) -> Transport:
    return StdioTransport(config.transport_config())


class ToolClient:
    """
    Call tools on one MCP server over stdio.

    Nothing is started at construction. The first call spawns the server
    and performs the handshake; concurrent first calls share it. After
    close(), or once the server has exited, every call raises
    ProcessDeadError.

    Example:
        async with ToolClient(ClientConfig(command="paper-mcp")) as client:
            info = await client.call_tool("get_basic_info")
    """

    def __init__(
        self,
        config: ClientConfig,
        transport_factory: TransportFactory | None = None,
    ):
        self.config = config
        self._transport_factory = transport_factory or _default_transport
        self._session: Session | None = None
        self._handlers: UtilityHandlers | None = None
        self._closed = False

    @property
    def session(self) -> Session:
        """The session, created on first access."""
        if self._session is None:
            if self._closed:
                raise ProcessDeadError("Client is closed")
            transport = self._transport_factory(self.config)
            session = Session(
                transport,
                protocol_version=self.config.protocol_version,
                capabilities=self.config.capabilities,
                client_info=self.config.client_info,
                request_timeout=self.config.request_timeout,
            )
            self._handlers = setup_utility_handlers(session)
            self._session = session
        return self._session

    @property
    def handlers(self) -> UtilityHandlers | None:
        """Ping and log handlers registered on the session, once it exists."""
        return self._handlers

    @property
    def is_closed(self) -> bool:
        """Check if close() was called or the server has gone away."""
        return self._closed or (self._session is not None and self._session.is_closed)

    async def connect(self) -> NegotiationResult:
        """Start the server and complete the handshake, if not done yet."""
        if self._closed:
            raise ProcessDeadError("Client is closed")
        return await self.session.ensure_initialized()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """
        Invoke a tool and return its unwrapped result.

        Args:
            name: Tool name.
            arguments: Tool arguments; None sends an empty object.

        Returns:
            The tool's payload, see unwrap_tool_result().

        Raises:
            ToolError: If the tool reported failure.
            RpcError: If the server rejected the call.
            TransportError: If the server could not be reached.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Tool name must be a non-empty string")
        if arguments is not None and not isinstance(arguments, dict):
            raise ValueError("Tool arguments must be a dict")

        await self.connect()
        logger.debug(f"Calling tool {name}")
        result = await self.session.request(
            "tools/call",
            {"name": name, "arguments": arguments or {}},
        )
        return unwrap_tool_result(result, tool=name)

    async def list_tools(self, max_pages: int = 100) -> list[dict[str, Any]]:
        """List every tool the server exposes, following pagination cursors."""
        await self.connect()
        return await PaginatedListHelper(self.session).list_all("tools/list", "tools", max_pages)

    async def ping(self, timeout: float | None = None) -> None:
        """Check that the server is responsive."""
        await self.connect()
        await ping_server(self.session, timeout=timeout)

    async def close(self) -> None:
        """Stop the server. Safe to call more than once."""
        self._closed = True
        if self._session is not None:
            await self._session.close()

    async def __aenter__(self) -> "ToolClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
