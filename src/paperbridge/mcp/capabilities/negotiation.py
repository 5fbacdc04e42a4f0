"""MCP initialize handshake."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from paperbridge._version import __version__
from paperbridge.mcp.capabilities.server import ServerCapabilities

if TYPE_CHECKING:
    from paperbridge.mcp.protocol.session import Session

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_VERSIONS = ["2025-11-25", "2025-06-18", "2025-03-26", "2024-11-05"]

INITIALIZED_NOTIFICATION = "notifications/initialized"


@dataclass
class ClientInfo:
    """Information about this client sent during initialization."""

    name: str = "paperbridge"
    version: str = __version__

    def to_dict(self) -> dict[str, str]:
        """Convert to wire format."""
        return {"name": self.name, "version": self.version}


@dataclass
class ServerInfo:
    """Information about the connected server."""

    name: str
    version: str

    @classmethod
    def from_dict(cls, data: Any) -> "ServerInfo":
        """Create from server response."""
        if not isinstance(data, dict):
            data = {}
        return cls(
            name=str(data.get("name", "unknown")),
            version=str(data.get("version", "unknown")),
        )

    def to_dict(self) -> dict[str, str]:
        """Convert to dict."""
        return {"name": self.name, "version": self.version}


@dataclass
class NegotiationResult:
    """
    Result of a completed handshake.

    Contains all information exchanged during the initialize handshake.
    """

    protocol_version: str
    """Protocol version the server answered with."""

    server_info: ServerInfo
    """Information about the server."""

    server_capabilities: ServerCapabilities
    """Capabilities declared by the server."""

    client_capabilities: dict[str, Any] = field(default_factory=dict)
    """Capabilities declared by the client, passed through unchanged."""

    instructions: str | None = None
    """Optional usage instructions the server returned."""

    def __str__(self) -> str:
        features = self.server_capabilities.get_available_features()
        return (
            f"NegotiationResult(version={self.protocol_version}, "
            f"server={self.server_info.name}/{self.server_info.version}, "
            f"features={features})"
        )


class CapabilityNegotiator:
    """
    Performs the initialize/initialized exchange.

    The client capabilities object is opaque here: whatever the caller
    configured is sent as-is.
    """

    def __init__(
        self,
        session: "Session",
        protocol_version: str = PROTOCOL_VERSION,
        client_capabilities: dict[str, Any] | None = None,
        client_info: ClientInfo | None = None,
    ):
        """
        Initialize the negotiator.

        Args:
            session: Session to send the handshake on.
            protocol_version: Version string offered to the server.
            client_capabilities: Capabilities to declare.
            client_info: Client identity (defaults to paperbridge).
        """
        self.session = session
        self.protocol_version = protocol_version
        self.client_capabilities = dict(client_capabilities or {})
        self.client_info = client_info or ClientInfo()

    def build_params(self) -> dict[str, Any]:
        """Params for the initialize request."""
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": self.client_capabilities,
            "clientInfo": self.client_info.to_dict(),
        }

    async def negotiate(self) -> NegotiationResult:
        """
        Perform the initialization handshake.

        Sends the initialize request, reads the server's answer and sends
        the initialized notification.

        Returns:
            NegotiationResult with server capabilities.

        Raises:
            RpcError: If the server rejects initialize.
            TransportError: If the server goes away mid-handshake.
        """
        logger.debug(
            f"Starting handshake as {self.client_info.name}/{self.client_info.version}"
        )

        response = await self.session.request("initialize", self.build_params())
        if not isinstance(response, dict):
            response = {}

        server_version = str(response.get("protocolVersion", ""))
        if server_version not in SUPPORTED_VERSIONS and server_version != self.protocol_version:
            logger.warning(
                f"Server answered with unrecognized protocol version {server_version!r}, "
                f"continuing anyway"
            )
        else:
            logger.debug(f"Server responded with protocol version: {server_version}")

        server_info = ServerInfo.from_dict(response.get("serverInfo"))
        logger.info(f"Connected to server: {server_info.name} v{server_info.version}")

        server_capabilities = ServerCapabilities.from_dict(response.get("capabilities"))
        logger.debug(f"Server capabilities: {server_capabilities.get_available_features()}")

        await self.session.notify(INITIALIZED_NOTIFICATION)
        logger.debug("Sent initialized notification")

        instructions = response.get("instructions")
        return NegotiationResult(
            protocol_version=server_version,
            server_info=server_info,
            server_capabilities=server_capabilities,
            client_capabilities=self.client_capabilities,
            instructions=instructions if isinstance(instructions, str) else None,
        )
