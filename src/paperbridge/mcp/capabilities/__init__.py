"""
MCP Capability Negotiation.

Handles the initialization handshake between client and server.
"""

from paperbridge.mcp.capabilities.server import ServerCapabilities
from paperbridge.mcp.capabilities.negotiation import (
    CapabilityNegotiator,
    NegotiationResult,
    ClientInfo,
    ServerInfo,
    PROTOCOL_VERSION,
    SUPPORTED_VERSIONS,
    INITIALIZED_NOTIFICATION,
)

__all__ = [
    "ServerCapabilities",
    "CapabilityNegotiator",
    "NegotiationResult",
    "ClientInfo",
    "ServerInfo",
    "PROTOCOL_VERSION",
    "SUPPORTED_VERSIONS",
    "INITIALIZED_NOTIFICATION",
]
