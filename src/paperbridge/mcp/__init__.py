"""
MCP (Model Context Protocol) client over stdio.

Submodules:
- transport: child process supervision and newline-delimited JSON framing
- protocol: JSON-RPC 2.0 messages, request correlation, session lifecycle
- capabilities: initialize handshake
- tools: tool result unwrapping
- utilities: ping, server log forwarding, pagination
"""

# Transport layer
from paperbridge.mcp.transport import (
    StdioTransport,
    TransportConfig,
    Transport,
    TransportError,
    SpawnError,
    ProcessExitedError,
    ProcessDeadError,
    SessionClosedError,
    SessionError,
)

# Protocol layer
from paperbridge.mcp.protocol import (
    Session,
    SessionState,
    RequestRegistry,
    RpcError,
    ProtocolError,
    ToolError,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCNotification,
)

# Capabilities
from paperbridge.mcp.capabilities import (
    ServerCapabilities,
    CapabilityNegotiator,
    NegotiationResult,
    ClientInfo,
    PROTOCOL_VERSION,
)

# Tools
from paperbridge.mcp.tools import unwrap_tool_result

# Configuration
from paperbridge.mcp.config import ClientConfig, MCPServerConfig, load_mcp_config

__all__ = [
    # Transport
    "StdioTransport",
    "TransportConfig",
    "Transport",
    "TransportError",
    "SpawnError",
    "ProcessExitedError",
    "ProcessDeadError",
    "SessionClosedError",
    "SessionError",
    # Protocol
    "Session",
    "SessionState",
    "RequestRegistry",
    "RpcError",
    "ProtocolError",
    "ToolError",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCNotification",
    # Capabilities
    "ServerCapabilities",
    "CapabilityNegotiator",
    "NegotiationResult",
    "ClientInfo",
    "PROTOCOL_VERSION",
    # Tools
    "unwrap_tool_result",
    # Configuration
    "ClientConfig",
    "MCPServerConfig",
    "load_mcp_config",
]
