"""
MCP Protocol Core.

Implements JSON-RPC 2.0 messages, request/response correlation,
and the session lifecycle.
"""

from paperbridge.mcp.protocol.errors import (
    RpcError,
    ProtocolError,
    ToolError,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    REQUEST_TIMEOUT,
)
from paperbridge.mcp.protocol.messages import (
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCNotification,
)
from paperbridge.mcp.protocol.state import (
    SessionState,
    SessionStateMachine,
    InvalidStateTransition,
)
from paperbridge.mcp.protocol.registry import RequestRegistry, PendingRequest
from paperbridge.mcp.protocol.session import Session

__all__ = [
    # Errors
    "RpcError",
    "ProtocolError",
    "ToolError",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "REQUEST_TIMEOUT",
    # Messages
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCNotification",
    # State
    "SessionState",
    "SessionStateMachine",
    "InvalidStateTransition",
    # Correlation
    "RequestRegistry",
    "PendingRequest",
    # Session
    "Session",
]
