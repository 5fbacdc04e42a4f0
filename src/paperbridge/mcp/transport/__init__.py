"""
MCP Transport Layer.

Spawns the server as a child process and frames JSON-RPC 2.0 messages
as newline-delimited JSON over its stdin/stdout.
"""

from paperbridge.mcp.transport.types import TransportConfig, TransportEvent, TransportEventType
from paperbridge.mcp.transport.base import (
    Transport,
    TransportError,
    SpawnError,
    ProcessExitedError,
    ProcessDeadError,
    SessionClosedError,
    SessionError,
)
from paperbridge.mcp.transport.codec import LineDecoder, decode, encode_message
from paperbridge.mcp.transport.stdio import StdioTransport

__all__ = [
    "Transport",
    "TransportConfig",
    "TransportEvent",
    "TransportEventType",
    "TransportError",
    "SpawnError",
    "ProcessExitedError",
    "ProcessDeadError",
    "SessionClosedError",
    "SessionError",
    "LineDecoder",
    "decode",
    "encode_message",
    "StdioTransport",
]
