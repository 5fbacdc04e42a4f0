"""Tool call helpers."""

from paperbridge.mcp.tools.results import unwrap_tool_result, error_message

__all__ = [
    "unwrap_tool_result",
    "error_message",
]
