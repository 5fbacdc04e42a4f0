"""Normalize tools/call result envelopes into plain values.

Servers encode the same logical result several ways: a structured ``json``
content item, JSON serialized into a ``text`` item, plain text, or a bare
``data`` field. ``unwrap_tool_result`` applies a fixed precedence so callers
always get one value back:

1. ``isError`` set: raise ToolError.
2. First content item has a ``json`` key: return it, whatever its value.
3. First content item has string ``text``: parse it if it looks like a JSON
   object or array, otherwise return the trimmed text.
4. No content, but a ``data`` key: return it.
5. Otherwise return the envelope itself.
"""

from __future__ import annotations

from typing import Any

from paperbridge.lib import oj
from paperbridge.mcp.protocol.errors import ToolError

DEFAULT_ERROR_MESSAGE = "Tool call failed"


def _looks_like_json(text: str) -> bool:
    return (text.startswith("{") and text.endswith("}")) or (
        text.startswith("[") and text.endswith("]")
    )


def _first_content_item(envelope: dict[str, Any]) -> Any:
    content = envelope.get("content")
    if isinstance(content, list) and content:
        return content[0]
    return None


def error_message(envelope: dict[str, Any]) -> str:
    """Best diagnostic text available in an error envelope."""
    item = _first_content_item(envelope)
    if isinstance(item, dict) and isinstance(item.get("text"), str):
        return item["text"]
    return DEFAULT_ERROR_MESSAGE


def unwrap_tool_result(result: Any, tool: str | None = None) -> Any:
    """
    Reduce a tool result envelope to the value it carries.

    Args:
        result: The ``result`` member of a tools/call response.
        tool: Tool name, used in the error message.

    Returns:
        The unwrapped value.

    Raises:
        ToolError: If the envelope has ``isError`` set.
    """
    if not isinstance(result, dict):
        return result

    if result.get("isError") is True:
        raise ToolError(error_message(result), tool=tool, envelope=result)

    content = result.get("content")
    if isinstance(content, list) and content:
        item = content[0]
        if isinstance(item, dict):
            if "json" in item:
                return item["json"]
            text = item.get("text")
            if isinstance(text, str):
                trimmed = text.strip()
                if _looks_like_json(trimmed):
                    try:
                        return oj.loads(trimmed)
                    except oj.JSONDecodeError:
                        return trimmed
                return trimmed
        return result

    if "data" in result:
        return result["data"]

    return result
