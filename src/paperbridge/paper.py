"""Named wrappers for the Paper design tool's MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from paperbridge.client import ToolClient

logger = logging.getLogger(__name__)

JSXFormat = Literal["tailwind", "inline-styles"]
JSX_FORMATS: tuple[str, ...] = ("tailwind", "inline-styles")


def _require_node_id(node_id: Any) -> str:
    if not isinstance(node_id, str) or not node_id:
        raise ValueError("node_id must be a non-empty string")
    return node_id


class PaperClient(ToolClient):
    """
    ToolClient with one method per Paper tool.

    Each wrapper checks its arguments and calls call_tool() with a fixed
    tool name, prefixed by ClientConfig.tool_prefix.
    """

    def tool_name(self, name: str) -> str:
        """Full tool name as exposed by the server."""
        return f"{self.config.tool_prefix}{name}"

    async def get_basic_info(self) -> Any:
        """File name, page and artboards of the open document."""
        return await self.call_tool(self.tool_name("get_basic_info"))

    async def get_selection(self) -> Any:
        """Currently selected nodes."""
        return await self.call_tool(self.tool_name("get_selection"))

    async def get_node_info(self, node_id: str) -> Any:
        return await self.call_tool(
            self.tool_name("get_node_info"),
            {"nodeId": _require_node_id(node_id)},
        )

    async def get_children(self, node_id: str) -> Any:
        return await self.call_tool(
            self.tool_name("get_children"),
            {"nodeId": _require_node_id(node_id)},
        )

    async def get_screenshot(self, node_id: str) -> Any:
        return await self.call_tool(
            self.tool_name("get_screenshot"),
            {"nodeId": _require_node_id(node_id)},
        )

    async def get_jsx(self, node_id: str, format: JSXFormat = "tailwind") -> Any:
        """
        Export a node as JSX.

        Args:
            node_id: Node to export.
            format: "tailwind" or "inline-styles".
        """
        if format not in JSX_FORMATS:
            raise ValueError(f"format must be one of {', '.join(JSX_FORMATS)}, got {format!r}")
        return await self.call_tool(
            self.tool_name("get_jsx"),
            {"nodeId": _require_node_id(node_id), "format": format},
        )

    async def get_computed_styles(self, node_ids: list[str]) -> Any:
        """Computed CSS for several nodes, keyed by node id."""
        if isinstance(node_ids, str) or not node_ids:
            raise ValueError("node_ids must be a non-empty list of node ids")
        ids = [_require_node_id(node_id) for node_id in node_ids]
        return await self.call_tool(self.tool_name("get_computed_styles"), {"nodeIds": ids})

    async def get_fill_image(self, node_id: str) -> Any:
        return await self.call_tool(
            self.tool_name("get_fill_image"),
            {"nodeId": _require_node_id(node_id)},
        )


@dataclass
class PaperImportResult:
    """A selected Paper node exported as JSX."""

    node_id: str
    name: str
    jsx: str
    format: str
    width: float | None = None
    height: float | None = None
    artboard_id: str | None = None


def get_selected_node_id(selection: Any) -> str | None:
    """
    Id of the first selected node.

    Accepts ``{"nodes": [...]}``, ``{"selection": [...]}`` or a bare node.
    """
    if not isinstance(selection, dict):
        return None

    nodes = selection.get("nodes")
    if nodes is None:
        nodes = selection.get("selection")
    if isinstance(nodes, list) and nodes:
        first = nodes[0]
        node_id = first.get("id") if isinstance(first, dict) else None
        return node_id if isinstance(node_id, str) else None

    node_id = selection.get("id")
    return node_id if isinstance(node_id, str) else None


def get_jsx_string(result: Any) -> str:
    """Pull the JSX source out of a get_jsx result."""
    if isinstance(result, str):
        return result
    if isinstance(result, dict):
        for key in ("jsx", "code"):
            if isinstance(result.get(key), str):
                return result[key]
    return ""


async def import_selection(
    client: PaperClient,
    format: JSXFormat = "tailwind",
    fallback_name: str | None = None,
) -> PaperImportResult:
    """
    Export the current Paper selection.

    Raises:
        ValueError: If nothing is selected.
    """
    selection = await client.get_selection()
    node_id = get_selected_node_id(selection)
    if not node_id:
        raise ValueError("No Paper node selected.")

    node_info = await client.get_node_info(node_id)
    jsx = get_jsx_string(await client.get_jsx(node_id, format))
    if not isinstance(node_info, dict):
        node_info = {}

    name = node_info.get("name") or fallback_name or f"PaperNode-{node_id[:6]}"
    logger.info(f"Imported Paper node {node_id} as {name}")

    return PaperImportResult(
        node_id=node_id,
        name=name,
        jsx=jsx,
        format=format,
        width=node_info.get("width"),
        height=node_info.get("height"),
        artboard_id=node_info.get("artboardId"),
    )
