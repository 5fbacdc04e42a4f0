"""paperbridge: call tools on a stdio MCP server, with Paper design-tool wrappers."""

from paperbridge._version import __version__
from paperbridge.mcp import (
    ClientConfig,
    MCPServerConfig,
    load_mcp_config,
    TransportError,
    SpawnError,
    ProcessExitedError,
    ProcessDeadError,
    SessionClosedError,
    RpcError,
    ProtocolError,
    ToolError,
)
from paperbridge.client import ToolClient
from paperbridge.paper import (
    PaperClient,
    PaperImportResult,
    get_selected_node_id,
    get_jsx_string,
    import_selection,
)

__all__ = [
    "__version__",
    "ClientConfig",
    "MCPServerConfig",
    "load_mcp_config",
    "TransportError",
    "SpawnError",
    "ProcessExitedError",
    "ProcessDeadError",
    "SessionClosedError",
    "RpcError",
    "ProtocolError",
    "ToolError",
    "ToolClient",
    "PaperClient",
    "PaperImportResult",
    "get_selected_node_id",
    "get_jsx_string",
    "import_selection",
]
