"""Client configuration and MCP server config file loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from paperbridge._version import __version__
from paperbridge.lib import oj
from paperbridge.mcp.capabilities.negotiation import PROTOCOL_VERSION, ClientInfo
from paperbridge.mcp.transport.types import TransportConfig

logger = logging.getLogger(__name__)

# Config file locations
MCP_CONFIG_FILENAME = "mcp.json"
GLOBAL_MCP_CONFIG = Path.home() / ".paperbridge" / MCP_CONFIG_FILENAME
LOCAL_MCP_CONFIG_DIR = ".paperbridge"


@dataclass
class MCPServerConfig:
    """Configuration for a single stdio MCP server."""

    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "MCPServerConfig":
        """Create from config dict."""
        args = data.get("args")
        env = data.get("env")
        cwd = data.get("cwd")
        return cls(
            name=name,
            command=str(data.get("command", "")),
            args=[str(a) for a in args] if isinstance(args, list) else [],
            env={str(k): str(v) for k, v in env.items() if v is not None}
            if isinstance(env, dict)
            else {},
            cwd=str(cwd) if cwd else None,
        )


@dataclass
class ClientConfig:
    """
    Everything a ToolClient needs, passed explicitly at construction.

    The process launch fields are handed to the transport; the rest shape
    the handshake and tool calls.
    """

    command: str
    """Executable that starts the server."""

    args: list[str] = field(default_factory=list)
    """Arguments passed to the command."""

    env: dict[str, str] = field(default_factory=dict)
    """Extra environment variables for the server process."""

    cwd: str | None = None
    """Working directory for the server process."""

    protocol_version: str = PROTOCOL_VERSION
    """Protocol version offered in initialize."""

    capabilities: dict[str, Any] = field(default_factory=dict)
    """Client capabilities, sent to the server unchanged."""

    client_name: str = "paperbridge"
    """clientInfo.name sent in initialize."""

    client_version: str = __version__
    """clientInfo.version sent in initialize."""

    request_timeout: float | None = None
    """Per-request timeout in seconds. None waits until the server answers or exits."""

    tool_prefix: str = ""
    """Prefix prepended to tool names by named wrappers."""

    shutdown_timeout: float = 5.0
    """Seconds to wait at each step when stopping the server."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.command:
            raise ValueError("command is required")
        if not self.protocol_version:
            raise ValueError("protocol_version is required")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be positive")
        if not isinstance(self.capabilities, dict):
            raise ValueError("capabilities must be a dict")

    @property
    def client_info(self) -> ClientInfo:
        """Client identity for the handshake."""
        return ClientInfo(name=self.client_name, version=self.client_version)

    def transport_config(self) -> TransportConfig:
        """Launch settings for the stdio transport."""
        return TransportConfig(
            command=self.command,
            args=list(self.args),
            env=dict(self.env),
            cwd=self.cwd,
            shutdown_timeout=self.shutdown_timeout,
        )

    @classmethod
    def from_server_config(cls, server: MCPServerConfig, **overrides: Any) -> "ClientConfig":
        """Build from a config-file server entry, with optional overrides."""
        config = cls(
            command=server.command,
            args=list(server.args),
            env=dict(server.env),
            cwd=server.cwd,
        )
        return replace(config, **overrides) if overrides else config


def _load_servers(path: Path) -> dict[str, MCPServerConfig]:
    """Read stdio server entries from one mcp.json file."""
    configs: dict[str, MCPServerConfig] = {}
    try:
        data = oj.loads(path.read_bytes())
    except (OSError, oj.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable MCP config {path}: {e}")
        return configs

    servers = data.get("mcpServers", {}) if isinstance(data, dict) else {}
    if not isinstance(servers, dict):
        logger.warning(f"Ignoring {path}: mcpServers is not an object")
        return configs

    for name, server_data in servers.items():
        if isinstance(server_data, dict) and server_data.get("command"):
            configs[name] = MCPServerConfig.from_dict(name, server_data)
        else:
            logger.debug(f"Skipping server {name!r} in {path}: no command")
    return configs


def load_mcp_config(
    working_dir: Path | None = None,
    global_config: Path | None = None,
) -> dict[str, MCPServerConfig]:
    """Load MCP server configs from global and local config files.

    Global config (~/.paperbridge/mcp.json) is loaded first.
    Local config ({working_dir}/.paperbridge/mcp.json) overrides global.

    Returns:
        Dict mapping server name to config.
    """
    configs: dict[str, MCPServerConfig] = {}

    global_path = global_config if global_config is not None else GLOBAL_MCP_CONFIG
    if global_path.exists():
        configs.update(_load_servers(global_path))

    if working_dir:
        local_config = working_dir / LOCAL_MCP_CONFIG_DIR / MCP_CONFIG_FILENAME
        if local_config.exists():
            configs.update(_load_servers(local_config))

    return configs
