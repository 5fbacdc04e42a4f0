"""Server capabilities reported in the initialize response."""

from dataclasses import dataclass, field
from typing import Any


def _flag(section: Any, key: str) -> bool:
    return isinstance(section, dict) and bool(section.get(key, False))


@dataclass
class ServerCapabilities:
    """
    Parsed server capabilities from initialize response.

    Only the parts the client acts on are broken out; the original object
    is kept in ``raw``.
    """

    tools: bool = False
    """Server provides callable tools."""

    tools_list_changed: bool = False
    """Server will notify when tool list changes."""

    resources: bool = False
    """Server provides readable resources."""

    prompts: bool = False
    """Server provides prompt templates."""

    logging: bool = False
    """Server sends log notifications and accepts logging/setLevel."""

    completions: bool = False
    """Server supports argument completion."""

    experimental: dict[str, Any] | None = None
    """Experimental capabilities (vendor-specific)."""

    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "ServerCapabilities":
        """
        Parse from initialize response.

        Args:
            data: The 'capabilities' object from server response.

        Returns:
            ServerCapabilities instance.
        """
        if not isinstance(data, dict):
            return cls()

        experimental = data.get("experimental")
        return cls(
            tools="tools" in data,
            tools_list_changed=_flag(data.get("tools"), "listChanged"),
            resources="resources" in data,
            prompts="prompts" in data,
            logging="logging" in data,
            completions="completions" in data,
            experimental=experimental if isinstance(experimental, dict) else None,
            raw=dict(data),
        )

    def get_available_features(self) -> list[str]:
        """
        List features available with this server.

        Returns:
            List of feature names.
        """
        features = []

        if self.tools:
            features.append("tools")
        if self.resources:
            features.append("resources")
        if self.prompts:
            features.append("prompts")
        if self.logging:
            features.append("logging")
        if self.completions:
            features.append("completions")

        return features
