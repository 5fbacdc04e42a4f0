"""Transport layer types and configuration."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class TransportEventType(Enum):
    """Types of transport events for observability."""

    SPAWNING = auto()
    SPAWNED = auto()
    MESSAGE_SENT = auto()
    MESSAGE_RECEIVED = auto()
    STDERR = auto()
    EXITED = auto()
    ERROR = auto()


@dataclass
class TransportEvent:
    """Event emitted by transport for observability."""

    type: TransportEventType
    timestamp: float
    data: dict[str, Any] | None = None
    error: Exception | None = None

    def __str__(self) -> str:
        base = f"[{self.type.name}]"
        if self.data:
            base += f" {self.data}"
        if self.error:
            base += f" error={self.error}"
        return base


@dataclass
class TransportConfig:
    """Configuration for the stdio transport."""

    command: str
    """Executable to spawn (resolved on PATH if not absolute)."""

    args: list[str] = field(default_factory=list)
    """Arguments passed to the command."""

    env: dict[str, str] = field(default_factory=dict)
    """Extra environment variables, layered over the parent environment."""

    cwd: str | None = None
    """Working directory for the child process."""

    shutdown_timeout: float = 5.0
    """Seconds to wait for the child to exit at each shutdown step."""

    read_chunk_size: int = 65536
    """Maximum bytes read from stdout per read call."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.command:
            raise ValueError("command is required")
        if self.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be positive")
        if self.read_chunk_size < 1:
            raise ValueError("read_chunk_size must be at least 1")
        self.args = [str(arg) for arg in self.args]

    @property
    def argv(self) -> list[str]:
        """Full command line."""
        return [self.command, *self.args]
