"""Re-log ``notifications/message`` from the server on Python loggers."""

from __future__ import annotations

import logging as python_logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from paperbridge.mcp.protocol.session import Session

logger = python_logging.getLogger(__name__)

LOG_NOTIFICATION = "notifications/message"
SET_LEVEL_METHOD = "logging/setLevel"


class LogLevel(Enum):
    """Syslog severities used by MCP logging, least severe first."""

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid log level: {value!r}")

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @property
    def python_level(self) -> int:
        """Closest stdlib logging level."""
        return _PYTHON_LEVELS[self]

    def __lt__(self, other: "LogLevel") -> bool:
        return self.severity < other.severity


_SEVERITY = {level: rank for rank, level in enumerate(LogLevel)}

# NOTICE has no stdlib equivalent; ALERT and EMERGENCY collapse into CRITICAL
_PYTHON_LEVELS = {
    LogLevel.DEBUG: python_logging.DEBUG,
    LogLevel.INFO: python_logging.INFO,
    LogLevel.NOTICE: python_logging.INFO,
    LogLevel.WARNING: python_logging.WARNING,
    LogLevel.ERROR: python_logging.ERROR,
    LogLevel.CRITICAL: python_logging.CRITICAL,
    LogLevel.ALERT: python_logging.CRITICAL,
    LogLevel.EMERGENCY: python_logging.CRITICAL,
}


@dataclass
class LogMessage:
    """Params of one ``notifications/message``."""

    level: LogLevel
    logger: str | None = None
    data: Any = None

    @classmethod
    def from_dict(cls, params: dict[str, Any]) -> "LogMessage":
        """
        Raises:
            KeyError: If ``level`` is missing.
            ValueError: If ``level`` is not a known severity.
        """
        name = params.get("logger")
        return cls(
            level=LogLevel.from_string(params["level"]),
            logger=name if isinstance(name, str) and name else None,
            data=params.get("data"),
        )

    def text(self) -> str:
        if isinstance(self.data, str):
            return self.data
        if self.data is None:
            return "(no message)"
        return f"{self.data}"


@dataclass
class LoggingConfig:
    """Where and what to forward."""

    python_logger_prefix: str = "paperbridge.server"
    min_level: LogLevel | None = None


class LoggingHandler:
    """
    Forwards server log notifications.

    A message from server logger ``canvas`` at ``warning`` is emitted on
    ``paperbridge.server.canvas`` at WARNING. Messages without a logger name
    go to the prefix logger itself.
    """

    def __init__(self, config: LoggingConfig | None = None) -> None:
        self.config = config or LoggingConfig()
        self.message_count = 0

    def logger_for(self, message: LogMessage) -> python_logging.Logger:
        prefix = self.config.python_logger_prefix
        name = f"{prefix}.{message.logger}" if message.logger else prefix
        return python_logging.getLogger(name)

    async def handle_log_message(self, params: dict[str, Any] | None) -> None:
        if not params:
            logger.warning("Received log notification without params")
            return

        try:
            message = LogMessage.from_dict(params)
        except (KeyError, ValueError) as e:
            logger.warning(f"Invalid log notification: {e}")
            return

        self.message_count += 1
        minimum = self.config.min_level
        if minimum is not None and message.level < minimum:
            return

        self.logger_for(message).log(message.level.python_level, message.text())

    def register_handlers(self, session: "Session") -> None:
        session.on_notification(LOG_NOTIFICATION, self.handle_log_message)


async def set_server_log_level(session: "Session", level: LogLevel) -> None:
    """
    Ask the server to only send messages at ``level`` or above.

    Raises:
        RpcError: If the server does not support logging.
    """
    logger.info(f"Setting server log level to: {level.value}")
    await session.request(SET_LEVEL_METHOD, {"level": level.value})
