"""Abstract base transport and error types."""

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable

from paperbridge.mcp.transport.types import TransportConfig, TransportEvent

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Base exception for transport errors.

    Transport errors are fatal to the session that raised them.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class SpawnError(TransportError):
    """The child process could not be started."""

    pass


class ProcessExitedError(TransportError):
    """The child process exited while the session was live."""

    def __init__(
        self,
        returncode: int | None,
        message: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message or f"Server process exited with code {returncode}",
            cause=cause,
        )
        self.returncode = returncode


class ProcessDeadError(TransportError):
    """A write or call was attempted after the process stopped."""

    pass


class SessionClosedError(TransportError):
    """The session was closed by the caller."""

    pass


class SessionError(TransportError):
    """Session used before it was started."""

    pass


class Transport(ABC):
    """
    Abstract base class for MCP transports.

    A transport owns the connection to one server: it starts it, writes
    encoded messages to it, and yields decoded messages from it until the
    server goes away.
    """

    def __init__(self, config: TransportConfig):
        self.config = config
        self._event_handlers: list[Callable[[TransportEvent], None]] = []

    def on_event(self, handler: Callable[[TransportEvent], None]) -> None:
        """
        Register an event handler for transport events.

        Args:
            handler: Callback invoked when transport events occur.
        """
        self._event_handlers.append(handler)

    def _emit_event(self, event: TransportEvent) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Transport event handler failed for {event.type.name}")

    @abstractmethod
    async def start(self) -> None:
        """
        Start the server.

        Raises:
            SpawnError: If the server cannot be started.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Stop the server and release all resources.

        This method should be safe to call multiple times.
        """
        pass

    @abstractmethod
    async def send(self, message: dict) -> None:
        """
        Send a JSON-RPC message to the server.

        Args:
            message: JSON-RPC message (request, notification, or response).

        Raises:
            ProcessDeadError: If the server is no longer running.
        """
        pass

    @abstractmethod
    def receive(self) -> AsyncIterator[dict]:
        """
        Async iterator yielding JSON-RPC messages from the server.

        The iterator ends when the server stops producing output.

        Yields:
            JSON-RPC message dicts.
        """
        pass

    @abstractmethod
    def is_alive(self) -> bool:
        """
        Check if the server is running.

        Returns:
            True if messages can still be sent.
        """
        pass

    @property
    @abstractmethod
    def returncode(self) -> int | None:
        """
        Exit code of the server once it has stopped.

        Returns:
            Exit code, or None while running or before start.
        """
        pass

    async def __aenter__(self) -> "Transport":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
