"""MCP session: one server process, one handshake, many concurrent requests."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from paperbridge.mcp.capabilities.negotiation import (
    PROTOCOL_VERSION,
    CapabilityNegotiator,
    ClientInfo,
    NegotiationResult,
)
from paperbridge.mcp.protocol.errors import RpcError
from paperbridge.mcp.protocol.messages import (
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCNotification,
    REQUEST,
    RESPONSE,
    NOTIFICATION,
    message_kind,
)
from paperbridge.mcp.protocol.registry import RequestRegistry
from paperbridge.mcp.protocol.state import SessionState, SessionStateMachine
from paperbridge.mcp.transport.base import (
    Transport,
    TransportError,
    ProcessDeadError,
    ProcessExitedError,
    SessionClosedError,
    SessionError,
)

logger = logging.getLogger(__name__)

# Type aliases for handlers
RequestHandler = Callable[[dict[str, Any] | None], Awaitable[Any]]
NotificationHandler = Callable[[dict[str, Any] | None], Awaitable[None]]


class Session:
    """
    A live conversation with one MCP server.

    The session starts its transport and performs the initialize handshake
    lazily, on the first ensure_initialized() call. Concurrent first callers
    share a single handshake. Requests are correlated by id, so responses may
    arrive in any order. When the server exits, or close() is called, every
    pending request fails with the same TransportError and the session
    refuses further work.

    Cancellation of an in-flight request is not sent to the server: a caller
    that stops waiting only drops its own pending entry.
    """

    def __init__(
        self,
        transport: Transport,
        protocol_version: str = PROTOCOL_VERSION,
        capabilities: dict[str, Any] | None = None,
        client_info: ClientInfo | None = None,
        request_timeout: float | None = None,
    ):
        """
        Create a session over a transport that has not been started yet.

        Args:
            transport: Transport to the server.
            protocol_version: Version offered in initialize.
            capabilities: Client capabilities, sent unchanged.
            client_info: Client identity for initialize.
            request_timeout: Default per-request timeout; None waits forever.
        """
        self.transport = transport
        self.request_timeout = request_timeout

        self._negotiator = CapabilityNegotiator(
            self,
            protocol_version=protocol_version,
            client_capabilities=capabilities,
            client_info=client_info,
        )
        self._state = SessionStateMachine()
        self._registry = RequestRegistry()
        self._request_handlers: dict[str, RequestHandler] = {}
        self._notification_handlers: dict[str, NotificationHandler] = {}
        self._handshake_task: asyncio.Task | None = None
        self._receive_task: asyncio.Task | None = None
        self._negotiation: NegotiationResult | None = None
        self._close_reason: TransportError | None = None

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state.state

    @property
    def is_ready(self) -> bool:
        """Check if the handshake has completed and the session is live."""
        return self._state.is_ready

    @property
    def is_closed(self) -> bool:
        """Check if the session has ended."""
        return self._state.is_closed

    @property
    def close_reason(self) -> TransportError | None:
        """Why the session ended, once it has."""
        return self._close_reason

    @property
    def negotiation(self) -> NegotiationResult | None:
        """Handshake result, available once READY."""
        return self._negotiation

    @property
    def pending_count(self) -> int:
        """Number of requests awaiting a response."""
        return len(self._registry)

    def on_state_change(
        self,
        callback: Callable[[SessionState, SessionState], None],
    ) -> None:
        """Register callback for state changes."""
        self._state.on_transition(callback)

    def on_request(self, method: str, handler: RequestHandler) -> None:
        """
        Register handler for server-initiated requests.

        Handlers run on the receive loop and must not wait on other
        requests to the same server.

        Args:
            method: The method name to handle.
            handler: Async function receiving params, returning result.
        """
        self._request_handlers[method] = handler

    def on_notification(self, method: str, handler: NotificationHandler) -> None:
        """
        Register handler for server-initiated notifications.

        Args:
            method: The method name to handle.
            handler: Async function receiving params.
        """
        self._notification_handlers[method] = handler

    async def ensure_initialized(self) -> NegotiationResult:
        """
        Start the server and complete the handshake, exactly once.

        Returns:
            The negotiation result.

        Raises:
            ProcessDeadError: If the session has already ended.
            TransportError: If the server cannot be started or exits.
            RpcError: If the server rejects initialize.
        """
        if self._state.is_ready and self._negotiation is not None:
            return self._negotiation
        if self._state.is_closed:
            raise self._dead_error()

        if self._handshake_task is None:
            self._handshake_task = asyncio.create_task(
                self._start_and_negotiate(),
                name="mcp-handshake",
            )
            # Waiters may all be cancelled; keep the outcome from being reported as lost.
            self._handshake_task.add_done_callback(_consume_task_result)

        # Shielded so that one cancelled waiter does not abort the shared handshake.
        return await asyncio.shield(self._handshake_task)

    async def _start_and_negotiate(self) -> NegotiationResult:
        # close() may have run before this task got its first turn.
        if self._state.is_closed:
            raise self._dead_error()
        self._state.transition(SessionState.CONNECTING)
        try:
            await self.transport.start()
        except TransportError as e:
            logger.error(f"Failed to start server: {e}")
            await self._shutdown(e)
            raise

        if self._state.is_closed:
            await self.transport.close()
            raise self._dead_error()

        self._state.transition(SessionState.INITIALIZING)
        self._receive_task = asyncio.create_task(
            self._receive_loop(),
            name="mcp-receive-loop",
        )

        try:
            result = await self._negotiator.negotiate()
        except TransportError as e:
            await self._shutdown(e)
            raise
        except Exception as e:
            logger.error(f"Handshake failed: {e}")
            await self._shutdown(TransportError(f"Handshake failed: {e}", cause=e))
            raise

        if self._state.is_closed:
            raise self._dead_error()

        self._negotiation = result
        self._state.transition(SessionState.READY)
        return result

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Send a request and wait for the response.

        Args:
            method: The RPC method name.
            params: Optional method parameters.
            timeout: Request timeout (defaults to self.request_timeout).

        Returns:
            The result from the response.

        Raises:
            RpcError: On error response or timeout.
            TransportError: If the server is gone or goes away while waiting.
        """
        self._check_connected()

        request_id = self._registry.next_id()
        future = self._registry.register(request_id, method)
        request = JSONRPCRequest(id=request_id, method=method, params=params)
        effective_timeout = timeout if timeout is not None else self.request_timeout

        logger.debug(f"-> {request}")
        try:
            await self.transport.send(request.to_dict())
            if effective_timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout=effective_timeout)
        except asyncio.TimeoutError:
            raise RpcError.timeout(effective_timeout) from None
        finally:
            self._registry.discard(request_id)

    async def notify(
        self,
        method: str,
        params: dict[str, Any] | None = None,
    ) -> None:
        """
        Send a notification (fire-and-forget).

        Args:
            method: The notification method name.
            params: Optional method parameters.
        """
        self._check_connected()

        notification = JSONRPCNotification(method=method, params=params)
        logger.debug(f"-> {notification}")
        await self.transport.send(notification.to_dict())

    async def close(self) -> None:
        """
        End the session.

        Follows the same path as a server exit: pending requests fail with
        SessionClosedError, then the server process is stopped.
        """
        await self._shutdown(SessionClosedError("Session closed by client"))

        task = self._handshake_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)

    def _check_connected(self) -> None:
        if self._state.is_closed:
            raise self._dead_error()
        if not self._state.is_connected:
            raise SessionError("Session not started, call ensure_initialized() first")

    def _dead_error(self) -> ProcessDeadError:
        reason = self._close_reason
        if reason is None:
            return ProcessDeadError("Session is closed")
        return ProcessDeadError(f"Session is closed: {reason}", cause=reason)

    def _terminate(self, reason: TransportError) -> None:
        """Mark the session dead and fail everything still waiting."""
        if self._state.is_closed:
            return
        self._close_reason = reason
        self._state.transition(SessionState.CLOSED)
        failed = self._registry.fail_all(reason)
        if failed:
            logger.warning(f"Failed {failed} pending requests: {reason}")

    async def _shutdown(self, reason: TransportError) -> None:
        self._terminate(reason)

        task = self._receive_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        await self.transport.close()

    async def _receive_loop(self) -> None:
        """Background task processing incoming messages."""
        try:
            async for message in self.transport.receive():
                await self._handle_message(message)
        except asyncio.CancelledError:
            raise
        except TransportError as e:
            reason = e
        except Exception as e:
            logger.error(f"Receive loop error: {e}")
            reason = TransportError(f"Receive loop failed: {e}", cause=e)
        else:
            reason = ProcessExitedError(self.transport.returncode)

        if not self._state.is_closed:
            logger.warning(f"Lost connection to server: {reason}")
        self._terminate(reason)

    async def _handle_message(self, message: dict) -> None:
        """Route one inbound message; never raises."""
        kind = message_kind(message)
        try:
            if kind == RESPONSE:
                self._registry.dispatch(message)
            elif kind == REQUEST:
                await self._handle_server_request(JSONRPCRequest.from_dict(message))
            elif kind == NOTIFICATION:
                await self._handle_notification(message)
            else:
                logger.warning(f"Ignoring message of unknown shape: {message!r:.200}")
        except Exception as e:
            logger.exception(f"Error handling message: {e}")

    async def _handle_server_request(self, request: JSONRPCRequest) -> None:
        """Answer a server-initiated request; unknown methods get -32601."""
        response = await self._answer(request)
        try:
            await self.transport.send(response.to_dict())
        except TransportError as e:
            logger.warning(f"Could not answer server request {request}: {e}")

    async def _answer(self, request: JSONRPCRequest) -> JSONRPCResponse:
        handler = self._request_handlers.get(request.method)
        if handler is None:
            return JSONRPCResponse.failure(request.id, RpcError.method_not_found(request.method))
        try:
            return JSONRPCResponse.success(request.id, await handler(request.params))
        except RpcError as e:
            return JSONRPCResponse.failure(request.id, e)
        except Exception as e:
            logger.exception(f"Handler error for {request.method}")
            return JSONRPCResponse.failure(request.id, RpcError.internal_error(str(e)))

    async def _handle_notification(self, message: dict) -> None:
        """Handle notification from server."""
        notification = JSONRPCNotification.from_dict(message)
        handler = self._notification_handlers.get(notification.method)

        if handler is None:
            logger.debug(f"Unhandled notification: {notification.method}")
            return

        try:
            await handler(notification.params)
        except Exception as e:
            logger.exception(f"Notification handler error for {notification.method}: {e}")

    async def __aenter__(self) -> "Session":
        """Async context manager entry."""
        await self.ensure_initialized()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def _consume_task_result(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()
