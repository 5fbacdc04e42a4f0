"""Request id allocation and response correlation."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from paperbridge.mcp.protocol.messages import JSONRPCResponse

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """An in-flight request awaiting its response."""

    id: int
    method: str
    future: asyncio.Future[Any]
    issued_at: float = field(default_factory=time.monotonic)


class RequestRegistry:
    """
    Issues request ids and routes responses back to their callers.

    Ids start at 1 and are never reused within a session, so a late
    response can only ever match the request it was addressed to, or
    nothing. Correlation is purely by id; responses may arrive in any order.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._pending: dict[int, PendingRequest] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def pending_ids(self) -> list[int]:
        """Ids currently awaiting a response, in issue order."""
        return list(self._pending)

    def next_id(self) -> int:
        """Allocate a fresh request id."""
        return next(self._counter)

    def register(self, request_id: int, method: str = "") -> asyncio.Future[Any]:
        """
        Record a pending request.

        Args:
            request_id: Id from next_id().
            method: RPC method, kept for diagnostics.

        Returns:
            Future resolved with the result or failed with the error.

        Raises:
            ValueError: If the id is already pending.
        """
        if request_id in self._pending:
            raise ValueError(f"Request id {request_id} is already pending")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = PendingRequest(
            id=request_id,
            method=method,
            future=future,
        )
        return future

    def dispatch(self, message: dict[str, Any]) -> bool:
        """
        Complete the pending request a response is addressed to.

        Unknown, duplicate and late responses are logged and dropped.

        Returns:
            True if a pending request was completed.
        """
        request_id = message.get("id")
        # bool is an int subclass; true/false never matches an allocated id
        if (
            not isinstance(request_id, (int, str))
            or isinstance(request_id, bool)
            or request_id not in self._pending
        ):
            logger.warning(f"No pending request for id: {request_id!r}, dropping response")
            return False

        pending = self._pending.pop(request_id)
        if pending.future.done():
            return False

        response = JSONRPCResponse.from_dict(message)
        elapsed = time.monotonic() - pending.issued_at
        if response.error is not None:
            logger.debug(
                f"Request {request_id} ({pending.method}) failed after {elapsed:.3f}s: "
                f"{response.error.message}"
            )
            pending.future.set_exception(response.error)
        else:
            logger.debug(f"Request {request_id} ({pending.method}) completed in {elapsed:.3f}s")
            pending.future.set_result(response.result)
        return True

    def discard(self, request_id: int) -> None:
        """Forget a pending request without completing it."""
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return
        if pending.future.done() and not pending.future.cancelled():
            # Mark any stored exception as retrieved.
            pending.future.exception()

    def fail_all(self, error: BaseException) -> int:
        """
        Fail every pending request with the same terminal error.

        Returns:
            Number of requests failed.
        """
        if not self._pending:
            return 0
        pending, self._pending = self._pending, {}
        failed = 0
        for entry in pending.values():
            if not entry.future.done():
                entry.future.set_exception(error)
                failed += 1
        logger.debug(f"Failed {failed} pending requests: {error}")
        return failed
