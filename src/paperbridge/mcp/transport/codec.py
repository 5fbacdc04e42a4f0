"""Newline-delimited JSON framing for the stdio transport.

Outbound messages become one ``\\n``-terminated line each. Inbound bytes are
buffered until a newline arrives, so messages split across reads decode the
same as if they had arrived whole. Splitting on the newline byte is safe for
UTF-8 because ``0x0A`` never occurs inside a multi-byte sequence.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from paperbridge.lib import oj
from paperbridge.mcp.protocol.errors import ProtocolError

logger = logging.getLogger(__name__)

NEWLINE = b"\n"

ProtocolErrorCallback = Callable[[ProtocolError], None]


def encode_message(message: dict[str, Any]) -> bytes:
    """
    Encode a message as a single line.

    Args:
        message: JSON-RPC message dict.

    Returns:
        UTF-8 JSON followed by exactly one newline.
    """
    return oj.dumps(message) + NEWLINE


def _parse_line(line: bytes) -> dict[str, Any]:
    try:
        message = oj.loads(line)
    except oj.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON: {e}", line=line) from e
    if not isinstance(message, dict):
        raise ProtocolError(
            f"Expected a JSON object, got {type(message).__name__}",
            line=line,
        )
    return message


def _decode_lines(
    data: bytes | bytearray,
    search_from: int,
    on_error: ProtocolErrorCallback | None,
) -> tuple[list[dict[str, Any]], int]:
    """Decode complete lines in ``data``; return them and the bytes consumed.

    ``data[:search_from]`` must hold no newline.
    """
    messages: list[dict[str, Any]] = []
    start = 0
    while True:
        end = data.find(NEWLINE, search_from)
        if end == -1:
            break
        line = bytes(data[start:end]).strip()
        start = search_from = end + 1
        if not line:
            continue
        try:
            messages.append(_parse_line(line))
        except ProtocolError as e:
            preview = line[:200].decode("utf-8", errors="replace")
            logger.warning(f"Skipping undecodable line ({e}): {preview!r}")
            if on_error is not None:
                on_error(e)
    return messages, start


def decode(
    chunk: bytes | str,
    buffer: bytes = b"",
    on_error: ProtocolErrorCallback | None = None,
) -> tuple[list[dict[str, Any]], bytes]:
    """
    Decode every complete line in ``buffer + chunk``.

    Blank lines are skipped. Lines that are not a JSON object are logged,
    reported to ``on_error`` and skipped. Only ``chunk`` is searched for
    newlines, so ``buffer`` must be the residual of a previous call.

    Args:
        chunk: Newly read data.
        buffer: Residual bytes from the previous call.
        on_error: Optional callback for undecodable lines.

    Returns:
        Tuple of (decoded messages, residual bytes after the last newline).
    """
    if isinstance(chunk, str):
        chunk = chunk.encode("utf-8")
    if NEWLINE not in chunk:
        return [], buffer + chunk
    data = buffer + chunk
    messages, consumed = _decode_lines(data, len(buffer), on_error)
    return messages, data[consumed:]


class LineDecoder:
    """
    Stateful decoder that keeps the partial trailing line between reads.

    The partial line grows in place and only new bytes are searched, so a
    long line arriving in many chunks costs linear time.
    """

    def __init__(self, on_error: ProtocolErrorCallback | None = None):
        self._buffer = bytearray()
        self._on_error = on_error

    @property
    def pending_bytes(self) -> int:
        """Bytes buffered without a terminating newline yet."""
        return len(self._buffer)

    def feed(self, chunk: bytes | str) -> list[dict[str, Any]]:
        """Add a chunk and return the messages it completes."""
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        search_from = len(self._buffer)
        self._buffer += chunk
        if NEWLINE not in chunk:
            return []
        messages, consumed = _decode_lines(self._buffer, search_from, self._on_error)
        del self._buffer[:consumed]
        return messages

    def reset(self) -> bytes:
        """Drop and return any buffered partial line."""
        leftover = bytes(self._buffer)
        self._buffer.clear()
        return leftover
