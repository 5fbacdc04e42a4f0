"""Pytest configuration and fixtures."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import pytest

from paperbridge.mcp.transport import Transport, TransportConfig, ProcessDeadError

# Enable async tests without marking each one
pytest_plugins = ["pytest_asyncio"]

FAKE_SERVER = Path(__file__).parent / "fake_server.py"

INIT_RESULT = {
    "protocolVersion": "2025-06-18",
    "capabilities": {"tools": {"listChanged": True}, "logging": {}},
    "serverInfo": {"name": "fake", "version": "1.0"},
}


class FakeTransport(Transport):
    """
    In-memory server for session tests.

    Requests are answered synchronously from ``tools`` unless their method
    is in ``hold_methods``; held requests wait for respond().
    """

    def __init__(self):
        super().__init__(TransportConfig(command="fake-server"))
        self.sent: list[dict] = []
        self.tools: dict[str, Any] = {}
        self.hold_methods: set[str] = set()
        self.init_result: dict = dict(INIT_RESULT)
        self.init_error: dict | None = None
        self.start_error: Exception | None = None
        self.start_count = 0
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._alive = False
        self._returncode: int | None = None

    @property
    def returncode(self) -> int | None:
        return self._returncode

    def is_alive(self) -> bool:
        return self._alive

    async def start(self) -> None:
        self.start_count += 1
        if self.start_error is not None:
            raise self.start_error
        self._alive = True

    async def send(self, message: dict) -> None:
        if not self._alive:
            raise ProcessDeadError("fake server is not running")
        self.sent.append(message)
        for reply in self._reply(message):
            self._inbox.put_nowait(reply)

    async def receive(self):
        while True:
            message = await self._inbox.get()
            if message is None:
                return
            yield message

    async def close(self) -> None:
        self.closed = True
        if self._alive:
            self.exit(0)

    def _reply(self, message: dict) -> list[dict]:
        method = message.get("method")
        request_id = message.get("id")
        if method is None or request_id is None or method in self.hold_methods:
            return []
        if method == "initialize":
            if self.init_error is not None:
                return [{"jsonrpc": "2.0", "id": request_id, "error": self.init_error}]
            return [{"jsonrpc": "2.0", "id": request_id, "result": self.init_result}]
        if method == "ping":
            return [{"jsonrpc": "2.0", "id": request_id, "result": {}}]
        if method == "tools/call":
            params = message.get("params") or {}
            tool = self.tools.get(params.get("name"))
            if tool is None:
                text = json.dumps({"tool": params.get("name"), "arguments": params.get("arguments")})
                result = {"content": [{"type": "text", "text": text}]}
            elif callable(tool):
                result = tool(params.get("arguments"))
            else:
                result = tool
            return [{"jsonrpc": "2.0", "id": request_id, "result": result}]
        return [
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": -32601, "message": f"Method not found: {method}"},
            }
        ]

    def inject(self, message: dict) -> None:
        """Deliver a message as if the server had written it."""
        self._inbox.put_nowait(message)

    def respond(self, request_id: Any, result: Any = None, error: dict | None = None) -> None:
        if error is not None:
            self.inject({"jsonrpc": "2.0", "id": request_id, "error": error})
        else:
            self.inject({"jsonrpc": "2.0", "id": request_id, "result": result})

    def exit(self, returncode: int = 0) -> None:
        """Simulate the server process exiting."""
        self._alive = False
        self._returncode = returncode
        self._inbox.put_nowait(None)

    def sent_methods(self) -> list[str | None]:
        return [m.get("method") for m in self.sent]

    def requests(self, method: str) -> list[dict]:
        return [m for m in self.sent if m.get("method") == method and "id" in m]


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() holds."""

    async def _poll():
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def fake_transport():
    """An in-memory transport with a well-behaved server behind it."""
    return FakeTransport()


@pytest.fixture
def waiter():
    """The wait_until() helper."""
    return wait_until


@pytest.fixture
def fake_server_argv():
    """Build argv for the stdio fake server script."""

    def build(*flags: str) -> list[str]:
        return [str(FAKE_SERVER), *flags]

    return build


@pytest.fixture
def python_executable():
    return sys.executable
