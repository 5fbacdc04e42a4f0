"""Tests for the stdio transport against a real child process."""

import asyncio
import logging

import pytest

from paperbridge.mcp.transport import (
    StdioTransport,
    TransportConfig,
    TransportEventType,
    SpawnError,
    ProcessDeadError,
)


class TestTransportConfig:
    """Tests for TransportConfig validation."""

    def test_argv(self):
        config = TransportConfig(command="paper-mcp", args=["--port", 3000])
        assert config.argv == ["paper-mcp", "--port", "3000"]

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError, match="command is required"):
            TransportConfig(command="")

    def test_invalid_shutdown_timeout_rejected(self):
        with pytest.raises(ValueError, match="shutdown_timeout must be positive"):
            TransportConfig(command="x", shutdown_timeout=0)

    def test_invalid_chunk_size_rejected(self):
        with pytest.raises(ValueError, match="read_chunk_size"):
            TransportConfig(command="x", read_chunk_size=0)


class TestStdioTransport:
    """Tests for StdioTransport."""

    @pytest.fixture
    def make_transport(self, python_executable, fake_server_argv):
        def make(*flags, **kwargs):
            config = TransportConfig(
                command=python_executable,
                args=fake_server_argv(*flags),
                shutdown_timeout=2.0,
            )
            return StdioTransport(config, **kwargs)

        return make

    @pytest.mark.asyncio
    async def test_spawn_failure(self):
        transport = StdioTransport(TransportConfig(command="/nonexistent/paper-mcp-server"))
        events = []
        transport.on_event(events.append)

        with pytest.raises(SpawnError) as exc_info:
            await transport.start()

        assert isinstance(exc_info.value.cause, OSError)
        assert not transport.is_alive()
        assert transport.pid is None
        assert [e.type for e in events] == [TransportEventType.SPAWNING, TransportEventType.ERROR]

    @pytest.mark.asyncio
    async def test_request_response_round_trip(self, make_transport):
        transport = make_transport()
        await transport.start()
        assert transport.is_alive()
        assert transport.pid is not None

        await transport.send({
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {"protocolVersion": "2025-06-18", "capabilities": {}},
        })
        messages = transport.receive()
        response = await asyncio.wait_for(messages.__anext__(), 5)
        await messages.aclose()

        assert response["id"] == 1
        assert response["result"]["serverInfo"]["name"] == "fake-stdio"
        await transport.close()
        assert not transport.is_alive()

    @pytest.mark.asyncio
    async def test_byte_by_byte_output(self, make_transport):
        transport = make_transport("--chunked")
        await transport.start()
        await transport.send({
            "jsonrpc": "2.0",
            "id": 5,
            "method": "tools/call",
            "params": {"name": "unicode", "arguments": {}},
        })
        messages = transport.receive()
        response = await asyncio.wait_for(messages.__anext__(), 5)
        await messages.aclose()

        assert response["id"] == 5
        assert "héllo ✓ 日本" in response["result"]["content"][0]["text"]
        await transport.close()

    @pytest.mark.asyncio
    async def test_stderr_goes_to_logging(self, make_transport, caplog):
        seen = asyncio.Event()
        lines = []

        def on_stderr(line):
            lines.append(line)
            seen.set()

        transport = make_transport("--stderr", "server warming up", stderr_callback=on_stderr)
        with caplog.at_level(logging.INFO, logger="paperbridge.mcp.transport.stderr"):
            await transport.start()
            await asyncio.wait_for(seen.wait(), 5)

        assert lines == ["server warming up"]
        assert any(
            r.name == "paperbridge.mcp.transport.stderr" and r.getMessage() == "server warming up"
            for r in caplog.records
        )
        await transport.close()

    @pytest.mark.asyncio
    async def test_eof_records_exit_code(self, make_transport):
        transport = make_transport("--exit-on-start", "3")
        events = []
        transport.on_event(events.append)
        await transport.start()

        received = [m async for m in transport.receive()]

        assert received == []
        assert transport.returncode == 3
        assert not transport.is_alive()
        assert events[-1].type == TransportEventType.EXITED
        assert events[-1].data == {"returncode": 3}
        await transport.close()

    @pytest.mark.asyncio
    async def test_write_after_exit_fails(self, make_transport):
        transport = make_transport("--exit-on-start", "0")
        await transport.start()
        async for _ in transport.receive():
            pass

        with pytest.raises(ProcessDeadError):
            await transport.send({"jsonrpc": "2.0", "id": 1, "method": "ping"})
        await transport.close()

    @pytest.mark.asyncio
    async def test_close_stops_process(self, make_transport):
        transport = make_transport()
        await transport.start()

        await transport.close()

        assert not transport.is_alive()
        assert transport.returncode is not None
        with pytest.raises(ProcessDeadError):
            await transport.send({"jsonrpc": "2.0", "id": 1, "method": "ping"})

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, make_transport):
        transport = make_transport()
        await transport.start()
        await transport.close()
        await transport.close()

    @pytest.mark.asyncio
    async def test_close_before_start(self, make_transport):
        transport = make_transport()
        await transport.close()
        assert transport.returncode is None

    @pytest.mark.asyncio
    async def test_stderr_drain_without_process(self, make_transport):
        transport = make_transport()
        await transport._drain_stderr()
        assert transport.returncode is None

    @pytest.mark.asyncio
    async def test_env_passed_to_child(self, python_executable):
        config = TransportConfig(
            command=python_executable,
            args=["-c", "import os, sys; sys.stderr.write(os.environ['PAPER_TOKEN'] + '\\n')"],
            env={"PAPER_TOKEN": "abc123"},
        )
        lines = []
        seen = asyncio.Event()

        def on_stderr(line):
            lines.append(line)
            seen.set()

        transport = StdioTransport(config, stderr_callback=on_stderr)
        await transport.start()
        await asyncio.wait_for(seen.wait(), 5)
        assert lines == ["abc123"]
        await transport.close()
