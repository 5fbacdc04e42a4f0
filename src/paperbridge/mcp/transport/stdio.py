"""Stdio transport: one child process spoken to over its stdin/stdout pipes."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import AsyncIterator, Callable

from paperbridge.mcp.transport.base import (
    Transport,
    SpawnError,
    ProcessDeadError,
)
from paperbridge.mcp.transport.codec import LineDecoder, encode_message
from paperbridge.mcp.transport.types import (
    TransportConfig,
    TransportEvent,
    TransportEventType,
)

logger = logging.getLogger(__name__)
stderr_logger = logging.getLogger("paperbridge.mcp.transport.stderr")


class StdioTransport(Transport):
    """
    Spawns the server process and frames JSON-RPC over its pipes.

    - stdin carries encoded requests and notifications
    - stdout is decoded line by line into messages
    - stderr is diagnostic output only and goes to logging
    - stdout EOF means the process is gone; receive() ends
    """

    def __init__(
        self,
        config: TransportConfig,
        stderr_callback: Callable[[str], None] | None = None,
    ):
        super().__init__(config)
        self._stderr_callback = stderr_callback
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task | None = None
        self._alive: bool = False
        self._returncode: int | None = None
        self._closing: bool = False

    @property
    def pid(self) -> int | None:
        """PID of the child process, if spawned."""
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        """Exit code once the process has been reaped."""
        return self._returncode

    def is_alive(self) -> bool:
        """Check if the child is running and accepting input."""
        return self._alive and not self._closing

    def _build_env(self) -> dict[str, str] | None:
        if not self.config.env:
            return None
        env = dict(os.environ)
        env.update({str(k): str(v) for k, v in self.config.env.items()})
        return env

    async def start(self) -> None:
        """
        Spawn the child process.

        Raises:
            SpawnError: If the command cannot be executed.
        """
        if self._process is not None:
            return

        argv = self.config.argv
        self._emit_event(
            TransportEvent(
                type=TransportEventType.SPAWNING,
                timestamp=time.time(),
                data={"argv": argv},
            )
        )
        logger.info(f"Starting server process: {' '.join(argv)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._build_env(),
                cwd=self.config.cwd,
            )
        except OSError as e:
            self._emit_event(
                TransportEvent(
                    type=TransportEventType.ERROR,
                    timestamp=time.time(),
                    error=e,
                )
            )
            raise SpawnError(f"Failed to start '{self.config.command}': {e}", cause=e)

        self._alive = True
        self._stderr_task = asyncio.create_task(
            self._drain_stderr(),
            name=f"stdio-stderr-{self._process.pid}",
        )
        self._emit_event(
            TransportEvent(
                type=TransportEventType.SPAWNED,
                timestamp=time.time(),
                data={"pid": self._process.pid},
            )
        )

    async def write(self, line: bytes) -> None:
        """
        Write one already-encoded line to the child's stdin.

        Raises:
            ProcessDeadError: If the process is not running.
        """
        if not self.is_alive() or self._process is None or self._process.stdin is None:
            raise ProcessDeadError("Server process is not running")

        try:
            self._process.stdin.write(line)
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._alive = False
            raise ProcessDeadError(f"Server process closed its input: {e}", cause=e)

    async def send(self, message: dict) -> None:
        """Encode and write a JSON-RPC message."""
        await self.write(encode_message(message))
        self._emit_event(
            TransportEvent(
                type=TransportEventType.MESSAGE_SENT,
                timestamp=time.time(),
                data={"method": message.get("method"), "id": message.get("id")},
            )
        )

    async def receive(self) -> AsyncIterator[dict]:
        """
        Yield decoded messages from stdout until EOF.

        When stdout closes the process is reaped and returncode is set.
        """
        if self._process is None or self._process.stdout is None:
            raise ProcessDeadError("Server process was never started")

        stdout = self._process.stdout
        decoder = LineDecoder()

        while True:
            chunk = await stdout.read(self.config.read_chunk_size)
            if not chunk:
                break
            for message in decoder.feed(chunk):
                self._emit_event(
                    TransportEvent(
                        type=TransportEventType.MESSAGE_RECEIVED,
                        timestamp=time.time(),
                        data={"id": message.get("id"), "method": message.get("method")},
                    )
                )
                yield message

        leftover = decoder.reset()
        if leftover.strip():
            logger.warning(
                f"Discarding {len(leftover)} bytes of unterminated output at EOF"
            )

        await self._reap()

    async def _reap(self) -> None:
        """Wait for the process after stdout closed and record its exit code."""
        self._alive = False
        if self._process is None:
            return
        if self._process.returncode is None:
            try:
                await asyncio.wait_for(
                    self._process.wait(), timeout=self.config.shutdown_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Server process {self._process.pid} closed stdout but kept running, killing it"
                )
                self._kill()
                await self._process.wait()
        self._returncode = self._process.returncode
        logger.info(f"Server process exited with code {self._returncode}")
        self._emit_event(
            TransportEvent(
                type=TransportEventType.EXITED,
                timestamp=time.time(),
                data={"returncode": self._returncode},
            )
        )

    async def _drain_stderr(self) -> None:
        """Forward stderr lines to logging until the pipe closes."""
        if self._process is None or self._process.stderr is None:
            return
        stderr = self._process.stderr
        while True:
            try:
                raw = await stderr.readline()
            except ValueError:
                # Line longer than the stream limit; take what is buffered.
                raw = await stderr.read(self.config.read_chunk_size)
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            stderr_logger.info(line)
            self._emit_event(
                TransportEvent(
                    type=TransportEventType.STDERR,
                    timestamp=time.time(),
                    data={"line": line},
                )
            )
            if self._stderr_callback is not None:
                try:
                    self._stderr_callback(line)
                except Exception:
                    logger.exception("stderr callback failed")

    def _kill(self) -> None:
        if self._process is None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    async def close(self) -> None:
        """
        Stop the child process.

        Closes stdin and waits for a clean exit, then escalates to
        terminate() and kill().
        """
        if self._process is None or self._closing:
            return

        self._closing = True
        process = self._process

        if process.returncode is None:
            if process.stdin is not None and not process.stdin.is_closing():
                process.stdin.close()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.config.shutdown_timeout)
            except asyncio.TimeoutError:
                logger.debug(f"Terminating server process {process.pid}")
                try:
                    process.terminate()
                except ProcessLookupError:
                    pass
                try:
                    await asyncio.wait_for(
                        process.wait(), timeout=self.config.shutdown_timeout
                    )
                except asyncio.TimeoutError:
                    logger.warning(f"Killing server process {process.pid}")
                    self._kill()
                    await process.wait()

        if self._stderr_task and not self._stderr_task.done():
            try:
                await asyncio.wait_for(self._stderr_task, timeout=self.config.shutdown_timeout)
            except asyncio.TimeoutError:
                self._stderr_task.cancel()
                try:
                    await self._stderr_task
                except asyncio.CancelledError:
                    pass
        self._stderr_task = None

        self._alive = False
        if self._returncode is None:
            self._returncode = process.returncode
