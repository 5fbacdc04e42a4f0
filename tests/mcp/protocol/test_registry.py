"""Tests for request id allocation and response correlation."""

import asyncio
import logging
import random

import pytest

from paperbridge.mcp.protocol import RequestRegistry, RpcError
from paperbridge.mcp.transport import ProcessExitedError


class TestIds:
    """Tests for id allocation."""

    def test_ids_start_at_one_and_increase(self):
        registry = RequestRegistry()
        assert [registry.next_id() for _ in range(4)] == [1, 2, 3, 4]

    def test_ids_not_reused_after_completion(self):
        registry = RequestRegistry()
        first = registry.next_id()
        registry.discard(first)
        assert registry.next_id() == first + 1

    @pytest.mark.asyncio
    async def test_register_duplicate_rejected(self):
        registry = RequestRegistry()
        registry.register(1, "ping")
        with pytest.raises(ValueError, match="already pending"):
            registry.register(1, "ping")


class TestDispatch:
    """Tests for routing responses to pending futures."""

    @pytest.mark.asyncio
    async def test_result_resolves_future(self):
        registry = RequestRegistry()
        future = registry.register(1, "tools/call")

        assert registry.dispatch({"jsonrpc": "2.0", "id": 1, "result": {"ok": True}})
        assert await future == {"ok": True}
        assert 1 not in registry
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_error_rejects_future(self):
        registry = RequestRegistry()
        future = registry.register(1, "tools/call")

        registry.dispatch({"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "bad"}})

        with pytest.raises(RpcError) as exc_info:
            await future
        assert exc_info.value.code == -32602
        assert exc_info.value.message == "bad"

    @pytest.mark.asyncio
    async def test_malformed_error_object_still_rejects(self):
        registry = RequestRegistry()
        future = registry.register(1, "tools/call")

        registry.dispatch({"jsonrpc": "2.0", "id": 1, "error": "something broke"})

        with pytest.raises(RpcError, match="something broke"):
            await future

    @pytest.mark.asyncio
    async def test_unknown_id_dropped_with_warning(self, caplog):
        registry = RequestRegistry()
        future = registry.register(1, "ping")

        with caplog.at_level(logging.WARNING):
            assert not registry.dispatch({"jsonrpc": "2.0", "id": 42, "result": {}})

        assert "No pending request for id: 42" in caplog.text
        assert not future.done()

    @pytest.mark.asyncio
    async def test_duplicate_response_dropped(self):
        registry = RequestRegistry()
        future = registry.register(1, "ping")

        assert registry.dispatch({"jsonrpc": "2.0", "id": 1, "result": "first"})
        assert not registry.dispatch({"jsonrpc": "2.0", "id": 1, "result": "second"})
        assert await future == "first"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", [True, None, [1], {"id": 1}, 1.5])
    async def test_unusable_ids_dropped(self, bad_id):
        registry = RequestRegistry()
        registry.register(1, "ping")
        assert not registry.dispatch({"jsonrpc": "2.0", "id": bad_id, "result": {}})
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_any_permutation_resolves_by_id(self):
        registry = RequestRegistry()
        ids = [registry.next_id() for _ in range(20)]
        futures = {request_id: registry.register(request_id, "tools/call") for request_id in ids}

        order = list(ids)
        random.Random(7).shuffle(order)
        for request_id in order:
            registry.dispatch({"jsonrpc": "2.0", "id": request_id, "result": request_id * 10})

        for request_id, future in futures.items():
            assert await future == request_id * 10


class TestTermination:
    """Tests for discard and fail_all."""

    @pytest.mark.asyncio
    async def test_fail_all_rejects_everything_with_same_error(self):
        registry = RequestRegistry()
        futures = [registry.register(registry.next_id(), "tools/call") for _ in range(3)]
        error = ProcessExitedError(1)

        assert registry.fail_all(error) == 3
        assert len(registry) == 0

        for future in futures:
            with pytest.raises(ProcessExitedError) as exc_info:
                await future
            assert exc_info.value is error

    def test_fail_all_when_empty(self):
        registry = RequestRegistry()
        assert registry.fail_all(ProcessExitedError(0)) == 0

    @pytest.mark.asyncio
    async def test_discard_forgets_request(self, caplog):
        registry = RequestRegistry()
        registry.register(1, "tools/call")
        registry.discard(1)

        assert 1 not in registry
        with caplog.at_level(logging.WARNING):
            assert not registry.dispatch({"jsonrpc": "2.0", "id": 1, "result": {}})

    @pytest.mark.asyncio
    async def test_discard_unknown_id_is_noop(self):
        registry = RequestRegistry()
        registry.discard(5)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_pending_ids_in_issue_order(self):
        registry = RequestRegistry()
        for request_id in (3, 1, 2):
            registry.register(request_id, "ping")
        assert registry.pending_ids() == [3, 1, 2]
        registry.fail_all(ProcessExitedError(0))
        await asyncio.sleep(0)
