"""
Tests for the navvra.sync.bus module.
"""

from unittest.mock import AsyncMock

import pytest

from navvra.models import PageSnapshot
from navvra.sync.bus import MessageBus
from navvra.sync.messages import (
    RequestScanMessage,
    ScanResultMessage,
    ScrollToMessage,
)


class TestMessageBus:
    """Tests for typed delivery across the context boundary."""

    @pytest.mark.asyncio
    async def test_delivers_to_type_subscribers(self):
        bus = MessageBus()
        scan_listener = AsyncMock()
        scroll_listener = AsyncMock()
        bus.subscribe("request-scan", scan_listener)
        bus.subscribe("scroll-to", scroll_listener)

        await bus.post(RequestScanMessage())

        scan_listener.assert_awaited_once()
        scroll_listener.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_listeners_get_independent_copies(self):
        bus = MessageBus()
        received = []

        async def first(message):
            message.payload.buttons.append({"id": "tampered"})
            received.append(message)

        async def second(message):
            received.append(message)

        bus.subscribe("scan-result", first)
        bus.subscribe("scan-result", second)
        original = ScanResultMessage(payload=PageSnapshot(generation=1))

        await bus.post(original)

        assert received[0] is not original
        assert received[1].payload.buttons == []
        assert original.payload.buttons == []

    @pytest.mark.asyncio
    async def test_unknown_and_malformed_envelopes_dropped(self):
        bus = MessageBus()
        listener = AsyncMock()
        bus.subscribe("scroll-to", listener)

        await bus.post_raw({"type": "mystery"})
        await bus.post_raw({"type": "scroll-to", "payload": {}})
        await bus.post_raw({"type": "scroll-to", "payload": {"element_id": object()}})

        listener.assert_not_awaited()
        assert bus.get_message_count() == 2

    @pytest.mark.asyncio
    async def test_failing_listener_removed_after_limit(self):
        bus = MessageBus(max_listener_errors=2)
        failing = AsyncMock(side_effect=RuntimeError("broken surface"))
        healthy = AsyncMock()
        bus.subscribe("request-scan", failing)
        bus.subscribe("request-scan", healthy)

        for _ in range(3):
            await bus.post(RequestScanMessage())

        assert failing.await_count == 2
        assert healthy.await_count == 3
        assert failing not in bus.listeners["request-scan"]

    @pytest.mark.asyncio
    async def test_history_and_counts(self):
        bus = MessageBus()

        await bus.post(RequestScanMessage())
        await bus.post(ScrollToMessage.for_element("nv-1-1"))
        await bus.post(RequestScanMessage())

        assert bus.get_message_count() == 3
        assert bus.get_message_count("request-scan") == 2
        assert bus.history[1] == {"type": "scroll-to", "payload": {"element_id": "nv-1-1", "focus": False}}

    @pytest.mark.asyncio
    async def test_history_keeps_only_latest_envelopes(self):
        bus = MessageBus(history_limit=3)

        for index in range(5):
            await bus.post(ScrollToMessage.for_element(f"nv-1-{index}"))

        assert bus.get_message_count() == 3
        assert [m["payload"]["element_id"] for m in bus.history] == ["nv-1-2", "nv-1-3", "nv-1-4"]

    def test_subscribe_is_idempotent(self):
        bus = MessageBus()
        listener = AsyncMock()

        bus.subscribe("request-scan", listener)
        bus.subscribe("request-scan", listener)

        assert bus.listeners["request-scan"] == [listener]

    def test_unsubscribe_and_clear(self):
        bus = MessageBus()
        listener = AsyncMock()
        bus.subscribe("request-scan", listener)
        bus.subscribe("scroll-to", listener)

        bus.unsubscribe("request-scan", listener)
        assert bus.listeners["request-scan"] == []

        bus.clear_listeners()
        assert dict(bus.listeners) == {}
