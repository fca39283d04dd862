"""
Tests for the navvra.sync.presentation module.

This module tests:
- ToolbarView construction from snapshots
- The presentation state machine
- End-to-end flows between presentation contexts and a document context
"""

import pytest

from navvra.config import NavvraConfig, SyncConfig
from navvra.models import DisplayMode, PageSnapshot
from navvra.sync.bus import MessageBus
from navvra.sync.context import DocumentContext
from navvra.sync.messages import ScanResultMessage
from navvra.sync.presentation import (
    NO_ACTIONS,
    NO_HEADINGS,
    SCAN_FAILED_STATUS,
    ContextState,
    OverlayContext,
    ToolbarContext,
    ToolbarView,
    action_icon,
)


def _config():
    return NavvraConfig(sync=SyncConfig(rescan_debounce_ms=5, mutation_debounce_ms=5))


# =============================================================================
# ToolbarView
# =============================================================================

class TestToolbarView:

    def test_navigation_prefers_content_headings(self, snapshot_descriptor):
        snapshot = PageSnapshot(headings=[
            snapshot_descriptor("h1", "About", "heading", category="navigation"),
            snapshot_descriptor("h2", "Overview", "heading", category="content", confidence=0.85),
            snapshot_descriptor("h3", "Details", "heading", category="content", confidence=0.95),
        ])

        view = ToolbarView.from_snapshot(snapshot)

        assert [item.element_id for item in view.navigation] == ["h2", "h3"]
        assert view.navigation[0].display == "📍 Overview"
        assert view.navigation[1].display == "📍 Details ⭐"

    def test_navigation_falls_back_to_any_headings(self, snapshot_descriptor):
        headings = [snapshot_descriptor(f"h{i}", f"Menu {i}", "heading", category="navigation") for i in range(7)]

        view = ToolbarView.from_snapshot(PageSnapshot(headings=headings))

        assert len(view.navigation) == 5

    def test_actions_primary_first_and_capped(self, snapshot_descriptor):
        snapshot = PageSnapshot(
            buttons=[snapshot_descriptor(f"b{i}", f"Option {i}", priority=3) for i in range(6)]
            + [snapshot_descriptor("buy", "Buy now", category="primary-action", priority=11, confidence=0.95)],
            links=[
                snapshot_descriptor("search", "Search", "link", category="form", priority=9),
                snapshot_descriptor("docs", "Docs", "link", priority=3),
            ],
        )

        view = ToolbarView.from_snapshot(snapshot)

        assert [item.element_id for item in view.actions][:2] == ["buy", "search"]
        assert len(view.actions) == 8
        assert view.actions[0].display == "🎯 Buy now 💎"
        assert view.actions[0].tooltip == "primary-action (confidence: 95%)"
        assert view.actions[1].display == "🔗 Search 💎"

    @pytest.mark.parametrize("action, icon", [
        ({"text": "Buy", "category": "primary-action"}, "🎯"),
        ({"text": "Docs", "element_type": "link"}, "🔗"),
        ({"text": "Sign in now"}, "🔑"),
        ({"text": "View cart"}, "🛒"),
        ({"text": "Search"}, "🔍"),
        ({"text": "Submit"}, "📤"),
        ({"text": "Sections", "category": "navigation"}, "🧭"),
        ({"text": "Close"}, "🔘"),
    ])
    def test_action_icons(self, action, icon):
        assert action_icon(action) == icon

    def test_failed_snapshot(self):
        view = ToolbarView.from_snapshot(PageSnapshot.failed("boom"))

        assert view.status == SCAN_FAILED_STATUS
        assert view.navigation == [] and view.actions == []
        assert view.navigation_placeholder is None

    def test_empty_snapshot_placeholders(self):
        view = ToolbarView.from_snapshot(PageSnapshot(summary="No significant content detected."))

        assert view.navigation_placeholder == NO_HEADINGS
        assert view.actions_placeholder == NO_ACTIONS
        assert view.summary == "No significant content detected."

    def test_ai_badge(self):
        assert ToolbarView.from_snapshot(PageSnapshot(classified=True)).ai_powered is True


# =============================================================================
# State machine
# =============================================================================

class TestPresentationState:

    @pytest.mark.asyncio
    async def test_lifecycle(self):
        bus = MessageBus()
        toolbar = ToolbarContext(bus)
        assert toolbar.state == ContextState.UNINITIALIZED

        toolbar.connect()
        assert toolbar.state == ContextState.AWAITING_SNAPSHOT
        assert toolbar.view.status == "Scanning page..."

        await bus.post(ScanResultMessage(payload=PageSnapshot(generation=1, summary="First")))
        assert toolbar.synced
        assert toolbar.view.summary == "First"

        await toolbar.request_rescan()
        assert toolbar.state == ContextState.AWAITING_SNAPSHOT

        await bus.post(ScanResultMessage(payload=PageSnapshot(generation=2, summary="Second")))
        assert toolbar.view.summary == "Second"
        assert toolbar.snapshot.generation == 2

    @pytest.mark.asyncio
    async def test_scan_result_replaces_view(self, snapshot_descriptor):
        bus = MessageBus()
        toolbar = ToolbarContext(bus)
        toolbar.connect()
        first = PageSnapshot(buttons=[snapshot_descriptor("a", "Buy", category="primary-action", priority=10)])

        await bus.post(ScanResultMessage(payload=first))
        await bus.post(ScanResultMessage(payload=PageSnapshot()))

        assert toolbar.view.actions == []

    @pytest.mark.asyncio
    async def test_disconnected_context_ignores_messages(self):
        bus = MessageBus()
        toolbar = ToolbarContext(bus)
        toolbar.connect()
        toolbar.disconnect()

        await bus.post(ScanResultMessage(payload=PageSnapshot(summary="x")))

        assert toolbar.snapshot is None
        assert toolbar.state == ContextState.UNINITIALIZED


# =============================================================================
# End to end
# =============================================================================

class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_toolbar_sync_and_action(self, login_document):
        bus = MessageBus()
        context = DocumentContext(login_document, bus, config=_config())
        await context.start()
        toolbar = ToolbarContext(bus)
        toolbar.connect()

        await toolbar.request_scan()

        assert toolbar.synced
        log_in = next(item for item in toolbar.view.actions if item.label == "Log in")
        await toolbar.trigger_action(log_in.element_id)

        assert toolbar.last_result["success"] is True
        assert ("submit" in [a for a, _ in login_document.interactions])
        await context.stop()

    @pytest.mark.asyncio
    async def test_toolbar_focus_reaches_document(self, login_document):
        bus = MessageBus()
        context = DocumentContext(login_document, bus, config=_config())
        await context.start()
        toolbar = ToolbarContext(bus)
        toolbar.connect()
        await toolbar.request_scan()

        await toolbar.focus(toolbar.snapshot.inputs[0]["id"])

        assert toolbar.last_result["action"] == "focus"
        assert toolbar.last_result["success"] is True
        assert "focus" in [a for a, _ in login_document.interactions]
        await context.stop()

    @pytest.mark.asyncio
    async def test_stale_action_triggers_rescan(self, welcome_document):
        bus = MessageBus()
        context = DocumentContext(welcome_document, bus, config=_config())
        await context.start()
        toolbar = ToolbarContext(bus)
        toolbar.connect()
        await toolbar.request_scan()
        stale_id = toolbar.view.navigation[0].element_id
        await context.scan()

        await toolbar.scroll_to(stale_id)

        assert toolbar.last_result["stale"] is True
        assert toolbar.state == ContextState.AWAITING_SNAPSHOT
        await context.flush()
        assert toolbar.synced
        assert context.scan_count == 3
        await context.stop()

    @pytest.mark.asyncio
    async def test_overlay_tracks_mode_and_activation(self, shop_document):
        bus = MessageBus()
        context = DocumentContext(shop_document, bus, config=_config())
        await context.start()
        overlay = OverlayContext(bus)
        toolbar = ToolbarContext(bus)
        overlay.connect()
        toolbar.connect()

        await overlay.activate()
        await toolbar.change_mode(DisplayMode.TASK)

        assert overlay.active is True
        assert overlay.synced
        assert overlay.mode == DisplayMode.TASK
        assert overlay.view.mode == DisplayMode.TASK
        assert [item.label for item in overlay.view.primary_actions] == ["Add to Cart", "Buy Now", "Search"]
        assert context.mode == DisplayMode.TASK
        await context.stop()
