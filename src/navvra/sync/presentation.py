"""
Presentation contexts: the toolbar and the overlay.

A presentation context never touches the document. It renders the latest
snapshot it received and turns user intent into messages addressed by
opaque element id.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models import Category, DisplayMode, ElementType, PageSnapshot
from .bus import MessageBus
from .messages import (
    ACTION_RESULT,
    MODE_CHANGE,
    REQUEST_RESCAN,
    SCAN_RESULT,
    ActivateOverlayMessage,
    Message,
    ModeChangeMessage,
    RequestRescanMessage,
    RequestScanMessage,
    ScrollToMessage,
    TriggerActionMessage,
)

logger = logging.getLogger(__name__)

MAX_NAVIGATION_ITEMS = 5
MAX_ACTION_ITEMS = 8
HIGH_PRIORITY = 8

SCAN_FAILED_STATUS = "Scan failed, please retry"
SCANNING_STATUS = "Scanning page..."
NO_HEADINGS = "No headings found"
NO_ACTIONS = "No actions found"


class ContextState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_SNAPSHOT = "awaiting-snapshot"
    SYNCED = "synced"


@dataclass
class ToolbarItem:
    element_id: str
    label: str
    icon: str = ""
    badge: str = ""
    tooltip: str = ""

    @property
    def display(self) -> str:
        return f"{self.icon} {self.label}{self.badge}".strip()


def action_icon(action: Dict[str, Any]) -> str:
    text = str(action.get("text", "")).lower()
    if action.get("category") == Category.PRIMARY_ACTION.value:
        return "🎯"
    if action.get("element_type") == ElementType.LINK.value:
        return "🔗"
    if "login" in text or "sign in" in text:
        return "🔑"
    if "buy" in text or "cart" in text or "checkout" in text:
        return "🛒"
    if "search" in text:
        return "🔍"
    if "submit" in text:
        return "📤"
    if action.get("category") == Category.NAVIGATION.value:
        return "🧭"
    return "🔘"


def _is_primary(action: Dict[str, Any]) -> bool:
    return action.get("category") == Category.PRIMARY_ACTION.value \
        or action.get("priority", 0) >= HIGH_PRIORITY


@dataclass
class ToolbarView:
    """Everything the toolbar shows for one snapshot."""
    navigation: List[ToolbarItem] = field(default_factory=list)
    actions: List[ToolbarItem] = field(default_factory=list)
    summary: str = ""
    ai_powered: bool = False
    status: Optional[str] = None

    @classmethod
    def awaiting(cls) -> 'ToolbarView':
        return cls(status=SCANNING_STATUS)

    @classmethod
    def from_snapshot(cls, snapshot: PageSnapshot) -> 'ToolbarView':
        if snapshot.error:
            return cls(summary=snapshot.summary, status=SCAN_FAILED_STATUS)

        content_headings = [
            h for h in snapshot.headings if h.get("category") == Category.CONTENT.value
        ]
        if content_headings:
            navigation = [
                ToolbarItem(
                    element_id=h["id"],
                    label=h.get("text", ""),
                    icon="📍",
                    badge=" ⭐" if h.get("confidence", 0) > 0.9 else "",
                )
                for h in content_headings[:MAX_NAVIGATION_ITEMS]
            ]
        else:
            navigation = [
                ToolbarItem(element_id=h["id"], label=h.get("text", ""), icon="📍")
                for h in snapshot.headings[:MAX_NAVIGATION_ITEMS]
            ]

        primary = [a for a in snapshot.actions if _is_primary(a)]
        others = [a for a in snapshot.actions if not _is_primary(a)]
        actions = [
            ToolbarItem(
                element_id=a["id"],
                label=a.get("text", ""),
                icon=action_icon(a),
                badge=" 💎" if a.get("priority", 0) >= HIGH_PRIORITY else "",
                tooltip=f"{a.get('category') or 'action'} (confidence: {round(a.get('confidence', 0) * 100)}%)",
            )
            for a in (primary + others)[:MAX_ACTION_ITEMS]
        ]

        return cls(
            navigation=navigation,
            actions=actions,
            summary=snapshot.summary,
            ai_powered=snapshot.classified,
        )

    @property
    def navigation_placeholder(self) -> Optional[str]:
        return None if self.navigation or self.status else NO_HEADINGS

    @property
    def actions_placeholder(self) -> Optional[str]:
        return None if self.actions or self.status else NO_ACTIONS


@dataclass
class OverlayView:
    mode: Optional[DisplayMode] = None
    active: bool = False
    primary_actions: List[ToolbarItem] = field(default_factory=list)
    failed: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: PageSnapshot, mode: Optional[DisplayMode], active: bool) -> 'OverlayView':
        primary = [
            ToolbarItem(element_id=a["id"], label=a.get("text", ""), icon=action_icon(a))
            for a in snapshot.actions if _is_primary(a)
        ]
        return cls(mode=mode, active=active, primary_actions=primary, failed=bool(snapshot.error))


class PresentationContext:
    """
    Base presentation context.

    State machine: ``uninitialized`` until :meth:`connect`, then
    ``awaiting-snapshot`` until a scan-result arrives (``synced``). Any
    request-rescan seen on the bus moves it back to ``awaiting-snapshot``.
    Every scan-result replaces the rendered state wholesale.

    Args:
        name: Context name used in logs
        bus: Message bus shared with the document context
        auto_rescan_on_stale: Request a rescan when an action hit a stale id
    """

    def __init__(self, name: str, bus: MessageBus, auto_rescan_on_stale: bool = True):
        self.name = name
        self.bus = bus
        self.auto_rescan_on_stale = auto_rescan_on_stale
        self.state = ContextState.UNINITIALIZED
        self.snapshot: Optional[PageSnapshot] = None
        self.last_result: Optional[Dict[str, Any]] = None
        self._handlers = {
            SCAN_RESULT: self._on_scan_result,
            REQUEST_RESCAN: self._on_request_rescan,
            ACTION_RESULT: self._on_action_result,
            MODE_CHANGE: self._on_mode_change,
        }

    def connect(self) -> None:
        for message_type, handler in self._handlers.items():
            self.bus.subscribe(message_type, handler)
        self.state = ContextState.AWAITING_SNAPSHOT
        self.render()
        logger.debug(f"{self.name} connected")

    def disconnect(self) -> None:
        for message_type, handler in self._handlers.items():
            self.bus.unsubscribe(message_type, handler)
        self.state = ContextState.UNINITIALIZED

    @property
    def synced(self) -> bool:
        return self.state == ContextState.SYNCED

    # Outbound

    async def request_scan(self) -> None:
        self.state = ContextState.AWAITING_SNAPSHOT
        self.render()
        await self.bus.post(RequestScanMessage())

    async def request_rescan(self) -> None:
        await self.bus.post(RequestRescanMessage())

    async def scroll_to(self, element_id: str) -> None:
        await self.bus.post(ScrollToMessage.for_element(element_id))

    async def focus(self, element_id: str) -> None:
        await self.bus.post(ScrollToMessage.for_element(element_id, focus=True))

    async def trigger_action(self, element_id: str) -> None:
        await self.bus.post(TriggerActionMessage.for_element(element_id))

    async def change_mode(self, mode: DisplayMode) -> None:
        await self.bus.post(ModeChangeMessage.for_mode(mode))

    # Inbound

    async def _on_scan_result(self, message: Message) -> None:
        self.snapshot = message.payload
        self.state = ContextState.SYNCED
        self.render()
        logger.debug(f"{self.name} synced to generation {self.snapshot.generation}")

    async def _on_request_rescan(self, message: Message) -> None:
        self.state = ContextState.AWAITING_SNAPSHOT
        self.render()

    async def _on_action_result(self, message: Message) -> None:
        self.last_result = message.payload.model_dump()
        if message.payload.stale and self.auto_rescan_on_stale:
            logger.info(f"{self.name}: element {message.payload.element_id} is stale, requesting rescan")
            await self.request_rescan()

    async def _on_mode_change(self, message: Message) -> None:
        pass

    def render(self) -> None:
        """Rebuild the view from the current state."""


class ToolbarContext(PresentationContext):
    """The toolbar surface."""

    def __init__(self, bus: MessageBus, name: str = "toolbar", **kwargs):
        super().__init__(name, bus, **kwargs)
        self.view = ToolbarView()

    def render(self) -> None:
        if self.state == ContextState.SYNCED and self.snapshot is not None:
            self.view = ToolbarView.from_snapshot(self.snapshot)
        elif self.state == ContextState.AWAITING_SNAPSHOT:
            self.view = ToolbarView.awaiting()
        else:
            self.view = ToolbarView()


class OverlayContext(PresentationContext):
    """The in-page overlay surface."""

    def __init__(self, bus: MessageBus, name: str = "overlay", **kwargs):
        super().__init__(name, bus, **kwargs)
        self.mode: Optional[DisplayMode] = None
        self.active = False
        self.view = OverlayView()

    async def activate(self) -> None:
        await self.bus.post(ActivateOverlayMessage())

    async def _on_action_result(self, message: Message) -> None:
        if message.payload.action == "activate-overlay" and message.payload.success:
            self.active = True
            self.render()
        await super()._on_action_result(message)

    async def _on_mode_change(self, message: Message) -> None:
        self.mode = message.payload.mode
        self.render()

    def render(self) -> None:
        if self.state == ContextState.SYNCED and self.snapshot is not None:
            self.view = OverlayView.from_snapshot(self.snapshot, self.mode, self.active)
        else:
            self.view = OverlayView(mode=self.mode, active=self.active)
