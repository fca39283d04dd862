"""
Document context: the extraction side of the sync protocol.

The document context is the only place that holds live element handles.
It owns the identity map and shares it with exactly two collaborators,
the Extractor (writes) and the ActionDispatcher (reads), plus the mode
controller that applies display effects. Presentation contexts reach it
only through messages on the bus.

Scheduling rules:
- at most one extraction pass is in flight; a scan requested during a
  pass is coalesced into one follow-up pass
- ``request-rescan`` messages and document-change signals are debounced:
  every request inside the window joins the already scheduled pass
- a snapshot whose generation is no longer current is discarded
- change signals raised by the context's own marker writes (highlights,
  mode effects) are ignored
"""

import asyncio
import logging
from typing import Callable, Optional

from ..analysis.classifier import Classifier
from ..analysis.extractor import Extractor
from ..analysis.identity import IdentityMap
from ..analysis.strategies import ClassificationStrategy, SummaryStrategy
from ..analysis.summarizer import Summarizer
from ..config import NavvraConfig
from ..document.base import Document, MarkerWriter
from ..models import DisplayMode, PageSnapshot
from .bus import MessageBus
from .dispatcher import ActionDispatcher, ActionKind
from .messages import (
    ACTIVATE_OVERLAY,
    MODE_CHANGE,
    REQUEST_RESCAN,
    REQUEST_SCAN,
    SCROLL_TO,
    TRIGGER_ACTION,
    ActionResultMessage,
    ActionResultPayload,
    Message,
    ScanResultMessage,
)
from .modes import ModeController

logger = logging.getLogger(__name__)


class DocumentContext:
    """
    Message hub running next to the document.

    Args:
        document: Document to analyse and act on
        bus: Message bus shared with presentation contexts
        config: Pipeline configuration
        strategy: Optional external summary strategy
        classification_strategy: Optional external classification strategy
    """

    def __init__(
        self,
        document: Document,
        bus: MessageBus,
        config: Optional[NavvraConfig] = None,
        strategy: Optional[SummaryStrategy] = None,
        classification_strategy: Optional[ClassificationStrategy] = None,
    ):
        self.document = document
        self.bus = bus
        self.config = config or NavvraConfig()

        identity_map = IdentityMap()
        self._identity_map = identity_map
        self._extractor = Extractor(
            document,
            identity_map,
            summarizer=Summarizer(strategy, self.config.summarizer),
            classifier=Classifier(classification_strategy, self.config.classifier),
            config=self.config.extraction,
            strict_sanitize=self.config.strict_sanitize,
        )
        self._markers = MarkerWriter()
        self._dispatcher = ActionDispatcher(identity_map, self.config.dispatch, markers=self._markers)
        self._modes = ModeController(identity_map, markers=self._markers)

        self.snapshot: Optional[PageSnapshot] = None
        self.overlay_active = False
        self.scan_count = 0
        self.discarded_count = 0
        self.ignored_mutations = 0

        self._scan_task: Optional[asyncio.Task] = None
        self._rescan_requested = False
        self._debounce_task: Optional[asyncio.Task] = None
        self._unobserve: Optional[Callable[[], None]] = None
        self._handlers = {
            REQUEST_SCAN: self._on_request_scan,
            REQUEST_RESCAN: self._on_request_rescan,
            ACTIVATE_OVERLAY: self._on_activate_overlay,
            SCROLL_TO: self._on_scroll_to,
            TRIGGER_ACTION: self._on_trigger_action,
            MODE_CHANGE: self._on_mode_change,
        }

    @property
    def mode(self) -> Optional[DisplayMode]:
        return self._modes.mode

    @property
    def scanning(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, observe_mutations: bool = True) -> None:
        """Subscribe to the bus and, optionally, to document change signals."""
        for message_type, handler in self._handlers.items():
            self.bus.subscribe(message_type, handler)
        if observe_mutations:
            self._unobserve = await self.document.observe_mutations(self.notify_mutation)
        logger.info("Document context started")

    async def stop(self) -> None:
        """Unsubscribe, cancel pending work and revert every visual effect."""
        for message_type, handler in self._handlers.items():
            self.bus.unsubscribe(message_type, handler)
        if self._unobserve is not None:
            self._unobserve()
            self._unobserve = None
        for task in (self._debounce_task, self._scan_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        await self._dispatcher.aclose()
        await self._modes.revert()
        logger.info("Document context stopped")

    async def flush(self) -> None:
        """Wait for any debounced or in-flight scan to complete."""
        while True:
            if self._debounce_task is not None and not self._debounce_task.done():
                await self._debounce_task
            elif self.scanning:
                await self._scan_task
            else:
                return

    # =========================================================================
    # Scanning
    # =========================================================================

    async def scan(self) -> Optional[PageSnapshot]:
        """
        Run an extraction pass, or join the one in flight.

        A call made while a pass is running marks a single follow-up pass;
        any number of such calls coalesce into that one pass.
        """
        if self.scanning:
            self._rescan_requested = True
            if asyncio.current_task() is self._scan_task:
                # Requested from a scan-result listener of the running pass
                return self.snapshot
        else:
            self._scan_task = asyncio.create_task(self._scan_loop())
        await asyncio.shield(self._scan_task)
        return self.snapshot

    async def _scan_loop(self) -> None:
        while True:
            self._rescan_requested = False
            snapshot = await self._extractor.extract()
            await self._publish(snapshot)
            if not self._rescan_requested:
                return

    async def _publish(self, snapshot: PageSnapshot) -> None:
        if not self._identity_map.is_current(snapshot.generation):
            self.discarded_count += 1
            logger.info(
                f"Discarding snapshot of generation {snapshot.generation} "
                f"(current is {self._identity_map.generation})"
            )
            return

        self.snapshot = snapshot
        self.scan_count += 1
        if self._modes.mode is not None:
            await self._modes.apply(self._modes.mode, snapshot)
        await self.bus.post(ScanResultMessage(payload=snapshot))

    def request_rescan(self, delay_ms: Optional[int] = None) -> None:
        """Schedule a debounced rescan. Requests inside the window coalesce."""
        if self._debounce_task is not None and not self._debounce_task.done():
            logger.debug("Rescan already scheduled; coalescing request")
            return
        delay = self.config.sync.rescan_debounce_ms if delay_ms is None else delay_ms
        self._debounce_task = asyncio.create_task(self._debounced_scan(delay / 1000.0))

    async def _debounced_scan(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        self._debounce_task = None
        await self.scan()

    def notify_mutation(self) -> None:
        """Document-change hook: something changed, rescan soon."""
        if self._markers.writing:
            # Raised by our own highlight or mode effects
            self.ignored_mutations += 1
            return
        self.request_rescan(self.config.sync.mutation_debounce_ms)

    # =========================================================================
    # Message handlers
    # =========================================================================

    async def _on_request_scan(self, message: Message) -> None:
        await self.scan()

    async def _on_request_rescan(self, message: Message) -> None:
        self.request_rescan()

    async def _on_activate_overlay(self, message: Message) -> None:
        await self.activate_overlay()

    async def _on_scroll_to(self, message: Message) -> None:
        kind = ActionKind.FOCUS if message.payload.focus else ActionKind.SCROLL
        await self._dispatch(message.payload.element_id, kind)

    async def _on_trigger_action(self, message: Message) -> None:
        await self._dispatch(message.payload.element_id, ActionKind.CLICK)

    async def _on_mode_change(self, message: Message) -> None:
        await self.change_mode(message.payload.mode)

    # =========================================================================
    # Operations
    # =========================================================================

    async def activate_overlay(self) -> bool:
        """Activate the overlay. A second activation is a no-op reporting success."""
        if self.overlay_active:
            logger.debug("Overlay already active")
        else:
            self.overlay_active = True
            logger.info("Overlay activated")
        await self.bus.post(ActionResultMessage(
            payload=ActionResultPayload(action="activate-overlay", success=True)
        ))
        if self.snapshot is None and not self.scanning:
            await self.scan()
        return True

    async def change_mode(self, mode: DisplayMode) -> None:
        await self._modes.apply(DisplayMode(mode), self.snapshot)
        logger.info(f"Display mode changed to '{DisplayMode(mode).value}'")

    async def _dispatch(self, element_id: str, kind: ActionKind) -> bool:
        stale = element_id not in self._identity_map
        success = False if stale else await self._dispatcher.dispatch(element_id, kind)
        await self.bus.post(ActionResultMessage(
            payload=ActionResultPayload(action=kind.value, element_id=element_id, success=success, stale=stale)
        ))
        return success
