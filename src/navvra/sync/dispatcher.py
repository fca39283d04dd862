"""
Action dispatch by opaque identifier.
"""

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Set, Union

from ..config import DispatchConfig
from ..document.base import MARKER_HIGHLIGHT, MarkerWriter

if TYPE_CHECKING:
    from ..analysis.identity import IdentityMap
    from ..document.base import ElementHandle

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    SCROLL = "scroll"
    CLICK = "click"
    FOCUS = "focus"


class ActionDispatcher:
    """
    Resolves an opaque id through the identity map and acts on the live element.

    A miss (unknown or superseded id) returns ``False``: the caller should
    treat it as a stale reference and request a rescan, never as fatal.
    Highlights are transient and revert on their own after
    ``highlight_duration_ms``.
    """

    def __init__(
        self,
        identity_map: "IdentityMap",
        config: Optional[DispatchConfig] = None,
        markers: Optional[MarkerWriter] = None,
    ):
        self._identity_map = identity_map
        self.config = config or DispatchConfig()
        self._markers = markers or MarkerWriter()
        self._reverts: Dict[str, asyncio.Task] = {}
        self._handles: Dict[str, "ElementHandle"] = {}

    async def dispatch(self, element_id: str, kind: Union[str, ActionKind]) -> bool:
        try:
            kind = ActionKind(kind)
        except ValueError:
            logger.warning(f"Unknown action kind {kind!r} for {element_id}")
            return False

        handle = self._identity_map.resolve(element_id)
        if handle is None:
            logger.info(f"Stale or unknown element id {element_id!r}; a rescan is needed")
            return False

        try:
            await handle.scroll_into_view()
            await self._flash(element_id, handle)
            if kind == ActionKind.CLICK:
                await handle.click()
                if await handle.is_submit_control():
                    submitted = await handle.submit_form()
                    logger.debug(f"Submit control {element_id} clicked (form submitted: {submitted})")
            elif kind == ActionKind.FOCUS:
                await handle.focus()
        except Exception as e:
            logger.warning(f"{kind.value} on {element_id} failed: {e}")
            return False

        logger.debug(f"Dispatched {kind.value} to {element_id}")
        return True

    async def _flash(self, element_id: str, handle: "ElementHandle") -> None:
        """Apply the highlight and schedule its removal, restarting any pending timer."""
        pending = self._reverts.pop(element_id, None)
        if pending is not None:
            pending.cancel()
        await self._markers.set(handle, MARKER_HIGHLIGHT, True)
        self._handles[element_id] = handle
        self._reverts[element_id] = asyncio.create_task(self._revert_later(element_id, handle))

    async def _revert_later(self, element_id: str, handle: "ElementHandle") -> None:
        await asyncio.sleep(self.config.highlight_duration_ms / 1000.0)
        await self._revert(element_id, handle)

    async def _revert(self, element_id: str, handle: "ElementHandle") -> None:
        try:
            await self._markers.set(handle, MARKER_HIGHLIGHT, False)
        except Exception as e:
            logger.debug(f"Could not revert highlight on {element_id}: {e}")
        finally:
            self._reverts.pop(element_id, None)
            self._handles.pop(element_id, None)

    @property
    def pending_highlights(self) -> Set[str]:
        return set(self._reverts)

    async def wait_for_highlights(self) -> None:
        """Wait until every scheduled highlight has reverted."""
        tasks = list(self._reverts.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel pending timers and revert every highlight now."""
        pending = list(self._reverts.items())
        for _, task in pending:
            task.cancel()
        await asyncio.gather(*(task for _, task in pending), return_exceptions=True)
        for element_id, _ in pending:
            handle = self._handles.get(element_id)
            if handle is not None:
                await self._revert(element_id, handle)
        self._reverts.clear()
        self._handles.clear()
