"""
Display modes.

A mode is a set of visual effects (markers) applied to elements of the
current snapshot. Switching modes reverts every effect of the previous mode
before the new one is applied; there is never a moment where effects of two
modes coexist.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from ..document.base import MARKER_DIM, MARKER_EMPHASIS, MarkerWriter
from ..models import Category, DisplayMode, ElementType, PageSnapshot

if TYPE_CHECKING:
    from ..analysis.identity import IdentityMap
    from ..document.base import ElementHandle

logger = logging.getLogger(__name__)

Predicate = Callable[[Dict[str, Any]], bool]

_ACTIONABLE = (Category.PRIMARY_ACTION.value, Category.SECONDARY_ACTION.value, Category.FORM.value)


def _category(*categories: str) -> Predicate:
    return lambda d: d.get("category") in categories


def _is_content_heading(d: Dict[str, Any]) -> bool:
    return d.get("element_type") == ElementType.HEADING.value and d.get("category") == Category.CONTENT.value


def _is_actionable(d: Dict[str, Any]) -> bool:
    return d.get("element_type") in (ElementType.BUTTON.value, ElementType.INPUT.value) \
        or d.get("category") in _ACTIONABLE


# (marker, predicate) pairs applied to every descriptor of the snapshot
MODE_EFFECTS: Dict[DisplayMode, List[Tuple[str, Predicate]]] = {
    DisplayMode.FOCUS: [
        (MARKER_DIM, _category(Category.NOISE.value)),
        (MARKER_EMPHASIS, _category(Category.PRIMARY_ACTION.value)),
    ],
    DisplayMode.TASK: [
        (MARKER_EMPHASIS, _is_actionable),
    ],
    DisplayMode.CONTENT: [
        (MARKER_DIM, _category(Category.NOISE.value)),
        (MARKER_EMPHASIS, _is_content_heading),
    ],
}


class ModeController:
    """Applies and reverts display-mode effects on the owning document."""

    def __init__(self, identity_map: "IdentityMap", markers: Optional[MarkerWriter] = None):
        self._identity_map = identity_map
        self._markers = markers or MarkerWriter()
        self._applied: List[Tuple["ElementHandle", str]] = []
        self.mode: Optional[DisplayMode] = None

    @property
    def applied_count(self) -> int:
        return len(self._applied)

    async def apply(self, mode: DisplayMode, snapshot: Optional[PageSnapshot]) -> int:
        """
        Switch to ``mode``: revert the previous effects, then apply the new ones.

        Returns:
            Number of effects applied.
        """
        mode = DisplayMode(mode)
        await self.revert()
        self.mode = mode
        if snapshot is None or snapshot.error:
            return 0

        descriptors = snapshot.buttons + snapshot.headings + snapshot.links + snapshot.inputs
        for marker, predicate in MODE_EFFECTS[mode]:
            for descriptor in descriptors:
                if not predicate(descriptor):
                    continue
                handle = self._identity_map.resolve(descriptor.get("id"))
                if handle is None:
                    continue
                try:
                    await self._markers.set(handle, marker, True)
                except Exception as e:
                    logger.debug(f"Could not apply {marker} to {descriptor.get('id')}: {e}")
                    continue
                self._applied.append((handle, marker))

        logger.debug(f"Mode '{mode.value}' applied {len(self._applied)} effects")
        return len(self._applied)

    async def revert(self) -> None:
        """Remove every effect applied by the current mode."""
        applied, self._applied = self._applied, []
        for handle, marker in reversed(applied):
            try:
                await self._markers.set(handle, marker, False)
            except Exception as e:
                logger.debug(f"Could not revert {marker}: {e}")
        self.mode = None
