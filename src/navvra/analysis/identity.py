import logging
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..document.base import ElementHandle

logger = logging.getLogger(__name__)


class IdentityMap:
    """
    Maps short-lived opaque identifiers to live element handles for one document context.

    The map is an arena: it is cleared wholesale at the start of every scan
    generation and repopulated during extraction. Identifiers embed the
    generation number, so an id from a superseded generation can never
    resolve again, even if the new generation registers the same number of
    elements.

    Only the Extractor (writes) and the ActionDispatcher (reads) of the
    owning context should hold a reference to an instance.
    """

    def __init__(self, prefix: str = "nv"):
        self._prefix = prefix
        self._entries: Dict[str, "ElementHandle"] = {}
        self._generation = 0
        self._sequence = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin_generation(self) -> int:
        """
        Invalidate every identifier and start a new scan generation.

        Returns:
            The new generation number.
        """
        dropped = len(self._entries)
        self._entries.clear()
        self._generation += 1
        self._sequence = 0
        logger.debug(f"Identity map generation {self._generation} started ({dropped} stale entries dropped)")
        return self._generation

    def register(self, handle: "ElementHandle") -> str:
        """Register a handle for the current generation and return its fresh id."""
        self._sequence += 1
        element_id = f"{self._prefix}-{self._generation}-{self._sequence}"
        self._entries[element_id] = handle
        return element_id

    def clear(self) -> None:
        """Drop every entry without starting a new generation (used after a failed pass)."""
        self._entries.clear()

    def resolve(self, element_id: object) -> Optional["ElementHandle"]:
        """Look up a handle. Unknown, stale or malformed ids return None."""
        if not isinstance(element_id, str):
            return None
        return self._entries.get(element_id)

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def __contains__(self, element_id: object) -> bool:
        return self.resolve(element_id) is not None

    def __len__(self) -> int:
        return len(self._entries)
