"""
Document capability interface.

The pipeline only ever talks to a page through these two abstractions:
a ``Document`` that can be queried and observed, and ``ElementHandle``
objects that stand for live elements. Handles never leave the document
context; everything that crosses a boundary is a sanitized descriptor.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

# Named visual effects a backend knows how to toggle on an element.
MARKER_HIGHLIGHT = "highlight"
MARKER_EMPHASIS = "emphasis"
MARKER_DIM = "dim"

MARKERS = (MARKER_HIGHLIGHT, MARKER_EMPHASIS, MARKER_DIM)

# Keys every ``ElementHandle.describe()`` mapping provides.
DESCRIBE_KEYS = (
    "tag", "text", "value", "placeholder", "title", "aria_label", "alt",
    "role", "type", "classes", "href", "width", "height", "visible",
    "in_navigation",
)


class ElementHandle(ABC):
    """A live element inside one document."""

    @property
    @abstractmethod
    def tag_name(self) -> str:
        """Lower-case tag name."""

    @abstractmethod
    async def describe(self) -> Dict[str, Any]:
        """
        Read the raw facts the extractor needs in one round trip.

        Returns a mapping with the keys in ``DESCRIBE_KEYS``: string
        attributes (empty when absent), ``width``/``height`` in layout
        pixels, ``visible`` and ``in_navigation`` booleans.
        """

    @abstractmethod
    async def scroll_into_view(self) -> None:
        """Bring the element into the viewport."""

    @abstractmethod
    async def click(self) -> None:
        """Invoke the element's native activation."""

    @abstractmethod
    async def focus(self) -> None:
        """Move keyboard focus to the element."""

    @abstractmethod
    async def set_marker(self, marker: str, enabled: bool) -> None:
        """
        Apply or revert a named visual effect (see ``MARKERS``).

        A marker write is not a document change: backends should not report
        it to mutation observers.
        """

    @abstractmethod
    async def is_submit_control(self) -> bool:
        """True for submit buttons and submit inputs."""

    @abstractmethod
    async def submit_form(self) -> bool:
        """Submit the owning form. Returns False when there is none."""


class MarkerWriter:
    """
    Writes markers on behalf of one document context and tracks writes in flight.

    Change signals raised while ``writing`` is true come from the context's
    own visual effects, so the context ignores them instead of rescanning.
    """

    def __init__(self):
        self._depth = 0

    @property
    def writing(self) -> bool:
        return self._depth > 0

    async def set(self, handle: ElementHandle, marker: str, enabled: bool) -> None:
        self._depth += 1
        try:
            await handle.set_marker(marker, enabled)
        finally:
            self._depth -= 1


class Document(ABC):
    """Queryable, observable page."""

    @abstractmethod
    async def query_all(self, selector: str) -> List[ElementHandle]:
        """Return handles for every element matching a CSS selector, in document order."""

    @abstractmethod
    async def title(self) -> str:
        """Document title."""

    @abstractmethod
    async def body_text(self) -> str:
        """Visible text of the document body."""

    @abstractmethod
    async def observe_mutations(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a "something changed" callback.

        Returns a callable that removes the observer. Callbacks carry no
        detail; the only expected reaction is a debounced rescan.
        """
