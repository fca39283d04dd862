"""
Document backends.

``HtmlDocument`` is always available; ``PlaywrightDocument`` is imported
lazily so static analysis does not need a browser runtime.
"""

from .base import (
    DESCRIBE_KEYS,
    MARKER_DIM,
    MARKER_EMPHASIS,
    MARKER_HIGHLIGHT,
    MARKERS,
    Document,
    ElementHandle,
    MarkerWriter,
)
from .html import HtmlDocument, HtmlElementHandle

__all__ = [
    "Document",
    "ElementHandle",
    "MarkerWriter",
    "HtmlDocument",
    "HtmlElementHandle",
    "PlaywrightDocument",
    "DESCRIBE_KEYS",
    "MARKERS",
    "MARKER_HIGHLIGHT",
    "MARKER_EMPHASIS",
    "MARKER_DIM",
]


def __getattr__(name):
    if name == "PlaywrightDocument":
        from .playwright import PlaywrightDocument
        return PlaywrightDocument
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
