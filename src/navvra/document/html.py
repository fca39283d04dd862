"""
Static HTML document backed by BeautifulSoup.

Useful for offline analysis of saved pages and as the stand-in document in
tests. There is no layout engine, so geometry comes from ``width``/``height``
attributes or inline ``px`` styles, and visibility from ``hidden``,
``aria-hidden`` and inline ``display``/``visibility`` declarations.
Interactions are recorded in ``interactions`` instead of running scripts.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from ..exceptions import DocumentError
from .base import MARKERS, Document, ElementHandle

logger = logging.getLogger(__name__)

_INVISIBLE_TAGS = ("script", "style", "noscript", "template")
_HIDDEN_STYLE = re.compile(r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE)
_PX_STYLE = {
    "width": re.compile(r"(?:^|;)\s*width\s*:\s*(\d+(?:\.\d+)?)px", re.IGNORECASE),
    "height": re.compile(r"(?:^|;)\s*height\s*:\s*(\d+(?:\.\d+)?)px", re.IGNORECASE),
}


class HtmlElementHandle(ElementHandle):
    """Handle around a BeautifulSoup ``Tag``."""

    def __init__(self, document: 'HtmlDocument', tag: Tag):
        self._document = document
        self._tag = tag

    @property
    def tag(self) -> Tag:
        return self._tag

    @property
    def tag_name(self) -> str:
        return self._tag.name.lower()

    def __repr__(self) -> str:
        return f"HtmlElementHandle(<{self.tag_name}>)"

    async def describe(self) -> Dict[str, Any]:
        tag = self._tag
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        width, height = self._dimensions()
        return {
            "tag": self.tag_name,
            "text": tag.get_text(" ", strip=True),
            "value": _attr(tag, "value"),
            "placeholder": _attr(tag, "placeholder"),
            "title": _attr(tag, "title"),
            "aria_label": _attr(tag, "aria-label"),
            "alt": _attr(tag, "alt"),
            "role": _attr(tag, "role"),
            "type": _attr(tag, "type").lower(),
            "classes": " ".join(c for c in classes if not c.startswith("navvra-")),
            "href": _attr(tag, "href"),
            "width": width,
            "height": height,
            "visible": self._is_visible(),
            "in_navigation": self._in_navigation(),
        }

    def _dimensions(self) -> Tuple[float, float]:
        style = _attr(self._tag, "style")
        dims = []
        for name in ("width", "height"):
            value = 0.0
            raw = _attr(self._tag, name)
            if raw:
                try:
                    value = float(raw.rstrip("px"))
                except ValueError:
                    value = 0.0
            match = _PX_STYLE[name].search(style)
            if match:
                value = float(match.group(1))
            dims.append(value)
        return dims[0], dims[1]

    def _is_visible(self) -> bool:
        if self.tag_name == "input" and _attr(self._tag, "type").lower() == "hidden":
            return False
        node: Optional[Tag] = self._tag
        while node is not None and node.name not in ("[document]", None):
            if node.has_attr("hidden"):
                return False
            if _attr(node, "aria-hidden").lower() == "true":
                return False
            if _HIDDEN_STYLE.search(_attr(node, "style")):
                return False
            node = node.parent
        return True

    def _in_navigation(self) -> bool:
        node: Optional[Tag] = self._tag
        while node is not None and node.name not in ("[document]", None):
            if node.name == "nav" or _attr(node, "role").lower() == "navigation":
                return True
            node = node.parent
        return False

    async def scroll_into_view(self) -> None:
        self._document.record("scroll", self._tag)

    async def click(self) -> None:
        self._document.record("click", self._tag)

    async def focus(self) -> None:
        self._document.record("focus", self._tag)

    async def set_marker(self, marker: str, enabled: bool) -> None:
        if marker not in MARKERS:
            raise DocumentError(f"Unknown marker '{marker}'")
        css_class = f"navvra-{marker}"
        classes = list(self._tag.get("class") or [])
        if enabled and css_class not in classes:
            classes.append(css_class)
        elif not enabled and css_class in classes:
            classes.remove(css_class)
        if classes:
            self._tag["class"] = classes
        elif self._tag.has_attr("class"):
            del self._tag["class"]

    def has_marker(self, marker: str) -> bool:
        return f"navvra-{marker}" in (self._tag.get("class") or [])

    async def is_submit_control(self) -> bool:
        input_type = _attr(self._tag, "type").lower()
        if self.tag_name == "button":
            return input_type in ("", "submit")
        return self.tag_name == "input" and input_type in ("submit", "image")

    async def submit_form(self) -> bool:
        form = self._tag.find_parent("form")
        if form is None:
            return False
        self._document.record("submit", form)
        return True


class HtmlDocument(Document):
    """In-memory document parsed from an HTML string."""

    def __init__(self, html: str, parser: str = "lxml"):
        self._parser = parser
        self._observers: List[Callable[[], None]] = []
        self.interactions: List[Tuple[str, Tag]] = []
        self.soup = self._parse(html)

    def _parse(self, html: str) -> BeautifulSoup:
        soup = BeautifulSoup(html, self._parser)
        for element in soup.find_all(_INVISIBLE_TAGS):
            element.decompose()
        return soup

    @classmethod
    def from_file(cls, path: str, encoding: str = "utf-8") -> 'HtmlDocument':
        try:
            with open(path, "r", encoding=encoding) as f:
                return cls(f.read())
        except OSError as e:
            raise DocumentError(f"Cannot read HTML file {path}: {e}", context={"path": path})

    def record(self, action: str, tag: Tag) -> None:
        self.interactions.append((action, tag))
        logger.debug(f"{action} on <{tag.name}>")

    async def query_all(self, selector: str) -> List[ElementHandle]:
        try:
            tags = self.soup.select(selector)
        except Exception as e:
            raise DocumentError(f"Selector failed: {e}", selector=selector)
        return [HtmlElementHandle(self, tag) for tag in tags]

    async def title(self) -> str:
        if self.soup.title and self.soup.title.string:
            return self.soup.title.string.strip()
        return ""

    async def body_text(self) -> str:
        root = self.soup.body or self.soup
        return root.get_text(" ", strip=True)

    async def observe_mutations(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def replace_html(self, html: str) -> None:
        """Swap the whole document and notify observers."""
        self.soup = self._parse(html)
        self.notify_changed()

    def notify_changed(self) -> None:
        for callback in list(self._observers):
            callback()


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)
