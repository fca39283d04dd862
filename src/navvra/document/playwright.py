"""
Live document backed by a Playwright page.

Each ``describe()`` is one ``evaluate`` round trip that reads computed
geometry and visibility in page context. Visual markers are CSS classes
plus an inline outline so they show up without an injected stylesheet.
Document changes are bridged from an in-page ``MutationObserver`` through
``page.expose_function``. Marker writes take their own mutation records off
the observer queue, so they never reach Python as document changes.
"""

import logging
from typing import Any, Callable, Dict, List

from playwright.async_api import ElementHandle as PlaywrightHandle
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..exceptions import DocumentError
from .base import MARKERS, Document, ElementHandle

logger = logging.getLogger(__name__)

_MUTATION_BINDING = "__navvraMutation"

# JavaScript that reads every fact the extractor needs from one element
DESCRIBE_JS = """
(el) => {
    const attr = (name) => el.getAttribute(name) || '';
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    const visible = style.display !== 'none' &&
        style.visibility !== 'hidden' &&
        style.opacity !== '0' &&
        rect.width > 0 && rect.height > 0;
    const classes = (typeof el.className === 'string' ? el.className : '')
        .split(/\\s+/).filter(c => c && !c.startsWith('navvra-')).join(' ');
    return {
        tag: el.tagName.toLowerCase(),
        text: (el.innerText || el.textContent || '').trim(),
        value: typeof el.value === 'string' ? el.value : '',
        placeholder: attr('placeholder'),
        title: attr('title'),
        aria_label: attr('aria-label'),
        alt: attr('alt'),
        role: attr('role'),
        type: attr('type').toLowerCase(),
        classes: classes,
        href: attr('href'),
        width: rect.width,
        height: rect.height,
        visible: visible,
        in_navigation: !!el.closest('nav, [role="navigation"]'),
    };
}
"""

MARKER_JS = """
(el, [marker, enabled]) => {
    const observer = window.__navvraObserver;
    // Records queued before this write belong to the page, the rest are ours
    const pending = observer ? observer.takeRecords() : [];
    const cls = 'navvra-' + marker;
    const outlines = {highlight: '3px solid #f59e0b', emphasis: '2px solid #2563eb', dim: ''};
    if (enabled) {
        el.classList.add(cls);
        if (marker === 'dim') { el.style.opacity = '0.35'; }
        else { el.style.outline = outlines[marker]; }
    } else {
        el.classList.remove(cls);
        if (marker === 'dim') { el.style.opacity = ''; }
        else if (!['highlight', 'emphasis'].some(m => el.classList.contains('navvra-' + m))) {
            el.style.outline = '';
        }
    }
    if (observer) {
        observer.takeRecords();
        if (pending.length && window.__navvraNotify) { window.__navvraNotify(); }
    }
}
"""

SUBMIT_FORM_JS = """
(el) => {
    const form = el.form || el.closest('form');
    if (!form) return false;
    if (typeof form.requestSubmit === 'function') { form.requestSubmit(); }
    else { form.submit(); }
    return true;
}
"""

OBSERVE_JS = """
(binding) => {
    if (window.__navvraObserver) return;
    window.__navvraNotify = () => window[binding]();
    window.__navvraObserver = new MutationObserver(() => window.__navvraNotify());
    window.__navvraObserver.observe(document.documentElement, {
        childList: true, subtree: true, attributes: true, characterData: true,
    });
}
"""

DISCONNECT_JS = """
() => {
    if (window.__navvraObserver) {
        window.__navvraObserver.disconnect();
        window.__navvraObserver = null;
    }
}
"""


class PlaywrightElementHandle(ElementHandle):
    """Handle around a Playwright ``ElementHandle``."""

    def __init__(self, handle: PlaywrightHandle, tag_name: str):
        self._handle = handle
        self._tag_name = tag_name

    @property
    def tag_name(self) -> str:
        return self._tag_name

    async def describe(self) -> Dict[str, Any]:
        try:
            return await self._handle.evaluate(DESCRIBE_JS)
        except PlaywrightError as e:
            raise DocumentError(f"Failed to describe <{self._tag_name}>: {e}")

    async def scroll_into_view(self) -> None:
        await self._handle.scroll_into_view_if_needed()

    async def click(self) -> None:
        await self._handle.click()

    async def focus(self) -> None:
        await self._handle.focus()

    async def set_marker(self, marker: str, enabled: bool) -> None:
        if marker not in MARKERS:
            raise DocumentError(f"Unknown marker '{marker}'")
        await self._handle.evaluate(MARKER_JS, [marker, enabled])

    async def is_submit_control(self) -> bool:
        return await self._handle.evaluate(
            "(el) => (el.tagName === 'BUTTON' && (el.type || 'submit') === 'submit') || "
            "(el.tagName === 'INPUT' && ['submit', 'image'].includes(el.type))"
        )

    async def submit_form(self) -> bool:
        return await self._handle.evaluate(SUBMIT_FORM_JS)


class PlaywrightDocument(Document):
    """
    Document over a live Playwright page.

    Usage:
        async with async_playwright() as p:
            browser = await p.chromium.launch()
            page = await browser.new_page()
            await page.goto(url)
            document = PlaywrightDocument(page)
    """

    def __init__(self, page: Page):
        self.page = page
        self._observers: List[Callable[[], None]] = []
        self._binding_installed = False

    async def query_all(self, selector: str) -> List[ElementHandle]:
        try:
            handles = await self.page.query_selector_all(selector)
            result = []
            for handle in handles:
                tag_name = await handle.evaluate("(el) => el.tagName.toLowerCase()")
                result.append(PlaywrightElementHandle(handle, tag_name))
            return result
        except PlaywrightError as e:
            raise DocumentError(f"Selector failed: {e}", selector=selector)

    async def title(self) -> str:
        return (await self.page.title()).strip()

    async def body_text(self) -> str:
        try:
            return await self.page.inner_text("body")
        except PlaywrightError as e:
            raise DocumentError(f"Failed to read body text: {e}")

    async def observe_mutations(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._observers.append(callback)
        if not self._binding_installed:
            await self.page.expose_function(_MUTATION_BINDING, self._on_mutation)
            self._binding_installed = True
        await self.page.evaluate(OBSERVE_JS, _MUTATION_BINDING)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    async def disconnect(self) -> None:
        """Stop the in-page observer."""
        self._observers.clear()
        try:
            await self.page.evaluate(DISCONNECT_JS)
        except PlaywrightError as e:
            logger.debug(f"Observer disconnect failed: {e}")

    def _on_mutation(self) -> None:
        for callback in list(self._observers):
            callback()
