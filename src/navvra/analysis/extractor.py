"""
Element extraction.

One ``extract()`` call is one scan generation: the identity map is cleared,
the document is walked once per element group, every kept element gets a
fresh opaque id, and the classified, summarized result leaves as a
sanitized ``PageSnapshot``.

Extraction never raises. Any fault inside the pass is logged and turned
into an empty snapshot with ``error`` set, which presentation surfaces
render as "scan failed, please retry".
"""

import asyncio
import logging
import re
import time
from typing import Any, Dict, List, Optional

from ..config import ExtractionConfig
from ..document.base import Document, ElementHandle
from ..exceptions import DocumentError
from ..models import ElementDescriptor, ElementType, PageCorpus, PageSnapshot
from ..sanitizer import sanitize
from .classifier import Classifier, rank
from .identity import IdentityMap
from .summarizer import Summarizer

logger = logging.getLogger(__name__)


# =============================================================================
# Selectors
# =============================================================================

BUTTON_SELECTOR = ", ".join([
    'button',
    '[role="button"]',
    'input[type="submit"]',
    'input[type="button"]',
    # Anchors styled as buttons
    'a.btn',
    'a.button',
    'a[class*="btn"]',
])

HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"

LINK_SELECTOR = 'a[href]:not(.btn):not(.button):not([class*="btn"]):not([role="button"])'

INPUT_SELECTOR = ", ".join([
    'input[type="text"]',
    'input[type="email"]',
    'input[type="password"]',
    'input[type="search"]',
    'input[type="tel"]',
    'input[type="url"]',
    'input[type="number"]',
    'input:not([type])',
    'textarea',
])

IMAGE_SELECTOR = "img"

FORM_SELECTOR = "form"

# Element groups in extraction order
GROUPS = (
    (BUTTON_SELECTOR, ElementType.BUTTON),
    (HEADING_SELECTOR, ElementType.HEADING),
    (LINK_SELECTOR, ElementType.LINK),
    (INPUT_SELECTOR, ElementType.INPUT),
    (IMAGE_SELECTOR, ElementType.IMAGE),
)

# Label fallback chain, first non-empty wins
LABEL_SOURCES = ("text", "value", "placeholder", "title", "aria_label", "alt")
IMAGE_LABEL_SOURCES = ("alt", "title", "aria_label")


def extract_label(raw: Dict[str, Any], sources=LABEL_SOURCES, max_length: int = 100) -> str:
    """Best-effort visible label: first non-empty source, whitespace collapsed, truncated."""
    for source in sources:
        value = raw.get(source)
        if isinstance(value, str):
            value = re.sub(r"\s+", " ", value).strip()
            if value:
                return value[:max_length]
    return ""


class Extractor:
    """
    Walks a document once per scan and produces a ``PageSnapshot``.

    Args:
        document: Document to scan
        identity_map: Identity map of the owning document context
        summarizer: Summarizer to run over the extracted corpus
        classifier: Classifier for the extracted elements (rule-based when omitted)
        config: Extraction configuration (caps and label limits)
        strict_sanitize: Raise on unsanitizable snapshot values instead of dropping them
    """

    def __init__(
        self,
        document: Document,
        identity_map: IdentityMap,
        summarizer: Optional[Summarizer] = None,
        classifier: Optional[Classifier] = None,
        config: Optional[ExtractionConfig] = None,
        strict_sanitize: bool = False,
    ):
        self.document = document
        self.identity_map = identity_map
        self.summarizer = summarizer or Summarizer()
        self.classifier = classifier or Classifier()
        self.config = config or ExtractionConfig()
        self.strict_sanitize = strict_sanitize

    async def extract(self) -> PageSnapshot:
        """Run one complete extraction pass. Never raises (except on cancellation)."""
        generation = self.identity_map.begin_generation()
        start = time.time()
        try:
            snapshot = await self._scan(generation)
        except asyncio.CancelledError:
            self.identity_map.clear()
            raise
        except Exception as e:
            logger.error(f"Extraction pass {generation} failed: {type(e).__name__}: {e}")
            self.identity_map.clear()
            return PageSnapshot.failed(f"{type(e).__name__}: {e}", generation=generation)

        if not self.identity_map.is_current(generation):
            logger.info(f"Extraction pass {generation} was superseded while summarizing")
        logger.debug(
            f"Extraction pass {generation} finished in {time.time() - start:.3f}s: "
            f"{len(snapshot.buttons)} buttons, {len(snapshot.headings)} headings, {len(snapshot.links)} links"
        )
        return snapshot

    async def _scan(self, generation: int) -> PageSnapshot:
        collected = []
        for selector, element_type in GROUPS:
            collected.extend(await self._collect(selector, element_type))
        classification = await self.classifier.classify(collected)
        groups: Dict[ElementType, List[ElementDescriptor]] = {element_type: [] for _, element_type in GROUPS}
        for descriptor in classification.descriptors:
            groups[descriptor.element_type].append(descriptor)
        buttons, headings, links, inputs, images = (groups[element_type] for _, element_type in GROUPS)
        form_count = len(await self.document.query_all(FORM_SELECTOR))

        corpus = PageCorpus(
            title=await self.document.title(),
            main_content=(await self.document.body_text())[:self.config.max_corpus_chars],
            headings=[{"text": h.text, "level": h.level or ""} for h in headings],
            buttons=[b.text for b in buttons],
            links=[link.text for link in links],
            form_count=form_count,
        )

        summary = await self.summarizer.summarize(buttons + headings + links + inputs + images, corpus)

        raw = {
            "generation": generation,
            "buttons": [d.to_dict() for d in rank(buttons)[:self.config.max_buttons]],
            "headings": [d.to_dict() for d in headings[:self.config.max_headings]],
            "links": [d.to_dict() for d in rank(links)[:self.config.max_links]],
            "inputs": [d.to_dict() for d in inputs[:self.config.max_inputs]],
            "form_count": form_count,
            "input_count": len(inputs),
            "image_count": len(images),
            "summary": summary.text,
            "summary_tier": summary.tier,
            "classified": classification.external,
            "error": None,
        }
        return sanitize(raw, strict=self.strict_sanitize)

    async def _collect(self, selector: str, element_type: ElementType) -> List[ElementDescriptor]:
        descriptors = []
        for handle in await self.document.query_all(selector):
            try:
                raw = await handle.describe()
            except DocumentError as e:
                logger.debug(f"Skipping element that could not be described: {e}")
                continue
            label = self._label(raw, element_type)
            if label is None:
                continue
            descriptors.append(self._register(handle, label, raw, element_type))
        return descriptors

    def _label(self, raw: Dict[str, Any], element_type: ElementType) -> Optional[str]:
        """Label for a kept element, or None when the element is skipped."""
        max_length = self.config.max_text_length
        if element_type == ElementType.IMAGE:
            label = extract_label(raw, IMAGE_LABEL_SOURCES, max_length)
        else:
            label = extract_label(raw, LABEL_SOURCES, max_length)

        if element_type == ElementType.LINK:
            if not label or len(label) > self.config.max_link_text_length:
                return None
        elif element_type != ElementType.INPUT and not label:
            return None
        return label

    def _register(
        self, handle: ElementHandle, label: str, raw: Dict[str, Any], element_type: ElementType
    ) -> ElementDescriptor:
        element_id = self.identity_map.register(handle)
        tag = str(raw.get("tag") or handle.tag_name).lower()
        attributes = {
            key: str(raw[source])
            for key, source in (("type", "type"), ("classes", "classes"), ("href", "href"))
            if raw.get(source)
        }
        is_heading = element_type == ElementType.HEADING
        return ElementDescriptor(
            id=element_id,
            text=label,
            element_type=element_type,
            tag_name=tag,
            attributes=attributes,
            width=float(raw.get("width") or 0),
            height=float(raw.get("height") or 0),
            is_visible=bool(raw.get("visible")),
            level=tag.upper() if is_heading else None,
            is_main_title=tag == "h1",
            is_navigation=bool(raw.get("in_navigation")) or str(raw.get("role", "")).lower() == "navigation",
        )

