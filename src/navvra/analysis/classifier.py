"""
Rule-based element classification.

Each descriptor is tested against an ordered rule table; the first rule
that matches decides its category and confidence. Order matters: a label
such as "Login menu" is a primary action, not navigation, because the
primary-action rule is tried first.

Keywords match at word starts on the lower-cased label, so "nav" matches
"navigation" but "ad" only matches as a whole word.
"""

import asyncio
import dataclasses
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import ClassifierConfig
from ..models import Category, ElementDescriptor, ElementType

if TYPE_CHECKING:
    from .strategies import ClassificationStrategy

logger = logging.getLogger(__name__)

# Minimum geometry for the "large element" boost
MIN_BOOST_WIDTH = 100
MIN_BOOST_HEIGHT = 30

LARGE_ELEMENT_BOOST = 2
VISIBLE_BOOST = 1

BASE_PRIORITY = {
    Category.PRIMARY_ACTION: 10,
    Category.FORM: 8,
    Category.CONTENT: 6,
    Category.SECONDARY_ACTION: 4,
    Category.NAVIGATION: 3,
    Category.OTHER: 2,
    Category.NOISE: 1,
}
MAIN_TITLE_PRIORITY = 8

DEFAULT_CONFIDENCE = 0.8

_FORM_TAGS = ("input", "textarea", "select")


def _keywords(*words: str) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + ")", re.IGNORECASE)


PRIMARY_ACTION_PATTERN = _keywords(
    "login", "log in", "signin", "sign in", "register", "signup", "sign up",
    "buy", "purchase", "add to cart", "checkout", "submit", "apply",
    "download", "order", "pay",
)
NAVIGATION_PATTERN = _keywords("nav", "menu", "home", "about", "contact", "products", "services")
SECONDARY_ACTION_PATTERN = _keywords("learn more", "read more", "view", "see all", "explore", "click here")
FORM_PATTERN = _keywords("search", "find", "email", "password", "input", "form")
NOISE_PATTERN = re.compile(
    r"\b(?:ads?\b|advertisement|sponsored|promo|promotion|banner|popup)", re.IGNORECASE
)


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of the ordered rule table."""
    category: Category
    confidence: float
    matches: Callable[[ElementDescriptor, str], bool]


def _is_heading(descriptor: ElementDescriptor, text: str) -> bool:
    tag = descriptor.tag_name.lower()
    return descriptor.element_type == ElementType.HEADING or bool(re.fullmatch(r"h[1-6]", tag))


def _is_form_control(descriptor: ElementDescriptor, text: str) -> bool:
    return (
        bool(FORM_PATTERN.search(text))
        or descriptor.tag_name.lower() in _FORM_TAGS
        or descriptor.element_type == ElementType.INPUT
    )


RULES: List[ClassificationRule] = [
    ClassificationRule(Category.PRIMARY_ACTION, 0.95,
                       lambda d, text: bool(PRIMARY_ACTION_PATTERN.search(text))),
    ClassificationRule(Category.NAVIGATION, 0.90,
                       lambda d, text: bool(NAVIGATION_PATTERN.search(text)) or d.is_navigation),
    ClassificationRule(Category.CONTENT, 0.85, _is_heading),
    ClassificationRule(Category.SECONDARY_ACTION, 0.70,
                       lambda d, text: bool(SECONDARY_ACTION_PATTERN.search(text))),
    ClassificationRule(Category.FORM, 0.90, _is_form_control),
    ClassificationRule(Category.NOISE, 0.80,
                       lambda d, text: bool(NOISE_PATTERN.search(text))),
]


def calculate_priority(category: Category, descriptor: ElementDescriptor) -> int:
    """Base priority for the category plus geometry and visibility boosts."""
    if category == Category.CONTENT and descriptor.is_main_title:
        priority = MAIN_TITLE_PRIORITY
    else:
        priority = BASE_PRIORITY.get(category, BASE_PRIORITY[Category.OTHER])

    if descriptor.width > MIN_BOOST_WIDTH and descriptor.height > MIN_BOOST_HEIGHT:
        priority += LARGE_ELEMENT_BOOST
    if descriptor.is_visible:
        priority += VISIBLE_BOOST
    return priority


def classify_one(descriptor: ElementDescriptor) -> ElementDescriptor:
    """Classify a single descriptor. Never raises."""
    try:
        text = (descriptor.text or "").lower()
        category, confidence = Category.OTHER, DEFAULT_CONFIDENCE
        for rule in RULES:
            if rule.matches(descriptor, text):
                category, confidence = rule.category, rule.confidence
                break
        return dataclasses.replace(
            descriptor,
            category=category,
            confidence=confidence,
            priority=calculate_priority(category, descriptor),
        )
    except Exception as e:
        logger.warning(f"Classification failed for {getattr(descriptor, 'id', '?')}, defaulting to other: {e}")
        try:
            return dataclasses.replace(
                descriptor,
                category=Category.OTHER,
                confidence=DEFAULT_CONFIDENCE,
                priority=BASE_PRIORITY[Category.OTHER],
            )
        except TypeError:
            # Not a descriptor at all; nothing sensible to return but the input
            return descriptor


def classify(descriptors: Iterable[ElementDescriptor]) -> List[ElementDescriptor]:
    """Classify descriptors in order. Pure: inputs are not modified."""
    return [classify_one(d) for d in descriptors]


def rank(descriptors: Iterable[ElementDescriptor]) -> List[ElementDescriptor]:
    """Sort by priority, highest first; ties keep extraction order."""
    return sorted(descriptors, key=lambda d: -getattr(d, "priority", 0))


# =============================================================================
# External classification
# =============================================================================

@dataclass
class ClassificationResult:
    """Classified descriptors plus whether an external strategy contributed."""
    descriptors: List[ElementDescriptor] = field(default_factory=list)
    external: bool = False
    merged: int = 0


def merge_classifications(
    rule_based: Sequence[ElementDescriptor], entries: Sequence[Dict[str, Any]]
) -> Tuple[List[ElementDescriptor], int]:
    """
    Overlay external ``{id, category, confidence}`` entries on rule-based results.

    Entries naming an unknown id or category are ignored; the rule-based
    classification stands for every element without a usable entry.
    Priority is recomputed from the merged category.
    """
    by_id: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        if isinstance(entry, dict) and isinstance(entry.get("id"), str):
            by_id[entry["id"]] = entry

    merged, count = [], 0
    for descriptor in rule_based:
        entry = by_id.get(descriptor.id)
        if entry is None:
            merged.append(descriptor)
            continue
        try:
            category = Category(entry.get("category"))
        except ValueError:
            logger.debug(f"Ignoring external category {entry.get('category')!r} for {descriptor.id}")
            merged.append(descriptor)
            continue
        confidence = entry.get("confidence")
        if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
            confidence = min(max(float(confidence), 0.0), 1.0)
        else:
            confidence = descriptor.confidence
        merged.append(dataclasses.replace(
            descriptor,
            category=category,
            confidence=confidence,
            priority=calculate_priority(category, descriptor),
        ))
        count += 1
    return merged, count


class Classifier:
    """
    Rule-based classification, optionally refined by an external strategy.

    The rule table always runs. When a strategy is configured its answer is
    merged over the rule-based result; absence, failure, timeout or an
    unusable answer keep the rule-based result unchanged.

    Args:
        strategy: Optional external classification strategy
        config: Classifier configuration (timeout, element cap)
    """

    def __init__(
        self,
        strategy: Optional["ClassificationStrategy"] = None,
        config: Optional[ClassifierConfig] = None,
    ):
        self.strategy = strategy
        self.config = config or ClassifierConfig()

    async def classify(self, descriptors: Sequence[ElementDescriptor]) -> ClassificationResult:
        rule_based = classify(descriptors)
        if self.strategy is None or not rule_based:
            return ClassificationResult(descriptors=rule_based)

        elements = [d.to_dict() for d in rule_based[:self.config.max_external_elements]]
        try:
            entries = await asyncio.wait_for(
                self.strategy.classify(elements), timeout=self.config.external_timeout_s
            )
        except asyncio.TimeoutError:
            logger.warning(f"External classification timed out after {self.config.external_timeout_s}s")
            return ClassificationResult(descriptors=rule_based)
        except Exception as e:
            logger.warning(f"External classification failed, using rule-based: {e}")
            return ClassificationResult(descriptors=rule_based)

        if not isinstance(entries, list):
            logger.warning(f"External classification returned {type(entries).__name__}, using rule-based")
            return ClassificationResult(descriptors=rule_based)

        merged, count = merge_classifications(rule_based, entries)
        logger.debug(f"External classification refined {count} of {len(rule_based)} elements")
        return ClassificationResult(descriptors=merged, external=True, merged=count)
