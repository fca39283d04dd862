"""
Core data model: element descriptors, the summarizer corpus and page snapshots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ElementType(str, Enum):
    BUTTON = "button"
    HEADING = "heading"
    LINK = "link"
    INPUT = "input"
    IMAGE = "image"


class Category(str, Enum):
    PRIMARY_ACTION = "primary-action"
    NAVIGATION = "navigation"
    CONTENT = "content"
    SECONDARY_ACTION = "secondary-action"
    FORM = "form"
    NOISE = "noise"
    OTHER = "other"


class DisplayMode(str, Enum):
    FOCUS = "focus"
    TASK = "task"
    CONTENT = "content"


@dataclass
class ElementDescriptor:
    """Lightweight record describing one selected element. Holds no live reference."""
    # Identity (opaque, valid for one scan generation)
    id: str
    text: str
    element_type: ElementType
    tag_name: str

    # Attributes of interest
    attributes: Dict[str, str] = field(default_factory=dict)  # type, classes, href

    # Geometry in layout pixels
    width: float = 0.0
    height: float = 0.0
    is_visible: bool = False

    # Structure
    level: Optional[str] = None  # "H1".."H6" for headings
    is_main_title: bool = False
    is_navigation: bool = False  # Inside a navigation landmark

    # Assigned by the classifier
    category: Category = Category.OTHER
    confidence: float = 0.8
    priority: int = 2

    def to_dict(self) -> Dict[str, Any]:
        """Plain wire form of the descriptor."""
        return {
            "id": self.id,
            "text": self.text,
            "element_type": self.element_type.value,
            "tag_name": self.tag_name,
            "attributes": dict(self.attributes),
            "width": self.width,
            "height": self.height,
            "is_visible": self.is_visible,
            "level": self.level,
            "is_main_title": self.is_main_title,
            "is_navigation": self.is_navigation,
            "category": self.category.value,
            "confidence": self.confidence,
            "priority": self.priority,
        }


@dataclass
class PageCorpus:
    """Text corpus of one page, handed to summary strategies."""
    title: str = ""
    main_content: str = ""
    headings: List[Dict[str, str]] = field(default_factory=list)  # {"text", "level"}
    buttons: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    form_count: int = 0

    @property
    def is_substantial(self) -> bool:
        """
        True when there is body text and at least one heading or button.

        Links alone do not count: a page with no headings and no buttons
        is a zero-content page.
        """
        has_structure = bool(self.headings or self.buttons)
        return bool(self.main_content.strip()) and has_structure


class PageSnapshot(BaseModel):
    """
    Sanitized, transferable result of one scan.

    Descriptor lists contain plain dictionaries only. A snapshot with
    ``error`` set is a valid, renderable "scan failed" state.
    """
    model_config = ConfigDict(extra="forbid")

    generation: int = 0
    buttons: List[Dict[str, Any]] = Field(default_factory=list)
    headings: List[Dict[str, Any]] = Field(default_factory=list)
    links: List[Dict[str, Any]] = Field(default_factory=list)
    inputs: List[Dict[str, Any]] = Field(default_factory=list)
    form_count: int = 0
    input_count: int = 0
    image_count: int = 0
    summary: str = ""
    summary_tier: str = "none"  # external, enhanced, basic, none
    classified: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str, generation: int = 0) -> 'PageSnapshot':
        """Safe empty snapshot flagged with an error."""
        return cls(
            generation=generation,
            summary="Scan failed, please retry.",
            error=error,
        )

    @property
    def actions(self) -> List[Dict[str, Any]]:
        """Buttons followed by links, the actionable elements of the page."""
        return self.buttons + self.links
