"""
Navvra - page analysis and sync pipeline

Extracts the interactive structure of a web page, classifies and ranks it,
summarizes it and keeps presentation surfaces in sync with the document
through a typed message protocol.
"""

__version__ = "0.1.0"

# Data model
from .models import (
    Category,
    DisplayMode,
    ElementDescriptor,
    ElementType,
    PageCorpus,
    PageSnapshot,
)

# Configuration
from .config import (
    ClassifierConfig,
    DispatchConfig,
    ExtractionConfig,
    NavvraConfig,
    SummarizerConfig,
    SyncConfig,
)

# Errors
from .exceptions import NavvraError

# Documents
from .document import Document, ElementHandle, HtmlDocument

# Analysis pipeline
from .analysis import (
    ClassificationStrategy,
    Classifier,
    Extractor,
    IdentityMap,
    OpenRouterSummaryStrategy,
    Summarizer,
    SummaryStrategy,
)

# Sync protocol
from .sync import (
    ActionDispatcher,
    DocumentContext,
    MessageBus,
    OverlayContext,
    ToolbarContext,
    sanitize,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "Category",
    "DisplayMode",
    "ElementDescriptor",
    "ElementType",
    "PageCorpus",
    "PageSnapshot",
    # Configuration
    "ClassifierConfig",
    "DispatchConfig",
    "ExtractionConfig",
    "NavvraConfig",
    "SummarizerConfig",
    "SyncConfig",
    # Errors
    "NavvraError",
    # Documents
    "Document",
    "ElementHandle",
    "HtmlDocument",
    # Analysis
    "ClassificationStrategy",
    "Classifier",
    "Extractor",
    "IdentityMap",
    "OpenRouterSummaryStrategy",
    "Summarizer",
    "SummaryStrategy",
    # Sync
    "ActionDispatcher",
    "DocumentContext",
    "MessageBus",
    "OverlayContext",
    "ToolbarContext",
    "sanitize",
]
