"""Sync protocol between the document context and presentation contexts."""

from .bus import MessageBus
from .context import DocumentContext
from .dispatcher import ActionDispatcher, ActionKind
from .messages import (
    ActionResultMessage,
    ActivateOverlayMessage,
    Message,
    ModeChangeMessage,
    RequestRescanMessage,
    RequestScanMessage,
    ScanResultMessage,
    ScrollToMessage,
    TriggerActionMessage,
    parse_message,
    validate_message,
)
from .modes import ModeController
from .presentation import (
    ContextState,
    OverlayContext,
    OverlayView,
    PresentationContext,
    ToolbarContext,
    ToolbarView,
)
from ..sanitizer import sanitize, sanitize_value

__all__ = [
    "ActionDispatcher",
    "ActionKind",
    "ActionResultMessage",
    "ActivateOverlayMessage",
    "ContextState",
    "DocumentContext",
    "Message",
    "MessageBus",
    "ModeChangeMessage",
    "ModeController",
    "OverlayContext",
    "OverlayView",
    "PresentationContext",
    "RequestRescanMessage",
    "RequestScanMessage",
    "ScanResultMessage",
    "ScrollToMessage",
    "ToolbarContext",
    "ToolbarView",
    "TriggerActionMessage",
    "parse_message",
    "sanitize",
    "sanitize_value",
]
