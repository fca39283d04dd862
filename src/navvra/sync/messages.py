"""
Wire messages exchanged between the document context and presentation contexts.

Every message is a ``{type, payload}`` envelope. The set of types is closed;
``parse_message`` ignores unknown types instead of treating them as errors,
and rejects malformed payloads of known types.
"""

import logging
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..exceptions import MessageFormatError
from ..models import DisplayMode, PageSnapshot

logger = logging.getLogger(__name__)

REQUEST_SCAN = "request-scan"
SCAN_RESULT = "scan-result"
ACTIVATE_OVERLAY = "activate-overlay"
SCROLL_TO = "scroll-to"
TRIGGER_ACTION = "trigger-action"
MODE_CHANGE = "mode-change"
REQUEST_RESCAN = "request-rescan"
ACTION_RESULT = "action-result"

MESSAGE_TYPES = (
    REQUEST_SCAN, SCAN_RESULT, ACTIVATE_OVERLAY, SCROLL_TO,
    TRIGGER_ACTION, MODE_CHANGE, REQUEST_RESCAN, ACTION_RESULT,
)


class EmptyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ElementPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    element_id: str = Field(min_length=1)


class ScrollPayload(ElementPayload):
    focus: bool = False  # Also move keyboard focus to the element


class ModePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: DisplayMode


class ActionResultPayload(BaseModel):
    """Outcome of an activation or dispatch request."""
    model_config = ConfigDict(extra="ignore")

    action: Literal["activate-overlay", "scroll", "click", "focus"]
    success: bool
    element_id: Optional[str] = None
    stale: bool = False  # Identifier belonged to a superseded generation


class Message(BaseModel):
    """Base envelope."""
    model_config = ConfigDict(frozen=True)

    type: str
    payload: Any = None

    def to_wire(self) -> Dict[str, Any]:
        """JSON-safe envelope."""
        return self.model_dump(mode="json")


class RequestScanMessage(Message):
    type: Literal["request-scan"] = REQUEST_SCAN
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class ScanResultMessage(Message):
    type: Literal["scan-result"] = SCAN_RESULT
    payload: PageSnapshot


class ActivateOverlayMessage(Message):
    type: Literal["activate-overlay"] = ACTIVATE_OVERLAY
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class ScrollToMessage(Message):
    type: Literal["scroll-to"] = SCROLL_TO
    payload: ScrollPayload

    @classmethod
    def for_element(cls, element_id: str, focus: bool = False) -> 'ScrollToMessage':
        return cls(payload=ScrollPayload(element_id=element_id, focus=focus))


class TriggerActionMessage(Message):
    type: Literal["trigger-action"] = TRIGGER_ACTION
    payload: ElementPayload

    @classmethod
    def for_element(cls, element_id: str) -> 'TriggerActionMessage':
        return cls(payload=ElementPayload(element_id=element_id))


class ModeChangeMessage(Message):
    type: Literal["mode-change"] = MODE_CHANGE
    payload: ModePayload

    @classmethod
    def for_mode(cls, mode: Union[str, DisplayMode]) -> 'ModeChangeMessage':
        return cls(payload=ModePayload(mode=mode))


class RequestRescanMessage(Message):
    type: Literal["request-rescan"] = REQUEST_RESCAN
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class ActionResultMessage(Message):
    type: Literal["action-result"] = ACTION_RESULT
    payload: ActionResultPayload


AnyMessage = Annotated[
    Union[
        RequestScanMessage,
        ScanResultMessage,
        ActivateOverlayMessage,
        ScrollToMessage,
        TriggerActionMessage,
        ModeChangeMessage,
        RequestRescanMessage,
        ActionResultMessage,
    ],
    Field(discriminator="type"),
]

_message_adapter = TypeAdapter(AnyMessage)


def validate_message(raw: Any) -> Optional[Message]:
    """
    Parse an envelope strictly.

    Returns None for unknown message types.

    Raises:
        MessageFormatError: If the envelope is not a mapping or a known type carries an invalid payload.
    """
    if isinstance(raw, Message):
        raw = raw.to_wire()
    if not isinstance(raw, dict):
        raise MessageFormatError(f"Envelope must be a mapping, got {type(raw).__name__}")

    message_type = raw.get("type")
    if message_type not in MESSAGE_TYPES:
        return None

    envelope = {"type": message_type, "payload": raw.get("payload") or {}}
    try:
        return _message_adapter.validate_python(envelope)
    except ValidationError as e:
        raise MessageFormatError(f"Invalid payload for '{message_type}': {e}", message_type=message_type)


def parse_message(raw: Any) -> Optional[Message]:
    """Parse an envelope at a context boundary. Unknown or malformed envelopes yield None."""
    try:
        message = validate_message(raw)
    except MessageFormatError as e:
        logger.warning(f"Rejected message: {e}")
        return None
    if message is None:
        logger.debug(f"Ignoring message of unknown type {raw.get('type')!r}")
    return message
