"""
Navvra Exception Hierarchy

This module defines the exception hierarchy used across the analysis and
synchronisation pipeline. Every error carries a stable error code, optional
context and a user-facing message so that faults can be logged, serialized
and surfaced consistently.

Most runtime faults are recovered where they occur (an extraction fault
becomes an error-flagged snapshot, a summarization fault falls through to
the next tier, a stale identifier is reported as ``False``). These classes
exist for the places that do raise: configuration, strict sanitization and
document backends.
"""

import time
from typing import Any, Dict, Optional


class NavvraError(Exception):
    """
    Base exception class for all Navvra errors.

    Attributes:
        error_code: Unique error code for programmatic handling
        timestamp: When the error occurred
        context: Additional context information
        user_message: User-friendly error message
        developer_message: Detailed technical error message
        suggestion: Suggested fix or next steps (if applicable)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "NAVVRA_ERROR",
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.timestamp = time.time()
        self.context = context or {}
        self.user_message = user_message or message
        self.developer_message = message
        self.suggestion = suggestion

    @property
    def message(self) -> str:
        return self.developer_message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.developer_message,
            "user_message": self.user_message,
            "timestamp": self.timestamp,
            "context": self.context,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.developer_message}"


class ConfigurationError(NavvraError):
    """Raised when a configuration value is missing or out of range."""

    def __init__(
        self,
        message: str,
        config_field: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        self.config_field = config_field
        self.config_value = config_value

        context = kwargs.pop("context", None) or {}
        if config_field:
            context["config_field"] = config_field
        if config_value is not None:
            context["config_value"] = str(config_value)

        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "CONFIGURATION_ERROR"),
            context=context,
            suggestion=kwargs.pop("suggestion", "Check the NAVVRA_* environment variables and config values."),
            **kwargs
        )


# =============================================================================
# DOCUMENT AND EXTRACTION ERRORS
# =============================================================================

class DocumentError(NavvraError):
    """Raised by a document backend when the page cannot be queried or acted on."""

    def __init__(self, message: str, selector: Optional[str] = None, **kwargs):
        self.selector = selector

        context = kwargs.pop("context", None) or {}
        if selector:
            context["selector"] = selector

        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "DOCUMENT_ERROR"),
            context=context,
            **kwargs
        )


class ExtractionError(NavvraError):
    """
    Raised inside an extraction pass when document access or selection fails.

    The Extractor converts this (and any other fault) into an error-flagged
    snapshot; it never escapes ``Extractor.extract``.
    """

    def __init__(self, message: str, generation: Optional[int] = None, **kwargs):
        self.generation = generation

        context = kwargs.pop("context", None) or {}
        if generation is not None:
            context["generation"] = generation

        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "EXTRACTION_ERROR"),
            context=context,
            user_message=kwargs.pop("user_message", "Scan failed, please retry."),
            **kwargs
        )


class SummarizationError(NavvraError):
    """Raised by an external summary strategy; always recovered by the Summarizer."""

    def __init__(self, message: str, strategy: Optional[str] = None, **kwargs):
        self.strategy = strategy

        context = kwargs.pop("context", None) or {}
        if strategy:
            context["strategy"] = strategy

        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "SUMMARIZATION_ERROR"),
            context=context,
            **kwargs
        )


class ClassificationError(NavvraError):
    """Raised by an external classification strategy; the rule-based result is kept."""

    def __init__(self, message: str, strategy: Optional[str] = None, **kwargs):
        self.strategy = strategy

        context = kwargs.pop("context", None) or {}
        if strategy:
            context["strategy"] = strategy

        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "CLASSIFICATION_ERROR"),
            context=context,
            **kwargs
        )


class SanitizationError(NavvraError):
    """
    Raised in strict mode when a value cannot be normalized to plain data.

    This is a programming error: something that is not a descriptor, mapping,
    sequence or scalar reached the context boundary.
    """

    def __init__(self, message: str, path: Optional[str] = None, value_type: Optional[str] = None, **kwargs):
        self.path = path
        self.value_type = value_type

        context = kwargs.pop("context", None) or {}
        if path:
            context["path"] = path
        if value_type:
            context["value_type"] = value_type

        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "SANITIZATION_ERROR"),
            context=context,
            suggestion=kwargs.pop("suggestion", "Only plain data may cross a context boundary."),
            **kwargs
        )


# =============================================================================
# PROTOCOL ERRORS
# =============================================================================

class ProtocolError(NavvraError):
    """Base class for message protocol errors."""

    def __init__(self, message: str, **kwargs):
        error_code = kwargs.pop("error_code", "PROTOCOL_ERROR")
        super().__init__(message, error_code=error_code, **kwargs)


class MessageFormatError(ProtocolError):
    """
    Raised when an envelope of a known type carries an invalid payload.

    Examples:
    - Non-mapping envelope
    - ``scroll-to`` without an element id
    - ``mode-change`` with an unrecognized mode
    """

    def __init__(self, message: str, message_type: Optional[str] = None, **kwargs):
        self.message_type = message_type

        context = kwargs.pop("context", None) or {}
        if message_type:
            context["message_type"] = message_type

        super().__init__(
            message,
            error_code="MESSAGE_FORMAT_ERROR",
            context=context,
            **kwargs
        )
