"""
Configuration classes for the analysis and sync pipeline.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import ConfigurationError


@dataclass
class ExtractionConfig:
    """Configuration for a single extraction pass."""
    # Result caps (bound summary and UI size)
    max_buttons: int = 20
    max_headings: int = 20
    max_links: int = 15  # Top N links by priority
    max_inputs: int = 20

    # Label handling
    max_text_length: int = 100
    max_link_text_length: int = 50

    # Corpus handed to the summarizer
    max_corpus_chars: int = 10000

    def __post_init__(self):
        for name in ("max_buttons", "max_headings", "max_links", "max_inputs",
                     "max_text_length", "max_link_text_length", "max_corpus_chars"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ConfigurationError(
                    f"{name} must be a non-negative integer, got {value!r}",
                    config_field=name,
                    config_value=value,
                )


@dataclass
class SummarizerConfig:
    """Configuration for the summarizer tiers."""
    external_timeout_s: float = 15.0
    max_actions: int = 6

    # OpenRouter strategy settings
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = "google/gemini-flash-1.5"
    openrouter_base_url: str = "https://openrouter.ai/api/v1/chat/completions"
    max_prompt_chars: int = 6000

    def __post_init__(self):
        if self.external_timeout_s <= 0:
            raise ConfigurationError(
                "external_timeout_s must be positive",
                config_field="external_timeout_s",
                config_value=self.external_timeout_s,
            )


@dataclass
class SyncConfig:
    """Configuration for the document context message hub."""
    rescan_debounce_ms: int = 300  # Coalescing window for rescan requests
    mutation_debounce_ms: int = 300  # Coalescing window for document change signals
    max_listener_errors: int = 5
    message_history_limit: int = 1000  # Envelopes kept on the bus for inspection

    def __post_init__(self):
        if self.rescan_debounce_ms < 0 or self.mutation_debounce_ms < 0:
            raise ConfigurationError(
                "debounce windows must be >= 0 ms",
                config_field="rescan_debounce_ms",
                config_value=(self.rescan_debounce_ms, self.mutation_debounce_ms),
            )
        if self.message_history_limit < 1:
            raise ConfigurationError(
                "message_history_limit must be at least 1",
                config_field="message_history_limit",
                config_value=self.message_history_limit,
            )


@dataclass
class ClassifierConfig:
    """Configuration for the optional external classification pass."""
    external_timeout_s: float = 10.0
    max_external_elements: int = 30  # Descriptors sent to the external strategy

    def __post_init__(self):
        if self.external_timeout_s <= 0:
            raise ConfigurationError(
                "external_timeout_s must be positive",
                config_field="external_timeout_s",
                config_value=self.external_timeout_s,
            )
        if self.max_external_elements < 1:
            raise ConfigurationError(
                "max_external_elements must be at least 1",
                config_field="max_external_elements",
                config_value=self.max_external_elements,
            )


@dataclass
class DispatchConfig:
    """Configuration for action dispatch."""
    highlight_duration_ms: int = 2000  # Transient highlight self-reverts after this delay

    def __post_init__(self):
        if not isinstance(self.highlight_duration_ms, int) or self.highlight_duration_ms < 0:
            raise ConfigurationError(
                f"highlight_duration_ms must be a non-negative integer, got {self.highlight_duration_ms!r}",
                config_field="highlight_duration_ms",
                config_value=self.highlight_duration_ms,
            )


@dataclass
class NavvraConfig:
    """Aggregate configuration for a document context."""
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    summarizer: SummarizerConfig = field(default_factory=SummarizerConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)

    # Fail loudly on unsanitizable values (development) instead of dropping them
    strict_sanitize: bool = False

    @classmethod
    def from_env(cls) -> 'NavvraConfig':
        """
        Build a config from environment variables.

        Recognized variables:
            NAVVRA_RESCAN_DEBOUNCE_MS, NAVVRA_MUTATION_DEBOUNCE_MS,
            NAVVRA_HIGHLIGHT_MS, NAVVRA_MAX_LINKS, NAVVRA_EXTERNAL_TIMEOUT_S,
            NAVVRA_CLASSIFY_TIMEOUT_S, NAVVRA_STRICT_SANITIZE, NAVVRA_OPENROUTER_MODEL,
            OPENROUTER_API_KEY
        """
        return cls(
            extraction=ExtractionConfig(
                max_links=_env_int("NAVVRA_MAX_LINKS", 15),
            ),
            summarizer=SummarizerConfig(
                external_timeout_s=_env_float("NAVVRA_EXTERNAL_TIMEOUT_S", 15.0),
                openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
                openrouter_model=os.getenv("NAVVRA_OPENROUTER_MODEL", "google/gemini-flash-1.5"),
            ),
            classifier=ClassifierConfig(
                external_timeout_s=_env_float("NAVVRA_CLASSIFY_TIMEOUT_S", 10.0),
            ),
            sync=SyncConfig(
                rescan_debounce_ms=_env_int("NAVVRA_RESCAN_DEBOUNCE_MS", 300),
                mutation_debounce_ms=_env_int("NAVVRA_MUTATION_DEBOUNCE_MS", 300),
            ),
            dispatch=DispatchConfig(
                highlight_duration_ms=_env_int("NAVVRA_HIGHLIGHT_MS", 2000),
            ),
            strict_sanitize=os.getenv("NAVVRA_STRICT_SANITIZE", "").lower() in ("1", "true", "yes"),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer, got {raw!r}",
            config_field=name,
            config_value=raw,
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {name} must be a number, got {raw!r}",
            config_field=name,
            config_value=raw,
        )
