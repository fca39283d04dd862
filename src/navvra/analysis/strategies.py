"""
External strategies.

A summary strategy receives the page corpus and returns a narrative string,
or raises. A classification strategy receives descriptor dicts and returns
``{id, category, confidence}`` entries for the elements it recognised, or
raises. Callers wrap every call in a timeout and treat any failure as "keep
the local result", so strategies are free to raise.

Environment Variables (if not provided explicitly):
- OPENROUTER_API_KEY: enables the OpenRouter strategies via ``strategy_from_env``
  and ``classification_strategy_from_env``
"""

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Type

import aiohttp

from ..exceptions import ClassificationError, NavvraError, SummarizationError
from ..models import Category

if TYPE_CHECKING:
    from ..config import ClassifierConfig, SummarizerConfig
    from ..models import PageCorpus

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "google/gemini-flash-1.5"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"

CATEGORIES = tuple(c.value for c in Category)


class SummaryStrategy(ABC):
    """Pluggable, fallible summarizer: ``(corpus) -> str``."""

    name: str = "strategy"

    @abstractmethod
    async def summarize(self, corpus: "PageCorpus") -> str:
        """Return a narrative for the corpus or raise."""


class ClassificationStrategy(ABC):
    """Pluggable, fallible classifier: ``(descriptor dicts) -> [{id, category, confidence}]``."""

    name: str = "strategy"

    @abstractmethod
    async def classify(self, elements: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Return classifications for some or all of the elements, or raise."""


def build_prompt(corpus: "PageCorpus", max_chars: int = 6000) -> str:
    """Render the corpus as a single user prompt."""
    headings = "\n".join(f"- [{h.get('level', '')}] {h.get('text', '')}" for h in corpus.headings[:20])
    buttons = ", ".join(corpus.buttons[:20])
    links = ", ".join(corpus.links[:20])
    content = corpus.main_content[:max_chars]
    return (
        "Summarize this web page for a visitor in 2-3 sentences: what the page is for "
        "and the main actions available.\n\n"
        f"Title: {corpus.title}\n"
        f"Headings:\n{headings or '- (none)'}\n"
        f"Buttons: {buttons or '(none)'}\n"
        f"Links: {links or '(none)'}\n"
        f"Forms: {corpus.form_count}\n\n"
        f"Content:\n{content}"
    )


def build_classification_prompt(elements: Sequence[Dict[str, Any]], max_elements: int = 30) -> str:
    """Render descriptor dicts as a classification request asking for a JSON array."""
    listing = [
        {
            "id": e.get("id"),
            "text": e.get("text", ""),
            "element_type": e.get("element_type", ""),
            "tag_name": e.get("tag_name", ""),
        }
        for e in elements[:max_elements]
    ]
    return (
        f"Classify these web elements into categories: {', '.join(CATEGORIES)}.\n\n"
        f"Elements: {json.dumps(listing, ensure_ascii=False)}\n\n"
        "Return a JSON array with one object per element: id, category, confidence (0-1), reason."
    )


def parse_classification_text(text: str, strategy: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Pull the JSON array out of a model answer.

    Raises:
        ClassificationError: If the answer holds no parseable JSON array.
    """
    match = re.search(r"\[.*\]", text or "", re.DOTALL)
    if match is None:
        raise ClassificationError("No JSON array in classification response", strategy=strategy)
    try:
        entries = json.loads(match.group(0))
    except ValueError as e:
        raise ClassificationError(f"Malformed classification JSON: {e}", strategy=strategy)
    if not isinstance(entries, list):
        raise ClassificationError("Classification response is not a list", strategy=strategy)
    return [entry for entry in entries if isinstance(entry, dict)]


class OpenRouterClient:
    """
    Shared OpenRouter chat-completions plumbing. Subclasses set ``error_class``
    to the exception their callers recover from.

    Args:
        api_key: OpenRouter API key
        model: Model identifier
        base_url: Chat-completions endpoint
        timeout_s: HTTP timeout (callers apply their own timeout too)
    """

    name = "openrouter"
    error_class: Type[NavvraError]

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 30.0,
    ):
        if not api_key:
            raise self.error_class("OpenRouter API key is required", strategy=self.name)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout_s = timeout_s

    def get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def chat_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def post(self, payload: Dict[str, Any]) -> Tuple[int, str]:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                self.base_url,
                headers=self.get_headers(),
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout_s),
            ) as response:
                return response.status, await response.text()

    async def complete(self, payload: Dict[str, Any]) -> str:
        status, body = await self.post(payload)
        if status != 200:
            raise self.error_class(
                f"OpenRouter returned HTTP {status}",
                strategy=self.name,
                context={"status": status, "body": body[:200]},
            )
        return self.parse_response(body)

    def parse_response(self, body: str) -> str:
        try:
            data = json.loads(body)
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise self.error_class(f"Malformed OpenRouter response: {e}", strategy=self.name)
        if not isinstance(content, str) or not content.strip():
            raise self.error_class("OpenRouter returned an empty answer", strategy=self.name)
        return content.strip()


class OpenRouterSummaryStrategy(OpenRouterClient, SummaryStrategy):
    """
    Summarize through the OpenRouter chat-completions API.

    Args:
        max_prompt_chars: Cap on the page content included in the prompt
        (other arguments as for ``OpenRouterClient``)
    """

    error_class = SummarizationError

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        max_prompt_chars: int = 6000,
        timeout_s: float = 30.0,
    ):
        super().__init__(api_key, model=model, base_url=base_url, timeout_s=timeout_s)
        self.max_prompt_chars = max_prompt_chars

    def format_request_payload(self, corpus: "PageCorpus") -> Dict[str, Any]:
        return self.chat_payload(build_prompt(corpus, self.max_prompt_chars))

    async def summarize(self, corpus: "PageCorpus") -> str:
        return await self.complete(self.format_request_payload(corpus))


class OpenRouterClassificationStrategy(OpenRouterClient, ClassificationStrategy):
    """Classify descriptors through the OpenRouter chat-completions API."""

    error_class = ClassificationError

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        max_elements: int = 30,
        timeout_s: float = 30.0,
    ):
        super().__init__(api_key, model=model, base_url=base_url, timeout_s=timeout_s)
        self.max_elements = max_elements

    def format_request_payload(self, elements: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        return self.chat_payload(build_classification_prompt(elements, self.max_elements))

    async def classify(self, elements: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        content = await self.complete(self.format_request_payload(elements))
        return parse_classification_text(content, strategy=self.name)


def _api_key(config: Optional["SummarizerConfig"]) -> Optional[str]:
    return (config.openrouter_api_key if config else None) or os.getenv("OPENROUTER_API_KEY")


def strategy_from_env(config: Optional["SummarizerConfig"] = None) -> Optional[SummaryStrategy]:
    """Return an OpenRouter summary strategy when a key is configured, otherwise None."""
    api_key = _api_key(config)
    if not api_key:
        logger.debug("No OPENROUTER_API_KEY configured; external summaries disabled")
        return None
    if config is None:
        return OpenRouterSummaryStrategy(api_key=api_key)
    return OpenRouterSummaryStrategy(
        api_key=api_key,
        model=config.openrouter_model,
        base_url=config.openrouter_base_url,
        max_prompt_chars=config.max_prompt_chars,
    )


def classification_strategy_from_env(
    config: Optional["SummarizerConfig"] = None,
    classifier_config: Optional["ClassifierConfig"] = None,
) -> Optional[ClassificationStrategy]:
    """Return an OpenRouter classification strategy when a key is configured, otherwise None."""
    api_key = _api_key(config)
    if not api_key:
        logger.debug("No OPENROUTER_API_KEY configured; external classification disabled")
        return None
    return OpenRouterClassificationStrategy(
        api_key=api_key,
        model=config.openrouter_model if config else DEFAULT_MODEL,
        base_url=config.openrouter_base_url if config else DEFAULT_BASE_URL,
        max_elements=classifier_config.max_external_elements if classifier_config else 30,
    )
