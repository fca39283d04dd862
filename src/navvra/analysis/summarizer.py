"""
Page summarization with a three-tier fallback.

Tiers are tried in order and the first success wins:

1. ``external`` - a pluggable, fallible strategy (usually an LLM call) that
   turns the page corpus into a narrative. Absence, failure, timeout or a
   blank answer all fall through silently (logged only).
2. ``enhanced`` - local keyword analysis of the corpus: page type, purpose,
   complexity, the actions a visitor can take and content insights,
   rendered into a fixed multi-section template.
3. ``basic`` - one sentence from the main heading and element counts.
   This tier never fails.

Tiers 2 and 3 are deterministic: identical input always yields identical
output.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import SummarizerConfig
from ..models import ElementDescriptor, ElementType, PageCorpus
from .strategies import SummaryStrategy

logger = logging.getLogger(__name__)

TIER_EXTERNAL = "external"
TIER_ENHANCED = "enhanced"
TIER_BASIC = "basic"

NO_CONTENT_SUMMARY = "No significant content detected."

# Complexity thresholds on headings + buttons + links
SIMPLE_BELOW = 10
COMPLEX_ABOVE = 30

# Content length buckets (characters)
BRIEF_BELOW = 500
DETAILED_ABOVE = 2000

MAX_ACTION_TEXT = 30
MIN_HIGH_PRIORITY_ACTIONS = 3
FORM_ACTION_SLOTS = 5
FORM_ACTION = "Fill out forms"

HIGH_PRIORITY_ACTIONS = [
    "login", "sign in", "register", "sign up", "buy now", "purchase",
    "add to cart", "checkout", "download", "get started", "try now",
    "submit", "apply", "order", "shop now", "pay",
]
MEDIUM_PRIORITY_ACTIONS = [
    "search", "find", "contact", "support", "help", "learn more",
    "read more", "view", "see all", "explore", "click here",
]


def _words(*words: str) -> str:
    return r"\b(?:" + "|".join(re.escape(w) for w in words) + ")"


# Page type patterns, tested in this order by analyze_page_content
_AUTH = re.compile(_words("login", "sign in", "register", "sign up", "log in"), re.IGNORECASE)
_COMMERCE = re.compile(
    _words("buy", "purchase", "add to cart", "checkout", "order", "shop", "cart", "price") + r"|[$€£¥₹]",
    re.IGNORECASE,
)
_SEARCH = re.compile(_words("search", "find", "explore", "discover"), re.IGNORECASE)
_CONTACT = re.compile(_words("contact", "support", "help", "email", "phone", "call"), re.IGNORECASE)
_PUBLICATION = re.compile(_words("blog", "article", "news", "post", "read", "journal"), re.IGNORECASE)
_DASHBOARD = re.compile(_words("dashboard", "account", "profile", "settings") + r"|\bmy\b", re.IGNORECASE)
_HOMEPAGE = re.compile(_words("home", "welcome", "main"), re.IGNORECASE)

_REGISTRATION = re.compile(_words("sign up", "register", "subscribe"), re.IGNORECASE)
_PROMOTIONAL = re.compile(_words("sale", "discount", "promo", "offer"), re.IGNORECASE)
_CONTACT_INFO = re.compile(_words("contact", "email", "phone", "address"), re.IGNORECASE)


@dataclass
class PageAnalysis:
    page_type: str = "Informational Website"
    purpose: str = "Browse content and information"
    complexity: str = "Moderate"


@dataclass
class SummaryResult:
    """Outcome of one tier: text on success, error otherwise."""
    text: Optional[str] = None
    tier: str = TIER_BASIC
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


# =============================================================================
# Enhanced local analysis
# =============================================================================

def analyze_page_content(corpus: PageCorpus) -> PageAnalysis:
    """Determine page type, purpose and complexity from the corpus."""
    all_text = corpus.main_content
    button_text = " ".join(corpus.buttons)
    link_text = " ".join(corpus.links)
    with_buttons = f"{all_text} {button_text}"

    analysis = PageAnalysis()
    if _AUTH.search(with_buttons):
        analysis.page_type, analysis.purpose = "Authentication Portal", "Sign in or create an account"
    elif _COMMERCE.search(with_buttons):
        analysis.page_type, analysis.purpose = "E-commerce Store", "Browse and purchase products"
    elif _SEARCH.search(all_text) and corpus.form_count > 0:
        analysis.page_type, analysis.purpose = "Search Platform", "Find specific content or products"
    elif _CONTACT.search(f"{all_text} {link_text}"):
        analysis.page_type, analysis.purpose = "Contact/Support Page", "Get assistance or contact the organization"
    elif _PUBLICATION.search(all_text):
        analysis.page_type, analysis.purpose = "Content Publication", "Read articles and blog posts"
    elif _DASHBOARD.search(all_text):
        analysis.page_type, analysis.purpose = "User Dashboard", "Manage your account and preferences"
    elif _HOMEPAGE.search(corpus.title):
        analysis.page_type, analysis.purpose = "Homepage", "Navigate to different sections of the website"

    total = len(corpus.headings) + len(corpus.buttons) + len(corpus.links)
    if total > COMPLEX_ABOVE:
        analysis.complexity = "Complex"
    elif total < SIMPLE_BELOW:
        analysis.complexity = "Simple"
    return analysis


def format_action_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()[:MAX_ACTION_TEXT]


def _collect_actions(keywords: Sequence[str], texts: Sequence[str], actions: Dict[str, None]) -> None:
    for keyword in keywords:
        match = next((t for t in texts if t and keyword in t.lower()), None)
        if match:
            actions.setdefault(format_action_text(match), None)


def extract_user_actions(corpus: PageCorpus, max_actions: int = 6) -> List[str]:
    """Up to ``max_actions`` deduplicated actions, high-priority keywords first."""
    texts = list(corpus.buttons) + list(corpus.links)
    actions: Dict[str, None] = {}  # Insertion-ordered set

    _collect_actions(HIGH_PRIORITY_ACTIONS, texts, actions)
    if len(actions) < MIN_HIGH_PRIORITY_ACTIONS:
        _collect_actions(MEDIUM_PRIORITY_ACTIONS, texts, actions)
    if corpus.form_count > 0 and len(actions) < FORM_ACTION_SLOTS:
        actions.setdefault(FORM_ACTION, None)

    return list(actions)[:max_actions]


def analyze_content_insights(corpus: PageCorpus) -> List[str]:
    insights = []
    content = corpus.main_content

    if len(content) < BRIEF_BELOW:
        insights.append("Brief content")
    elif len(content) > DETAILED_ABOVE:
        insights.append("Detailed content")

    h2_count = sum(1 for h in corpus.headings if str(h.get("level", "")).upper() == "H2")
    if h2_count > 5:
        insights.append("Well-structured with multiple sections")
    elif h2_count > 0:
        insights.append("Organized content")

    if _REGISTRATION.search(content):
        insights.append("Encourages user registration")
    if _PROMOTIONAL.search(content):
        insights.append("Contains promotional content")
    if _CONTACT_INFO.search(content):
        insights.append("Provides contact information")

    return insights or ["General informational content"]


def format_comprehensive_summary(
    title: str, analysis: PageAnalysis, actions: List[str], insights: List[str]
) -> str:
    summary = f"🌐 **{title or 'Untitled page'}**\n\n"
    summary += f"📋 **Page Type**: {analysis.page_type}\n"
    summary += f"🎯 **Primary Purpose**: {analysis.purpose}\n"
    summary += f"⚡ **Complexity**: {analysis.complexity}\n\n"
    if actions:
        summary += f"🛠️ **Available Actions**: {', '.join(actions)}\n\n"
    summary += f"📊 **Content Insights**: {' • '.join(insights)}"
    return summary


def generate_enhanced_summary(corpus: PageCorpus, max_actions: int = 6) -> str:
    analysis = analyze_page_content(corpus)
    actions = extract_user_actions(corpus, max_actions)
    insights = analyze_content_insights(corpus)
    return format_comprehensive_summary(corpus.title, analysis, actions, insights)


def generate_basic_summary(descriptors: Sequence[ElementDescriptor]) -> str:
    headings = [d for d in descriptors if d.element_type == ElementType.HEADING]
    buttons = [d for d in descriptors if d.element_type == ElementType.BUTTON]
    if not headings and not buttons:
        return NO_CONTENT_SUMMARY

    h1 = next((h for h in headings if h.level == "H1"), None)
    if h1 is not None:
        main_heading = h1.text
    elif headings:
        main_heading = headings[0].text
    else:
        main_heading = "This page"

    return (
        f"🧭 **{main_heading}**\n\n"
        f"This appears to be a web page with {len(buttons)} interactive elements "
        f"and {len(headings)} content sections. Use the toolbar to navigate and take action."
    )


# =============================================================================
# Summarizer
# =============================================================================

class Summarizer:
    """
    Runs the summary tiers in order.

    Args:
        strategy: Optional external strategy (tier 1)
        config: Summarizer configuration (timeout, action cap)
    """

    def __init__(self, strategy: Optional[SummaryStrategy] = None, config: Optional[SummarizerConfig] = None):
        self.strategy = strategy
        self.config = config or SummarizerConfig()

    async def summarize(
        self, descriptors: Sequence[ElementDescriptor], corpus: Optional[PageCorpus]
    ) -> SummaryResult:
        tiers: List[Tuple[str, object]] = [
            (TIER_EXTERNAL, self._external),
            (TIER_ENHANCED, self._enhanced),
        ]
        for name, tier in tiers:
            result = await tier(descriptors, corpus)
            if result.ok:
                return result
            logger.info(f"Summary tier '{name}' skipped: {result.error}")
        return SummaryResult(text=generate_basic_summary(descriptors), tier=TIER_BASIC)

    async def _external(self, descriptors, corpus: Optional[PageCorpus]) -> SummaryResult:
        if self.strategy is None:
            return SummaryResult(tier=TIER_EXTERNAL, error="no external strategy configured")
        if corpus is None:
            return SummaryResult(tier=TIER_EXTERNAL, error="no corpus available")
        try:
            text = await asyncio.wait_for(self.strategy.summarize(corpus), timeout=self.config.external_timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"External summary strategy timed out after {self.config.external_timeout_s}s")
            return SummaryResult(tier=TIER_EXTERNAL, error="timeout")
        except Exception as e:
            logger.warning(f"External summary strategy failed, using local analysis: {e}")
            return SummaryResult(tier=TIER_EXTERNAL, error=str(e) or type(e).__name__)

        if not isinstance(text, str) or not text.strip():
            return SummaryResult(tier=TIER_EXTERNAL, error="empty response")
        return SummaryResult(text=text.strip(), tier=TIER_EXTERNAL)

    async def _enhanced(self, descriptors, corpus: Optional[PageCorpus]) -> SummaryResult:
        if corpus is None or not corpus.is_substantial:
            return SummaryResult(tier=TIER_ENHANCED, error="no substantial text corpus")
        return SummaryResult(
            text=generate_enhanced_summary(corpus, self.config.max_actions),
            tier=TIER_ENHANCED,
        )
