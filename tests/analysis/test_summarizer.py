"""
Tests for the navvra.analysis.summarizer module.

This module tests:
- Local page analysis (page type precedence, complexity, actions, insights)
- Basic summary for sparse pages
- Three-tier fallback of the Summarizer
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from navvra.analysis.summarizer import (
    FORM_ACTION,
    NO_CONTENT_SUMMARY,
    TIER_BASIC,
    TIER_ENHANCED,
    TIER_EXTERNAL,
    Summarizer,
    analyze_content_insights,
    analyze_page_content,
    extract_user_actions,
    generate_basic_summary,
    generate_enhanced_summary,
)
from navvra.config import SummarizerConfig
from navvra.models import ElementType, PageCorpus


@pytest.fixture
def welcome_corpus():
    return PageCorpus(
        title="Welcome Home",
        main_content="Sign in to continue",
        buttons=["Login"],
        form_count=0,
    )


@pytest.fixture
def shop_corpus():
    headings = [{"text": f"Product {i}", "level": "H2"} for i in range(12)]
    buttons = ["Add to Cart", "Checkout"] + [f"Option {i}" for i in range(14)]
    links = [f"Category {i}" for i in range(16)]
    return PageCorpus(
        title="Gadget Shop",
        main_content="Headphones $199, speakers €89 and chargers £25.",
        headings=headings,
        buttons=buttons,
        links=links,
    )


# =============================================================================
# Page Analysis
# =============================================================================

class TestAnalyzePageContent:
    """Tests for page type, purpose and complexity."""

    def test_authentication_portal(self, welcome_corpus):
        analysis = analyze_page_content(welcome_corpus)

        assert analysis.page_type == "Authentication Portal"
        assert analysis.purpose == "Sign in or create an account"
        assert analysis.complexity == "Simple"

    def test_ecommerce_complex(self, shop_corpus):
        analysis = analyze_page_content(shop_corpus)

        assert analysis.page_type == "E-commerce Store"
        assert analysis.complexity == "Complex"

    def test_price_symbol_alone_means_commerce(self):
        corpus = PageCorpus(title="Catalogue", main_content="Lamp ₹1200", headings=[{"text": "Lamps", "level": "H1"}])

        assert analyze_page_content(corpus).page_type == "E-commerce Store"

    def test_search_requires_form(self):
        corpus = PageCorpus(title="Index", main_content="Search our archive", links=["Archive"])

        assert analyze_page_content(corpus).page_type != "Search Platform"

        corpus.form_count = 1
        assert analyze_page_content(corpus).page_type == "Search Platform"

    def test_authentication_beats_commerce(self):
        corpus = PageCorpus(main_content="Log in to checkout", buttons=["Continue"])

        assert analyze_page_content(corpus).page_type == "Authentication Portal"

    def test_homepage_by_title(self):
        corpus = PageCorpus(title="Welcome", main_content="Nothing specific here", headings=[{"text": "Hi", "level": "H1"}])

        assert analyze_page_content(corpus).page_type == "Homepage"

    def test_informational_fallback(self):
        corpus = PageCorpus(title="Notes", main_content="Plain words", headings=[{"text": "Notes", "level": "H1"}])

        analysis = analyze_page_content(corpus)

        assert analysis.page_type == "Informational Website"
        assert analysis.purpose == "Browse content and information"

    def test_moderate_complexity(self):
        corpus = PageCorpus(main_content="x", buttons=[f"b{i}" for i in range(10)])

        assert analyze_page_content(corpus).complexity == "Moderate"


# =============================================================================
# Actions and Insights
# =============================================================================

class TestUserActions:

    def test_login_action(self, welcome_corpus):
        assert extract_user_actions(welcome_corpus) == ["Login"]

    def test_high_priority_first_and_capped(self):
        corpus = PageCorpus(buttons=[
            "Sign in", "Register", "Buy now", "Checkout", "Download app", "Apply today", "Pay", "Search",
        ])

        actions = extract_user_actions(corpus)

        assert len(actions) == 6
        assert "Search" not in actions

    def test_medium_list_only_when_few_high(self):
        corpus = PageCorpus(buttons=["Search", "Learn more"], links=["Contact us"])

        assert extract_user_actions(corpus) == ["Search", "Contact us", "Learn more"]

    def test_deduplicated(self):
        corpus = PageCorpus(buttons=["Buy now", "Buy now"])

        assert extract_user_actions(corpus) == ["Buy now"]

    def test_fill_out_forms(self):
        corpus = PageCorpus(buttons=["Submit"], form_count=1)

        assert extract_user_actions(corpus) == ["Submit", FORM_ACTION]

    def test_action_text_truncated(self):
        corpus = PageCorpus(buttons=["Download the complete annual report for 2024"])

        assert extract_user_actions(corpus) == ["Download the complete annual r"]


class TestContentInsights:

    def test_default_insight_for_medium_plain_content(self):
        corpus = PageCorpus(main_content="word " * 200)

        assert analyze_content_insights(corpus) == ["General informational content"]

    def test_brief_and_structured(self):
        corpus = PageCorpus(
            main_content="Subscribe for a discount. Email us.",
            headings=[{"text": "A", "level": "H2"}],
        )

        insights = analyze_content_insights(corpus)

        assert insights == [
            "Brief content",
            "Organized content",
            "Encourages user registration",
            "Contains promotional content",
            "Provides contact information",
        ]

    def test_detailed_and_well_structured(self):
        corpus = PageCorpus(
            main_content="lorem " * 500,
            headings=[{"text": str(i), "level": "H2"} for i in range(6)],
        )

        assert analyze_content_insights(corpus) == [
            "Detailed content",
            "Well-structured with multiple sections",
        ]


# =============================================================================
# Summaries
# =============================================================================

class TestSummaries:

    def test_enhanced_template(self, welcome_corpus):
        summary = generate_enhanced_summary(welcome_corpus)

        assert summary.startswith("🌐 **Welcome Home**")
        assert "📋 **Page Type**: Authentication Portal" in summary
        assert "🛠️ **Available Actions**: Login" in summary
        assert "📊 **Content Insights**:" in summary

    def test_enhanced_is_deterministic(self, shop_corpus):
        assert generate_enhanced_summary(shop_corpus) == generate_enhanced_summary(shop_corpus)

    def test_basic_no_content(self, make_descriptor):
        descriptors = [make_descriptor("Home", ElementType.LINK)]

        assert generate_basic_summary(descriptors) == NO_CONTENT_SUMMARY
        assert generate_basic_summary([]) == NO_CONTENT_SUMMARY

    def test_basic_uses_h1(self, make_descriptor):
        descriptors = [
            make_descriptor("Intro", ElementType.HEADING, tag_name="h2"),
            make_descriptor("Main Title", ElementType.HEADING, tag_name="h1"),
            make_descriptor("Go"),
        ]

        summary = generate_basic_summary(descriptors)

        assert summary.startswith("🧭 **Main Title**")
        assert "1 interactive elements and 2 content sections" in summary

    def test_basic_without_headings(self, make_descriptor):
        summary = generate_basic_summary([make_descriptor("Go")])

        assert summary.startswith("🧭 **This page**")


# =============================================================================
# Summarizer tiers
# =============================================================================

class TestSummarizer:
    """Tests for the three-tier fallback."""

    @pytest.mark.asyncio
    async def test_external_wins(self, welcome_corpus):
        strategy = Mock()
        strategy.summarize = AsyncMock(return_value="  A sign-in page.  ")
        summarizer = Summarizer(strategy)

        result = await summarizer.summarize([], welcome_corpus)

        assert result.tier == TIER_EXTERNAL
        assert result.text == "A sign-in page."
        strategy.summarize.assert_awaited_once_with(welcome_corpus)

    @pytest.mark.asyncio
    async def test_failing_strategy_equals_enhanced(self, welcome_corpus):
        strategy = Mock()
        strategy.summarize = AsyncMock(side_effect=RuntimeError("quota exceeded"))

        with_failure = await Summarizer(strategy).summarize([], welcome_corpus)
        without = await Summarizer().summarize([], welcome_corpus)

        assert with_failure.tier == TIER_ENHANCED
        assert with_failure.text == without.text == generate_enhanced_summary(welcome_corpus)

    @pytest.mark.asyncio
    async def test_timeout_falls_through(self, welcome_corpus):
        async def slow(corpus):
            await asyncio.sleep(10)
            return "too late"

        strategy = Mock()
        strategy.summarize = slow
        summarizer = Summarizer(strategy, SummarizerConfig(external_timeout_s=0.01))

        result = await summarizer.summarize([], welcome_corpus)

        assert result.tier == TIER_ENHANCED

    @pytest.mark.asyncio
    async def test_blank_answer_falls_through(self, welcome_corpus):
        strategy = Mock()
        strategy.summarize = AsyncMock(return_value="   ")

        result = await Summarizer(strategy).summarize([], welcome_corpus)

        assert result.tier == TIER_ENHANCED

    @pytest.mark.asyncio
    async def test_basic_when_no_corpus(self, make_descriptor):
        descriptors = [make_descriptor("Welcome", ElementType.HEADING, tag_name="h1")]

        result = await Summarizer().summarize(descriptors, PageCorpus())

        assert result.tier == TIER_BASIC
        assert result.text.startswith("🧭 **Welcome**")

    @pytest.mark.asyncio
    async def test_zero_content_never_uses_template(self):
        result = await Summarizer().summarize([], PageCorpus(main_content="Just some text"))

        assert result.tier == TIER_BASIC
        assert result.text == NO_CONTENT_SUMMARY

    @pytest.mark.asyncio
    async def test_links_only_page_uses_basic_summary(self, make_descriptor):
        descriptors = [make_descriptor("Docs", ElementType.LINK)]
        corpus = PageCorpus(main_content="Some body text", links=["Docs"])

        result = await Summarizer().summarize(descriptors, corpus)

        assert result.tier == TIER_BASIC
        assert result.text == NO_CONTENT_SUMMARY
        assert "📋" not in result.text

    def test_links_do_not_make_a_corpus_substantial(self):
        assert PageCorpus(main_content="Body", links=["Docs"]).is_substantial is False
        assert PageCorpus(main_content="Body", buttons=["Go"]).is_substantial is True
        assert PageCorpus(main_content="Body", headings=[{"text": "A", "level": "H2"}]).is_substantial is True
