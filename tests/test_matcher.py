"""
Tests for the two-tier product matcher.
"""

import pytest

from sage.core.exceptions import ClassificationFailure
from sage.identity.matcher import (
    LINE_CONFLICT_PENALTY,
    SPF_PENALTY,
    ProductMatcher,
    are_product_line_synonyms,
    external_threshold,
    extract_tokens,
    normalize_url,
    validate_multiple_sources,
    validate_product_match,
)
from sage.identity.models import DecisionSource, ExternalOpinion, Match, NeedsExternalOpinion


class FakeExternal:
    """Records calls and answers with a fixed opinion."""

    def __init__(self, opinion=None, error=None):
        self.opinion = opinion
        self.error = error
        self.calls = []

    async def judge(self, our_name, source_name, source_url, product_type=None):
        self.calls.append((our_name, source_name, source_url, product_type))
        if self.error:
            raise self.error
        return self.opinion


class TestCodedTier:
    """Heuristic 0-100 confidence."""

    def test_tokens_ignore_stopwords_and_numbers(self):
        assert extract_tokens("The 2 Pack of CeraVe 16 oz") == {"cerave"}

    def test_identical_names_on_authoritative_host(self):
        result = validate_product_match(
            "CeraVe Moisturizing Cream",
            "CeraVe Moisturizing Cream",
            "https://incidecoder.com/products/cerave-moisturizing-cream",
        )
        assert result.details.token_overlap == 50
        assert result.details.url_slug_match == 30
        assert result.details.source_bonus == 20
        assert result.confidence == 100
        assert result.is_match

    def test_unrelated_names(self):
        result = validate_product_match(
            "CeraVe Moisturizing Cream", "Hydrating Lotion for Dry Skin", "https://example.com/p/123"
        )
        assert result.confidence == 0
        assert not result.is_match

    def test_line_identifier_conflict(self):
        result = validate_product_match(
            "CeraVe Daily Cleanser", "CeraVe Gentle Daily Cleanser", "https://example.com/x"
        )
        assert result.details.line_identifier == LINE_CONFLICT_PENALTY
        assert any("gentle" in r for r in result.reasons)

    def test_no_conflict_when_ours_has_no_line(self):
        result = validate_product_match("CeraVe Cleanser", "CeraVe Gentle Cleanser", "https://example.com/x")
        assert result.details.line_identifier == 0

    def test_spf_mismatch(self):
        result = validate_product_match(
            "Supergoop Unseen Sunscreen SPF 40", "Supergoop Unseen Sunscreen SPF 30", "https://example.com/x"
        )
        assert result.details.spf_match == SPF_PENALTY

    def test_product_line_synonyms(self):
        assert are_product_line_synonyms("Dove Beauty Bar", "Dove Cream Bar")
        assert not are_product_line_synonyms("Dove Beauty Bar", "Quest Protein Bar")

    def test_multiple_sources_sorted(self):
        results = validate_multiple_sources(
            "CeraVe Moisturizing Cream",
            [
                ("Random Shampoo", "https://example.com/a"),
                ("CeraVe Moisturizing Cream", "https://incidecoder.com/products/cerave-moisturizing-cream"),
            ],
        )
        assert results[0][0][0] == "CeraVe Moisturizing Cream"
        assert results[0][1].confidence >= results[1][1].confidence


class TestHelpers:
    """URL normalization and per-host thresholds."""

    def test_normalize_url(self):
        assert normalize_url("https://WWW.Example.com/Path/?q=1#frag") == "example.com/path/"

    def test_thresholds(self):
        assert external_threshold("https://incidecoder.com/products/x") == 70
        assert external_threshold("https://www.sephora.com/product/x") == 75
        assert external_threshold("https://blog.example.com/review") == 80

    def test_coded_tier_outcomes(self):
        matcher = ProductMatcher()
        confident = matcher.coded_tier(
            "CeraVe Moisturizing Cream",
            "CeraVe Moisturizing Cream",
            "https://incidecoder.com/products/cerave-moisturizing-cream",
        )
        assert isinstance(confident, Match)
        unsure = matcher.coded_tier("CeraVe Moisturizing Cream", "Lotion", "https://example.com/x")
        assert isinstance(unsure, NeedsExternalOpinion)
        assert unsure.threshold == 80


class TestDecide:
    """Final decision order: URL, name, coded, external, fallback."""

    @pytest.mark.asyncio
    async def test_exact_url(self):
        decision = await ProductMatcher().decide(
            "Anything", "Something Else",
            "https://incidecoder.com/products/x",
            scanned_url="https://www.incidecoder.com/products/x?ref=search",
        )
        assert decision.accepted
        assert decision.source == DecisionSource.EXACT_URL
        assert decision.confidence == 100

    @pytest.mark.asyncio
    async def test_no_name(self):
        decision = await ProductMatcher().decide("CeraVe Cream", None, "https://example.com/x")
        assert not decision.accepted
        assert decision.source == DecisionSource.NO_NAME

    @pytest.mark.asyncio
    async def test_coded_skips_external(self):
        external = FakeExternal(ExternalOpinion(False, 99))
        decision = await ProductMatcher(external).decide(
            "CeraVe Moisturizing Cream",
            "CeraVe Moisturizing Cream",
            "https://incidecoder.com/products/cerave-moisturizing-cream",
        )
        assert decision.accepted
        assert decision.source == DecisionSource.CODED
        assert external.calls == []

    @pytest.mark.asyncio
    async def test_external_accepts_above_threshold(self):
        external = FakeExternal(ExternalOpinion(True, 85, "same product"))
        decision = await ProductMatcher(external).decide(
            "CeraVe Moisturizing Cream", "Hydrating Lotion for Dry Skin", "https://example.com/p/123",
            product_type="cosmetic",
        )
        assert decision.accepted
        assert decision.source == DecisionSource.EXTERNAL
        assert decision.threshold == 80
        assert external.calls[0][3] == "cosmetic"

    @pytest.mark.asyncio
    async def test_external_below_threshold(self):
        external = FakeExternal(ExternalOpinion(True, 75))
        decision = await ProductMatcher(external).decide(
            "CeraVe Moisturizing Cream", "Hydrating Lotion for Dry Skin", "https://example.com/p/123"
        )
        assert not decision.accepted
        assert decision.source == DecisionSource.EXTERNAL

    @pytest.mark.asyncio
    async def test_retailer_threshold(self):
        external = FakeExternal(ExternalOpinion(True, 75))
        decision = await ProductMatcher(external).decide(
            "CeraVe Moisturizing Cream", "Hydrating Lotion for Dry Skin", "https://www.walmart.com/ip/123"
        )
        assert decision.accepted
        assert decision.threshold == 75

    @pytest.mark.asyncio
    async def test_external_says_different(self):
        external = FakeExternal(ExternalOpinion(False, 95))
        decision = await ProductMatcher(external).decide(
            "CeraVe Moisturizing Cream", "Hydrating Lotion for Dry Skin", "https://example.com/p/123"
        )
        assert not decision.accepted

    @pytest.mark.asyncio
    async def test_fallback_without_external(self):
        decision = await ProductMatcher().decide(
            "Acme Daily Serum", "Acme Daily Serum Refill",
            "https://www.target.com/p/acme-daily-serum-refill",
        )
        assert decision.source == DecisionSource.FALLBACK
        assert decision.confidence == 70
        assert decision.accepted

    @pytest.mark.asyncio
    async def test_fallback_when_external_fails(self):
        external = FakeExternal(error=ClassificationFailure("LLMProductJudge", "timeout"))
        decision = await ProductMatcher(external).decide(
            "CeraVe Moisturizing Cream", "Hydrating Lotion for Dry Skin", "https://example.com/p/123"
        )
        assert decision.source == DecisionSource.FALLBACK
        assert not decision.accepted
        assert decision.to_dict()["source"] == "fallback"
