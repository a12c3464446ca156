"""
Multi-source ingredient research.

Given a product name and candidate URLs (from an upstream search
provider), fetch every page concurrently, keep only pages the matcher
accepts as the same product, extract and gate each, then rank:
government > authoritative > longest list.

Results are collected per URL and ranked only after every task finishes,
so the outcome does not depend on fetch completion order.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sage.core.config import FeatureFlags, get_settings, load_source_registry
from sage.core.exceptions import IdentityMismatch, ValidationRejection
from sage.identity.classifier import Classification, ProductClassifier
from sage.identity.identity import gate_identity
from sage.identity.matcher import ProductMatcher
from sage.identity.models import ProductIdentity
from sage.identity.product_name import derive_name_from_url, extract_best_product_name
from sage.ingredients.extractors.base import host_of
from sage.ingredients.router import IngredientRouter
from sage.ingredients.tokenizer import dedupe_join, process_model_ingredients
from sage.ingredients.validators import clean_ingredients_heading, gate_ingredients

from .fetcher import FetchedPage, PageFetcher
from .resolver import score_page_identity

logger = logging.getLogger(__name__)

MIN_CANDIDATE_LENGTH = 50
MAX_SOURCES = 4

DAILYMED_CONFIDENCE = 0.98
GOVERNMENT_CONFIDENCE = 0.95
AUTHORITATIVE_CONFIDENCE = 0.85
OTHER_CONFIDENCE = 0.65


@dataclass
class SourceCandidate:
    """One page that survived matching, extraction and gating."""
    url: str
    text: str
    authoritative: bool = False
    is_gov_source: bool = False
    is_dailymed: bool = False

    @property
    def confidence(self) -> float:
        if self.is_dailymed:
            return DAILYMED_CONFIDENCE
        if self.is_gov_source:
            return GOVERNMENT_CONFIDENCE
        if self.authoritative:
            return AUTHORITATIVE_CONFIDENCE
        return OTHER_CONFIDENCE


@dataclass
class ResearchResult:
    detected_name: Optional[str]
    ingredients: Optional[str] = None
    sources: List[str] = field(default_factory=list)
    confidence: float = 0.0
    classification: Optional[Classification] = None
    preview: Optional[str] = None
    candidates: List[SourceCandidate] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.ingredients is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingredients": self.ingredients,
            "sources": list(self.sources),
            "confidence": self.confidence,
            "detectedName": self.detected_name,
            "productType": self.classification.type.value if self.classification else None,
            "productSubtype": self.classification.subtype.value if self.classification else None,
            "debugPreview": self.preview,
        }


def dedupe_list(raw: str) -> str:
    """Collapse whitespace, split on , or ; and dedupe case-insensitively."""
    text = re.sub(r"\s{2,}", " ", re.sub(r"\n+", " ", raw))
    return dedupe_join([p.strip() for p in re.split(r"[;,]", text) if p.strip()])


def filter_candidate_urls(urls: List[str]) -> List[str]:
    """Drop duplicates and Skinsort pages that are not product pages."""
    kept = []
    for url in dict.fromkeys(urls):
        if "skinsort.com" in url.lower() and not re.search(r"skinsort\.com/products/", url, re.I):
            logger.debug(f"[Research] skipping non-product Skinsort page {url}")
            continue
        kept.append(url)
    return kept


def rank_candidates(candidates: List[SourceCandidate]) -> List[SourceCandidate]:
    """Government first, then authoritative, then the longest list."""
    return sorted(
        candidates,
        key=lambda c: (not c.is_gov_source, not c.authoritative, -len(c.text)),
    )


def _host_in(host: str, entries: List[str]) -> bool:
    return any(entry in host for entry in entries)


class IngredientResearcher:
    """Concurrent candidate evaluation with injected collaborators."""

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        matcher: Optional[ProductMatcher] = None,
        classifier: Optional[ProductClassifier] = None,
        router: Optional[IngredientRouter] = None,
        flags: Optional[FeatureFlags] = None,
    ):
        self.flags = flags or get_settings().flags
        self.fetcher = fetcher or PageFetcher()
        self.matcher = matcher or ProductMatcher()
        self.classifier = classifier or ProductClassifier()
        self.router = router or IngredientRouter(flags=self.flags)

    async def research(
        self,
        name: str,
        urls: List[str],
        source_url: Optional[str] = None,
        classification: Optional[Classification] = None,
        want: Optional[ProductIdentity] = None,
    ) -> ResearchResult:
        if classification is None:
            classification = await self.classifier.classify(name)
        is_food = classification.is_food
        logger.info(
            f"[Research] {name!r}: {len(urls)} URL(s), "
            f"{'FOOD/SUPPLEMENT' if is_food else 'COSMETIC'} pipeline"
        )

        urls = filter_candidate_urls(urls)
        result = ResearchResult(detected_name=name, classification=classification)
        if not urls:
            return result

        pages = await self.fetcher.fetch_many(urls)
        tasks = [
            self._evaluate(page, name, source_url, classification, want)
            for page in pages
            if isinstance(page, FetchedPage)
        ]
        for url, page in zip(urls, pages):
            if isinstance(page, Exception):
                logger.info(f"[Research] fetch failed for {url[:80]}: {page}")

        evaluated = await asyncio.gather(*tasks, return_exceptions=True)
        candidates = []
        for outcome in evaluated:
            if isinstance(outcome, Exception):
                logger.warning(f"[Research] candidate error: {outcome}")
            elif outcome is not None:
                candidates.append(outcome)

        if not candidates:
            logger.info(f"[Research] no candidates for {name!r}")
            return result

        ranked = rank_candidates(candidates)
        best = ranked[0]
        result.ingredients = dedupe_list(best.text)
        result.sources = [c.url for c in ranked[:MAX_SOURCES]]
        result.confidence = best.confidence
        result.preview = " ".join(result.ingredients.split())[:300]
        result.candidates = ranked
        logger.info(
            f"[Research] chose {host_of(best.url)} ({len(result.ingredients)} chars, "
            f"confidence {result.confidence}) from {len(candidates)} candidate(s)"
        )
        return result

    async def _evaluate(
        self,
        page: FetchedPage,
        name: str,
        source_url: Optional[str],
        classification: Classification,
        want: Optional[ProductIdentity],
    ) -> Optional[SourceCandidate]:
        url = page.url
        host = host_of(url)
        registry = load_source_registry()
        is_dailymed = "dailymed.nlm.nih.gov" in host
        is_gov = is_dailymed or _host_in(host, registry.get("government", []))
        authoritative = _host_in(host, registry.get("ranking_authoritative", []))

        if self.flags.identity_gate:
            score = score_page_identity(page.html, url, want or ProductIdentity(name=name), self.flags)
            try:
                gate_identity(score, self.flags.enforce_gate)
            except IdentityMismatch as e:
                logger.info(f"[Research] {host} skipped by identity gate: {e.message}")
                return None

        source_name = extract_best_product_name(page.html) or derive_name_from_url(url)
        decision = await self.matcher.decide(
            name, source_name, url, scanned_url=source_url, product_type=classification.type.value
        )
        if not decision.accepted:
            logger.info(f"[Research] {host} rejected by matcher ({decision.source.value})")
            return None

        extraction = self.router.resolve(page.html, url)
        if not extraction.text:
            logger.info(f"[Research] no extraction from {host}")
            return None

        processed = process_model_ingredients(clean_ingredients_heading(extraction.text))
        try:
            text = gate_ingredients(processed, food=classification.is_food)
        except ValidationRejection as e:
            logger.info(f"[Research] {host} failed validation: {e.reason}")
            return None

        if len(text) <= MIN_CANDIDATE_LENGTH:
            return None
        logger.info(f"[Research] candidate {host}: {len(text)} chars (gov={is_gov}, auth={authoritative})")
        return SourceCandidate(url, text, authoritative, is_gov, is_dailymed)


async def research_ingredients(
    name: str,
    urls: List[str],
    source_url: Optional[str] = None,
    **collaborators: Any,
) -> ResearchResult:
    """Module-level entry point. Never raises; failure is an empty result."""
    try:
        return await IngredientResearcher(**collaborators).research(name, urls, source_url)
    except Exception as e:
        logger.error(f"[Research] error for {name!r}: {e}")
        return ResearchResult(detected_name=name)
