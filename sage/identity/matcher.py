"""
Two-tier product matcher.

Decides whether a found page describes the same real-world product as the
one being researched. Tier one is a coded heuristic (0-100). When it is not
confident, an injected external model is asked; its acceptance bar depends
on how trusted the source host is. Without the external model the coded
score is accepted at a lowered bar.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple
from urllib.parse import urlparse

from sage.core.config import load_source_registry
from sage.core.exceptions import ClassificationFailure

from .models import (
    CodedOutcome,
    DecisionSource,
    ExternalOpinion,
    Match,
    MatchDecision,
    MatchDetails,
    MatchResult,
    NeedsExternalOpinion,
)

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = 75
CODED_CONFIDENT = 75
FALLBACK_THRESHOLD = 70

TOKEN_POINTS = 50
SLUG_POINTS = 30
SYNONYM_BONUS = 30
LINE_CONFLICT_PENALTY = -20
SPF_PENALTY = -15

STOPWORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "should", "could", "may", "might", "must", "can", "oz", "ml",
    "fl", "g", "mg", "lb", "pkg", "pack", "count", "ct",
}

LINE_IDENTIFIERS = {
    "intensive", "ultra", "daily", "advanced", "gentle", "sensitive",
    "original", "classic", "premium", "professional", "clinical",
    "extra", "maximum", "regular", "light", "lightweight", "rich",
    "deep", "rapid", "instant", "overnight", "daytime", "nighttime",
    "am", "pm", "renewal", "repair", "resurfacing", "renewing",
}

# canonical name -> known variants of the same product
PRODUCT_LINE_SYNONYMS: Dict[str, List[str]] = {
    "dove beauty bar": [
        "dove cream bar", "dove white beauty bar", "dove moisturizing bar",
        "dove original bar", "dove soap bar", "dove bar soap", "dove beauty cream bar",
    ],
    "cerave moisturizing cream": [
        "cerave daily moisturizing lotion", "cerave facial moisturizing lotion",
        "cerave moisturizing lotion", "cerave cream",
    ],
    "cerave hydrating cleanser": [
        "cerave hydrating facial cleanser", "cerave face wash", "cerave hydrating face wash",
    ],
    "cerave sa cleanser": ["cerave salicylic acid cleanser", "cerave sa face wash"],
    "neutrogena hydro boost": [
        "neutrogena water gel", "neutrogena hydrating gel cream", "neutrogena gel cream",
    ],
    "quest protein bar": ["quest bar", "quest nutrition bar", "quest protein"],
    "optimum nutrition whey": [
        "on gold standard whey", "gold standard 100% whey", "optimum whey protein", "on whey",
    ],
    "nature made vitamin d3": ["nature made d3", "nature made vitamin d"],
    "orgain organic protein powder": [
        "orgain protein powder", "orgain organic protein", "orgain vegan protein", "orgain protein",
    ],
    "kind bar": ["kind nut bar", "kind fruit and nut bar", "kind nutrition bar"],
}


class ExternalMatchModel(Protocol):
    """Anything that can judge two product names. Raises ClassificationFailure when unavailable."""

    async def judge(
        self,
        our_name: str,
        source_name: str,
        source_url: str,
        product_type: Optional[str] = None,
    ) -> ExternalOpinion:
        ...


# =============================================================================
# Coded tier
# =============================================================================


def _normalize(text: str) -> str:
    text = re.sub(r"[^\w\s]", " ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def extract_tokens(text: str) -> Set[str]:
    return {
        t for t in _normalize(text).split()
        if len(t) >= 2 and t not in STOPWORDS and not t.isdigit()
    }


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def extract_spf(text: str) -> Optional[int]:
    match = re.search(r"spf\s*(\d+)", text, re.I)
    return int(match.group(1)) if match else None


def line_identifiers(text: str) -> Set[str]:
    return set(_normalize(text).split()) & LINE_IDENTIFIERS


def host_of(url: str) -> str:
    try:
        return re.sub(r"^www\.", "", (urlparse(url).hostname or "").lower())
    except ValueError:
        return ""


def url_slug_score(url: str, product_tokens: Set[str]) -> int:
    """0-30 from the first slug-like path segment."""
    try:
        path = urlparse(url).path
    except ValueError:
        return 0
    for segment in (s for s in path.split("/") if s):
        if len(segment) > 10 and not segment.isdigit() and "-" in segment:
            slug_tokens = extract_tokens(segment.replace("-", " "))
            return round(jaccard(product_tokens, slug_tokens) * SLUG_POINTS)
    return 0


def are_product_line_synonyms(name1: str, name2: str) -> bool:
    """Both names belong to the same known product family."""
    lower1 = _normalize(name1)
    lower2 = _normalize(name2)
    for canonical, variants in PRODUCT_LINE_SYNONYMS.items():
        family = [_normalize(n) for n in [canonical, *variants]]
        in1 = any(v in lower1 or lower1 in v for v in family)
        in2 = any(v in lower2 or lower2 in v for v in family)
        if in1 and in2:
            return True
    return False


def source_bonus(url: str) -> int:
    host = host_of(url)
    registry = load_source_registry()
    if any(src in host for src in registry.get("authoritative", [])):
        return 20
    if any(src in host for src in registry.get("semi_authoritative", [])):
        return 10
    return 0


def validate_product_match(our_name: str, source_name: str, source_url: str) -> MatchResult:
    """Coded confidence (0-100) that two names are the same product."""
    details = MatchDetails()
    reasons: List[str] = []

    ours = extract_tokens(our_name)
    theirs = extract_tokens(source_name)

    similarity = jaccard(ours, theirs)
    details.token_overlap = round(similarity * TOKEN_POINTS)
    reasons.append(f"token overlap {round(similarity * 100)}%")

    details.url_slug_match = url_slug_score(source_url, ours)
    if details.url_slug_match:
        reasons.append(f"URL slug overlap +{details.url_slug_match}")

    if are_product_line_synonyms(our_name, source_name):
        details.synonym_bonus = SYNONYM_BONUS
        reasons.append("known product line synonyms")

    our_lines = line_identifiers(our_name)
    conflicts = sorted(line_identifiers(source_name) - our_lines) if our_lines else []
    if conflicts:
        details.line_identifier = LINE_CONFLICT_PENALTY
        reasons.append(f"different product line: {', '.join(conflicts)}")

    our_spf = extract_spf(our_name)
    their_spf = extract_spf(source_name)
    if our_spf is not None and their_spf is not None and our_spf != their_spf:
        details.spf_match = SPF_PENALTY
        reasons.append(f"different SPF: {our_spf} vs {their_spf}")

    details.source_bonus = source_bonus(source_url)
    if details.source_bonus:
        reasons.append(f"source bonus +{details.source_bonus}")

    total = (
        details.token_overlap + details.url_slug_match + details.synonym_bonus
        + details.line_identifier + details.spf_match + details.source_bonus
    )
    confidence = max(0, min(100, total))
    return MatchResult(confidence, confidence >= MATCH_THRESHOLD, details, reasons)


def validate_multiple_sources(
    product_name: str,
    sources: Iterable[Tuple[str, str]],
) -> List[Tuple[Tuple[str, str], MatchResult]]:
    """Score (name, url) sources, highest confidence first."""
    results = [((name, url), validate_product_match(product_name, name, url)) for name, url in sources]
    return sorted(results, key=lambda r: r[1].confidence, reverse=True)


def normalize_url(url: str) -> str:
    """Host without www plus path, lowercased; query and fragment dropped."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url.lower()
    if not parsed.hostname:
        return url.lower()
    host = re.sub(r"^www\.", "", parsed.hostname)
    return f"{host}{parsed.path}".lower()


def external_threshold(url: str) -> int:
    """External-model acceptance bar for a source host."""
    registry = load_source_registry()
    thresholds = registry.get("external_thresholds", {})
    host = host_of(url)
    if any(src in host for src in registry.get("highly_authoritative", [])):
        return int(thresholds.get("highly_authoritative", 70))
    if any(src in host for src in registry.get("reputable_retailers", [])):
        return int(thresholds.get("authoritative", 75))
    return int(thresholds.get("default", 80))


# =============================================================================
# Matcher
# =============================================================================


class ProductMatcher:
    """
    Coded tier first, then the external model.

    The external model is injected; without one the matcher never touches
    the network and degrades to the coded score at a lowered bar.
    """

    def __init__(self, external: Optional[ExternalMatchModel] = None):
        self.external = external

    def coded_tier(self, our_name: str, source_name: str, source_url: str) -> CodedOutcome:
        coded = validate_product_match(our_name, source_name, source_url)
        if coded.confidence >= CODED_CONFIDENT:
            return Match(coded.is_match, coded.confidence, coded)
        return NeedsExternalOpinion(coded, external_threshold(source_url))

    async def decide(
        self,
        our_name: str,
        source_name: Optional[str],
        source_url: str,
        scanned_url: Optional[str] = None,
        product_type: Optional[str] = None,
    ) -> MatchDecision:
        """Final same-product verdict for one found page."""
        if scanned_url and normalize_url(scanned_url) == normalize_url(source_url):
            logger.info(f"[Matcher] exact URL match: {normalize_url(source_url)}")
            return MatchDecision(True, DecisionSource.EXACT_URL, confidence=100)

        if not source_name:
            logger.info(f"[Matcher] no product name for {source_url}")
            return MatchDecision(False, DecisionSource.NO_NAME)

        outcome = self.coded_tier(our_name, source_name, source_url)
        if isinstance(outcome, Match):
            logger.info(f"[Matcher] coded decision {outcome.accepted} ({outcome.confidence})")
            return MatchDecision(outcome.accepted, DecisionSource.CODED, outcome.confidence, outcome.coded)

        coded = outcome.coded
        try:
            if self.external is None:
                raise ClassificationFailure("ProductMatcher", "no external model configured")
            opinion = await self.external.judge(our_name, source_name, source_url, product_type)
        except ClassificationFailure as e:
            accepted = coded.confidence >= FALLBACK_THRESHOLD
            logger.info(
                f"[Matcher] external model unavailable ({e.error}); "
                f"coded {coded.confidence} >= {FALLBACK_THRESHOLD}: {accepted}"
            )
            return MatchDecision(
                accepted, DecisionSource.FALLBACK, coded.confidence, coded,
                threshold=FALLBACK_THRESHOLD,
            )

        accepted = opinion.is_same_product and opinion.confidence >= outcome.threshold
        logger.info(
            f"[Matcher] external decision {accepted} "
            f"(same={opinion.is_same_product}, {opinion.confidence} vs {outcome.threshold})"
        )
        return MatchDecision(
            accepted, DecisionSource.EXTERNAL, opinion.confidence, coded,
            external=opinion, threshold=outcome.threshold,
        )
