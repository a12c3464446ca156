"""
Single-URL pipeline.

Fetch the scanned product page, pick its ingredient block, name and
classify the product, run the identity gate, then apply the type-aware
validator. Never raises: failures come back as an empty result.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sage.core.config import FeatureFlags, get_settings
from sage.core.exceptions import BotProtectionDetected, IdentityMismatch, NetworkFailure, ValidationRejection
from sage.identity.bot_protection import is_bot_protection_name
from sage.identity.classifier import FALLBACK_CLASSIFICATION, Classification, ProductClassifier
from sage.identity.identity import gate_identity, identity_score, page_signals_from_html
from sage.identity.jsonld import parse_jsonld_identity
from sage.identity.models import IdentityScore, ProductIdentity
from sage.identity.product_name import derive_name_from_url, extract_best_product_name
from sage.ingredients.extractors.base import host_of
from sage.ingredients.router import IngredientRouter
from sage.ingredients.tokenizer import process_model_ingredients
from sage.ingredients.trace import ExtractionTrace
from sage.ingredients.validators import clean_ingredients_heading, gate_ingredients

from .fetcher import PageFetcher

logger = logging.getLogger(__name__)

BOT_PROTECTION_SOURCE = "bot-protection-fallback"


@dataclass
class ResolvedProduct:
    source_url: str
    ingredients: Optional[str] = None
    product_name: Optional[str] = None
    classification: Classification = FALLBACK_CLASSIFICATION
    source: Optional[str] = None
    preview: Optional[str] = None
    identity: Optional[IdentityScore] = None
    error: Optional[str] = None
    trace: Optional[ExtractionTrace] = None

    @property
    def found(self) -> bool:
        return self.ingredients is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingredients": self.ingredients,
            "productName": self.product_name,
            "productType": self.classification.type.value,
            "productSubtype": self.classification.subtype.value,
            "source": self.source,
            "sourceUrl": self.source_url,
            "debugPreview": self.preview,
            "identity": self.identity.to_dict() if self.identity else None,
            "error": self.error,
        }


def _preview(text: Optional[str], limit: int) -> Optional[str]:
    return " ".join(text.split())[:limit] if text else None


def score_page_identity(
    html: str,
    url: str,
    want: ProductIdentity,
    flags: FeatureFlags,
) -> IdentityScore:
    """Identity score for a fetched page against the wanted product."""
    signals = page_signals_from_html(html, host_of(url))
    score = identity_score(signals, parse_jsonld_identity(html), want, flags.identity_threshold)
    logger.info(
        f"[Identity] {host_of(url)}: {score.total:.2f} "
        f"(passed={score.passed}) {score.breakdown.to_dict()}"
    )
    return score


async def resolve_product(
    url: str,
    want: Optional[ProductIdentity] = None,
    fetcher: Optional[PageFetcher] = None,
    classifier: Optional[ProductClassifier] = None,
    router: Optional[IngredientRouter] = None,
    flags: Optional[FeatureFlags] = None,
) -> ResolvedProduct:
    """Ingredients and product name for one scanned product URL."""
    flags = flags or get_settings().flags
    fetcher = fetcher or PageFetcher()
    classifier = classifier or ProductClassifier()
    router = router or IngredientRouter(flags=flags)
    host = host_of(url)
    logger.info(f"[Resolve] start {host} {url[:100]}")

    try:
        page = await fetcher.fetch(url)
    except BotProtectionDetected as e:
        logger.info(f"[Resolve] bot protection on {host} ({e.signal}); using URL-derived name")
        return ResolvedProduct(
            url,
            product_name=derive_name_from_url(url),
            source=BOT_PROTECTION_SOURCE,
            preview="Bot protection detected",
            error=e.message,
        )
    except NetworkFailure as e:
        logger.warning(f"[Resolve] {e.message}")
        return ResolvedProduct(url, product_name=derive_name_from_url(url), error=e.message)

    try:
        return await _resolve_page(page.html, url, want, classifier, router, flags)
    except Exception as e:
        logger.error(f"[Resolve] error for {url[:100]}: {e}")
        return ResolvedProduct(url, product_name=derive_name_from_url(url), error=str(e))


async def _resolve_page(
    html: str,
    url: str,
    want: Optional[ProductIdentity],
    classifier: ProductClassifier,
    router: IngredientRouter,
    flags: FeatureFlags,
) -> ResolvedProduct:
    extraction = router.resolve(html, url)

    product_name = derive_name_from_url(url) or extract_best_product_name(html)
    if is_bot_protection_name(product_name):
        logger.info(f"[Resolve] bot protection product name: {product_name!r}")
        product_name = derive_name_from_url(url)

    classification = FALLBACK_CLASSIFICATION
    if product_name and len(product_name) >= 3:
        classification = await classifier.classify(product_name)

    resolved = ResolvedProduct(
        url,
        product_name=product_name,
        classification=classification,
        trace=extraction.trace,
    )

    if flags.identity_gate:
        want = want or ProductIdentity(name=product_name or "")
        resolved.identity = score_page_identity(html, url, want, flags)
        try:
            gate_identity(resolved.identity, flags.enforce_gate)
        except IdentityMismatch as e:
            resolved.error = e.message
            logger.info(f"[Resolve] blocked by identity gate: {e.message}")
            return resolved

    if not extraction.text:
        logger.info(f"[Resolve] no ingredient block on {host_of(url)}")
        return resolved

    processed = process_model_ingredients(clean_ingredients_heading(extraction.text))
    try:
        resolved.ingredients = gate_ingredients(processed, food=classification.is_food)
    except ValidationRejection as e:
        resolved.preview = _preview(processed, 150)
        resolved.error = e.message
        logger.info(f"[Resolve] failed {'food' if classification.is_food else 'INCI'} validation: {e.reason}")
        return resolved

    resolved.source = f"dom-generic:{extraction.where or 'unknown'}"
    resolved.preview = _preview(resolved.ingredients, 300)
    logger.info(
        f"[Resolve] done {host_of(url)}: {len(resolved.ingredients)} chars via {extraction.where}"
    )
    return resolved
