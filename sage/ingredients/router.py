"""
Ingredient router.

Walks the extractor registry for a page's host in priority order and
returns the first block that survives splitting and filtering. Optional
shadow passes (JSON-LD first, v2 structural checks) run behind feature
flags and only ever add notes to the trace unless they validate.

The router never raises: a failing extractor counts as a miss for that
step, and total failure returns an empty ExtractionResult with its trace.
"""

import logging
import time
from typing import Optional

from sage.core.config import FeatureFlags, get_settings
from sage.core.exceptions import ExtractionMiss
from sage.identity.jsonld import extract_jsonld_product
from sage.identity.identity import page_signals_from_html

from .extractors import ExtractorRegistry, ParsedDocument, build_default_registry
from .extractors.base import Extractor
from .models import CandidateBlock, ExtractionResult, IngredientList, Provenance
from .tokenizer import dedupe_join, split_and_filter_tokens
from .trace import ExtractionTrace
from .validators import looks_like_ingredients, v2_checks

logger = logging.getLogger(__name__)

JSONLD_SOURCE = "jsonld"


class IngredientRouter:
    """
    Priority-ordered extraction over one page.

    Order for a host comes from the registry:
    1. plain-text marker scan (generic hosts only)
    2. government drug labels
    3. ingredient and food databases
    4. retailers
    5. generic heading fallback
    6. plain-text marker scan, last resort
    """

    def __init__(
        self,
        registry: Optional[ExtractorRegistry] = None,
        flags: Optional[FeatureFlags] = None,
    ):
        self.registry = registry or build_default_registry()
        self.flags = flags or get_settings().flags

    def resolve(self, html: str, url: Optional[str] = None) -> ExtractionResult:
        """Best ingredient block for the page, or an empty result."""
        doc = ParsedDocument(html, url)
        trace = ExtractionTrace(url=url, host=doc.host, flags=self.flags.snapshot())

        if not html:
            trace.attempt("router", "miss", "empty document")
            return ExtractionResult(None, None, trace=trace.finish())

        result = None
        if self.flags.jsonld_first:
            result = self._jsonld_pass(doc, trace)

        if result is None:
            for extractor in self.registry.for_host(doc.host):
                result = self._run(extractor, doc, trace)
                if result is not None:
                    break

        if result is None:
            logger.info(f"[Router] no ingredients found for {doc.host or 'unknown host'}")
            return ExtractionResult(None, None, trace=trace.finish())

        if self.flags.validator_v2:
            self._v2_shadow(result, trace)

        logger.info(
            f"[Router] {result.where} won for {doc.host or 'unknown host'}: "
            f"{result.token_count} ingredients, confidence {result.confidence}"
        )
        result.trace = trace.finish()
        return result

    def require(self, html: str, url: Optional[str] = None) -> ExtractionResult:
        """Like resolve(), but a total miss raises ExtractionMiss."""
        result = self.resolve(html, url)
        if not result.found:
            raise ExtractionMiss(
                "router",
                context={
                    "url": url,
                    "attempts": [a.to_dict() for a in result.trace.attempts],
                },
            )
        return result

    def _run(
        self, extractor: Extractor, doc: ParsedDocument, trace: ExtractionTrace
    ) -> Optional[ExtractionResult]:
        started = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - started) * 1000

        try:
            blocks = extractor.extract(doc)
        except Exception as e:
            logger.warning(f"[Router] {extractor.name} failed: {e}")
            trace.attempt(extractor.name, "error", f"{type(e).__name__}: {e}", elapsed_ms=elapsed())
            return None

        if not blocks:
            trace.attempt(extractor.name, "miss", elapsed_ms=elapsed())
            return None

        candidate = extractor.best(blocks)
        if candidate is None:
            trace.attempt(
                extractor.name, "rejected", f"{len(blocks)} block(s) below ranking bar",
                elapsed_ms=elapsed(),
            )
            return None

        result = self._finalize(candidate, extractor.min_tokens, trace)
        if result is None:
            trace.attempt(
                extractor.name, "rejected", "too few ingredients after filtering",
                length=len(candidate.raw_text), elapsed_ms=elapsed(),
            )
            return None

        trace.attempt(extractor.name, "hit", length=len(result.text), elapsed_ms=elapsed())
        return result

    def _finalize(
        self, candidate: CandidateBlock, min_tokens: int, trace: ExtractionTrace
    ) -> Optional[ExtractionResult]:
        split = split_and_filter_tokens(candidate.raw_text)
        for token in split.dropped:
            trace.drop(token.text, token.reason or "dropped")

        items = IngredientList(split.ingredients, Provenance(candidate.source_extractor)).items
        if len(items) < max(1, min_tokens):
            return None

        return ExtractionResult(
            text=dedupe_join(items),
            where=candidate.source_extractor,
            ingredients=items,
            contains=IngredientList(split.contains, Provenance(candidate.source_extractor)).items,
            may_contain=IngredientList(split.may_contain, Provenance(candidate.source_extractor)).items,
            confidence=candidate.derived_confidence,
            token_count=len(items),
        )

    def _jsonld_pass(self, doc: ParsedDocument, trace: ExtractionTrace) -> Optional[ExtractionResult]:
        """Structured-data ingredients, used only when they validate."""
        started = time.perf_counter()
        try:
            signals = page_signals_from_html(doc.soup, doc.host)
            product = extract_jsonld_product(doc.soup, signals)
        except Exception as e:
            logger.warning(f"[Router] JSON-LD pass failed: {e}")
            trace.attempt(JSONLD_SOURCE, "error", str(e))
            return None
        elapsed = (time.perf_counter() - started) * 1000

        if not product.ingredients:
            trace.attempt(JSONLD_SOURCE, "miss", elapsed_ms=elapsed)
            return None

        for warning in product.warnings:
            trace.warn(warning)
        if product.warnings:
            logger.info(f"[Router] JSON-LD ingredients skipped: {product.warnings}")
            trace.attempt(JSONLD_SOURCE, "rejected", ",".join(product.warnings), elapsed_ms=elapsed)
            return None

        if not looks_like_ingredients(product.ingredients):
            trace.attempt(JSONLD_SOURCE, "rejected", "failed validation", elapsed_ms=elapsed)
            return None

        candidate = CandidateBlock(
            source_extractor=JSONLD_SOURCE,
            raw_text=product.ingredients,
            has_heading=True,
            origin="structured-data",
        )
        result = self._finalize(candidate, 3, trace)
        if result is None:
            trace.attempt(JSONLD_SOURCE, "rejected", "too few ingredients after filtering", elapsed_ms=elapsed)
            return None

        trace.attempt(JSONLD_SOURCE, "hit", length=len(result.text), elapsed_ms=elapsed)
        return result

    def _v2_shadow(self, result: ExtractionResult, trace: ExtractionTrace) -> None:
        checks = v2_checks(result.text, result.ingredients)
        trace.notes["v2"] = checks.to_dict()
        if not checks.passed:
            logger.info(f"[Router] v2 checks failed (shadow): {checks.to_dict()}")


def extract_best_ingredients(html: str, url: Optional[str] = None) -> ExtractionResult:
    """Module-level entry point with the default registry and settings."""
    return IngredientRouter().resolve(html, url)

