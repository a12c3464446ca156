"""Heading-based fallback for hosts without a dedicated extractor."""

import logging
import re
from typing import List, Optional

from ..confidence import calculate_confidence, rank_blocks
from ..models import CandidateBlock
from ..tokenizer import (
    clean_food_ingredients,
    contains_stop_phrases,
    looks_like_marketing,
    split_and_filter_tokens,
    strip_after_markers,
)
from ..vocabulary import EXTENDED_HEADING
from .base import Extractor, ParsedDocument, element_text

logger = logging.getLogger(__name__)

SUPPLEMENT_SELECTORS = [
    '[class*="supplement"], [id*="supplement"]',
    '[class*="nutrition"], [id*="nutrition"]',
    '[class*="facts"], [id*="facts"]',
    '[class*="ingredient"], [id*="ingredient"]',
]
COLLAPSIBLE_SELECTORS = [
    '[class*="collapsed"], [class*="accordion"], [class*="expandable"]',
    '[class*="dropdown"], [class*="panel"], [class*="details"]',
    '[class*="label-info"], [class*="product-info"]',
    "details, summary",
]
LEADING_HEADING = re.compile(
    r"^(Ingredients?|Active Ingredients?|Inactive Ingredients?|Other Ingredients?"
    r"|Supplement Facts|Drug Facts|Active Ingredient Name):?\s*",
    re.I,
)
CONTAINER_MENTION = re.compile(r"\b(ingredients?|label info|nutrition|supplement facts)\b", re.I)
INLINE_HEADING = re.compile(r"\b(ingredients?|active ingredients?|inactive ingredients?|other ingredients?)\b", re.I)
HEADING_ELEMENTS = ["h1", "h2", "h3", "h4", "h5", "h6", "strong", "b", "label", "dt", "th", "span", "div"]

MIN_CONFIDENCE = 2


class GenericExtractor(Extractor):
    """
    Strategies:
    1. Supplement/nutrition/ingredient containers
    2. Collapsed accordion and <details> panels with an ingredients label
    3. Any heading-like element matching the extended heading regex, plus
       its next sibling, its parent, and up to three following siblings

    Never falls back to the whole page body.
    """

    name = "generic"

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        soup = doc.text_soup
        raw: List[tuple] = []  # (text, has_heading, origin)

        for selector in SUPPLEMENT_SELECTORS:
            el = soup.select_one(selector)
            if el is None:
                continue
            text = LEADING_HEADING.sub("", element_text(el), count=1)
            if 40 < len(text) < 3000:
                raw.append((text, False, "container"))

        for selector in COLLAPSIBLE_SELECTORS:
            for container in soup.select(selector):
                if not CONTAINER_MENTION.search(element_text(container)):
                    continue
                for heading in container.find_all(["strong", "b", "label", "dt"]):
                    heading_text = element_text(heading)
                    if not INLINE_HEADING.search(heading_text):
                        continue
                    sibling = heading.find_next_sibling()
                    if sibling is not None:
                        sibling_text = element_text(sibling)
                        if 20 < len(sibling_text) < 2000:
                            raw.append((sibling_text, True, "collapsible"))
                    parent_text = element_text(heading.parent) if heading.parent else ""
                    if len(heading_text) + 50 < len(parent_text) < 1500:
                        remainder = parent_text.replace(heading_text, "", 1).strip()
                        if len(remainder) > 20:
                            raw.append((remainder, True, "collapsible"))

        for el in soup.find_all(HEADING_ELEMENTS):
            t = element_text(el)
            if not EXTENDED_HEADING.search(t):
                continue

            sibling = el.find_next_sibling()
            if sibling is not None:
                sibling_text = element_text(sibling)
                if 20 < len(sibling_text) < 2000:
                    raw.append((sibling_text, True, "heading"))

            parent_text = element_text(el.parent) if el.parent else ""
            if len(t) + 50 < len(parent_text) < 1500:
                raw.append((parent_text, True, "heading"))

            collected = []
            for sib in el.find_next_siblings(limit=3):
                if re.match(r"^h[1-6]$", sib.name or ""):
                    break
                sib_text = element_text(sib)
                if sib_text and (contains_stop_phrases(sib_text) or looks_like_marketing(sib_text)):
                    break
                if 10 < len(sib_text) < 1500:
                    collected.append(sib_text)
            if collected:
                raw.append((" ".join(collected), True, "heading"))

        if not raw:
            return None
        return [self._score(text, has_heading, origin) for text, has_heading, origin in raw]

    def _score(self, text: str, has_heading: bool, origin: str) -> CandidateBlock:
        if contains_stop_phrases(text):
            return CandidateBlock(self.name, text, has_heading, -10, origin, 0)
        cleaned = clean_food_ingredients(strip_after_markers(text))
        tokens = split_and_filter_tokens(cleaned).ingredients
        return CandidateBlock(
            source_extractor=self.name,
            raw_text=cleaned,
            has_heading=has_heading,
            derived_confidence=calculate_confidence(cleaned, has_heading),
            origin=origin,
            token_count=len(tokens),
        )

    def best(self, blocks: List[CandidateBlock]) -> Optional[CandidateBlock]:
        ranked = rank_blocks(blocks)
        if not ranked:
            return None
        top = ranked[0]
        if top.derived_confidence >= MIN_CONFIDENCE and top.token_count >= self.min_tokens:
            logger.info(f"[Generic] {top.token_count} ingredients, confidence {top.derived_confidence}")
            return top
        return None
