"""Beauty retailers that render the list right after an "Ingredients" heading."""

import logging
from typing import List, Optional

from bs4 import Tag

from ..models import CandidateBlock
from ..tokenizer import dedupe_join, split_and_filter_tokens, strip_after_markers
from ..vocabulary import SECTION_HEADING_ONLY
from .base import Extractor, ParsedDocument, element_text, first_matching

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "button", "summary", "dt",
                "strong", "b", "span", "div", "p", "label"]


class HeadingSiblingExtractor(Extractor):
    """
    Heading + next sibling, with a data-attribute fallback.

    The first element whose whole text is an ingredients heading wins;
    its next element sibling holds the list.
    """

    fallback_selector = ""

    def _heading_sibling(self, doc: ParsedDocument) -> Optional[Tag]:
        heading = first_matching(doc.text_soup.find_all(HEADING_TAGS), SECTION_HEADING_ONLY)
        if heading is None:
            return None
        return heading.find_next_sibling()

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        has_heading = True
        target = self._heading_sibling(doc)
        if target is None or not element_text(target):
            has_heading = False
            target = doc.text_soup.select_one(self.fallback_selector)
        if target is None:
            logger.debug(f"[{self.name}] no ingredients heading or container")
            return None

        raw = element_text(target)
        if not raw:
            return None
        joined = dedupe_join(split_and_filter_tokens(strip_after_markers(raw)).ingredients)
        candidate = self.block(joined, origin="heading" if has_heading else "attribute",
                               has_heading=has_heading, clean=False)
        if candidate:
            logger.info(f"[{self.name}] {candidate.token_count} tokens, confidence {candidate.derived_confidence}")
        return [candidate] if candidate else None


class SephoraExtractor(HeadingSiblingExtractor):
    name = "sephora"
    host_patterns = [r"sephora\.com$"]
    fallback_selector = '[data-comp*="Ingredients"], [data-test*="ingredients"]'


class UltaExtractor(HeadingSiblingExtractor):
    name = "ulta"
    host_patterns = [r"ulta\.com$"]
    fallback_selector = '[data-test*="ingredients"], [id*="ingredients"]'
