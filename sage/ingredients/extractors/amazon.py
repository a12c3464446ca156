"""Amazon product pages: important information, detail tables, inline labels."""

import logging
import re
from typing import List, Optional

from ..models import CandidateBlock
from ..tokenizer import (
    contains_stop_phrases,
    has_list_delimiters,
    looks_like_ingredient_list,
    norm,
)
from .base import Extractor, ParsedDocument, element_text, has_ancestor

logger = logging.getLogger(__name__)

# Customer reviews quote ingredient lists; never read from inside them
REVIEW_CONTAINERS = {
    "id": ["review", "cm-cr", "customer"],
    "class": ["review"],
    "data-hook": ["review"],
}

IMPORTANT_INFO_RE = re.compile(
    r"ingredients?:?\s*(.+?)(?=\n\s*(?:directions?|warnings?|suggested use|storage|legal disclaimer)|$)",
    re.I | re.S,
)
INLINE_RE = re.compile(
    r"ingredients?:?\s*(.+?)(?=\s*(?:directions?|warnings?|legal disclaimer)|$)",
    re.I,
)


class AmazonExtractor(Extractor):
    """
    Multi-pattern extractor.

    Origins, best first: product-details table, important-information
    block, inline "Ingredients:" text. Nothing inside a review container is read.
    """

    name = "amazon"
    host_patterns = [r"amazon\."]
    origin_priority = {"table": 3, "important-info": 2, "inline": 1}

    def _block(self, text: str, origin: str) -> Optional[CandidateBlock]:
        has_heading = re.search(r"ingredients?:", text, re.I) is not None
        return self.block(text, origin=origin, has_heading=has_heading)

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        soup = doc.text_soup
        blocks: List[CandidateBlock] = []

        important = [
            el for el in soup.select("#important-information, [id*='important'], [class*='important-information']")
            if not has_ancestor(el, REVIEW_CONTAINERS)
        ]
        if important:
            full_text = "\n".join(norm(el.get_text("\n", strip=True), keep_newlines=True) for el in important)
            match = IMPORTANT_INFO_RE.search(full_text)
            if match:
                text = norm(match.group(1))
                if 50 < len(text) < 5000:
                    candidate = self._block(text, "important-info")
                    if candidate:
                        blocks.append(candidate)

        for row in soup.select("table tr, .detail-bullet-list tr, [class*='prodDetTable'] tr"):
            if has_ancestor(row, REVIEW_CONTAINERS):
                continue
            cells = row.find_all(["td", "th"])
            if len(cells) < 2:
                continue
            label = element_text(cells[0])
            value = element_text(cells[1])
            if re.search(r"ingredients?", label, re.I) and 20 < len(value) < 3000:
                candidate = self._block(value, "table")
                if candidate:
                    blocks.append(candidate)

        for el in soup.find_all(["div", "span", "p"]):
            if has_ancestor(el, REVIEW_CONTAINERS):
                continue
            match = INLINE_RE.search(element_text(el))
            if not match:
                continue
            text = norm(match.group(1))
            if not has_list_delimiters(text) or not 50 < len(text) < 5000:
                continue
            if contains_stop_phrases(text) or not looks_like_ingredient_list(text):
                continue
            candidate = self._block(text, "inline")
            if candidate:
                blocks.append(candidate)

        if not blocks:
            logger.debug("[Amazon] no ingredients found")
            return None
        best = self.best(blocks)
        if best:
            logger.info(
                f"[Amazon] {best.token_count} ingredients from {best.origin}, "
                f"confidence {best.derived_confidence}"
            )
        return blocks
