"""DailyMed drug labels: ingredient tables first, heading prose second."""

import logging
import re
from typing import List, Optional

from ..models import CandidateBlock
from ..tokenizer import norm
from ..vocabulary import SECTION_HEADING
from .base import Extractor, ParsedDocument, element_text

logger = logging.getLogger(__name__)

LABEL_HEADINGS = re.compile(
    r"(active ingredients?|inactive ingredients?|other ingredients?|supplement facts?|ingredients)\b",
    re.I,
)
PROSE_HEADING_TAGS = ["h1", "h2", "h3", "h4", "strong", "b"]


class DailyMedExtractor(Extractor):
    """
    Government drug-label pages.

    Strategies:
    1. Tables mentioning ingredients: every non-heading cell, joined
    2. p/div/li under an ingredients heading, plus up to five following siblings

    Tables always outrank prose.
    """

    name = "dailymed"
    host_patterns = [r"dailymed\.nlm\.nih\.gov"]
    origin_priority = {"table": 1, "heading": 0}

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        soup = doc.text_soup
        blocks: List[CandidateBlock] = []

        for table in soup.find_all("table"):
            if not SECTION_HEADING.search(element_text(table)):
                continue
            cells = []
            for cell in table.find_all(["td", "th"]):
                text = element_text(cell)
                if text and 3 < len(text) < 200 and not SECTION_HEADING.search(text):
                    cells.append(text)
            if cells:
                candidate = self.block(", ".join(cells), origin="table", has_heading=True)
                if candidate:
                    blocks.append(candidate)

        for el in soup.find_all(["p", "div", "li"]):
            text = element_text(el)
            prev = el.find_previous_sibling(PROSE_HEADING_TAGS)
            parent_prev = el.parent.find_previous_sibling(PROSE_HEADING_TAGS) if el.parent else None
            if not (
                LABEL_HEADINGS.search(text)
                or (prev is not None and LABEL_HEADINGS.search(element_text(prev)))
                or (parent_prev is not None and LABEL_HEADINGS.search(element_text(parent_prev)))
            ):
                continue

            if 20 < len(text) < 2000:
                candidate = self.block(text, origin="heading", has_heading=True)
                if candidate:
                    blocks.append(candidate)

            for sibling in el.find_next_siblings(limit=5):
                sib_text = norm(sibling.get_text(" ", strip=True))
                if 20 < len(sib_text) < 1500:
                    candidate = self.block(sib_text, origin="heading", has_heading=True)
                    if candidate:
                        blocks.append(candidate)

        if not blocks:
            return None
        best = self.best(blocks)
        if best:
            logger.info(
                f"[DailyMed] {best.token_count} ingredients from {best.origin}, "
                f"confidence {best.derived_confidence}"
            )
        return blocks
