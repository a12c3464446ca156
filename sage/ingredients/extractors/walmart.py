"""Walmart product pages."""

import logging
import re
from typing import List, Optional

from ..models import CandidateBlock
from ..tokenizer import dedupe_join
from .base import Extractor, ParsedDocument, element_text

logger = logging.getLogger(__name__)

ACTIVE_HEADING = re.compile(r"^Active\s+Ingredients?$", re.I)
PANEL_HEADING = re.compile(r"^(Ingredients?|Active Ingredient Name)$", re.I)


def _split(text: str, max_len: int) -> List[str]:
    return [s.strip() for s in text.split(",") if 2 <= len(s.strip()) <= max_len]


class WalmartExtractor(Extractor):
    """
    Three layouts, collected in order:
    1. <h3 class="dark-gray">Active Ingredients</h3> + pipe-separated <p class="mid-gray">
    2. Comma-separated <p class="mid-gray"> (the inactive/main list)
    3. Expand-collapse panels with an "Ingredients" heading
    """

    name = "walmart"
    host_patterns = [r"walmart\.com$"]

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        soup = doc.text_soup
        found: List[str] = []

        for heading in soup.select('h3[class*="dark-gray"]'):
            if not ACTIVE_HEADING.match(element_text(heading)):
                continue
            para = heading.find_next_sibling()
            if para is None or para.name != "p" or "mid-gray" not in " ".join(para.get("class") or []):
                continue
            actives = [s.strip() for s in element_text(para).split("|") if s.strip()]
            if actives:
                logger.debug(f"[Walmart] {len(actives)} active ingredients")
                found.extend(actives)

        for para in soup.select('p[class*="mid-gray"]'):
            text = element_text(para)
            if "|" in text:
                continue
            if not (50 < len(text) < 5000 and text.count(",") >= 5 and re.search(r"[A-Z]{2,}", text)):
                continue
            prev = para.find_previous_sibling()
            prev_text = ""
            if prev is not None and prev.name in ("h3", "h4", "dt", "strong"):
                prev_text = element_text(prev).lower()
            if "ingredient" in prev_text or not prev_text or not found:
                items = _split(text, 100)
                if len(items) >= 5:
                    logger.debug(f"[Walmart] ingredient paragraph with {len(items)} items")
                    found.extend(items)
                    break

        for panel in soup.select('div[class*="expand-collapse-content"], div[class*="w_rhen"]'):
            for heading in panel.find_all(["h3", "h4"]):
                heading_text = element_text(heading)
                if not PANEL_HEADING.match(heading_text):
                    continue
                para = heading.find_next_sibling()
                if para is None or para.name != "p":
                    continue
                text = element_text(para)
                single = 10 <= len(text) <= 100 and "," not in text
                if single:
                    logger.debug(f"[Walmart] single ingredient from panel: {text}")
                    found.append(text)
                    break
                if len(text) > 50 and text.count(",") >= 5:
                    items = _split(text, 150)
                    if len(items) >= 5:
                        found.extend(items)

        if not found:
            logger.debug("[Walmart] no ingredients found")
            return None

        joined = dedupe_join(found)
        logger.info(f"[Walmart] {len(found)} tokens, {len(joined.split(', '))} unique")
        candidate = self.block(joined, origin="list", has_heading=True, clean=False)
        return [candidate] if candidate else None
