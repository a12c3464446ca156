"""INCIdecoder: structured ingredient list under #ingredlist-short."""

import logging
import re
from typing import List, Optional

from ..models import CandidateBlock
from ..tokenizer import dedupe_join, norm, strip_after_markers
from ..vocabulary import TOOLTIP_MARKERS, TOOLTIP_NOISE
from .base import Extractor, ParsedDocument, element_text

logger = logging.getLogger(__name__)


class IncidecoderExtractor(Extractor):
    """
    Reads one ingredient name per [role="listitem"] inside #ingredlist-short.

    Only the link text is used, so related products and the "Show More"
    toggle never leak into the list.
    """

    name = "incidecoder"
    host_patterns = [r"incidecoder\.com$"]

    UI_WORDS = re.compile(r"\b(show|read|more|click|copy|learn)\b", re.I)
    SENTENCE_VERBS = re.compile(r"\b(does|is|helps|provides|contains|includes)\b", re.I)

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        container = doc.text_soup.select_one("#ingredlist-short")
        if container is None:
            logger.debug("[INCIdecoder] #ingredlist-short not found")
            return None

        items = container.select('[role="listitem"]')
        if not items:
            logger.debug("[INCIdecoder] no listitem elements")
            return None

        names = []
        for item in items:
            link = item.select_one('a[href*="/ingredients/"]')
            if link is None:
                continue
            text = element_text(link)
            if not text or not 2 <= len(text) <= 100:
                continue
            if self.UI_WORDS.search(element_text(item)):
                continue
            if TOOLTIP_MARKERS.search(text):
                continue
            if self.SENTENCE_VERBS.search(text):
                continue
            if not re.search(r"[A-Z]", text):
                continue

            cleaned = strip_after_markers(text)
            for noise in TOOLTIP_NOISE:
                cleaned = noise.sub("", cleaned)
            cleaned = norm(cleaned)
            if cleaned:
                names.append(cleaned)

        logger.info(f"[INCIdecoder] {len(names)} ingredients from {len(items)} list items")
        joined = dedupe_join(names)
        if not joined:
            return None

        candidate = self.block(joined, origin="list", has_heading=True, clean=False)
        return [candidate] if candidate else None
