"""Marker scan over the page's visible text."""

import logging
import re
from typing import List, Optional

from ..models import CandidateBlock
from ..validators import looks_like_ingredients
from .base import Extractor, ParsedDocument

logger = logging.getLogger(__name__)

INGREDIENT_MARKERS = [
    re.compile(r"\bingredients?:\s*", re.I),
    re.compile(r"\bactive\s+ingredients?:\s*", re.I),
    re.compile(r"\binactive\s+ingredients?:\s*", re.I),
    re.compile(r"\bother\s+ingredients?:\s*", re.I),
    re.compile(r"\bingredient\s+list:\s*", re.I),
    re.compile(r"\bfull\s+ingredient\s+list:\s*", re.I),
    re.compile(r"\bcontains?:\s*", re.I),
    re.compile(r"\bmade\s+with:\s*", re.I),
    re.compile(r"\bformula:\s*", re.I),
    re.compile(r"\blabel\s+info:\s*", re.I),
    re.compile(r"\bwhat'?s\s+in\s+it:\s*", re.I),
    re.compile(r"\bproduct\s+ingredients?:\s*", re.I),
    re.compile(r"\bnutrition\s+information:\s*", re.I),
]

STOP_MARKERS = [
    re.compile(r"\b(directions?|usage|how to use|warnings?|caution|storage|keep out of reach)\b", re.I),
    re.compile(r"\b(nutrition facts|supplement facts|serving size|amount per serving)\b", re.I),
    re.compile(r"\b(add to cart|buy now|shop now|free shipping|customer reviews)\b", re.I),
    re.compile(r"\b(you may also like|related products|similar items)\b", re.I),
    re.compile(r"\b(description|about this|product details|benefits)\b", re.I),
    # ingredient-database metadata
    re.compile(r"\bshow all ingredients by function\b", re.I),
    re.compile(r"\bingredients explained\b", re.I),
    re.compile(r"\bwhat-it-does\b", re.I),
    re.compile(r"\balso-called\b", re.I),
    re.compile(r"\bid-rating\b", re.I),
    re.compile(r"\bsurfactant\s*/\s*cleansing\b", re.I),
    re.compile(r"\bemollient\b.*\bviscosity controlling\b", re.I),
    re.compile(r"\bperfuming\s+(icky|goodie|superstar)\b", re.I),
    re.compile(r"\b(icky|goodie|superstar)\s*\d+\s*-?\s*\d*\b", re.I),
    re.compile(r"\[\s*more\s*\]", re.I),
    re.compile(r"\[\s*less\s*\]", re.I),
    # leaked code
    re.compile(r"#[a-zA-Z][\w-]*\s*>\s*"),
    re.compile(r"\b(function|var|let|const|return|if|else)\s*[({=]", re.I),
    re.compile(r"\$\s*[-+()]"),
    re.compile(r"\bwidth\s*[+\-*/=]", re.I),
]

MARKETING_STOPS = [
    re.compile(r"\b(our|your)\s+(supplements?|products?|formula)\s+(are|is)\b", re.I),
    re.compile(r"\b(designed|formulated|created)\s+to\s+", re.I),
    re.compile(r"\b(supports?|helps?|promotes?|boosts?)\s+(your|healthy|optimal)", re.I),
    re.compile(r"\bunlock\s+(your|the)\s+potential\b", re.I),
    re.compile(r"\bmade\s+(from|with)\s+pure\b", re.I),
    re.compile(r"\bwithout\s+fillers\b", re.I),
    re.compile(r"\bwhy\s+choose\b", re.I),
    re.compile(r"\bperfect\s+for\b", re.I),
]

SOFT_CAP = 500


def extract_until_non_ingredient(text: str) -> Optional[str]:
    """
    Read forward from a marker until the ingredient section ends.

    Stops at the earliest stop or marketing marker; past 500 characters the
    text is cut back to the last sentence end; a dangling "and"/"or" is
    trimmed back to the previous comma.
    """
    normalized = re.sub(r"\s+", " ", text).strip()

    stop_index = len(normalized)
    for marker in STOP_MARKERS + MARKETING_STOPS:
        match = marker.search(normalized)
        if match and match.start() < stop_index:
            stop_index = match.start()

    extracted = normalized[:stop_index].strip()

    if len(extracted) > SOFT_CAP:
        last_period = extracted[:SOFT_CAP].rfind(".")
        if last_period > 100:
            extracted = extracted[:last_period + 1].strip()

    if re.search(r"\b(and|or)\s*$", extracted, re.I):
        last_comma = extracted.rfind(",")
        if last_comma > 0:
            extracted = extracted[:last_comma + 1].strip()

    return extracted if len(extracted) > 40 else None


class PlainTextExtractor(Extractor):
    """
    Scans the whole visible text (scripts and styles removed, collapsed
    sections kept) for an ingredient marker and reads forward from the
    first one that yields a valid list.
    """

    name = "plaintext"
    min_tokens = 1

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        full_text = doc.visible_text
        if len(full_text) < 100:
            logger.debug(f"[{self.name}] body text too short")
            return None

        for marker in INGREDIENT_MARKERS:
            match = marker.search(full_text)
            if not match:
                continue
            extracted = extract_until_non_ingredient(full_text[match.end():])
            if not extracted:
                continue
            if not looks_like_ingredients(extracted):
                logger.debug(f"[{self.name}] candidate after {marker.pattern!r} failed validation")
                continue
            logger.info(f"[{self.name}] valid list after {marker.pattern!r}, length {len(extracted)}")
            candidate = self.block(extracted, origin="marker", has_heading=True, clean=False)
            if candidate:
                return [candidate]

        logger.debug(f"[{self.name}] no valid ingredient lists")
        return None
