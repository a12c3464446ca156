"""Open Food Facts product pages."""

import json
import logging
import re
from typing import List, Optional

from ..models import CandidateBlock
from .base import Extractor, ParsedDocument, element_text

logger = logging.getLogger(__name__)

PANEL_SELECTORS = [
    '#panel_ingredients_content div[class*="text"]',
    "#panel_ingredients_content p",
    "#panel_ingredients_content",
]
PRODUCT_JSON = re.compile(r"var\s+product\s*=\s*(\{.*?\});", re.S)

_NOISE = [
    (re.compile(r"^\d+\s+ingredients?:?\s*", re.I), ""),
    (re.compile(r"\(\d+\s+ingredients?\)", re.I), ""),
    (re.compile(r"ingredients?:?\s*", re.I), ""),
    (re.compile(r"\bshow\s+more\b", re.I), ""),
    (re.compile(r"\bread\s+more\b", re.I), ""),
    (re.compile(r"\bclick\s+to\s+expand\b", re.I), ""),
    (re.compile(r"\bview\s+all\b", re.I), ""),
    (re.compile("\\s*[\u2192\u203a\u00bb]\\s*"), ", "),
    (re.compile(r"\borganic\b", re.I), ""),
    (re.compile(r"\bfair\s+trade\b", re.I), ""),
    (re.compile(r"\bnon-gmo\b", re.I), ""),
    (re.compile(r"\bgluten[- ]free\b", re.I), ""),
    (re.compile(r"\(\d+\.?\d*%\)"), ""),
    (re.compile(r"nutrition\s+facts?:?", re.I), ""),
    (re.compile(r"supplement\s+facts?:?", re.I), ""),
    (re.compile(r"allergen\s+info:?", re.I), ""),
    (re.compile(r"may\s+contain:?", re.I), ""),
]


def clean_openfoodfacts_text(text: str) -> str:
    """Drop count labels, UI words, certification words and bare percentages."""
    for pattern, replacement in _NOISE:
        text = pattern.sub(replacement, text)
    return re.sub(r"\s+", " ", text).strip()


def validate_openfoodfacts_list(text: str) -> bool:
    """Comma list with food-chemistry markers that is not a nutrition table."""
    if not text or len(text) < 30:
        return False
    if text.count(",") < 2:
        return False
    if not re.search(r"\d+|acid|ate|ose|ium|ide|yl|ene", text, re.I):
        return False
    digits = len("".join(re.findall(r"\d+", text)))
    return digits / len(text) <= 0.3


class OpenFoodFactsExtractor(Extractor):
    """
    Strategies, each validated independently:
    1. Ingredients panel selectors
    2. Embedded `var product = {...}` JSON (ingredients_text)
    3. Elements with "ingredient" in class/id
    4. Any element containing "Ingredients: ..."
    """

    name = "openfoodfacts"
    host_patterns = [r"openfoodfacts\.org$"]
    min_tokens = 1

    def _accept(self, text: str, origin: str) -> Optional[List[CandidateBlock]]:
        cleaned = clean_openfoodfacts_text(text)
        if not validate_openfoodfacts_list(cleaned):
            return None
        logger.info(f"[OpenFoodFacts] {origin} success, length {len(cleaned)}")
        candidate = self.block(cleaned, origin=origin, has_heading=True, clean=False)
        return [candidate] if candidate else None

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        for selector in PANEL_SELECTORS:
            panel = doc.soup.select_one(selector)
            if panel is None:
                continue
            text = element_text(panel)
            if len(text) > 20:
                result = self._accept(text, "panel")
                if result:
                    return result

        for script in doc.soup.select("script:not([src])"):
            match = PRODUCT_JSON.search(script.string or "")
            if not match:
                continue
            try:
                product = json.loads(match.group(1))
            except json.JSONDecodeError:
                logger.debug("[OpenFoodFacts] embedded product JSON did not parse")
                continue
            ingredients_text = product.get("ingredients_text") if isinstance(product, dict) else None
            if isinstance(ingredients_text, str):
                result = self._accept(ingredients_text.strip(), "embedded-json")
                if result:
                    return result

        for el in doc.text_soup.select('[class*="ingredient"], [id*="ingredient"]'):
            text = element_text(el)
            if "," in text and 30 < len(text) < 2000:
                result = self._accept(text, "ingredient-element")
                if result:
                    return result

        for el in doc.text_soup.find_all(["div", "section", "p", "span"]):
            text = element_text(el)
            if "," not in text or not 30 < len(text) < 2000:
                continue
            match = re.search(r"ingredients?:\s*(.+)", text, re.I)
            if match:
                result = self._accept(match.group(1).strip(), "labelled-text")
                if result:
                    return result

        logger.debug("[OpenFoodFacts] no valid ingredients found")
        return None
