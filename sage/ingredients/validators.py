"""
Gatekeeping validators for finished candidate strings.

looks_like_ingredients / looks_like_food_ingredients give the final
accept/reject. v2_checks adds structural signals (comma density, list length,
bad phrases, dictionary coverage) and splits "may contain" items into a side
channel; it is logged in shadow mode unless the validator_v2 flag is on.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sage.core.exceptions import ValidationRejection

from .dictionary import LOW_COVERAGE, dictionary_coverage
from .tokenizer import paren_preserving_split
from .vocabulary import (
    COSMETIC_ONLY_TERMS,
    FOOD_SUPPLEMENT_HINTS,
    INCI_HINTS,
    MARKETING_PHRASES,
    PAGE_STOP_PHRASES,
)

logger = logging.getLogger(__name__)

MIN_LENGTH = 40
MAX_LENGTH = 8000
MAX_TOKENS = 120


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def ingredient_rejection_reason(text: str) -> Optional[str]:
    """Why a cosmetic/INCI candidate fails, or None when it passes."""
    if not text:
        return "empty"

    text = _collapse(text)
    lower = text.lower()

    marketing_hits = sum(1 for p in MARKETING_PHRASES if p in lower)
    if marketing_hits >= 2:
        return f"marketing phrases ({marketing_hits})"

    if not (re.search(r"[,;] ", text) or INCI_HINTS.search(text)):
        return "no list delimiters or INCI tokens"

    comma_count = text.count(",")
    if comma_count < 3:
        return f"too few commas ({comma_count})"

    if re.search(r"\b(no|without|free\s+from)\s+[a-z]+", text, re.I):
        return "negative claim"

    stop_hits = sum(1 for p in PAGE_STOP_PHRASES if p in lower)
    if stop_hits >= 2:
        return f"stop phrases ({stop_hits})"

    long_words = sum(1 for w in text.split() if len(w) > 15)
    if long_words > 5 and comma_count < 3:
        return "long words without commas"

    tokens = [t.strip() for t in re.split(r"[,;]", text)]
    inci_hits = sum(1 for t in tokens if INCI_HINTS.search(t))
    if len(tokens) < 10 and inci_hits < 3:
        return f"short list with {inci_hits} INCI hits"

    if len(text) < MIN_LENGTH:
        return "too short"
    if len(text) > MAX_LENGTH:
        return "too long"
    return None


def looks_like_ingredients(text: str) -> bool:
    """Accept a cosmetic/INCI ingredient list; reject navigation, scripts and marketing."""
    reason = ingredient_rejection_reason(text)
    if reason:
        logger.debug(f"[Validator] REJECTED: {reason}")
        return False
    return True


def food_rejection_reason(text: str) -> Optional[str]:
    """Why a food/supplement candidate fails, or None when it passes."""
    if not text:
        return "empty"
    text = _collapse(text)

    comma_count = text.count(",")
    if comma_count < 3:
        return f"too few commas ({comma_count})"
    if not FOOD_SUPPLEMENT_HINTS.search(text):
        return "no food or supplement terms"
    if COSMETIC_ONLY_TERMS.search(text):
        return "cosmetic-only terms"
    if len(text) < MIN_LENGTH:
        return "too short"
    if len(text) > MAX_LENGTH:
        return "too long"
    return None


def looks_like_food_ingredients(text: str) -> bool:
    """Relaxed validator for foods and supplements (non-INCI naming)."""
    reason = food_rejection_reason(text)
    if reason:
        logger.debug(f"[FoodValidator] REJECTED: {reason}")
        return False
    return True


# =============================================================================
# Heading and marketing cleanup
# =============================================================================

_HEADING_AT_START = re.compile(
    r"^(Ingredients?|Other Ingredients?|Inactive Ingredients?|Active Ingredients?"
    r"|Full Ingredients?( List)?|Ingredients? overview|Supplement Facts|Drug Facts):?\s*",
    re.I,
)
_FOOTERS = [
    re.compile(r"Please be aware that ingredient lists?.*", re.I | re.S),
    re.compile(r"Please refer to the ingredient list.*", re.I | re.S),
    re.compile(r"Read more on how to read.*", re.I | re.S),
    re.compile(r"\*Ingredient lists? may change.*", re.I | re.S),
    re.compile(r"Note:?\s*Ingredient lists?.*", re.I | re.S),
]


def clean_ingredients_heading(text: str) -> str:
    """Strip a leading heading and trailing retailer disclaimers."""
    if not text:
        return text
    cleaned = _HEADING_AT_START.sub("", text, count=1)
    for footer in _FOOTERS:
        cleaned = footer.sub("", cleaned)
    # "IngredientsWater" merged without a space
    cleaned = re.sub(r"^Ingredients?([A-Z][a-z]+)", r"\1", cleaned)
    return cleaned.strip()


# 21 CFR 201.66 purpose labels
DRUG_FACTS_PURPOSES = [
    "Sunscreen", "Antifungal", "Antimicrobial", "Antipruritic", "Analgesic",
    "Skin Protectant", "Anticaries", "Astringent", "Antacid", "Antiemetic",
    "Antitussive", "Expectorant", "Nasal Decongestant", "Cough Suppressant",
    "Oral Anesthetic", "Oral Analgesic",
]

_DRUG_FACTS_DETECT = re.compile(
    r"\([^)]+%\)\s*,\s*(Sunscreen|Antifungal|Antimicrobial|Antipruritic|Analgesic|Skin Protectant)",
    re.I,
)
_DRUG_FACTS_LABEL = re.compile(
    r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\s*\([^)]+%\))\s*,\s*("
    + "|".join(DRUG_FACTS_PURPOSES)
    + r")\s*[.;]?",
    re.I,
)


def normalize_drug_facts(text: str) -> str:
    """'Homosalate (8 %), Sunscreen.' -> 'Homosalate (8 %),'"""
    return _DRUG_FACTS_LABEL.sub(r"\1,", text)


_MARKETING_SENTENCES = [
    re.compile(r"our\s+(herbal\s+)?supplements?\s+are\s+made", re.I),
    re.compile(r"our\s+products?\s+are\s+made", re.I),
    re.compile(r"we\s+(only\s+)?use\s+", re.I),
    re.compile(r"(without|no|free\s+from)\s+(fillers?|additives?|preservatives?)", re.I),
    re.compile(r"(made|crafted|formulated)\s+(from|with)\s+", re.I),
    re.compile(r"designed\s+to\s+", re.I),
    re.compile(r"\bhelps?\s+(you\s+)?", re.I),
    re.compile(r"\bsupports?\s+", re.I),
    re.compile(r"\bpromotes?\s+", re.I),
    re.compile(r"(only\s+)?rated\s+\d+%", re.I),
    re.compile(r"product\s+is\s+(only\s+)?rated", re.I),
    re.compile(r"(top\s+)?allergen\s+(free|-free)", re.I),
    re.compile(r"(would|will)\s+not\s+cause", re.I),
    re.compile(r"allergic\s+(response|reaction)", re.I),
    re.compile(r"suitable\s+for\s+all", re.I),
    re.compile(r"safe\s+for\s+all", re.I),
]


def strip_marketing_copy(text: str) -> Optional[str]:
    """
    Keep only sentences that read as ingredient lists.

    Returns None when the text is marketing through and through.
    """
    if not text:
        return None

    if _DRUG_FACTS_DETECT.search(text):
        logger.debug("[Validator] Drug Facts format detected, dropping purpose labels")
        text = normalize_drug_facts(text)

    for pattern in _MARKETING_SENTENCES:
        if pattern.search(text):
            logger.debug(f"[Validator] Marketing sentence pattern: {text[:100]}")
            return None

    kept = []
    for sentence in re.split(r"[.!?]+", text):
        sentence = sentence.strip()
        if not sentence:
            continue
        lower = sentence.lower()
        if any(phrase in lower for phrase in MARKETING_PHRASES):
            continue
        if len(sentence) < 20:
            continue
        if "," not in sentence or not INCI_HINTS.search(sentence):
            continue
        kept.append(sentence)

    cleaned = ". ".join(kept).strip()
    return cleaned or None


# =============================================================================
# Structural checks
# =============================================================================


@dataclass
class V2Result:
    """Structural signals for a candidate list."""
    comma_density_ok: bool
    max_len_ok: bool
    has_bad_phrases: bool
    dict_coverage: float
    may_contain: List[str] = field(default_factory=list)
    active_ingredients: List[str] = field(default_factory=list)
    inactive_ingredients: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return (
            self.comma_density_ok
            and self.max_len_ok
            and not self.has_bad_phrases
            and self.dict_coverage >= LOW_COVERAGE
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commaDensityOk": self.comma_density_ok,
            "maxLenOk": self.max_len_ok,
            "hasBadPhrases": self.has_bad_phrases,
            "dictCoverage": round(self.dict_coverage, 3),
            "mayContain": list(self.may_contain),
            "activeIngredients": list(self.active_ingredients),
            "inactiveIngredients": list(self.inactive_ingredients),
        }


_ACTIVE_SECTION = re.compile(r"\bactive\s+ingredients?\s*:?\s*(.*?)(?=\binactive\s+ingredients?\b|$)", re.I | re.S)
_INACTIVE_SECTION = re.compile(r"\b(?:inactive|other)\s+ingredients?\s*:?\s*(.*)$", re.I | re.S)


def _section_items(body: str) -> List[str]:
    items = []
    for piece in paren_preserving_split(body):
        piece = re.sub(r"\s*\b(purpose|uses?|warnings?)\b.*$", "", piece, flags=re.I).strip(" .")
        if piece:
            items.append(piece)
    return items


def v2_checks(text: str, tokens: List[str]) -> V2Result:
    """
    Structural checks on a candidate list.

    1. Comma density: at least max(1, len // 25) delimiters
    2. At most 120 tokens
    3. Bad phrases outside parentheses ("key ingredients", "powered by", "free from", "no X")
    4. Dictionary coverage of the tokens
    5. "May contain" items and CI color codes go to a side channel
    6. Drug-label Active/Inactive sections are split apart
    """
    delimiters = len(re.findall(r"[;,]", text))
    comma_density_ok = delimiters >= max(1, len(text) // 25)
    max_len_ok = len(tokens) <= MAX_TOKENS

    without_parens = re.sub(r"\([^)]*\)", "", text)
    has_bad_phrases = re.search(
        r"\b(key ingredients?|powered by|free from|no\s+\w+)\b", without_parens, re.I
    ) is not None

    may_contain: List[str] = []
    match = re.search(r"\bmay contain[:\s]*([^.]+)", text, re.I)
    if match:
        may_contain.extend(s.strip() for s in re.split(r"[,;]", match.group(1)) if s.strip())
    for token in tokens:
        if re.search(r"\bci\s*\d{5}", token, re.I) and token not in may_contain:
            may_contain.append(token)

    active: List[str] = []
    inactive: List[str] = []
    active_match = _ACTIVE_SECTION.search(text)
    if active_match:
        active = _section_items(active_match.group(1))
    inactive_match = _INACTIVE_SECTION.search(text)
    if inactive_match:
        inactive = _section_items(inactive_match.group(1))

    return V2Result(
        comma_density_ok=comma_density_ok,
        max_len_ok=max_len_ok,
        has_bad_phrases=has_bad_phrases,
        dict_coverage=dictionary_coverage(tokens),
        may_contain=may_contain,
        active_ingredients=active,
        inactive_ingredients=inactive,
    )


def gate_ingredients(text: str, food: bool = False) -> str:
    """
    Final type-aware gate used by the pipelines.

    Food/supplements use the relaxed food validator as-is. Cosmetics are
    stripped of marketing sentences first, then checked strictly.

    Raises:
        ValidationRejection: the candidate failed
    """
    if food:
        reason = food_rejection_reason(text)
        if reason:
            raise ValidationRejection(reason, context={"validator": "food"})
        return text

    stripped = strip_marketing_copy(text)
    if not stripped:
        raise ValidationRejection("marketing copy", context={"validator": "inci"})
    reason = ingredient_rejection_reason(stripped)
    if reason:
        raise ValidationRejection(reason, context={"validator": "inci"})
    return stripped
