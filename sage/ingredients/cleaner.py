"""
External-model ingredient cleaning and judging.

IngredientCleaner asks the model to separate ingredients from headings,
marketing and allergen sections. IngredientJudge only says whether a text
is a real ingredient list; its verdict never edits the text. Both degrade
to deterministic local results when the model is unavailable.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sage.core.exceptions import ClassificationFailure
from sage.llm import LLMClient, get_llm_client

from .tokenizer import dedupe_join

logger = logging.getLogger(__name__)


@dataclass
class CleanedIngredients:
    ingredients: List[str] = field(default_factory=list)
    contains: List[str] = field(default_factory=list)
    may_contain: List[str] = field(default_factory=list)
    raw_text: str = ""
    used_model: bool = False

    @property
    def text(self) -> str:
        return ", ".join(self.ingredients)

    def full_text(self) -> str:
        """Ingredients plus Contains / May contain sections."""
        text = self.text
        if self.contains:
            text += ". Contains: " + ", ".join(self.contains)
        if self.may_contain:
            text += ". May contain: " + ", ".join(self.may_contain)
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingredients": list(self.ingredients),
            "contains": list(self.contains),
            "mayContain": list(self.may_contain),
            "usedModel": self.used_model,
        }


@dataclass
class IngredientVerdict:
    is_valid: bool
    reason: str
    confidence: float
    junk_phrases: List[str] = field(default_factory=list)


FOOD_FILLER_PATTERNS = [
    re.compile(p, re.I) for p in [
        r"^Ingredients?\s*:?\s*",
        r"Active Ingredient Name",
        r"Vitamins? and Minerals?:",
        r"Vitamin and Mineral Blend:",
        r"Contains? \d+%",
        r"Less than \d+%",
        r"Added to Preserve",
        r"Freshness Preserved by",
        r"To Maintain Freshness",
        r"\(a Milk Derivative\)",
        r"\(Non-Nutritive Sweetener\)",
        r"\(for (color|freshness)\)",
        r"\{(Vitamin B\d+|Color|Preservative)\}",
        r"No Nitrites or Nitrates Added",
        r"Uncured",
        r"Without Added",
        r"Not a Significant Source of",
        r"makes a (tasty|great|perfect|delicious|nutritious)",
        r"wholesome serving",
        r"provides \d+g? of (protein|fiber|carbs|carbohydrates)",
        r"\d+%? daily value",
        r"each (serving|scoop|bar|pack|portion) provides",
    ]
] + [re.compile(r"\bCONTAINS?:\s*[A-Z]")]

COSMETIC_FILLER_PATTERNS = [
    re.compile(p, re.I) for p in [
        r"^Ingredients?\s*:?\s*",
        r"^Ingredients? overview",
        r"Full Ingredients? List",
        r"What-it-does:",
        r"Also-called:",
        r"Skin conditioning",
        r"\((moisturizer|emollient|preservative|surfactant|antioxidant|fragrance|colorant|pH adjuster)\)",
        r"Show more",
        r"Read more",
        r"Click to",
        r"Learn more",
        r"free from",
        r"dermatologically tested",
        r"clinically proven",
        r"May contain traces of",
        r"For external use only",
        r"Avoid contact with eyes",
        r"^Active Ingredients?:?\s*$",
        r"^Inactive Ingredients?:?\s*$",
    ]
] + [re.compile(r"\bCopy\b")]


def needs_cleaning(text: str, product_type: Optional[str] = None) -> bool:
    """True if the text carries filler the model should remove."""
    patterns = FOOD_FILLER_PATTERNS if product_type == "FOOD" else COSMETIC_FILLER_PATTERNS
    hits = sum(1 for p in patterns if p.search(text))
    logger.debug(f"[Cleaner] {hits} filler pattern(s) for {product_type or 'COSMETIC'}")
    return hits > 0


CLEANER_SYSTEM = (
    "You are an expert ingredient list cleaner. Return ONLY valid JSON. "
    "No prose, no explanations, no markdown."
)

FOOD_RULES = """
Additional removals for FOOD products:
- Quantity labels: "Contains 2% or less of:", "Less Than 2% Of:"
- Section headers: "Vitamins and Minerals:", "Vitamin and Mineral Blend:"
- Preservation phrases: "Added to Preserve Freshness", "To Maintain Freshness"
- Explanatory parentheses: "(a Milk Derivative)", "(for color)"
- Allergen statements: move "CONTAINS: MILK, SOY" into "contains"
- Keep sub-ingredients: "Enriched Flour (wheat flour, niacin, iron)"
"""

COSMETIC_RULES = """
Additional removals for COSMETIC products:
- Tool tips: "What-it-does:", "Also-called:", "Skin conditioning"
- Functional descriptions in parentheses: "(moisturizer)", "(emollient)", "(preservative)"
- UI elements: "Copy", "Show more", "Read more", "Learn more"
- Warnings: "For external use only", "Avoid contact with eyes"
"""

CLEANER_PROMPT = """Clean this ingredient list for "{name}" ({product_type} product).

RAW INGREDIENT TEXT:
{raw}

Extract ONLY actual ingredient names.
Remove heading words stuck to ingredients ("IngredientsWater" -> "Water"), standalone headings,
section labels, marketing phrases, instructions, lone dosages and certifications.
{rules}
Categorize:
1. ingredients: main ingredient list
2. contains: items after "Contains:" or "Includes:"
3. mayContain: items after "May contain:" or "Possible traces of:"

Keep parentheses content ("Aqua (Water, Eau)") and dosages attached to names.
DO NOT add ingredients that were not in the raw text. Remove duplicates.

Output format (strict JSON only):
{{"ingredients": [...], "contains": [...], "mayContain": [...]}}"""


def _unique(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    seen = set()
    out = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            continue
        value = value.strip()
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


def fallback_split(raw_text: str) -> List[str]:
    """Comma split keeping items longer than 2 and shorter than 150 characters."""
    return [i.strip() for i in raw_text.split(",") if 2 < len(i.strip()) < 150]


class IngredientCleaner:
    """Model-backed cleaning with a comma-split fallback."""

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or get_llm_client()

    async def clean(
        self,
        raw_text: str,
        product_name: Optional[str] = None,
        product_type: Optional[str] = None,
    ) -> CleanedIngredients:
        product_type = product_type or "COSMETIC"
        prompt = CLEANER_PROMPT.format(
            name=product_name or "product",
            product_type=product_type,
            raw=raw_text,
            rules=FOOD_RULES if product_type == "FOOD" else COSMETIC_RULES,
        )
        try:
            data = await self.client.complete_json(CLEANER_SYSTEM, prompt, max_tokens=2000)
        except ClassificationFailure as e:
            logger.warning(f"[Cleaner] {e.error}; falling back to comma split")
            return CleanedIngredients(ingredients=fallback_split(raw_text), raw_text=raw_text)

        cleaned = CleanedIngredients(
            ingredients=_unique(data.get("ingredients")),
            contains=_unique(data.get("contains")),
            may_contain=_unique(data.get("mayContain")),
            raw_text=raw_text,
            used_model=True,
        )
        logger.info(
            f"[Cleaner] {len(cleaned.ingredients)} ingredients, "
            f"{len(cleaned.contains)} contains, {len(cleaned.may_contain)} may contain"
        )
        return cleaned


JUDGE_SYSTEM = (
    "You are an expert at identifying real ingredient lists vs marketing copy, "
    "ratings, or junk text. Always respond with strict JSON only."
)

JUDGE_PROMPT = """{context}Text to validate:
\"\"\"
{text}
\"\"\"

Is this a REAL ingredient list or is it marketing copy/junk text?

VALID: comma-separated chemical, botanical or INCI names. Mineral oil, petroleum,
fragrance, fatty acids, asterisks, percentages and parenthetical clarifications are fine.
INVALID: marketing claims, product ratings, health claims, certifications, navigation text.
If the text is mostly valid but carries a few junk phrases, return isValid=false and list them.

Respond with JSON only:
{{"isValid": true or false, "reason": "...", "confidence": 0.0 to 1.0, "junkPhrases": [...]}}"""


class IngredientJudge:
    """Yes/no verdict on extracted text. Unavailable model means valid at 0.5."""

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or get_llm_client()

    async def validate(self, text: str, product_name: Optional[str] = None) -> IngredientVerdict:
        context = f"Product: {product_name}\n\n" if product_name else ""
        try:
            data = await self.client.complete_json(
                JUDGE_SYSTEM,
                JUDGE_PROMPT.format(context=context, text=text),
                temperature=0.2,
                max_tokens=200,
            )
        except ClassificationFailure as e:
            logger.warning(f"[Judge] {e.error}; using rule-based validation only")
            return IngredientVerdict(True, f"Validation unavailable: {e.error}", 0.5)

        try:
            confidence = float(data.get("confidence", 0.5))
        except (TypeError, ValueError):
            confidence = 0.5
        verdict = IngredientVerdict(
            is_valid=bool(data.get("isValid", True)),
            reason=str(data.get("reason") or ""),
            confidence=max(0.0, min(1.0, confidence)),
            junk_phrases=_unique(data.get("junkPhrases")),
        )
        logger.info(f"[Judge] valid={verdict.is_valid} confidence={verdict.confidence}")
        return verdict


def strip_junk_phrases(text: str, junk_phrases: List[str]) -> str:
    """Remove judge-flagged phrases from the original text and re-join."""
    for phrase in junk_phrases:
        text = re.sub(re.escape(phrase), "", text, flags=re.I)
    return dedupe_join([t.strip(" .") for t in re.split(r"[,;]", text) if t.strip(" .")])
