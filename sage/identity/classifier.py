"""
External-model collaborators for product identity.

ProductClassifier labels a product FOOD or COSMETIC (plus a display
subtype) so the right validator gates its ingredient text. LLMProductJudge
supplies the second-tier opinion for ProductMatcher.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sage.core.exceptions import ClassificationFailure
from sage.llm import LLMClient, get_llm_client

from .models import ExternalOpinion

logger = logging.getLogger(__name__)


class ProductType(str, Enum):
    FOOD = "FOOD"
    COSMETIC = "COSMETIC"


class ProductSubtype(str, Enum):
    COSMETIC = "COSMETIC"
    SKINCARE = "SKINCARE"
    HEALTH_SUPPLEMENT = "HEALTH_SUPPLEMENT"
    FOOD = "FOOD"
    BEAUTY = "BEAUTY"


ALLOWED_SUBTYPES = {
    ProductType.FOOD: {ProductSubtype.FOOD, ProductSubtype.HEALTH_SUPPLEMENT},
    ProductType.COSMETIC: {ProductSubtype.COSMETIC, ProductSubtype.SKINCARE, ProductSubtype.BEAUTY},
}


@dataclass(frozen=True)
class Classification:
    type: ProductType
    subtype: ProductSubtype
    confidence: int
    reasoning: str = ""

    @property
    def is_food(self) -> bool:
        return self.type == ProductType.FOOD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "subtype": self.subtype.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


FALLBACK_CLASSIFICATION = Classification(
    ProductType.COSMETIC,
    ProductSubtype.SKINCARE,
    0,
    "Classification failed - using safe default (cosmetic/skincare)",
)


CLASSIFY_PROMPT = """You are a product classifier. Classify products with TWO categories:

1. TYPE (for extraction pipeline):
   - FOOD = Ice cream, supplements, vitamins, drinks, snacks, protein powder, any edible/ingestible products
   - COSMETIC = Creams, lotions, makeup, shampoo, skincare, any topical products applied to skin/hair

2. SUBTYPE (for user display):
   - COSMETIC = Makeup products (foundation, lipstick, mascara, eyeshadow, blush, concealer)
   - SKINCARE = Skin treatment products (moisturizers, serums, cleansers, toners, sunscreens, lotions, creams)
   - HEALTH_SUPPLEMENT = Vitamins, minerals, supplements, pills, capsules, tablets, protein powders
   - FOOD = Edible products, snacks, beverages, ice cream (excluding supplements)
   - BEAUTY = Hair care, nail care, body care (shampoo, conditioner, nail polish, perfume)

LOGIC:
- If TYPE is FOOD, SUBTYPE must be either FOOD or HEALTH_SUPPLEMENT
- If TYPE is COSMETIC, SUBTYPE must be either COSMETIC, SKINCARE, or BEAUTY

Respond with JSON only in this exact format:
{
  "type": "FOOD" or "COSMETIC",
  "subtype": "COSMETIC" or "SKINCARE" or "HEALTH_SUPPLEMENT" or "FOOD" or "BEAUTY",
  "confidence": 0-100,
  "reasoning": "1 sentence explanation for your choices"
}"""


MATCH_PROMPT = """You are a product matching expert for consumer cosmetics, skincare, food products and supplements.

Determine if two product names refer to the SAME physical base product.
{food_note}
Products are the SAME if:
- Same brand AND same core product line
- Differences only in flavor, shade/color, size, retailer wording, or packaging
- They are known naming variants of one product (e.g. "Dove Beauty Bar" = "Dove Cream Bar")

Products are DIFFERENT if:
- Different product lines (Beauty Bar vs Body Wash)
- Different SPF levels
- Different formulations (Intensive vs Regular, Whey vs Casein)
- Different product types (Bar vs Powder), or one is food and the other cosmetic

Respond with JSON in this exact format:
{{
  "isSameProduct": true or false,
  "confidence": 0-100,
  "reasoning": "short explanation"
}}"""

FOOD_NOTE = """
This is a FOOD/SUPPLEMENT product. Prioritize formulation details (dosage, form, count)
over brand names; generic and brand-name supplements with the same specs at the same
retailer are often the same product.
"""


def _clamp_confidence(value: Any, default: int = 50) -> int:
    try:
        return max(0, min(100, int(value)))
    except (TypeError, ValueError):
        return default


class ProductClassifier:
    """FOOD/COSMETIC classification with a cosmetic/skincare fallback."""

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or get_llm_client()

    async def classify(self, product_name: str) -> Classification:
        logger.info(f"[ProductClassifier] Classifying: {product_name}")
        try:
            data = await self.client.complete_json(
                CLASSIFY_PROMPT, f'Classify this product: "{product_name}"', max_tokens=200
            )
            result = self._parse(data)
        except ClassificationFailure as e:
            logger.warning(f"[ProductClassifier] {e.error}; using fallback")
            return FALLBACK_CLASSIFICATION

        logger.info(
            f"[ProductClassifier] {result.type.value}/{result.subtype.value} ({result.confidence})"
        )
        return result

    @staticmethod
    def _parse(data: Dict[str, Any]) -> Classification:
        try:
            product_type = ProductType(data.get("type"))
        except ValueError:
            raise ClassificationFailure("ProductClassifier", f"invalid type {data.get('type')!r}")
        try:
            subtype = ProductSubtype(data.get("subtype"))
        except ValueError:
            raise ClassificationFailure("ProductClassifier", f"invalid subtype {data.get('subtype')!r}")
        if subtype not in ALLOWED_SUBTYPES[product_type]:
            raise ClassificationFailure(
                "ProductClassifier", f"subtype {subtype.value} not allowed for {product_type.value}"
            )
        return Classification(
            product_type,
            subtype,
            _clamp_confidence(data.get("confidence")),
            str(data.get("reasoning") or "Classification completed"),
        )


class LLMProductJudge:
    """
    External opinion for ProductMatcher.

    Failures propagate as ClassificationFailure so the matcher can fall
    back to its coded score.
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client or get_llm_client()

    async def judge(
        self,
        our_name: str,
        source_name: str,
        source_url: str,
        product_type: Optional[str] = None,
    ) -> ExternalOpinion:
        system = MATCH_PROMPT.format(food_note=FOOD_NOTE if product_type == "FOOD" else "")
        user = (
            f'Our product: "{our_name}"\n'
            f'Source product: "{source_name}"\n'
            f"Source URL: {source_url}\n\n"
            "Are these the same product?"
        )
        data = await self.client.complete_json(system, user, max_tokens=300)
        opinion = ExternalOpinion(
            is_same_product=bool(data.get("isSameProduct", False)),
            confidence=_clamp_confidence(data.get("confidence")),
            reasoning=str(data.get("reasoning") or ""),
        )
        logger.info(
            f"[ProductJudge] same={opinion.is_same_product} confidence={opinion.confidence}"
        )
        return opinion
