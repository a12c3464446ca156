"""
Ingredient extraction and validation.

Main entry points:
- IngredientRouter / extract_best_ingredients: pick the ingredient block on a page
- looks_like_ingredients / looks_like_food_ingredients / v2_checks: gatekeeping
- split_and_filter_tokens: tokenizer and filter cascade
- canonicalize / dictionary_coverage: alias table lookups
"""

from .cleaner import CleanedIngredients, IngredientCleaner, IngredientJudge, IngredientVerdict
from .confidence import calculate_confidence, rank_blocks
from .dictionary import canonicalize, dictionary_coverage, get_all_aliases, has_alias
from .models import CandidateBlock, ExtractionResult, IngredientList, RawDocument, Token, TokenClass
from .router import IngredientRouter, extract_best_ingredients
from .tokenizer import dedupe_join, paren_preserving_split, split_and_filter_tokens
from .trace import ExtractionTrace
from .validators import (
    gate_ingredients,
    looks_like_food_ingredients,
    looks_like_ingredients,
    strip_marketing_copy,
    v2_checks,
)

__all__ = [
    "CandidateBlock",
    "CleanedIngredients",
    "ExtractionResult",
    "ExtractionTrace",
    "IngredientCleaner",
    "IngredientJudge",
    "IngredientList",
    "IngredientRouter",
    "IngredientVerdict",
    "RawDocument",
    "Token",
    "TokenClass",
    "calculate_confidence",
    "canonicalize",
    "dedupe_join",
    "dictionary_coverage",
    "extract_best_ingredients",
    "gate_ingredients",
    "get_all_aliases",
    "has_alias",
    "looks_like_food_ingredients",
    "looks_like_ingredients",
    "paren_preserving_split",
    "rank_blocks",
    "split_and_filter_tokens",
    "strip_marketing_copy",
    "v2_checks",
]
