"""
Product identity: structured-data reading, signal scoring and same-product matching.
"""

from .bot_protection import is_bot_protection_name, is_bot_protection_page
from .classifier import Classification, LLMProductJudge, ProductClassifier, ProductType
from .identity import (
    gate_identity,
    gtin_matches,
    identity_score,
    is_valid_gtin,
    normalize_brand,
    normalize_scent,
    normalize_size,
    page_signals_from_html,
)
from .jsonld import extract_jsonld_product, parse_jsonld, parse_jsonld_identity, pick_product_node
from .matcher import ProductMatcher, validate_multiple_sources, validate_product_match
from .models import (
    DecisionSource,
    IdentityScore,
    MatchDecision,
    MatchResult,
    PageSignals,
    ProductIdentity,
)
from .product_name import derive_name_from_url, extract_best_product_name, generate_search_queries

__all__ = [
    "Classification",
    "DecisionSource",
    "IdentityScore",
    "LLMProductJudge",
    "MatchDecision",
    "MatchResult",
    "PageSignals",
    "ProductClassifier",
    "ProductIdentity",
    "ProductMatcher",
    "ProductType",
    "derive_name_from_url",
    "extract_best_product_name",
    "extract_jsonld_product",
    "gate_identity",
    "generate_search_queries",
    "gtin_matches",
    "identity_score",
    "is_bot_protection_name",
    "is_bot_protection_page",
    "is_valid_gtin",
    "normalize_brand",
    "normalize_scent",
    "normalize_size",
    "page_signals_from_html",
    "parse_jsonld",
    "parse_jsonld_identity",
    "pick_product_node",
    "validate_multiple_sources",
    "validate_product_match",
]
