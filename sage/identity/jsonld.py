"""
JSON-LD structured data reader.

Structured data is a candidate source, not ground truth: marketplace
listings often carry stale or seller-supplied values, so every extraction
is sanity-checked against the visible title and H1.
"""

import json
import logging
import re
from typing import Any, List, Optional, Union

from bs4 import BeautifulSoup

from sage.core.config import load_source_registry

from .models import JsonLdProduct, PageSignals, ProductIdentity

logger = logging.getLogger(__name__)

JSONLD_MISMATCH = "jsonld_mismatch"

Markup = Union[str, BeautifulSoup]


def _soup(markup: Markup) -> BeautifulSoup:
    if isinstance(markup, BeautifulSoup):
        return markup
    return BeautifulSoup(markup or "", "html.parser")


def parse_jsonld(markup: Markup) -> List[Any]:
    """All parseable ld+json payloads on the page. Malformed nodes are skipped."""
    nodes = []
    for script in _soup(markup).find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text() or "{}"
        try:
            nodes.append(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.debug(f"[JSON-LD] skipping malformed node: {e}")
    return nodes


def _is_product(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Product" in node_type
    return node_type == "Product"


def pick_product_node(nodes: List[Any]) -> Optional[dict]:
    """First Product node: top level, inside @graph, or inside a top-level array."""
    for node in nodes:
        if _is_product(node):
            return node
        if isinstance(node, dict) and isinstance(node.get("@graph"), list):
            for sub in node["@graph"]:
                if _is_product(sub):
                    return sub
        if isinstance(node, list):
            for item in node:
                if _is_product(item):
                    return item
    return None


def _identity_from_node(product: dict) -> ProductIdentity:
    brand = product.get("brand")
    if isinstance(brand, dict):
        brand = brand.get("name")
    if not isinstance(brand, str):
        brand = ""

    gtin = None
    for key in ("gtin", "gtin13", "gtin14", "gtin12", "gtin8"):
        if product.get(key):
            gtin = str(product[key])
            break

    sku = product.get("sku") or product.get("mpn")
    size = product.get("size")
    name = product.get("name")
    return ProductIdentity(
        brand=brand,
        name=name if isinstance(name, str) else "",
        gtin=gtin,
        sku=str(sku) if sku else None,
        size=size if isinstance(size, str) else None,
    )


def parse_jsonld_identity(markup: Markup) -> ProductIdentity:
    """Brand, name, GTIN and SKU from the Product node (empty identity if none)."""
    product = pick_product_node(parse_jsonld(markup))
    if product is None:
        return ProductIdentity()
    return _identity_from_node(product)


def _ingredients_from_node(product: dict) -> Optional[str]:
    ingredients = product.get("ingredients")
    if isinstance(ingredients, str) and ingredients:
        return ingredients
    if isinstance(ingredients, list) and ingredients:
        return ", ".join(str(i) for i in ingredients)

    active = product.get("activeIngredient")
    if isinstance(active, str) and active:
        return active
    if isinstance(active, list) and active:
        return ", ".join(a.get("name", "") if isinstance(a, dict) else str(a) for a in active)

    props = product.get("additionalProperty")
    if props:
        for prop in props if isinstance(props, list) else [props]:
            if not isinstance(prop, dict):
                continue
            name = str(prop.get("name") or "").lower()
            if "ingredient" in name and prop.get("value"):
                return str(prop["value"])
    return None


def sanity_check_jsonld(
    ingredients: Optional[str],
    identity: ProductIdentity,
    signals: PageSignals,
) -> List[str]:
    """
    Flag structured data that contradicts the visible page.

    1. Marketplace listing carrying a long ingredient list (often stale)
    2. Brand absent from the visible title/H1
    3. Less than 40% of name tokens found in the title
    """
    warnings: List[str] = []
    if not ingredients and not identity.brand:
        return warnings

    marketplaces = load_source_registry().get("marketplaces", [])
    is_marketplace = any(re.search(rf"{re.escape(m)}\.", signals.url_host, re.I) for m in marketplaces)
    if is_marketplace and ingredients and len(ingredients) > 100:
        logger.info("[JSON-LD] marketplace structured data may be stale")
        warnings.append(JSONLD_MISMATCH)

    if identity.brand:
        brand = identity.brand.lower()
        if len(brand) > 3 and brand not in signals.visible_text:
            logger.info(f"[JSON-LD] brand mismatch: {identity.brand!r} not in visible title")
            warnings.append(JSONLD_MISMATCH)

    if identity.name and signals.title:
        name_tokens = [w for w in identity.name.lower().split() if len(w) >= 3]
        title_tokens = signals.title.lower().split()
        overlap = sum(1 for tok in name_tokens if any(tok in t for t in title_tokens))
        ratio = overlap / len(name_tokens) if name_tokens else 0.0
        if len(name_tokens) >= 3 and ratio < 0.4:
            logger.info(f"[JSON-LD] low name overlap ({ratio:.2f})")
            warnings.append(JSONLD_MISMATCH)

    return warnings


def extract_jsonld_product(markup: Markup, signals: PageSignals) -> JsonLdProduct:
    """Ingredients, identity and sanity warnings from the page's Product node."""
    soup = _soup(markup)
    product = pick_product_node(parse_jsonld(soup))
    if product is None:
        return JsonLdProduct()

    ingredients = _ingredients_from_node(product)
    identity = _identity_from_node(product)
    warnings = sanity_check_jsonld(ingredients, identity, signals)
    logger.debug(
        f"[JSON-LD] product brand={identity.brand!r} gtin={identity.gtin} "
        f"ingredients={len(ingredients or '')} warnings={warnings}"
    )
    return JsonLdProduct(ingredients=ingredients, identity=identity, warnings=warnings)
