"""
Product name helpers.

Pulls a usable product name out of a page (og:title, <title>, <h1>) or,
when the page is unusable, out of the URL path. Also builds the search
query ladder handed to an upstream web-search provider.
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

STOP_TITLES = {
    "amazon.com", "walmart.com", "walmart", "target.com", "target",
    "ulta beauty", "ulta.com", "sephora", "sephora.com",
}

_TITLE_SUFFIX = re.compile("\\|.*$|\u2014.*$|\u2013.*$| : .*$| - .*$")
_GENERIC_STORE = re.compile(r"^(amazon|walmart|target|sephora|ulta)\.?(com)?$", re.I)
_ASIN_LIKE = re.compile(r"[A-Z0-9]{8,}")

FILLER_WORDS = {
    "gentle", "daily", "nightly", "super", "ultra", "advanced", "intensive",
    "superfruit", "premium", "professional", "clinical", "dermatologist",
    "tested", "approved", "recommended", "perfect", "ultimate", "essential",
    "pure", "natural", "organic", "fresh", "new", "improved", "extra",
    "deep", "rich", "lightweight", "oil-free", "non-comedogenic",
    "fragrance-free", "paraben-free", "hypoallergenic",
}

PRODUCT_TYPES = [
    "cleanser", "moisturizer", "cream", "lotion", "serum", "oil", "gel",
    "toner", "essence", "mask", "scrub", "exfoliant", "balm", "treatment",
    "sunscreen", "spf", "foundation", "concealer", "powder", "primer",
    "lipstick", "gloss", "liner", "mascara", "eyeshadow", "blush",
    "shampoo", "conditioner", "soap", "wash", "mist", "spray",
]


def normalize_title(title: Optional[str]) -> Optional[str]:
    """Strip store boilerplate after a separator; None for generic store titles."""
    if not title:
        return None
    title = re.sub(r"\s+", " ", title).strip()
    title = _TITLE_SUFFIX.sub(" ", title)
    title = re.sub(r"\s{2,}", " ", title).strip()
    if not title or _GENERIC_STORE.match(title):
        return None
    return title


def extract_best_product_name(html: str) -> Optional[str]:
    """og:title, then <title>, then the first <h1>."""
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")

    og = soup.find("meta", attrs={"property": "og:title"})
    candidates = [
        og.get("content") if og else None,
        soup.title.get_text() if soup.title else None,
    ]
    h1 = soup.find("h1")
    if h1:
        candidates.append(h1.get_text(" ", strip=True))

    for candidate in candidates:
        name = normalize_title(candidate)
        if name and name.lower() not in STOP_TITLES:
            return name
    return None


def _title_case(word: str) -> str:
    lower = word.lower()
    if lower in ("uv", "spf"):
        return word.upper()
    if lower in ("la", "ny", "to", "the", "people"):
        return lower.capitalize()
    return word.upper() if len(word) <= 2 else lower.capitalize()


def derive_name_from_url(url: str) -> Optional[str]:
    """
    Reasonable product name from a URL path.

    Sephora keeps the slug after /product/ without its -P<sku> suffix, Amazon
    the segment before /dp/, everyone else the first segment (or the one
    after /product(s)/).
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    host = re.sub(r"^www\.", "", (parsed.hostname or "").lower())
    parts = parsed.path.strip("/").split("/")

    core = ""
    if host.endswith("sephora.com"):
        if "product" in parts:
            index = parts.index("product")
            if index + 1 < len(parts):
                core = re.sub(r"-P\d+.*$", "", parts[index + 1], flags=re.I)
    elif host.endswith("ulta.com"):
        core = parts[0]
    elif "amazon." in host:
        dp_index = parts.index("dp") if "dp" in parts else -1
        core = parts[dp_index - 1] if dp_index > 0 else parts[0]
    else:
        core = parts[0]
        if core in ("product", "products"):
            core = parts[1] if len(parts) > 1 else ""

    core = re.sub(r"[-_]?dp[-_].*$", "", core, flags=re.I)
    core = _ASIN_LIKE.sub("", core)
    core = re.sub(r"[-_]+", " ", core).strip()
    core = " ".join(_title_case(w) for w in core.split())

    if len(core) < 4:
        return None
    return core


def simplify_product_name(name: str) -> str:
    """Drop marketing filler words."""
    return " ".join(w for w in name.split() if w.lower() not in FILLER_WORDS).strip()


def brand_and_type(name: str) -> Tuple[Optional[str], Optional[str]]:
    """Brand is everything before the first product-type word."""
    words = name.split()
    type_index = next(
        (i for i, w in enumerate(words) if w.lower() in PRODUCT_TYPES), -1
    )
    product_type = words[type_index].lower() if type_index >= 0 else None

    if type_index > 0:
        brand = " ".join(words[:type_index]).strip()
    else:
        capitalized = [w for w in words if w[:1].isupper()]
        brand = " ".join(capitalized[:3]) if len(capitalized) >= 2 else None
    return brand, product_type


def generate_search_queries(product_name: str) -> List[str]:
    """Search queries from most to least specific."""
    brand, product_type = brand_and_type(product_name)
    queries = [
        f"{product_name} ingredients INCI list",
        f"{product_name} ingredients",
    ]

    simplified = simplify_product_name(product_name)
    if simplified != product_name and len(simplified) >= 10:
        queries.append(f"{simplified} ingredients")

    if brand and len(brand) >= 3:
        if product_type:
            queries.append(f"{brand} {product_type} ingredients")
        queries.append(f"{brand} ingredients")

    if product_type:
        distinctive = [
            w for w in product_name.lower().split()
            if w not in FILLER_WORDS and w not in ("the", "to", "and", "for", "with") and len(w) >= 4
        ]
        if len(distinctive) >= 2:
            queries.append(f"{' '.join(distinctive[:2])} {product_type} ingredients")

    return queries


def search_friendly_name(product_name: str) -> str:
    brand, product_type = brand_and_type(product_name)
    if brand and product_type:
        return f"{brand} {product_type}"
    return simplify_product_name(product_name) or product_name
