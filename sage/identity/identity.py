"""
Product identity scoring.

Compares a wanted ProductIdentity with what a page shows (visible signals
plus JSON-LD). Brand is a hard gate. Every other signal adds points:

    brand match         3.0
    manufacturer domain +0.5
    name tokens         0.0 - 1.0 (fraction found in the title)
    size                1.0 (within 10%, same unit channel)
    form                0.5
    scent/shade         0.75
    GTIN                5.0 (valid check digit and equal)

The total passes at SAGE_IDENTITY_THRESHOLD (default 4.0). In shadow mode
callers only log the score; `gate_identity` raises when enforcement is on.
"""

import logging
import re
from typing import List, Optional, Union

from bs4 import BeautifulSoup

from sage.core.config import get_settings, load_source_registry
from sage.core.exceptions import IdentityMismatch

from .models import (
    IdentityBreakdown,
    IdentityReason,
    IdentityScore,
    NormalizedSize,
    PageSignals,
    ProductIdentity,
)

logger = logging.getLogger(__name__)

BRAND_POINTS = 3.0
DOMAIN_BOOST = 0.5
SIZE_POINTS = 1.0
FORM_POINTS = 0.5
SCENT_POINTS = 0.75
GTIN_POINTS = 5.0
SIZE_TOLERANCE = 0.10

NAME_STOPWORDS = {"the", "and", "for", "with", "from", "this", "that"}

# =============================================================================
# Normalization
# =============================================================================


def normalize_brand(brand: Optional[str]) -> str:
    """Lowercase, drop apostrophes and accents, fold common brand spellings."""
    if not brand:
        return ""
    b = brand.lower()
    b = re.sub("['\u2019\u2018]", "", b)
    b = re.sub("[\u00e9\u00e8\u00ea]", "e", b)
    b = re.sub(r"loreal paris|l oreal paris", "loreal", b)
    b = re.sub(r"\bdr\.?\s*", "dr ", b, count=1)
    return re.sub(r"\s+", " ", b).strip()


_SIZE_PATTERNS = [
    # (pattern, factor, unit); order matters: "fl oz" before "oz", "ml" before "l"
    (re.compile(r"([\d.]+)\s*(?:fl\.?\s*oz|fluid\s*ounces?)"), 29.5735, "ml"),
    (re.compile(r"([\d.]+)\s*ml"), 1.0, "ml"),
    (re.compile(r"([\d.]+)\s*l(?:iters?|itres?)?(?![a-z])"), 1000.0, "ml"),
    (re.compile(r"([\d.]+)\s*oz"), 28.3495, "g"),
    (re.compile(r"([\d.]+)\s*kg"), 1000.0, "g"),
    (re.compile(r"([\d.]+)\s*g(?:rams?)?(?![a-z])"), 1.0, "g"),
    (re.compile(r"([\d.]+)\s*lbs?"), 453.592, "g"),
]


def normalize_size(size: Optional[str]) -> Optional[NormalizedSize]:
    """
    Parse a size onto the volume (ml) or mass (g) channel.

    Fluid ounces and weight ounces are different units:
    "8 fl oz" -> 236.59 ml, "4 oz" -> 113.4 g.
    """
    if not size:
        return None
    s = re.sub(r"\s+", " ", size.lower()).strip()
    for pattern, factor, unit in _SIZE_PATTERNS:
        match = pattern.search(s)
        if not match:
            continue
        if unit == "g" and factor == 28.3495 and "fl" in s:
            continue
        try:
            value = float(match.group(1).rstrip("."))
        except ValueError:
            continue
        return NormalizedSize(round(value * factor, 2), unit)
    return None


def sizes_match(a: Optional[str], b: Optional[str], tolerance: float = SIZE_TOLERANCE) -> bool:
    """True when both parse onto the same channel and differ by at most the tolerance."""
    left = normalize_size(a)
    right = normalize_size(b)
    if left is None or right is None or left.unit != right.unit:
        return False
    return abs(left.value - right.value) <= left.value * tolerance


SCENT_ALIASES = {
    "unscented": "fragrance-free",
    "zero fragrance": "fragrance-free",
    "no fragrance": "fragrance-free",
    "no scent": "fragrance-free",
    "fragrance free": "fragrance-free",
    "scent free": "fragrance-free",
    "pepermint": "peppermint",
    "lavendar": "lavender",
    "eucaliptus": "eucalyptus",
    "camomile": "chamomile",
    "nude": "natural",
    "beige": "natural",
    "fair": "light",
    "medium tan": "medium",
}


def normalize_scent(scent: Optional[str]) -> Optional[str]:
    if not scent:
        return None
    lower = scent.lower().strip()
    return SCENT_ALIASES.get(lower, lower)


# =============================================================================
# GTIN
# =============================================================================


def is_valid_gtin(gtin: Optional[str]) -> bool:
    """
    Check-digit validation for GTIN-8, UPC-12, EAN-13 and GTIN-14.

    Non-digits are stripped first; other lengths are invalid.
    """
    if not gtin:
        return False
    if re.search(r"[A-Za-z]", str(gtin)):
        return False
    digits = re.sub(r"\D", "", str(gtin))
    if len(digits) not in (8, 12, 13, 14):
        return False
    payload = [int(d) for d in digits[:-1]]
    check = int(digits[-1])
    total = sum(d * (3 if i % 2 == 0 else 1) for i, d in enumerate(reversed(payload)))
    return (10 - total % 10) % 10 == check


def gtin_matches(a: Optional[str], b: Optional[str]) -> bool:
    """Equal codes after zero-padding to 14 digits (UPC-12 == EAN-13 with a leading 0)."""
    if not a or not b:
        return False
    left = re.sub(r"\D", "", str(a)).zfill(14)
    right = re.sub(r"\D", "", str(b)).zfill(14)
    return left == right


# =============================================================================
# Scoring
# =============================================================================


def brand_boost_from_domain(url_host: str, brand: str) -> float:
    """+0.5 when the page is the brand's own site."""
    if not url_host or not brand:
        return 0.0
    normalized_brand = normalize_brand(brand).replace(" ", "")
    host = re.sub(r"^www\.", "", url_host.lower())
    for key in load_source_registry().get("manufacturer_domains", []):
        if key in normalized_brand and key in host:
            return DOMAIN_BOOST
    return 0.0


def _name_tokens(name: str) -> List[str]:
    return [w for w in name.lower().split() if len(w) >= 3 and w not in NAME_STOPWORDS]


def identity_score(
    signals: PageSignals,
    jsonld_identity: Optional[ProductIdentity],
    want: ProductIdentity,
    threshold: Optional[float] = None,
) -> IdentityScore:
    """Score how well a page matches the wanted product."""
    if threshold is None:
        threshold = get_settings().flags.identity_threshold
    page = jsonld_identity or ProductIdentity()
    breakdown = IdentityBreakdown()
    warnings: List[str] = []

    title_text = (signals.title or signals.h1 or "").lower()
    want_brand = normalize_brand(want.brand)
    json_brand = normalize_brand(page.brand)
    visible = normalize_brand(signals.visible_text)

    brand_match = bool(want_brand) and (want_brand in json_brand or want_brand in visible)
    if not brand_match:
        logger.debug(f"[Identity] brand mismatch: want={want.brand!r} page={page.brand!r}")
        return IdentityScore(breakdown, threshold, warnings, IdentityReason.BRAND_MISMATCH)

    breakdown.brand = BRAND_POINTS
    breakdown.domain_boost = brand_boost_from_domain(signals.url_host, want.brand)

    tokens = _name_tokens(want.name)
    if tokens:
        matched = [t for t in tokens if t in title_text]
        breakdown.name_tokens = len(matched) / len(tokens)

    page_size = page.size or (signals.title if normalize_size(signals.title) else None)
    if want.size and page_size and sizes_match(want.size, page_size):
        breakdown.size = SIZE_POINTS

    if want.form and want.form.lower() in title_text:
        breakdown.form = FORM_POINTS

    want_scent = normalize_scent(want.scent_shade)
    if want_scent:
        page_scent = normalize_scent(page.scent_shade)
        if want_scent in title_text or (page_scent and page_scent == want_scent):
            breakdown.scent = SCENT_POINTS

    if want.gtin and page.gtin:
        if not is_valid_gtin(page.gtin):
            warnings.append(f"invalid GTIN check digit on page: {page.gtin}")
        elif not is_valid_gtin(want.gtin):
            warnings.append(f"invalid GTIN check digit on wanted product: {want.gtin}")
        elif gtin_matches(page.gtin, want.gtin):
            breakdown.gtin = GTIN_POINTS
        else:
            warnings.append("GTIN differs from wanted product")

    score = IdentityScore(breakdown, threshold, warnings)
    if not score.passed:
        if want.size and not breakdown.size:
            score.reason = IdentityReason.SIZE_MISMATCH
        elif want.scent_shade and not breakdown.scent:
            score.reason = IdentityReason.SCENT_MISMATCH
        else:
            score.reason = IdentityReason.LOW_SCORE
    logger.debug(f"[Identity] total={score.total:.2f} threshold={threshold} {breakdown.to_dict()}")
    return score


def gate_identity(score: IdentityScore, enforce: bool) -> IdentityScore:
    """
    Apply the identity gate.

    Raises:
        IdentityMismatch: score below threshold and enforcement on
    """
    if score.passed:
        return score
    if enforce:
        raise IdentityMismatch(
            score.total,
            score.threshold,
            warnings=list(score.warnings),
            context={"reason": score.reason.value if score.reason else None},
        )
    logger.info(
        f"[Identity] shadow: score {score.total:.2f} below {score.threshold:.2f} "
        f"({score.reason.value if score.reason else 'unknown'}), not enforced"
    )
    return score


def page_signals_from_html(markup: Union[str, BeautifulSoup], url_host: str = "") -> PageSignals:
    """Title (or og:title), first H1 and breadcrumb trail."""
    soup = markup if isinstance(markup, BeautifulSoup) else BeautifulSoup(markup or "", "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""
    if not title:
        og = soup.find("meta", attrs={"property": "og:title"})
        title = (og.get("content") or "") if og else ""
    h1 = soup.find("h1")
    breadcrumbs = [
        a.get_text(strip=True)
        for a in soup.select('[itemtype*="BreadcrumbList"] a, .breadcrumbs a')
    ]
    return PageSignals(
        title=title,
        h1=h1.get_text(" ", strip=True) if h1 else "",
        breadcrumbs=breadcrumbs,
        url_host=url_host,
    )
