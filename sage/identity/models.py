"""
Data models for product identity scoring and product matching.

- ProductIdentity: what we want, or what a page claims to be
- PageSignals: visible title/H1/breadcrumbs/host of a fetched page
- IdentityScore: weighted comparison of the two, with a breakdown
- MatchResult / MatchDecision: coded and final verdicts of the product matcher
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class ProductIdentity:
    """Value object for a real-world product."""
    brand: str = ""
    name: str = ""
    gtin: Optional[str] = None
    size: Optional[str] = None
    size_unit: Optional[str] = None  # "ml" | "g"
    form: Optional[str] = None
    scent_shade: Optional[str] = None
    sku: Optional[str] = None
    region: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.brand or self.name or self.gtin)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brand": self.brand,
            "name": self.name,
            "gtin": self.gtin,
            "size": self.size,
            "sizeUnit": self.size_unit,
            "form": self.form,
            "scentShade": self.scent_shade,
            "sku": self.sku,
            "region": self.region,
        }


@dataclass(frozen=True)
class NormalizedSize:
    """Size on one comparison channel: volume in ml or mass in g."""
    value: float
    unit: str


@dataclass
class PageSignals:
    """Visible identity signals of a page."""
    title: str = ""
    h1: str = ""
    breadcrumbs: List[str] = field(default_factory=list)
    url_host: str = ""

    @property
    def visible_text(self) -> str:
        return f"{self.title} {self.h1}".lower()


@dataclass
class IdentityBreakdown:
    """Per-signal points."""
    brand: float = 0.0
    domain_boost: float = 0.0
    name_tokens: float = 0.0
    size: float = 0.0
    form: float = 0.0
    scent: float = 0.0
    gtin: float = 0.0

    @property
    def total(self) -> float:
        return round(
            self.brand + self.domain_boost + self.name_tokens
            + self.size + self.form + self.scent + self.gtin,
            4,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "brand": self.brand,
            "domainBoost": self.domain_boost,
            "nameTokens": round(self.name_tokens, 3),
            "size": self.size,
            "form": self.form,
            "scent": self.scent,
            "gtin": self.gtin,
        }


class IdentityReason(str, Enum):
    """Why an identity comparison failed."""
    BRAND_MISMATCH = "brand_mismatch"
    SIZE_MISMATCH = "size_mismatch"
    SCENT_MISMATCH = "scent_mismatch"
    LOW_SCORE = "low_score"


@dataclass
class IdentityScore:
    """Derived per comparison; never persisted."""
    breakdown: IdentityBreakdown
    threshold: float
    warnings: List[str] = field(default_factory=list)
    reason: Optional[IdentityReason] = None

    @property
    def total(self) -> float:
        return self.breakdown.total

    @property
    def passed(self) -> bool:
        return self.total >= self.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breakdown": self.breakdown.to_dict(),
            "total": self.total,
            "passed": self.passed,
            "threshold": self.threshold,
            "reason": self.reason.value if self.reason else None,
            "warnings": list(self.warnings),
        }


@dataclass
class JsonLdProduct:
    """What a page's structured data says about its product."""
    ingredients: Optional[str] = None
    identity: ProductIdentity = field(default_factory=ProductIdentity)
    warnings: List[str] = field(default_factory=list)


# =============================================================================
# Product matcher
# =============================================================================


@dataclass
class MatchDetails:
    """Points per coded-matcher signal."""
    token_overlap: int = 0
    url_slug_match: int = 0
    synonym_bonus: int = 0
    line_identifier: int = 0
    spf_match: int = 0
    source_bonus: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "tokenOverlap": self.token_overlap,
            "urlSlugMatch": self.url_slug_match,
            "synonymBonus": self.synonym_bonus,
            "lineIdentifier": self.line_identifier,
            "spfMatch": self.spf_match,
            "sourceBonus": self.source_bonus,
        }


@dataclass
class MatchResult:
    """Coded matcher verdict (0-100 confidence)."""
    confidence: int
    is_match: bool
    details: MatchDetails
    reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Match:
    """Settled decision from the coded tier."""
    accepted: bool
    confidence: int
    coded: MatchResult


@dataclass(frozen=True)
class NeedsExternalOpinion:
    """Coded tier was not confident; ask the external model."""
    coded: MatchResult
    threshold: int


CodedOutcome = Union[Match, NeedsExternalOpinion]


@dataclass(frozen=True)
class ExternalOpinion:
    """External model verdict on two product names."""
    is_same_product: bool
    confidence: int
    reasoning: str = ""


class DecisionSource(str, Enum):
    EXACT_URL = "exact_url"
    CODED = "coded"
    EXTERNAL = "external"
    FALLBACK = "fallback"
    NO_NAME = "no_name"


@dataclass
class MatchDecision:
    """Final matcher verdict with where it came from."""
    accepted: bool
    source: DecisionSource
    confidence: int = 0
    coded: Optional[MatchResult] = None
    external: Optional[ExternalOpinion] = None
    threshold: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "source": self.source.value,
            "confidence": self.confidence,
            "threshold": self.threshold,
            "coded": self.coded.details.to_dict() if self.coded else None,
            "external": (
                {
                    "isSameProduct": self.external.is_same_product,
                    "confidence": self.external.confidence,
                    "reasoning": self.external.reasoning,
                }
                if self.external else None
            ),
        }
