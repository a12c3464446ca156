"""
Data models for ingredient extraction.

These models follow one page through the pipeline:
- RawDocument: the page handed in by the caller
- CandidateBlock: a span an extractor believes holds the ingredient list
- Token: one split piece of a block with its filter decision
- IngredientList: the deduped, ordered result with provenance
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

from .trace import ExtractionTrace


class TokenClass(str, Enum):
    """Filter decision for a single token."""
    INGREDIENT = "ingredient"
    CONTAINS = "contains"
    MAY_CONTAIN = "may_contain"
    DROPPED = "dropped"


@dataclass(frozen=True)
class RawDocument:
    """Immutable page input owned by the caller."""
    html: str
    url: Optional[str] = None
    host: str = ""


@dataclass(frozen=True)
class CandidateBlock:
    """Text span produced by one extractor. Re-scoring makes a new block."""
    source_extractor: str
    raw_text: str
    has_heading: bool = False
    derived_confidence: float = 0.0
    # Structural origin inside the extractor ("table", "heading", "inline", ...)
    origin: str = ""
    token_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceExtractor": self.source_extractor,
            "origin": self.origin,
            "hasHeading": self.has_heading,
            "confidence": self.derived_confidence,
            "tokenCount": self.token_count,
            "preview": self.raw_text[:120],
        }


@dataclass(frozen=True)
class Token:
    """One split piece of a block. Dropped tokens carry the reason."""
    text: str
    classification: TokenClass
    reason: Optional[str] = None

    @property
    def kept(self) -> bool:
        return self.classification != TokenClass.DROPPED


@dataclass
class SplitResult:
    """Tokens of one block grouped by classification."""
    ingredients: List[str] = field(default_factory=list)
    contains: List[str] = field(default_factory=list)
    may_contain: List[str] = field(default_factory=list)
    dropped: List[Token] = field(default_factory=list)

    @property
    def tokens(self) -> List[Token]:
        out = [Token(t, TokenClass.INGREDIENT) for t in self.ingredients]
        out += [Token(t, TokenClass.CONTAINS) for t in self.contains]
        out += [Token(t, TokenClass.MAY_CONTAIN) for t in self.may_contain]
        return out + list(self.dropped)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingredients": list(self.ingredients),
            "contains": list(self.contains),
            "mayContain": list(self.may_contain),
            "dropped": [{"token": t.text, "reason": t.reason} for t in self.dropped],
        }


@dataclass
class Provenance:
    """Where an ingredient list came from and how much to trust it."""
    extractor: str
    confidence: float = 0.0
    warnings: List[str] = field(default_factory=list)


@dataclass
class IngredientList:
    """Terminal output: unique items in first-occurrence order."""
    items: List[str]
    provenance: Provenance

    def __post_init__(self):
        seen = set()
        unique = []
        for item in self.items:
            key = item.lower()
            if item and key not in seen:
                seen.add(key)
                unique.append(item)
        self.items = unique

    @property
    def text(self) -> str:
        return ", ".join(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": list(self.items),
            "provenance": {
                "extractor": self.provenance.extractor,
                "confidence": self.provenance.confidence,
                "warnings": list(self.provenance.warnings),
            },
        }


@dataclass
class ExtractionResult:
    """Router output. text/where are None on total failure."""
    text: Optional[str]
    where: Optional[str]
    ingredients: List[str] = field(default_factory=list)
    contains: List[str] = field(default_factory=list)
    may_contain: List[str] = field(default_factory=list)
    confidence: float = 0.0
    token_count: int = 0
    trace: Optional[ExtractionTrace] = None

    @property
    def found(self) -> bool:
        return self.text is not None

    def to_ingredient_list(self) -> Optional[IngredientList]:
        if not self.text:
            return None
        warnings = [] if self.trace is None else list(self.trace.warnings)
        return IngredientList(
            items=list(self.ingredients),
            provenance=Provenance(self.where or "unknown", self.confidence, warnings),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "where": self.where,
            "ingredients": list(self.ingredients),
            "contains": list(self.contains),
            "mayContain": list(self.may_contain),
            "confidence": self.confidence,
            "tokenCount": self.token_count,
            "trace": self.trace.to_dict() if self.trace else None,
        }
