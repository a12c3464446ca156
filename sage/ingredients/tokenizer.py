"""
Tokenizer and per-token filter cascade.

Blocks are normalized to ASCII punctuation, split on comma/semicolon/newline
with parenthetical spans masked ("Aqua (Water, Eau)" stays one token), then
each token runs through an ordered cascade. The first rule that matches
decides. The drop rules live in TOKEN_DROP_RULES as (predicate, reason) pairs
so precedence is visible and testable on its own.
"""

import re
from typing import Callable, List, Optional, Tuple

from .models import SplitResult, Token, TokenClass
from .vocabulary import (
    BLOCK_STOP_PHRASES,
    BOTANICAL_HINTS,
    CHEMICAL_HINTS,
    CUT_MARKERS,
    FIRST_INGREDIENT_WHITELIST,
    HEADING_ONLY,
    HEADING_PREFIX,
    LAST_INGREDIENT_WHITELIST,
    MARKETING_PATTERNS,
    MARKETING_WORDS,
    REVIEW_PHRASES,
    SECTION_MARKERS,
)

# =============================================================================
# Normalization
# =============================================================================

_PUNCT_MAP = {
    "\u3001": ",",  # ideographic comma
    "\uff0c": ",",  # fullwidth comma
    "\uff1b": ";",  # fullwidth semicolon
    "\u3002": ".",  # ideographic period
}
_BULLETS = re.compile("[\u2022\u00b7\u25cf\u2043\u25e6\u25aa\u25ab\u2023\u2219\u25cb\u2218|\u2758]")
_SPECIAL_SPACES = re.compile("[\u00a0\u2002-\u200a\u202f\u205f]")


def normalize_unicode_punctuation(text: str, keep_newlines: bool = False) -> str:
    """Map CJK/fullwidth punctuation, bullets and bars to ASCII delimiters; collapse spaces."""
    if not text:
        return ""
    for src, dst in _PUNCT_MAP.items():
        text = text.replace(src, dst)
    text = _BULLETS.sub(",", text)
    text = _SPECIAL_SPACES.sub(" ", text)
    if keep_newlines:
        text = re.sub(r"[ \t\r\f\v]+", " ", text)
        text = re.sub(r" *\n[\s]*", "\n", text)
        return text.strip()
    return re.sub(r"\s+", " ", text).strip()


norm = normalize_unicode_punctuation


# =============================================================================
# Block-level heuristics
# =============================================================================


def has_list_delimiters(text: str) -> bool:
    """Two or more [,;\\n] delimiters, or more than ten words."""
    delimiters = len(re.findall(r"[,;\n]", text))
    return delimiters >= 2 or len(text.split()) > 10


def is_marketing_sentence(text: str) -> bool:
    return any(p.search(text) for p in MARKETING_PATTERNS)


def looks_like_marketing(text: str) -> bool:
    """Promotional copy without list structure."""
    if has_list_delimiters(text):
        return False
    if is_marketing_sentence(text):
        return True
    lower = text.lower()
    return sum(1 for word in MARKETING_WORDS if word in lower) >= 3


def contains_stop_phrases(text: str) -> bool:
    lower = text.lower()
    return any(phrase in lower for phrase in BLOCK_STOP_PHRASES)


_ACTION_VERBS = ["makes a", "provides", "helps", "supports", "boosts", "fuels", "powers", "energizes"]
_LIFESTYLE = ["at work", "before the gym", "after workout", "on the go", "gym", "workout"]
_ADJECTIVES = ["tasty", "wholesome", "delicious", "nutritious", "great", "perfect", "ideal"]
_SERVING_TALK = [
    "each serving", "per serving", "daily value", "grams of protein",
    "g of protein", "grams of fiber", "g of fiber",
]


def looks_like_ingredient_list(text: str) -> bool:
    """Reject review and product-description prose; require name-like structure."""
    lower = text.lower()
    if any(phrase in lower for phrase in REVIEW_PHRASES):
        return False

    marketing_groups = sum(
        1 for group in (_ACTION_VERBS, _LIFESTYLE, _ADJECTIVES, _SERVING_TALK)
        if any(p in lower for p in group)
    )
    if marketing_groups >= 2:
        return False

    has_proper_nouns = re.search(r"[A-Z][a-z]+\s[A-Z][a-z]+", text) is not None
    has_chemical_names = re.search(r"(acid|oxide|ium|ate|ine|ose|glyc|sulf|phos|hydr)\b", text, re.I) is not None
    return has_proper_nouns or has_chemical_names


def count_ingredient_hints(text: str) -> int:
    """Chemical and botanical substring hits plus INCI codes and percentages."""
    lower = text.lower()
    count = sum(1 for hint in CHEMICAL_HINTS if hint in lower)
    count += sum(1 for hint in BOTANICAL_HINTS if hint in lower)
    count += len(re.findall(r"\bpeg-\d+", lower))
    count += len(re.findall(r"\bci\s+\d{5}", lower))
    count += len(re.findall(r"\d+%", lower))
    return count


# =============================================================================
# Splitting
# =============================================================================

_BRACKETED = re.compile(r"[(\[{][^)\]}]*[)\]}]")
_MASK = re.compile(r"\x00(\d+)\x00")


def paren_preserving_split(text: str) -> List[str]:
    """Split on [,;\\n]+ without breaking parenthetical or bracketed spans."""
    masked: List[str] = []

    def _mask(match: re.Match) -> str:
        masked.append(match.group(0))
        return f"\x00{len(masked) - 1}\x00"

    hidden = _BRACKETED.sub(_mask, text)
    tokens = []
    for piece in re.split(r"[,;\n]+", hidden):
        restored = _MASK.sub(lambda m: masked[int(m.group(1))], piece).strip()
        if restored:
            tokens.append(restored)
    return tokens


def outside_brackets(text: str) -> str:
    """Text with bracketed spans blanked out; offsets line up with the input."""
    return _BRACKETED.sub(lambda m: " " * len(m.group(0)), text)


# =============================================================================
# Token filter cascade
# =============================================================================

_PROTECTED = FIRST_INGREDIENT_WHITELIST + LAST_INGREDIENT_WHITELIST
_GLYPHS = "*†±"

# Ordered drop rules: first match wins
TOKEN_DROP_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (lambda t: HEADING_ONLY.match(t) is not None, "heading word only"),
    (lambda t: any(m.search(outside_brackets(t)) for m in SECTION_MARKERS.values()), "section marker"),
    (lambda t: t.startswith("."), "HTML fragment (starts with .)"),
    (lambda t: re.match(r"^(for|to preserve|to maintain|added to preserve)\s+(freshness|color|flavor)", t, re.I) is not None,
     "preservation statement"),
    (lambda t: re.match(r"^(product|details|information|description)$", t, re.I) is not None,
     "section header fragment"),
    (lambda t: re.match(r"^\d+\s*(mg|mcg|g|iu|%)\s*$", t, re.I) is not None, "pure dosage"),
    (lambda t: len(t) > 150, "too long"),
    (lambda t: re.search(r"[a-zA-Z]", t) is None, "no letters"),
    (lambda t: is_marketing_sentence(t) and not has_list_delimiters(t), "marketing sentence"),
]

# Keep rules, tried after every drop rule passed
TOKEN_KEEP_RULES: List[Callable[[str], bool]] = [
    lambda t: count_ingredient_hints(t) > 0,
    lambda t: len(t.split()) <= 6 and len(t) >= 3,
]


def _is_junk(rest: str) -> bool:
    return (
        len(rest.split()) > 3
        or any(g in rest for g in _GLYPHS)
        or "ingredient" in rest.lower()
    )


def _protected_name(token: str) -> Optional[str]:
    """Whitelisted first/last ingredient exactly, or at either end of a junk string."""
    lower = token.lower()
    if lower in _PROTECTED:
        return token
    for name in _PROTECTED:
        for sep in (" ",) + tuple(_GLYPHS):
            if lower.startswith(name + sep) and _is_junk(token[len(name):]):
                return name[0].upper() + name[1:]
            if lower.endswith(sep + name) and _is_junk(token[:-len(name)]):
                return name[0].upper() + name[1:]
    return None


def filter_token(token: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Run one token through the cascade.

    Returns:
        (kept_text, None) or (None, drop_reason)
    """
    raw = norm(token)
    stripped = raw.translate({ord(g): None for g in _GLYPHS}).strip()
    if len(stripped) < 2:
        return None, "too short"

    # Footnote glyphs often separate a protected name from certification junk
    protected = _protected_name(raw) or _protected_name(stripped)
    if protected:
        return protected.translate({ord(g): None for g in _GLYPHS}).strip(), None

    token = HEADING_PREFIX.sub("", stripped)

    for predicate, reason in TOKEN_DROP_RULES:
        if predicate(token):
            return None, reason

    for keep in TOKEN_KEEP_RULES:
        if keep(token):
            return token, None

    return None, "no ingredient hints"


_MAY_CONTAIN_MARKER = re.compile(r"\b(may contain|could contain|possible traces)\b\s*:?\s*", re.I)
_CONTAINS_MARKER = re.compile(r"\b(contains?|includes?):\s*", re.I)


def _unwrap(token: str) -> str:
    """Inner text of a token that is one bracketed statement, e.g. "[May contain nuts]"."""
    if _BRACKETED.fullmatch(token):
        return token[1:-1].strip()
    return token


def split_and_filter_tokens(text: str) -> SplitResult:
    """
    Split a block and sort every piece into ingredients, contains,
    may-contain or dropped.

    A "may contain" or "contains:" marker outside parentheses starts a
    section that runs to the end of the block; text before the marker in
    the same piece is still an ingredient. Markers inside parentheses
    belong to the ingredient they annotate.
    """
    result = SplitResult()
    section = TokenClass.INGREDIENT

    def _route(piece: str, target: TokenClass) -> None:
        kept, reason = filter_token(piece)
        if kept is None:
            result.dropped.append(Token(piece, TokenClass.DROPPED, reason))
        elif target == TokenClass.MAY_CONTAIN:
            result.may_contain.append(kept)
        elif target == TokenClass.CONTAINS:
            result.contains.append(kept)
        else:
            result.ingredients.append(kept)

    for token in paren_preserving_split(text):
        token = _unwrap(token)
        outside = outside_brackets(token)

        may_contain = _MAY_CONTAIN_MARKER.search(outside)
        if may_contain:
            head = token[:may_contain.start()].strip()
            remainder = token[may_contain.end():].strip()
            if head:
                _route(head, section)
            section = TokenClass.MAY_CONTAIN
            for sub in paren_preserving_split(remainder):
                _route(sub, section)
            if not head and not remainder:
                result.dropped.append(Token(token, TokenClass.DROPPED, "section marker"))
            continue

        contains = _CONTAINS_MARKER.search(outside)
        if contains:
            head = token[:contains.start()].strip()
            if head:
                _route(head, section)
            section = TokenClass.CONTAINS
            for sub in paren_preserving_split(token[contains.end():]):
                _route(sub, section)
            continue

        _route(token, section)

    return result


def dedupe_join(tokens: List[str]) -> str:
    """Case-insensitive dedupe, first occurrence wins, joined with ', '."""
    seen = set()
    out = []
    for token in tokens:
        if not token:
            continue
        key = token.lower()
        if key not in seen:
            seen.add(key)
            out.append(token)
    return ", ".join(out)


# =============================================================================
# Block cleanup
# =============================================================================

_CUT_RES = [re.compile(r"\b" + re.escape(m) + r"\b", re.I) for m in CUT_MARKERS]


def strip_after_markers(text: str) -> str:
    """Cut at tooltip/UI markers and scrub leaked code and trailing boilerplate."""
    x = text
    for marker in _CUT_RES:
        match = marker.search(x)
        if match and match.start() > 0:
            x = x[:match.start()]

    x = re.sub(r"#[a-zA-Z][\w-]*\s*>\s*\w+", "", x)
    x = re.sub(r"\b(if|else|function|var|let|const|return|width|height)\s*[=+\-*/><!]+", "", x)
    x = re.sub(r"\$\s*[-+()]", "", x)
    x = re.sub(r"\s+this\s*$", "", x, flags=re.I)
    x = re.sub(r"\s+(for|to preserve|to maintain|added to preserve)\s+(freshness|color|flavor)\.?$", "", x, flags=re.I)
    x = re.sub(r"\.([A-Z][a-z]+)$", "", x)
    return norm(x)


_FOOD_NOISE = [
    re.compile(
        r"\b(calories?|protein|fat|carb(ohydrate)?s?|sugar|sodium|fiber|vitamin [a-z]?[0-9]*"
        r"|calcium|iron|potassium|zinc|magnesium)[:\s]+[\d.,]+(g|mg|mcg|iu|%|cal|oz)?\b",
        re.I,
    ),
    re.compile(r"\b\d+%\s*(daily value|dv|rdi|recommended daily intake)\b", re.I),
    re.compile(r"\b\d{1,3}%(?!\s*[a-z])", re.I),
    re.compile(r"\bContains:\s*[^.]+\.", re.I),
    re.compile(r"\bAllergens?:\s*[^.]+\.", re.I),
    re.compile(r"\b(serving size|servings? per container)[:\s]+[^.,]+[,.]", re.I),
    re.compile(r"\bamount per serving:?", re.I),
]


def clean_food_ingredients(text: str) -> str:
    """Remove nutrition-panel numbers, allergen statements and serving info."""
    for pattern in _FOOD_NOISE:
        text = pattern.sub("", text)
    return re.sub(r"\s{2,}", " ", text).strip()


def process_model_ingredients(raw_text: str) -> str:
    """Re-filter and dedupe text from any source (including model output)."""
    return dedupe_join(split_and_filter_tokens(raw_text).ingredients)
