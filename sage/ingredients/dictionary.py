"""
INCI alias dictionary and dictionary-coverage scoring.

Maps common and marketing names to standard INCI names with a case-insensitive
exact lookup. No fuzzy matching. The table is closed under lookup: every
canonical value either is absent from the keys or maps to itself, so
canonicalize(canonicalize(x)) == canonicalize(x).

    canonicalize("Vitamin E")          -> "tocopherol"
    canonicalize("SLS")                -> "sodium lauryl sulfate"
    canonicalize("Unknown Ingredient") -> "Unknown Ingredient"
"""

import re
from typing import Dict, Iterable, List

# =============================================================================
# Alias table
# =============================================================================

_RAW_ALIASES: Dict[str, str] = {
    # Vitamins
    "vitamin e": "tocopherol",
    "vitamin c": "ascorbic acid",
    "vitamin b3": "niacinamide",
    "vitamin b5": "panthenol",
    "vitamin a": "retinol",
    "vitamin d": "cholecalciferol",
    "vitamin d3": "cholecalciferol",
    "vitamin d2": "ergocalciferol",
    "vitamin k": "phytonadione",
    "vitamin k2": "menaquinone",
    "vitamin k1": "phylloquinone",
    "vitamin b12": "cobalamin",
    "vitamin b6": "pyridoxine",
    "vitamin b1": "thiamine",
    "vitamin b2": "riboflavin",
    "vitamin b9": "folic acid",
    "vitamin h": "biotin",

    # Acronyms
    "sls": "sodium lauryl sulfate",
    "sles": "sodium laureth sulfate",
    "aha": "alpha hydroxy acid",
    "bha": "beta hydroxy acid",
    "pha": "polyhydroxy acid",
    "dmae": "dimethylaminoethanol",
    "mct": "medium chain triglycerides",
    "epa": "eicosapentaenoic acid",
    "dha": "docosahexaenoic acid",

    # Skin care actives
    "hyaluronic acid": "sodium hyaluronate",
    "salicylic acid": "beta hydroxy acid",
    "glycolic acid": "alpha hydroxy acid",
    "lactic acid": "alpha hydroxy acid",
    "tretinoin": "retinoic acid",

    # Botanical oils
    "coconut oil": "cocos nucifera oil",
    "jojoba oil": "simmondsia chinensis seed oil",
    "argan oil": "argania spinosa kernel oil",
    "rosehip oil": "rosa canina fruit oil",
    "sweet almond oil": "prunus amygdalus dulcis oil",
    "avocado oil": "persea gratissima oil",
    "olive oil": "olea europaea fruit oil",
    "sunflower oil": "helianthus annuus seed oil",
    "grapeseed oil": "vitis vinifera seed oil",

    # Butters
    "shea butter": "butyrospermum parkii butter",
    "cocoa butter": "theobroma cacao seed butter",
    "mango butter": "mangifera indica seed butter",

    # Extracts
    "chamomile": "chamomilla recutita",
    "chamomile extract": "chamomilla recutita extract",
    "lavender": "lavandula angustifolia",
    "lavender oil": "lavandula angustifolia oil",
    "tea tree": "melaleuca alternifolia",
    "tea tree oil": "melaleuca alternifolia leaf oil",
    "peppermint": "mentha piperita",
    "peppermint oil": "mentha piperita oil",
    "eucalyptus": "eucalyptus globulus",
    "eucalyptus oil": "eucalyptus globulus leaf oil",
    "rosemary": "rosmarinus officinalis",
    "rosemary extract": "rosmarinus officinalis leaf extract",
    "aloe vera": "aloe barbadensis",
    "aloe vera gel": "aloe barbadensis leaf juice",
    "green tea": "camellia sinensis",
    "green tea extract": "camellia sinensis leaf extract",
    "witch hazel": "hamamelis virginiana",
    "witch hazel extract": "hamamelis virginiana water",

    # Preservatives
    "parabens": "methylparaben",
    "phenoxyethanol": "phenoxyethanol",
    "benzyl alcohol": "benzyl alcohol",
    "potassium sorbate": "potassium sorbate",
    "sodium benzoate": "sodium benzoate",

    # Emulsifiers
    "polysorbate 20": "polysorbate 20",
    "polysorbate 80": "polysorbate 80",
    "lecithin": "lecithin",

    # Humectants
    "glycerin": "glycerin",
    "glycerine": "glycerin",
    "glycerol": "glycerin",
    "propylene glycol": "propylene glycol",
    "butylene glycol": "butylene glycol",
    "sorbitol": "sorbitol",

    # Thickeners
    "xanthan gum": "xanthan gum",
    "carbomer": "carbomer",
    "cellulose gum": "cellulose gum",

    # Minerals and pigments
    "titanium dioxide": "ci 77891",
    "iron oxide": "ci 77491",
    "zinc oxide": "zinc oxide",
    "mica": "mica",

    # Supplements
    "omega 3": "eicosapentaenoic acid",
    "omega-3": "eicosapentaenoic acid",
    "fish oil": "omega-3 fatty acids",
    "flaxseed oil": "linum usitatissimum seed oil",
    "glucosamine": "glucosamine",
    "chondroitin": "chondroitin sulfate",
    "msm": "methylsulfonylmethane",
    "coq10": "ubiquinone",
    "coenzyme q10": "ubiquinone",
}


def _close_aliases(raw: Dict[str, str]) -> Dict[str, str]:
    """Follow alias chains to their end so every value is a fixed point."""
    closed: Dict[str, str] = {}
    for alias in raw:
        seen = [alias]
        target = raw[alias]
        while target in raw and raw[target] != target:
            if target in seen:
                raise ValueError(f"Alias cycle: {' -> '.join(seen + [target])}")
            seen.append(target)
            target = raw[target]
        closed[alias] = target
    return closed


INCI_ALIASES: Dict[str, str] = _close_aliases(_RAW_ALIASES)

# =============================================================================
# Known-ingredient heuristics
# =============================================================================

_KNOWN_INCI_PATTERNS = [
    # chemical
    re.compile(r"\b(sodium|potassium|calcium|magnesium|aluminum)\b"),
    re.compile(r"\b(acid|glycerin|glycerol|alcohol|amine|amide)\b"),
    re.compile(r"\b(oxide|sulfate|chloride|carbonate|phosphate|nitrate)\b"),
    re.compile(r"\b(hydroxide|peroxide|dioxide|citrate|benzoate|sorbate)\b"),
    re.compile(r"\b(paraben|siloxane|silica|tocopherol|retinol|niacinamide)\b"),
    re.compile(r"\b(panthenol|allantoin|urea|betaine|xanthan)\b"),
    re.compile(r"\b(cetyl|stearyl|lauryl|myristyl|palmityl|oleyl)\b"),
    # botanical
    re.compile(r"\b(extract|oil|butter|wax)\b"),
    re.compile(r"\b(leaf|root|seed|flower|fruit|bark|berry|peel|stem)\b"),
    re.compile(r"\b(herb|plant|botanical)\b"),
    # INCI codes and colors
    re.compile(r"\bpeg-\d+\b"),
    re.compile(r"\bppg-\d+\b"),
    re.compile(r"\bci\s?\d{5}"),
    re.compile(r"\bfd&c"),
    re.compile(r"\b(yellow|red|blue|green|black|white)\s+\d+\b"),
    re.compile(r"\b(pigment|colorant|dye)\b"),
    # dosage
    re.compile(r"\d+%"),
]

# Below this coverage a block is probably marketing copy
LOW_COVERAGE = 0.35


def canonicalize(token: str) -> str:
    """Return the INCI name for a known alias, else the token unchanged."""
    if not token:
        return token
    return INCI_ALIASES.get(token.lower().strip(), token)


def canonicalize_tokens(tokens: Iterable[str]) -> Dict[str, str]:
    """Map each distinct token to its canonical name."""
    mapping: Dict[str, str] = {}
    for token in tokens:
        if token not in mapping:
            mapping[token] = canonicalize(token)
    return mapping


def has_alias(token: str) -> bool:
    if not token:
        return False
    return token.lower().strip() in INCI_ALIASES


def get_all_aliases() -> Dict[str, str]:
    return dict(INCI_ALIASES)


def is_known_inci(token: str) -> bool:
    """Heuristic: does the token look like a real ingredient name?"""
    if not token:
        return False
    lower = token.lower()
    return any(pattern.search(lower) for pattern in _KNOWN_INCI_PATTERNS)


def dictionary_coverage(tokens: List[str]) -> float:
    """Fraction (0..1) of tokens that are alias hits or look like known ingredients."""
    if not tokens:
        return 0.0
    known = sum(1 for t in tokens if has_alias(t) or is_known_inci(t))
    return known / len(tokens)
