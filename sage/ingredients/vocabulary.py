"""
Shared phrase and hint tables for ingredient extraction and validation.

Every consumer (tokenizer, validators, extractors) imports from here so the
tables are declared once. The marketing tables are kept separate because they
serve different decisions:

- MARKETING_PATTERNS: sentence shapes; a token or block matching one without
  list delimiters is promotional copy.
- MARKETING_WORDS: single words counted by the delimiter-free marketing check.
- MARKETING_PHRASES: phrases counted by the final gatekeeping validator and
  used to drop sentences in strip_marketing_copy.
"""

import re

VOCABULARY_VERSION = "2024.11"

# =============================================================================
# Block cutting and stop phrases
# =============================================================================

# Anything after these in a selected block is UI or tooltip noise
CUT_MARKERS = [
    "also-called", "also called", "aka", "what-it-does", "what it does",
    "comedogenicity", "irritancy", "safety", "details", "learn more", "read more",
    "for freshness", "to preserve freshness", "to maintain freshness",
    "freshness preserved", "added to preserve", "for color",
    "product details", "product information", "product description",
]

# Navigation and script remnants seen in candidate blocks
BLOCK_STOP_PHRASES = [
    "add to cart", "buy now", "shop now", "add to bag", "sold out",
    "free shipping", "customer reviews", "you may also like",
    "javascript", "cookie", "privacy policy", "terms of service",
    "sign up", "subscribe", "newsletter", "follow us",
]

# Page chrome counted by looks_like_ingredients
PAGE_STOP_PHRASES = [
    "select the department", "all departments", "customer service", "sign in",
    "returns & orders", "account & lists", "shop by", "add to cart", "back to top",
    "window", "function(", "var ", "tmp=+new date", "cookie", "Â©", "javascript",
]

SECTION_MARKERS = {
    "may_contain": re.compile(r"\b(may contain|could contain|possible traces)\b", re.I),
    "free_from": re.compile(r"\b(free from|does not contain|without)\b", re.I),
    "warnings": re.compile(r"\b(warning|caution|directions?|usage|storage)\b", re.I),
}

# =============================================================================
# Marketing
# =============================================================================

MARKETING_PATTERNS = [
    re.compile(r"\b(our|your)\s+(supplements?|products?|formula)\s+(are|is)\s+\w+", re.I),
    re.compile(r"\b(designed|formulated|created)\s+to\s+", re.I),
    re.compile(r"\b(supports?|helps?|promotes?|boosts?)\s+(your|healthy|optimal)", re.I),
    re.compile(r"\bunlock\s+(your|the)\s+potential\b", re.I),
    re.compile(r"\bmade\s+(from|with)\s+pure\b", re.I),
    re.compile(r"\bwithout\s+fillers\b", re.I),
]

MARKETING_WORDS = [
    "unlock", "potential", "pure", "fillers", "supplements", "formula",
    "designed", "formulated", "supports", "helps", "promotes", "boosts",
    "optimal", "healthy", "wellness", "vitality", "nourish", "enhance",
]

MARKETING_PHRASES = [
    "unlock the full potential", "unlock your health", "sunshine for your health",
    "better together", "on their own", "essential micronutrients",
    "supports bone health", "promotes", "benefits", "formulated to",
    "clinically proven", "scientifically", "discover", "experience",
    "revolutionary", "advanced formula", "premium quality", "doctor recommended",
    "all natural", "organic certified", "gmp certified", "made in usa", "made from",
    "third party tested", "non-gmo", "gluten free", "dairy free", "vegan",
    "vegetarian", "soy free", "nut free", "free from", "contains no",
    "extra strength", "maximum strength", "high potency", "our formula",
    "why choose", "perfect for", "ideal for", "great for", "best for",
    "without fillers", "no fillers", "filler free", "without additives", "no additives",
    "without preservatives", "no preservatives", "preservative free",
    "our supplements", "our products", "our herbal", "we use", "we only use",
    "quality ingredients", "pure ingredients", "natural ingredients",
    "carefully selected", "hand picked", "sourced from", "harvested from",
    "trusted by", "recommended by", "used by", "loved by",
    "help you", "helps you", "designed to", "created to", "crafted to",
    # allergen and rating claims
    "only rated", "% rated", "rated ", "allergen free", "allergen-free",
    "top allergen", "hypoallergenic", "would not cause", "will not cause",
    "allergic response", "allergic reaction", "virtually anyone", "anyone sensitive",
    "ingredients that have scent", "natural herbal scent", "herbal scents",
    "suitable for all", "safe for all", "dermatologist tested", "dermatologically tested",
    "clinically tested", "ophthalmologist tested", "pediatrician tested",
    "fragrance free", "paraben free", "sulfate free", "phthalate free",
    "cruelty free", "never tested on", "leaping bunny", "certified cruelty",
    # taste and texture adjectives
    "sweet", "spicy", "bitter", "delicious", "delightfully", "refreshing",
    "smooth", "creamy", "luxurious", "aromatic", "savory", "tangy",
    # retail product description language
    "makes a", "tasty snack", "tasty", "wholesome", "wholesome serving",
    "provides", "at work", "before the gym", "after workout", "after the gym",
    "on the go", "each serving", "each scoop", "per serving", "daily value",
    "grams of protein", "grams of fiber", "grams of", "g of protein", "g of fiber",
    "serving provides", "great snack", "perfect snack", "ideal snack", "nutritious",
    "fuel your", "power through", "boost your", "energize your", "satisfy your",
]

REVIEW_PHRASES = [
    "i love", "i hate", "i recommend", "i tried", "this product",
    "highly recommend", "would recommend", "stars", "rating",
    "pros:", "cons:", "purchased", "ordered", "bought this",
    "great product", "love this", "works well", "not worth",
    "waste of money", "best ever", "disappointed",
]

# =============================================================================
# Ingredient hints
# =============================================================================

CHEMICAL_HINTS = [
    "oxide", "sodium", "potassium", "calcium", "magnesium", "sulfate", "chloride",
    "acid", "glycerin", "glycerol", "alcohol", "paraben", "benzoate", "citrate",
    "hydroxide", "carbonate", "phosphate", "nitrate", "sulfide", "dioxide",
    "peg-", "ppg-", "cetyl", "stearyl", "lauryl", "myristyl",
    "dimethicone", "siloxane", "silica", "tocopherol", "retinol", "niacinamide",
    "panthenol", "allantoin", "urea", "betaine", "xanthan",
    "ci ", "fd&c", "yellow ", "red ", "blue ", "green ", "black ", "white ",
]

BOTANICAL_HINTS = [
    "extract", "oil", "butter", "wax", "leaf", "root", "seed", "flower",
    "fruit", "bark", "berry", "peel", "stem", "herb", "plant", "botanical",
]

# Common first ingredients, kept even when surrounded by junk
FIRST_INGREDIENT_WHITELIST = ["water", "aqua", "eau", "woda", "agua", "wasser"]

# EU fragrance allergens, usually the tail of a cosmetic list
LAST_INGREDIENT_WHITELIST = [
    "limonene", "linalool", "citral", "geraniol", "citronellol",
    "coumarin", "eugenol", "farnesol", "benzyl alcohol", "benzyl benzoate",
    "benzyl salicylate", "cinnamal", "cinnamyl alcohol", "hexyl cinnamal",
    "hydroxycitronellal", "hydroxyisohexyl 3-cyclohexene carboxaldehyde",
    "isoeugenol", "amyl cinnamal", "anise alcohol", "methyl 2-octynoate",
]

INCI_HINTS = re.compile(
    r"\b(ingredient[s]?:?|aqua\b|water\b|glycol\b|glycerin\b|sodium\b|butylene\b|tocopher"
    r"|dimethicone|parfum\b|fragrance\b|ci\s?\d{3,6}|(paraben|benzoate|sulfate)s?\b"
    r"|cholecalciferol|menaquinone|ascorbic|retinol|niacinamide|hyaluronic|panthenol|tocopherol)",
    re.I,
)

FOOD_SUPPLEMENT_HINTS = re.compile(
    r"\b(protein|whey|casein|isolate|concentrate|amino|leucine|isoleucine|valine|bcaa"
    r"|glutamine|arginine|lysine|lecithin|salt|sugar|flour|starch|fiber|natural flavor"
    r"|artificial flavor|steviol|stevia|sucralose|acesulfame|aspartame|maltodextrin"
    r"|dextrose|fructose|glucose|lactose|xylitol|erythritol|milk|egg|gelatin|collagen"
    r"|bovine|carrageenan|guar gum|xanthan gum|cellulose|citric acid|malic acid"
    r"|ascorbic acid|lactic acid|vitamin|cholecalciferol|ergocalciferol|cyanocobalamin"
    r"|methylcobalamin|tocopherol|retinol|retinyl|beta-carotene|thiamin|riboflavin"
    r"|niacin|niacinamide|pyridoxine|folate|folic acid|biotin|pantothenic|calcium"
    r"|magnesium|zinc|iron|selenium|copper|manganese|chromium|molybdenum|iodine"
    r"|potassium|phosphate|citrate|carbonate|oxide|gluconate|picolinate|extract|root"
    r"|leaf|berry|seed|fruit|powder|turmeric|curcumin|ashwagandha|ginseng|echinacea"
    r"|elderberry|ginkgo|valerian|saw palmetto|omega-3|dha|epa|coenzyme|ubiquinone"
    r"|probiotics|lactobacillus|bifidobacterium|prebiotic|inulin)\b",
    re.I,
)

COSMETIC_ONLY_TERMS = re.compile(
    r"\b(dimethicone|cetyl alcohol|stearyl|cetearyl|parfum|phenoxyethanol"
    r"|methylparaben|propylparaben|phthalate)\b",
    re.I,
)

# =============================================================================
# Headings
# =============================================================================

SECTION_HEADING = re.compile(
    r"(ingredients?|ingredient list|supplement facts|active ingredients"
    r"|other ingredients|inactive ingredients)\b",
    re.I,
)

# Element text that is nothing but a section heading
SECTION_HEADING_ONLY = re.compile(rf"^\s*(?:{SECTION_HEADING.pattern})\s*:?\s*$", re.I)

EXTENDED_HEADING = re.compile(
    r"(ingredients?|supplement facts?|nutrition facts?|active ingredients?"
    r"|inactive ingredients?|other ingredients?|ingredient list|full ingredient list"
    r"|full list|product ingredients|label info|what's in it|contains|formula"
    r"|made with|nutrition information)\b",
    re.I,
)

HEADING_PREFIX = re.compile(
    r"^(ingredients?|other ingredients?|inactive ingredients?|active ingredients?):\s*", re.I
)

HEADING_ONLY = re.compile(
    r"^(ingredients?|other ingredients?|inactive ingredients?|active ingredients?"
    r"|supplement facts?|nutrition facts?)$",
    re.I,
)

# Tooltip labels some ingredient databases append to names
TOOLTIP_NOISE = [
    re.compile(r"what-it-does:.*", re.I),
    re.compile(r"also-called:.*", re.I),
    re.compile(r"\(moisturizer\)", re.I),
    re.compile(r"\(emollient\)", re.I),
    re.compile(r"\(preservative\)", re.I),
    re.compile(r"\(surfactant\)", re.I),
]

TOOLTIP_MARKERS = re.compile(r"what-it-does|also-called|skin conditioning", re.I)
