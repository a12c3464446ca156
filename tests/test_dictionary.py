"""Tests for the alias dictionary and coverage scoring."""

import pytest

from sage.ingredients.dictionary import (
    INCI_ALIASES,
    canonicalize,
    canonicalize_tokens,
    dictionary_coverage,
    get_all_aliases,
    has_alias,
    is_known_inci,
)


class TestCanonicalize:
    """Alias lookups."""

    def test_known_aliases(self):
        assert canonicalize("Vitamin E") == "tocopherol"
        assert canonicalize("SLS") == "sodium lauryl sulfate"

    def test_miss_preserves_case(self):
        assert canonicalize("Unknown Ingredient") == "Unknown Ingredient"

    def test_lookup_is_case_insensitive_and_trimmed(self):
        assert canonicalize("  vitamin e ") == "tocopherol"

    def test_empty_token(self):
        assert canonicalize("") == ""

    @pytest.mark.parametrize("token", list(INCI_ALIASES)[:40] + ["Water", "Glycerin", "Vitamin E"])
    def test_idempotent(self, token):
        once = canonicalize(token)
        assert canonicalize(once) == once

    def test_every_value_is_a_fixed_point(self):
        for value in INCI_ALIASES.values():
            assert canonicalize(value) == value

    def test_canonicalize_tokens_maps_distinct_tokens(self):
        mapping = canonicalize_tokens(["Vitamin E", "Water", "Vitamin E"])
        assert mapping == {"Vitamin E": "tocopherol", "Water": "Water"}


class TestAliasHelpers:
    """has_alias / get_all_aliases."""

    def test_has_alias(self):
        assert has_alias("sls")
        assert not has_alias("definitely not an alias")
        assert not has_alias("")

    def test_get_all_aliases_returns_copy(self):
        aliases = get_all_aliases()
        aliases["vitamin e"] = "changed"
        assert canonicalize("Vitamin E") == "tocopherol"


class TestCoverage:
    """dictionary_coverage and the known-ingredient heuristics."""

    def test_common_ingredients_have_high_coverage(self):
        assert dictionary_coverage(["water", "glycerin", "tocopherol", "sodium chloride"]) > 0.5

    def test_empty_list(self):
        assert dictionary_coverage([]) == 0

    def test_case_insensitive(self):
        lower = dictionary_coverage(["glycerin", "sodium chloride", "great taste"])
        upper = dictionary_coverage(["GLYCERIN", "SODIUM CHLORIDE", "GREAT TASTE"])
        assert lower == upper

    def test_marketing_copy_has_low_coverage(self):
        assert dictionary_coverage(["feel amazing", "all day long", "love your look"]) == 0

    @pytest.mark.parametrize("token", ["PEG-40 Hydrogenated Castor Oil", "CI 77891", "Rosa Canina Seed Oil"])
    def test_inci_patterns(self, token):
        assert is_known_inci(token)
