"""Tests for splitting, the token filter cascade and block cleanup."""

import pytest

from sage.ingredients.models import TokenClass
from sage.ingredients.tokenizer import (
    TOKEN_DROP_RULES,
    clean_food_ingredients,
    count_ingredient_hints,
    dedupe_join,
    filter_token,
    norm,
    paren_preserving_split,
    process_model_ingredients,
    split_and_filter_tokens,
    strip_after_markers,
)


class TestNormalization:
    """Unicode punctuation is mapped to ASCII delimiters."""

    def test_ideographic_and_fullwidth_commas(self):
        assert norm("Aqua、Glycerin，Niacinamide") == "Aqua,Glycerin,Niacinamide"

    def test_non_breaking_space(self):
        assert norm("Shea\u00a0Butter") == "Shea Butter"

    def test_bullets_become_commas(self):
        assert norm("Water • Glycerin") == "Water , Glycerin"

    def test_empty(self):
        assert norm("") == ""


class TestParenPreservingSplit:
    """Parenthetical spans survive splitting."""

    def test_parentheses_kept_whole(self):
        tokens = paren_preserving_split("Aqua (Water, Eau), Glycerin; Niacinamide\nTocopherol")
        assert tokens == ["Aqua (Water, Eau)", "Glycerin", "Niacinamide", "Tocopherol"]

    def test_brackets_kept_whole(self):
        tokens = paren_preserving_split("Mica, [May Contain: CI 77891, CI 77491]")
        assert tokens == ["Mica", "[May Contain: CI 77891, CI 77491]"]

    def test_empty_pieces_dropped(self):
        assert paren_preserving_split("Water,, ;Glycerin") == ["Water", "Glycerin"]


class TestFilterToken:
    """Ordered filter cascade."""

    def test_too_short(self):
        assert filter_token("x") == (None, "too short")

    def test_heading_prefix_stripped(self):
        assert filter_token("Inactive Ingredients: Glycerin") == ("Glycerin", None)

    def test_heading_word_alone_dropped(self):
        assert filter_token("Ingredients") == (None, "heading word only")

    def test_protected_water_extracted_from_heading_junk(self):
        assert filter_token("Ingredients: Water") == ("Water", None)

    def test_protected_fragrance_allergen(self):
        assert filter_token("Limonene") == ("Limonene", None)

    def test_section_marker_dropped(self):
        assert filter_token("Warning: keep out of reach") == (None, "section marker")

    def test_html_fragment_dropped(self):
        assert filter_token(".product-title") == (None, "HTML fragment (starts with .)")

    def test_pure_dosage_dropped(self):
        assert filter_token("60 mg") == (None, "pure dosage")

    def test_section_header_fragment_dropped(self):
        assert filter_token("Details") == (None, "section header fragment")

    def test_no_letters_dropped(self):
        assert filter_token("12345") == (None, "no letters")

    def test_too_long_dropped(self):
        assert filter_token("a" * 151) == (None, "too long")

    def test_footnote_glyphs_removed(self):
        kept, reason = filter_token("Organic Coconut Oil*")
        assert reason is None
        assert kept == "Organic Coconut Oil"

    def test_rules_are_declarative(self):
        reasons = [reason for _, reason in TOKEN_DROP_RULES]
        assert reasons.index("heading word only") < reasons.index("section marker")
        assert reasons[-1] == "marketing sentence"


class TestSplitAndFilter:
    """Block splitting into ingredient / contains / may-contain sections."""

    def test_contains_section(self):
        result = split_and_filter_tokens("Water, Sugar, Salt, Contains: Milk, Soy")
        assert result.ingredients == ["Water", "Sugar", "Salt"]
        assert result.contains == ["Milk", "Soy"]

    def test_may_contain_section_is_sticky(self):
        result = split_and_filter_tokens("Cocoa Butter, Sugar, May contain: peanuts, tree nuts")
        assert result.ingredients == ["Cocoa Butter", "Sugar"]
        assert result.may_contain == ["peanuts", "tree nuts"]

    def test_parenthetical_contains_stays_with_ingredient(self):
        result = split_and_filter_tokens(
            "Whey Protein Isolate (Contains: Milk), Cocoa Powder, Natural Flavor, Sucralose"
        )
        assert result.ingredients == [
            "Whey Protein Isolate (Contains: Milk)", "Cocoa Powder", "Natural Flavor", "Sucralose",
        ]
        assert result.contains == []

    def test_parenthetical_may_contain_stays_with_ingredient(self):
        result = split_and_filter_tokens("Sugar, Chocolate Chips (may contain milk), Wheat Flour, Salt, Baking Soda")
        assert result.ingredients == [
            "Sugar", "Chocolate Chips (may contain milk)", "Wheat Flour", "Salt", "Baking Soda",
        ]
        assert result.may_contain == []
        assert result.dropped == []

    def test_text_before_marker_is_kept(self):
        result = split_and_filter_tokens("Sugar, Cocoa Butter May contain: peanuts, tree nuts")
        assert result.ingredients == ["Sugar", "Cocoa Butter"]
        assert result.may_contain == ["peanuts", "tree nuts"]

    def test_bracketed_may_contain_statement(self):
        result = split_and_filter_tokens("Mica, Titanium Dioxide, [May Contain: CI 77891, CI 77491]")
        assert result.ingredients == ["Mica", "Titanium Dioxide"]
        assert result.may_contain == ["CI 77891", "CI 77491"]

    def test_dropped_tokens_carry_reasons(self):
        result = split_and_filter_tokens("Ingredients, Water, 60 mg, Glycerin")
        assert result.ingredients == ["Water", "Glycerin"]
        reasons = {t.text: t.reason for t in result.dropped}
        assert reasons["Ingredients"] == "heading word only"
        assert reasons["60 mg"] == "pure dosage"
        assert all(t.classification == TokenClass.DROPPED for t in result.dropped)

    def test_every_piece_maps_to_one_token(self):
        text = "Water, Glycerin, 60 mg, Ingredients, Sodium Chloride"
        result = split_and_filter_tokens(text)
        assert len(result.tokens) == len(paren_preserving_split(text))


class TestDedupeJoin:
    """Case-insensitive dedupe in first-occurrence order."""

    def test_dedupe(self):
        assert dedupe_join(["Water", "water", "Glycerin", "WATER"]) == "Water, Glycerin"

    def test_skips_empty(self):
        assert dedupe_join(["", "Water", ""]) == "Water"


class TestBlockCleanup:
    """strip_after_markers, food cleanup and model-output processing."""

    def test_cut_at_tooltip_marker(self):
        cleaned = strip_after_markers("Water, Glycerin, Niacinamide What-it-does: moisturizer")
        assert cleaned == "Water, Glycerin, Niacinamide"

    def test_marker_at_start_is_not_cut(self):
        assert strip_after_markers("Details").startswith("Details")

    def test_trailing_freshness_phrase_removed(self):
        cleaned = strip_after_markers("Oats, Sugar, Tocopherols to preserve freshness")
        assert cleaned.endswith("Tocopherols")

    def test_food_nutrition_numbers_removed(self):
        cleaned = clean_food_ingredients("Protein 20g, Oats, Honey, Serving size: 1 bar, Salt")
        assert "20g" not in cleaned
        assert "Oats" in cleaned

    def test_process_model_ingredients(self):
        assert process_model_ingredients("Ingredients: Water, water, Glycerin, 60 mg") == "Water, Glycerin"

    @pytest.mark.parametrize("text,minimum", [
        ("Sodium Chloride, Rosa Canina Seed Oil", 3),
        ("PEG-40, CI 77891, 2%", 3),
    ])
    def test_hint_counting(self, text, minimum):
        assert count_ingredient_hints(text) >= minimum
