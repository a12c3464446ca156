"""
Tests for product identity scoring and the JSON-LD reader.
"""

import json

import pytest

from sage.core.exceptions import IdentityMismatch
from sage.identity import (
    gate_identity,
    gtin_matches,
    identity_score,
    is_valid_gtin,
    normalize_brand,
    normalize_scent,
    normalize_size,
    page_signals_from_html,
    parse_jsonld,
    parse_jsonld_identity,
    pick_product_node,
)
from sage.identity.identity import sizes_match
from sage.identity.jsonld import JSONLD_MISMATCH, extract_jsonld_product, sanity_check_jsonld
from sage.identity.models import IdentityReason, PageSignals, ProductIdentity


def _ld(node) -> str:
    return f'<script type="application/ld+json">{json.dumps(node)}</script>'


class TestNormalization:
    """Brand, size and scent normalization."""

    def test_brand_folding(self):
        assert normalize_brand("L'Oréal Paris") == "loreal"
        assert normalize_brand("Dr. Bronner's") == "dr bronners"
        assert normalize_brand(None) == ""

    def test_fluid_ounces_are_volume(self):
        size = normalize_size("8 fl oz")
        assert size.unit == "ml"
        assert size.value == pytest.approx(236.59)

    def test_weight_ounces_are_mass(self):
        size = normalize_size("4 oz")
        assert size.unit == "g"
        assert size.value == pytest.approx(113.4)

    def test_litres_and_grams(self):
        assert normalize_size("1 L").value == 1000.0
        assert normalize_size("250g").unit == "g"
        assert normalize_size("no size here") is None

    def test_sizes_match_within_tolerance(self):
        assert sizes_match("8 fl oz", "236 ml")
        assert not sizes_match("8 fl oz", "8 oz")
        assert not sizes_match("50 ml", "100 ml")

    def test_scent_aliases(self):
        assert normalize_scent("Unscented") == "fragrance-free"
        assert normalize_scent("Lavendar") == "lavender"
        assert normalize_scent("") is None


class TestGtin:
    """Check digits and zero-padded comparison."""

    def test_valid_upc(self):
        assert is_valid_gtin("012345678905")

    def test_invalid_check_digit(self):
        assert not is_valid_gtin("012345678906")

    def test_rejects_letters_and_lengths(self):
        assert not is_valid_gtin("01234567890A")
        assert not is_valid_gtin("12345")
        assert not is_valid_gtin(None)

    def test_upc_equals_ean_with_leading_zero(self):
        assert gtin_matches("012345678905", "0012345678905")
        assert not gtin_matches("012345678905", None)


class TestIdentityScore:
    """Weighted comparison of a page against the wanted product."""

    @pytest.fixture
    def want(self):
        return ProductIdentity(brand="CeraVe", name="Moisturizing Cream", size="16 oz", gtin="012345678905")

    @pytest.fixture
    def signals(self):
        return PageSignals(
            title="CeraVe Moisturizing Cream 16 oz",
            h1="CeraVe Moisturizing Cream",
            url_host="cerave.com",
        )

    def test_brand_only(self):
        score = identity_score(
            PageSignals(title="CeraVe Daily Lotion"),
            None,
            ProductIdentity(brand="CeraVe"),
            threshold=4.0,
        )
        assert score.breakdown.brand == 3.0
        assert score.total == 3.0
        assert not score.passed
        assert score.reason == IdentityReason.LOW_SCORE

    def test_full_match(self, want, signals):
        page = ProductIdentity(brand="CeraVe", gtin="0012345678905")
        score = identity_score(signals, page, want, threshold=4.0)
        assert score.breakdown.gtin == 5.0
        assert score.breakdown.domain_boost == 0.5
        assert score.breakdown.name_tokens == 1.0
        assert score.breakdown.size == 1.0
        assert score.total >= 8
        assert score.passed

    def test_brand_mismatch_short_circuits(self, want, signals):
        score = identity_score(signals, None, ProductIdentity(brand="Neutrogena"), threshold=4.0)
        assert score.total == 0.0
        assert score.reason == IdentityReason.BRAND_MISMATCH

    def test_invalid_gtin_only_drops_gtin_points(self, want, signals):
        page = ProductIdentity(brand="CeraVe", gtin="012345678906")
        score = identity_score(signals, page, want, threshold=4.0)
        assert score.breakdown.gtin == 0.0
        assert score.breakdown.brand == 3.0
        assert any("invalid GTIN" in w for w in score.warnings)

    def test_size_mismatch_reason(self):
        score = identity_score(
            PageSignals(title="CeraVe Cream 8 fl oz"),
            None,
            ProductIdentity(brand="CeraVe", name="Cream", size="16 fl oz"),
            threshold=5.0,
        )
        assert score.reason == IdentityReason.SIZE_MISMATCH

    def test_to_dict(self, want, signals):
        data = identity_score(signals, None, want, threshold=4.0).to_dict()
        assert set(data) == {"breakdown", "total", "passed", "threshold", "reason", "warnings"}
        assert "domainBoost" in data["breakdown"]


class TestGate:
    """Shadow mode logs, enforcement raises."""

    def _low_score(self):
        return identity_score(PageSignals(title="Other"), None, ProductIdentity(brand="CeraVe"), threshold=4.0)

    def test_shadow_returns_score(self):
        score = self._low_score()
        assert gate_identity(score, enforce=False) is score

    def test_enforced_raises(self):
        with pytest.raises(IdentityMismatch) as exc_info:
            gate_identity(self._low_score(), enforce=True)
        assert exc_info.value.context["reason"] == "brand_mismatch"


class TestPageSignals:
    """Title, og:title fallback, H1 and breadcrumbs."""

    def test_signals(self):
        html = """
        <html><head><title>Acme Cream</title></head><body>
        <nav class="breadcrumbs"><a>Home</a><a>Skincare</a></nav>
        <h1>Acme <span>Cream</span></h1>
        </body></html>
        """
        signals = page_signals_from_html(html, "acme.com")
        assert signals.title == "Acme Cream"
        assert signals.h1 == "Acme Cream"
        assert signals.breadcrumbs == ["Home", "Skincare"]
        assert signals.visible_text == "acme cream acme cream"

    def test_og_title_fallback(self):
        html = '<html><head><meta property="og:title" content="Acme Serum"></head><body></body></html>'
        assert page_signals_from_html(html).title == "Acme Serum"


class TestJsonLd:
    """Structured data is a candidate source, checked against the page."""

    def test_malformed_nodes_skipped(self):
        html = '<script type="application/ld+json">{not json</script>' + _ld({"@type": "Product"})
        assert parse_jsonld(html) == [{"@type": "Product"}]

    def test_product_inside_graph(self):
        nodes = [{"@graph": [{"@type": "WebPage"}, {"@type": ["Product", "Thing"], "name": "X"}]}]
        assert pick_product_node(nodes)["name"] == "X"

    def test_product_inside_array(self):
        assert pick_product_node([[{"@type": "Product", "name": "Y"}]])["name"] == "Y"

    def test_identity_fields(self):
        html = _ld({
            "@type": "Product",
            "name": "Hydrating Cleanser",
            "brand": {"@type": "Brand", "name": "CeraVe"},
            "gtin13": "0012345678905",
            "sku": 1234,
        })
        identity = parse_jsonld_identity(html)
        assert identity.brand == "CeraVe"
        assert identity.gtin == "0012345678905"
        assert identity.sku == "1234"

    def test_no_product(self):
        assert parse_jsonld_identity("<html></html>").is_empty

    def test_active_ingredient_list(self):
        html = "<html><head><title>Acme Sunscreen</title></head>" + _ld({
            "@type": "Product",
            "activeIngredient": [{"name": "Zinc Oxide"}, {"name": "Titanium Dioxide"}],
        }) + "</html>"
        product = extract_jsonld_product(html, page_signals_from_html(html, "acme.com"))
        assert product.ingredients == "Zinc Oxide, Titanium Dioxide"
        assert product.warnings == []

    def test_additional_property(self):
        html = _ld({
            "@type": "Product",
            "additionalProperty": {"name": "Ingredients", "value": "Water, Glycerin"},
        })
        product = extract_jsonld_product(html, PageSignals())
        assert product.ingredients == "Water, Glycerin"

    def test_brand_absent_from_title(self):
        warnings = sanity_check_jsonld(
            "Water, Glycerin",
            ProductIdentity(brand="Acme", name="Acme Cream"),
            PageSignals(title="Totally Different Product", url_host="shop.example.com"),
        )
        assert JSONLD_MISMATCH in warnings

    def test_marketplace_long_list(self, inci_list):
        warnings = sanity_check_jsonld(
            inci_list,
            ProductIdentity(),
            PageSignals(title="Cream", url_host="amazon.com"),
        )
        assert warnings == [JSONLD_MISMATCH]
