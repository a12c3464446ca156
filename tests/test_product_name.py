"""
Tests for product name extraction and challenge-page detection.
"""

from sage.identity.bot_protection import (
    bot_protection_signal,
    is_bot_protection_name,
    is_bot_protection_page,
)
from sage.identity.product_name import (
    brand_and_type,
    derive_name_from_url,
    extract_best_product_name,
    generate_search_queries,
    normalize_title,
    simplify_product_name,
)

PADDING = "<p>" + "Lorem ipsum dolor sit amet. " * 30 + "</p>"


class TestTitles:
    """Store boilerplate is removed from page titles."""

    def test_separator_suffixes(self):
        assert normalize_title("CeraVe Moisturizing Cream | Ulta Beauty") == "CeraVe Moisturizing Cream"
        assert normalize_title("Acme Serum - Sephora") == "Acme Serum"

    def test_generic_store_title(self):
        assert normalize_title("Amazon.com") is None
        assert normalize_title("") is None

    def test_og_title_first(self):
        html = """
        <html><head>
        <meta property="og:title" content="Acme Hydrating Cream | Acme">
        <title>Shop All | Acme</title>
        </head><body><h1>Hydrating Cream</h1></body></html>
        """
        assert extract_best_product_name(html) == "Acme Hydrating Cream"

    def test_h1_when_title_is_store_name(self):
        html = "<html><head><title>Sephora</title></head><body><h1>Acme Serum</h1></body></html>"
        assert extract_best_product_name(html) == "Acme Serum"

    def test_empty_page(self):
        assert extract_best_product_name("") is None


class TestNameFromUrl:
    """Per-host URL slug rules."""

    def test_sephora_drops_sku(self):
        url = "https://www.sephora.com/product/the-ordinary-niacinamide-10-zinc-1-P427417?skuId=1"
        assert derive_name_from_url(url) == "The Ordinary Niacinamide 10 Zinc 1"

    def test_amazon_segment_before_dp(self):
        url = "https://www.amazon.com/CeraVe-Moisturizing-Cream-Daily-Moisturizer/dp/B00TTD9BRC"
        assert derive_name_from_url(url) == "Cerave Moisturizing Cream Daily Moisturizer"

    def test_amazon_bare_dp_is_unusable(self):
        assert derive_name_from_url("https://www.amazon.com/dp/B00TTD9BRC") is None

    def test_ulta_first_segment(self):
        url = "https://www.ulta.com/cerave-moisturizing-cream?productId=123"
        assert derive_name_from_url(url) == "Cerave Moisturizing Cream"

    def test_products_segment_skipped(self):
        assert derive_name_from_url("https://shop.example.com/products/hydrating-face-wash") == "Hydrating Face Wash"

    def test_acronyms_upper_cased(self):
        url = "https://shop.example.com/products/daily-uv-spf-30-lotion"
        assert derive_name_from_url(url) == "Daily UV SPF 30 Lotion"

    def test_root_path(self):
        assert derive_name_from_url("https://example.com/") is None


class TestSearchQueries:
    """Query ladder for an upstream search provider."""

    def test_simplify(self):
        assert simplify_product_name("CeraVe Gentle Daily Cleanser") == "CeraVe Cleanser"

    def test_brand_and_type(self):
        assert brand_and_type("CeraVe Foaming Cleanser") == ("CeraVe Foaming", "cleanser")
        assert brand_and_type("Vitamin D3") == ("Vitamin D3", None)

    def test_ladder(self):
        queries = generate_search_queries("CeraVe Gentle Foaming Cleanser")
        assert queries[0] == "CeraVe Gentle Foaming Cleanser ingredients INCI list"
        assert queries[1] == "CeraVe Gentle Foaming Cleanser ingredients"
        assert "CeraVe Foaming Cleanser ingredients" in queries
        assert queries[-1] == "cerave foaming cleanser ingredients"


class TestBotProtection:
    """Challenge pages served with 200 OK."""

    def test_empty(self):
        assert bot_protection_signal(None) == "empty_response"
        assert bot_protection_signal("<html></html>") == "empty_response"

    def test_challenge_title(self):
        html = f"<html><head><title>Just a moment...</title></head><body>{PADDING}</body></html>"
        assert bot_protection_signal(html) == "title_challenge"

    def test_challenge_og_title(self):
        html = (
            '<html><head><meta property="og:title" content="Access Denied"></head>'
            f"<body>{PADDING}</body></html>"
        )
        assert bot_protection_signal(html) == "og_title_challenge"

    def test_challenge_content(self):
        html = (
            "<html><body><p>Performance and security by Cloudflare.</p>"
            f"<p>Ray ID: 7d2f0c1b2a3e4f56</p>{PADDING}</body></html>"
        )
        assert bot_protection_signal(html) == "challenge_content"

    def test_short_response(self):
        html = "<html><head><title>Acme Serum</title></head><body><p>" + "x" * 120 + "</p></body></html>"
        assert bot_protection_signal(html) == "short_response"

    def test_real_page(self):
        html = f"<html><head><title>Acme Serum</title></head><body>{PADDING}</body></html>"
        assert not is_bot_protection_page(html)

    def test_name(self):
        assert is_bot_protection_name("Access Denied")
        assert not is_bot_protection_name("CeraVe Moisturizing Cream")
        assert not is_bot_protection_name(None)
