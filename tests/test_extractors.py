"""
Tests for source-specific extractors and the extractor registry.
"""

import pytest

from sage.ingredients.extractors import (
    AmazonExtractor,
    DailyMedExtractor,
    GenericExtractor,
    IncidecoderExtractor,
    OpenFoodFactsExtractor,
    ParsedDocument,
    PlainTextExtractor,
    SephoraExtractor,
    SkinsortExtractor,
    WalmartExtractor,
    build_default_registry,
    extract_until_non_ingredient,
    host_of,
)
from sage.ingredients.extractors.openfoodfacts import clean_openfoodfacts_text


def _best(extractor, html, url=None):
    blocks = extractor.extract(ParsedDocument(html, url))
    assert blocks, f"{extractor.name} returned no blocks"
    best = extractor.best(blocks)
    assert best is not None
    return best


class TestParsedDocument:
    """Shared parse per page."""

    def test_host_strips_www(self):
        assert host_of("https://www.Sephora.com/product/x") == "sephora.com"
        assert host_of(None) == ""

    def test_text_soup_drops_scripts(self):
        doc = ParsedDocument("<html><body><script>var x = 1;</script><p>Hello</p></body></html>")
        assert "var x" not in doc.visible_text
        assert "var x" in str(doc.soup)


class TestIncidecoder:
    """One name per list item, UI toggles ignored."""

    def test_reads_list_items(self, incidecoder_html):
        best = _best(IncidecoderExtractor(), incidecoder_html)
        assert best.raw_text == "Water, Glycerin, Cetearyl Alcohol, Dimethicone, Ceramide NP"
        assert "Show More" not in best.raw_text
        assert best.has_heading

    def test_missing_container(self):
        doc = ParsedDocument("<html><body><p>Water, Glycerin</p></body></html>")
        assert IncidecoderExtractor().extract(doc) is None


class TestSkinsort:
    """Actives always come before inactives."""

    def test_actives_first(self, skinsort_html):
        best = _best(SkinsortExtractor(), skinsort_html)
        assert best.raw_text == "Zinc Oxide, Octinoxate, Water, Glycerin, Dimethicone"

    def test_stops_at_next_section(self, skinsort_html):
        best = _best(SkinsortExtractor(), skinsort_html)
        assert "Fragrance" not in best.raw_text


class TestDailyMed:
    """Tables outrank heading prose."""

    def test_table_preferred(self, dailymed_html):
        best = _best(DailyMedExtractor(), dailymed_html)
        assert best.origin == "table"
        assert best.raw_text.startswith("Water, Glycerin, Dimethicone, Cetyl Alcohol")
        assert best.token_count == 5


class TestRetailHeading:
    """Heading followed by a sibling holding the list."""

    def test_sephora_heading_sibling(self, inci_list):
        html = f"""
        <html><body>
        <button>Ingredients</button>
        <div>{inci_list}</div>
        </body></html>
        """
        best = _best(SephoraExtractor(), html)
        assert best.origin == "heading"
        assert best.raw_text.startswith("Water, Glycerin")

    def test_sephora_attribute_fallback(self, inci_list):
        html = f'<html><body><div data-comp="Ingredients">{inci_list}</div></body></html>'
        best = _best(SephoraExtractor(), html)
        assert best.origin == "attribute"
        assert not best.has_heading

    def test_wrapper_text_does_not_count_as_heading(self):
        html = """
        <html><body>
        <div><div><h2>Ingredients</h2><div>Water, Glycerin, Niacinamide, Dimethicone</div></div></div>
        <p>other</p>
        </body></html>
        """
        best = _best(SephoraExtractor(), html, "https://www.sephora.com/product/serum-P1")
        assert best.origin == "heading"
        assert "Niacinamide" in best.raw_text
        assert "other" not in best.raw_text


class TestAmazon:
    """Detail tables win; customer reviews are never read."""

    def test_table_wins_and_reviews_ignored(self, inci_list):
        html = f"""
        <html><body>
        <div id="cm-cr-dp-review-list">
          <span>Ingredients: Alcohol Denat, Fragrance, Glycerin, Limonene, Linalool, Benzyl Salicylate</span>
        </div>
        <table><tr><th>Ingredients</th><td>{inci_list}</td></tr></table>
        </body></html>
        """
        extractor = AmazonExtractor()
        blocks = extractor.extract(ParsedDocument(html, "https://www.amazon.com/dp/B000000000"))
        assert all("Alcohol Denat" not in b.raw_text for b in blocks)
        assert extractor.best(blocks).origin == "table"

    def test_review_tables_and_info_blocks_ignored(self):
        html = """
        <html><body>
        <div id="cm-cr-dp-review-list">
          <div class="important-information">
            Ingredients: Alcohol Denat, Fragrance, Glycerin, Limonene, Linalool, Benzyl Salicylate
          </div>
          <table><tr><th>Ingredients</th><td>Alcohol Denat, Fragrance, Glycerin, Limonene, Linalool</td></tr></table>
        </div>
        </body></html>
        """
        doc = ParsedDocument(html, "https://www.amazon.com/dp/B000000000")
        assert AmazonExtractor().extract(doc) is None


class TestWalmart:
    """Pipe-separated actives, then the comma list."""

    def test_actives_then_inactives(self, inci_list):
        html = f"""
        <html><body>
        <h3 class="dark-gray">Active Ingredients</h3>
        <p class="mid-gray">Zinc Oxide 10% | Titanium Dioxide 5%</p>
        <h3 class="dark-gray">Inactive Ingredients</h3>
        <p class="mid-gray">{inci_list}</p>
        </body></html>
        """
        best = _best(WalmartExtractor(), html)
        assert best.raw_text.startswith("Zinc Oxide 10%, Titanium Dioxide 5%, Water")


class TestOpenFoodFacts:
    """Panel text or the embedded product JSON."""

    def test_embedded_json(self):
        html = """
        <html><body><script>
        var product = {"ingredients_text": "Sugar, Palm Oil, Hazelnuts 13%, Skimmed Milk Powder, Cocoa, Soy Lecithin, Vanillin"};
        </script></body></html>
        """
        best = _best(OpenFoodFactsExtractor(), html)
        assert best.origin == "embedded-json"
        assert "Palm Oil" in best.raw_text

    def test_cleaning_removes_labels(self):
        cleaned = clean_openfoodfacts_text("12 ingredients: Organic Oats, Sugar (5.5%), Salt")
        assert cleaned == "Oats, Sugar , Salt"


class TestPlainText:
    """Marker scan over visible text."""

    def test_reads_until_stop_marker(self):
        text = "Water, Glycerin, Niacinamide, Panthenol, Tocopherol. Directions: apply daily"
        assert extract_until_non_ingredient(text) == "Water, Glycerin, Niacinamide, Panthenol, Tocopherol."

    def test_too_short(self):
        assert extract_until_non_ingredient("Water, Glycerin. Warnings: none") is None

    def test_long_text_cut_back_to_last_period(self):
        first = ", ".join(f"Plant Oil {i}" for i in range(30)) + "."
        rest = " " + ", ".join(f"Seed Butter {i}" for i in range(60))
        assert len(first) > 100
        assert len(first + rest) > 500
        assert extract_until_non_ingredient(first + rest) == first

    def test_dangling_conjunction_trimmed_to_comma(self):
        text = "Water, Glycerin, Niacinamide, Panthenol, Tocopherol, Allantoin and Directions: apply daily"
        assert extract_until_non_ingredient(text) == "Water, Glycerin, Niacinamide, Panthenol, Tocopherol,"

    def test_marker_on_page(self, inci_list):
        html = f"""
        <html><body>
        <p>Our bestselling cream for dry skin.</p>
        <p>Ingredients: {inci_list}. Directions: apply to face and body as needed.</p>
        </body></html>
        """
        best = _best(PlainTextExtractor(), html)
        assert best.origin == "marker"
        assert "Niacinamide" in best.raw_text


class TestGeneric:
    """Heading fallback for unknown hosts."""

    def test_heading_sibling(self, retail_html):
        best = _best(GenericExtractor(), retail_html)
        assert best.derived_confidence >= 2
        assert "Niacinamide" in best.raw_text
        assert "Add to cart" not in best.raw_text

    def test_no_heading(self):
        doc = ParsedDocument("<html><body><p>Nothing to see</p></body></html>")
        assert GenericExtractor().extract(doc) is None


class TestRegistry:
    """Priority order and host predicates."""

    @pytest.fixture
    def registry(self):
        return build_default_registry()

    def test_order(self, registry):
        assert registry.names == [
            "plaintext", "dailymed", "incidecoder", "skinsort", "openfoodfacts",
            "walmart", "sephora", "ulta", "amazon", "generic", "plaintext-fallback",
        ]

    def test_specialized_host(self, registry):
        names = [e.name for e in registry.for_host("incidecoder.com")]
        assert names == ["incidecoder", "generic", "plaintext-fallback"]
        assert registry.is_specialized("incidecoder.com")

    def test_generic_host(self, registry):
        names = [e.name for e in registry.for_host("example.com")]
        assert names == ["plaintext", "generic", "plaintext-fallback"]
        assert not registry.is_specialized("example.com")
