"""
Pytest fixtures for Sage tests.

Pages are small hand-written HTML snippets shaped like the real sources
(ingredient databases, drug labels, retailers) so extractor behaviour can
be checked without network access.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from sage.core.config import FeatureFlags
from sage.llm import LLMClient

INCI_LIST = (
    "Water, Glycerin, Cetearyl Alcohol, Caprylic/Capric Triglyceride, Niacinamide, "
    "Dimethicone, Sodium Hyaluronate, Ceramide NP, Ceramide AP, Phenoxyethanol, "
    "Tocopherol, Xanthan Gum, Carbomer"
)

FOOD_LIST = (
    "Whey Protein Isolate, Cocoa Powder, Natural Flavor, Sunflower Lecithin, "
    "Salt, Sucralose, Xanthan Gum"
)


@pytest.fixture
def inci_list():
    """A genuine 13-ingredient cosmetic list."""
    return INCI_LIST


@pytest.fixture
def food_list():
    """A protein powder ingredient list."""
    return FOOD_LIST


@pytest.fixture
def flags():
    """All feature flags off (shadow defaults)."""
    return FeatureFlags(
        SAGE_FEATURE_IDENTITY_GATE=False,
        SAGE_FEATURE_JSONLD_FIRST=False,
        SAGE_FEATURE_VALIDATOR_V2=False,
        SAGE_ENFORCE_GATE=False,
        SAGE_IDENTITY_THRESHOLD=4.0,
    )


@pytest.fixture
def mock_llm_client():
    """LLM client whose complete_json is an AsyncMock."""
    client = MagicMock(spec=LLMClient)
    client.complete_json = AsyncMock()
    return client


@pytest.fixture
def incidecoder_html():
    """INCIdecoder-style product page with a UI 'Show More' list item."""
    return """
    <html><head><title>CeraVe Moisturizing Cream - INCIDecoder</title></head><body>
    <h1>CeraVe Moisturizing Cream</h1>
    <div id="ingredlist-short">
      <span role="listitem"><a href="/ingredients/water">Water</a></span>,
      <span role="listitem"><a href="/ingredients/glycerin">Glycerin</a></span>,
      <span role="listitem"><a href="/ingredients/cetearyl-alcohol">Cetearyl Alcohol</a></span>,
      <span role="listitem"><a href="/ingredients/dimethicone">Dimethicone</a></span>,
      <span role="listitem"><a href="/ingredients/dimethicone">Dimethicone</a></span>,
      <span role="listitem"><a href="/ingredients/ceramide-np">Ceramide NP</a></span>,
      <span role="listitem"><a href="#">Show More</a></span>
    </div>
    </body></html>
    """


@pytest.fixture
def skinsort_html():
    """Skinsort-style page where inactive items appear before actives in the DOM."""
    return """
    <html><body>
    <div class="related">
      <a href="/ingredients/water">Water</a>
    </div>
    <div>
      <div>Inactive Ingredients</div>
      <a data-ingredient-id="1" href="/ingredients/water">Water</a>
      <a data-ingredient-id="2" href="/ingredients/glycerin">Glycerin</a>
      <a data-ingredient-id="3" href="/ingredients/dimethicone">Dimethicone</a>
      <div>Reviews</div>
      <a data-ingredient-id="4" href="/ingredients/fragrance">Fragrance</a>
    </div>
    <div>
      <div>Active Ingredients</div>
      <a data-ingredient-id="5" href="/ingredients/zinc-oxide">Zinc Oxide</a>
      <a data-ingredient-id="6" href="/ingredients/octinoxate">Octinoxate</a>
    </div>
    </body></html>
    """


@pytest.fixture
def dailymed_html():
    """DailyMed label with both a table and a heading section."""
    return """
    <html><body>
    <h2>INACTIVE INGREDIENTS</h2>
    <p>water, glycerin, dimethicone</p>
    <table>
      <tr><th>Inactive Ingredients</th></tr>
      <tr><td>Water</td><td>Glycerin</td><td>Dimethicone</td><td>Cetyl Alcohol</td>
          <td>Sodium Chloride</td></tr>
    </table>
    </body></html>
    """


@pytest.fixture
def retail_html(inci_list):
    """Generic retailer page with an Ingredients heading and sibling paragraph."""
    return f"""
    <html><head><title>Hydrating Cream | Example Store</title></head><body>
    <nav>Shop now | Add to cart</nav>
    <h3>Ingredients</h3>
    <p>{inci_list}</p>
    <footer>Privacy policy</footer>
    </body></html>
    """
