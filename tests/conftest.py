import json

import httpx
import pytest

from bharatshop.config.settings import Settings
from bharatshop.data_access.catalog import Catalog
from bharatshop.models.product import Product
from bharatshop.services.gemini import GeminiClient

@pytest.fixture
def products():
    return [
        Product(
            id="F1", name="Masala Millet Chips", price=149, category="food", sub_category="snacks",
            description="Baked millet chips", tags=("snack", "vegan"),
            is_vegan=True, is_gluten_free=True, protein_content=4,
        ),
        Product(
            id="F2", name="Cheese Crackers", price=149, category="food", sub_category="snacks",
            description="Crispy cheddar crackers", tags=("snack",),
            is_vegan=False, is_gluten_free=False, protein_content=6,
        ),
        Product(
            id="F3", name="Almond Protein Bar", price=320, category="food", sub_category="snacks",
            description="Chewy almond bar", tags=("protein", "bars"),
            is_vegan=True, is_gluten_free=False, protein_content=20,
        ),
        Product(
            id="F4", name="Organic Ragi Porridge", price=275, category="food", sub_category="breakfast",
            description="Sprouted ragi mix", tags=("breakfast", "organic"),
            is_vegan=True, is_gluten_free=True, protein_content=8,
        ),
        Product(
            id="A1", name="Cotton Kurta", price=1299, category="fashion", sub_category="ethnic",
            description="Handblock printed kurta", tags=("ethnic", "traditional"),
            material="cotton", season=("summer",), occasion=("festive", "casual"),
        ),
        Product(
            id="A2", name="Graphic Tee", price=599, category="fashion", sub_category="casual",
            description="Street art t-shirt", tags=("casual", "trendy"),
            material="cotton", season=("all",), occasion=("casual",),
        ),
        Product(
            id="A3", name="Wool Shawl", price=2499, category="fashion", sub_category="ethnic",
            description="Warm paisley shawl", tags=("ethnic", "winter"),
            material="wool", season=("winter",), occasion=("festive",),
        ),
    ]

@pytest.fixture
def catalog(products):
    return Catalog(products)

@pytest.fixture
def ai_settings():
    return Settings(gemini_api_key="test-key", ai_enabled=True)

def gemini_response(text, status_code=200):
    """A generateContent style response wrapping the given text."""
    body = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return httpx.Response(status_code, json=body)

def prompt_of(request):
    return json.loads(request.content)["contents"][0]["parts"][0]["text"]

@pytest.fixture
def make_client(ai_settings):
    def _make(handler, settings=None):
        return GeminiClient(settings or ai_settings, transport=httpx.MockTransport(handler))
    return _make

@pytest.fixture
def respond():
    return gemini_response

@pytest.fixture
def read_prompt():
    return prompt_of
