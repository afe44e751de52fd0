import asyncio

import httpx
import pytest

from bharatshop.config.settings import Settings
from bharatshop.data_access.catalog import Catalog
from bharatshop.pipelines import recommendation
from bharatshop.pipelines.recommendation import (
    LOCAL_FALLBACK_REASON,
    SERVICE_FALLBACK_REASON,
    RecommendationEngine,
    build_filters,
    build_search_query,
)
from bharatshop.core.preferences import extract_preferences
from bharatshop.models.product import PriceRange
from bharatshop.services.gemini import AnalyzerStatus

MESSAGES = [
    "Vegan snacks under ₹300",
    "cotton kurta for summer festival",
    "protein bars",
    "trendy t-shirt for office within ₹700",
    "organic breakfast",
    "warm shawl for winter",
    "hello",
]

def ids(items):
    return [s.product.id for s in items]

class TestLocalMode:

    def test_vegan_snacks(self, catalog):
        items = RecommendationEngine(catalog).get_recommendations("Vegan snacks under ₹300")
        assert ids(items) == ["F1", "F3", "F4", "F2"]
        assert [s.match_percentage for s in items] == [88, 73, 73, 70]
        assert all(s.product.category == "food" for s in items)
        assert all(s.product.price <= 330 for s in items)

    def test_vegan_ranks_above_non_vegan_at_same_price(self, catalog):
        items = RecommendationEngine(catalog).get_recommendations("Vegan snacks under ₹300")
        pct = {s.product.id: s.match_percentage for s in items}
        assert pct["F1"] > pct["F2"]

    def test_no_keywords_falls_back(self, catalog, products):
        outcome = RecommendationEngine(catalog).run("hello")
        assert outcome.is_fallback
        assert ids(outcome.items) == [p.id for p in products[:4]]
        assert all(s.match_percentage == 50 for s in outcome.items)
        assert all(s.match_reason == LOCAL_FALLBACK_REASON for s in outcome.items)

    def test_fallback_size_is_min_of_k_and_catalog(self, catalog):
        assert len(RecommendationEngine(catalog, top_k=10).get_recommendations("hello")) == len(catalog)
        assert len(RecommendationEngine(catalog, top_k=3).get_recommendations("hello")) == 3

    def test_top_k_configurable(self, catalog):
        items = RecommendationEngine(catalog, top_k=2).get_recommendations("Vegan snacks under ₹300")
        assert ids(items) == ["F1", "F3"]

    def test_invalid_top_k(self, catalog):
        with pytest.raises(ValueError):
            RecommendationEngine(catalog, top_k=0)

    def test_deterministic(self, catalog):
        engine = RecommendationEngine(catalog)
        first = engine.get_recommendations("cotton kurta for summer festival")
        second = engine.get_recommendations("cotton kurta for summer festival")
        assert first == second

    @pytest.mark.parametrize("message", MESSAGES)
    @pytest.mark.parametrize("top_k", [1, 4, 10])
    def test_size_order_and_range(self, catalog, message, top_k):
        items = RecommendationEngine(catalog, top_k=top_k).get_recommendations(message)
        assert 1 <= len(items) <= top_k
        percentages = [s.match_percentage for s in items]
        assert percentages == sorted(percentages, reverse=True)
        assert all(50 <= p <= 99 for p in percentages)

    def test_scoring_failure_falls_back(self, catalog, monkeypatch):
        def broken(product, prefs):
            raise RuntimeError("scorer exploded")

        monkeypatch.setattr(recommendation, "score", broken)
        outcome = RecommendationEngine(catalog).run("Vegan snacks under ₹300")
        assert outcome.is_fallback
        assert len(outcome.items) == 4

    def test_extraction_failure_falls_back(self, catalog, monkeypatch):
        def broken(message):
            raise RuntimeError("extractor exploded")

        monkeypatch.setattr(recommendation, "extract_preferences", broken)
        items = RecommendationEngine(catalog).get_recommendations("anything")
        assert [s.match_reason for s in items] == [LOCAL_FALLBACK_REASON] * 4

    def test_empty_catalog(self):
        assert RecommendationEngine(Catalog([])).get_recommendations("hello") == []

class TestQueryBuilding:

    def test_search_query(self):
        prefs = extract_preferences("cotton kurta for summer festival")
        assert build_search_query(prefs) == "fashion ethnic cotton festive summer"

    def test_filters(self):
        prefs = extract_preferences("Vegan snacks under ₹300")
        filters = build_filters(prefs)
        assert filters.category == "food"
        assert filters.sub_category == "snacks"
        assert filters.price_range == PriceRange(0, 300)

def analyzer_returning(make_client, respond, payload):
    return make_client(lambda request: respond(payload))

class TestServiceMode:

    def test_uses_catalog_search(self, catalog, make_client, respond):
        engine = RecommendationEngine(catalog, top_k=6, ai_enabled=True, analyzer=analyzer_returning(make_client, respond, "{}"))
        items = engine.get_recommendations("Vegan snacks under ₹300")
        # F3 is over budget and filtered out by catalog search
        assert ids(items) == ["F1", "F4", "F2"]

    def test_ai_fields_override_local(self, catalog, make_client, respond):
        analyzer = analyzer_returning(make_client, respond, '{"subCategory": "casual", "intent": "buying"}')
        engine = RecommendationEngine(catalog, top_k=6, ai_enabled=True, analyzer=analyzer)
        outcome = engine.run("cotton kurta")
        assert outcome.preferences.category == "fashion"
        assert outcome.preferences.sub_category == "casual"
        assert outcome.items[0].product.id == "A2"

    def test_rate_limit_still_recommends(self, catalog, make_client):
        analyzer = make_client(lambda request: httpx.Response(429))
        engine = RecommendationEngine(catalog, top_k=6, ai_enabled=True, analyzer=analyzer)
        outcome = engine.run("cotton kurta for summer festival")
        assert outcome.analyzer_status == AnalyzerStatus.RATE_LIMITED
        assert outcome.preferences == extract_preferences("cotton kurta for summer festival")
        assert ids(outcome.items)[0] == "A1"

    def test_fallback_reason(self, catalog, make_client, respond):
        engine = RecommendationEngine(catalog, top_k=6, ai_enabled=True, analyzer=analyzer_returning(make_client, respond, "{}"))
        items = engine.get_recommendations("hello")
        assert len(items) == 6
        assert {s.match_reason for s in items} == {SERVICE_FALLBACK_REASON}

    def test_async(self, catalog, make_client, respond):
        analyzer = analyzer_returning(make_client, respond, '{"category": "food", "dietary": ["protein"]}')
        engine = RecommendationEngine(catalog, top_k=6, ai_enabled=True, analyzer=analyzer)
        items = asyncio.run(engine.get_recommendations_async("something to munch"))
        assert ids(items)[0] == "F3"

    def test_from_settings(self, catalog, make_client, respond):
        analyzer = analyzer_returning(make_client, respond, "{}")
        engine = RecommendationEngine.from_settings(catalog, Settings(gemini_api_key="k", ai_enabled=True), analyzer)
        assert engine.ai_enabled and engine.top_k == 6
        local = RecommendationEngine.from_settings(catalog, Settings(gemini_api_key=None))
        assert not local.ai_enabled and local.top_k == 4
