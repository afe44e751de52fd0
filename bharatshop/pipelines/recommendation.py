from dataclasses import dataclass, replace
from typing import List, Optional

from bharatshop.config.settings import Settings
from bharatshop.core.preferences import extract_preferences
from bharatshop.core.scoring import BASE_MATCH_PERCENTAGE, score
from bharatshop.data_access.catalog import Catalog, CatalogFilters
from bharatshop.models.product import Product, ScoredProduct, UserPreference
from bharatshop.services.gemini import AnalyzedPreferences, AnalyzerResult, AnalyzerStatus, GeminiClient
from bharatshop.utils.logger import get_logger

logger = get_logger("pipelines.recommendation")

LOCAL_FALLBACK_REASON = "Recommended based on popularity"
SERVICE_FALLBACK_REASON = "Popular product you might like"

@dataclass(frozen=True)
class RecommendationOutcome:
    items: List[ScoredProduct]
    preferences: UserPreference
    analyzer_status: AnalyzerStatus = AnalyzerStatus.OK
    is_fallback: bool = False

def merge_preferences(local: UserPreference, analysis: AnalyzedPreferences) -> UserPreference:
    """Overlay AI-inferred fields on the locally extracted ones."""
    return replace(local, **analysis.to_updates())

def build_search_query(prefs: UserPreference) -> str:
    parts: List[str] = []
    if prefs.category:
        parts.append(prefs.category)
    if prefs.sub_category:
        parts.append(prefs.sub_category)
    parts.extend(prefs.dietary)
    parts.extend(prefs.material)
    if prefs.occasion:
        parts.append(prefs.occasion)
    if prefs.season:
        parts.append(prefs.season)
    parts.extend(prefs.style)
    return " ".join(parts)

def build_filters(prefs: UserPreference) -> CatalogFilters:
    return CatalogFilters(
        category=prefs.category,
        sub_category=prefs.sub_category,
        price_range=prefs.price_range,
    )

class RecommendationEngine:
    """Turns a chat message into a ranked, explained list of products.

    Local mode scores the whole catalog. With ``ai_enabled`` the engine merges
    Gemini's query analysis over the local preferences and scores only the
    products returned by catalog search.
    """

    def __init__(
        self,
        catalog: Catalog,
        top_k: int = 4,
        ai_enabled: bool = False,
        analyzer: Optional[GeminiClient] = None,
    ) -> None:
        if top_k < 1:
            raise ValueError("top_k must be at least 1")
        self.catalog = catalog
        self.top_k = top_k
        self.ai_enabled = ai_enabled
        self.analyzer = analyzer

    @classmethod
    def from_settings(
        cls, catalog: Catalog, settings: Settings, analyzer: Optional[GeminiClient] = None
    ) -> "RecommendationEngine":
        ai_enabled = settings.ai_enabled and analyzer is not None
        top_k = settings.service_top_k if ai_enabled else settings.local_top_k
        return cls(catalog, top_k=top_k, ai_enabled=ai_enabled, analyzer=analyzer)

    @property
    def fallback_reason(self) -> str:
        return SERVICE_FALLBACK_REASON if self.ai_enabled else LOCAL_FALLBACK_REASON

    def popular_products(self) -> List[ScoredProduct]:
        return [
            ScoredProduct(product=p, match_percentage=BASE_MATCH_PERCENTAGE, match_reason=self.fallback_reason)
            for p in self.catalog.products[: self.top_k]
        ]

    def _candidates(self, prefs: UserPreference) -> List[Product]:
        if not self.ai_enabled:
            return self.catalog.products
        query = build_search_query(prefs)
        filters = build_filters(prefs)
        logger.info(f"Catalog search query={query!r} filters={filters}")
        return self.catalog.fetch_products(query, filters)

    def _rank(self, prefs: UserPreference) -> List[ScoredProduct]:
        scored = []
        for product in self._candidates(prefs):
            match = score(product, prefs)
            scored.append(ScoredProduct(product, match.match_percentage, match.match_reason))

        relevant = [s for s in scored if s.match_percentage > BASE_MATCH_PERCENTAGE]
        relevant.sort(key=lambda s: s.match_percentage, reverse=True)
        return relevant[: self.top_k]

    def recommend(self, prefs: UserPreference, analyzer_status: AnalyzerStatus = AnalyzerStatus.OK) -> RecommendationOutcome:
        """Score, rank and truncate for already-merged preferences."""
        try:
            items = self._rank(prefs)
        except Exception:
            logger.exception("Error generating recommendations, using popular products")
            items = []
        if items:
            return RecommendationOutcome(items, prefs, analyzer_status)
        logger.info("No product cleared the match threshold, falling back to popular products")
        return RecommendationOutcome(self.popular_products(), prefs, analyzer_status, is_fallback=True)

    def _merge(self, local: UserPreference, result: AnalyzerResult) -> UserPreference:
        if result.status != AnalyzerStatus.OK:
            return local
        return merge_preferences(local, result.data)

    def run(self, message: str) -> RecommendationOutcome:
        try:
            prefs = extract_preferences(message)
            status = AnalyzerStatus.OK
            if self.ai_enabled and self.analyzer is not None:
                result = self.analyzer.analyze_query(message)
                status = result.status
                prefs = self._merge(prefs, result)
        except Exception:
            logger.exception("Error preparing preferences, using popular products")
            return RecommendationOutcome(self.popular_products(), UserPreference(), is_fallback=True)
        return self.recommend(prefs, status)

    async def run_async(self, message: str) -> RecommendationOutcome:
        try:
            prefs = extract_preferences(message)
            status = AnalyzerStatus.OK
            if self.ai_enabled and self.analyzer is not None:
                result = await self.analyzer.analyze_query_async(message)
                status = result.status
                prefs = self._merge(prefs, result)
        except Exception:
            logger.exception("Error preparing preferences, using popular products")
            return RecommendationOutcome(self.popular_products(), UserPreference(), is_fallback=True)
        return self.recommend(prefs, status)

    def get_recommendations(self, message: str) -> List[ScoredProduct]:
        return self.run(message).items

    async def get_recommendations_async(self, message: str) -> List[ScoredProduct]:
        outcome = await self.run_async(message)
        return outcome.items
