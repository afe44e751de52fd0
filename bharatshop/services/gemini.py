import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bharatshop.config.settings import Settings
from bharatshop.models.product import PriceRange
from bharatshop.utils.exceptions import AnalyzerError, RateLimitError
from bharatshop.utils.logger import get_logger

logger = get_logger("services.gemini")

MISSING_KEY_REPLY = 'Based on your request for "{message}", here are some recommended products that might interest you.'
RATE_LIMIT_REPLY = (
    "I apologize, but our AI service is currently experiencing high demand. "
    "I'll use my built-in knowledge to help you instead."
)
EMPTY_REPLY = "I'm sorry, I couldn't process your request at the moment. Please try again."
CONNECTION_REPLY = "Sorry, I'm having trouble connecting to my recommendation engine. Please try again later."

RECOMMENDATION_PROMPT = """You are an AI shopping assistant for BharatShop, an Indian D2C e-commerce platform
that specializes in food and fashion products. Your task is to understand the user's
request and provide relevant product recommendations.

Respond in a friendly, helpful manner and always maintain the persona of a shopping assistant.
If the user asks for product recommendations, suggest relevant products from Indian D2C brands.
Consider Indian context, terminology, and preferences in your responses.

User query: {query}"""

ANALYSIS_PROMPT = """Extract key product attributes from the user's query and return ONLY a valid JSON object
with any of the following properties that the query supports:
- category: "food" or "fashion"
- subCategory: more specific category if available (e.g. "snacks", "breakfast", "ethnic", "casual")
- priceRange: object with numeric "min" and "max" in rupees, if a budget is mentioned
- dietary: array drawn from "vegan", "vegetarian", "protein", "gluten-free", "organic"
- season: one of "summer", "winter", "monsoon"
- occasion: one of "casual", "festive", "office"
- material: array of fabrics (e.g. "cotton", "linen")
- style: array drawn from "trendy", "traditional", "light"

User query: {query}

Respond with ONLY the JSON object with NO additional text or explanation."""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

class AnalyzedPriceRange(BaseModel):
    min: float = 0
    max: float = Field(gt=0)

class AnalyzedPreferences(BaseModel):
    """Partial preference inferred by the model. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: Optional[Literal["food", "fashion"]] = None
    sub_category: Optional[str] = Field(default=None, alias="subCategory")
    price_range: Optional[AnalyzedPriceRange] = Field(default=None, alias="priceRange")
    dietary: Optional[List[str]] = None
    season: Optional[Literal["summer", "winter", "monsoon"]] = None
    occasion: Optional[Literal["casual", "festive", "office"]] = None
    material: Optional[List[str]] = None
    style: Optional[List[str]] = None

    @field_validator("category", "sub_category", "season", "occasion", mode="before")
    @classmethod
    def _normalize_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @field_validator("dietary", "material", "style", mode="before")
    @classmethod
    def _normalize_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, list):
            return [s.strip().lower() for s in v if isinstance(s, str) and s.strip()]
        return v

    def to_updates(self) -> Dict[str, Any]:
        """Fields the model actually supplied, keyed by UserPreference names."""
        updates: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "price_range":
                value = PriceRange(min=value.min, max=value.max)
            updates[name] = value
        return updates

def validate_analysis(raw: Dict[str, Any]) -> AnalyzedPreferences:
    """Validate a raw JSON object, dropping fields that fail validation."""
    data = dict(raw)
    aliases = {name: f.alias for name, f in AnalyzedPreferences.model_fields.items() if f.alias}
    while True:
        try:
            return AnalyzedPreferences.model_validate(data)
        except ValidationError as e:
            locs = {err["loc"][0] for err in e.errors() if err.get("loc")}
            bad = {key for key in data if key in locs or aliases.get(key) in locs}
            if not bad:
                logger.warning(f"Discarding AI analysis that failed validation: {e}")
                return AnalyzedPreferences()
            logger.debug(f"Dropping invalid AI analysis fields: {sorted(bad)}")
            for key in bad:
                data.pop(key)

def parse_analysis(text: str) -> AnalyzedPreferences:
    m = _JSON_OBJECT.search(text or "")
    if not m:
        logger.error("No JSON object in Gemini analysis response")
        return AnalyzedPreferences()
    try:
        raw = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON from Gemini response: {e}")
        return AnalyzedPreferences()
    if not isinstance(raw, dict):
        logger.error("Gemini analysis response is not a JSON object")
        return AnalyzedPreferences()
    return validate_analysis(raw)

class AnalyzerStatus(str, Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"

@dataclass(frozen=True)
class AnalyzerResult:
    status: AnalyzerStatus
    data: AnalyzedPreferences = field(default_factory=AnalyzedPreferences)
    reason: Optional[str] = None

    @classmethod
    def ok(cls, data: AnalyzedPreferences) -> "AnalyzerResult":
        return cls(status=AnalyzerStatus.OK, data=data)

    @classmethod
    def rate_limited(cls) -> "AnalyzerResult":
        return cls(status=AnalyzerStatus.RATE_LIMITED, reason="Gemini API rate limit exceeded")

    @classmethod
    def error(cls, reason: str) -> "AnalyzerResult":
        return cls(status=AnalyzerStatus.ERROR, reason=reason)

@dataclass(frozen=True)
class ReplyResult:
    text: str
    status: AnalyzerStatus = AnalyzerStatus.OK

def is_rate_limit_error(error: Exception) -> bool:
    if isinstance(error, RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    message = str(error).lower()
    return "429" in message or "rate limit" in message

class GeminiClient:
    """Thin wrapper over the Gemini generateContent endpoint."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.settings.gemini_api_key)

    def _endpoint(self) -> str:
        base = self.settings.gemini_api_url.rstrip("/")
        return f"{base}/{self.settings.gemini_model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "X-goog-api-key": self.settings.gemini_api_key or ""}

    @staticmethod
    def _payload(prompt: str) -> Dict[str, Any]:
        return {"contents": [{"parts": [{"text": prompt}]}]}

    @staticmethod
    def _response_text(response: httpx.Response) -> str:
        if response.status_code == 429:
            raise RateLimitError("Gemini API rate limit exceeded", status_code=429)
        if response.is_error:
            raise AnalyzerError(
                f"Gemini API responded with status: {response.status_code}", status_code=response.status_code
            )
        try:
            data = response.json()
        except ValueError as e:
            raise AnalyzerError("Gemini API returned a non-JSON body") from e
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            return ""

    def _generate(self, prompt: str) -> str:
        try:
            with httpx.Client(timeout=self.settings.gemini_timeout_seconds, transport=self._transport) as client:
                response = client.post(self._endpoint(), headers=self._headers(), json=self._payload(prompt))
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise AnalyzerError(f"Error calling Gemini API: {e}") from e
        return self._response_text(response)

    async def _generate_async(self, prompt: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.gemini_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._endpoint(), headers=self._headers(), json=self._payload(prompt))
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise AnalyzerError(f"Error calling Gemini API: {e}") from e
        return self._response_text(response)

    @staticmethod
    def _analysis_failure(error: AnalyzerError) -> AnalyzerResult:
        logger.error(f"Error analyzing query with Gemini: {error}")
        if is_rate_limit_error(error):
            return AnalyzerResult.rate_limited()
        return AnalyzerResult.error(str(error))

    def analyze_query(self, query: str) -> AnalyzerResult:
        if not self.enabled:
            logger.warning("Skipping query analysis due to missing Gemini API key")
            return AnalyzerResult.ok(AnalyzedPreferences())
        try:
            text = self._generate(ANALYSIS_PROMPT.format(query=query))
        except AnalyzerError as e:
            return self._analysis_failure(e)
        return AnalyzerResult.ok(parse_analysis(text))

    async def analyze_query_async(self, query: str) -> AnalyzerResult:
        if not self.enabled:
            logger.warning("Skipping query analysis due to missing Gemini API key")
            return AnalyzerResult.ok(AnalyzedPreferences())
        try:
            text = await self._generate_async(ANALYSIS_PROMPT.format(query=query))
        except AnalyzerError as e:
            return self._analysis_failure(e)
        return AnalyzerResult.ok(parse_analysis(text))

    @staticmethod
    def _reply_failure(error: AnalyzerError) -> ReplyResult:
        logger.error(f"Error calling Gemini API: {error}")
        if is_rate_limit_error(error):
            return ReplyResult(RATE_LIMIT_REPLY, AnalyzerStatus.RATE_LIMITED)
        return ReplyResult(CONNECTION_REPLY, AnalyzerStatus.ERROR)

    def get_ai_recommendations(self, message: str) -> ReplyResult:
        if not self.enabled:
            logger.warning("Using fallback response due to missing Gemini API key")
            return ReplyResult(MISSING_KEY_REPLY.format(message=message))
        try:
            text = self._generate(RECOMMENDATION_PROMPT.format(query=message))
        except AnalyzerError as e:
            return self._reply_failure(e)
        return ReplyResult(text or EMPTY_REPLY)

    async def get_ai_recommendations_async(self, message: str) -> ReplyResult:
        if not self.enabled:
            logger.warning("Using fallback response due to missing Gemini API key")
            return ReplyResult(MISSING_KEY_REPLY.format(message=message))
        try:
            text = await self._generate_async(RECOMMENDATION_PROMPT.format(query=message))
        except AnalyzerError as e:
            return self._reply_failure(e)
        return ReplyResult(text or EMPTY_REPLY)

def api_error_message(status: AnalyzerStatus) -> Optional[str]:
    """User-facing advisory for a failed Gemini call, None when the call succeeded."""
    if status == AnalyzerStatus.RATE_LIMITED:
        return "Gemini API rate limit exceeded. Using local recommendations."
    if status == AnalyzerStatus.ERROR:
        return "AI service is unavailable right now. Showing recommendations from our catalog."
    return None
