import asyncio
import itertools
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from bharatshop.config.settings import Settings
from bharatshop.data_access.catalog import Catalog
from bharatshop.models.product import ScoredProduct
from bharatshop.pipelines.recommendation import RecommendationEngine, RecommendationOutcome
from bharatshop.services.gemini import AnalyzerStatus, GeminiClient, ReplyResult, api_error_message
from bharatshop.utils.logger import get_logger

logger = get_logger("pipelines.chat")

WELCOME_MESSAGE = (
    "Hi! I'm your personal shopping assistant for Indian D2C food and fashion products. "
    "What are you looking for today?"
)
NO_MATCH_INTRO = "I couldn't find exact matches for your request. Here are some popular items you might like:"
RESPONSE_INTROS = [
    "Perfect! Here are my top recommendations for you:",
    "Great choice! I've found these items for you:",
    "Here are some products that match your preferences:",
    "Based on what you're looking for, I recommend these:",
    "I think you'll love these recommendations:",
]

@dataclass
class ChatMessage:
    text: str
    sender: str  # "user" | "bot"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    recommendations: List[ScoredProduct] = field(default_factory=list)
    advisory: Optional[str] = None

class ChatService:
    """In-memory conversation used by the Streamlit app.

    Every user turn takes a sequence number; a response whose number is no
    longer the latest is dropped instead of being appended.
    """

    def __init__(
        self,
        engine: RecommendationEngine,
        analyzer: Optional[GeminiClient] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.engine = engine
        self.analyzer = analyzer
        self.rng = rng or random.Random()
        self.messages: List[ChatMessage] = []
        self._sequence = itertools.count(1)
        self._latest = 0
        self.clear_chat()

    @classmethod
    def from_env(cls) -> "ChatService":
        settings = Settings.from_env()
        catalog = Catalog.from_file()
        analyzer = GeminiClient(settings) if settings.ai_enabled else None
        return cls(RecommendationEngine.from_settings(catalog, settings, analyzer), analyzer)

    def clear_chat(self) -> None:
        self.messages = [ChatMessage(text=WELCOME_MESSAGE, sender="bot")]

    def begin_turn(self, text: str) -> int:
        self.messages.append(ChatMessage(text=text, sender="user"))
        self._latest = next(self._sequence)
        return self._latest

    def is_current(self, seq: int) -> bool:
        return seq == self._latest

    def _bot_text(self, outcome: RecommendationOutcome, reply: Optional[ReplyResult]) -> str:
        if outcome.is_fallback or not outcome.items:
            return NO_MATCH_INTRO
        if reply is not None and reply.status == AnalyzerStatus.OK:
            return reply.text
        return self.rng.choice(RESPONSE_INTROS)

    @staticmethod
    def _advisory(outcome: RecommendationOutcome, reply: Optional[ReplyResult]) -> Optional[str]:
        statuses = [outcome.analyzer_status]
        if reply is not None:
            statuses.append(reply.status)
        if AnalyzerStatus.RATE_LIMITED in statuses:
            return api_error_message(AnalyzerStatus.RATE_LIMITED)
        if AnalyzerStatus.ERROR in statuses:
            return api_error_message(AnalyzerStatus.ERROR)
        return None

    def complete_turn(
        self, seq: int, outcome: RecommendationOutcome, reply: Optional[ReplyResult] = None
    ) -> Optional[ChatMessage]:
        if not self.is_current(seq):
            logger.info(f"Discarding stale response for request #{seq} (latest #{self._latest})")
            return None
        message = ChatMessage(
            text=self._bot_text(outcome, reply),
            sender="bot",
            recommendations=outcome.items,
            advisory=self._advisory(outcome, reply),
        )
        self.messages.append(message)
        return message

    def send_message(self, text: str) -> Optional[ChatMessage]:
        seq = self.begin_turn(text)
        outcome = self.engine.run(text)
        reply = self.analyzer.get_ai_recommendations(text) if self.analyzer is not None else None
        return self.complete_turn(seq, outcome, reply)

    async def send_message_async(self, text: str) -> Optional[ChatMessage]:
        seq = self.begin_turn(text)
        if self.analyzer is None:
            outcome = await self.engine.run_async(text)
            return self.complete_turn(seq, outcome)
        outcome, reply = await asyncio.gather(
            self.engine.run_async(text), self.analyzer.get_ai_recommendations_async(text)
        )
        return self.complete_turn(seq, outcome, reply)
