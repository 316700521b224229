"""
Insights over a user's processed content.

Read-only analysis: loads the user's completed items, hands a compact
view of them to the model and returns prose insights plus lists of
patterns, recommendations and topics. A free-form ``query`` gets the
model's answer verbatim instead.
"""

import json
import logging
import uuid
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models import ContentItem, ProcessingStatus
from app.services.content_analyzer import AnalysisError, ContentAnalyzer, extract_json_object

logger = logging.getLogger(__name__)


NO_CONTENT_MESSAGE = (
    "No processed content found to analyze. Please add and process some content first."
)
UNAVAILABLE_MESSAGE = "Unable to generate insights at this time. Please try again later."

FALLBACK_PATTERNS = [
    "Consistent focus on technology and innovation",
    "Interest in practical, actionable content",
    "Preference for in-depth analysis",
]
FALLBACK_RECOMMENDATIONS = [
    "Explore advanced topics in your areas of interest",
    "Consider creating content to share your knowledge",
    "Connect with others in your field of expertise",
]
FALLBACK_TOPIC_COUNT = 5

QUERY_PROMPT = """Based on the user's content collection, answer this specific question: "{query}"

Content collection: {collection}

Provide insights and recommendations based on their saved content."""

ANALYSIS_PROMPT = """Analyze this user's content collection and provide insights in JSON format with these fields:
- insights: A comprehensive analysis of their interests and knowledge patterns
- patterns: An array of 3-4 key patterns you notice in their content
- recommendations: An array of 3-4 actionable recommendations for further learning
- topics: An array of the main topics they're interested in

Content collection: {collection}

Respond with valid JSON only."""


class InsightsError(Exception):
    """Raised when insights cannot be produced."""
    pass


@dataclass
class InsightsReport:
    insights: str
    patterns: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


class InsightsService:
    """
    Generates insights for one user's library.

    Usage:
    ------
    service = InsightsService(ContentAnalyzer())
    report = await service.generate(session, user.id, query="What should I read next?")
    """

    def __init__(
        self,
        analyzer: Optional[ContentAnalyzer] = None,
        max_items: Optional[int] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ):
        self.analyzer = analyzer or ContentAnalyzer()
        self.max_items = max_items or settings.INSIGHTS_MAX_ITEMS
        self.max_tokens = max_tokens or settings.INSIGHTS_MAX_TOKENS
        self.temperature = settings.INSIGHTS_TEMPERATURE if temperature is None else temperature

    async def load_items(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        content_ids: Optional[Sequence[uuid.UUID]] = None
    ) -> List[ContentItem]:
        """Completed items of ``user_id``: the given ids, or the most recent ones."""
        stmt = select(ContentItem).where(
            ContentItem.user_id == user_id,
            ContentItem.processing_status == ProcessingStatus.COMPLETED,
        )
        if content_ids:
            stmt = stmt.where(ContentItem.id.in_(list(content_ids)))
        else:
            stmt = stmt.order_by(ContentItem.created_at.desc()).limit(self.max_items)

        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def generate(
        self,
        session: AsyncSession,
        user_id: uuid.UUID,
        content_ids: Optional[Sequence[uuid.UUID]] = None,
        query: Optional[str] = None
    ) -> InsightsReport:
        """
        Produce insights for the user's processed content.

        Raises:
            InsightsError: The model call failed
        """
        items = await self.load_items(session, user_id, content_ids)
        if not items:
            logger.info(f"No processed content for user {user_id}; skipping insights")
            return InsightsReport(insights=NO_CONTENT_MESSAGE)

        logger.info(f"Analyzing {len(items)} content items for user {user_id}")

        collection = json.dumps([
            {
                "title": item.title,
                "summary": item.summary,
                "tags": item.tags or [],
                "takeaways": item.key_takeaways or [],
            }
            for item in items
        ])

        query = (query or "").strip()
        template = QUERY_PROMPT if query else ANALYSIS_PROMPT
        prompt = template.format(query=query, collection=collection)

        try:
            answer = await self.analyzer.complete(
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except AnalysisError as e:
            raise InsightsError(str(e)) from e

        if query:
            return InsightsReport(insights=answer)

        data = extract_json_object(answer)
        if data is None or not isinstance(data.get("insights"), str):
            logger.warning("Insights response was not valid JSON; using tag frequency fallback")
            return self.build_fallback(items)

        return InsightsReport(
            insights=data["insights"],
            patterns=_strings(data.get("patterns")),
            recommendations=_strings(data.get("recommendations")),
            topics=_strings(data.get("topics")),
        )

    @staticmethod
    def build_fallback(items: Sequence[ContentItem]) -> InsightsReport:
        """Topics from tag frequency, with stock patterns and recommendations."""
        counts = Counter(tag for item in items for tag in (item.tags or []))
        topics = [tag for tag, _ in counts.most_common(FALLBACK_TOPIC_COUNT)]
        interests = ", ".join(topics[:3]) or "a range of topics"

        return InsightsReport(
            insights=(
                f"Based on your {len(items)} saved items, you show strong interests in "
                f"{interests}. Your content suggests a focus on learning and "
                f"professional development."
            ),
            patterns=list(FALLBACK_PATTERNS),
            recommendations=list(FALLBACK_RECOMMENDATIONS),
            topics=topics,
        )
