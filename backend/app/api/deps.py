"""
Service dependencies for API routes.

Routes receive their collaborators through FastAPI dependencies so
tests can replace them with ``app.dependency_overrides``.
"""

import logging

from app.db.redis import get_redis
from app.services.change_notifier import ChangeNotifier, NullNotifier
from app.services.content_analyzer import ContentAnalyzer
from app.services.content_processor import ContentProcessor
from app.services.insights_service import InsightsService
from app.services.pipeline_config import PipelineConfig
from app.services.thumbnail_service import ThumbnailService

logger = logging.getLogger(__name__)


async def get_notifier() -> ChangeNotifier:
    """Notifier on the shared Redis pool; a no-op one when Redis is down."""
    try:
        return ChangeNotifier(redis=await get_redis())
    except Exception as e:
        logger.warning(f"Change notifications disabled for this request: {e}")
        return NullNotifier()


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings()


async def get_content_processor() -> ContentProcessor:
    config = get_pipeline_config()
    return ContentProcessor(config=config, notifier=await get_notifier())


def get_insights_service() -> InsightsService:
    return InsightsService(ContentAnalyzer(get_pipeline_config()))


def get_thumbnail_service() -> ThumbnailService:
    return ThumbnailService(get_pipeline_config())
