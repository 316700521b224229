"""Business logic services."""

from app.services.change_notifier import ChangeNotifier, NullNotifier
from app.services.content_analyzer import ContentAnalyzer
from app.services.content_fetcher import ContentFetcher
from app.services.content_processor import ContentProcessor
from app.services.insights_service import InsightsService
from app.services.pipeline_config import PipelineConfig
from app.services.source_classifier import classify_source
from app.services.thumbnail_service import ThumbnailService

__all__ = [
    "PipelineConfig",
    "ContentProcessor",
    "ContentAnalyzer",
    "ContentFetcher",
    "ThumbnailService",
    "InsightsService",
    "ChangeNotifier",
    "NullNotifier",
    "classify_source",
]
