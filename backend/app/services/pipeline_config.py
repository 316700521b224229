"""
Explicit configuration for the enrichment pipeline.

The pipeline services receive this value object at construction time
instead of reading ``settings`` themselves, so a worker, an API process
or a test can each hand in their own.
"""

from dataclasses import dataclass
from typing import Optional

from app.core.config import Settings, settings as default_settings


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the enrichment pipeline needs to know about its environment."""

    model_api_key: Optional[str]
    model_endpoint: Optional[str]
    store_url: str
    # Credentials for the change-notification channel (Redis URL)
    store_service_key: Optional[str]

    model_name: str = "claude-3-5-haiku-20241022"
    model_max_tokens: int = 1000
    model_temperature: float = 0.1
    web_search_max_uses: int = 3

    fetch_timeout: int = 15
    max_content_chars: int = 8000
    min_content_chars: int = 200
    min_content_words: int = 50
    stored_text_chars: int = 2000
    thumbnail_timeout: int = 10

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PipelineConfig":
        """Build the pipeline config from application settings."""
        settings = settings or default_settings
        return cls(
            model_api_key=settings.ANTHROPIC_API_KEY,
            model_endpoint=settings.ANTHROPIC_BASE_URL,
            store_url=settings.DATABASE_URL,
            store_service_key=settings.REDIS_URL,
            model_name=settings.ANTHROPIC_MODEL,
            model_max_tokens=settings.ANTHROPIC_MAX_TOKENS,
            model_temperature=settings.ANTHROPIC_TEMPERATURE,
            web_search_max_uses=settings.ANTHROPIC_WEB_SEARCH_MAX_USES,
            fetch_timeout=settings.CONTENT_FETCH_TIMEOUT,
            max_content_chars=settings.CONTENT_MAX_CHARS,
            min_content_chars=settings.CONTENT_MIN_CHARS,
            min_content_words=settings.CONTENT_MIN_WORDS,
            stored_text_chars=settings.CONTENT_TEXT_STORE_CHARS,
            thumbnail_timeout=settings.THUMBNAIL_REQUEST_TIMEOUT,
        )
