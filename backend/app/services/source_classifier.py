"""
Source classification for submitted URLs.

Maps a URL to one of the fixed SourceType tags by substring matching.
Deterministic and total: anything unrecognised (including empty or
malformed input) is ``web``.
"""

from app.models.content import SourceType

DOCUMENT_SCHEME = "document://"

# Checked in order; YouTube and LinkedIn take precedence over blog platforms
_PLATFORM_PATTERNS: tuple[tuple[SourceType, tuple[str, ...]], ...] = (
    (SourceType.YOUTUBE, ("youtube.com", "youtu.be")),
    (SourceType.LINKEDIN, ("linkedin.com",)),
    (SourceType.MEDIUM, ("medium.com",)),
    (SourceType.SUBSTACK, ("substack.com",)),
)


def classify_source(url: str) -> SourceType:
    """
    Classify a URL into a source tag.

    Args:
        url: Submitted URL (``document://<name>`` for uploaded documents)

    Returns:
        The matching SourceType, SourceType.WEB when nothing matches

    Example:
        >>> classify_source("https://youtu.be/abc123")
        <SourceType.YOUTUBE: 'youtube'>
    """
    normalized = (url or "").strip().lower()

    if normalized.startswith(DOCUMENT_SCHEME):
        return SourceType.DOCUMENT

    for source, patterns in _PLATFORM_PATTERNS:
        if any(pattern in normalized for pattern in patterns):
            return source

    return SourceType.WEB


def coerce_source(value: object, default: SourceType = SourceType.WEB) -> SourceType:
    """Turn a free-form source string from the model into a SourceType."""
    if isinstance(value, SourceType):
        return value
    if isinstance(value, str):
        try:
            return SourceType(value.strip().lower())
        except ValueError:
            pass
    return default
