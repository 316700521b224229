"""
LLM analysis client for the enrichment pipeline.

This module wraps the Claude Messages API:
- Prompt construction for the two prompt variants (page text supplied,
  or the model looks the page up with the hosted web-search tool)
- The single outbound model call
- Recovery of a JSON object from the model's free-text answer
- A deterministic, URL-derived fallback when nothing usable comes back

The model answer is untyped text, so parsing returns a tagged result
(``Recognized`` or ``Unrecognized``) and callers decide what to do with
an unrecognized answer.
"""

import enum
import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import unquote, urlparse

from anthropic import APIError, AsyncAnthropic

from app.models.content import SourceType
from app.services.pipeline_config import PipelineConfig
from app.services.source_classifier import DOCUMENT_SCHEME, classify_source, coerce_source

logger = logging.getLogger(__name__)


# ========================================
# Custom Exceptions
# ========================================


class AnalysisError(Exception):
    """Raised when the model call itself fails."""
    pass


class ModelResponseError(AnalysisError):
    """Raised when the model answers without any text."""
    pass


# ========================================
# Prompts
# ========================================


class PromptVariant(str, enum.Enum):
    """Which prompt template to send."""

    DIRECT = "direct"          # cleaned page text embedded in the prompt
    WEB_SEARCH = "web_search"  # URL only, the model retrieves the page


_FIELD_INSTRUCTIONS = """Provide a structured response in JSON format with these fields:
- title: A clear, concise title for this content
- summary: A 2-3 sentence summary
- tags: An array of 3-5 relevant tags/keywords
- key_takeaways: An array of 2-4 key insights or important points
- source_type: One of "web", "youtube", "linkedin", "medium", "substack" or "document"

Respond with valid JSON only."""

DIRECT_PROMPT = """Analyze the following content.

{fields}

Content: {payload}"""

WEB_SEARCH_PROMPT = """The page at the URL below could not be downloaded directly.
Use web search to find out what it contains, then analyze it.

URL: {payload}

{fields}"""

_PROMPT_TEMPLATES = {
    PromptVariant.DIRECT: DIRECT_PROMPT,
    PromptVariant.WEB_SEARCH: WEB_SEARCH_PROMPT,
}


# ========================================
# Parsed Result Types
# ========================================


@dataclass(frozen=True)
class AnalysisFields:
    """The structured enrichment the model is asked for."""

    title: str
    summary: str
    source_type: SourceType
    tags: List[str] = field(default_factory=list)
    key_takeaways: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source_type"] = self.source_type.value
        return data


@dataclass(frozen=True)
class Recognized:
    """The answer contained a JSON object with the required fields."""

    fields: AnalysisFields


@dataclass(frozen=True)
class Unrecognized:
    """The answer could not be turned into ``AnalysisFields``."""

    raw_text: str
    reason: str


ParsedAnalysis = Union[Recognized, Unrecognized]

REQUIRED_FIELDS = ("title", "source_type")

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.I)


# ========================================
# JSON Recovery
# ========================================


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers, keeping what was inside."""
    return _CODE_FENCE_RE.sub("", text).strip()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Recover a JSON object from free text.

    Tries the text as-is, then with code fences stripped, then the span
    from the first ``{`` to the last ``}``.

    Returns:
        The decoded object, or None when no attempt yields a dict
    """
    if not text:
        return None

    candidates = [text.strip()]
    unfenced = strip_code_fences(text)
    candidates.append(unfenced)

    start, end = unfenced.find("{"), unfenced.rfind("}")
    if start != -1 and end > start:
        candidates.append(unfenced[start:end + 1])

    for candidate in candidates:
        try:
            decoded = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(decoded, dict):
            return decoded

    return None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def parse_analysis(raw: str, default_source: SourceType = SourceType.WEB) -> ParsedAnalysis:
    """
    Parse a model answer into analysis fields.

    Args:
        raw: Model answer text
        default_source: Used when the model names a source type we do not know

    Returns:
        Recognized when a JSON object with a non-empty ``title`` and
        ``source_type`` was found, Unrecognized otherwise
    """
    data = extract_json_object(raw)
    if data is None:
        return Unrecognized(raw_text=raw, reason="No JSON object found in model response")

    missing = [
        name for name in REQUIRED_FIELDS
        if not isinstance(data.get(name), str) or not data[name].strip()
    ]
    if missing:
        return Unrecognized(raw_text=raw, reason=f"Missing required fields: {', '.join(missing)}")

    summary = data.get("summary")
    return Recognized(
        fields=AnalysisFields(
            title=data["title"].strip(),
            summary=summary.strip() if isinstance(summary, str) else "",
            source_type=coerce_source(data["source_type"], default=default_source),
            tags=_string_list(data.get("tags")),
            key_takeaways=_string_list(data.get("key_takeaways")),
        )
    )


# ========================================
# Fallback Record
# ========================================

FALLBACK_SUMMARY = (
    "Automatic analysis was not available for this link, so these details "
    "were derived from the URL. Open the original to read the full content."
)
FALLBACK_TAKEAWAYS = [
    "Automatic analysis could not read this content",
    "Open the original link for the full details",
]
UNPROCESSED_TAG = "unprocessed"


def _title_from_url(url: str) -> str:
    if url.lower().startswith(DOCUMENT_SCHEME):
        host, path = "", url[len(DOCUMENT_SCHEME):]
    else:
        parsed = urlparse(url if "://" in url else f"https://{url}")
        host, path = parsed.netloc, parsed.path

    segments = [segment for segment in unquote(path).split("/") if segment]
    if segments:
        stem, _ = os.path.splitext(segments[-1])
        words = re.sub(r"[-_]+", " ", stem or segments[-1]).strip()
        if words:
            return words.title()

    host = host.split(":")[0]
    if host.startswith("www."):
        host = host[4:]
    return host or "Untitled"


def build_fallback_analysis(url: str) -> AnalysisFields:
    """
    Synthesize a record from the URL alone.

    Example:
        >>> build_fallback_analysis("https://example.com/blog/my_first-post").title
        'My First Post'
    """
    source = classify_source(url)
    return AnalysisFields(
        title=_title_from_url(url or ""),
        summary=FALLBACK_SUMMARY,
        source_type=source,
        tags=[source.value, UNPROCESSED_TAG],
        key_takeaways=list(FALLBACK_TAKEAWAYS),
    )


# ========================================
# Model Client
# ========================================


class ContentAnalyzer:
    """
    Client for the enrichment model.

    Usage:
    ------
    analyzer = ContentAnalyzer(PipelineConfig.from_settings())

    raw = await analyzer.analyze(PromptVariant.DIRECT, cleaned_text)
    parsed = parse_analysis(raw)
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        client: Optional[AsyncAnthropic] = None
    ):
        """
        Initialize the analyzer.

        Args:
            config: Pipeline configuration (defaults to one built from settings)
            client: Pre-built Anthropic client, mainly for tests
        """
        self.config = config or PipelineConfig.from_settings()
        self.model = self.config.model_name

        # A missing key only fails the call, not construction
        if client is not None:
            self.client = client
        elif self.config.model_api_key:
            self.client = AsyncAnthropic(
                api_key=self.config.model_api_key,
                base_url=self.config.model_endpoint,
            )
        else:
            self.client = None

        logger.info(
            f"ContentAnalyzer initialized with model={self.model}, "
            f"max_tokens={self.config.model_max_tokens}"
        )

    @staticmethod
    def build_prompt(variant: PromptVariant, payload: str) -> str:
        """Fill the template for ``variant`` with ``payload`` (page text or URL)."""
        return _PROMPT_TEMPLATES[variant].format(fields=_FIELD_INSTRUCTIONS, payload=payload)

    def web_search_tool(self) -> Dict[str, Any]:
        return {
            "type": "web_search_20250305",
            "name": "web_search",
            "max_uses": self.config.web_search_max_uses,
        }

    async def analyze(self, variant: PromptVariant, payload: str) -> str:
        """
        Ask the model to analyze ``payload``.

        Args:
            variant: DIRECT with cleaned page text, WEB_SEARCH with the URL
            payload: Page text or URL

        Returns:
            The model's raw answer text

        Raises:
            AnalysisError: The call failed (no key, network, non-2xx)
            ModelResponseError: The model returned no text
        """
        logger.info(f"Requesting {variant.value} analysis ({len(payload)} chars of payload)")

        tools = [self.web_search_tool()] if variant == PromptVariant.WEB_SEARCH else None
        return await self.complete(self.build_prompt(variant, payload), tools=tools)

    async def complete(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None
    ) -> str:
        """
        Send one user message and return the concatenated text blocks.

        Used by ``analyze`` and by the insights generator.
        """
        if self.client is None:
            raise AnalysisError("Anthropic API key is not configured")

        request: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.config.model_max_tokens,
            "temperature": (
                self.config.model_temperature if temperature is None else temperature
            ),
            "messages": [{"role": "user", "content": prompt}],
        }
        if tools:
            request["tools"] = tools

        try:
            response = await self.client.messages.create(**request)
        except APIError as e:
            logger.error(f"Model call failed: {e}")
            raise AnalysisError(f"Model API error: {e}") from e

        # Web search answers interleave tool-use blocks with the text
        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ).strip()

        if not text:
            raise ModelResponseError("Model returned an empty response")

        logger.info(f"Model answered with {len(text)} characters")
        return text
