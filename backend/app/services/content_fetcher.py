"""
Content fetching and sanitation for the enrichment pipeline.

Downloads the submitted page, strips markup down to plain text and
decides whether the text is worth handing to the model. Pages that
cannot be fetched or that only yield boilerplate (cookie walls,
"enable JavaScript" notices, bare footers) are reported as unusable so
the pipeline can switch to the web-search prompt instead.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import requests
from bs4 import BeautifulSoup

from app.services.pipeline_config import PipelineConfig
from app.services.source_classifier import DOCUMENT_SCHEME

logger = logging.getLogger(__name__)


# ========================================
# Custom Exceptions
# ========================================


class ContentFetchError(Exception):
    """Raised when a page cannot be downloaded."""
    pass


# ========================================
# Result Type
# ========================================


@dataclass(frozen=True)
class FetchResult:
    """Cleaned page text and whether it is good enough to analyze."""

    text: str
    usable: bool
    reason: Optional[str] = None


# Text that means the page did not render its real content for us
UNUSABLE_SIGNATURES = [
    re.compile(pattern, re.I)
    for pattern in (
        r"(please )?enable javascript",
        r"javascript (is )?(required|disabled)",
        r"you need to enable javascript to run this app",
        r"checking (if the site connection is secure|your browser)",
        r"are you a (human|robot)",
        r"access denied",
        r"verify you are human",
        r"(sign|log) ?in to (continue|view)",
        # Only a footer survived the cleanup
        r"^(©|\(c\)|copyright)\s*\d{0,4}",
        r"^all rights reserved",
        r"^(privacy policy|terms of (service|use))\b",
    )
]

SIGNATURE_WINDOW = 600

STRIPPED_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside"]


class ContentFetcher:
    """
    Fetches a URL and returns sanitized text plus a usability verdict.

    Example:
        >>> fetcher = ContentFetcher()
        >>> result = fetcher.fetch_and_clean("https://example.com/article")
        >>> if result.usable:
        ...     analyze(result.text)
    """

    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, config: Optional[PipelineConfig] = None):
        config = config or PipelineConfig.from_settings()
        self.timeout = config.fetch_timeout
        self.max_chars = config.max_content_chars
        self.min_chars = config.min_content_chars
        self.min_words = config.min_content_words

    # ========================================
    # Entry Points
    # ========================================

    def fetch_and_clean(self, url: str) -> FetchResult:
        """
        Download ``url`` and return its cleaned, possibly truncated text.

        Never raises: download failures come back as an unusable result
        with empty text.
        """
        try:
            html = self.fetch(url)
        except ContentFetchError as e:
            logger.info(f"Content fetch failed for {url}: {e}")
            return FetchResult(text="", usable=False, reason=str(e))

        text = self.clean_html(html)
        usable, reason = self.assess_usability(text)

        if not usable:
            logger.info(f"Content for {url} is unusable: {reason}")
            return FetchResult(text=text, usable=False, reason=reason)

        logger.info(f"Fetched {len(text)} characters of usable content from {url}")
        return FetchResult(text=text[:self.max_chars], usable=True)

    async def fetch_and_clean_async(self, url: str) -> FetchResult:
        """Run ``fetch_and_clean`` in a worker thread."""
        return await asyncio.to_thread(self.fetch_and_clean, url)

    # ========================================
    # Steps
    # ========================================

    def fetch(self, url: str) -> str:
        """
        GET the page body.

        Raises:
            ContentFetchError: On uploaded documents, network errors,
                timeouts and non-2xx responses
        """
        if url.lower().startswith(DOCUMENT_SCHEME):
            raise ContentFetchError("Uploaded documents have no fetchable page")

        try:
            response = requests.get(
                url,
                headers=self.HEADERS,
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.Timeout:
            raise ContentFetchError(f"Timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise ContentFetchError(f"Request failed: {e}")

        if not response.ok:
            raise ContentFetchError(f"HTTP {response.status_code}")

        return response.text

    @staticmethod
    def clean_html(html: str) -> str:
        """Strip non-content blocks and all markup, collapse whitespace."""
        if not html:
            return ""

        soup = BeautifulSoup(html, "lxml")
        for tag in soup(STRIPPED_TAGS):
            tag.decompose()

        text = soup.get_text(separator=" ")
        return re.sub(r"\s+", " ", text).strip()

    def assess_usability(self, text: str) -> Tuple[bool, Optional[str]]:
        """
        Decide whether cleaned text is real content.

        Returns:
            (usable, reason) where reason explains a negative verdict
        """
        if len(text) < self.min_chars:
            return False, f"Too short ({len(text)} characters)"

        word_count = len(text.split())
        if word_count < self.min_words:
            return False, f"Too few words ({word_count})"

        # Interstitials put their notice up front; an article that merely
        # mentions "access denied" further down is still content
        head = text[:SIGNATURE_WINDOW]
        for signature in UNUSABLE_SIGNATURES:
            if signature.search(head):
                return False, f"Matched boilerplate signature: {signature.pattern}"

        return True, None
