"""
Thumbnail extraction service.

Finds a best-effort preview image for a submitted URL:
- YouTube: video ID templated into the public thumbnail URL (no network)
- Vimeo: public oEmbed endpoint
- LinkedIn / Twitter / generic pages: social preview meta tags scraped
  from the page HTML, in priority order, falling back to the first <img>

Thumbnails are decoration. Every failure (network error, non-2xx,
unparseable HTML, nothing found) ends up as ``None``; nothing in this
module raises to its callers.
"""

import asyncio
import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from app.services.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)


YOUTUBE_THUMBNAIL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
VIMEO_OEMBED_URL = "https://vimeo.com/api/oembed.json"

_VIMEO_ID_RE = re.compile(r"vimeo\.com/(\d+)")
_IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|bmp)(\?|$)", re.I)
_IMAGE_HINT_RE = re.compile(r"(image|img|photo|picture|thumbnail|avatar|media)", re.I)
# LinkedIn embeds the preview in inline JSON, sometimes with escaped slashes
_EMBEDDED_JSON_IMAGE_RE = re.compile(r'"image"\s*:\s*"([^"]+)"')

# (attribute, value) pairs that identify a preview-image <meta> tag
MetaSelector = Tuple[str, str]

OPEN_GRAPH_IMAGE: List[MetaSelector] = [("property", "og:image"), ("name", "og:image")]
TWITTER_CARD_IMAGE: List[MetaSelector] = [("name", "twitter:image"), ("property", "twitter:image")]
TWITTER_DOMAINS = ("twitter.com", "x.com")
ARTICLE_IMAGE: List[MetaSelector] = [("property", "article:image")]
SCHEMA_ORG_IMAGE: List[MetaSelector] = [("itemprop", "image")]
GENERIC_IMAGE: List[MetaSelector] = [("name", "image")]

# Generic priority once any platform-specific tag has been tried
DEFAULT_META_PRIORITY: List[List[MetaSelector]] = [
    OPEN_GRAPH_IMAGE,
    TWITTER_CARD_IMAGE,
    ARTICLE_IMAGE,
    SCHEMA_ORG_IMAGE,
    GENERIC_IMAGE,
]


class ThumbnailService:
    """
    Service for extracting preview images from URLs.

    Example:
        >>> service = ThumbnailService()
        >>> service.extract_thumbnail("https://youtu.be/abc123")
        'https://img.youtube.com/vi/abc123/maxresdefault.jpg'
    """

    # Some platforms only serve preview tags to browsers
    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )

    def __init__(self, config: Optional[PipelineConfig] = None):
        config = config or PipelineConfig.from_settings()
        self.request_timeout = config.thumbnail_timeout

    # ========================================
    # Entry Points
    # ========================================

    def extract_thumbnail(self, url: str, content_type: Optional[str] = None) -> Optional[str]:
        """
        Extract a thumbnail URL for ``url``.

        Args:
            url: Page URL
            content_type: Optional hint from the caller (logged only)

        Returns:
            Absolute image URL, or None when nothing usable was found
        """
        try:
            lowered = url.lower()
            logger.info(f"Extracting thumbnail for: {url} (content type hint: {content_type})")

            if "youtube.com" in lowered or "youtu.be" in lowered:
                return self.extract_youtube_thumbnail(url)
            if "vimeo.com" in lowered:
                return self._extract_vimeo_thumbnail(url)
            if "linkedin.com" in lowered:
                return self._extract_from_page(url, platform_selectors=[], embedded_json=True)
            if self.is_twitter_url(url):
                return self._extract_from_page(url, platform_selectors=[TWITTER_CARD_IMAGE])
            return self._extract_from_page(url)

        except Exception as e:
            logger.warning(f"Thumbnail extraction failed for {url}: {e}")
            return None

    async def extract_thumbnail_async(
        self,
        url: str,
        content_type: Optional[str] = None
    ) -> Optional[str]:
        """Run ``extract_thumbnail`` in a worker thread."""
        return await asyncio.to_thread(self.extract_thumbnail, url, content_type)

    # ========================================
    # Platform Strategies
    # ========================================

    @staticmethod
    def is_twitter_url(url: str) -> bool:
        """True for twitter.com, x.com and their subdomains."""
        host = (urlparse(url).hostname or "").lower()
        return any(host == domain or host.endswith(f".{domain}") for domain in TWITTER_DOMAINS)

    @staticmethod
    def extract_youtube_video_id(url: str) -> Optional[str]:
        """
        Pull the video ID out of the three common YouTube URL shapes.

        Handles ``youtube.com/watch?v=ID``, ``youtu.be/ID`` and
        ``youtube.com/embed/ID``.
        """
        video_id = None

        if "youtube.com/watch" in url and "v=" in url:
            video_id = url.split("v=", 1)[1].split("&")[0]
        elif "youtu.be/" in url:
            video_id = url.split("youtu.be/", 1)[1].split("?")[0]
        elif "youtube.com/embed/" in url:
            video_id = url.split("/embed/", 1)[1].split("?")[0]

        if video_id:
            video_id = video_id.split("#")[0].strip("/")

        return video_id or None

    def extract_youtube_thumbnail(self, url: str) -> Optional[str]:
        """Template the high-resolution thumbnail URL; no network call."""
        video_id = self.extract_youtube_video_id(url)
        if not video_id:
            logger.debug(f"No YouTube video ID found in: {url}")
            return None
        return YOUTUBE_THUMBNAIL_TEMPLATE.format(video_id=video_id)

    def _extract_vimeo_thumbnail(self, url: str) -> Optional[str]:
        """Ask Vimeo's oEmbed endpoint for the video's thumbnail."""
        match = _VIMEO_ID_RE.search(url)
        if not match:
            return None

        video_id = match.group(1)
        try:
            response = requests.get(
                VIMEO_OEMBED_URL,
                params={"url": f"https://vimeo.com/{video_id}"},
                timeout=self.request_timeout,
            )
            if not response.ok:
                logger.debug(f"Vimeo oEmbed returned {response.status_code} for {video_id}")
                return None
            return response.json().get("thumbnail_url") or None

        except (requests.RequestException, ValueError) as e:
            logger.debug(f"Vimeo oEmbed failed for {video_id}: {e}")
            return None

    def _extract_from_page(
        self,
        url: str,
        platform_selectors: Optional[List[List[MetaSelector]]] = None,
        embedded_json: bool = False,
    ) -> Optional[str]:
        """
        Scrape the page for a preview image.

        Priority: platform-specific tags, Open Graph, Twitter card,
        article image, schema.org image, generic image meta, embedded
        JSON (LinkedIn), then the first <img> in the document.
        """
        html = self._fetch_html(url)
        if not html:
            return None

        soup = BeautifulSoup(html, "lxml")

        for selectors in (platform_selectors or []) + DEFAULT_META_PRIORITY:
            candidate = self._find_meta_content(soup, selectors)
            if candidate and self.is_valid_image_url(candidate):
                return self.resolve_url(candidate, url)

        if embedded_json:
            match = _EMBEDDED_JSON_IMAGE_RE.search(html)
            if match:
                candidate = match.group(1).replace("\\u002F", "/").replace("\\/", "/")
                if self.is_valid_image_url(candidate):
                    return self.resolve_url(candidate, url)

        img_tag = soup.find("img", src=True)
        if img_tag:
            candidate = img_tag["src"].strip()
            if self.is_valid_image_url(candidate):
                return self.resolve_url(candidate, url)

        return None

    # ========================================
    # Helpers
    # ========================================

    def _fetch_html(self, url: str) -> Optional[str]:
        """GET the page with a browser user-agent; None on any failure."""
        try:
            response = requests.get(
                url,
                headers={"User-Agent": self.USER_AGENT},
                timeout=self.request_timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.debug(f"Thumbnail page fetch failed for {url}: {e}")
            return None

        if not response.ok:
            logger.debug(f"Thumbnail page fetch returned {response.status_code} for {url}")
            return None

        return response.text

    @staticmethod
    def _find_meta_content(soup: BeautifulSoup, selectors: List[MetaSelector]) -> Optional[str]:
        for attribute, value in selectors:
            tag = soup.find("meta", attrs={attribute: value})
            if tag and tag.get("content"):
                return tag["content"].strip()
        return None

    @staticmethod
    def is_valid_image_url(candidate: str) -> bool:
        """
        Heuristic check that ``candidate`` points at an image.

        Accepts a known image extension, or an image-ish word in the
        path (image, img, photo, thumbnail, media, ...).
        """
        if not candidate or candidate.startswith("data:") or any(c.isspace() for c in candidate):
            return False

        # Absolute and protocol-relative URLs must carry a host
        if candidate.startswith(("http://", "https://", "//")):
            if not urlparse(candidate if candidate.startswith("http") else f"https:{candidate}").netloc:
                return False

        return bool(_IMAGE_EXTENSION_RE.search(candidate) or _IMAGE_HINT_RE.search(candidate))

    @staticmethod
    def resolve_url(image_url: str, page_url: str) -> str:
        """Resolve protocol-relative and relative image URLs against the page."""
        if image_url.startswith(("http://", "https://")):
            return image_url
        if image_url.startswith("//"):
            return f"https:{image_url}"
        return urljoin(page_url, image_url)
