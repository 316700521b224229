"""
Unit tests for the content fetcher.

``requests.get`` is mocked; no network access.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from app.services.content_fetcher import ContentFetchError, ContentFetcher


ARTICLE_BODY = " ".join(
    f"Sentence number {i} explains another detail about asynchronous Python services."
    for i in range(20)
)

ARTICLE_HTML = f"""
<html>
  <head><title>Async Python</title><style>body {{ color: red; }}</style></head>
  <body>
    <nav>Home | About | Contact</nav>
    <script>var tracking = true;</script>
    <article><h1>Async Python</h1><p>{ARTICLE_BODY}</p></article>
    <footer>Copyright 2024 Example Inc.</footer>
  </body>
</html>
"""


def _response(text: str = "", status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.text = text
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    return response


@pytest.fixture
def fetcher(pipeline_config) -> ContentFetcher:
    return ContentFetcher(pipeline_config)


class TestCleanHtml:

    def test_strips_non_content_blocks(self):
        text = ContentFetcher.clean_html(ARTICLE_HTML)

        assert "Async Python" in text
        assert "Sentence number 0" in text
        assert "tracking" not in text
        assert "color: red" not in text
        assert "Home | About" not in text
        assert "Copyright" not in text

    def test_collapses_whitespace(self):
        assert ContentFetcher.clean_html("<p>a\n\n   b\t c</p>") == "a b c"

    def test_empty(self):
        assert ContentFetcher.clean_html("") == ""


class TestAssessUsability:

    def test_real_article_is_usable(self, fetcher):
        assert fetcher.assess_usability(ARTICLE_BODY) == (True, None)

    def test_too_short(self, fetcher):
        usable, reason = fetcher.assess_usability("Just a few words.")

        assert not usable
        assert "Too short" in reason

    def test_too_few_words(self, fetcher):
        usable, reason = fetcher.assess_usability("x" * 300)

        assert not usable
        assert "Too few words" in reason

    def test_javascript_wall(self, fetcher):
        text = "You need to enable JavaScript to run this app. " + ARTICLE_BODY

        usable, reason = fetcher.assess_usability(text)

        assert not usable
        assert "boilerplate" in reason

    def test_footer_only(self, fetcher):
        text = "© 2024 Example Inc. " + ARTICLE_BODY

        assert fetcher.assess_usability(text)[0] is False

    def test_signature_deep_in_article_is_ignored(self, fetcher):
        """Interstitial notices only count near the start of the text."""
        text = ARTICLE_BODY + " The server replied with access denied for the old token."

        assert fetcher.assess_usability(text) == (True, None)


class TestFetchAndClean:

    @patch("app.services.content_fetcher.requests.get")
    def test_usable_page(self, mock_get, fetcher):
        mock_get.return_value = _response(ARTICLE_HTML)

        result = fetcher.fetch_and_clean("https://example.com/async")

        assert result.usable is True
        assert result.reason is None
        assert "Sentence number 19" in result.text
        _, kwargs = mock_get.call_args
        assert kwargs["timeout"] == fetcher.timeout
        assert "User-Agent" in kwargs["headers"]

    @patch("app.services.content_fetcher.requests.get")
    def test_truncates_to_max_chars(self, mock_get, pipeline_config):
        fetcher = ContentFetcher(pipeline_config)
        fetcher.max_chars = 300
        mock_get.return_value = _response(ARTICLE_HTML)

        result = fetcher.fetch_and_clean("https://example.com/async")

        assert result.usable
        assert len(result.text) == 300

    @patch("app.services.content_fetcher.requests.get")
    def test_http_error_is_unusable(self, mock_get, fetcher):
        mock_get.return_value = _response("Forbidden", status_code=403)

        result = fetcher.fetch_and_clean("https://example.com/private")

        assert result.usable is False
        assert result.text == ""
        assert "HTTP 403" in result.reason

    @patch("app.services.content_fetcher.requests.get")
    def test_timeout_is_unusable(self, mock_get, fetcher):
        mock_get.side_effect = requests.Timeout()

        result = fetcher.fetch_and_clean("https://example.com/slow")

        assert result.usable is False
        assert "Timed out" in result.reason

    @patch("app.services.content_fetcher.requests.get")
    def test_boilerplate_page_is_unusable(self, mock_get, fetcher):
        mock_get.return_value = _response(
            "<html><body><p>Please enable JavaScript to continue.</p></body></html>"
        )

        result = fetcher.fetch_and_clean("https://spa.example.com")

        assert result.usable is False

    @patch("app.services.content_fetcher.requests.get")
    def test_document_urls_are_not_fetched(self, mock_get, fetcher):
        result = fetcher.fetch_and_clean("document://notes.pdf")

        assert result.usable is False
        mock_get.assert_not_called()

    def test_fetch_raises_on_connection_error(self, fetcher):
        with patch(
            "app.services.content_fetcher.requests.get",
            side_effect=requests.ConnectionError("refused"),
        ):
            with pytest.raises(ContentFetchError):
                fetcher.fetch("https://unreachable.example.com")

    @pytest.mark.asyncio
    @patch("app.services.content_fetcher.requests.get")
    async def test_async_wrapper(self, mock_get, fetcher):
        mock_get.return_value = _response(ARTICLE_HTML)

        result = await fetcher.fetch_and_clean_async("https://example.com/async")

        assert result.usable
