"""Web page content provider using httpx and trafilatura.

Fetches raw HTML and lets trafilatura isolate the main content, stripping
navigation, ads, and boilerplate.  The content is emitted as markdown
(ATX headers preserved) so the semantic chunker can still split on
sections; the word count is taken from the plain-text rendering so markup
does not inflate it.

Pages whose main content is below the reject floor fail early with reason
``too_small``; landing pages and login walls usually land here.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import structlog
import trafilatura

from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.models.document import Document, OriginKind
from cardsmith.utils.errors import AcquisitionError
from cardsmith.utils.text import count_words

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0
_DEFAULT_HEADERS = {
    "User-Agent": "cardsmith/0.1 (+https://github.com/cardsmith)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class WebContentProvider(IContentProvider):
    """Main-content extraction for arbitrary web pages."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        min_words: int = 50,
        timeout: float = _DEFAULT_TIMEOUT,
        user_agent: str | None = None,
    ) -> None:
        headers = dict(_DEFAULT_HEADERS)
        if user_agent:
            headers["User-Agent"] = user_agent
        # Injected clients belong to the caller and are left open by aclose().
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=headers,
            follow_redirects=True,
        )
        self._min_words = min_words

    # ------------------------------------------------------------------
    # IContentProvider implementation
    # ------------------------------------------------------------------

    async def fetch(self, origin: str) -> Document:
        """Fetch *origin* and extract its readable content as markdown."""
        if not origin.startswith(("http://", "https://")):
            raise AcquisitionError(
                message=f"Not an HTTP(S) URL: {origin}",
                provider_name=self.get_provider_name(),
                reason="invalid_origin",
            )

        try:
            response = await self._client.get(origin)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise AcquisitionError(
                message=f"Timeout fetching {origin}: {exc}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise AcquisitionError(
                message=f"HTTP {exc.response.status_code} for {origin}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc
        except httpx.HTTPError as exc:
            raise AcquisitionError(
                message=f"HTTP error fetching {origin}: {exc}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc

        html = response.text
        markdown, plain, metadata = await asyncio.to_thread(self._extract_sync, html)
        if not markdown or not markdown.strip():
            logger.warning("web_extraction_empty", origin=origin)
            raise AcquisitionError(
                message="No main content found. This might be a landing page or login wall.",
                provider_name=self.get_provider_name(),
                reason="empty_content",
            )

        word_count = count_words(plain or markdown)
        if word_count < self._min_words:
            raise AcquisitionError(
                message=(
                    f"Insufficient content ({word_count} words). "
                    "Page may be too small or content unavailable."
                ),
                provider_name=self.get_provider_name(),
                reason="too_small",
            )

        title = self._parse_title(metadata, origin)
        logger.info(
            "web_content_extracted",
            origin=origin,
            title=title,
            word_count=word_count,
        )
        return Document(
            text=markdown,
            word_count=word_count,
            origin=origin,
            origin_kind=OriginKind.WEB,
            title=title,
        )

    def supports(self, origin: str) -> bool:
        return origin.startswith(("http://", "https://"))

    def get_provider_name(self) -> str:
        return "web"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Sync helpers (executed via asyncio.to_thread)
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_sync(html: str) -> tuple[str | None, str | None, str | None]:
        """Markdown body, plain-text body, and JSON metadata, in that order."""
        markdown = trafilatura.extract(
            html,
            output_format="markdown",
            include_comments=False,
            include_tables=True,
            include_formatting=True,
        )
        if not markdown or not markdown.strip():
            return markdown, None, None
        plain = trafilatura.extract(html, include_comments=False, include_tables=True)
        metadata = trafilatura.extract(
            html,
            include_comments=False,
            output_format="json",
            with_metadata=True,
        )
        return markdown, plain, metadata

    @staticmethod
    def _parse_title(metadata: str | None, origin: str) -> str | None:
        if not metadata:
            return None
        try:
            return json.loads(metadata).get("title") or None
        except (json.JSONDecodeError, AttributeError):
            logger.debug("metadata_parse_failed", origin=origin)
            return None
