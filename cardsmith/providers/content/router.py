"""Dispatches an origin to the first content provider that supports it.

GitHub URLs go to :class:`GitHubContentProvider`; everything else falls
through to :class:`WebContentProvider`.  Local files are read directly so
the CLI can process a markdown file on disk.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.models.document import Document, OriginKind
from cardsmith.utils.errors import AcquisitionError

logger = structlog.get_logger(logger_name=__name__)


class ContentRouter(IContentProvider):
    """Tries each provider in order; first ``supports(origin)`` wins."""

    def __init__(self, providers: list[IContentProvider]) -> None:
        self._providers = list(providers)

    async def fetch(self, origin: str) -> Document:
        for provider in self._providers:
            if provider.supports(origin):
                logger.debug(
                    "content_provider_selected",
                    origin=origin,
                    provider=provider.get_provider_name(),
                )
                return await provider.fetch(origin)
        raise AcquisitionError(
            message=f"No content provider can fetch {origin}",
            provider_name=self.get_provider_name(),
            reason="invalid_origin",
        )

    def supports(self, origin: str) -> bool:
        return any(p.supports(origin) for p in self._providers)

    def get_provider_name(self) -> str:
        return "router"

    async def aclose(self) -> None:
        for provider in self._providers:
            await provider.aclose()


class FileContentProvider(IContentProvider):
    """Reads a UTF-8 markdown/text file from the local filesystem."""

    async def fetch(self, origin: str) -> Document:
        path = Path(origin)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise AcquisitionError(
                message=f"Could not read {origin}: {exc}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc
        if not text.strip():
            raise AcquisitionError(
                message=f"{origin} is empty",
                provider_name=self.get_provider_name(),
                reason="empty_content",
            )
        return Document.from_text(text, origin=origin, origin_kind=OriginKind.FILE, title=path.name)

    def supports(self, origin: str) -> bool:
        return not origin.startswith(("http://", "https://")) and Path(origin).is_file()

    def get_provider_name(self) -> str:
        return "file"
