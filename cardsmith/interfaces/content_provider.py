"""Abstract base class for content acquisition providers.

A content provider turns an origin (a GitHub file URL or a web page URL)
into a :class:`~cardsmith.models.document.Document`: markdown text plus its
word count.  Implementations live in ``cardsmith/providers/content/``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from cardsmith.models.document import Document


class IContentProvider(ABC):
    """Contract for services that fetch study material for the pipeline."""

    @abstractmethod
    async def fetch(self, origin: str) -> Document:
        """Fetch *origin* and return its readable content as a Document.

        Raises
        ------
        cardsmith.utils.errors.AcquisitionError
            With ``reason`` set to ``invalid_origin`` (URL not understood),
            ``fetch_failed`` (unreachable / HTTP error), ``empty_content``
            (no extractable main content) or ``too_small``.
        """

    @abstractmethod
    def supports(self, origin: str) -> bool:
        """Return ``True`` if this provider knows how to fetch *origin*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"github"`` or ``"web"``."""

    async def aclose(self) -> None:
        """Release network resources.  Providers without any keep this no-op."""
        return None
