"""Document and chunk models for the ingestion pipeline.

A :class:`Document` is the raw text of one origin (a GitHub markdown file
or a web page rendered to markdown).  A :class:`Chunk` is a header-scoped
slice of a document sized for one extraction call.  Both are frozen:
documents are fixed once fetched and chunks are produced once per
chunking pass and consumed once by the extractor.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from cardsmith.utils.text import count_words, estimate_tokens


class OriginKind(str, Enum):  # noqa: UP042
    """Where a document came from.

    Only ``VERSION_CONTROL`` documents are checked for pre-written answers
    by default; curated Q&A repositories are where they occur.
    """

    VERSION_CONTROL = "version_control"
    WEB = "web"
    FILE = "file"


class Document(BaseModel):
    """Raw document text plus acquisition metadata."""

    model_config = ConfigDict(frozen=True)

    text: str
    word_count: int = Field(ge=0, description="Whitespace-delimited token count.")
    origin: str = Field(description="URL or filesystem path the text came from.")
    origin_kind: OriginKind = OriginKind.WEB
    title: str | None = None

    @classmethod
    def from_text(
        cls,
        text: str,
        origin: str,
        origin_kind: OriginKind = OriginKind.FILE,
        title: str | None = None,
    ) -> Document:
        """Build a document, computing the word count from *text*."""
        return cls(
            text=text,
            word_count=count_words(text),
            origin=origin,
            origin_kind=origin_kind,
            title=title,
        )


class Chunk(BaseModel):
    """A contiguous, header-scoped slice of a document.

    ``breadcrumb`` lists the enclosing header titles from outermost to
    innermost; it is sent with the chunk as a context hint so a standalone
    slice can say which larger section it belongs to.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    breadcrumb: tuple[str, ...] = ()
    depth: int = Field(default=0, ge=0)
    word_count: int = Field(default=0, ge=0)
    estimated_tokens: int = Field(default=0, ge=0)
    # Line span in the source document: [start_line, end_line).
    start_line: int = Field(default=0, ge=0)
    end_line: int = Field(default=0, ge=0)

    @classmethod
    def from_lines(
        cls,
        lines: list[str],
        breadcrumb: tuple[str, ...] | list[str],
        start_line: int = 0,
    ) -> Chunk:
        """Join *lines* and derive the word/token counts and depth."""
        text = "\n".join(lines)
        crumbs = tuple(breadcrumb)
        return cls(
            text=text,
            breadcrumb=crumbs,
            depth=len(crumbs),
            word_count=count_words(text),
            estimated_tokens=estimate_tokens(text),
            start_line=start_line,
            end_line=start_line + len(lines),
        )

    @property
    def context_label(self) -> str:
        """Breadcrumb rendered as ``"A > B > C"`` (empty for the fallback chunk)."""
        return " > ".join(self.breadcrumb)
