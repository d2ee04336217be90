"""Question/answer models: extracted pairs, configured sources, upsert stats."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class ExtractedQA(BaseModel):
    """One atomic flashcard.

    Both fields must be real strings that are non-empty after stripping;
    LLM output that does not satisfy this fails validation and is dropped
    by the extractor rather than passed downstream.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    question: StrictStr
    answer: StrictStr

    @field_validator("question", "answer")
    @classmethod
    def _strip_and_require(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class SourceKind(str, Enum):  # noqa: UP042
    GITHUB = "github"
    WEB = "web"


class QuestionSource(BaseModel):
    """A configured document to sync questions from (``config/sources.yaml``)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    # Optional hint; the content router detects GitHub URLs on its own.
    kind: SourceKind | None = None
    description: str | None = None


class UpsertResult(BaseModel):
    """Counts returned by a question store after an upsert batch."""

    model_config = ConfigDict(frozen=True)

    inserted: int = Field(default=0, ge=0)
    updated: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
