"""Abstract base class for question persistence.

The store receives the final, deduplicated question list of a run and
upserts it keyed by a stable hash of the question text, so re-syncing a
source updates answers in place instead of creating new cards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from cardsmith.models.question import ExtractedQA, UpsertResult


class IQuestionStore(ABC):
    """Contract for question persistence backends."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indices if they do not exist."""

    @abstractmethod
    async def upsert_questions(
        self,
        questions: list[ExtractedQA],
        source: str,
        source_name: str | None = None,
    ) -> UpsertResult:
        """Insert new questions and update the answers of known ones.

        Raises
        ------
        cardsmith.utils.errors.PersistenceError
            If the backend cannot be written.
        """

    @abstractmethod
    async def count(self, source: str | None = None) -> int:
        """Return the number of stored questions, optionally for one source."""

    @abstractmethod
    async def list_questions(self, source: str | None = None) -> list[dict[str, Any]]:
        """Return stored question rows, optionally filtered by source."""
