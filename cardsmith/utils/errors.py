"""Custom exception hierarchy for cardsmith.

All application exceptions inherit from :class:`CardsmithError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "github", "sqlite") caused the failure.

The hierarchy is organized by pipeline stage:

    CardsmithError  (base -- catch-all for any cardsmith error)
    +-- AcquisitionError     (fetching a GitHub file or web page)
    +-- ClassificationError  (pre-written answer yes/no check)
    +-- ExtractionError      (one extraction call or its payload)
    +-- LLMError             (any LLM API call failure)
    +-- PersistenceError     (question store upsert / query)
    +-- PipelineError        (coordinator / strategy selection)
    +-- ConfigurationError   (startup / missing config)

Acquisition and classification errors are terminal for one ingestion run;
extraction errors are absorbed at the chunk level by the coordinator.
"""

from __future__ import annotations


class CardsmithError(Exception):
    """Base exception for all cardsmith errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    scanning, e.g. ``[github] HTTP 404 for owner/repo``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Content acquisition
# ---------------------------------------------------------------------------

class AcquisitionError(CardsmithError):
    """Raised when a document cannot be fetched or yields no usable content.

    ``reason`` is one of ``invalid_origin``, ``fetch_failed``,
    ``empty_content`` or ``too_small`` so callers can tell an unreachable
    origin apart from a page that simply has nothing to study.
    """

    REASONS = frozenset({"invalid_origin", "fetch_failed", "empty_content", "too_small"})

    def __init__(
        self,
        message: str = "Content acquisition failed",
        provider_name: str | None = None,
        reason: str = "fetch_failed",
    ) -> None:
        if reason not in self.REASONS:
            raise ValueError(f"Unknown acquisition failure reason: {reason!r}")
        self._reason = reason
        super().__init__(message=message, provider_name=provider_name)

    @property
    def reason(self) -> str:
        return self._reason


# ---------------------------------------------------------------------------
# LLM-backed stages
# ---------------------------------------------------------------------------

class ClassificationError(CardsmithError):
    """Raised when the pre-written answer classification call fails.

    Never defaulted to "no answers": picking the wrong extraction path
    produces wrong output rather than no output.
    """

    def __init__(
        self,
        message: str = "Pre-written answer classification failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(CardsmithError):
    """Raised when one extraction call fails or returns an unparseable payload."""

    def __init__(
        self,
        message: str = "Question extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(CardsmithError):
    """Raised when an LLM API call fails or returns an empty response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence / orchestration / configuration
# ---------------------------------------------------------------------------

class PersistenceError(CardsmithError):
    """Raised when the question store cannot be read or written."""

    def __init__(
        self,
        message: str = "Question store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(CardsmithError):
    """Raised when pipeline orchestration fails (invalid strategy, etc.)."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(CardsmithError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
