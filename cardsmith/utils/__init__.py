"""Utility modules for cardsmith.

- **errors** -- Domain-specific exception hierarchy rooted at CardsmithError;
  each pipeline stage raises its own subclass so the coordinator can decide
  which failures are terminal and which are absorbed per chunk.
- **concurrency** -- fixed-size batch execution that keeps parallel LLM
  extraction calls under provider rate limits.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text** -- word counting and token estimation.
"""

from cardsmith.utils.errors import (
    AcquisitionError,
    CardsmithError,
    ClassificationError,
    ConfigurationError,
    ExtractionError,
    LLMError,
    PersistenceError,
    PipelineError,
)
from cardsmith.utils.logging import configure_logging, get_logger
from cardsmith.utils.text import count_words, estimate_tokens

__all__ = [
    "AcquisitionError",
    "CardsmithError",
    "ClassificationError",
    "ConfigurationError",
    "ExtractionError",
    "LLMError",
    "PersistenceError",
    "PipelineError",
    "configure_logging",
    "count_words",
    "estimate_tokens",
    "get_logger",
]
