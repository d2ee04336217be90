"""Dependency-injection assembly for cardsmith.

Builds providers and the ingestion pipeline from :class:`Settings`.  The
CLI (``python -m cardsmith.cli``) and scripts call :func:`build_pipeline`;
tests construct :class:`IngestionPipeline` directly with fakes.
"""

from __future__ import annotations

import structlog

from cardsmith.config.settings import Settings
from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.interfaces.question_store import IQuestionStore
from cardsmith.models.pipeline import PipelineConfig
from cardsmith.pipeline.coordinator import IngestionPipeline
from cardsmith.providers.content.github_provider import GitHubContentProvider
from cardsmith.providers.content.router import ContentRouter, FileContentProvider
from cardsmith.providers.content.web_provider import WebContentProvider
from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider
from cardsmith.providers.llm.ollama_provider import OllamaLLMProvider
from cardsmith.providers.llm.openai_provider import OpenAILLMProvider
from cardsmith.providers.store.sqlite_question_store import SQLiteQuestionStore
from cardsmith.utils.errors import ConfigurationError
from cardsmith.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_LLM_FACTORIES = {
    "anthropic": AnthropicLLMProvider,
    "openai": OpenAILLMProvider,
    "ollama": OllamaLLMProvider,
}


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the LLM provider.

    An explicit ``LLM_PROVIDER`` wins.  Otherwise the priority order is
    Anthropic -> OpenAI -> Ollama, skipping providers without credentials.

    Raises
    ------
    ConfigurationError
        If the preference names an unknown provider, or nothing is configured.
    """
    preferred = app_settings.llm_provider.strip().lower()
    if preferred:
        factory = _LLM_FACTORIES.get(preferred)
        if factory is None:
            raise ConfigurationError(
                message=f"Unknown LLM_PROVIDER {preferred!r}; "
                f"expected one of {', '.join(_LLM_FACTORIES)}"
            )
        provider: ILLMProvider = factory(settings=app_settings)
        if not provider.is_available():
            raise ConfigurationError(
                message=f"LLM provider {preferred!r} selected but not configured",
                provider_name=preferred,
            )
        return provider

    for name in app_settings.get_available_llm_providers():
        provider = _LLM_FACTORIES[name](settings=app_settings)
        if provider.is_available():
            _logger.debug("llm_provider_selected", provider=provider.get_provider_name())
            return provider

    raise ConfigurationError(
        message="No LLM provider configured. Set ANTHROPIC_API_KEY, OPENAI_API_KEY "
        "or OLLAMA_BASE_URL."
    )


def build_content_provider(
    app_settings: Settings, config: PipelineConfig | None = None
) -> IContentProvider:
    """GitHub first, then local files, then any other http(s) URL."""
    reject_floor = (config or app_settings.pipeline_config()).reject_floor
    return ContentRouter(
        [
            GitHubContentProvider(
                token=app_settings.github_token,
                api_url=app_settings.github_api_url,
                timeout=app_settings.http_timeout_seconds,
            ),
            FileContentProvider(),
            WebContentProvider(
                min_words=reject_floor,
                timeout=app_settings.http_timeout_seconds,
                user_agent=app_settings.user_agent,
            ),
        ]
    )


def build_question_store(app_settings: Settings) -> SQLiteQuestionStore:
    return SQLiteQuestionStore(db_path=app_settings.question_db_path)


# ---------------------------------------------------------------------------
# Pipeline assembly
# ---------------------------------------------------------------------------


def build_pipeline(
    app_settings: Settings,
    store: IQuestionStore | None = None,
    with_store: bool = True,
) -> IngestionPipeline:
    """Assemble a fully-wired :class:`IngestionPipeline`.

    The caller is responsible for awaiting ``store.initialize()`` before the
    first run when *store* is not supplied; :func:`build_question_store`
    returns a store that has not been initialised yet.
    """
    config = app_settings.pipeline_config()
    if with_store and store is None:
        store = build_question_store(app_settings)

    pipeline = IngestionPipeline(
        config=config,
        llm=build_llm_provider(app_settings),
        content_provider=build_content_provider(app_settings, config),
        store=store if with_store else None,
    )
    _logger.info(
        "pipeline_built",
        max_words=config.max_words,
        max_concurrent=config.max_concurrent,
        store=type(store).__name__ if with_store and store is not None else None,
    )
    return pipeline
