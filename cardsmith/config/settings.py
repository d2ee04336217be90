"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, in priority order:

  1. **Environment variables** - e.g. ``OPENAI_API_KEY=sk-abc123``
  2. **.env file** - key=value lines in the project root ``.env`` file

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``; pipeline
tunables use a ``PIPELINE_`` prefix (``PIPELINE_MAX_WORDS=600``).
Defaults apply when neither source sets a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from cardsmith.models.pipeline import DedupeKey, PipelineConfig


class Settings(BaseSettings):
    """cardsmith application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM Providers ===
    # Empty string = "not configured"; build_llm_provider() skips it.
    llm_provider: str = ""  # "openai" | "anthropic" | "ollama"; empty = first available
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_text_model: str = ""  # Defaults to gpt-4o-mini
    anthropic_api_key: str = ""
    anthropic_model: str = ""  # Defaults to claude-sonnet-4-20250514
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = ""  # Defaults to llama3.1

    # === Content Acquisition ===
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    http_timeout_seconds: float = 30.0
    user_agent: str = "cardsmith/0.1 (+https://github.com/cardsmith)"

    # === Persistence / Sources ===
    question_db_path: str = "data/questions.db"
    sources_path: str = "config/sources.yaml"

    # === Pipeline tunables ===
    pipeline_max_words: int = 750
    pipeline_min_words: int = 50
    pipeline_reject_floor: int = 50
    pipeline_single_pass_ceiling: int = 3000
    pipeline_max_concurrent: int = 3
    pipeline_extraction_timeout: float = 60.0
    pipeline_dedupe_key: DedupeKey = DedupeKey.NORMALIZED
    pipeline_prefer_longer_answer: bool = False
    pipeline_detect_prewritten_for_all: bool = False
    pipeline_use_ai_classification: bool = True

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def pipeline_config(self) -> PipelineConfig:
        """Build the frozen :class:`PipelineConfig` handed to the coordinator.

        A non-positive ``pipeline_extraction_timeout`` disables the timeout.
        """
        timeout = self.pipeline_extraction_timeout
        return PipelineConfig(
            max_words=self.pipeline_max_words,
            min_words=self.pipeline_min_words,
            reject_floor=self.pipeline_reject_floor,
            single_pass_ceiling=self.pipeline_single_pass_ceiling,
            max_concurrent=self.pipeline_max_concurrent,
            extraction_timeout=timeout if timeout > 0 else None,
            dedupe_key=self.pipeline_dedupe_key,
            prefer_longer_answer=self.pipeline_prefer_longer_answer,
            detect_prewritten_for_all=self.pipeline_detect_prewritten_for_all,
            use_ai_classification=self.pipeline_use_ai_classification,
        )

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that are configured, in fallback order."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
