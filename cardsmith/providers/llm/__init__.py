"""LLM provider adapters.

Three concrete implementations of ILLMProvider (cardsmith/interfaces/llm_provider.py):
    - OpenAILLMProvider    - gpt-4o-mini (also supports OpenAI-compatible APIs)
    - AnthropicLLMProvider - Claude Sonnet
    - OllamaLLMProvider    - local models via an Ollama server (llama3.1)

OpenAI and Ollama share ChatCompletionsProvider (chat_completions.py).
cardsmith.main.build_llm_provider() picks one from the configured keys.
"""

from cardsmith.providers.llm.anthropic_provider import AnthropicLLMProvider
from cardsmith.providers.llm.ollama_provider import OllamaLLMProvider
from cardsmith.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider", "OllamaLLMProvider"]
