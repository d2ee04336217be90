from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.interfaces.llm_provider import ILLMProvider
from cardsmith.interfaces.question_store import IQuestionStore

__all__ = ["IContentProvider", "ILLMProvider", "IQuestionStore"]
