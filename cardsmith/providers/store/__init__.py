from cardsmith.providers.store.sqlite_question_store import SQLiteQuestionStore, question_id

__all__ = ["SQLiteQuestionStore", "question_id"]
