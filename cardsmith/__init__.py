"""cardsmith: turn long-form study documents into atomic flashcards."""

__version__ = "0.1.0"
