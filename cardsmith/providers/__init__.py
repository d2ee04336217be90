"""Adapters for the pipeline's external collaborators (LLM, content, storage)."""
