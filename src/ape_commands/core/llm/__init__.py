"""LLM collaborator used by the natural-language converter."""

from .client import CompletionClient, LangChainCompletionClient, create_completion_client

__all__ = ["CompletionClient", "LangChainCompletionClient", "create_completion_client"]
