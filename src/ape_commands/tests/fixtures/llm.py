"""Language model doubles."""

from langchain_core.language_models import FakeListLLM

from ape_commands.core.llm.client import LangChainCompletionClient


def make_llm(*responses: str) -> LangChainCompletionClient:
    """A completion client that replays canned replies in order."""
    return LangChainCompletionClient(FakeListLLM(responses=list(responses)))
