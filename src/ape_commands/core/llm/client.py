"""
The single "complete text, return text" capability the converter needs.

Transport is the model object's business; this module only adapts a
langchain-core language model to ``CompletionClient``.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from langchain_core.language_models.base import BaseLanguageModel
from langchain_core.messages import BaseMessage

from ...config.models import LLMConfig, Provider
from ...utils.error_handling import ConfigurationError, handle_provider_operation
from ...utils.logging import get_logger


@runtime_checkable
class CompletionClient(Protocol):
    """Send a prompt, await the full reply text."""

    async def complete(self, prompt: str) -> str:
        ...


class LangChainCompletionClient:
    """``CompletionClient`` backed by any langchain-core language model.

    Chat models return messages and plain LLMs return strings; both are
    reduced to text.
    """

    def __init__(self, model: BaseLanguageModel):
        self.model = model
        self.logger = get_logger(__name__)

    @handle_provider_operation("llm_completion")
    async def complete(self, prompt: str) -> str:
        self.logger.debug(f"Sending prompt ({len(prompt)} chars) to {type(self.model).__name__}")
        response = await self.model.ainvoke(prompt)
        return _response_text(response)


def _response_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    if isinstance(response, BaseMessage):
        content = response.content
        if isinstance(content, list):
            return "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return str(content)
    return str(response)


def create_completion_client(config: LLMConfig) -> Optional[LangChainCompletionClient]:
    """
    Build the configured completion client.

    Returns:
        ``None`` when the provider is ``none`` (heuristics only)

    Raises:
        ConfigurationError: If the provider's integration is not installed
    """
    if config.provider == Provider.NONE:
        return None

    if config.provider == Provider.OLLAMA:
        try:
            from langchain_community.llms import Ollama
        except ImportError as e:
            raise ConfigurationError(
                "The ollama provider requires langchain-community",
                details={"provider": config.provider.value}
            ) from e

        model = Ollama(
            model=config.model,
            base_url=config.base_url,
            temperature=config.temperature,
        )
        return LangChainCompletionClient(model)

    raise ConfigurationError(f"Unsupported LLM provider: {config.provider.value}")
