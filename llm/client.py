import logging

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama.chat_models import ChatOllama

from config import config
from errors import ProviderError

logger = logging.getLogger(__name__)


class CompletionClient:
    """Single request/response completion against an Ollama server.

    No retries happen here; callers decide what a failure means.
    """

    def __init__(self, base_url: str = None, timeout: float = None):
        self.base_url = base_url or config.ollama.base_url
        self.timeout = timeout if timeout is not None else config.ollama.timeout

    def _chat_model(self, model: str, temperature: float, max_tokens: int) -> ChatOllama:
        return ChatOllama(
            base_url=self.base_url,
            model=model,
            temperature=temperature,
            num_predict=max_tokens,
            client_kwargs={"timeout": self.timeout},
        )

    def complete(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 2000,
    ) -> str:
        llm = self._chat_model(model, temperature, max_tokens)
        logger.debug(f"Requesting completion from {model} at {self.base_url}")
        try:
            response = llm.invoke([
                SystemMessage(content=system_prompt),
                HumanMessage(content=user_prompt),
            ])
        except Exception as e:
            raise ProviderError(f"Completion request to {model} failed: {e}") from e

        content = response.content
        if isinstance(content, list):
            content = "".join(
                part if isinstance(part, str) else part.get("text", "")
                for part in content
            )
        if not content or not content.strip():
            raise ProviderError(f"Unexpected response format from {model}: no message content")
        return content.strip()
