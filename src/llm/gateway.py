"""Thin async wrapper around LiteLLM for LLM completions."""

import logging
from typing import Any

import litellm
from pydantic import BaseModel

from config.settings import settings

logger = logging.getLogger(__name__)


class CompletionResult(BaseModel):
    """Result from an LLM completion."""

    content: str | None = None
    raw_message: Any = None
    model: str = ""


class LLMGateway:
    """Async LLM completion via LiteLLM."""

    def __init__(self, model: str | None = None) -> None:
        self.model = model or settings.llm_default_model

    async def complete(
        self,
        messages: list[dict[str, Any]],
        json_mode: bool = False,
    ) -> CompletionResult:
        """Send messages to the LLM and return the response.

        Args:
            messages: OpenAI-format message list (system/user/assistant).
            json_mode: Ask the provider for a single JSON object reply.

        Returns:
            CompletionResult with content and the raw message.
        """
        logger.info("Calling LLM model=%s json_mode=%s", self.model, json_mode)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.0,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if settings.gemini_api_key:
            kwargs["api_key"] = settings.gemini_api_key

        response = await litellm.acompletion(**kwargs)
        message = response.choices[0].message

        return CompletionResult(
            content=message.content,
            raw_message=message,
            model=response.model or self.model,
        )
