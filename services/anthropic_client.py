"""Anthropic API client wrapper with streaming support."""

from typing import AsyncGenerator, Optional, List, Dict, Any
import anthropic

from config import (
    MODELS, DEFAULT_MODEL, REVIEW_TEMPERATURE, REVIEW_TOP_K, REVIEW_TOP_P, REVIEW_MAX_TOKENS,
)
from services.errors import ProviderError, UnauthorizedError


class AnthropicClient:
    """Wrapper for Anthropic API with streaming support.

    One instance is bound to one API key. Close it when it is no longer used.
    """

    def __init__(self, api_key: Optional[str]):
        if not api_key:
            raise UnauthorizedError()
        # Use AsyncAnthropic for true async streaming
        self.client = anthropic.AsyncAnthropic(api_key=api_key)

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self.client.close()

    @staticmethod
    def build_params(
        messages: List[Dict[str, Any]],
        model: str = DEFAULT_MODEL,
        system_prompt: Optional[str] = None,
        temperature: float = REVIEW_TEMPERATURE,
        max_tokens: int = REVIEW_MAX_TOKENS,
        top_p: Optional[float] = REVIEW_TOP_P,
        top_k: Optional[int] = REVIEW_TOP_K,
    ) -> Dict[str, Any]:
        """Request parameters for ``messages.stream``."""
        model_config = MODELS.get(model)
        if model_config:
            max_tokens = min(max_tokens, model_config.max_tokens)

        params: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
            "temperature": temperature,
        }
        if system_prompt:
            params["system"] = system_prompt
        if top_p is not None and top_p < 1.0:
            params["top_p"] = top_p
        if top_k is not None and top_k > 0:
            params["top_k"] = top_k
        return params

    async def stream_text(
        self,
        messages: List[Dict[str, Any]],
        model: str = DEFAULT_MODEL,
        system_prompt: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        """
        Stream a review from the Anthropic API as text deltas.

        Raises:
            ProviderError: on any API or transport failure, before or during the stream
        """
        params = self.build_params(messages, model=model, system_prompt=system_prompt)

        try:
            async with self.client.messages.stream(**params) as stream:
                async for event in stream:
                    if getattr(event, "type", None) != "content_block_delta":
                        continue
                    delta = getattr(event, "delta", None)
                    if getattr(delta, "type", None) != "text_delta":
                        continue
                    text = getattr(delta, "text", None)
                    if not isinstance(text, str):
                        print(f"[STREAM] Skipping unrenderable delta: {delta!r}")
                        continue
                    yield text
        except anthropic.APIStatusError as e:
            raise ProviderError("Anthropic API error", status=e.status_code, body=_error_message(e))
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic API error: {e}")

    @staticmethod
    def get_available_models() -> List[Dict[str, Any]]:
        """Return list of available models with their configurations."""
        return [
            {
                "id": model.id,
                "name": model.name,
                "max_tokens": model.max_tokens,
                "description": model.description
            }
            for model in MODELS.values()
        ]


def _error_message(error: "anthropic.APIStatusError") -> str:
    body = error.body
    if isinstance(body, dict):
        detail = body.get("error")
        if isinstance(detail, dict) and detail.get("message"):
            return detail["message"]
    return error.message
