from __future__ import annotations

import logging
from typing import Optional

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from app.ai.config import AIConfig
from app.ai.types import ChatMessage, Completion

logger = logging.getLogger(__name__)

# Reported when the gateway could not be reached at all.
CONNECTION_FAILURE_STATUS = 503


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 0,
        response_format: str = "",
    ):
        self._model = model
        self._response_format = response_format
        key = (api_key or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=base_url,
            timeout=timeout_s,
            max_retries=max_retries,
        )

    @classmethod
    def from_config(cls, cfg: AIConfig) -> "OpenAIProvider":
        return cls(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
            max_retries=cfg.max_retries,
            response_format=cfg.response_format,
        )

    async def complete(
        self, system_prompt: str, user_prompt: str, temperature: float
    ) -> Completion:
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=user_prompt),
        ]
        create_kwargs = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
        }
        if self._response_format == "json":
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except APIStatusError as exc:
            logger.warning("openai_completion_failed model=%s status=%s: %s", self._model, exc.status_code, exc)
            return Completion(status_code=exc.status_code)
        except APIConnectionError as exc:
            logger.warning("openai_completion_unreachable model=%s: %s", self._model, exc)
            return Completion(status_code=CONNECTION_FAILURE_STATUS)

        content = response.choices[0].message.content if response.choices else None
        return Completion(text=content)
