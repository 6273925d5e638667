from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from openai import APIConnectionError, APIStatusError, OpenAI

from jobscribe.config import Settings
from jobscribe.errors import ProviderError

logger = logging.getLogger(__name__)

_OPENAI_KEY_PATTERN = re.compile(r"^sk-")


class GenerationProvider(Protocol):
    name: str

    def validate_credential(self, key: str | None) -> bool: ...

    async def generate(
        self,
        *,
        system_instructions: str,
        user_prompt: str,
        credential: str,
        model: str,
    ) -> str: ...


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    timeout_sec: int
    temperature: float = 0.7


class ChatCompletionsProvider:
    """Any endpoint that speaks the OpenAI chat.completions protocol."""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.name = config.name

    def validate_credential(self, key: str | None) -> bool:
        return bool(key and key.strip())

    def client_for(self, credential: str) -> Any:
        return OpenAI(
            base_url=self.config.base_url,
            api_key=credential,
            timeout=float(self.config.timeout_sec),
        )

    async def generate(
        self,
        *,
        system_instructions: str,
        user_prompt: str,
        credential: str,
        model: str,
    ) -> str:
        client = self.client_for(credential)
        try:
            response = await asyncio.to_thread(
                client.chat.completions.create,
                model=model,
                messages=[
                    {"role": "system", "content": system_instructions},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.config.temperature,
            )
        except APIStatusError as exc:
            logger.warning("Generation failed provider=%s status=%s", self.name, exc.status_code)
            raise ProviderError(str(exc), http_status=exc.status_code) from exc
        except APIConnectionError as exc:
            logger.warning("Generation endpoint unreachable provider=%s: %s", self.name, exc)
            raise ProviderError(str(exc)) from exc

        return self._extract_chat_text(response)

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)


class OpenAIProvider(ChatCompletionsProvider):
    def validate_credential(self, key: str | None) -> bool:
        return bool(key and _OPENAI_KEY_PATTERN.match(key.strip()))


class LocalProvider(ChatCompletionsProvider):
    pass


def build_provider(settings: Settings) -> GenerationProvider:
    if settings.generation_provider == "local":
        return LocalProvider(
            ProviderConfig(
                name="local",
                base_url=settings.local_llm_base_url,
                timeout_sec=settings.local_llm_timeout_sec,
                temperature=settings.generation_temperature,
            )
        )
    return OpenAIProvider(
        ProviderConfig(
            name="openai",
            base_url=settings.openai_base_url,
            timeout_sec=settings.openai_timeout_sec,
            temperature=settings.generation_temperature,
        )
    )
