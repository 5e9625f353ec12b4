"""Abstract LLM provider with OpenAI and Anthropic adapters."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod

from echosphere.config import get_settings
from echosphere.errors import ConfigurationError


class LLMProvider(ABC):
    """Abstract interface for the text and vision calls the classifier makes."""

    @abstractmethod
    async def analyze_image(self, image: bytes, mime_type: str, prompt: str) -> str:
        """Send an image + prompt to the LLM, return text response."""
        ...

    @abstractmethod
    async def chat(self, prompt: str, max_tokens: int = 1024) -> str:
        """Text-only chat completion."""
        ...


def _encode_image(data: bytes) -> str:
    return base64.standard_b64encode(data).decode("utf-8")


class OpenAIProvider(LLMProvider):
    """OpenAI GPT-4o provider."""

    def __init__(self, api_key: str, model: str = "gpt-4o"):
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def analyze_image(self, image: bytes, mime_type: str, prompt: str) -> str:
        b64 = _encode_image(image)
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{b64}"}},
                ],
            }],
            max_tokens=1024,
        )
        return resp.choices[0].message.content or ""

    async def chat(self, prompt: str, max_tokens: int = 1024) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
        )
        return resp.choices[0].message.content or ""


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        from anthropic import AsyncAnthropic
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model

    async def analyze_image(self, image: bytes, mime_type: str, prompt: str) -> str:
        b64 = _encode_image(image)
        resp = await self.client.messages.create(
            model=self.model,
            max_tokens=1024,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image", "source": {"type": "base64", "media_type": mime_type, "data": b64}},
                    {"type": "text", "text": prompt},
                ],
            }],
        )
        return resp.content[0].text

    async def chat(self, prompt: str, max_tokens: int = 1024) -> str:
        resp = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": [{"type": "text", "text": prompt}]}],
        )
        return resp.content[0].text


def get_llm_provider() -> LLMProvider:
    """Factory: returns OpenAI provider if key available, else Anthropic."""
    ai = get_settings().ai
    if ai.openai_api_key:
        return OpenAIProvider(ai.openai_api_key, ai.openai_model)
    if ai.anthropic_api_key:
        return AnthropicProvider(ai.anthropic_api_key, ai.anthropic_model)
    raise ConfigurationError(
        "AI classification is not configured. Set OPENAI_API_KEY or ANTHROPIC_API_KEY."
    )
