"""
LLM client abstraction supporting Gemini, OpenAI and Anthropic.
Provides a single async text completion with fixed sampling parameters.
"""

from typing import Optional, Dict, Any
from enum import Enum

import httpx
from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

from edulog.shared.config import settings
from edulog.shared.exceptions import EduLogError


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMError(EduLogError):
    """Base error for LLM operations."""
    pass


class LLMClient:
    """Unified LLM client supporting multiple providers."""

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        max_tokens: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.provider = provider or settings.llm.provider
        self.model = model or settings.llm.model
        self.temperature = temperature if temperature is not None else settings.llm.temperature
        self.top_p = top_p if top_p is not None else settings.llm.top_p
        self.max_tokens = max_tokens or settings.llm.max_output_tokens

        if self.provider == LLMProvider.GEMINI:
            self.api_key = api_key or settings.llm.gemini_api_key
            if not self.api_key:
                raise LLMError("Gemini API key not configured")
            self.base_url = f"{settings.llm.gemini_base_url}/{self.model}:generateContent"
            self.client = http_client or httpx.AsyncClient(timeout=settings.http.timeout)
        elif self.provider == LLMProvider.OPENAI:
            self.api_key = api_key or settings.llm.openai_api_key
            if not self.api_key:
                raise LLMError("OpenAI API key not configured")
            self.client = AsyncOpenAI(api_key=self.api_key)
        elif self.provider == LLMProvider.ANTHROPIC:
            self.api_key = api_key or settings.llm.anthropic_api_key
            if not self.api_key:
                raise LLMError("Anthropic API key not configured")
            self.client = AsyncAnthropic(api_key=self.api_key)
        else:
            raise LLMError(f"Unsupported provider: {self.provider}")

    async def get_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Get text completion from LLM.

        Args:
            prompt: User prompt
            system_prompt: Optional system instruction
            model: Override default model
            temperature: Override default temperature
            top_p: Override default nucleus cutoff
            max_tokens: Override default output bound

        Returns:
            Completion text, empty string when the provider returned none
        """
        params = {
            "model": model or self.model,
            "temperature": temperature if temperature is not None else self.temperature,
            "top_p": top_p if top_p is not None else self.top_p,
            "max_tokens": max_tokens or self.max_tokens,
        }

        try:
            if self.provider == LLMProvider.GEMINI:
                return await self._gemini_completion(prompt, system_prompt, **params)
            elif self.provider == LLMProvider.OPENAI:
                return await self._openai_completion(prompt, system_prompt, **params)
            elif self.provider == LLMProvider.ANTHROPIC:
                return await self._anthropic_completion(prompt, system_prompt, **params)
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"LLM completion failed: {str(e)}") from e
        raise LLMError(f"Unsupported provider: {self.provider}")

    async def _gemini_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        top_p: float,
        max_tokens: int
    ) -> str:
        """Gemini Generative Language REST completion."""
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "topP": top_p,
                "maxOutputTokens": max_tokens,
            },
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        url = self.base_url
        if model != self.model:
            url = f"{settings.llm.gemini_base_url}/{model}:generateContent"

        response = await self.client.post(url, params={"key": self.api_key}, json=payload)
        if response.is_error:
            raise LLMError(self._gemini_error_message(response))

        data = response.json()
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    def _gemini_error_message(self, response: httpx.Response) -> str:
        """Pull the provider's error message out of a failed Gemini response."""
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = response.text[:200]
        return f"Gemini request failed ({response.status_code}): {message}"

    async def _openai_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        top_p: float,
        max_tokens: int
    ) -> str:
        """OpenAI-specific completion."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            top_p=top_p,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""

    async def _anthropic_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        top_p: float,
        max_tokens: int
    ) -> str:
        """Anthropic-specific completion."""
        # Anthropic uses system parameter, not system message
        completion_kwargs = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "top_p": top_p,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            completion_kwargs["system"] = system_prompt

        response = await self.client.messages.create(**completion_kwargs)
        if not response.content:
            return ""
        return response.content[0].text

    async def aclose(self):
        """Release the underlying HTTP client."""
        close = getattr(self.client, "aclose", None) or getattr(self.client, "close", None)
        if close is not None:
            await close()
