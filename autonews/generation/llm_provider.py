"""LLM provider interface and implementations."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI
from rich.console import Console

from ..errors import GenerationError
from .models import GenerationStats

console = Console()


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Request a JSON object completion.

        Args:
            system_prompt: Instructions and output schema
            user_prompt: Task input
            max_tokens: Completion token budget
            temperature: Sampling temperature

        Returns:
            Raw response text, expected to be a JSON object
        """
        pass

    @abstractmethod
    def get_usage_stats(self) -> GenerationStats:
        """Get usage statistics."""
        pass


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    # Token cost estimates (per 1K tokens)
    COST_PER_1K_TOKENS = {
        "gpt-4o": {"input": 0.0025, "output": 0.01},
        "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
        "gpt-4.1-mini": {"input": 0.0004, "output": 0.0016},
    }

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        The SDK's own retries are disabled; ArticleGenerator owns the retry policy.

        Args:
            api_key: OpenAI API key
            model: Model name to use
            base_url: Custom base URL (for testing)
            timeout: Wall-clock budget per request in seconds
            client: Preconfigured client (for testing)
        """
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.model = model
        self.timeout = timeout
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.api_calls = 0

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Request a JSON object completion from the chat API."""
        self.api_calls += 1
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    response_format={"type": "json_object"},
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise GenerationError(
                f"[OpenAI] Request exceeded {self.timeout:.0f}s budget",
                transient=True,
            )

        if response.usage:
            self.prompt_tokens += response.usage.prompt_tokens or 0
            self.completion_tokens += response.usage.completion_tokens or 0

        if not response.choices:
            raise GenerationError("[OpenAI] No choices in response")

        content = response.choices[0].message.content
        if not content:
            raise GenerationError("[OpenAI] No response content from OpenAI")
        return content

    def get_usage_stats(self) -> GenerationStats:
        """Get usage statistics."""
        estimated_cost = 0.0
        rates = self.COST_PER_1K_TOKENS.get(self.model)
        if rates:
            estimated_cost = (
                (self.prompt_tokens / 1000) * rates["input"]
                + (self.completion_tokens / 1000) * rates["output"]
            )

        return GenerationStats(
            api_calls=self.api_calls,
            tokens_used=self.prompt_tokens + self.completion_tokens,
            cost_estimate=estimated_cost,
            model=self.model,
        )
