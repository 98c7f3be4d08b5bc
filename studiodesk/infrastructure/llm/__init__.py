"""
LLM Client Infrastructure
==========================

Wrapper for the OpenAI chat completions API providing a clean interface
for the routing classifier.

The routing layer depends on the ILLMClient abstraction, not on the
OpenAI SDK directly.
"""

import json
import time
from typing import List, Optional
from abc import ABC, abstractmethod

from openai import AsyncOpenAI

from studiodesk.config import settings
from studiodesk.core import LLMException, ConfigurationException


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Only the operation the routing engine needs is defined.
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 500,
        json_mode: bool = False,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation for GPT models.

    Provides async wrapper around OpenAI SDK operations.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(api_key=self._api_key)
        self._model = model or settings.llm_model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 500,
        json_mode: bool = False,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion using OpenAI GPT.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens to generate
            json_mode: Request a JSON object response
            operation: Operation name, used only for error context

        Returns:
            ChatCompletionResult with generated text

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        request = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request)
        except Exception as e:
            raise LLMException(
                f"Chat completion failed: {str(e)}",
                details={"operation": operation, "model": self._model}
            )

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        if not response.choices or response.choices[0].message.content is None:
            raise LLMException("Chat completion returned no content", details={"operation": operation})

        usage = response.usage
        return ChatCompletionResult(
            content=response.choices[0].message.content,
            model=response.model or self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local development and testing.

    Returns a predictable routing decision without calling external APIs.
    """

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 500,
        json_mode: bool = False,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Return a canned routing decision."""
        content = json.dumps({
            "department": "Client Success",
            "priority": "medium",
            "suggestedTags": ["mock"],
            "needsEscalation": False,
            "escalationReason": None,
            "routingConfidence": 0.8,
            "analysis": "Mock: routed to Client Success for follow-up."
        })

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=100
        )


def create_llm_client() -> Optional[ILLMClient]:
    """
    Build the configured LLM client.

    Returns None when no API key is configured and mocking is off; the
    routing engine then always produces its fallback decision.
    """
    if settings.mock_llm:
        return MockLLMClient()
    if not settings.openai_api_key:
        return None
    return OpenAILLMClient(settings.openai_api_key)
