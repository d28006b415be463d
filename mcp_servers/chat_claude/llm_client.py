# =============================================================================
# AGENT-OS TOOLKIT - LLM CLIENT
# =============================================================================
"""
LLM Client Module

Unified interface over the LLM providers Chat Claude can run on
(Anthropic by default, OpenAI as an alternative). It handles:
1. Provider selection based on configuration
2. API key management
3. Request/response formatting
4. Token accounting

Usage:
    client = LLMClient()
    response = client.complete(
        prompt="Compare OAuth providers...",
        system="You are a research assistant.",
        max_tokens=8096
    )
"""

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import anthropic
import openai


logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class LLMResponse:
    """
    Standardized response from LLM.

    Attributes:
        content: Generated text content
        model: Model used for generation
        tokens_input: Input tokens used
        tokens_output: Output tokens generated
        finish_reason: Why generation stopped (end_turn, max_tokens, ...)
        raw_response: Original response from provider
    """
    content: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[Dict[str, Any]] = None

    @property
    def total_tokens(self) -> int:
        """Total tokens used."""
        return self.tokens_input + self.tokens_output


@dataclass
class LLMMessage:
    """A message in a conversation (system, user, assistant)."""
    role: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


# =============================================================================
# BASE LLM PROVIDER
# =============================================================================

class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Each provider (Anthropic, OpenAI) implements this interface.
    """

    @abstractmethod
    def complete(
        self,
        messages: List[LLMMessage],
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: Conversation messages
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Provider-specific options

        Returns:
            LLMResponse with generated content
        """
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the model name being used."""
        pass


# =============================================================================
# ANTHROPIC PROVIDER
# =============================================================================

class AnthropicProvider(BaseLLMProvider):
    """
    Anthropic Claude API provider.
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        base_url: str = None,
        max_retries: int = 2,
    ):
        """
        Initialize Anthropic provider.

        Args:
            api_key: API key (default: from ANTHROPIC_API_KEY env)
            model: Model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom base URL
            max_retries: SDK-level retries for transient API errors
        """
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model or os.environ.get("LLM_MODEL", self.DEFAULT_MODEL)
        self.base_url = base_url

        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY is required")

        self.client = anthropic.Anthropic(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=max_retries,
        )

    def complete(
        self,
        messages: List[LLMMessage],
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> LLMResponse:
        """Generate completion using Claude."""
        system = None
        conversation = []

        for msg in messages:
            if msg.role == "system":
                system = msg.content
            else:
                conversation.append(msg.to_dict())

        create_kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": conversation
        }
        if system:
            create_kwargs["system"] = system

        response = self.client.messages.create(**create_kwargs)

        # Responses can hold several text blocks (and non-text blocks)
        content = "\n\n".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )

        return LLMResponse(
            content=content,
            model=response.model,
            tokens_input=response.usage.input_tokens,
            tokens_output=response.usage.output_tokens,
            finish_reason=response.stop_reason or "stop",
            raw_response=response.model_dump() if hasattr(response, "model_dump") else None
        )

    def get_model_name(self) -> str:
        return self.model


# =============================================================================
# OPENAI PROVIDER
# =============================================================================

class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI GPT API provider.
    """

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        base_url: str = None,
        max_retries: int = 2,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: API key (default: from OPENAI_API_KEY env)
            model: Model to use (default: gpt-4o)
            base_url: Optional custom base URL (for Azure, etc.)
            max_retries: SDK-level retries for transient API errors
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model or os.environ.get("LLM_MODEL", self.DEFAULT_MODEL)
        self.base_url = base_url

        if not self.api_key:
            raise ValueError("OPENAI_API_KEY is required")

        self.client = openai.OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=max_retries,
        )

    def complete(
        self,
        messages: List[LLMMessage],
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> LLMResponse:
        """Generate completion using GPT."""
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[msg.to_dict() for msg in messages],
            max_tokens=max_tokens,
            temperature=temperature,
            **kwargs
        )

        choice = response.choices[0]
        content = choice.message.content or ""

        return LLMResponse(
            content=content,
            model=response.model,
            tokens_input=response.usage.prompt_tokens if response.usage else 0,
            tokens_output=response.usage.completion_tokens if response.usage else 0,
            finish_reason=choice.finish_reason or "stop",
            raw_response=response.model_dump() if hasattr(response, "model_dump") else None
        )

    def get_model_name(self) -> str:
        return self.model


# =============================================================================
# LLM CLIENT (MAIN INTERFACE)
# =============================================================================

class LLMClient:
    """
    Unified LLM client that abstracts provider differences.

    Usage:
        client = LLMClient()

        response = client.complete(
            prompt="Write the onboarding guide",
            system="You are a technical writer"
        )
    """

    PROVIDERS = {
        "anthropic": AnthropicProvider,
        "openai": OpenAIProvider,
    }

    def __init__(
        self,
        provider: str = None,
        model: str = None,
        api_key: str = None,
        **kwargs
    ):
        """
        Initialize LLM client.

        Args:
            provider: Provider name (anthropic, openai)
            model: Model to use (provider-specific)
            api_key: API key for provider
            **kwargs: Additional provider-specific options
        """
        self.provider_name = provider or os.environ.get("LLM_PROVIDER", "anthropic")

        provider_class = self.PROVIDERS.get(self.provider_name.lower())
        if not provider_class:
            raise ValueError(f"Unknown LLM provider: {self.provider_name}")

        init_kwargs = {**kwargs}
        if model:
            init_kwargs["model"] = model
        if api_key:
            init_kwargs["api_key"] = api_key

        self._init_state(provider_class(**init_kwargs))

    @classmethod
    def with_provider(cls, provider: BaseLLMProvider, name: str = "custom") -> "LLMClient":
        """Wrap an already constructed provider."""
        client = cls.__new__(cls)
        client.provider_name = name
        client._init_state(provider)
        return client

    def _init_state(self, provider: BaseLLMProvider) -> None:
        self._provider = provider
        self._total_tokens_input = 0
        self._total_tokens_output = 0
        self._call_count = 0

    def complete(
        self,
        prompt: str,
        system: str = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a simple completion.

        Args:
            prompt: User prompt
            system: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Provider-specific options

        Returns:
            LLMResponse with generated content
        """
        messages = []
        if system:
            messages.append(LLMMessage("system", system))
        messages.append(LLMMessage("user", prompt))

        return self.chat(messages, max_tokens, temperature, **kwargs)

    def chat(
        self,
        messages: List[LLMMessage],
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> LLMResponse:
        """Generate a chat completion from a conversation history."""
        start_time = time.time()

        try:
            response = self._provider.complete(
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs
            )
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            raise

        self._call_count += 1
        self._total_tokens_input += response.tokens_input
        self._total_tokens_output += response.tokens_output

        duration = time.time() - start_time
        logger.debug(
            f"LLM call completed: {response.tokens_input}+{response.tokens_output} "
            f"tokens in {duration:.2f}s"
        )
        return response

    def get_model(self) -> str:
        """Get the current model name."""
        return self._provider.get_model_name()

    def get_metrics(self) -> Dict[str, Any]:
        """Get accumulated metrics."""
        return {
            "call_count": self._call_count,
            "total_tokens_input": self._total_tokens_input,
            "total_tokens_output": self._total_tokens_output,
            "total_tokens": self._total_tokens_input + self._total_tokens_output,
            "provider": self.provider_name,
            "model": self.get_model()
        }
