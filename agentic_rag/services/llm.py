# =============================================================================
# Multi-Provider LLM Abstraction - Pluggable Completion Backend
# =============================================================================
#
# Provides a common interface for LLM completions, with concrete
# implementations for Anthropic (Claude) and OpenAI-compatible APIs
# (OpenAI, DeepSeek, Qwen, GLM, Ollama, and externally bound models).
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── AnthropicProvider        - Claude via native Anthropic SDK
#   │   └── complete()           - system prompt as top-level kwarg
#   ├── OpenAICompatibleProvider - Any OpenAI-compatible API
#   │   └── complete()           - system prompt as message role
#   ├── ProviderRegistry         - provider/model hint → LLMProvider
#   └── complete_text()          - timed single-turn helper used by agents
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from agentic_rag.config import Settings, settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """
    Standardised response from any LLM provider.

    Normalises the different response formats (Anthropic vs OpenAI)
    into a single structure that downstream code can consume.
    """

    content: str           # The generated text
    model: str             # Model identifier (e.g., "claude-sonnet-4-6")
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    """
    Protocol defining the LLM provider interface.

    Both Anthropic and OpenAI-compatible implementations provide
    the `complete()` method. Checked statically by mypy.
    """

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
                Roles: "user", "assistant" (no "system" - use the system param).
            system: System prompt for the LLM. Handled differently per provider:
                - Anthropic: top-level `system=` kwarg
                - OpenAI: prepended as {"role": "system", ...} message
            temperature: Override sampling temperature (default from config).
            max_tokens: Override max output tokens (default from config).

        Returns:
            LLMResponse with generated text and usage metrics.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """
    Anthropic Claude provider using the native SDK.

    KEY API DIFFERENCE: Anthropic takes system prompts as a top-level
    `system=` kwarg, NOT as a message with role "system".
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        config: Settings | None = None,
    ) -> None:
        from anthropic import AsyncAnthropic

        config = config or settings
        resolved_key = api_key or config.llm_api_key or config.anthropic_api_key
        if not resolved_key:
            raise ValueError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY in .env"
            )

        self._client = AsyncAnthropic(api_key=resolved_key)
        self._model = model or config.llm_model
        self._temperature = config.llm_temperature
        self._max_tokens = config.llm_max_tokens

        logger.info(
            "Initialized AnthropicProvider (model=%s)", self._model
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using Claude."""
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": (
                temperature if temperature is not None else self._temperature
            ),
        }

        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text
                break

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# ---------------------------------------------------------------------------
# Implementation 2: OpenAI-Compatible (OpenAI, DeepSeek, Qwen, Ollama, ...)
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    OpenAI-compatible provider for any API that speaks the OpenAI chat completions API.

    Switching providers is a config change:
        LLM_PROVIDER=openai_compatible
        LLM_BASE_URL=https://api.deepseek.com/v1
        LLM_API_KEY=your-key
        LLM_MODEL=deepseek-chat
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        config: Settings | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        config = config or settings
        resolved_key = api_key or config.llm_api_key or config.openai_api_key
        if not resolved_key:
            raise ValueError(
                "No API key configured for OpenAI-compatible provider. "
                "Set LLM_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key}
        resolved_base_url = base_url or config.llm_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model or config.llm_model
        self._temperature = config.llm_temperature
        self._max_tokens = config.llm_max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=all_messages,
            max_tokens=max_tokens or self._max_tokens,
            temperature=(
                temperature if temperature is not None else self._temperature
            ),
        )

        content = response.choices[0].message.content or ""

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=content,
            model=response.model or self._model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


# ---------------------------------------------------------------------------
# Provider IDs - "provider_type/model[@base_url]"
# ---------------------------------------------------------------------------


_KNOWN_PROVIDER_TYPES = {"anthropic", "openai_compatible"}


def _parse_provider_id(
    provider_id: str,
) -> tuple[str, str, str | None]:
    """
    Parse a provider_id string into (provider_type, model, base_url).

    Formats supported:
        "anthropic/claude-sonnet-4-6"
            → ("anthropic", "claude-sonnet-4-6", None)
        "openai_compatible/deepseek-chat@https://api.deepseek.com/v1"
            → ("openai_compatible", "deepseek-chat", "https://api.deepseek.com/v1")

    Raises:
        ValueError: If the format is unrecognisable or provider type unknown.
    """
    if "/" not in provider_id:
        raise ValueError(
            f"Invalid provider_id '{provider_id}'. "
            "Expected format: 'provider_type/model' or "
            "'provider_type/model@base_url'"
        )

    provider_type, rest = provider_id.split("/", 1)

    base_url: str | None = None
    if "@" in rest:
        model, base_url = rest.split("@", 1)
    else:
        model = rest

    if provider_type not in _KNOWN_PROVIDER_TYPES:
        raise ValueError(
            f"Unknown provider type '{provider_type}'. "
            f"Supported types: {sorted(_KNOWN_PROVIDER_TYPES)}"
        )

    return provider_type, model, base_url


# ---------------------------------------------------------------------------
# Provider Registry - request hint → provider
# ---------------------------------------------------------------------------
# Resolution order for (provider, model):
#   1. Externally bound model: provider == "external", or the model name is
#      a key of settings.external_models
#   2. "ollama" → OpenAI-compatible client against settings.ollama_base_url
#   3. "anthropic" / "openai_compatible" (alias "openai") → native provider
#   4. Anything else → unresolvable (None)
#
# A missing provider hint means settings.llm_provider. Built providers are
# cached per (type, model, base_url); SDK clients hold connection pools.
# ---------------------------------------------------------------------------

_PROVIDER_ALIASES = {"openai": "openai_compatible"}


class ProviderRegistry:
    """Maps request provider/model hints to completion providers."""

    def __init__(self, config: Settings | None = None) -> None:
        self._settings = config or settings
        self._cache: dict[tuple[str, str, str | None], LLMProvider] = {}

    def resolve(
        self,
        provider: str | None = None,
        model: str | None = None,
    ) -> LLMProvider | None:
        """
        Return the completion provider for a request, or None.

        None means nothing usable is configured for this provider/model
        (unknown provider, unbound external model, or missing API key).
        """
        provider_name = (provider or self._settings.llm_provider).strip().lower()
        provider_name = _PROVIDER_ALIASES.get(provider_name, provider_name)

        try:
            if model and (
                provider_name == "external"
                or model in self._settings.external_models
            ):
                provider_id = self._settings.external_models.get(model)
                if provider_id is None:
                    logger.warning("No external binding for model '%s'", model)
                    return None
                provider_type, bound_model, base_url = _parse_provider_id(
                    provider_id
                )
                return self._build(provider_type, bound_model, base_url)

            if provider_name == "ollama":
                return self._build(
                    "ollama",
                    model or self._settings.ollama_model,
                    self._settings.ollama_base_url,
                )

            if provider_name in _KNOWN_PROVIDER_TYPES:
                return self._build(
                    provider_name,
                    model or self._settings.llm_model,
                    self._settings.llm_base_url,
                )
        except ValueError as e:
            logger.warning(
                "Cannot build provider (provider=%s, model=%s): %s",
                provider_name, model, e,
            )
            return None

        logger.warning("Unknown LLM provider '%s'", provider_name)
        return None

    def _build(
        self,
        provider_type: str,
        model: str,
        base_url: str | None,
    ) -> LLMProvider:
        key = (provider_type, model, base_url)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        config = self._settings
        provider: LLMProvider
        if provider_type == "anthropic":
            provider = AnthropicProvider(model=model, config=config)
        elif provider_type == "ollama":
            # Ollama ignores the key, but the OpenAI SDK requires one
            provider = OpenAICompatibleProvider(
                api_key="ollama", model=model, base_url=base_url, config=config,
            )
        else:
            provider = OpenAICompatibleProvider(
                model=model, base_url=base_url, config=config,
            )

        self._cache[key] = provider
        return provider


# ---------------------------------------------------------------------------
# Single-Turn Helper
# ---------------------------------------------------------------------------


async def complete_text(
    llm: LLMProvider,
    system: str,
    user: str,
    timeout: float | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> str:
    """
    Run one system+user completion and return the text.

    Raises asyncio.TimeoutError when `timeout` elapses; provider errors
    propagate unchanged. Callers decide whether a failure is fatal.
    """
    response = await asyncio.wait_for(
        llm.complete(
            messages=[{"role": "user", "content": user}],
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
        ),
        timeout=timeout,
    )
    return response.content
