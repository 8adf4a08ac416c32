"""Builds the provider used for item, check-in and intention extraction."""

import os
from dataclasses import dataclass

from .base import LLMError, LLMProvider


@dataclass(frozen=True)
class _ProviderSpec:
    env_key: str
    key_prefix: str
    cheap_model: str


# Detection order: OpenAI first, extraction prompts were tuned against gpt-4o-mini.
# "sk-ant-" must be checked before the bare "sk-" prefix, which this order gives.
_PROVIDERS = {
    "claude": _ProviderSpec("ANTHROPIC_API_KEY", "sk-ant-", "claude-3-5-haiku-latest"),
    "openai": _ProviderSpec("OPENAI_API_KEY", "sk-", "gpt-4o-mini"),
}
_AUTO_DETECT_ORDER = ["openai", "claude"]


def create_cheap_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
) -> LLMProvider:
    """Provider pinned to the cheap model unless one is given."""
    name = _resolve(provider, api_key)
    spec = _PROVIDERS.get(name)
    return create_llm_provider(
        provider=name,
        api_key=api_key,
        model=model or (spec.cheap_model if spec else None),
        client=client,
    )


def create_llm_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
) -> LLMProvider:
    """Create an LLM provider instance.

    Args:
        provider: "openai", "claude", "auto", or None (auto-detect)
        api_key: Explicit API key (overrides env var)
        model: Model name (None = provider default)
        client: Pre-built SDK client, used by tests
    """
    name = _resolve(provider, api_key)
    spec = _PROVIDERS.get(name)
    if spec is None:
        raise LLMError(f"Unknown provider: {name}. Use: {', '.join(_AUTO_DETECT_ORDER)}")

    if not api_key and not client:
        api_key = os.getenv(spec.env_key)

    if name == "openai":
        from .providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model, client=client)

    from .providers.claude import ClaudeProvider

    return ClaudeProvider(api_key=api_key, model=model, client=client)


def provider_from_config(llm_config) -> LLMProvider:
    """Build the extraction provider from an ``LLMConfig`` section."""
    return create_cheap_provider(
        provider=llm_config.provider,
        api_key=llm_config.api_key or None,
        model=llm_config.model,
    )


def _resolve(provider: str | None, api_key: str | None) -> str:
    if provider and provider != "auto":
        return provider
    return _auto_detect_provider(api_key)


def _auto_detect_provider(api_key: str | None = None) -> str:
    """Explicit key prefix first, then whichever env var is set."""
    if api_key:
        for name, spec in _PROVIDERS.items():
            if api_key.startswith(spec.key_prefix):
                return name

    for name in _AUTO_DETECT_ORDER:
        if os.getenv(_PROVIDERS[name].env_key):
            return name
    names = ", ".join(_PROVIDERS[n].env_key for n in _AUTO_DETECT_ORDER)
    raise LLMError(f"No LLM API key found. Set one of: {names}")
