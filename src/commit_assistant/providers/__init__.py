"""Text-generation providers and their registry."""

import os
from typing import Dict, Mapping, Optional

from commit_assistant.providers.base import Provider
from commit_assistant.providers.claude import ClaudeProvider
from commit_assistant.providers.gemini import GeminiProvider
from commit_assistant.providers.openai_provider import OpenAIProvider


def build_providers(
    environ: Optional[Mapping[str, str]] = None,
    openai_model: Optional[str] = None,
    claude_model: Optional[str] = None,
    gemini_model: Optional[str] = None,
) -> Dict[str, Provider]:
    """Construct every provider whose credential is present.

    Returns:
        Mapping from provider name to provider
    """
    env = os.environ if environ is None else environ
    candidates = [
        OpenAIProvider(
            api_key=env.get("OPENAI_API_KEY"),
            model=openai_model,
            base_url=env.get("OPENAI_BASE_URL") or None,
        ),
        ClaudeProvider(api_key=env.get("ANTHROPIC_API_KEY"), model=claude_model),
        GeminiProvider(
            api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY"),
            model=gemini_model,
        ),
    ]
    return {provider.name: provider for provider in candidates if provider.is_available()}


__all__ = [
    "Provider",
    "OpenAIProvider",
    "ClaudeProvider",
    "GeminiProvider",
    "build_providers",
]
