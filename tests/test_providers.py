"""Tests for the provider adapters and registry."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from commit_assistant.errors import ProviderError
from commit_assistant.providers import (
    ClaudeProvider,
    GeminiProvider,
    OpenAIProvider,
    build_providers,
)
from commit_assistant.providers.base import SYSTEM_PROMPT, clean_candidate


class TestCleanCandidate:
    """Tests for output cleanup."""

    def test_plain(self):
        assert clean_candidate("  feat: x \n") == "feat: x"

    def test_none(self):
        assert clean_candidate(None) == ""

    def test_fenced_with_language(self):
        assert clean_candidate("```text\nfeat: add x\n```") == "feat: add x"

    def test_fenced_without_language(self):
        assert clean_candidate("```\nfix: y\n\n- body\n```") == "fix: y\n\n- body"


class TestBuildProviders:
    """Tests for environment-driven registration."""

    def test_none_configured(self):
        assert build_providers(environ={}) == {}

    def test_all_configured(self):
        providers = build_providers(environ={
            "OPENAI_API_KEY": "sk-1",
            "ANTHROPIC_API_KEY": "sk-2",
            "GEMINI_API_KEY": "g-3",
        })

        assert set(providers) == {"openai", "claude", "gemini"}

    def test_google_api_key_fallback(self):
        providers = build_providers(environ={"GOOGLE_API_KEY": "g"})

        assert list(providers) == ["gemini"]

    def test_model_overrides(self):
        providers = build_providers(
            environ={"OPENAI_API_KEY": "sk", "ANTHROPIC_API_KEY": "sk"},
            openai_model="gpt-4.1",
            claude_model="claude-custom",
        )

        assert providers["openai"].model == "gpt-4.1"
        assert providers["claude"].model == "claude-custom"


class TestOpenAIProvider:
    """Tests for the OpenAI adapter with a mocked client."""

    def test_ask(self):
        provider = OpenAIProvider(api_key="sk", model="gpt-test")
        client = MagicMock()
        choice = SimpleNamespace(message=SimpleNamespace(content="```\nfeat: add x\n```"))
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[choice]))
        provider._client = client

        assert asyncio.run(provider.ask("prompt")) == ["feat: add x"]
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert kwargs["messages"][1] == {"role": "user", "content": "prompt"}

    def test_api_error(self):
        from openai import OpenAIError

        provider = OpenAIProvider(api_key="sk")
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
        provider._client = client

        with pytest.raises(ProviderError, match="rate limited"):
            asyncio.run(provider.ask("prompt"))

    def test_not_configured(self):
        with pytest.raises(ProviderError):
            asyncio.run(OpenAIProvider(api_key=None).ask("prompt"))

    def test_client_created_lazily_with_base_url(self):
        provider = OpenAIProvider(api_key="sk", base_url="http://localhost:11434/v1")

        assert provider._client is None
        with patch("openai.AsyncOpenAI") as client_cls:
            client = provider._get_client()

        client_cls.assert_called_once_with(api_key="sk", base_url="http://localhost:11434/v1")
        assert provider._get_client() is client
        assert provider.model == OpenAIProvider.DEFAULT_MODEL


class TestClaudeProvider:
    """Tests for the Claude adapter with a mocked client."""

    def test_ask_keeps_text_blocks(self):
        provider = ClaudeProvider(api_key="sk")
        client = MagicMock()
        content = [
            SimpleNamespace(type="text", text="fix: handle empty input"),
            SimpleNamespace(type="tool_use", text=""),
        ]
        client.messages.create = AsyncMock(return_value=SimpleNamespace(content=content))
        provider._client = client

        assert asyncio.run(provider.ask("prompt")) == ["fix: handle empty input"]
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["model"] == ClaudeProvider.DEFAULT_MODEL

    def test_not_configured(self):
        assert ClaudeProvider(api_key="").is_available() is False
        with pytest.raises(ProviderError):
            asyncio.run(ClaudeProvider(api_key="").ask("prompt"))


class TestGeminiProvider:
    """Tests for the Gemini adapter with a mocked client."""

    def _provider(self, text):
        provider = GeminiProvider(api_key="g")
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=text))
        provider._client = client
        return provider, client

    def test_ask(self):
        provider, client = self._provider("docs: update readme")

        assert asyncio.run(provider.ask("prompt")) == ["docs: update readme"]
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["contents"] == "prompt"
        assert kwargs["model"] == GeminiProvider.DEFAULT_MODEL

    def test_empty_response(self):
        provider, _ = self._provider(None)

        with pytest.raises(ProviderError, match="empty response"):
            asyncio.run(provider.ask("prompt"))
