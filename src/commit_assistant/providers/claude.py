"""Claude (Anthropic) provider."""

from typing import List, Optional

from commit_assistant.errors import ProviderError
from commit_assistant.providers.base import SYSTEM_PROMPT, Provider, clean_candidate


class ClaudeProvider(Provider):
    """Claude API backend. Requires ANTHROPIC_API_KEY."""

    name = "claude"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    MAX_TOKENS = 1000
    TEMPERATURE = 0.4

    def __init__(self, api_key: Optional[str], model: Optional[str] = None):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self._client = None

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def ask(self, prompt: str) -> List[str]:
        from anthropic import APIError

        if not self.is_available():
            raise ProviderError("claude provider is not configured")

        try:
            response = await self._get_client().messages.create(
                model=self.model,
                max_tokens=self.MAX_TOKENS,
                temperature=self.TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise ProviderError(f"Claude API error: {e.message}") from e

        return [clean_candidate(block.text) for block in response.content if block.type == "text"]
