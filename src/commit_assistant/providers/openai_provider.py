"""OpenAI provider using the official SDK.

Also works with OpenAI-compatible servers when a base URL is configured.
"""

from typing import List, Optional

from commit_assistant.errors import ProviderError
from commit_assistant.providers.base import SYSTEM_PROMPT, Provider, clean_candidate


class OpenAIProvider(Provider):
    """Chat-completions backend. Requires OPENAI_API_KEY."""

    name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 500,
    ):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.base_url = base_url
        self.temperature = float(temperature)
        self.max_tokens = int(max_tokens)
        self._client = None

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI

            # Instantiate client, optionally override base_url
            kwargs = {}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(api_key=self.api_key, **kwargs)
        return self._client

    async def ask(self, prompt: str) -> List[str]:
        from openai import OpenAIError

        if not self.is_available():
            raise ProviderError("openai provider is not configured")

        try:
            resp = await self._get_client().chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI API error: {e}") from e
        return [clean_candidate(choice.message.content) for choice in resp.choices]
