"""Thin adapter around Google GenAI content generation."""

from typing import List, Optional

from commit_assistant.errors import ProviderError
from commit_assistant.providers.base import SYSTEM_PROMPT, Provider, clean_candidate


class GeminiProvider(Provider):
    name = "gemini"
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, api_key: Optional[str], model: Optional[str] = None, temperature: float = 0.4):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self._client = None

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def ask(self, prompt: str) -> List[str]:
        """Generate one candidate.

        Raises:
            ProviderError: If credentials are missing, the call fails or
                the response is empty
        """
        from google.genai import errors, types

        if not self.is_available():
            raise ProviderError("Missing GEMINI_API_KEY")

        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    temperature=self.temperature,
                ),
            )
        except errors.APIError as e:
            raise ProviderError(f"Gemini API error: {e}") from e

        text = clean_candidate(response.text)
        if not text:
            raise ProviderError("Gemini returned an empty response")
        return [text]
