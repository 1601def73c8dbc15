"""Provider interface shared by every text-generation backend."""

from abc import ABC, abstractmethod
from typing import List, Optional


SYSTEM_PROMPT = (
    "You are a senior engineer who writes excellent commit messages. "
    "Output must be ONLY the commit message, with no explanation, quotes or code fences."
)


class Provider(ABC):
    """A backend that turns a prompt into candidate commit messages."""

    name: str = ""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider has what it needs to be called."""

    @abstractmethod
    async def ask(self, prompt: str) -> List[str]:
        """Return candidate messages for ``prompt``.

        Raises:
            ProviderError: If the backend call fails
        """


def clean_candidate(text: Optional[str]) -> str:
    """Strip whitespace and a surrounding Markdown code fence."""
    text = (text or "").strip()
    if text.startswith("```") and text.endswith("```") and len(text) >= 6:
        body = text[3:-3]
        # Drop a language tag on the opening fence
        first_newline = body.find("\n")
        if first_newline != -1 and " " not in body[:first_newline].strip():
            body = body[first_newline + 1:]
        text = body.strip()
    return text
