"""Conventional commit header grammar: ``type[(scope)][!]: description``."""

import re
from dataclasses import dataclass
from typing import Optional, Tuple


CONVENTIONAL_TYPES = frozenset({
    "feat", "fix", "docs", "style", "refactor", "perf",
    "test", "build", "ci", "chore", "revert",
})

HEADER_PATTERN = re.compile(r"^(?P<type>[a-z]+)(?:\((?P<scope>[a-zA-Z0-9\-_]+)\))?(?P<breaking>!)?$")

# A header longer than this is treated as ordinary text
MAX_HEADER_LENGTH = 50


@dataclass(frozen=True)
class ConventionalHeader:
    type: str
    scope: Optional[str] = None
    breaking: bool = False

    @classmethod
    def parse(cls, text: str) -> Optional["ConventionalHeader"]:
        """Parse ``feat``, ``feat(api)``, ``feat!`` or ``feat(api)!``.

        Returns None for anything else, including unknown types.
        """
        match = HEADER_PATTERN.match(text)
        if not match or match.group("type") not in CONVENTIONAL_TYPES:
            return None
        return cls(
            type=match.group("type"),
            scope=match.group("scope"),
            breaking=match.group("breaking") is not None,
        )

    def __str__(self) -> str:
        scope = f"({self.scope})" if self.scope else ""
        return f"{self.type}{scope}{'!' if self.breaking else ''}"


def split_subject(subject: str) -> Tuple[Optional[ConventionalHeader], str]:
    """Split a subject line into its header and description.

    Without a recognised header the whole line is the description.
    """
    idx = subject.find(": ")
    if 0 < idx < MAX_HEADER_LENGTH:
        header = ConventionalHeader.parse(subject[:idx])
        if header is not None:
            return header, subject[idx + 2:]
    return None, subject
