"""Issue-ID injection: copies a ticket key such as ``PROJ-123`` from the branch name into the subject line."""

import re
from typing import Optional, Tuple

from commit_assistant.errors import InvalidArgumentError
from commit_assistant.modules.base import TransformModule
from commit_assistant.modules.conventional import split_subject


POSITION_NONE = "none"
POSITION_PREFIX = "prefix"
POSITION_INFIX = "infix"
POSITION_SUFFIX = "suffix"
POSITIONS = (POSITION_NONE, POSITION_PREFIX, POSITION_INFIX, POSITION_SUFFIX)

STYLE_PLAIN = "plain"              # TASK-1
STYLE_PLAIN_COLON = "plain_colon"  # TASK-1:
STYLE_BRACKETS = "brackets"        # [TASK-1]
STYLE_PARENS = "parens"            # (TASK-1)
STYLES = (STYLE_PLAIN, STYLE_PLAIN_COLON, STYLE_BRACKETS, STYLE_PARENS)

BRANCH_PATTERNS = (
    re.compile(r"^([A-Z]+-[0-9]+)"),
    re.compile(r"^feature/([A-Z]+-[0-9]+)(?:-.*)?$"),
    re.compile(r"^bugfix/([A-Z]+-[0-9]+)(?:-.*)?$"),
    re.compile(r"^hotfix/([A-Z]+-[0-9]+)(?:-.*)?$"),
    re.compile(r"^chore/([A-Z]+-[0-9]+)(?:-.*)?$"),
    re.compile(r"/([A-Z]+-[0-9]+)(?:-|$)"),
)


def detect_issue_id(branch: str) -> Optional[str]:
    """Return the first issue ID found in ``branch``, or None."""
    for pattern in BRANCH_PATTERNS:
        match = pattern.search(branch)
        if match and match.group(1):
            return match.group(1)
    return None


class IssueIdDetector(TransformModule):
    """Adds the branch's issue ID to the first line of the commit message."""

    name = "issue_id_detector"

    def __init__(self, position: str = POSITION_NONE, style: str = STYLE_PLAIN):
        if position not in POSITIONS:
            raise InvalidArgumentError(f"invalid issue position: {position}")
        if style not in STYLES:
            raise InvalidArgumentError(f"invalid issue style: {style}")
        self.position = position
        self.style = style

    def format_id(self, issue_id: str) -> str:
        if self.style == STYLE_BRACKETS:
            return f"[{issue_id}]"
        if self.style == STYLE_PARENS:
            return f"({issue_id})"
        if self.style == STYLE_PLAIN_COLON and self.position == POSITION_PREFIX:
            return f"{issue_id}:"
        return issue_id

    def add_issue_id(self, message: str, issue_id: str) -> str:
        if issue_id in message:
            return message

        first_line, newline, rest = message.partition("\n")
        formatted = self.format_id(issue_id)

        if self.position == POSITION_PREFIX:
            first_line = f"{formatted} {first_line}"
        elif self.position == POSITION_INFIX:
            header, description = split_subject(first_line)
            if header is not None:
                first_line = f"{header}: {formatted} {description}"
            else:
                first_line = f"{formatted} {first_line}"
        elif self.position == POSITION_SUFFIX:
            first_line = f"{first_line} {formatted}"
        else:
            return message

        return first_line + newline + rest

    def transform_commit_message(self, branch: str, message: str) -> Tuple[str, bool]:
        if self.position == POSITION_NONE:
            return message, False
        issue_id = detect_issue_id(branch)
        if not issue_id:
            return message, False
        result = self.add_issue_id(message, issue_id)
        return result, result != message
