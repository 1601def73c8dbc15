"""Prompt templates for commit message generation."""

from typing import Sequence


SINGLE_LINE_FORMAT = (
    "Respond with a single line in the form <type>(<scope>): <description>, "
    "at most 72 characters, with no body."
)

MULTI_LINE_FORMAT = (
    "Respond with a subject line in the form <type>(<scope>): <description> "
    "of at most 72 characters, then a blank line, then a short body of "
    "bullet points (\"- \") explaining what changed and why."
)

DEFAULT_TEMPLATE = """Write a commit message for the staged changes below.

Use the Conventional Commits specification. Allowed types: feat, fix, docs, style, refactor, perf, test, build, ci, chore, revert.
Describe the intent of the change, not a list of files. Use the imperative mood.
{format}

Branch: {branch}
Files: {files}

Diff:
{diff}
"""


def output_format(multi_line: bool) -> str:
    return MULTI_LINE_FORMAT if multi_line else SINGLE_LINE_FORMAT


def render_template(template: str, diff: str, branch: str, files: Sequence[str], multi_line: bool) -> str:
    """Substitute ``{diff}``, ``{branch}``, ``{files}`` and ``{format}``.

    Plain replacement is used so that other braces in a user template, or
    in the diff itself, are left alone. ``{diff}`` goes last so that
    placeholder-like text inside the diff is never expanded.
    """
    return (
        template.replace("{branch}", branch)
        .replace("{files}", ", ".join(files))
        .replace("{format}", output_format(multi_line))
        .replace("{diff}", diff)
    )


def build_prompt(
    diff: str,
    branch: str,
    files: Sequence[str],
    multi_line: bool = False,
    custom_prompt: str = "",
) -> str:
    """Build the prompt sent to every provider."""
    return render_template(custom_prompt or DEFAULT_TEMPLATE, diff, branch, files, multi_line)
