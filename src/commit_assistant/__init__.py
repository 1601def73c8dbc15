"""Commit assistant - AI-suggested commit messages with staging, signing, push and tagging."""

__version__ = "0.1.0"

from commit_assistant.config import CommitSettings
from commit_assistant.errors import CommitAssistantError
from commit_assistant.git_operations import GitWorkspace
from commit_assistant.models import CommitOutcome

__all__ = ["CommitAssistantError", "CommitOutcome", "CommitSettings", "GitWorkspace"]
