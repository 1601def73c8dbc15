"""Exception hierarchy for the commit assistant.

Errors are grouped by the point in the workflow at which they abort it:
configuration and precondition errors fire before the repository is touched,
git and signing errors abort after mutation has started (no rollback).
"""


class CommitAssistantError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(CommitAssistantError):
    """Invalid settings, missing git identity or missing signing key."""


class PreconditionError(CommitAssistantError):
    """Repository is not in a state that allows committing."""


class GitOperationError(CommitAssistantError):
    """A git command or repository I/O operation failed."""


class SigningError(CommitAssistantError):
    """The commit could not be signed."""


class InvalidArgumentError(CommitAssistantError, ValueError):
    """A caller passed a value outside the accepted set."""


class NoSuggestionsError(CommitAssistantError):
    """No provider produced a usable commit message."""


class ProviderError(CommitAssistantError):
    """A text-generation provider failed to answer."""
