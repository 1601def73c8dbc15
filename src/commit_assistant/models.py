"""Data models for the commit assistant."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from commit_assistant.errors import InvalidArgumentError


class RepositoryState(str, Enum):
    """Operation the repository is in the middle of, if any."""

    NORMAL = "normal"
    MERGING = "merging"
    REBASING = "rebasing"
    CHERRY_PICKING = "cherry-picking"
    REVERTING = "reverting"
    BISECTING = "bisecting"


class Platform(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RemoteInfo:
    """Hosting details parsed from a remote URL.

    Attributes:
        platform: Hosting platform detected from the host name
        host: Host name, including a port when the URL carried one
        owner: Owner or namespace; GitLab subgroups are kept as ``a/b``
        repo: Repository name without the ``.git`` suffix
    """
    platform: Platform
    host: str
    owner: str
    repo: str


SEMVER_TAG_PATTERN = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")
INCREMENT_KINDS = ("major", "minor", "patch")


@dataclass(frozen=True, order=True)
class SemVer:
    """Semantic version parsed from a ``v<major>.<minor>.<patch>`` tag."""
    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, tag: str) -> "SemVer":
        """Parse a tag leniently.

        The leading ``v`` is optional. Anything that is not three
        dot-separated parts parses to 0.0.0; a part that is not a
        non-negative integer parses to 0.
        """
        parts = tag[1:].split(".") if tag.startswith("v") else tag.split(".")
        if len(parts) != 3:
            return cls()
        return cls(*(int(part) if part.isdigit() else 0 for part in parts))

    def bump(self, kind: str) -> "SemVer":
        """Return the next version for ``kind`` (major, minor or patch).

        Raises:
            InvalidArgumentError: If kind is not a known increment type
        """
        normalized = (kind or "").lower()
        if normalized == "major":
            return SemVer(self.major + 1, 0, 0)
        if normalized == "minor":
            return SemVer(self.major, self.minor + 1, 0)
        if normalized == "patch":
            return SemVer(self.major, self.minor, self.patch + 1)
        raise InvalidArgumentError(
            f"invalid increment type: {kind} (must be major, minor, or patch)"
        )

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


@dataclass
class StagingFilter:
    """Rules deciding which changed paths get staged.

    Attributes:
        exclude_patterns: Paths matching any of these are skipped
        include_patterns: When non-empty, only paths matching one are staged
        use_global_ignore: Also skip paths matched by the global excludes file
    """
    exclude_patterns: List[str] = field(default_factory=list)
    include_patterns: List[str] = field(default_factory=list)
    use_global_ignore: bool = False


@dataclass
class GitConfig:
    """Identity and signing settings read from git configuration."""
    user_name: str
    user_email: str
    gpg_sign: bool = False
    signing_key: str = ""
    gpg_program: str = "gpg"


@dataclass
class PreparedChange:
    """Staged state handed from the workspace to the providers.

    Attributes:
        staged_files: Paths staged for this commit
        diff: Staged diff fitted to the configured byte ceiling
        branch: Current branch name
    """
    staged_files: List[str]
    diff: str
    branch: str


@dataclass
class CommitOutcome:
    """Result of one run of the commit workflow.

    Attributes:
        committed: Whether a commit was created
        commit_message: Final commit message (would-be message on dry runs)
        staged_files: Paths that were staged
        suggestions: Candidate messages keyed by provider
        pushed: Whether the branch was pushed
        merge_request_url: URL to open a merge/pull request, if any
        tag: Tag created for this commit, if any
        dry_run: Whether mutating steps were skipped
        message: Human-readable status message
    """
    committed: bool = False
    commit_message: Optional[str] = None
    staged_files: List[str] = field(default_factory=list)
    suggestions: Dict[str, str] = field(default_factory=dict)
    pushed: bool = False
    merge_request_url: str = ""
    tag: Optional[str] = None
    dry_run: bool = False
    message: str = ""
