"""Repository state detection from marker files in the git directory."""

from pathlib import Path
from typing import Union

from commit_assistant.errors import GitOperationError
from commit_assistant.models import RepositoryState


# Checked in order; the first marker present wins.
STATE_MARKERS = (
    ("rebase-merge", RepositoryState.REBASING),
    ("rebase-apply", RepositoryState.REBASING),
    ("MERGE_HEAD", RepositoryState.MERGING),
    ("CHERRY_PICK_HEAD", RepositoryState.CHERRY_PICKING),
    ("REVERT_HEAD", RepositoryState.REVERTING),
    ("BISECT_LOG", RepositoryState.BISECTING),
)


def resolve_git_dir(work_tree: Union[str, Path]) -> Path:
    """Find the git metadata directory for a work tree.

    Linked worktrees and submodules have a ``.git`` file containing
    ``gitdir: <path>``; that path (relative paths are taken from the work
    tree) is the directory holding this checkout's state markers.

    Raises:
        GitOperationError: If ``.git`` is missing or cannot be read
    """
    dot_git = Path(work_tree) / ".git"
    if dot_git.is_dir():
        return dot_git

    try:
        content = dot_git.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise GitOperationError(f"failed to read git directory: {e}") from e

    if not content.startswith("gitdir:"):
        raise GitOperationError(f"invalid .git file: {dot_git}")

    git_dir = Path(content[len("gitdir:"):].strip())
    if not git_dir.is_absolute():
        git_dir = Path(work_tree) / git_dir
    return git_dir


def detect_state(git_dir: Union[str, Path]) -> RepositoryState:
    """Derive the repository state from the markers under ``git_dir``.

    Raises:
        GitOperationError: If the directory cannot be read
    """
    git_dir = Path(git_dir)
    try:
        if not git_dir.is_dir():
            raise GitOperationError(f"git directory not found: {git_dir}")
        for marker, state in STATE_MARKERS:
            if (git_dir / marker).exists():
                return state
    except OSError as e:
        raise GitOperationError(f"failed to inspect git directory: {e}") from e
    return RepositoryState.NORMAL
