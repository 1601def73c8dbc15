"""Change tracking component for detecting Git repository changes."""

from typing import List, Set

from git import Repo
from git.exc import BadName, GitCommandError


class ChangeTracker:
    """Lists paths with changes in a Git repository since the last commit.

    This is the status set that staging filters are applied to: modified,
    deleted, renamed and untracked paths, both staged and unstaged.
    """

    def get_changed_paths(self, repo: Repo) -> List[str]:
        """Collect every changed path in the working tree and index.

        Args:
            repo: GitPython Repo object representing the repository

        Returns:
            Sorted list of repository-relative paths

        Raises:
            GitCommandError: If Git operations fail
        """
        paths: Set[str] = set()

        # Working tree vs index
        diffs = list(repo.index.diff(None))

        # Index vs HEAD
        try:
            diffs.extend(repo.index.diff("HEAD"))
        except (BadName, GitCommandError, ValueError):
            # No HEAD yet; everything in the index is new
            paths.update(path for path, _stage in repo.index.entries)

        for diff_item in diffs:
            if diff_item.renamed_file:
                paths.add(diff_item.rename_from)
                paths.add(diff_item.rename_to)
            elif diff_item.deleted_file:
                paths.add(diff_item.a_path)
            else:
                paths.add(diff_item.b_path or diff_item.a_path)

        paths.update(repo.untracked_files)
        paths.discard(None)
        return sorted(paths)
