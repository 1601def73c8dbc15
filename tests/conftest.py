"""Shared fixtures."""

import shutil
import tempfile
from pathlib import Path

import pytest
from git import Repo


@pytest.fixture
def git_repo():
    """Create a temporary Git repository with one commit.

    Yields:
        Repo: The repository, working tree at ``repo.working_tree_dir``
    """
    temp_dir = tempfile.mkdtemp()
    repo_path = Path(temp_dir)

    try:
        repo = Repo.init(repo_path)

        # Configure Git user (required for commits)
        with repo.config_writer() as config:
            config.set_value("user", "name", "Test User")
            config.set_value("user", "email", "test@example.com")
            config.set_value("commit", "gpgsign", "false")

        # Create initial commit to establish HEAD
        (repo_path / "README.md").write_text("# Test Repository\n")
        repo.index.add(["README.md"])
        repo.index.commit("Initial commit")

        yield repo

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)
