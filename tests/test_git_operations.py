"""Unit tests for GitWorkspace against a mocked repository."""

import pytest
from unittest.mock import Mock, PropertyMock
from git import PushInfo, Remote, Repo
from git.exc import GitCommandError

from commit_assistant.change_tracker import ChangeTracker
from commit_assistant.errors import ConfigurationError, GitOperationError
from commit_assistant.git_operations import GitWorkspace
from commit_assistant.models import StagingFilter


def config_lookup(values):
    """Side effect for ``repo.git.config("--get", key)``."""
    def lookup(*args):
        key = args[-1]
        if key in values:
            return values[key]
        raise GitCommandError(["git", "config", "--get", key], 1)
    return lookup


class TestGitWorkspace:
    """Tests for GitWorkspace component."""

    @pytest.fixture
    def mock_repo(self, tmp_path):
        """Create a mock Git repository."""
        repo = Mock(spec=Repo)
        repo.git = Mock()
        repo.git.config.side_effect = config_lookup({})
        repo.head = Mock()
        repo.working_tree_dir = str(tmp_path)
        return repo

    @pytest.fixture
    def tracker(self):
        tracker = Mock(spec=ChangeTracker)
        tracker.get_changed_paths.return_value = []
        return tracker

    @pytest.fixture
    def workspace(self, mock_repo, tracker):
        return GitWorkspace(repo=mock_repo, change_tracker=tracker)

    # Conflicts

    def test_conflicts_from_unmerged_diff(self, workspace, mock_repo):
        """Test listing unmerged paths via diff."""
        mock_repo.git.diff.return_value = "a.txt\nb.txt\n"

        assert workspace.get_conflicted_files() == ["a.txt", "b.txt"]
        mock_repo.git.diff.assert_called_once_with("--name-only", "--diff-filter=U")
        mock_repo.git.status.assert_not_called()

    def test_conflicts_fall_back_to_status(self, workspace, mock_repo):
        """Test that a failing diff falls back to short status parsing."""
        mock_repo.git.diff.side_effect = GitCommandError(["git", "diff"], 129)
        mock_repo.git.status.return_value = "UU a.txt\n M b.txt\nAA c.txt\nDU d.txt\n?? e.txt"

        assert workspace.get_conflicted_files() == ["a.txt", "c.txt", "d.txt"]

    def test_no_conflicts(self, workspace, mock_repo):
        mock_repo.git.diff.return_value = ""

        assert workspace.has_conflicts() is False

    # Staging

    def test_stage_everything_without_filters(self, workspace, mock_repo, tracker):
        """Test the single-call strategy when no filter is set."""
        tracker.get_changed_paths.return_value = ["a.py", "docs/b.md"]

        staged = workspace.stage_files(StagingFilter())

        assert staged == ["a.py", "docs/b.md"]
        mock_repo.git.add.assert_called_once_with(all=True)

    def test_stage_nothing_when_clean(self, workspace, mock_repo, tracker):
        staged = workspace.stage_files(StagingFilter())

        assert staged == []
        mock_repo.git.add.assert_not_called()

    def test_stage_simple_glob(self, workspace, mock_repo, tracker):
        """Test the glob strategy for a single bare include pattern."""
        tracker.get_changed_paths.return_value = ["src/a.py", "README.md", "b.py"]

        staged = workspace.stage_files(StagingFilter(include_patterns=["*.py"]))

        assert staged == ["src/a.py", "b.py"]
        mock_repo.git.add.assert_called_once_with("--all", "--", ":(glob)**/*.py")

    def test_stage_per_file_with_excludes(self, workspace, mock_repo, tracker):
        """Test the per-file strategy when exclude patterns are set."""
        tracker.get_changed_paths.return_value = ["src/a.py", "src/a_test.py", "notes.txt"]

        staged = workspace.stage_files(StagingFilter(exclude_patterns=["_test"], include_patterns=["*.py"]))

        assert staged == ["src/a.py"]
        mock_repo.git.add.assert_called_once_with("--all", "--", "src/a.py")

    def test_stage_with_global_ignore(self, workspace, mock_repo, tracker, tmp_path):
        """Test that core.excludesFile patterns are honoured."""
        (tmp_path / "global_ignore").write_text("*.log\nbuild/\n")
        mock_repo.git.config.side_effect = config_lookup({"core.excludesFile": "global_ignore"})
        tracker.get_changed_paths.return_value = ["app.py", "debug.log", "out/build/x.o"]

        staged = workspace.stage_files(StagingFilter(use_global_ignore=True))

        assert staged == ["app.py"]
        mock_repo.git.add.assert_called_once_with("--all", "--", "app.py")

    def test_global_ignore_unset_uses_fast_path(self, workspace, mock_repo, tracker):
        tracker.get_changed_paths.return_value = ["app.py"]

        workspace.stage_files(StagingFilter(use_global_ignore=True))

        mock_repo.git.add.assert_called_once_with(all=True)

    def test_stage_failure(self, workspace, mock_repo, tracker):
        tracker.get_changed_paths.return_value = ["a.py"]
        mock_repo.git.add.side_effect = GitCommandError(["git", "add"], 128, stderr="fatal: index locked")

        with pytest.raises(GitOperationError, match="index locked"):
            workspace.stage_files(StagingFilter())

    def test_unstage_all(self, workspace, mock_repo):
        mock_repo.head.is_valid.return_value = True

        workspace.unstage_all()

        mock_repo.git.reset.assert_called_once_with("--mixed", "--quiet")

    def test_unstage_all_without_commits(self, workspace, mock_repo):
        mock_repo.head.is_valid.return_value = False

        workspace.unstage_all()

        mock_repo.git.rm.assert_called_once_with("--cached", "-r", "--quiet", "--ignore-unmatch", ".")
        mock_repo.git.reset.assert_not_called()

    # Diff

    def test_diff_empty_when_nothing_staged(self, workspace, mock_repo):
        mock_repo.git.diff.return_value = ""

        assert workspace.get_staged_diff(1000) == ""
        mock_repo.git.diff.assert_called_once_with("--cached", "--name-only")

    def test_diff_picks_widest_fitting_context(self, workspace, mock_repo):
        """Test that context is narrowed until the diff fits."""
        sizes = {"-U5": 500, "-U3": 300, "-U2": 200, "-U1": 150, "-U0": 100}

        def diff(*args, **kwargs):
            if "--name-only" in args:
                return "a.py"
            context = next(arg for arg in args if arg.startswith("-U"))
            return b"x" * sizes[context]

        mock_repo.git.diff.side_effect = diff

        assert len(workspace.get_staged_diff(250)) == 200

    def test_diff_falls_to_zero_context(self, workspace, mock_repo):
        """Test a ceiling that only the zero-context rendering meets."""
        calls = []

        def diff(*args, **kwargs):
            if "--name-only" in args:
                return "a.py"
            context = next(arg for arg in args if arg.startswith("-U"))
            calls.append(context)
            return context.encode() * (100 if context != "-U0" else 10)

        mock_repo.git.diff.side_effect = diff

        assert workspace.get_staged_diff(30) == "-U0" * 10
        assert calls == ["-U5", "-U3", "-U2", "-U1", "-U0"]

    def test_diff_with_invalid_utf8_stays_within_ceiling(self, workspace, mock_repo):
        """Test that undecodable bytes never grow the text past the ceiling."""
        def diff(*args, **kwargs):
            if "--name-only" in args:
                return "latin1.txt"
            return b"+\xff\xfe\xfd\xfc\n"

        mock_repo.git.diff.side_effect = diff

        result = workspace.get_staged_diff(6)

        assert result == "+\n"
        assert len(result.encode("utf-8")) <= 6

    def test_diff_truncated_when_nothing_fits(self, workspace, mock_repo):
        def diff(*args, **kwargs):
            if "--name-only" in args:
                return "a.py"
            return b"y" * 400

        mock_repo.git.diff.side_effect = diff

        assert workspace.get_staged_diff(64) == "y" * 64

    def test_diff_status_128_is_empty(self, workspace, mock_repo):
        def diff(*args, **kwargs):
            if "--name-only" in args:
                return "gone.py"
            raise GitCommandError(["git", "diff"], 128)

        mock_repo.git.diff.side_effect = diff

        assert workspace.get_staged_diff(100) == ""

    # Configuration

    def test_read_git_config(self, workspace, mock_repo):
        mock_repo.git.config.side_effect = config_lookup({
            "user.name": "Dev",
            "user.email": "dev@example.com",
            "commit.gpgsign": "TRUE",
            "user.signingkey": "ABCD",
        })

        config = workspace.read_git_config()

        assert config.user_name == "Dev"
        assert config.user_email == "dev@example.com"
        assert config.gpg_sign is True
        assert config.signing_key == "ABCD"
        assert config.gpg_program == "gpg"

    def test_missing_user_name(self, workspace):
        with pytest.raises(ConfigurationError, match="user.name not configured"):
            workspace.read_git_config()

    def test_missing_user_email(self, workspace, mock_repo):
        mock_repo.git.config.side_effect = config_lookup({"user.name": "Dev"})

        with pytest.raises(ConfigurationError, match="user.email not configured"):
            workspace.read_git_config()

    def test_current_branch(self, workspace, mock_repo):
        mock_repo.active_branch = Mock()
        mock_repo.active_branch.name = "feature/PROJ-1"

        assert workspace.get_current_branch() == "feature/PROJ-1"

    def test_detached_head(self, workspace, mock_repo):
        type(mock_repo).active_branch = PropertyMock(side_effect=TypeError("HEAD is detached"))

        assert workspace.get_current_branch() == "HEAD"

    # Push

    def _origin(self, mock_repo, url="git@github.com:owner/repo.git", flags=0):
        remote = Mock(spec=Remote)
        remote.url = url
        info = Mock()
        info.flags = flags
        info.ERROR = PushInfo.ERROR
        info.summary = "[rejected] (non-fast-forward)\n"
        remote.push.return_value = [info]
        mock_repo.remote.return_value = remote
        return remote

    def _on_branch(self, mock_repo, name):
        mock_repo.active_branch = Mock()
        mock_repo.active_branch.name = name

    def test_push_returns_compare_url(self, workspace, mock_repo):
        """Test that pushing a feature branch yields a pull request URL."""
        remote = self._origin(mock_repo)
        self._on_branch(mock_repo, "feature/x")
        mock_repo.git.symbolic_ref.return_value = "refs/remotes/origin/main"

        url = workspace.push()

        remote.push.assert_called_once_with("refs/heads/feature/x:refs/heads/feature/x")
        assert url == "https://github.com/owner/repo/compare/main...feature%2Fx?expand=1"

    def test_push_default_branch_has_no_url(self, workspace, mock_repo):
        self._origin(mock_repo)
        self._on_branch(mock_repo, "main")
        mock_repo.git.symbolic_ref.return_value = "refs/remotes/origin/main"

        assert workspace.push() == ""

    def test_push_without_remote_head_assumes_master(self, workspace, mock_repo):
        self._origin(mock_repo)
        self._on_branch(mock_repo, "dev")
        mock_repo.git.symbolic_ref.side_effect = GitCommandError(["git", "symbolic-ref"], 128)

        assert workspace.push() == "https://github.com/owner/repo/pull/new/dev"

    def test_push_unparseable_remote_url_is_not_fatal(self, workspace, mock_repo):
        self._origin(mock_repo, url="file-system-path")
        self._on_branch(mock_repo, "dev")

        assert workspace.push() == ""

    def test_push_rejected(self, workspace, mock_repo):
        self._origin(mock_repo, flags=PushInfo.ERROR)
        self._on_branch(mock_repo, "dev")

        with pytest.raises(GitOperationError, match="rejected"):
            workspace.push()

    def test_push_without_origin(self, workspace, mock_repo):
        mock_repo.remote.side_effect = ValueError("Remote named 'origin' didn't exist")
        self._on_branch(mock_repo, "dev")

        with pytest.raises(GitOperationError, match="remote 'origin' not configured"):
            workspace.push()

    # Tags

    def test_latest_tag_is_highest_semver(self, workspace, mock_repo):
        mock_repo.git.tag.return_value = "v1.2.3\nv1.10.0\nv1.9.9\nvfoo\nv2.0"

        assert workspace.get_latest_tag() == "v1.10.0"

    def test_latest_tag_none(self, workspace, mock_repo):
        mock_repo.git.tag.return_value = ""

        assert workspace.get_latest_tag() == ""

    def test_create_tag_is_annotated(self, workspace, mock_repo):
        workspace.create_tag("v1.0.0", "feat: first release")

        mock_repo.create_tag.assert_called_once_with("v1.0.0", message="feat: first release")

    def test_push_tag(self, workspace, mock_repo):
        remote = self._origin(mock_repo)

        workspace.push_tag("v1.0.0")

        remote.push.assert_called_once_with("refs/tags/v1.0.0:refs/tags/v1.0.0")
