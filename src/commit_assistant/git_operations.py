"""Git workspace engine: state checks, staging, diffing, committing, pushing and tagging."""

import logging
import time
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from git import Actor, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.objects import Commit
from git.refs import Head
from gitdb import IStream

from commit_assistant.change_tracker import ChangeTracker
from commit_assistant.errors import (
    ConfigurationError,
    GitOperationError,
    InvalidArgumentError,
    PreconditionError,
)
from commit_assistant.logging_config import log_git_operation, null_logger
from commit_assistant.models import (
    SEMVER_TAG_PATTERN,
    GitConfig,
    RepositoryState,
    SemVer,
    StagingFilter,
)
from commit_assistant.patterns import (
    expand_excludes_path,
    glob_match,
    is_simple_glob_pattern,
    matches_pattern,
    parse_gitignore_file,
    passes_filter,
)
from commit_assistant.remote_url import generate_merge_request_url, parse_remote_url
from commit_assistant.repo_state import detect_state, resolve_git_dir
from commit_assistant.signing import SignerResolver


CONFLICT_CODES = frozenset({"UU", "AA", "DD", "AU", "UA", "DU", "UD"})

# Context widths tried, widest first, until the diff fits
CONTEXT_WIDTHS = (5, 3, 2, 1, 0)

DIFF_OPTIONS = (
    "--cached",
    "--no-color",
    "--no-ext-diff",
    "--no-prefix",
    "--diff-algorithm=patience",
    "--ignore-space-at-eol",
    "--ignore-cr-at-eol",
    "--function-context",
    "--find-renames=50",
)

REMOTE_NAME = "origin"
DEFAULT_TARGET_BRANCH = "master"


@contextmanager
def git_errors(operation: str) -> Iterator[None]:
    """Re-raise GitPython failures as GitOperationError."""
    try:
        yield
    except GitCommandError as e:
        stderr = (e.stderr or "").strip()
        raise GitOperationError(f"{operation} failed: {stderr or e}") from e
    except InvalidGitRepositoryError as e:
        raise GitOperationError(f"{operation} failed: invalid Git repository: {e}") from e


class GitWorkspace:
    """Operations on one working tree, backed by GitPython.

    The repository is opened lazily so that ``is_repository`` can report a
    missing repository instead of raising.
    """

    def __init__(
        self,
        repo_path: str = ".",
        repo: Optional[Repo] = None,
        signer_resolver: Optional[SignerResolver] = None,
        change_tracker: Optional[ChangeTracker] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.repo_path = repo_path
        self._repo = repo
        self.logger = logger or null_logger()
        self.signer_resolver = signer_resolver or SignerResolver(logger=self.logger)
        self.change_tracker = change_tracker or ChangeTracker()
        self.clock = clock

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            try:
                self._repo = Repo(self.repo_path, search_parent_directories=True)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise PreconditionError(f"not a git repository: {self.repo_path}") from e
        return self._repo

    def is_repository(self) -> bool:
        try:
            return self.repo is not None
        except PreconditionError:
            return False

    # Repository state

    def get_state(self) -> RepositoryState:
        """Return the operation the repository is in the middle of.

        Raises:
            GitOperationError: If the git directory cannot be read
        """
        work_tree = self.repo.working_tree_dir
        git_dir = resolve_git_dir(work_tree) if work_tree else Path(self.repo.git_dir)
        return detect_state(git_dir)

    def get_conflicted_files(self) -> List[str]:
        """List paths with unresolved merge conflicts.

        Asks diff for unmerged paths first and falls back to parsing short
        status output when that command fails.
        """
        try:
            output = self.repo.git.diff("--name-only", "--diff-filter=U")
        except GitCommandError as e:
            self.logger.debug("Unmerged diff failed, parsing status", extra={"error": str(e)})
        else:
            return [line.strip() for line in output.splitlines() if line.strip()]

        with git_errors("status"):
            status = self.repo.git.status("--porcelain")

        conflicted = []
        for line in status.splitlines():
            if len(line) > 3 and line[:2] in CONFLICT_CODES:
                conflicted.append(line[3:].strip())
        return conflicted

    def has_conflicts(self) -> bool:
        return bool(self.get_conflicted_files())

    # Staging

    def unstage_all(self) -> None:
        """Reset the index to HEAD, keeping the working tree."""
        with git_errors("unstage"):
            if self.repo.head.is_valid():
                self.repo.git.reset("--mixed", "--quiet")
            else:
                self.repo.git.rm("--cached", "-r", "--quiet", "--ignore-unmatch", ".")

    def load_global_ignore_patterns(self) -> List[str]:
        """Read patterns from the file named by ``core.excludesFile``."""
        excludes_file = self.get_config_value("core.excludesFile")
        if not excludes_file:
            return []
        path = expand_excludes_path(excludes_file, cwd=self.repo.working_tree_dir)
        try:
            return parse_gitignore_file(path)
        except OSError as e:
            raise GitOperationError(f"failed to read global excludes file {path}: {e}") from e

    def stage_files(self, staging_filter: StagingFilter) -> List[str]:
        """Stage changed paths allowed by ``staging_filter``.

        Returns:
            Paths that were staged, possibly empty

        Raises:
            GitOperationError: If status or staging fails
        """
        exclude = list(staging_filter.exclude_patterns)
        include = list(staging_filter.include_patterns)
        global_patterns = self.load_global_ignore_patterns() if staging_filter.use_global_ignore else []

        with git_errors("status"):
            changed = self.change_tracker.get_changed_paths(self.repo)

        start = time.time()
        with git_errors("stage"):
            if not exclude and not include and not global_patterns:
                staged = changed
                if staged:
                    self.repo.git.add(all=True)
            elif len(include) == 1 and not exclude and not global_patterns and is_simple_glob_pattern(include[0]):
                pattern = include[0]
                staged = [path for path in changed if matches_pattern(path, pattern)]
                if staged:
                    self.repo.git.add("--all", "--", f":(glob)**/{pattern}")
            else:
                staged = [path for path in changed if passes_filter(path, exclude, include, global_patterns)]
                for path in staged:
                    self.repo.git.add("--all", "--", path)

        self.logger.debug(
            "Staged files",
            extra={"count": len(staged), "duration_seconds": round(time.time() - start, 3)},
        )
        return staged

    def get_staged_files(self) -> List[str]:
        with git_errors("list staged files"):
            output = self.repo.git.diff("--cached", "--name-only")
        return [line for line in output.splitlines() if line]

    # Diff

    def _render_diff(self, context: int, files: List[str]) -> bytes:
        return self.repo.git.diff(
            *DIFF_OPTIONS,
            f"-U{context}",
            "--",
            *files,
            stdout_as_string=False,
            strip_newline_in_stdout=False,
        )

    def get_staged_diff(self, max_bytes: int) -> str:
        """Render the staged diff so that it fits in ``max_bytes``.

        Context is narrowed step by step; when even the zero-context
        rendering is too large it is cut at ``max_bytes``, possibly in the
        middle of a line.

        Returns:
            Diff text, empty when nothing is staged
        """
        files = self.get_staged_files()
        if not files:
            return ""

        rendering = b""
        for context in CONTEXT_WIDTHS:
            try:
                rendering = self._render_diff(context, files)
            except GitCommandError as e:
                if e.status == 128:
                    return ""
                raise GitOperationError(f"diff failed: {(e.stderr or '').strip() or e}") from e
            if len(rendering) <= max_bytes:
                self.logger.debug(
                    "Diff fitted",
                    extra={"context_lines": context, "size_bytes": len(rendering)},
                )
                return rendering.decode("utf-8", errors="ignore")

        self.logger.warning(
            "Diff truncated to size limit",
            extra={"size_bytes": len(rendering), "max_bytes": max_bytes},
        )
        return rendering[:max_bytes].decode("utf-8", errors="ignore")

    # Configuration

    def get_config_value(self, key: str) -> str:
        """Return a git config value, or "" when unset."""
        try:
            return self.repo.git.config("--get", key).strip()
        except GitCommandError:
            return ""

    def read_git_config(self) -> GitConfig:
        """Read identity and signing settings.

        Raises:
            ConfigurationError: If user.name or user.email is not set
        """
        user_name = self.get_config_value("user.name")
        if not user_name:
            raise ConfigurationError('git user.name not configured. Run: git config user.name "Your Name"')
        user_email = self.get_config_value("user.email")
        if not user_email:
            raise ConfigurationError('git user.email not configured. Run: git config user.email "you@example.com"')

        return GitConfig(
            user_name=user_name,
            user_email=user_email,
            gpg_sign=self.get_config_value("commit.gpgsign").lower() == "true",
            signing_key=self.get_config_value("user.signingkey"),
            gpg_program=self.get_config_value("gpg.program") or "gpg",
        )

    def get_current_branch(self) -> str:
        """Return the checked-out branch name, or "HEAD" when detached."""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return "HEAD"

    # Commit

    def create_commit(self, message: str) -> str:
        """Commit the index with ``message``, signing it when configured.

        Returns:
            Hex SHA of the new commit

        Raises:
            ConfigurationError: If the identity or signing key is missing
            SigningError: If the commit cannot be signed
            GitOperationError: If writing the commit fails
        """
        config = self.read_git_config()
        signer = self.signer_resolver.resolve(config)
        start = time.time()

        with git_errors("commit"):
            repo = self.repo
            tree = repo.index.write_tree()
            parents = [repo.head.commit] if repo.head.is_valid() else []
            actor = Actor(config.user_name, config.user_email)
            timestamp = int(self.clock())
            offset = time.altzone if time.daylight and time.localtime(timestamp).tm_isdst > 0 else time.timezone

            commit = Commit(
                repo,
                Commit.NULL_BIN_SHA,
                tree,
                actor,
                timestamp,
                offset,
                actor,
                timestamp,
                offset,
                message,
                parents,
                Commit.default_encoding,
            )

            if signer is not None:
                payload = BytesIO()
                commit._serialize(payload)
                commit.gpgsig = signer.sign(payload.getvalue())

            stream = BytesIO()
            commit._serialize(stream)
            stream_length = stream.tell()
            stream.seek(0)
            stored = repo.odb.store(IStream(Commit.type, stream_length, stream))
            commit.binsha = stored.binsha

            summary = message.split("\n", 1)[0]
            try:
                repo.head.set_commit(commit, logmsg=f"commit: {summary}")
            except ValueError:
                # Unborn branch: create it and point HEAD at it
                branch = Head.create(repo, repo.head.ref, commit, logmsg=f"commit (initial): {summary}")
                repo.head.set_reference(branch, logmsg=f"commit: Switching to {branch}")

        log_git_operation(
            "commit",
            str(self.repo.working_tree_dir),
            True,
            time.time() - start,
            details={"sha": commit.hexsha, "signed": signer is not None},
            logger=self.logger,
        )
        return commit.hexsha

    # Push

    def _origin(self):
        try:
            return self.repo.remote(REMOTE_NAME)
        except ValueError as e:
            raise GitOperationError(f"remote '{REMOTE_NAME}' not configured") from e

    def _push_refspec(self, refspec: str, operation: str) -> None:
        remote = self._origin()
        start = time.time()
        with git_errors(operation):
            push_info = remote.push(refspec)

        if not push_info:
            raise GitOperationError(f"{operation} failed: push operation returned no information")
        for info in push_info:
            if info.flags & info.ERROR:
                raise GitOperationError(f"{operation} failed: {info.summary.strip()}")

        log_git_operation(
            operation,
            str(self.repo.working_tree_dir),
            True,
            time.time() - start,
            details={"refspec": refspec, "remote": REMOTE_NAME},
            logger=self.logger,
        )

    def get_default_branch(self) -> Optional[str]:
        """Probe the remote's default branch via its symbolic HEAD."""
        prefix = f"refs/remotes/{REMOTE_NAME}/"
        try:
            ref = self.repo.git.symbolic_ref(f"{prefix}HEAD").strip()
        except GitCommandError:
            return None
        return ref[len(prefix):] if ref.startswith(prefix) else None

    def merge_request_url(self, branch: str) -> str:
        """URL that opens a merge/pull request for ``branch``, or ""."""
        try:
            remote_url = self._origin().url
            info = parse_remote_url(remote_url)
        except (GitOperationError, InvalidArgumentError, GitCommandError) as e:
            self.logger.debug("Could not resolve remote platform", extra={"error": str(e)})
            return ""

        default_branch = self.get_default_branch()
        if branch == (default_branch or DEFAULT_TARGET_BRANCH):
            return ""
        return generate_merge_request_url(info, branch, default_branch or "")

    def push(self) -> str:
        """Push the current branch to origin.

        Returns:
            Merge/pull request URL when the branch is not the default one,
            otherwise ""
        """
        branch = self.get_current_branch()
        self._push_refspec(f"refs/heads/{branch}:refs/heads/{branch}", "push")
        return self.merge_request_url(branch)

    # Tags

    def get_latest_tag(self) -> str:
        """Return the highest ``vX.Y.Z`` tag, or "" when there is none."""
        with git_errors("list tags"):
            output = self.repo.git.tag("-l", "v*")

        tags = [line.strip() for line in output.splitlines() if SEMVER_TAG_PATTERN.match(line.strip())]
        if not tags:
            return ""
        return max(tags, key=SemVer.parse)

    @staticmethod
    def increment_version(tag: str, kind: str) -> str:
        """Bump ``tag`` by ``kind``; an empty or malformed tag counts as v0.0.0."""
        return str(SemVer.parse(tag or "").bump(kind))

    def create_tag(self, tag: str, message: str) -> None:
        """Create an annotated tag on HEAD."""
        start = time.time()
        with git_errors("tag"):
            self.repo.create_tag(tag, message=message)
        log_git_operation(
            "tag",
            str(self.repo.working_tree_dir),
            True,
            time.time() - start,
            details={"tag": tag},
            logger=self.logger,
        )

    def push_tag(self, tag: str) -> None:
        self._push_refspec(f"refs/tags/{tag}:refs/tags/{tag}", "push tag")
