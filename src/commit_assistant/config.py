"""Configuration management for the commit assistant."""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

try:
    from dotenv import load_dotenv
    DOTENV_AVAILABLE = True
except ImportError:
    DOTENV_AVAILABLE = False

from commit_assistant.errors import ConfigurationError
from commit_assistant.models import INCREMENT_KINDS, StagingFilter
from commit_assistant.modules.issue_id import POSITIONS, STYLES


ENV_PREFIX = "COMMIT_"
DEFAULT_MAX_DIFF_SIZE_BYTES = 64 * 1024
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class CommitSettings:
    """Settings for one commit run.

    Attributes:
        providers: Provider names to ask, empty for all configured ones
        timeout: Per-provider timeout in seconds
        custom_prompt: Template replacing the built-in prompt
        first: Use the first provider that answers
        auto: Commit a random suggestion without asking
        dry_run: Skip commit, push and tag
        exclude: Patterns of paths not to stage
        include_only: When set, only paths matching these are staged
        multi_line: Ask for a subject plus body
        push: Push the branch after committing
        tag: Version part to bump after committing (major, minor, patch)
        use_global_gitignore: Also skip paths matched by core.excludesFile
        max_diff_size_bytes: Size limit of the diff sent to providers
        issue_position: Where to add the branch issue ID (none, prefix, infix, suffix)
        issue_style: How to write the issue ID (plain, plain_colon, brackets, parens)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        repo_path: Path inside the repository to commit in
        openai_model: Model override for the openai provider
        claude_model: Model override for the claude provider
        gemini_model: Model override for the gemini provider
    """
    providers: List[str] = field(default_factory=list)
    timeout: float = 10.0
    custom_prompt: str = ""
    first: bool = False
    auto: bool = False
    dry_run: bool = False
    exclude: List[str] = field(default_factory=list)
    include_only: List[str] = field(default_factory=list)
    multi_line: bool = False
    push: bool = False
    tag: str = ""
    use_global_gitignore: bool = True
    max_diff_size_bytes: int = DEFAULT_MAX_DIFF_SIZE_BYTES
    issue_position: str = "none"
    issue_style: str = "plain"

    log_level: str = "INFO"
    repo_path: str = "."

    openai_model: Optional[str] = None
    claude_model: Optional[str] = None
    gemini_model: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "CommitSettings":
        """Load settings from ``COMMIT_``-prefixed environment variables.

        Args:
            env_file: Optional path to .env file to load first
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated CommitSettings

        Raises:
            ConfigurationError: If a value cannot be parsed or is invalid
        """
        # Load .env file if available and requested
        if env_file and DOTENV_AVAILABLE:
            load_dotenv(env_file)

        env = os.environ if environ is None else environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            return env.get(ENV_PREFIX + name, default)

        try:
            timeout = float(get("TIMEOUT", "10"))
            max_diff = int(get("MAX_DIFF_SIZE_BYTES", str(DEFAULT_MAX_DIFF_SIZE_BYTES)))
        except ValueError as e:
            raise ConfigurationError(f"invalid numeric setting: {e}") from e

        settings = cls(
            providers=_parse_list(get("PROVIDERS")),
            timeout=timeout,
            custom_prompt=get("PROMPT", "") or "",
            first=_parse_bool(get("FIRST"), False),
            auto=_parse_bool(get("AUTO"), False),
            dry_run=_parse_bool(get("DRY_RUN"), False),
            exclude=_parse_list(get("EXCLUDE")),
            include_only=_parse_list(get("INCLUDE_ONLY")),
            multi_line=_parse_bool(get("MULTI_LINE"), False),
            push=_parse_bool(get("PUSH"), False),
            tag=(get("TAG", "") or "").strip().lower(),
            use_global_gitignore=_parse_bool(get("USE_GLOBAL_GITIGNORE"), True),
            max_diff_size_bytes=max_diff,
            issue_position=(get("ISSUE_POSITION", "none") or "none").strip().lower(),
            issue_style=(get("ISSUE_STYLE", "plain") or "plain").strip().lower(),
            log_level=(get("LOG_LEVEL", "INFO") or "INFO").upper(),
            repo_path=get("REPO_PATH", ".") or ".",
            openai_model=get("OPENAI_MODEL") or None,
            claude_model=get("CLAUDE_MODEL") or None,
            gemini_model=get("GEMINI_MODEL") or None,
        )

        settings.validate()
        return settings

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ConfigurationError: If any value is invalid
        """
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be greater than zero")

        if self.tag and self.tag.lower() not in INCREMENT_KINDS:
            raise ConfigurationError(
                f"invalid tag increment type: {self.tag} (must be major, minor, or patch)"
            )

        if self.max_diff_size_bytes <= 0:
            raise ConfigurationError("max diff size must be greater than zero")

        if self.issue_position not in POSITIONS:
            raise ConfigurationError(
                f"invalid issue position: {self.issue_position}. Must be one of {POSITIONS}"
            )
        if self.issue_style not in STYLES:
            raise ConfigurationError(
                f"invalid issue style: {self.issue_style}. Must be one of {STYLES}"
            )

        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log_level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}"
            )

    def staging_filter(self) -> StagingFilter:
        return StagingFilter(
            exclude_patterns=list(self.exclude),
            include_patterns=list(self.include_only),
            use_global_ignore=self.use_global_gitignore,
        )
