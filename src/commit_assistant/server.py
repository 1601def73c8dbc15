"""MCP tool server exposing the commit workflow over stdio."""

from dataclasses import asdict
from typing import Callable, List, Optional

from fastmcp import FastMCP

from commit_assistant.config import CommitSettings
from commit_assistant.errors import CommitAssistantError
from commit_assistant.logging_config import get_logger, set_run_id
from commit_assistant.workflow import CommitService, build_service

# Get logger for this module
logger = get_logger(__name__)

# Initialize FastMCP server
mcp = FastMCP("commit-assistant")

ServiceFactory = Callable[..., CommitService]


def _load_settings(repository_path: str, **overrides) -> CommitSettings:
    """Environment settings for one tool call, with per-call overrides."""
    settings = CommitSettings.from_env()
    settings.repo_path = repository_path
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    settings.validate()
    return settings


async def execute_suggest_commit_messages(
    repository_path: str = ".",
    providers: Optional[List[str]] = None,
    multi_line: bool = False,
    service_factory: ServiceFactory = build_service,
) -> dict:
    """Stage changes and return candidate messages without committing.

    Returns:
        Dictionary with ``success``, ``staged_files``, ``branch``,
        ``suggestions`` and ``message``, or ``success`` False and ``error``
    """
    set_run_id()
    try:
        settings = _load_settings(repository_path, providers=providers, multi_line=multi_line)
        service = service_factory(settings, logger=logger)

        prepared = service.prepare()
        if prepared is None:
            return {
                "success": True,
                "staged_files": [],
                "branch": None,
                "suggestions": {},
                "message": "Nothing to commit",
            }

        suggestions = await service.suggest(prepared)
        return {
            "success": True,
            "staged_files": prepared.staged_files,
            "branch": prepared.branch,
            "suggestions": suggestions,
            "message": f"{len(suggestions)} suggestion(s) generated" if suggestions else "No suggestions generated",
        }
    except CommitAssistantError as e:
        logger.error("Suggestion failed", extra={"error": str(e)})
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("Unexpected error during suggestion", extra={"error": str(e)})
        return {"success": False, "error": f"Unexpected error: {e}"}


async def execute_commit_changes(
    repository_path: str = ".",
    push: bool = False,
    tag: str = "",
    dry_run: bool = False,
    service_factory: ServiceFactory = build_service,
) -> dict:
    """Run the workflow in auto mode and report the outcome.

    Returns:
        The CommitOutcome fields plus ``success``, or ``success`` False and
        ``error``
    """
    set_run_id()
    try:
        settings = _load_settings(
            repository_path,
            auto=True,
            push=push,
            tag=(tag or "").lower(),
            dry_run=dry_run,
        )
        service = service_factory(settings, logger=logger)
        outcome = await service.execute()
        return {"success": True, **asdict(outcome)}
    except CommitAssistantError as e:
        logger.error("Commit failed", extra={"error": str(e)})
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("Unexpected error during commit", extra={"error": str(e)})
        return {"success": False, "error": f"Unexpected error: {e}"}


@mcp.tool()
async def suggest_commit_messages(
    repository_path: str = ".",
    providers: Optional[List[str]] = None,
    multi_line: bool = False,
) -> dict:
    """
    Stage the repository's changes and ask the configured AI providers for commit messages.

    Nothing is committed. Staging honours the COMMIT_EXCLUDE,
    COMMIT_INCLUDE_ONLY and COMMIT_USE_GLOBAL_GITIGNORE settings.

    Args:
        repository_path: Path inside the Git repository (default: current directory)
        providers: Provider names to ask (default: every configured provider)
        multi_line: Ask for a subject line plus a body

    Returns:
        Dictionary containing:
            - success: Whether the operation completed successfully
            - staged_files: Paths that were staged
            - branch: Current branch name
            - suggestions: Candidate messages keyed by provider
            - message: Human-readable status message
            - error: Error message if operation failed
    """
    return await execute_suggest_commit_messages(repository_path, providers, multi_line)


@mcp.tool()
async def commit_changes(
    repository_path: str = ".",
    push: bool = False,
    tag: str = "",
    dry_run: bool = False,
) -> dict:
    """
    Stage changes, pick a generated commit message and commit.

    Args:
        repository_path: Path inside the Git repository (default: current directory)
        push: Push the branch (and the new tag) to origin after committing
        tag: Bump and create a version tag: "major", "minor", "patch" or "" for none
        dry_run: Do everything except commit, push and tag

    Returns:
        Dictionary containing:
            - success: Whether the operation completed successfully
            - committed: Whether a commit was created
            - commit_message: The final commit message
            - staged_files: Paths that were staged
            - suggestions: Candidate messages keyed by provider
            - pushed: Whether the branch was pushed
            - merge_request_url: URL for opening a merge/pull request
            - tag: Tag created, if any
            - message: Human-readable status message
            - error: Error message if operation failed
    """
    return await execute_commit_changes(repository_path, push, tag, dry_run)


def run_stdio_server() -> None:
    """Run the MCP server over stdio."""
    mcp.run(transport="stdio")
