"""Commit workflow: checks, staging, suggestions, selection, commit, push and tag."""

import asyncio
import logging
import random
from typing import Dict, Optional, Tuple

from commit_assistant.aggregator import ProviderAggregator, pick_random_message
from commit_assistant.config import CommitSettings
from commit_assistant.errors import CommitAssistantError, NoSuggestionsError, PreconditionError
from commit_assistant.git_operations import GitWorkspace
from commit_assistant.logging_config import null_logger
from commit_assistant.models import CommitOutcome, PreparedChange, RepositoryState
from commit_assistant.modules import ModulePipeline
from commit_assistant.ui import (
    OPTION_DRY_RUN,
    OPTION_PUSH,
    OPTION_TAG_MAJOR,
    OPTION_TAG_MINOR,
    OPTION_TAG_PATCH,
    SelectionCancelled,
    Selector,
)


class CommitService:
    """Runs one commit from a clean index to an optional pushed tag.

    Every check happens before the repository is changed. Once the commit
    is written, a failing push or tag aborts the run without undoing the
    steps already done.
    """

    def __init__(
        self,
        settings: CommitSettings,
        workspace: GitWorkspace,
        aggregator: ProviderAggregator,
        selector: Optional[Selector] = None,
        pipeline: Optional[ModulePipeline] = None,
        logger: Optional[logging.Logger] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings
        self.workspace = workspace
        self.aggregator = aggregator
        self.selector = selector
        self.logger = logger or null_logger()
        self.pipeline = pipeline or ModulePipeline(logger=self.logger)
        self.rng = rng or random.Random()

    def check_preconditions(self) -> None:
        """Raise PreconditionError unless the repository can take a commit."""
        if self.aggregator.num_providers() == 0:
            self.logger.warning("No providers configured")
            raise PreconditionError("no api keys found in environment")

        if not self.workspace.is_repository():
            raise PreconditionError("not a git repository")

        state = self.workspace.get_state()
        if state != RepositoryState.NORMAL:
            self.logger.error("Repository not in normal state", extra={"state": state.value})
            raise PreconditionError(f"repository is in {state.value} state, cannot create commit")

        if self.workspace.has_conflicts():
            self.logger.error("Unresolved conflicts detected")
            raise PreconditionError("unresolved conflicts detected")

    def prepare(self) -> Optional[PreparedChange]:
        """Check preconditions, restage from scratch and fit the diff.

        Returns:
            The staged change, or None when there is nothing to commit
        """
        self.check_preconditions()

        self.logger.debug("Unstaging all files")
        self.workspace.unstage_all()

        self.logger.debug("Staging files")
        staged_files = self.workspace.stage_files(self.settings.staging_filter())
        if not staged_files:
            self.logger.warning("No files to commit")
            return None

        diff = self.workspace.get_staged_diff(self.settings.max_diff_size_bytes)
        if not diff.strip():
            self.logger.warning("No changes staged for commit")
            return None

        return PreparedChange(
            staged_files=staged_files,
            diff=diff,
            branch=self.workspace.get_current_branch(),
        )

    async def suggest(
        self,
        prepared: PreparedChange,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, str]:
        self.logger.debug("Requesting commit messages", extra={"files": len(prepared.staged_files)})
        return await self.aggregator.generate_commit_messages(
            prepared.diff,
            prepared.branch,
            prepared.staged_files,
            requested=self.settings.providers,
            custom_prompt=self.settings.custom_prompt,
            first_only=self.settings.first,
            multi_line=self.settings.multi_line,
            prompt_transform=self.pipeline.transform_prompt,
            cancel_event=cancel_event,
        )

    def default_options(self) -> Dict[str, bool]:
        dry_run = self.settings.dry_run
        tag = self.settings.tag.lower()
        return {
            OPTION_DRY_RUN: dry_run,
            OPTION_PUSH: not dry_run and self.settings.push,
            OPTION_TAG_MAJOR: not dry_run and tag == "major",
            OPTION_TAG_MINOR: not dry_run and tag == "minor",
            OPTION_TAG_PATCH: not dry_run and tag == "patch",
        }

    def choose(self, messages: Dict[str, str]) -> Tuple[str, bool, bool, str]:
        """Pick the message and the final dry-run, push and tag settings.

        Raises:
            NoSuggestionsError: If there is nothing to choose from
            SelectionCancelled: If the user quits the selector
        """
        if not messages:
            raise NoSuggestionsError("no valid suggestions available")

        if self.settings.auto or self.selector is None:
            message = pick_random_message(messages, self.rng)
            self.logger.debug("Auto-selected commit message", extra={"commit_message": message})
            return message, self.settings.dry_run, self.settings.push, self.settings.tag.lower()

        self.logger.debug("Using interactive mode")
        selection = self.selector.select(messages, self.default_options())
        return (
            selection.message,
            selection.options.get(OPTION_DRY_RUN, False),
            selection.options.get(OPTION_PUSH, False),
            selection.tag_kind(),
        )

    def finalize(
        self,
        message: str,
        branch: str,
        dry_run: bool,
        push: bool,
        tag: str,
        outcome: CommitOutcome,
    ) -> CommitOutcome:
        """Transform the message, then commit, push and tag unless dry-running."""
        if not message:
            self.logger.warning("No commit message provided")
            raise NoSuggestionsError("no commit message provided")

        message = self.pipeline.transform_commit_message(branch, message).strip()
        outcome.commit_message = message
        outcome.dry_run = dry_run

        if dry_run:
            self.logger.warning("Dry run enabled, no side effects created")
            self.logger.info("Final commit message", extra={"commit_message": message})
            outcome.message = "Dry run: no commit created"
            return outcome

        self.workspace.create_commit(message)
        outcome.committed = True
        self.logger.info("Commit created", extra={"commit_message": message})

        if push:
            outcome.merge_request_url = self.workspace.push()
            outcome.pushed = True
            self.logger.info("Successfully pushed to remote")
            if outcome.merge_request_url:
                self.logger.info("Create merge/pull request", extra={"url": outcome.merge_request_url})

        if tag:
            latest_tag = self.workspace.get_latest_tag()
            if latest_tag:
                self.logger.info("Latest tag found", extra={"tag": latest_tag})
            else:
                self.logger.warning("No existing tags found, will create first tag")

            new_tag = self.workspace.increment_version(latest_tag, tag)
            self.workspace.create_tag(new_tag, message)
            outcome.tag = new_tag
            self.logger.info("Tag created", extra={"tag": new_tag})

            if push:
                self.workspace.push_tag(new_tag)
                self.logger.info("Tag pushed to remote", extra={"tag": new_tag})

        outcome.message = "Commit created"
        return outcome

    async def execute(self, cancel_event: Optional[asyncio.Event] = None) -> CommitOutcome:
        """Run the whole workflow.

        Returns:
            What was done. Nothing to commit, a user cancellation and a
            dry run all return normally.

        Raises:
            CommitAssistantError: On any failing check or git, signing or
                provider aggregation error
        """
        outcome = CommitOutcome(dry_run=self.settings.dry_run)
        try:
            prepared = self.prepare()
            if prepared is None:
                outcome.message = "Nothing to commit"
                return outcome
            outcome.staged_files = prepared.staged_files

            messages = await self.suggest(prepared, cancel_event)
            outcome.suggestions = messages
            if cancel_event is not None and cancel_event.is_set():
                outcome.message = "Cancelled"
                return outcome

            try:
                message, dry_run, push, tag = self.choose(messages)
            except SelectionCancelled:
                self.logger.warning("Interactive mode canceled by user")
                outcome.message = "Cancelled by user"
                return outcome

            return self.finalize(message, prepared.branch, dry_run, push, tag, outcome)
        except CommitAssistantError as e:
            self.logger.error("Commit workflow failed", extra={"error": str(e), "error_type": type(e).__name__})
            raise


def build_service(
    settings: CommitSettings,
    selector: Optional[Selector] = None,
    logger: Optional[logging.Logger] = None,
) -> CommitService:
    """Wire a CommitService from settings and the process environment."""
    from commit_assistant.modules import build_modules
    from commit_assistant.providers import build_providers

    logger = logger or null_logger()
    providers = build_providers(
        openai_model=settings.openai_model,
        claude_model=settings.claude_model,
        gemini_model=settings.gemini_model,
    )
    return CommitService(
        settings=settings,
        workspace=GitWorkspace(settings.repo_path, logger=logger),
        aggregator=ProviderAggregator(providers, timeout=settings.timeout, logger=logger),
        selector=selector,
        pipeline=ModulePipeline(build_modules(settings.issue_position, settings.issue_style), logger=logger),
        logger=logger,
    )
