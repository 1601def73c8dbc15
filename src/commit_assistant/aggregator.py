"""Concurrent fan-out of one prompt to several text-generation providers."""

import asyncio
import logging
import random
import time
from typing import Callable, Dict, Mapping, Optional, Sequence

from commit_assistant.errors import PreconditionError
from commit_assistant.logging_config import null_logger
from commit_assistant.prompts import build_prompt
from commit_assistant.providers.base import Provider


class ProviderAggregator:
    """Asks every selected provider in parallel and collects their messages.

    Each provider call is bounded by ``timeout`` seconds. A provider that
    fails, times out or returns nothing usable is left out of the result;
    that is logged, never raised.
    """

    def __init__(
        self,
        providers: Mapping[str, Provider],
        timeout: float = 10.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.providers = dict(providers)
        self.timeout = timeout
        self.logger = logger or null_logger()

    def num_providers(self) -> int:
        return len(self.providers)

    def filter_providers(self, requested: Sequence[str] = ()) -> Dict[str, Provider]:
        """Select providers by case-insensitive name.

        An empty request selects every configured provider; unknown names
        are dropped.
        """
        if not requested:
            return dict(self.providers)
        wanted = {name.strip().lower() for name in requested if name.strip()}
        if not wanted:
            return dict(self.providers)
        return {name: provider for name, provider in self.providers.items() if name.lower() in wanted}

    async def _ask(self, name: str, provider: Provider, prompt: str) -> str:
        start = time.time()
        try:
            candidates = await asyncio.wait_for(provider.ask(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                "Provider timed out",
                extra={"provider": name, "timeout_seconds": self.timeout},
            )
            return ""
        except Exception as e:
            self.logger.warning(
                "Provider failed",
                extra={"provider": name, "error": str(e), "error_type": type(e).__name__},
            )
            return ""

        message = next((c.strip() for c in candidates or [] if c and c.strip()), "")
        self.logger.debug(
            "Provider answered",
            extra={
                "provider": name,
                "duration_seconds": round(time.time() - start, 3),
                "empty": not message,
            },
        )
        return message

    async def generate_commit_messages(
        self,
        diff: str,
        branch: str,
        files: Sequence[str],
        requested: Sequence[str] = (),
        custom_prompt: str = "",
        first_only: bool = False,
        multi_line: bool = False,
        prompt_transform: Optional[Callable[[str], str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, str]:
        """Generate one candidate message per provider.

        Args:
            diff: Staged diff text
            branch: Current branch name
            files: Staged file paths
            requested: Provider names to use, empty for all
            custom_prompt: Template overriding the built-in prompt
            first_only: Return as soon as one provider succeeds
            multi_line: Ask for a subject plus body instead of one line
            prompt_transform: Applied to the prompt before dispatch
            cancel_event: When set, outstanding calls are abandoned and an
                empty mapping is returned

        Returns:
            Mapping from provider name to message. In first-only mode it
            holds at most one entry.

        Raises:
            PreconditionError: If no configured provider was selected
        """
        selected = self.filter_providers(requested)
        if not selected:
            raise PreconditionError("no ai providers available")

        if cancel_event is not None and cancel_event.is_set():
            return {}

        prompt = build_prompt(diff, branch, files, multi_line=multi_line, custom_prompt=custom_prompt)
        if prompt_transform is not None:
            prompt = prompt_transform(prompt)

        tasks = {
            asyncio.ensure_future(self._ask(name, provider, prompt)): name
            for name, provider in selected.items()
        }
        cancel_waiter = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None

        pending = set(tasks)
        messages: Dict[str, str] = {}
        try:
            while pending:
                waiting = pending | {cancel_waiter} if cancel_waiter is not None else pending
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if cancel_waiter is not None and cancel_waiter in done:
                    self.logger.info("Provider requests cancelled", extra={"pending": len(pending)})
                    return {}

                for task in done:
                    pending.discard(task)
                    message = task.result()
                    if not message:
                        continue
                    messages[tasks[task]] = message
                    if first_only:
                        self.logger.debug(
                            "First provider answered, cancelling the rest",
                            extra={"provider": tasks[task], "cancelled": len(pending)},
                        )
                        return messages
            return messages
        finally:
            leftovers = list(pending)
            if cancel_waiter is not None:
                leftovers.append(cancel_waiter)
            for task in leftovers:
                task.cancel()
            if leftovers:
                await asyncio.gather(*leftovers, return_exceptions=True)


def pick_random_message(messages: Mapping[str, str], rng: Optional[random.Random] = None) -> str:
    """Pick one message uniformly at random.

    Messages are ordered by provider name first so that a seeded ``rng``
    gives the same pick on every run.
    """
    if not messages:
        return ""
    rng = rng or random.Random()
    _name, message = rng.choice(sorted(messages.items()))
    return message
