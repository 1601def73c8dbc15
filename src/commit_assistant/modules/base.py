"""Pluggable prompt and commit-message transforms."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from commit_assistant.logging_config import null_logger


class TransformModule(ABC):
    """A rule that may rewrite the prompt or the chosen commit message.

    Both hooks return ``(result, changed)``. A module signals failure by
    raising; the pipeline then keeps the previous value.
    """

    name: str = ""

    def transform_prompt(self, prompt: str) -> Tuple[str, bool]:
        return prompt, False

    @abstractmethod
    def transform_commit_message(self, branch: str, message: str) -> Tuple[str, bool]:
        ...


class ModulePipeline:
    """Applies modules in order; a failing module is logged and skipped."""

    def __init__(self, modules: Sequence[TransformModule] = (), logger: Optional[logging.Logger] = None):
        self.modules: List[TransformModule] = list(modules)
        self.logger = logger or null_logger()

    def __len__(self) -> int:
        return len(self.modules)

    def transform_prompt(self, prompt: str) -> str:
        for module in self.modules:
            try:
                result, changed = module.transform_prompt(prompt)
            except Exception as e:
                self.logger.warning(
                    "Module failed to transform prompt",
                    extra={"transform_module": module.name, "error": str(e)},
                )
                continue
            if changed:
                self.logger.debug("Prompt transformed", extra={"transform_module": module.name})
                prompt = result
        return prompt

    def transform_commit_message(self, branch: str, message: str) -> str:
        for module in self.modules:
            try:
                result, changed = module.transform_commit_message(branch, message)
            except Exception as e:
                self.logger.warning(
                    "Module failed to transform commit message",
                    extra={"transform_module": module.name, "error": str(e)},
                )
                continue
            if changed:
                self.logger.debug("Commit message transformed", extra={"transform_module": module.name})
                message = result
        return message
