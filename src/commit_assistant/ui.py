"""Interactive selection of a commit message and run options."""

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Protocol, TextIO, Tuple


OPTION_DRY_RUN = "dry_run"
OPTION_PUSH = "push"
OPTION_TAG_MAJOR = "tag_major"
OPTION_TAG_MINOR = "tag_minor"
OPTION_TAG_PATCH = "tag_patch"
TAG_OPTIONS = (OPTION_TAG_MAJOR, OPTION_TAG_MINOR, OPTION_TAG_PATCH)

# key -> (option id, label)
OPTION_KEYS: Dict[str, Tuple[str, str]] = {
    "d": (OPTION_DRY_RUN, "dry run"),
    "p": (OPTION_PUSH, "push"),
    "M": (OPTION_TAG_MAJOR, "tag major"),
    "m": (OPTION_TAG_MINOR, "tag minor"),
    "t": (OPTION_TAG_PATCH, "tag patch"),
}


class SelectionCancelled(Exception):
    """The user quit the selection; nothing should be changed."""


@dataclass
class SelectionResult:
    message: str
    options: Dict[str, bool] = field(default_factory=dict)

    def tag_kind(self) -> str:
        """Version part chosen through the tag options, or ""."""
        for option in TAG_OPTIONS:
            if self.options.get(option):
                return option[len("tag_"):]
        return ""


class Selector(Protocol):
    def select(self, messages: Mapping[str, str], options: Mapping[str, bool]) -> SelectionResult:
        """Return the chosen message and final option values.

        Raises:
            SelectionCancelled: If the user quits
        """
        ...


class ConsoleSelector:
    """Line-based selector for terminals.

    Candidates are numbered; option keys toggle settings; ``q`` quits.
    """

    def __init__(self, input_func: Callable[[str], str] = input, output: TextIO = sys.stdout):
        self.input_func = input_func
        self.output = output

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def _show(self, names: List[str], messages: Mapping[str, str], options: Dict[str, bool]) -> None:
        self._print()
        for i, name in enumerate(names, 1):
            lines = messages[name].split("\n")
            self._print(f"[{i}] ({name}) {lines[0]}")
            for line in lines[1:]:
                if line.strip():
                    self._print(f"    {line}")
        self._print()
        toggles = "  ".join(
            f"{key}:{label}={'on' if options.get(option) else 'off'}"
            for key, (option, label) in OPTION_KEYS.items()
            if option in options
        )
        if toggles:
            self._print(f"Options  {toggles}")

    def _toggle(self, options: Dict[str, bool], option: str) -> None:
        enabled = not options.get(option, False)
        if enabled and option in TAG_OPTIONS:
            for other in TAG_OPTIONS:
                if other in options:
                    options[other] = False
        options[option] = enabled

    def select(self, messages: Mapping[str, str], options: Mapping[str, bool]) -> SelectionResult:
        names = sorted(messages)
        if not names:
            raise SelectionCancelled("no messages to choose from")
        current = dict(options)

        self._show(names, messages, current)
        while True:
            try:
                choice = self.input_func(f"Select [1-{len(names)}], toggle an option or (q)uit: ").strip()
            except (KeyboardInterrupt, EOFError) as e:
                raise SelectionCancelled("selection aborted") from e

            if choice.lower() == "q":
                raise SelectionCancelled("selection cancelled")

            if choice in OPTION_KEYS and OPTION_KEYS[choice][0] in current:
                self._toggle(current, OPTION_KEYS[choice][0])
                self._show(names, messages, current)
                continue

            if choice.isdigit() and 1 <= int(choice) <= len(names):
                return SelectionResult(message=messages[names[int(choice) - 1]], options=current)

            self._print(f"Enter 1-{len(names)}, an option key or q")
