"""Tests for the console selector."""

import io

import pytest

from commit_assistant.ui import ConsoleSelector, SelectionCancelled, SelectionResult


MESSAGES = {"openai": "feat: add login\n\n- add form", "claude": "feat(auth): add login"}
OPTIONS = {"dry_run": False, "push": False, "tag_major": False, "tag_minor": False, "tag_patch": False}


def scripted(*answers):
    """Input function returning ``answers`` in order."""
    remaining = list(answers)

    def input_func(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return input_func


class TestConsoleSelector:
    """Tests for ConsoleSelector with scripted input."""

    def select(self, *answers, options=OPTIONS):
        output = io.StringIO()
        selector = ConsoleSelector(input_func=scripted(*answers), output=output)
        return selector.select(MESSAGES, options), output.getvalue()

    def test_candidates_listed_by_provider_name(self):
        _, shown = self.select("1")

        assert shown.index("[1] (claude) feat(auth): add login") < shown.index("[2] (openai) feat: add login")
        assert "    - add form" in shown

    def test_pick_by_number(self):
        result, _ = self.select("2")

        assert result.message == MESSAGES["openai"]
        assert result.options == OPTIONS

    def test_toggle_options(self):
        result, shown = self.select("p", "d", "1")

        assert result.options["push"] is True
        assert result.options["dry_run"] is True
        assert "p:push=on" in shown

    def test_tag_options_exclusive(self):
        result, _ = self.select("M", "t", "1")

        assert result.options["tag_major"] is False
        assert result.options["tag_patch"] is True
        assert result.tag_kind() == "patch"

    def test_invalid_input_reprompts(self):
        result, shown = self.select("7", "x", "1")

        assert result.message == MESSAGES["claude"]
        assert "Enter 1-2, an option key or q" in shown

    def test_quit(self):
        with pytest.raises(SelectionCancelled):
            self.select("q")

    def test_end_of_input(self):
        with pytest.raises(SelectionCancelled):
            self.select()

    def test_keyboard_interrupt(self):
        def interrupted(prompt):
            raise KeyboardInterrupt

        with pytest.raises(SelectionCancelled):
            ConsoleSelector(input_func=interrupted, output=io.StringIO()).select(MESSAGES, OPTIONS)

    def test_defaults_not_mutated(self):
        options = dict(OPTIONS)

        self.select("p", "1", options=options)

        assert options["push"] is False


class TestSelectionResult:
    def test_no_tag(self):
        assert SelectionResult("m", {"push": True}).tag_kind() == ""
