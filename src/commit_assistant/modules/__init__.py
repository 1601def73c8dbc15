"""Commit message transform modules."""

from typing import List

from commit_assistant.modules.base import ModulePipeline, TransformModule
from commit_assistant.modules.conventional import ConventionalHeader, split_subject
from commit_assistant.modules.issue_id import IssueIdDetector, detect_issue_id


def build_modules(issue_position: str = "none", issue_style: str = "plain") -> List[TransformModule]:
    """Construct the enabled modules in the order they run."""
    modules: List[TransformModule] = []
    if issue_position != "none":
        modules.append(IssueIdDetector(issue_position, issue_style))
    return modules


__all__ = [
    "ConventionalHeader",
    "IssueIdDetector",
    "ModulePipeline",
    "TransformModule",
    "build_modules",
    "detect_issue_id",
    "split_subject",
]
