"""Path matching for include, exclude and global gitignore filtering.

A pattern matches a path when it is a substring of the full path, a
substring of the basename, a glob matching the full path, or a glob
matching the basename, checked in that order. Globs follow shell rules
where ``*`` and ``?`` never cross a ``/``.
"""

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Optional, Sequence


def glob_match(pattern: str, path: str) -> bool:
    """Match ``path`` against a shell glob, segment by segment."""
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(fnmatchcase(name, pat) for pat, name in zip(pattern_parts, path_parts))


def matches_pattern(path: str, pattern: str) -> bool:
    basename = path.rsplit("/", 1)[-1]
    return (
        pattern in path
        or pattern in basename
        or glob_match(pattern, path)
        or glob_match(pattern, basename)
    )


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(path, pattern) for pattern in patterns)


def should_exclude_file(
    path: str,
    exclude_patterns: Sequence[str],
    global_patterns: Sequence[str] = (),
) -> bool:
    """Check global gitignore patterns first, then local exclude patterns."""
    for pattern in global_patterns:
        # Directory patterns from gitignore files
        if pattern.endswith("/") and pattern.rstrip("/") + "/" in path:
            return True
        if matches_pattern(path, pattern):
            return True
    return matches_any(path, exclude_patterns)


def should_include_file(path: str, include_patterns: Sequence[str]) -> bool:
    if not include_patterns:
        return False
    return matches_any(path, include_patterns)


def passes_filter(
    path: str,
    exclude_patterns: Sequence[str],
    include_patterns: Sequence[str],
    global_patterns: Sequence[str] = (),
) -> bool:
    """Return True when ``path`` should be staged."""
    if should_exclude_file(path, exclude_patterns, global_patterns):
        return False
    if include_patterns and not should_include_file(path, include_patterns):
        return False
    return True


def is_simple_glob_pattern(pattern: str) -> bool:
    """A glob without path separators that can be handed to git as-is."""
    return "/" not in pattern and ("*" in pattern or "?" in pattern)


def expand_excludes_path(excludes_file: str, cwd: Optional[str] = None) -> Path:
    """Expand ``~`` and make a configured excludes file path absolute."""
    path = Path(os.path.expanduser(excludes_file))
    if not path.is_absolute():
        path = Path(cwd or os.getcwd()) / path
    return path


def parse_gitignore_file(file_path: Path) -> List[str]:
    """Read exclude patterns from a gitignore-style file.

    Blank lines, comments and negation lines are skipped. A missing file
    yields no patterns.

    Raises:
        OSError: If the file exists but cannot be read
    """
    try:
        content = Path(file_path).read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return []

    patterns: List[str] = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        patterns.append(line)
    return patterns
