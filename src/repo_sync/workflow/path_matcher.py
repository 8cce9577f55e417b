"""Glob matching over relative paths and exclusion pattern resolution.

Patterns use '/' as separator and support:
- ``*``: any characters within one path segment
- ``**``: zero or more path segments
- ``?``: one character within a segment
- ``[abc]``: a character class
- ``{a,b}``: alternatives

Example:
    >>> matcher = PathMatcher(['folder/**/*.java'])
    >>> matcher.matches('folder/a/b/Test.java')
    True
    >>> matcher.matches('folder2/Test.java')
    False
"""

import os
import re
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Pattern, Union

from ..exceptions import ConfigValidationException, RepoException


def glob_to_regex(pattern: str) -> str:
    """Translate a glob pattern into a regular expression matching whole paths."""
    i = 0
    n = len(pattern)
    parts: List[str] = []
    brace_depth = 0

    while i < n:
        c = pattern[i]
        if c == '*':
            if pattern.startswith('**', i):
                i += 2
                at_segment_start = i - 2 == 0 or pattern[i - 3] == '/'
                if at_segment_start and i < n and pattern[i] == '/':
                    # '**/' matches zero or more leading segments
                    parts.append('(?:.*/)?')
                    i += 1
                else:
                    parts.append('.*')
                continue
            parts.append('[^/]*')
        elif c == '?':
            parts.append('[^/]')
        elif c == '[':
            end = pattern.find(']', i + 1)
            if end == -1:
                parts.append(re.escape(c))
            else:
                body = pattern[i + 1 : end]
                if body.startswith('!'):
                    body = '^' + body[1:]
                parts.append(f'[{body}]')
                i = end
        elif c == '{':
            brace_depth += 1
            parts.append('(?:')
        elif c == '}' and brace_depth:
            brace_depth -= 1
            parts.append(')')
        elif c == ',' and brace_depth:
            parts.append('|')
        else:
            parts.append(re.escape(c))
        i += 1

    if brace_depth:
        raise ConfigValidationException(f"Unbalanced '{{' in glob pattern '{pattern}'")

    return ''.join(parts)


class PathMatcher:
    """Predicate over relative POSIX paths built from glob patterns."""

    def __init__(self, patterns: Iterable[str]):
        self.patterns = list(patterns)
        self._compiled: List[Pattern] = []
        for pattern in self.patterns:
            try:
                self._compiled.append(re.compile(glob_to_regex(pattern)))
            except re.error as e:
                raise ConfigValidationException(
                    f"Invalid glob pattern '{pattern}': {e}"
                ) from e

    def matches(self, relative_path: Union[str, PurePosixPath]) -> bool:
        """Check whether ``relative_path`` matches any pattern."""
        path = str(relative_path)
        return any(regex.fullmatch(path) for regex in self._compiled)

    def find_files(self, root: Path) -> List[Path]:
        """List files and symlinks under ``root`` matching any pattern.

        Directories are never returned.
        """
        found = []
        for dirpath, dirnames, filenames in os.walk(root):
            base = Path(dirpath)
            names = list(filenames)
            names.extend(d for d in dirnames if (base / d).is_symlink())
            for name in names:
                path = base / name
                if self.matches(path.relative_to(root).as_posix()):
                    found.append(path)
        return sorted(found)

    def delete_files(self, root: Path) -> List[Path]:
        """Delete the files under ``root`` matching any pattern.

        Directories, including ones left empty, are kept.

        Returns:
            Deleted paths
        """
        deleted = []
        for path in self.find_files(root):
            try:
                path.unlink()
            except OSError as e:
                raise RepoException(f"Cannot delete excluded file '{path}': {e}") from e
            deleted.append(path)
        return deleted

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f'PathMatcher({self.patterns!r})'


def resolve_patterns(workdir: Path, patterns: Iterable[str]) -> PathMatcher:
    """Resolve exclusion patterns against ``workdir``.

    Each pattern is normalized relative to the workdir root and rewritten
    as a path relative to it.

    Raises:
        ConfigValidationException: If a pattern resolves outside the workdir
    """
    root = Path(os.path.abspath(workdir))
    relative_patterns = []
    for pattern in patterns:
        resolved = Path(os.path.normpath(root / pattern))
        try:
            relative = resolved.relative_to(root)
        except ValueError:
            raise ConfigValidationException(
                f"Exclusion path '{pattern}' resolves to '{resolved}', "
                f"which is not relative to '{root}'"
            ) from None
        relative_patterns.append(relative.as_posix())
    return PathMatcher(relative_patterns)
