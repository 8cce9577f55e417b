"""Regex based text replacement."""

import re
from pathlib import Path
from typing import Dict, List, Optional, Set

from loguru import logger

from ..exceptions import ConfigValidationException, TransformationError
from ..workflow.path_matcher import PathMatcher
from .base import Transformation

INTERPOLATION_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')


def _placeholders(template: str) -> List[str]:
    return INTERPOLATION_PATTERN.findall(template)


class Replace(Transformation):
    """Replace text matching a template in every selected file.

    ``${name}`` placeholders in ``before`` match the regex bound to ``name``
    in ``regex_groups``; the same placeholders in ``after`` are replaced by
    the captured text.

    Example:
        >>> Replace(before='${x}.internal', after='${x}.public',
        ...         regex_groups={'x': '[a-z]+'})
    """

    def __init__(
        self,
        before: str,
        after: str,
        regex_groups: Optional[Dict[str, str]] = None,
        path: str = '**',
        first_only: bool = False,
        required: bool = True,
        name: Optional[str] = None,
    ):
        """Initialize replace transformation.

        Args:
            before: Template of the text to find
            after: Template of the replacement text
            regex_groups: Regex for each placeholder name
            path: Glob selecting the files to rewrite
            first_only: Only replace the first match in each file
            required: Fail if no file matched

        Raises:
            ConfigValidationException: If the templates and groups are inconsistent
        """
        super().__init__(name)
        self.before = before
        self.after = after
        self.regex_groups = dict(regex_groups or {})
        self.path = path
        self.first_only = first_only
        self.required = required
        self.logger = logger.bind(component='Replace')

        self._validate()
        self._before_regex = self._compile_before()
        self._matcher = PathMatcher([path])

    def _validate(self) -> None:
        before_names = _placeholders(self.before)
        after_names = _placeholders(self.after)
        used: Set[str] = set(before_names)

        for name in before_names + after_names:
            if name not in self.regex_groups:
                raise ConfigValidationException(
                    f"Following interpolation is used but not defined: '{name}'"
                )
        for name in after_names:
            if name not in used:
                raise ConfigValidationException(
                    f"Interpolation '{name}' is used in 'after' but not in 'before'"
                )
        for name in self.regex_groups:
            if name not in used:
                raise ConfigValidationException(
                    f"Regex group '{name}' is defined but not used in 'before'"
                )
        for name, regex in self.regex_groups.items():
            try:
                re.compile(regex)
            except re.error as e:
                raise ConfigValidationException(
                    f"Invalid regex for group '{name}': {e}"
                ) from e

    def _compile_before(self):
        parts = []
        seen: Set[str] = set()
        last = 0
        for match in INTERPOLATION_PATTERN.finditer(self.before):
            parts.append(re.escape(self.before[last : match.start()]))
            name = match.group(1)
            if name in seen:
                parts.append(f'(?P={name})')
            else:
                parts.append(f'(?P<{name}>{self.regex_groups[name]})')
                seen.add(name)
            last = match.end()
        parts.append(re.escape(self.before[last:]))
        return re.compile(''.join(parts))

    def _substitute(self, match) -> str:
        return INTERPOLATION_PATTERN.sub(
            lambda placeholder: match.group(placeholder.group(1)), self.after
        )

    def apply(self, workdir: Path) -> None:
        """Rewrite every selected file of ``workdir``.

        Raises:
            TransformationError: If ``required`` and nothing matched
        """
        workdir = Path(workdir)
        matched_files = 0

        for file_path in self._matcher.find_files(workdir):
            if file_path.is_symlink():
                continue
            try:
                content = file_path.read_bytes().decode('utf-8')
            except UnicodeDecodeError:
                self.logger.debug(f'Skipping non UTF-8 file: {file_path}')
                continue

            new_content, replacements = self._before_regex.subn(
                self._substitute, content, count=1 if self.first_only else 0
            )
            if not replacements:
                continue
            matched_files += 1
            if new_content != content:
                file_path.write_bytes(new_content.encode('utf-8'))

        self.logger.debug(f'{self.describe()} matched {matched_files} file(s)')

        if matched_files == 0 and self.required:
            raise TransformationError(
                f"Cannot find any match for '{self.before}' in {workdir}",
                transformation=self.describe(),
            )

    def describe(self) -> str:
        return f'Replace {self.before!r} -> {self.after!r} in {self.path!r}'
