"""Workflow: migrates origin changes into a destination."""

import time
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from loguru import logger

from ..exceptions import RepoException
from ..models.change import Change
from ..transform.base import Transformation
from .interfaces import Destination, Origin
from .path_matcher import PathMatcher, resolve_patterns


class WorkflowMode(str, Enum):
    """How origin changes are turned into destination commits."""

    SQUASH = 'SQUASH'
    ITERATIVE = 'ITERATIVE'


class Workflow:
    """Moves changes from an origin to a destination.

    In SQUASH mode the tree at the source reference becomes a single
    destination commit. In ITERATIVE mode every origin change after the
    previously migrated reference becomes its own destination commit.
    """

    def __init__(
        self,
        origin: Origin,
        destination: Destination,
        transformations: Iterable[Transformation] = (),
        mode: WorkflowMode = WorkflowMode.SQUASH,
        excluded_origin_paths: Iterable[str] = (),
        previous_ref: Optional[str] = None,
        name: str = 'default',
    ):
        """Initialize workflow.

        Args:
            origin: Origin to read changes from
            destination: Destination receiving the migrated trees
            transformations: Transformations applied in order to every tree
            mode: SQUASH or ITERATIVE
            excluded_origin_paths: Glob patterns of origin files to delete
            previous_ref: Start point for ITERATIVE mode, overriding the destination label
            name: Workflow name
        """
        self._name = name
        self._origin = origin
        self._destination = destination
        self._transformations: Sequence[Transformation] = tuple(transformations)
        self._mode = WorkflowMode(mode)
        self._excluded_origin_paths: Sequence[str] = tuple(excluded_origin_paths)
        self._previous_ref = previous_ref
        self.logger = logger.bind(component='Workflow', workflow=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def origin(self) -> Origin:
        return self._origin

    @property
    def destination(self) -> Destination:
        return self._destination

    @property
    def transformations(self) -> Sequence[Transformation]:
        return self._transformations

    @property
    def mode(self) -> WorkflowMode:
        return self._mode

    @property
    def excluded_origin_paths(self) -> Sequence[str]:
        return self._excluded_origin_paths

    @property
    def previous_ref(self) -> Optional[str]:
        return self._previous_ref

    def run(self, workdir: Union[str, Path], source_ref: str) -> None:
        """Run the workflow up to ``source_ref``.

        Args:
            workdir: Directory used to materialize trees, owned by this call
            source_ref: Last origin reference to migrate

        Raises:
            ConfigValidationException: If an exclusion path escapes the workdir
            RepoException: On any repository, exclusion or transformation failure
        """
        workdir = Path(workdir).absolute()
        excludes = resolve_patterns(workdir, self._excluded_origin_paths)

        self.logger.info(
            f"Running workflow '{self._name}' in {self._mode.value} mode "
            f'up to {source_ref} in {workdir}'
        )

        if self._mode == WorkflowMode.ITERATIVE:
            self._run_iterative(workdir, source_ref, excludes)
        else:
            self._run_squash(workdir, source_ref, excludes)

    def _run_squash(self, workdir: Path, source_ref: str, excludes: PathMatcher) -> None:
        change = self._origin.resolve(source_ref)
        if change.timestamp is None:
            now = int(time.time())
            self.logger.debug(
                f'Origin has no timestamp for {change.reference}, using current time {now}'
            )
            change = replace(change, timestamp=now)

        self._process_change(workdir, change, excludes)

    def _run_iterative(
        self, workdir: Path, source_ref: str, excludes: PathMatcher
    ) -> None:
        label_name = self._origin.label_name
        previous_ref = self._previous_ref
        if previous_ref is None:
            previous_ref = self._destination.previous_ref(label_name)
            if previous_ref is None:
                raise RepoException(
                    f'Previous revision label {label_name} could not be found'
                )
            self.logger.info(f'Resuming from {label_name}: {previous_ref}')

        processed = 0
        for change in self._origin.changes_between(previous_ref, source_ref):
            if change.timestamp is None:
                change = replace(change, timestamp=int(time.time()))
            self._process_change(workdir, change, excludes)
            processed += 1

        if processed == 0:
            self.logger.warning(
                f'No changes to migrate between {previous_ref} and {source_ref}'
            )
        else:
            self.logger.info(f'Migrated {processed} change(s) up to {source_ref}')

    def _process_change(self, workdir: Path, change: Change, excludes: PathMatcher) -> None:
        self.logger.info(f'Migrating change {change}')
        self._origin.materialize(change, workdir)

        if excludes:
            self._remove_excluded_files(workdir, excludes)

        for transformation in self._transformations:
            self.logger.debug(f'Applying {transformation.describe()}')
            transformation.apply(workdir)

        self._destination.process(workdir, change, self._origin.label_name)

    def _remove_excluded_files(self, workdir: Path, excludes: PathMatcher) -> None:
        deleted = excludes.delete_files(workdir)
        if not deleted:
            raise RepoException(
                f'Nothing was deleted in the workdir for exclusion patterns: '
                f'{list(self._excluded_origin_paths)}'
            )
        self.logger.debug(f'Excluded {len(deleted)} file(s) from {workdir}')

    def __str__(self) -> str:
        return (
            f'Workflow(name={self._name!r}, mode={self._mode.value}, '
            f'origin={self._origin!r}, destination={self._destination!r}, '
            f'transformations={list(self._transformations)!r}, '
            f'excluded_origin_paths={list(self._excluded_origin_paths)!r})'
        )

    __repr__ = __str__
