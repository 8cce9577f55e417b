"""Migration engine - main entry point for migration operations."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from ..config.config import Config, TransformationConfig
from ..exceptions import ConfigValidationException
from ..git.command import CommandRunner
from ..git.destination import GitDestination
from ..git.mirror import MirrorStore
from ..git.origin import GitOrigin
from ..git.repository import GitRepository
from ..transform.base import Transformation
from ..transform.replace import Replace
from .workflow import Workflow, WorkflowMode


def build_transformation(config: TransformationConfig) -> Transformation:
    """Create a transformation from its configuration.

    Raises:
        ConfigValidationException: If the type is unknown or the settings are invalid
    """
    if config.type == 'replace':
        return Replace(
            before=config.before,
            after=config.after,
            regex_groups=config.regex_groups,
            path=config.path,
            first_only=config.first_only,
            required=config.required,
        )
    raise ConfigValidationException(f'Unknown transformation type: {config.type}')


class MigrationEngine:
    """Builds a workflow from configuration and runs it."""

    def __init__(
        self,
        config: Config,
        runner: Optional[CommandRunner] = None,
        previous_ref: Optional[str] = None,
        mode: Optional[WorkflowMode] = None,
    ):
        """Initialize migration engine.

        Args:
            config: Migration configuration
            runner: Command runner for git, created from the git settings if omitted
            previous_ref: Overrides the configured ITERATIVE start point
            mode: Overrides the configured workflow mode
        """
        self.config = config
        self.logger = logger.bind(component='MigrationEngine')

        git = config.git
        self.runner = runner or CommandRunner(timeout=git.timeout, verbose=git.verbose)
        self.store = MirrorStore(git.repo_storage)

        self.origin = GitOrigin(
            GitRepository(config.origin.url, self.store, git.executable, self.runner),
            ref=config.origin.ref,
        )
        self.destination = GitDestination(
            GitRepository(config.destination.url, self.store, git.executable, self.runner),
            fetch=config.destination.fetch,
            push=config.destination.push,
            user_name=git.user_name,
            user_email=git.user_email,
        )
        self.transformations: List[Transformation] = [
            build_transformation(t) for t in config.transformations
        ]

        settings = config.workflow
        self.workflow = Workflow(
            origin=self.origin,
            destination=self.destination,
            transformations=self.transformations,
            mode=mode or settings.mode,
            excluded_origin_paths=settings.excluded_origin_paths,
            previous_ref=previous_ref or settings.previous_ref,
            name=settings.name,
        )

    def migrate(
        self,
        workdir: Optional[Union[str, Path]] = None,
        source_ref: Optional[str] = None,
    ) -> str:
        """Run the workflow.

        Args:
            workdir: Work tree directory, a temporary one is used if omitted
            source_ref: Last origin reference to migrate, origin head if omitted

        Returns:
            The origin reference migrated up to
        """
        self.logger.info(f'Starting migration: {self.workflow}')

        temp_dir = None
        try:
            if source_ref is None:
                source_ref = self.origin.head()
                self.logger.info(f'Using origin head {source_ref}')

            if workdir is None:
                temp_dir = self._create_temp_directory()
                workdir = temp_dir
                self.logger.info(f'Created temporary directory: {temp_dir}')

            self.workflow.run(workdir, source_ref)
            self.logger.info(f'Migration up to {source_ref} completed successfully')
            return source_ref

        except Exception as e:
            self.logger.error(f'Migration failed: {e}')
            raise
        finally:
            if temp_dir and self.config.git.cleanup_temp:
                self._cleanup_temp_directory(temp_dir)

    def _create_temp_directory(self) -> str:
        """Create temporary directory for the work tree.

        Returns:
            Path to temporary directory
        """
        if self.config.git.temp_dir:
            base_dir = Path(self.config.git.temp_dir)
            base_dir.mkdir(parents=True, exist_ok=True)
            return tempfile.mkdtemp(prefix='repo_sync_', dir=base_dir)
        return tempfile.mkdtemp(prefix='repo_sync_')

    def _cleanup_temp_directory(self, temp_path: str) -> None:
        """Clean up temporary directory.

        Args:
            temp_path: Path to temporary directory
        """
        try:
            if os.path.exists(temp_path):
                shutil.rmtree(temp_path)
                self.logger.debug(f'Cleaned up temporary directory: {temp_path}')
        except OSError as e:
            self.logger.warning(
                f'Failed to cleanup temporary directory {temp_path}: {e}'
            )
