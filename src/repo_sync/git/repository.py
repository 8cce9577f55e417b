"""Materialization of git revisions from persistent local mirrors."""

import shutil
from pathlib import Path
from typing import Dict, Optional, Union

from loguru import logger

from ..exceptions import RepoException
from .command import CommandFailure, CommandResult, CommandRunner, ErrorKind, classify_failure
from .mirror import MirrorStore


class GitRepository:
    """A remote git repository accessed through a bare mirror in a MirrorStore."""

    def __init__(
        self,
        repo_url: str,
        store: MirrorStore,
        executable: str = 'git',
        runner: Optional[CommandRunner] = None,
    ):
        """Initialize git repository.

        Args:
            repo_url: URL of the remote repository
            store: Mirror storage shared by all repositories
            executable: Git executable, looked up on PATH if not absolute
            runner: Command runner used to invoke git
        """
        self.repo_url = repo_url
        self.store = store
        self.executable = executable
        self.runner = runner or CommandRunner()
        self.logger = logger.bind(component='GitRepository')

    @property
    def repo_dir(self) -> Path:
        """Directory of the bare mirror for this URL."""
        return self.store.path_for(self.repo_url)

    def lock(self):
        """Reentrant lock serializing operations on this repository's mirror."""
        return self.store.lock(self.repo_url)

    def checkout_reference(self, ref: str, workdir: Union[str, Path]) -> None:
        """Create a work tree with the contents of ``ref``.

        The mirror is created if needed and fetched before checkout. Any
        content already in the workdir is removed.

        Args:
            ref: Reference to check out, e.g. 'origin/master' or a commit SHA
            workdir: Directory receiving the files

        Raises:
            RepoException: If git fails or the reference cannot be resolved
        """
        with self.lock():
            self.fetch()
            self.checkout(ref, workdir)

    def fetch(self) -> Path:
        """Create the mirror if absent and force-fetch the remote into it.

        Local branches tracking the remote are never created; fetched state
        is only reachable through remote refs like 'origin/master'.

        Returns:
            Path to the mirror
        """
        with self.lock():
            base_dir = self.store.ensure_root()
            repo_dir = self.repo_dir
            if not repo_dir.exists():
                self.logger.info(f'Creating mirror for {self.repo_url} at {repo_dir}')
                self.git(base_dir, 'init', '--bare', str(repo_dir))
                self.git(repo_dir, 'remote', 'add', 'origin', self.repo_url)

            self.logger.info(f'Fetching {self.repo_url}')
            self.git(repo_dir, 'fetch', '-f', 'origin')
            return repo_dir

    def checkout(self, ref: str, workdir: Union[str, Path]) -> None:
        """Check out ``ref`` from the already fetched mirror into ``workdir``.

        Args:
            ref: Reference to check out
            workdir: Directory receiving the files. Existing content is removed.
        """
        workdir = Path(workdir)
        with self.lock():
            self.check_ref_exists(ref)
            self._clear_workdir(workdir)
            self.git(
                workdir,
                f'--git-dir={self.repo_dir}',
                f'--work-tree={workdir}',
                'checkout',
                '-f',
                ref,
            )
        self.logger.debug(f'Checked out {ref} into {workdir}')

    def check_ref_exists(self, ref: str) -> None:
        """Verify that ``ref`` resolves to exactly one revision in the mirror.

        Raises:
            RepoException: With a hint to use a remote-qualified ref if not
        """
        try:
            self.git(self.repo_dir, 'rev-parse', '--verify', ref)
        except RepoException as e:
            if e.kind == ErrorKind.NEEDED_SINGLE_REVISION:
                raise RepoException(
                    f"Ref '{ref}' does not exist. If you used a ref like 'master' "
                    f"you should be using 'origin/master' instead",
                    failure=e.failure,
                ) from e
            raise

    def rev_parse(self, ref: str) -> str:
        """Resolve ``ref`` to a full commit SHA."""
        self.check_ref_exists(ref)
        result = self.git(self.repo_dir, 'rev-parse', '--verify', f'{ref}^{{commit}}')
        return result.stdout.strip()

    def try_rev_parse(self, ref: str) -> Optional[str]:
        """Resolve ``ref`` to a commit SHA, or None if it does not exist."""
        result = self.git(
            self.repo_dir,
            'rev-parse',
            '--verify',
            '--quiet',
            f'{ref}^{{commit}}',
            check=False,
        )
        if not result.success:
            return None
        return result.stdout.strip() or None

    def git(
        self,
        cwd: Union[str, Path],
        *args: str,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a git command.

        Args:
            cwd: Working directory
            *args: Git arguments
            env: Extra environment variables
            check: Raise on failure instead of returning the result

        Returns:
            Command result

        Raises:
            RepoException: If the command fails and ``check`` is set
        """
        result = self.runner.run(self.executable, list(args), cwd, env=env)
        if result.success or not check:
            return result

        failure = classify_failure(result)
        raise RepoException(self._describe_failure(failure, result), failure=failure)

    def _describe_failure(self, failure: CommandFailure, result: CommandResult) -> str:
        if failure.kind == ErrorKind.REFERENCE_NOT_FOUND:
            return f"Cannot find reference '{failure.reference}'"
        if failure.kind == ErrorKind.TIMEOUT:
            return (
                f"Timed out after {result.timeout}s executing '{self.executable}' "
                f"{' '.join(result.args[1:])}"
            )
        if failure.kind == ErrorKind.EXECUTION_ERROR:
            return f"Error executing '{self.executable}': {failure.stderr}"
        return (
            f"Error executing '{self.executable}' (exit status {failure.exit_code}): "
            f"{' '.join(result.args[1:])}. Stderr: \n{failure.stderr}"
        )

    def _clear_workdir(self, workdir: Path) -> None:
        """Remove everything inside ``workdir``, creating it if needed."""
        try:
            workdir.mkdir(parents=True, exist_ok=True)
            for child in workdir.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        except OSError as e:
            raise RepoException(f"Cannot prepare workdir '{workdir}': {e}") from e

    def __repr__(self) -> str:
        return (
            f'GitRepository(repo_url={self.repo_url!r}, '
            f'repo_dir={str(self.repo_dir)!r}, executable={self.executable!r})'
        )
