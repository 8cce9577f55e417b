"""Git repository as a workflow destination."""

import re
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from ..models.change import Change
from ..workflow.interfaces import Destination
from .repository import GitRepository


class GitDestination(Destination):
    """Commits migrated trees on top of a branch and pushes them."""

    def __init__(
        self,
        repository: GitRepository,
        fetch: str = 'master',
        push: str = 'master',
        user_name: str = 'repo-sync',
        user_email: str = 'repo-sync@localhost',
    ):
        """Initialize git destination.

        Args:
            repository: Destination repository
            fetch: Branch the new commit is based on
            push: Branch the new commit is pushed to
            user_name: Author and committer name
            user_email: Author and committer email
        """
        self.repository = repository
        self.fetch = fetch
        self.push = push
        self.user_name = user_name
        self.user_email = user_email
        self.logger = logger.bind(component='GitDestination')

    def process(self, workdir: Path, change: Change, label_name: str) -> None:
        """Commit ``workdir`` on top of the fetch branch and push it."""
        workdir = Path(workdir)
        repo = self.repository

        with repo.lock():
            repo_dir = repo.fetch()
            parent = repo.try_rev_parse(f'origin/{self.fetch}')
            work_tree_args = (f'--git-dir={repo_dir}', f'--work-tree={workdir}')

            repo.git(workdir, *work_tree_args, 'read-tree', parent or '--empty')
            repo.git(workdir, *work_tree_args, 'add', '--all', '--force', '.')
            tree = repo.git(workdir, *work_tree_args, 'write-tree').stdout.strip()

            commit_args = ['commit-tree', tree, '-m', self._message(change, label_name)]
            if parent:
                commit_args[2:2] = ['-p', parent]
            commit = repo.git(
                repo_dir, *commit_args, env=self._commit_env(change)
            ).stdout.strip()

            repo.git(repo_dir, 'push', 'origin', f'{commit}:refs/heads/{self.push}')

        self.logger.info(
            f'Pushed {commit[:12]} to {repo.repo_url} {self.push} '
            f'({label_name}: {change.reference})'
        )

    def previous_ref(self, label_name: str) -> Optional[str]:
        """Read ``label_name`` from the newest commit of the fetch branch carrying it."""
        repo = self.repository
        with repo.lock():
            repo_dir = repo.fetch()
            branch = f'origin/{self.fetch}'
            if repo.try_rev_parse(branch) is None:
                self.logger.info(f'Branch {self.fetch} not found in {repo.repo_url}')
                return None

            result = repo.git(
                repo_dir,
                'log',
                '--format=%B%x00',
                '--fixed-strings',
                f'--grep={label_name}: ',
                branch,
            )

        # Newest first; the label may also appear in free text, so check each message
        for message in result.stdout.split('\x00'):
            value = self._find_label(message, label_name)
            if value is not None:
                return value
        return None

    @staticmethod
    def _find_label(message: str, label_name: str) -> Optional[str]:
        pattern = re.compile(rf'^{re.escape(label_name)}: *(\S+) *$', re.MULTILINE)
        values = pattern.findall(message)
        return values[-1] if values else None

    @staticmethod
    def _message(change: Change, label_name: str) -> str:
        summary = change.summary.rstrip() or f'Migrate {change.reference}'
        return f'{summary}\n\n{label_name}: {change.reference}\n'

    def _commit_env(self, change: Change) -> Dict[str, str]:
        env = {
            'GIT_AUTHOR_NAME': self.user_name,
            'GIT_AUTHOR_EMAIL': self.user_email,
            'GIT_COMMITTER_NAME': self.user_name,
            'GIT_COMMITTER_EMAIL': self.user_email,
        }
        if change.timestamp is not None:
            date = f'@{change.timestamp} +0000'
            env['GIT_AUTHOR_DATE'] = date
            env['GIT_COMMITTER_DATE'] = date
        return env

    def __repr__(self) -> str:
        return (
            f'GitDestination(url={self.repository.repo_url!r}, '
            f'fetch={self.fetch!r}, push={self.push!r})'
        )
