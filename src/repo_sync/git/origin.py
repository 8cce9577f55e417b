"""Git repository as a workflow origin."""

from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from ..models.change import Change
from ..workflow.interfaces import Origin
from .repository import GitRepository

# %at: author timestamp, %B: raw message, separated by NUL
LOG_FORMAT = '--format=%at%x00%B'


class GitOrigin(Origin):
    """Reads changes from a git repository mirror."""

    LABEL_NAME = 'GitOrigin-RevId'

    def __init__(self, repository: GitRepository, ref: str = 'origin/master'):
        """Initialize git origin.

        Args:
            repository: Repository to read from
            ref: Default reference, used for ``head()``
        """
        self.repository = repository
        self.ref = ref
        self.logger = logger.bind(component='GitOrigin')

    @property
    def label_name(self) -> str:
        return self.LABEL_NAME

    def head(self) -> str:
        self.repository.fetch()
        return self.repository.rev_parse(self.ref)

    def resolve(self, ref: str) -> Change:
        self.repository.fetch()
        return self._change(self.repository.rev_parse(ref))

    def changes_between(
        self, previous_ref: Optional[str], source_ref: str
    ) -> Iterator[Change]:
        """Yield the commits after ``previous_ref`` up to ``source_ref``, oldest first.

        Commit metadata is read one commit at a time as the iterator advances.
        """
        self.repository.fetch()
        source_sha = self.repository.rev_parse(source_ref)
        if previous_ref is None:
            revision_range = source_sha
        else:
            revision_range = f'{self.repository.rev_parse(previous_ref)}..{source_sha}'

        result = self.repository.git(
            self.repository.repo_dir, 'rev-list', '--reverse', revision_range
        )
        shas = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        self.logger.info(f'Found {len(shas)} change(s) in {revision_range}')

        for sha in shas:
            yield self._change(sha)

    def materialize(self, change: Change, into: Path) -> None:
        self.repository.checkout(change.reference, into)

    def _change(self, sha: str) -> Change:
        result = self.repository.git(
            self.repository.repo_dir, 'log', '-1', LOG_FORMAT, sha
        )
        timestamp, _, message = result.stdout.partition('\x00')
        timestamp = timestamp.strip()
        return Change(
            reference=sha,
            timestamp=int(timestamp) if timestamp.isdigit() else None,
            summary=message.rstrip('\n') + '\n' if message.strip() else '',
        )

    def __repr__(self) -> str:
        return f'GitOrigin(url={self.repository.repo_url!r}, ref={self.ref!r})'
