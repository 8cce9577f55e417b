"""Error kinds raised by repo-sync."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .git.command import CommandFailure


class RepoSyncError(Exception):
    """Base exception for repo-sync errors."""

    pass


class ConfigValidationException(RepoSyncError):
    """The supplied configuration is not valid for this run."""

    pass


class RepoException(RepoSyncError):
    """Runtime failure while interacting with a repository or running a workflow."""

    def __init__(self, message: str, failure: Optional['CommandFailure'] = None):
        """Initialize repository error.

        Args:
            message: Error message
            failure: Classified git command failure, if any
        """
        super().__init__(message)
        self.failure = failure

    @property
    def kind(self):
        """Classified error kind of the underlying command, or None."""
        return self.failure.kind if self.failure else None


class TransformationError(RepoException):
    """A transformation could not be applied to the working tree."""

    def __init__(self, message: str, transformation: Optional[str] = None):
        super().__init__(message)
        self.transformation = transformation
