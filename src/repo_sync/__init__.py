"""repo-sync

Moves changes from an origin git repository into a destination repository,
applying exclusion filters and content transformations on the way.
"""

__version__ = '0.1.0'

from .exceptions import (
    ConfigValidationException,
    RepoException,
    RepoSyncError,
    TransformationError,
)

__all__ = [
    '__version__',
    'ConfigValidationException',
    'RepoException',
    'RepoSyncError',
    'TransformationError',
]
