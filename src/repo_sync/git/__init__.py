"""Git repository access for repo-sync."""

from .command import CommandFailure, CommandResult, CommandRunner, ErrorKind, classify_failure
from .destination import GitDestination
from .mirror import MirrorStore, escape_url
from .origin import GitOrigin
from .repository import GitRepository

__all__ = [
    'CommandFailure',
    'CommandResult',
    'CommandRunner',
    'ErrorKind',
    'classify_failure',
    'GitDestination',
    'MirrorStore',
    'escape_url',
    'GitOrigin',
    'GitRepository',
]
