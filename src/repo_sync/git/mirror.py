"""Persistent per-URL mirror storage."""

import threading
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import quote_plus

from loguru import logger

from ..exceptions import RepoException

try:
    import fcntl  # POSIX systems

    HAVE_FCNTL = True
except ImportError:
    HAVE_FCNTL = False


def escape_url(url: str) -> str:
    """Percent-escape a repository URL into a filesystem-safe directory name.

    Only ASCII letters, digits, '-' and '_' are kept; spaces become '+'.
    """
    return quote_plus(url, safe='').replace('.', '%2E').replace('~', '%7E')


class MirrorLock:
    """Reentrant lock guarding one mirror.

    Holds a thread lock and, on POSIX, an advisory file lock on the
    mirror's lock file while the outermost level is entered.
    """

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self._thread_lock = threading.RLock()
        self._depth = 0
        self._handle = None

    def __enter__(self):
        self._thread_lock.acquire()
        try:
            if self._depth == 0:
                self._handle = open(self.lock_path, 'a+')
                if HAVE_FCNTL:
                    fcntl.flock(self._handle.fileno(), fcntl.LOCK_EX)
        except Exception:
            if self._handle is not None:
                self._handle.close()
                self._handle = None
            self._thread_lock.release()
            raise
        self._depth += 1
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._depth -= 1
        try:
            if self._depth == 0 and self._handle is not None:
                if HAVE_FCNTL:
                    fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
                self._handle.close()
                self._handle = None
        finally:
            self._thread_lock.release()


class MirrorStore:
    """Root directory holding one bare mirror per repository URL."""

    def __init__(self, root: Union[str, Path]):
        """Initialize mirror store.

        Args:
            root: Directory where mirrors are stored. Work trees never live here.
        """
        self.root = Path(root).expanduser()
        self._locks: Dict[str, MirrorLock] = {}
        self._locks_guard = threading.Lock()
        self.logger = logger.bind(component='MirrorStore')

    def ensure_root(self) -> Path:
        """Create the storage root if it does not exist.

        Raises:
            RepoException: If the directory cannot be created
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RepoException(
                f"Cannot create repository storage '{self.root}': {e}"
            ) from e
        return self.root

    def path_for(self, url: str) -> Path:
        """Mirror directory for a repository URL."""
        return self.root / escape_url(url)

    def lock(self, url: str) -> MirrorLock:
        """Lock serializing operations against the mirror of ``url``.

        The storage root is created on first use.
        """
        name = escape_url(url)
        with self._locks_guard:
            mirror_lock: Optional[MirrorLock] = self._locks.get(name)
            if mirror_lock is None:
                self.ensure_root()
                mirror_lock = MirrorLock(self.root / f'.{name}.lock')
                self._locks[name] = mirror_lock
        return mirror_lock

    def __repr__(self) -> str:
        return f'MirrorStore(root={str(self.root)!r})'
