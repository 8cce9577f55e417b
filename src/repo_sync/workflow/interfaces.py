"""Origin and destination interfaces consumed by the workflow."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

from ..models.change import Change


class Origin(ABC):
    """Source repository from which changes are read."""

    @property
    @abstractmethod
    def label_name(self) -> str:
        """Label recorded in the destination with the migrated origin reference."""
        pass

    @abstractmethod
    def head(self) -> str:
        """Reference of the current tip of the origin."""
        pass

    @abstractmethod
    def resolve(self, ref: str) -> Change:
        """Return the change identified by ``ref``."""
        pass

    @abstractmethod
    def changes_between(
        self, previous_ref: Optional[str], source_ref: str
    ) -> Iterator[Change]:
        """Yield changes strictly after ``previous_ref`` up to and including ``source_ref``.

        Changes are yielded lazily in origin chronological order.

        Args:
            previous_ref: Last reference already migrated, None for the full history
            source_ref: Last reference to migrate
        """
        pass

    @abstractmethod
    def materialize(self, change: Change, into: Path) -> None:
        """Write the file tree of ``change`` into ``into``, replacing its contents."""
        pass


class Destination(ABC):
    """Target repository receiving migrated trees."""

    @abstractmethod
    def process(self, workdir: Path, change: Change, label_name: str) -> None:
        """Commit the contents of ``workdir`` for ``change``.

        The change is durable once this method returns.

        Args:
            workdir: Materialized and transformed tree
            change: Origin change with the timestamp to record
            label_name: Label under which the origin reference is recorded
        """
        pass

    @abstractmethod
    def previous_ref(self, label_name: str) -> Optional[str]:
        """Last origin reference recorded under ``label_name``, or None."""
        pass
