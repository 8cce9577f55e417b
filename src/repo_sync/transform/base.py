"""Base class for working tree transformations."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class Transformation(ABC):
    """Rewrites files of a working directory in place."""

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__

    @abstractmethod
    def apply(self, workdir: Path) -> None:
        """Apply the transformation to ``workdir``.

        Raises:
            TransformationError: If a required match is absent
        """
        pass

    def describe(self) -> str:
        """Short description used in logs."""
        return self.name

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.describe()!r})'
