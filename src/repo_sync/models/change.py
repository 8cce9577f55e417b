"""Change records produced by an origin."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Change:
    """One origin-side revision.

    Attributes:
        reference: Opaque revision identifier, unique within a run
        timestamp: Seconds since the epoch, None if the origin has none
        summary: Human readable description of the change
    """

    reference: str
    timestamp: Optional[int] = None
    summary: str = ''

    def __str__(self) -> str:
        first_line = self.summary.splitlines()[0] if self.summary else ''
        return f'{self.reference} {first_line}'.rstrip()
