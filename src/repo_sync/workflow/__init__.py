"""Workflow engine."""

from .interfaces import Destination, Origin
from .path_matcher import PathMatcher, resolve_patterns
from .workflow import Workflow, WorkflowMode

__all__ = [
    'Destination',
    'Origin',
    'PathMatcher',
    'resolve_patterns',
    'Workflow',
    'WorkflowMode',
]
