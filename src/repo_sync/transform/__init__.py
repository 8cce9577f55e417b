"""Working tree transformations."""

from .base import Transformation
from .replace import Replace

__all__ = ['Transformation', 'Replace']
