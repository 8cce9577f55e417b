"""Data models for repo-sync."""

from .change import Change

__all__ = ['Change']
