"""Utility helpers for repo-sync."""
