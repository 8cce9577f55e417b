"""Configuration for repo-sync."""

from .config import (
    Config,
    DestinationConfig,
    GitConfig,
    LoggingConfig,
    OriginConfig,
    TransformationConfig,
    WorkflowSettings,
)

__all__ = [
    'Config',
    'DestinationConfig',
    'GitConfig',
    'LoggingConfig',
    'OriginConfig',
    'TransformationConfig',
    'WorkflowSettings',
]
