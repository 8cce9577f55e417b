"""Configuration management for repo-sync."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator

from ..workflow.workflow import WorkflowMode

TRANSFORMATION_TYPES = ('replace',)

# REPO_SYNC_GIT_TIMEOUT values that disable the git timeout
TIMEOUT_DISABLED_VALUES = ('0', 'none', 'null')


class WorkflowSettings(BaseModel):
    """Workflow settings."""

    name: str = Field(default='default', description='Workflow name')
    mode: WorkflowMode = Field(
        default=WorkflowMode.SQUASH, description='SQUASH or ITERATIVE'
    )
    excluded_origin_paths: List[str] = Field(
        default_factory=list, description='Glob patterns of origin files to exclude'
    )
    previous_ref: Optional[str] = Field(
        default=None,
        description='Origin reference to resume ITERATIVE mode from. '
        'If not specified, read from the destination.',
    )

    @validator('mode', pre=True)
    def validate_mode(cls, v):
        """Accept the mode in any case."""
        if isinstance(v, str):
            return v.upper()
        return v


class OriginConfig(BaseModel):
    """Origin repository configuration."""

    url: str = Field(..., description='Origin repository URL')
    ref: str = Field(default='origin/master', description='Default origin reference')

    @validator('url')
    def validate_url(cls, v):
        """Validate repository URL is not empty."""
        if not v.strip():
            raise ValueError('Repository URL must not be empty')
        return v.strip()


class DestinationConfig(BaseModel):
    """Destination repository configuration."""

    url: str = Field(..., description='Destination repository URL')
    fetch: str = Field(default='master', description='Branch to base commits on')
    push: str = Field(default='master', description='Branch to push commits to')

    @validator('url')
    def validate_url(cls, v):
        """Validate repository URL is not empty."""
        if not v.strip():
            raise ValueError('Repository URL must not be empty')
        return v.strip()


class TransformationConfig(BaseModel):
    """A single transformation."""

    type: str = Field(default='replace', description='Transformation type')
    before: str = Field(..., description='Template of the text to find')
    after: str = Field(..., description='Template of the replacement text')
    regex_groups: Dict[str, str] = Field(
        default_factory=dict, description='Regex for each ${name} placeholder'
    )
    path: str = Field(default='**', description='Glob of files to transform')
    first_only: bool = Field(default=False, description='Replace only the first match')
    required: bool = Field(default=True, description='Fail if nothing matched')

    @validator('type')
    def validate_type(cls, v):
        """Validate transformation type is known."""
        if v.lower() not in TRANSFORMATION_TYPES:
            raise ValueError(f'Transformation type must be one of: {TRANSFORMATION_TYPES}')
        return v.lower()


class GitConfig(BaseModel):
    """Git operations configuration."""

    executable: str = Field(default='git', description='Git executable')
    repo_storage: str = Field(
        default='~/.repo-sync/repos',
        description='Directory holding one bare mirror per repository URL',
    )
    timeout: Optional[int] = Field(
        default=3600,
        description='Git operation timeout in seconds (default: 1 hour, null to disable)',
    )
    temp_dir: Optional[str] = Field(
        default=None,
        description='Custom temporary directory for work trees. If not specified, uses system temp directory.',
    )
    cleanup_temp: bool = Field(
        default=True,
        description='Whether to cleanup temporary work trees after migration',
    )
    user_name: str = Field(default='repo-sync', description='Git user name for commits')
    user_email: str = Field(
        default='repo-sync@localhost', description='Git user email for commits'
    )
    verbose: bool = Field(default=False, description='Log git output at INFO level')

    @validator('repo_storage')
    def validate_repo_storage(cls, v):
        """Expand the user directory in the storage path."""
        return str(Path(v).expanduser())

    @validator('temp_dir')
    def validate_temp_dir(cls, v):
        """Validate temp directory path."""
        if v is not None and not Path(v).is_absolute():
            raise ValueError('temp_dir must be an absolute path')
        return v

    @validator('timeout')
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v is not None and v <= 0:
            raise ValueError('Git timeout must be positive')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Log format')

    @validator('level')
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for repo-sync."""

    workflow: WorkflowSettings = Field(
        default_factory=WorkflowSettings, description='Workflow settings'
    )
    origin: OriginConfig = Field(..., description='Origin repository')
    destination: DestinationConfig = Field(..., description='Destination repository')
    transformations: List[TransformationConfig] = Field(
        default_factory=list, description='Transformations applied in order'
    )
    git: GitConfig = Field(default_factory=GitConfig, description='Git settings')
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    class Config:
        """Pydantic configuration."""

        extra = 'forbid'  # Don't allow extra fields

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        return cls(**(config_data or {}))

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        excluded = os.getenv('REPO_SYNC_EXCLUDED_ORIGIN_PATHS')
        timeout = os.getenv('REPO_SYNC_GIT_TIMEOUT')
        timeout_disabled = (timeout or '').strip().lower() in TIMEOUT_DISABLED_VALUES

        config_data = {
            'workflow': {
                'name': os.getenv('REPO_SYNC_WORKFLOW_NAME'),
                'mode': os.getenv('REPO_SYNC_MODE'),
                'excluded_origin_paths': [p for p in excluded.split(',') if p]
                if excluded
                else None,
                'previous_ref': os.getenv('REPO_SYNC_PREVIOUS_REF'),
            },
            'origin': {
                'url': os.getenv('REPO_SYNC_ORIGIN_URL'),
                'ref': os.getenv('REPO_SYNC_ORIGIN_REF'),
            },
            'destination': {
                'url': os.getenv('REPO_SYNC_DESTINATION_URL'),
                'fetch': os.getenv('REPO_SYNC_DESTINATION_FETCH'),
                'push': os.getenv('REPO_SYNC_DESTINATION_PUSH'),
            },
            'git': {
                'executable': os.getenv('REPO_SYNC_GIT_EXECUTABLE'),
                'repo_storage': os.getenv('REPO_SYNC_REPO_STORAGE'),
                'timeout': int(timeout) if timeout and not timeout_disabled else None,
                'temp_dir': os.getenv('REPO_SYNC_TEMP_DIR'),
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)
        if timeout_disabled:
            config_data.setdefault('git', {})['timeout'] = None

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        data = self.dict()
        data['workflow']['mode'] = self.workflow.mode.value

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, indent=2, sort_keys=False)

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'workflow': {
                'name': 'default',
                'mode': 'SQUASH',
                'excluded_origin_paths': ['internal/**'],
                'previous_ref': None,
            },
            'origin': {
                'url': 'https://git.example.com/internal/project.git',
                'ref': 'origin/master',
            },
            'destination': {
                'url': 'https://github.com/example/project.git',
                'fetch': 'master',
                'push': 'master',
            },
            'transformations': [
                {
                    'type': 'replace',
                    'before': 'internal.example.com',
                    'after': 'example.com',
                    'regex_groups': {},
                    'path': '**',
                }
            ],
            'git': {
                'executable': 'git',
                'repo_storage': '~/.repo-sync/repos',
                'timeout': 3600,
                'temp_dir': None,
                'cleanup_temp': True,
                'user_name': 'repo-sync',
                'user_email': 'repo-sync@localhost',
            },
            'logging': {
                'level': 'INFO',
                'file': 'repo-sync.log',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )
