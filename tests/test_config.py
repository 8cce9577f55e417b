"""Tests for configuration management."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from repo_sync.config.config import (
    Config,
    GitConfig,
    OriginConfig,
    TransformationConfig,
    WorkflowSettings,
)
from repo_sync.workflow.workflow import WorkflowMode

ORIGIN_URL = 'https://git.example.com/internal/project.git'
DESTINATION_URL = 'https://github.com/example/project.git'


class TestWorkflowSettings:
    """Test workflow settings."""

    def test_defaults(self):
        """Test default workflow settings."""
        settings = WorkflowSettings()

        assert settings.name == 'default'
        assert settings.mode == WorkflowMode.SQUASH
        assert settings.excluded_origin_paths == []
        assert settings.previous_ref is None

    def test_mode_is_case_insensitive(self):
        """Test that the mode is accepted in any case."""
        assert WorkflowSettings(mode='iterative').mode == WorkflowMode.ITERATIVE

    def test_unknown_mode(self):
        """Test that an unknown mode raises validation error."""
        with pytest.raises(ValueError):
            WorkflowSettings(mode='MERGE')


class TestRepositoryConfig:
    """Test origin and destination configuration."""

    def test_origin_defaults(self):
        """Test default origin reference."""
        assert OriginConfig(url=ORIGIN_URL).ref == 'origin/master'

    def test_url_is_stripped(self):
        """Test that surrounding whitespace is removed from URLs."""
        assert OriginConfig(url=f'  {ORIGIN_URL} ').url == ORIGIN_URL

    def test_empty_url(self):
        """Test that an empty URL raises validation error."""
        with pytest.raises(ValueError):
            OriginConfig(url='  ')

    def test_missing_url(self):
        """Test that a missing URL raises validation error."""
        with pytest.raises(ValueError):
            OriginConfig()


class TestGitConfig:
    """Test git settings."""

    def test_defaults(self):
        """Test default git settings."""
        git = GitConfig()

        assert git.executable == 'git'
        assert git.timeout == 3600
        assert git.cleanup_temp is True
        assert git.repo_storage == str(Path('~/.repo-sync/repos').expanduser())

    def test_relative_temp_dir(self):
        """Test that temp_dir must be absolute."""
        with pytest.raises(ValueError):
            GitConfig(temp_dir='tmp')

    def test_non_positive_timeout(self):
        """Test that the timeout must be positive."""
        with pytest.raises(ValueError):
            GitConfig(timeout=0)

    def test_timeout_can_be_disabled(self):
        """Test that a null timeout disables it."""
        assert GitConfig(timeout=None).timeout is None


class TestTransformationConfig:
    """Test transformation settings."""

    def test_type_is_normalized(self):
        """Test that the type is lowercased."""
        config = TransformationConfig(type='Replace', before='a', after='b')

        assert config.type == 'replace'
        assert config.path == '**'
        assert config.required is True

    def test_unknown_type(self):
        """Test that unknown transformation types are rejected."""
        with pytest.raises(ValueError):
            TransformationConfig(type='move', before='a', after='b')


class TestConfig:
    """Test main configuration class."""

    def test_config_from_dict(self):
        """Test configuration creation from dictionary."""
        config = Config(
            **{
                'workflow': {'mode': 'ITERATIVE', 'excluded_origin_paths': ['internal/**']},
                'origin': {'url': ORIGIN_URL},
                'destination': {'url': DESTINATION_URL, 'push': 'public'},
                'transformations': [{'before': 'internal', 'after': 'public'}],
            }
        )

        assert config.workflow.mode == WorkflowMode.ITERATIVE
        assert config.workflow.excluded_origin_paths == ['internal/**']
        assert config.destination.fetch == 'master'
        assert config.destination.push == 'public'
        assert config.transformations[0].type == 'replace'
        assert config.logging.level == 'INFO'

    def test_extra_fields_are_rejected(self):
        """Test that unknown top-level keys raise validation error."""
        with pytest.raises(ValueError):
            Config(
                origin={'url': ORIGIN_URL},
                destination={'url': DESTINATION_URL},
                migration={'users': True},
            )

    def test_config_from_file(self, tmp_path):
        """Test configuration loading from YAML file."""
        config_file = tmp_path / 'repo-sync.yaml'
        config_file.write_text(
            f"""
workflow:
  name: export
  mode: iterative
  excluded_origin_paths:
    - internal/**
origin:
  url: {ORIGIN_URL}
  ref: origin/main
destination:
  url: {DESTINATION_URL}
git:
  timeout: 60
logging:
  level: debug
"""
        )

        config = Config.from_file(str(config_file))

        assert config.workflow.name == 'export'
        assert config.workflow.mode == WorkflowMode.ITERATIVE
        assert config.origin.ref == 'origin/main'
        assert config.git.timeout == 60
        assert config.logging.level == 'DEBUG'

    def test_config_from_env(self, tmp_path):
        """Test configuration loading from environment variables."""
        env_vars = {
            'REPO_SYNC_ORIGIN_URL': ORIGIN_URL,
            'REPO_SYNC_DESTINATION_URL': DESTINATION_URL,
            'REPO_SYNC_DESTINATION_PUSH': 'public',
            'REPO_SYNC_MODE': 'iterative',
            'REPO_SYNC_EXCLUDED_ORIGIN_PATHS': 'internal/**,secret.txt',
            'REPO_SYNC_GIT_TIMEOUT': '120',
            'REPO_SYNC_REPO_STORAGE': str(tmp_path / 'repos'),
        }

        with patch.dict(os.environ, env_vars):
            config = Config.from_env()

        assert config.origin.url == ORIGIN_URL
        assert config.destination.push == 'public'
        assert config.workflow.mode == WorkflowMode.ITERATIVE
        assert config.workflow.excluded_origin_paths == ['internal/**', 'secret.txt']
        assert config.git.timeout == 120
        assert config.git.repo_storage == str(tmp_path / 'repos')

    @pytest.mark.parametrize('value', ['0', 'none', 'NULL'])
    def test_config_from_env_disables_timeout(self, value):
        """Test that the environment can disable the git timeout."""
        env_vars = {
            'REPO_SYNC_ORIGIN_URL': ORIGIN_URL,
            'REPO_SYNC_DESTINATION_URL': DESTINATION_URL,
            'REPO_SYNC_GIT_TIMEOUT': value,
        }

        with patch.dict(os.environ, env_vars):
            config = Config.from_env()

        assert config.git.timeout is None

    def test_config_from_env_default_timeout(self):
        """Test that an unset timeout keeps the default."""
        env_vars = {
            'REPO_SYNC_ORIGIN_URL': ORIGIN_URL,
            'REPO_SYNC_DESTINATION_URL': DESTINATION_URL,
            'REPO_SYNC_GIT_TIMEOUT': '',
        }

        with patch.dict(os.environ, env_vars):
            config = Config.from_env()

        assert config.git.timeout == 3600

    def test_config_from_env_without_urls(self, tmp_path, monkeypatch):
        """Test that environment loading requires repository URLs."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv('REPO_SYNC_ORIGIN_URL', raising=False)
        monkeypatch.delenv('REPO_SYNC_DESTINATION_URL', raising=False)

        with pytest.raises(ValueError):
            Config.from_env()

    def test_to_file_round_trip(self, tmp_path):
        """Test that a saved configuration loads back identically."""
        config = Config(
            workflow={'mode': 'ITERATIVE'},
            origin={'url': ORIGIN_URL},
            destination={'url': DESTINATION_URL},
        )
        config_file = tmp_path / 'out' / 'repo-sync.yaml'

        config.to_file(str(config_file))

        with open(config_file) as f:
            assert yaml.safe_load(f)['workflow']['mode'] == 'ITERATIVE'
        assert Config.from_file(str(config_file)) == config

    def test_template_is_loadable(self, tmp_path):
        """Test that the generated template is a valid configuration."""
        config_file = tmp_path / 'repo-sync.yaml'

        Config.create_template(str(config_file))
        config = Config.from_file(str(config_file))

        assert config.workflow.mode == WorkflowMode.SQUASH
        assert config.transformations[0].before == 'internal.example.com'

    def test_invalid_config_file(self, tmp_path):
        """Test handling of invalid configuration file."""
        config_file = tmp_path / 'bad.yaml'
        config_file.write_text('invalid: yaml: content:')

        with pytest.raises(Exception):  # Should raise YAML parsing error
            Config.from_file(str(config_file))

    def test_missing_config_file(self):
        """Test handling of missing configuration file."""
        with pytest.raises(FileNotFoundError):
            Config.from_file('/nonexistent/repo-sync.yaml')
