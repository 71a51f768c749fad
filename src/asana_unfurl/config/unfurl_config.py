"""
Configuration management for the Asana URL unfurling tool.

Configuration can come from a JSON file, a plain dictionary, or the
environment a GitHub Action runs in. Tokens missing from a file or dict are
filled from environment variables (including a local ``.env`` file), so they
never have to be stored in configuration files.
"""

import os
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from ..exceptions import ConfigurationError, ValidationError


@dataclass
class GitHubConfig:
    """
    Configuration for GitHub API access.

    Attributes:
        owner: GitHub repository owner (user or organization)
        repo: GitHub repository name
        token: GitHub token with pull request write access
    """
    owner: str
    repo: str
    token: str

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.owner or not self.owner.strip():
            raise ValidationError("GitHub owner cannot be empty")
        if not self.repo or not self.repo.strip():
            raise ValidationError("GitHub repository cannot be empty")
        if not self.token or not self.token.strip():
            raise ValidationError("GitHub token cannot be empty")


@dataclass
class AsanaConfig:
    """
    Configuration for Asana API access.

    Attributes:
        token: Asana personal access token
    """
    token: str

    def __post_init__(self):
        if not self.token or not self.token.strip():
            raise ValidationError("Asana token cannot be empty")


@dataclass
class UnfurlConfig:
    """
    Complete configuration for one unfurl run.

    Attributes:
        github: GitHub API configuration
        asana: Asana API configuration
        pr_number: Pull request to process; may be None for events that are skipped
        event_name: Triggering GitHub event; only 'pull_request' is processed
        dry_run: Whether to skip writing the updated body back to GitHub
        output_file: File receiving GitHub Actions outputs (GITHUB_OUTPUT)
    """
    github: GitHubConfig
    asana: AsanaConfig
    pr_number: Optional[int] = None
    event_name: str = field(default='pull_request')
    dry_run: bool = field(default=False)
    output_file: Optional[str] = field(default=None)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.pr_number is not None:
            if isinstance(self.pr_number, bool) or not isinstance(self.pr_number, int) or self.pr_number <= 0:
                raise ValidationError(f"Pull request number must be a positive integer: {self.pr_number!r}")
        if self.event_name == 'pull_request' and self.pr_number is None:
            raise ConfigurationError("Could not get pull request number from context")


class ConfigLoader:
    """
    Loads and validates configuration from files, dictionaries and the environment.
    """

    GITHUB_TOKEN_VARS = ('INPUT_GITHUBTOKEN', 'GITHUB_TOKEN', 'GITHUB_API_TOKEN')
    ASANA_TOKEN_VARS = ('INPUT_ASANATOKEN', 'ASANA_TOKEN', 'ASANA_ACCESS_TOKEN')

    @staticmethod
    def _first_env(environ: Mapping[str, str], names) -> Optional[str]:
        for name in names:
            value = environ.get(name)
            if value and value.strip():
                return value.strip()
        return None

    @staticmethod
    def _parse_pr_number(value: Any) -> Optional[int]:
        if value is None or value == '':
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid pull request number: {value!r}")

    @staticmethod
    def read_event_pr_number(event_path: Optional[str]) -> Optional[int]:
        """
        Read the pull request number from a GitHub event payload file.

        Args:
            event_path: Path from GITHUB_EVENT_PATH

        Returns:
            The pull request number, or None if the payload has none

        Raises:
            ConfigurationError: If the payload file cannot be read or parsed
        """
        if not event_path:
            return None

        path = Path(event_path)
        if not path.is_file():
            raise ConfigurationError(f"GitHub event payload not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in GitHub event payload: {e}")
        except PermissionError:
            raise ConfigurationError(f"Permission denied reading GitHub event payload: {path}")

        pull_request = payload.get('pull_request') or {}
        return ConfigLoader._parse_pr_number(pull_request.get('number'))

    @staticmethod
    def _fill_tokens_from_env(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
        """Fill tokens missing from data with values from the environment."""
        if not data.get('github', {}).get('token'):
            gh_token = ConfigLoader._first_env(environ, ConfigLoader.GITHUB_TOKEN_VARS)
            if gh_token:
                data.setdefault('github', {})['token'] = gh_token

        if not data.get('asana', {}).get('token'):
            asana_token = ConfigLoader._first_env(environ, ConfigLoader.ASANA_TOKEN_VARS)
            if asana_token:
                data.setdefault('asana', {})['token'] = asana_token

        return data

    @staticmethod
    def load_from_dict(data: Dict[str, Any]) -> UnfurlConfig:
        """
        Load and validate configuration from a dictionary.

        Args:
            data: Configuration dictionary with 'github' and 'asana' sections

        Returns:
            Validated UnfurlConfig object

        Raises:
            ConfigurationError: If configuration data is missing required keys
            ValidationError: If configuration data is invalid
        """
        for key in ('github', 'asana'):
            if key not in data:
                raise ConfigurationError(f"Missing required section '{key}' in configuration data")

        for key in ('owner', 'repo', 'token'):
            if key not in data['github']:
                raise ConfigurationError(f"Missing required GitHub field: '{key}'")
        if 'token' not in data['asana']:
            raise ConfigurationError("Missing required Asana field: 'token'")

        try:
            return UnfurlConfig(
                github=GitHubConfig(**data['github']),
                asana=AsanaConfig(**data['asana']),
                pr_number=ConfigLoader._parse_pr_number(data.get('pr_number')),
                event_name=data.get('event_name', 'pull_request'),
                dry_run=bool(data.get('dry_run', False)),
                output_file=data.get('output_file')
            )
        except TypeError as e:
            raise ValidationError(f"Invalid configuration format: {e}")

    @staticmethod
    def load_from_file(config_path: str, environ: Optional[Mapping[str, str]] = None,
                       overrides: Optional[Dict[str, Any]] = None) -> UnfurlConfig:
        """
        Load and validate configuration from a JSON file.

        Tokens absent from the file are taken from the environment. Values in
        overrides (e.g. a pr_number given on the command line) replace the
        file's values.

        Raises:
            ConfigurationError: If the file is missing, unreadable or incomplete
            ValidationError: If configuration data is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}")
        except PermissionError:
            raise ConfigurationError(f"Permission denied reading configuration file: {config_path}")
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Configuration file encoding error: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object")
        if overrides:
            data.update(overrides)

        if environ is None:
            load_dotenv()
            environ = os.environ
        return ConfigLoader.load_from_dict(ConfigLoader._fill_tokens_from_env(data, environ))

    @staticmethod
    def load_from_environment(environ: Optional[Mapping[str, str]] = None) -> UnfurlConfig:
        """
        Build configuration from the GitHub Actions environment.

        Reads GITHUB_REPOSITORY, GITHUB_EVENT_NAME, GITHUB_EVENT_PATH and
        GITHUB_OUTPUT. Action inputs (INPUT_GITHUBTOKEN, INPUT_ASANATOKEN)
        take precedence over plain token variables. When ``environ`` is not
        given, a local ``.env`` file is loaded into os.environ first.

        Raises:
            ConfigurationError: If a required variable is missing
            ValidationError: If a value is invalid
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        repository = environ.get('GITHUB_REPOSITORY', '')
        if '/' not in repository:
            raise ConfigurationError(
                f"GITHUB_REPOSITORY must look like 'owner/repo', got: '{repository}'"
            )
        owner, repo = repository.split('/', 1)

        data = ConfigLoader._fill_tokens_from_env({'github': {}, 'asana': {}}, environ)
        if not data['github'].get('token'):
            raise ConfigurationError("GitHub token is required. Set the githubToken input or GITHUB_TOKEN.")
        if not data['asana'].get('token'):
            raise ConfigurationError("Asana token is required. Set the asanaToken input or ASANA_TOKEN.")

        event_name = environ.get('GITHUB_EVENT_NAME', 'pull_request')
        pr_number = None
        if event_name == 'pull_request':
            pr_number = ConfigLoader.read_event_pr_number(environ.get('GITHUB_EVENT_PATH'))

        return UnfurlConfig(
            github=GitHubConfig(owner=owner, repo=repo, token=data['github']['token']),
            asana=AsanaConfig(token=data['asana']['token']),
            pr_number=pr_number,
            event_name=event_name,
            output_file=environ.get('GITHUB_OUTPUT') or None
        )
