"""
GitHub API client for reading and updating pull request descriptions.
"""

import logging
from typing import Any, Dict

import requests

from .base_client import BaseAPIClient
from ..exceptions import (
    APIError,
    AuthenticationError,
    NetworkError,
    ValidationError
)

logger = logging.getLogger('asana_unfurl')


class GitHubClient(BaseAPIClient):
    """
    Client for the GitHub pull request API.

    Attributes:
        owner (str): GitHub repository owner (user or organization)
        repo (str): GitHub repository name
        token (str): GitHub token
        dry_run (bool): Skip write operations when True
        base_url (str): Base URL for repository API endpoints
        rate_limits (dict): Last seen rate limit values per resource
    """

    def __init__(self, owner: str, repo: str, token: str, dry_run: bool = False,
                 timeout: float = 30.0, max_retries: int = 5) -> None:
        """
        Initialize the GitHub API client.

        Args:
            owner: GitHub repository owner (user or organization)
            repo: GitHub repository name
            token: GitHub token
            dry_run: Whether to skip write operations
            timeout: Per-request timeout in seconds
            max_retries: Retries for rate-limited or transient failures

        Raises:
            ValidationError: If any required parameter is empty
        """
        if not owner or not owner.strip():
            raise ValidationError("GitHub owner cannot be empty")
        if not repo or not repo.strip():
            raise ValidationError("GitHub repository cannot be empty")
        if not token or not token.strip():
            raise ValidationError("GitHub token cannot be empty")

        self.owner = owner
        self.repo = repo
        self.token = token
        self.dry_run = dry_run

        self.rate_limits = {
            'core': {'limit': 5000, 'remaining': 5000, 'reset': 0, 'used': 0},
        }

        super().__init__(
            headers={
                'Authorization': f'token {token}',
                'Accept': 'application/vnd.github.v3+json',
            },
            timeout=timeout,
            max_retries=max_retries
        )

        self.base_url = f"https://api.github.com/repos/{owner}/{repo}"

    def _on_response(self, response: requests.Response) -> None:
        self._update_rate_limits_from_headers(response.headers)

    def _update_rate_limits_from_headers(self, headers: Dict[str, Any]) -> None:
        """
        Update rate limit tracking from response headers.

        Args:
            headers: Response headers from any GitHub API call
        """
        resource = headers.get('X-RateLimit-Resource', 'core')
        if resource not in self.rate_limits:
            return

        try:
            self.rate_limits[resource].update({
                'limit': int(headers.get('X-RateLimit-Limit', self.rate_limits[resource]['limit'])),
                'remaining': int(headers.get('X-RateLimit-Remaining', self.rate_limits[resource]['remaining'])),
                'reset': int(headers.get('X-RateLimit-Reset', self.rate_limits[resource]['reset'])),
                'used': int(headers.get('X-RateLimit-Used', self.rate_limits[resource]['used']))
            })
        except (ValueError, TypeError):
            # Keep existing values if header parsing fails
            pass

    def _is_rate_limited(self, response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'

    def _raise_for_http_error(self, e: requests.exceptions.HTTPError, not_found: str) -> None:
        status_code = e.response.status_code
        if status_code == 401:
            raise AuthenticationError("GitHub authentication failed. Please check your token.")
        elif status_code == 403:
            raise AuthenticationError("GitHub API access forbidden. Please check your token permissions.")
        elif status_code == 404:
            raise APIError(not_found, status_code=404)
        elif status_code == 422:
            raise ValidationError(f"Invalid pull request data: {e}")
        raise APIError(f"GitHub API error: {e}", status_code=status_code)

    def get_pull_request(self, pull_number: int) -> Dict[str, Any]:
        """
        Get details of a GitHub pull request.

        Args:
            pull_number: The pull request number

        Returns:
            Pull request data

        Raises:
            ValidationError: If pull_number is invalid
            APIError: If the API request fails
            AuthenticationError: If authentication fails
            NetworkError: If there's a network connectivity issue
        """
        if not isinstance(pull_number, int) or pull_number <= 0:
            raise ValidationError("Pull request number must be a positive integer")

        # Read operations are allowed in dry-run mode
        try:
            response = self._make_request_with_retry('GET', f"{self.base_url}/pulls/{pull_number}")
            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            self._raise_for_http_error(e, f"Pull request not found: {self.owner}/{self.repo}#{pull_number}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error communicating with GitHub API: {e}")

    def update_pull_request_body(self, pull_number: int, body: str) -> Dict[str, Any]:
        """
        Replace the description of a pull request.

        Args:
            pull_number: The pull request number
            body: New pull request body

        Returns:
            Updated pull request data (or simulated data in dry-run mode)

        Raises:
            ValidationError: If pull_number is invalid
            APIError: If the API request fails
            AuthenticationError: If authentication fails
            NetworkError: If there's a network connectivity issue
        """
        if not isinstance(pull_number, int) or pull_number <= 0:
            raise ValidationError("Pull request number must be a positive integer")

        if self.dry_run:
            logger.info("[DRY RUN] Would update body of PR #%d", pull_number)
            return {
                'number': pull_number,
                'body': body,
                'html_url': f"https://github.com/{self.owner}/{self.repo}/pull/{pull_number}"
            }

        try:
            response = self._make_request_with_retry(
                'PATCH', f"{self.base_url}/pulls/{pull_number}", json={'body': body}
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            self._raise_for_http_error(e, f"Pull request not found: {self.owner}/{self.repo}#{pull_number}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error communicating with GitHub API: {e}")
