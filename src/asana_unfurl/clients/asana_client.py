"""
Asana API client used to resolve task GIDs to task titles.
"""

import logging
from typing import Any, Dict

import requests

from .base_client import BaseAPIClient
from ..exceptions import APIError, AuthenticationError, NetworkError, ValidationError

logger = logging.getLogger('asana_unfurl')


class AsanaClient(BaseAPIClient):
    """
    Client for the Asana REST API.

    Attributes:
        token (str): Asana personal access token
        base_url (str): Base URL for API endpoints
    """

    BASE_URL = 'https://app.asana.com/api/1.0'

    def __init__(self, token: str, timeout: float = 30.0, max_retries: int = 5) -> None:
        """
        Initialize the Asana API client.

        Args:
            token: Asana personal access token
            timeout: Per-request timeout in seconds
            max_retries: Retries for rate-limited or transient failures

        Raises:
            ValidationError: If the token is empty
        """
        if not token or not token.strip():
            raise ValidationError("Asana token cannot be empty")

        self.token = token
        self.base_url = self.BASE_URL
        super().__init__(
            headers={
                'Authorization': f'Bearer {token}',
                'Accept': 'application/json',
            },
            timeout=timeout,
            max_retries=max_retries
        )

    def get_task(self, task_gid: str, fields: str = 'name') -> Dict[str, Any]:
        """
        Fetch a task.

        Args:
            task_gid: Asana task GID
            fields: Comma separated ``opt_fields`` to request

        Returns:
            The task's ``data`` object

        Raises:
            ValidationError: If task_gid is not numeric
            APIError: If the API request fails or the task does not exist
            AuthenticationError: If the token is rejected
            NetworkError: If there's a network connectivity issue
        """
        if not task_gid or not str(task_gid).isdigit():
            raise ValidationError(f"Invalid Asana task GID: '{task_gid}'")

        logger.debug("Fetching Asana task details for task ID: %s", task_gid)

        try:
            response = self._make_request_with_retry(
                'GET', f"{self.base_url}/tasks/{task_gid}", params={'opt_fields': fields}
            )
            response.raise_for_status()
            return response.json()['data']

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code
            if status_code == 401:
                raise AuthenticationError("Asana authentication failed. Please check your token.")
            elif status_code == 403:
                raise AuthenticationError(f"Asana token has no access to task {task_gid}")
            elif status_code == 404:
                raise APIError(f"Asana task not found: {task_gid}", status_code=404)
            else:
                raise APIError(f"Asana API error: {e}", status_code=status_code)
        except (KeyError, ValueError) as e:
            raise APIError(f"Unexpected response for Asana task {task_gid}: {e}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error communicating with Asana API: {e}")

    def get_task_title(self, task_gid: str) -> str:
        """Return the name of a task."""
        task = self.get_task(task_gid)
        title = task.get('name')
        if title is None:
            raise APIError(f"Asana task {task_gid} has no name")

        logger.info("Task %s title: \"%s\"", task_gid, title)
        return title
