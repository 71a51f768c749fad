"""
Shared HTTP plumbing for the Asana and GitHub API clients.

Provides an authenticated requests session plus retry handling for rate
limits, server errors and transient network failures.
"""

import time
import logging
from typing import Dict, Any

import requests

from ..exceptions import APIError, NetworkError

logger = logging.getLogger('asana_unfurl')


class BaseAPIClient:
    """
    Base class for REST API clients.

    Attributes:
        session (requests.Session): Session carrying the authentication headers
        timeout (float): Per-request timeout in seconds
        max_retries (int): Retries for rate-limited or transient failures
    """

    USER_AGENT = 'Asana-Unfurl-Tool/1.0'

    def __init__(self, headers: Dict[str, str], timeout: float = 30.0, max_retries: int = 5) -> None:
        self.timeout = timeout
        self.max_retries = max_retries

        self.session = requests.Session()
        self.session.headers.update({'User-Agent': self.USER_AGENT})
        self.session.headers.update(headers)

    def _calculate_wait_time(self, headers: Dict[str, Any], status_code: int) -> float:
        """
        Calculate how long to wait before retrying a rate-limited request.

        Args:
            headers: Response headers
            status_code: HTTP status code

        Returns:
            Seconds to wait before retry (0 = no wait needed)
        """
        if 'Retry-After' in headers:
            try:
                return float(headers['Retry-After'])
            except (ValueError, TypeError):
                pass

        if status_code == 403:
            try:
                reset_time = int(headers.get('X-RateLimit-Reset', 0))
                remaining = int(headers.get('X-RateLimit-Remaining', 1))
            except (ValueError, TypeError):
                return 30

            if remaining == 0 and reset_time > 0:
                # Cap at 5 minutes
                return min(max(0, reset_time - time.time() + 1), 300)
            return 30

        if status_code == 429:
            return 60

        return 0

    def _on_response(self, response: requests.Response) -> None:
        """Hook called with every response, before any retry decision."""

    def _is_rate_limited(self, response: requests.Response) -> bool:
        return response.status_code == 429

    def _make_request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make an HTTP request, retrying on rate limits and transient errors.

        Non-retryable error responses are returned to the caller unchanged so
        it can map the status code to a specific exception.

        Raises:
            APIError: If the request is still rate limited after all retries
            NetworkError: If the request keeps failing at the transport level
        """
        kwargs.setdefault('timeout', self.timeout)
        last_exception = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.request(method, url, **kwargs)
                self._on_response(response)

                if response.status_code < 400:
                    return response

                if self._is_rate_limited(response):
                    if attempt < self.max_retries:
                        wait_time = self._calculate_wait_time(response.headers, response.status_code)
                        logger.warning(
                            "Rate limit hit (status %s). Waiting %.0fs before retry %d/%d",
                            response.status_code, wait_time, attempt + 1, self.max_retries
                        )
                        if wait_time > 0:
                            time.sleep(wait_time)
                        continue
                    raise APIError("API rate limit exceeded. Please wait before retrying.",
                                   status_code=response.status_code)

                if response.status_code >= 500 or response.status_code == 408:
                    if attempt < self.max_retries:
                        wait_time = min(2 ** attempt, 30)
                        logger.warning(
                            "Server error %s from %s, retrying in %ds",
                            response.status_code, url, wait_time
                        )
                        time.sleep(wait_time)
                        continue

                return response

            except requests.exceptions.RequestException as e:
                last_exception = e
                if attempt < self.max_retries:
                    wait_time = min(2 ** attempt, 30)
                    logger.warning("Request to %s failed (%s), retrying in %ds", url, e, wait_time)
                    time.sleep(wait_time)
                    continue
                break

        if last_exception:
            raise NetworkError(f"Network error after {self.max_retries} retries: {last_exception}")
        raise APIError(f"Request failed after {self.max_retries} retries")
