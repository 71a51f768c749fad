"""
Shared pytest fixtures.

Provides fake title lookups and mock API clients for testing the
transformer and the orchestrator without network access.
"""

import asyncio
import logging
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from asana_unfurl.clients.asana_client import AsanaClient
from asana_unfurl.clients.github_client import GitHubClient
from asana_unfurl.config.unfurl_config import AsanaConfig, GitHubConfig, UnfurlConfig


class FakeTitleLookup:
    """
    Async title lookup backed by a dict.

    Task GIDs missing from ``titles`` or listed in ``failing`` raise. Every
    call is recorded in ``calls``.
    """

    def __init__(self, titles: Dict[str, str], failing: Optional[List[str]] = None, delay: float = 0):
        self.titles = titles
        self.failing = set(failing or [])
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, task_id: str) -> str:
        self.calls.append(task_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if task_id in self.failing or task_id not in self.titles:
                raise RuntimeError(f"Task {task_id} not found")
            return self.titles[task_id]
        finally:
            self.in_flight -= 1


@pytest.fixture
def make_lookup():
    """Factory for FakeTitleLookup instances."""
    def _make(titles, failing=None, delay=0):
        return FakeTitleLookup(titles, failing=failing, delay=delay)
    return _make


@pytest.fixture
def unfurl_config(tmp_path):
    """Configuration for PR #42 in test-owner/test-repo, with an output file."""
    return UnfurlConfig(
        github=GitHubConfig(owner='test-owner', repo='test-repo', token='test-github-token'),
        asana=AsanaConfig(token='test-asana-token'),
        pr_number=42,
        output_file=str(tmp_path / 'github_output')
    )


@pytest.fixture
def mock_github_client():
    client = MagicMock(spec=GitHubClient)
    client.get_pull_request.return_value = {'number': 42, 'body': ''}
    client.update_pull_request_body.side_effect = lambda number, body: {'number': number, 'body': body}
    return client


@pytest.fixture
def mock_asana_client():
    client = MagicMock(spec=AsanaClient)
    client.get_task_title.side_effect = lambda gid: f"Task {gid}"
    return client


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers that setup_logger attached during a test."""
    yield
    logger = logging.getLogger('asana_unfurl')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
