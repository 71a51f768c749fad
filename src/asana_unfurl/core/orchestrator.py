"""
Unfurl orchestrator.

Coordinates one run of the tool: fetch the pull request body from GitHub,
resolve Asana titles, rewrite the body, write it back when it changed, and
publish the action outputs.
"""

import re
import asyncio
import logging
from typing import NamedTuple, Optional

from ..clients.asana_client import AsanaClient
from ..clients.github_client import GitHubClient
from ..config.unfurl_config import UnfurlConfig
from ..services.body_transformer import transform_pr_body, TransformResult
from ..utils.actions import set_output

logger = logging.getLogger('asana_unfurl')


class UnfurlOutcome(NamedTuple):
    updated: bool
    updated_count: int
    body: str


def normalize_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


class AsanaTitleLookup:
    """
    Async adapter around the blocking AsanaClient.

    Each lookup runs in a worker thread so concurrent lookups overlap.
    """

    def __init__(self, asana_client: AsanaClient):
        self.asana_client = asana_client

    async def __call__(self, task_gid: str) -> str:
        return await asyncio.to_thread(self.asana_client.get_task_title, task_gid)


def unfurl_text(body: str, asana_client: AsanaClient) -> TransformResult:
    """Run the body transformer with titles fetched from Asana."""
    return asyncio.run(transform_pr_body(body, AsanaTitleLookup(asana_client)))


class UnfurlOrchestrator:
    """
    High-level coordinator for unfurling Asana URLs in one pull request.
    """

    def __init__(self, config: UnfurlConfig, github_client: Optional[GitHubClient] = None,
                 asana_client: Optional[AsanaClient] = None):
        """
        Args:
            config: Configuration for this run
            github_client: Optional pre-built GitHub client
            asana_client: Optional pre-built Asana client
        """
        self.config = config
        self.github_client = github_client or GitHubClient(
            owner=config.github.owner,
            repo=config.github.repo,
            token=config.github.token,
            dry_run=config.dry_run
        )
        self.asana_client = asana_client or AsanaClient(token=config.asana.token)

    def transform_text(self, body: str) -> TransformResult:
        """Rewrite body using titles from Asana, without touching GitHub."""
        return unfurl_text(body, self.asana_client)

    def _publish(self, outcome: UnfurlOutcome) -> UnfurlOutcome:
        set_output('updated', 'true' if outcome.updated else 'false', self.config.output_file)
        set_output('updatedCount', str(outcome.updated_count), self.config.output_file)
        return outcome

    def run(self) -> UnfurlOutcome:
        """
        Unfurl Asana URLs in the configured pull request.

        Returns:
            UnfurlOutcome describing whether the body was updated

        Raises:
            APIError: If GitHub cannot be read or written
            AuthenticationError: If the GitHub token is rejected
            NetworkError: If GitHub cannot be reached
        """
        logger.info("🔄 Starting Asana URL unfurling process")

        if self.config.event_name != 'pull_request':
            logger.info("⏭️ This action only runs on pull_request events. Skipping.")
            return self._publish(UnfurlOutcome(updated=False, updated_count=0, body=''))

        pr_number = self.config.pr_number
        logger.info("🔍 Processing PR #%s in %s/%s", pr_number, self.config.github.owner, self.config.github.repo)

        pull_request = self.github_client.get_pull_request(pr_number)
        original_body = pull_request.get('body') or ''
        logger.debug("Original PR body length: %d characters", len(original_body))

        result = self.transform_text(original_body)

        if normalize_whitespace(original_body) == normalize_whitespace(result.new_body):
            logger.info("✅ No meaningful changes to make to the PR body")
            return self._publish(UnfurlOutcome(updated=False, updated_count=0, body=original_body))

        logger.info("🔄 PR body has been modified, updating...")
        self.github_client.update_pull_request_body(pr_number, result.new_body)
        if self.config.dry_run:
            logger.info("[DRY RUN] PR #%s left unchanged on GitHub", pr_number)
        else:
            logger.info("✅ Successfully updated PR #%s with enhanced Asana links", pr_number)

        return self._publish(UnfurlOutcome(updated=True, updated_count=result.count, body=result.new_body))
