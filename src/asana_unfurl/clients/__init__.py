from .asana_client import AsanaClient
from .github_client import GitHubClient

__all__ = ['AsanaClient', 'GitHubClient']
