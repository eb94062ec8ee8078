"""
GitHub Integration Layer

This module provides access to GitHub through the ``gh`` CLI and through
the REST/GraphQL API with a personal access token.
"""

from .client import GitHubClient, GitHubAPIError, RateLimitExceeded
from .gh_cli import GhCli, GhCommandError, GhResult

__all__ = [
    'GitHubClient',
    'GitHubAPIError',
    'RateLimitExceeded',
    'GhCli',
    'GhCommandError',
    'GhResult',
]
