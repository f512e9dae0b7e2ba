"""GitHub REST layer: client, repository discovery, pull requests."""

from reposync.github.client import GitHubClient
from reposync.github.discovery import RepositoryDiscovery
from reposync.github.pull_requests import PullRequestService

__all__ = [
    "GitHubClient",
    "RepositoryDiscovery",
    "PullRequestService",
]
