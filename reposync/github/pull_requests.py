"""Pull request management."""

from reposync.core.logger.logger import get_logger
from reposync.github.client import GitHubClient
from reposync.models.github import PullRequest
from reposync.models.sync import RepoReference

logger = get_logger(__name__)


class PullRequestService:
    """Creates, updates and annotates pull requests."""

    def __init__(self, client: GitHubClient) -> None:
        """Initialize the service.

        Args:
            client: GitHub REST client.
        """
        self.client = client

    @staticmethod
    def _repo_path(repo: str) -> str:
        ref = RepoReference.parse(repo)
        return f"/repos/{ref.owner}/{ref.name}"

    def find_open(self, repo: str, head: str, base: str) -> PullRequest | None:
        """Find an open pull request for ``head`` into ``base``.

        Args:
            repo: Repository in owner/repo format.
            head: Head branch name (without owner).
            base: Base branch name.

        Returns:
            First matching pull request, or None.
        """
        owner = RepoReference.parse(repo).owner
        pulls = self.client.get(
            f"{self._repo_path(repo)}/pulls",
            params={"head": f"{owner}:{head}", "base": base, "state": "open"},
        )
        return PullRequest.from_api(pulls[0]) if pulls else None

    def create(self, repo: str, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a new pull request."""
        payload = self.client.post(
            f"{self._repo_path(repo)}/pulls",
            json_data={"title": title, "body": body, "head": head, "base": base},
        )
        pr = PullRequest.from_api(payload)
        logger.info(f"{repo}: opened PR #{pr.number}")
        return pr

    def update(
        self,
        repo: str,
        number: int,
        title: str | None = None,
        body: str | None = None,
    ) -> PullRequest:
        """Update the title and/or body of a pull request."""
        changes = {key: value for key, value in (("title", title), ("body", body)) if value is not None}
        payload = self.client.patch(f"{self._repo_path(repo)}/pulls/{number}", json_data=changes)
        pr = PullRequest.from_api(payload)
        logger.info(f"{repo}: updated PR #{pr.number}")
        return pr

    def get(self, repo: str, number: int) -> PullRequest:
        """Fetch a pull request by number."""
        return PullRequest.from_api(self.client.get(f"{self._repo_path(repo)}/pulls/{number}"))

    def add_labels(self, repo: str, number: int, labels: list[str]) -> None:
        """Add labels to a pull request."""
        self.client.post(f"{self._repo_path(repo)}/issues/{number}/labels", json_data={"labels": labels})

    def add_assignees(self, repo: str, number: int, assignees: list[str]) -> None:
        """Assign users to a pull request."""
        self.client.post(
            f"{self._repo_path(repo)}/issues/{number}/assignees",
            json_data={"assignees": assignees},
        )

    def request_reviewers(
        self,
        repo: str,
        number: int,
        reviewers: list[str],
        team_reviewers: list[str] | None = None,
    ) -> None:
        """Request reviews from users and teams."""
        self.client.post(
            f"{self._repo_path(repo)}/pulls/{number}/requested_reviewers",
            json_data={"reviewers": reviewers, "team_reviewers": team_reviewers or []},
        )

    def create_or_update(self, repo: str, title: str, body: str, head: str, base: str) -> PullRequest:
        """Update the open pull request for ``head`` into ``base``, or open one.

        Args:
            repo: Repository in owner/repo format.
            title: Pull request title.
            body: Pull request body.
            head: Head branch.
            base: Base branch.

        Returns:
            The updated or created pull request.
        """
        existing = self.find_open(repo, head, base)
        if existing is not None:
            return self.update(repo, existing.number, title=title, body=body)
        return self.create(repo, title, body, head, base)

    def add_metadata(
        self,
        repo: str,
        number: int,
        labels: list[str] | None = None,
        assignees: list[str] | None = None,
        reviewers: list[str] | None = None,
        team_reviewers: list[str] | None = None,
    ) -> None:
        """Attach labels, assignees and reviewers; empty lists are skipped."""
        if labels:
            self.add_labels(repo, number, labels)
        if assignees:
            self.add_assignees(repo, number, assignees)
        if reviewers or team_reviewers:
            self.request_reviewers(repo, number, reviewers or [], team_reviewers)
