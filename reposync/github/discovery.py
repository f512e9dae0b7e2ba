"""Repository discovery by GitHub topic."""

from reposync.core.exceptions.errors import ValidationError
from reposync.core.logger.logger import get_logger
from reposync.core.utils.inputs import dedupe_strings, trim_and_filter
from reposync.github.client import GitHubClient

logger = get_logger(__name__)


class RepositoryDiscovery:
    """Finds target repositories in an organization that carry all given topics."""

    SEARCH_PATH = "/search/repositories"

    def __init__(self, client: GitHubClient) -> None:
        """Initialize discovery.

        Args:
            client: GitHub REST client.
        """
        self.client = client

    @staticmethod
    def build_query(org: str, topics: list[str]) -> str:
        """Build the repository search query.

        Args:
            org: Organization login.
            topics: Topics every repository must carry.

        Returns:
            Search query string.
        """
        topic_query = " ".join(f"topic:{topic}" for topic in topics)
        return f"org:{org} {topic_query} archived:false"

    def discover(self, org: str, topics: list[str]) -> list[str]:
        """Discover repositories by topic.

        Args:
            org: Organization login.
            topics: Topics every repository must carry.

        Returns:
            ``owner/repo`` names, excluding archived or disabled repositories,
            de-duplicated in result order.

        Raises:
            ValidationError: If org is empty or no topic is given.
            GitHubAPIError: If the search fails.
        """
        org = (org or "").strip()
        if not org:
            raise ValidationError("org is required", field="org")
        topics = trim_and_filter(topics or [])
        if not topics:
            raise ValidationError("at least one topic is required", field="search_topics")

        query = self.build_query(org, topics)
        logger.info(f"Discovering repositories: {query}")

        names = [
            repo["full_name"]
            for repo in self.client.paginate(
                self.SEARCH_PATH,
                params={"q": query, "per_page": 100},
                item_key="items",
            )
            if not repo.get("archived") and not repo.get("disabled")
        ]
        repos = dedupe_strings(names)
        logger.info(f"Discovered {len(repos)} repositories")
        return repos
