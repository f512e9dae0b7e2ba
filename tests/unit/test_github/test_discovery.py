"""Tests for RepositoryDiscovery."""

import httpx
import pytest

from reposync.core.exceptions.errors import GitHubAPIError, ValidationError
from reposync.github.client import GitHubClient
from reposync.github.discovery import RepositoryDiscovery


def discovery_for(handler) -> RepositoryDiscovery:
    client = GitHubClient("t", max_retries=0, retry_delay=0, transport=httpx.MockTransport(handler))
    return RepositoryDiscovery(client)


class TestBuildQuery:
    def test_query(self) -> None:
        query = RepositoryDiscovery.build_query("acme", ["python", "service"])
        assert query == "org:acme topic:python topic:service archived:false"


class TestDiscover:
    """Tests for topic search."""

    def test_filters_and_deduplicates(self) -> None:
        queries: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(request.url.params["q"])
            assert request.url.path == "/search/repositories"
            return httpx.Response(
                200,
                json={
                    "items": [
                        {"full_name": "acme/api", "archived": False},
                        {"full_name": "acme/old", "archived": True},
                        {"full_name": "acme/frozen", "disabled": True},
                        {"full_name": "acme/web"},
                        {"full_name": "acme/api"},
                    ]
                },
            )

        repos = discovery_for(handler).discover("acme", ["python", " service "])

        assert repos == ["acme/api", "acme/web"]
        assert queries == ["org:acme topic:python topic:service archived:false"]

    def test_empty_result(self) -> None:
        assert discovery_for(lambda request: httpx.Response(200, json={"items": []})).discover("acme", ["x"]) == []

    @pytest.mark.parametrize(("org", "topics"), [("", ["python"]), ("acme", []), ("acme", [" "])])
    def test_requires_org_and_topics(self, org: str, topics: list[str]) -> None:
        discovery = discovery_for(lambda request: pytest.fail("no request expected"))

        with pytest.raises(ValidationError):
            discovery.discover(org, topics)

    def test_api_error_propagates(self) -> None:
        discovery = discovery_for(lambda request: httpx.Response(403, json={"message": "rate limited"}))

        with pytest.raises(GitHubAPIError, match="rate limited"):
            discovery.discover("acme", ["python"])
