"""Tests for PullRequestService."""

import json

import httpx
import pytest

from reposync.github.client import GitHubClient
from reposync.github.pull_requests import PullRequestService


def pr_payload(number: int, title: str = "Sync", head: str = "sync/x", base: str = "main") -> dict:
    return {
        "number": number,
        "html_url": f"https://github.com/acme/api/pull/{number}",
        "title": title,
        "body": "",
        "state": "open",
        "head": {"ref": head},
        "base": {"ref": base},
        "labels": [],
        "assignees": [],
    }


class FakeApi:
    """Records requests and answers from a route table."""

    def __init__(self, routes: dict[tuple[str, str], object]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.routes.get((request.method, request.url.path))
        if body is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=body)

    def bodies(self, method: str, path: str) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == method and r.url.path == path
        ]


@pytest.fixture
def api() -> FakeApi:
    return FakeApi({})


@pytest.fixture
def service(api: FakeApi) -> PullRequestService:
    client = GitHubClient("t", max_retries=0, retry_delay=0, transport=httpx.MockTransport(api))
    return PullRequestService(client)


class TestCreateOrUpdate:
    """Tests for opening or reusing a pull request."""

    def test_creates_when_none_open(self, api: FakeApi, service: PullRequestService) -> None:
        api.routes[("GET", "/repos/acme/api/pulls")] = []
        api.routes[("POST", "/repos/acme/api/pulls")] = pr_payload(5)

        pr = service.create_or_update("acme/api", title="Sync", body="Body", head="sync/x", base="main")

        assert pr.number == 5
        lookup = api.requests[0]
        assert lookup.url.params["head"] == "acme:sync/x"
        assert lookup.url.params["base"] == "main"
        assert lookup.url.params["state"] == "open"
        assert api.bodies("POST", "/repos/acme/api/pulls") == [
            {"title": "Sync", "body": "Body", "head": "sync/x", "base": "main"}
        ]

    def test_updates_existing(self, api: FakeApi, service: PullRequestService) -> None:
        api.routes[("GET", "/repos/acme/api/pulls")] = [pr_payload(3, title="Old")]
        api.routes[("PATCH", "/repos/acme/api/pulls/3")] = pr_payload(3, title="New")

        pr = service.create_or_update("acme/api", title="New", body="", head="sync/x", base="main")

        assert pr.title == "New"
        assert api.bodies("PATCH", "/repos/acme/api/pulls/3") == [{"title": "New", "body": ""}]
        assert api.bodies("POST", "/repos/acme/api/pulls") == []


class TestMetadata:
    """Tests for labels, assignees and reviewers."""

    def test_all_metadata(self, api: FakeApi, service: PullRequestService) -> None:
        api.routes[("POST", "/repos/acme/api/issues/5/labels")] = []
        api.routes[("POST", "/repos/acme/api/issues/5/assignees")] = pr_payload(5)
        api.routes[("POST", "/repos/acme/api/pulls/5/requested_reviewers")] = pr_payload(5)

        service.add_metadata(
            "acme/api",
            5,
            labels=["automation"],
            assignees=["octocat"],
            reviewers=["hubot"],
            team_reviewers=["platform"],
        )

        assert api.bodies("POST", "/repos/acme/api/issues/5/labels") == [{"labels": ["automation"]}]
        assert api.bodies("POST", "/repos/acme/api/issues/5/assignees") == [{"assignees": ["octocat"]}]
        assert api.bodies("POST", "/repos/acme/api/pulls/5/requested_reviewers") == [
            {"reviewers": ["hubot"], "team_reviewers": ["platform"]}
        ]

    def test_empty_metadata_makes_no_calls(self, api: FakeApi, service: PullRequestService) -> None:
        service.add_metadata("acme/api", 5, labels=[], assignees=[], reviewers=[], team_reviewers=[])

        assert api.requests == []

    def test_team_reviewers_only(self, api: FakeApi, service: PullRequestService) -> None:
        api.routes[("POST", "/repos/acme/api/pulls/5/requested_reviewers")] = pr_payload(5)

        service.add_metadata("acme/api", 5, team_reviewers=["platform"])

        assert api.bodies("POST", "/repos/acme/api/pulls/5/requested_reviewers") == [
            {"reviewers": [], "team_reviewers": ["platform"]}
        ]


def test_get_pull_request(api: FakeApi, service: PullRequestService) -> None:
    api.routes[("GET", "/repos/acme/api/pulls/9")] = pr_payload(9, head="sync/y")

    pr = service.get("acme/api", 9)

    assert pr.head_ref == "sync/y"
    assert pr.html_url == "https://github.com/acme/api/pull/9"
