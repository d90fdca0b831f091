"""Shared fixtures: a fake upstream for npm, npm downloads and GitHub."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest

from npm_health.config import Settings

REGISTRY = "https://registry.test"
DOWNLOADS = "https://downloads.test/downloads/point/last-week"
GITHUB = "https://github.test"


def iso_days_ago(days: int) -> str:
    """npm-style timestamp a little more than `days` whole days in the past"""
    moment = datetime.now(timezone.utc) - timedelta(days=days, minutes=5)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def packument(
    name: str = "left-pad",
    version: str = "1.3.0",
    published_days_ago: Optional[int] = 10,
    repository: Any = "git+https://github.com/stevemao/left-pad.git",
    maintainers: Optional[List[Any]] = None,
    description: Optional[str] = "String left pad",
) -> Dict[str, Any]:
    """Minimal registry document in the shape registry.npmjs.org returns"""
    doc: Dict[str, Any] = {
        "name": name,
        "dist-tags": {"latest": version},
        "versions": {version: {"name": name, "version": version}},
        "time": {},
        "maintainers": maintainers if maintainers is not None else [
            {"name": "stevemao", "email": "steve@example.com"}
        ],
    }
    if description is not None:
        doc["description"] = description
    if repository is not None:
        doc["versions"][version]["repository"] = repository
    if published_days_ago is not None:
        doc["time"][version] = iso_days_ago(published_days_ago)
        doc["time"]["modified"] = iso_days_ago(published_days_ago)
    return doc


def commits(author_days_ago: Optional[int] = 3, committer_days_ago: Optional[int] = None) -> List[Dict[str, Any]]:
    commit: Dict[str, Any] = {"author": {}, "committer": {}}
    if author_days_ago is not None:
        commit["author"]["date"] = iso_days_ago(author_days_ago)
    if committer_days_ago is not None:
        commit["committer"]["date"] = iso_days_ago(committer_days_ago)
    return [{"sha": "abc123", "commit": commit}]


class FakeUpstream:
    """Routes requests by URL without query string; unknown URLs get 404"""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, status: int = 200, json: Any = None, content: Optional[bytes] = None):
        self.routes[url] = httpx.Response(status, json=json) if content is None \
            else httpx.Response(status, content=content)

    def fail(self, url: str):
        self.routes[url] = None

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.split(b"?")[0].decode("ascii")
        key = f"{request.url.scheme}://{request.url.host}{path}"
        if key not in self.routes:
            return httpx.Response(404, json={"error": "Not found"})
        response = self.routes[key]
        if response is None:
            raise httpx.ConnectError("connection refused", request=request)
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handler)

    @property
    def hosts(self) -> List[str]:
        return [request.url.host for request in self.requests]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        registry_url=REGISTRY,
        downloads_url=DOWNLOADS,
        github_api_url=GITHUB,
        npm_web_url="https://www.npmjs.com/package",
        timeout=5.0,
        revalidate_seconds=3600,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def healthy_upstream(upstream: FakeUpstream) -> FakeUpstream:
    """left-pad published 10 days ago, 3 days since last commit, 12 open issues"""
    upstream.add(f"{REGISTRY}/left-pad", json=packument())
    upstream.add(f"{DOWNLOADS}/left-pad", json={"downloads": 1500, "package": "left-pad"})
    upstream.add(f"{GITHUB}/repos/stevemao/left-pad", json={"open_issues_count": 12})
    upstream.add(f"{GITHUB}/repos/stevemao/left-pad/commits", json=commits(author_days_ago=3))
    return upstream
