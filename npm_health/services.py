"""
API clients for the npm registry, npm download counts and GitHub

This module provides an async HTTP client with connection pooling.
Only the registry lookup can fail a health check; every other fetch
degrades to a default value.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from . import __version__
from .config import Settings, get_settings
from .errors import NotFoundError, UpstreamError
from .models import RegistryRecord, RepositorySummary, parse_timestamp
from .repository import GitHubPath

logger = logging.getLogger(__name__)

NPM_HEADERS = {"Accept": "application/json"}
GITHUB_HEADERS = {"Accept": "application/vnd.github.v3+json"}


def quote_package(package_name: str) -> str:
    """Escape a package name for use as one URL path segment (@scope/pkg -> %40scope%2Fpkg)"""
    return quote(package_name, safe="!'()*")


class APIClient:
    """
    Async API client for fetching package and repository information

    Uses connection pooling so the registry, download and GitHub calls
    of one health check share connections.
    """

    MAX_CONNECTIONS = 100
    MAX_KEEPALIVE_CONNECTIONS = 20

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            settings: Upstream endpoints and timeout, read from the environment if omitted
            transport: Custom httpx transport, used by tests to fake upstream services
        """
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry"""
        limits = httpx.Limits(
            max_connections=self.MAX_CONNECTIONS,
            max_keepalive_connections=self.MAX_KEEPALIVE_CONNECTIONS
        )
        self._client = httpx.AsyncClient(
            timeout=self.settings.timeout,
            limits=limits,
            follow_redirects=True,
            headers={"User-Agent": f"npm-health/{__version__}"},
            transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(
        self,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        if not self._client:
            raise RuntimeError("APIClient must be used as an async context manager")
        logger.debug(f"GET {url}")
        return await self._client.get(url, headers=headers, params=params)

    async def fetch_registry_record(self, package_name: str) -> RegistryRecord:
        """
        Fetch package metadata from the npm registry

        Args:
            package_name: Exact package name, scoped names included

        Returns:
            Parsed RegistryRecord

        Raises:
            NotFoundError: If the registry has no such package
            UpstreamError: On network errors, other error statuses or a malformed body
        """
        url = f"{self.settings.registry_url}/{quote_package(package_name)}"
        try:
            response = await self._get(url, NPM_HEADERS)
        except httpx.HTTPError as e:
            logger.error(f"Registry request for {package_name} failed: {e!r}")
            raise UpstreamError() from e

        if response.status_code == 404:
            logger.info(f"Package {package_name} not found on npm")
            raise NotFoundError(package_name)
        if not response.is_success:
            logger.error(f"npm registry returned {response.status_code} for {package_name}")
            raise UpstreamError()

        try:
            record = RegistryRecord.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Malformed registry document for {package_name}: {e}")
            raise UpstreamError() from e

        logger.info(f"Successfully fetched registry info for {package_name}")
        return record

    async def fetch_weekly_downloads(self, package_name: str) -> int:
        """
        Fetch last week's download count

        Args:
            package_name: Exact package name

        Returns:
            Weekly downloads, 0 if the count could not be fetched
        """
        url = f"{self.settings.downloads_url}/{quote_package(package_name)}"
        try:
            response = await self._get(url, NPM_HEADERS)
            if not response.is_success:
                logger.warning(f"Download stats returned {response.status_code} for {package_name}")
                return 0
            data = response.json()
        except Exception as e:
            logger.warning(f"Failed to fetch download stats for {package_name}: {e!r}")
            return 0

        downloads = data.get("downloads") if isinstance(data, dict) else None
        if isinstance(downloads, bool) or not isinstance(downloads, int) or downloads < 0:
            return 0
        return downloads

    async def fetch_open_issues(self, path: GitHubPath) -> int:
        """
        Fetch the open issue count of a GitHub repository

        Returns:
            Open issues (GitHub counts pull requests too), -1 if unknown
        """
        url = f"{self.settings.github_api_url}/repos/{path.owner}/{path.repo}"
        try:
            response = await self._get(url, GITHUB_HEADERS)
            if not response.is_success:
                logger.warning(f"GitHub returned {response.status_code} for {path}")
                return -1
            data = response.json()
        except Exception as e:
            logger.warning(f"Failed to fetch GitHub info for {path}: {e!r}")
            return -1

        count = data.get("open_issues_count") if isinstance(data, dict) else None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            return -1
        logger.info(f"Successfully fetched GitHub info for {path}")
        return count

    async def fetch_last_commit(self, path: GitHubPath) -> Optional[datetime]:
        """
        Fetch the timestamp of the most recent commit on the default branch

        Returns:
            Author date (committer date if absent), or None if unknown
        """
        url = f"{self.settings.github_api_url}/repos/{path.owner}/{path.repo}/commits"
        try:
            response = await self._get(url, GITHUB_HEADERS, params={"per_page": 1})
            if not response.is_success:
                logger.warning(f"GitHub commits returned {response.status_code} for {path}")
                return None
            commits = response.json()
        except Exception as e:
            logger.warning(f"Failed to fetch last commit for {path}: {e!r}")
            return None

        if not isinstance(commits, list) or not commits or not isinstance(commits[0], dict):
            return None
        commit = commits[0].get("commit") or {}
        if not isinstance(commit, dict):
            return None
        author = commit.get("author") or {}
        committer = commit.get("committer") or {}
        raw_date = (author.get("date") if isinstance(author, dict) else None) or \
            (committer.get("date") if isinstance(committer, dict) else None)
        return parse_timestamp(raw_date)

    async def fetch_repository_summary(self, path: GitHubPath) -> RepositorySummary:
        """
        Fetch open issues and last commit concurrently

        Either half may fail independently; the other is still reported.
        """
        open_issues, last_commit = await asyncio.gather(
            self.fetch_open_issues(path),
            self.fetch_last_commit(path)
        )
        return RepositorySummary(open_issues=open_issues, last_commit=last_commit)
