"""
Repository URL handling

Only GitHub-hosted repositories are resolved further, so normalization
turns the many package.json spellings of a GitHub URL into a single
https form and discards everything else.
"""

import logging
import re
from typing import NamedTuple, Optional

from .models import RepositoryField, RepositoryValue

logger = logging.getLogger(__name__)

# Applied in order; each rewrite is a no-op on an already clean https URL
_URL_REWRITES = [
    (re.compile(r"^git\+"), ""),
    (re.compile(r"\.git$"), ""),
    (re.compile(r"^git://"), "https://"),
    (re.compile(r"^ssh://git@github\.com"), "https://github.com"),
    (re.compile(r"^git@github\.com:"), "https://github.com/"),
]

_GITHUB_PATH = re.compile(r"github\.com/([^/]+)/([^/]+)")


class GitHubPath(NamedTuple):
    """Owner and repository name on GitHub"""
    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


def normalize_repository_url(repository: Optional[RepositoryValue]) -> Optional[str]:
    """
    Normalize a package.json repository entry to an https GitHub URL

    Args:
        repository: Plain URL string, RepositoryField, or None

    Returns:
        https GitHub URL, or None when absent or not hosted on GitHub
    """
    if isinstance(repository, str):
        url = repository
    elif isinstance(repository, RepositoryField):
        url = repository.url
    else:
        url = None

    if not url:
        return None

    for pattern, replacement in _URL_REWRITES:
        url = pattern.sub(replacement, url)

    if "github.com" not in url:
        logger.debug(f"Repository is not hosted on GitHub: {url}")
        return None
    return url


def parse_github_path(url: str) -> Optional[GitHubPath]:
    """
    Extract owner and repo from a GitHub URL

    Args:
        url: URL containing github.com/<owner>/<repo>

    Returns:
        GitHubPath, or None if the URL has fewer than two path segments
    """
    match = _GITHUB_PATH.search(url)
    if not match:
        logger.debug(f"Could not parse GitHub path from {url}")
        return None
    owner, repo = match.groups()
    return GitHubPath(owner=owner, repo=repo)
