"""
Health check logic for npm packages

This module combines registry, download and GitHub data into a
HealthReport. The registry lookup must succeed; download counts and
repository activity are fetched in parallel and fall back to defaults.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from .config import Settings, get_settings
from .errors import ValidationError
from .models import HealthReport, HealthStatus, RepositorySummary, display_name, parse_timestamp
from .repository import GitHubPath, normalize_repository_url, parse_github_path
from .services import APIClient, quote_package

logger = logging.getLogger(__name__)

ALIVE_MAX_DAYS = 90
SLOWING_MAX_DAYS = 365

# Policy choice: a package with no publish time at all is treated as long idle
UNKNOWN_PUBLISH_DAYS = 999

MAX_MAINTAINERS = 5


def days_since(moment: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed between moment and now"""
    now = now or datetime.now(timezone.utc)
    return (now - moment).days


def calculate_status(days_since_publish: int, days_since_commit: Optional[int]) -> HealthStatus:
    """
    Classify a package by its most recent activity

    Args:
        days_since_publish: Days since the latest version was published
        days_since_commit: Days since the latest commit (None without GitHub data)

    Returns:
        "alive" within 90 days, "slowing" within a year, otherwise "dead"
    """
    if days_since_commit is not None:
        days_inactive = min(days_since_publish, days_since_commit)
    else:
        days_inactive = days_since_publish

    if days_inactive <= ALIVE_MAX_DAYS:
        return "alive"
    if days_inactive <= SLOWING_MAX_DAYS:
        return "slowing"
    return "dead"


async def _fetch_repository_summary(
    client: APIClient,
    path: Optional[GitHubPath]
) -> RepositorySummary:
    if path is None:
        return RepositorySummary()
    return await client.fetch_repository_summary(path)


async def check_health(
    package_name: Optional[str],
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> HealthReport:
    """
    Check the health of an npm package

    Args:
        package_name: Name of the package to check
        settings: Upstream configuration, read from the environment if omitted
        transport: Custom httpx transport, used by tests

    Returns:
        HealthReport containing all health information

    Raises:
        ValidationError: If package_name is empty
        NotFoundError: If the package does not exist on npm
        UpstreamError: If the registry could not be queried
    """
    if not package_name or not package_name.strip():
        raise ValidationError()
    package_name = package_name.strip()
    settings = settings or get_settings()

    async with APIClient(settings=settings, transport=transport) as client:
        logger.info(f"Starting health check for package: {package_name}")
        record = await client.fetch_registry_record(package_name)

        repo_url = normalize_repository_url(record.repository_field)
        github_path = parse_github_path(repo_url) if repo_url else None

        weekly_downloads, summary = await asyncio.gather(
            client.fetch_weekly_downloads(package_name),
            _fetch_repository_summary(client, github_path)
        )

    now = datetime.now(timezone.utc)

    last_publish = parse_timestamp(record.last_publish)
    if last_publish is not None:
        days_since_publish = days_since(last_publish, now)
    else:
        days_since_publish = UNKNOWN_PUBLISH_DAYS

    days_since_commit = None
    if summary.last_commit is not None:
        days_since_commit = days_since(summary.last_commit, now)

    status = calculate_status(days_since_publish, days_since_commit)
    logger.info(f"{package_name} is {status} (publish: {days_since_publish}d, commit: {days_since_commit}d)")

    return HealthReport(
        name=record.name or package_name,
        version=record.latest_version,
        description=record.description or record.latest_info.description or "",
        last_publish=last_publish,
        days_since_publish=days_since_publish,
        weekly_downloads=weekly_downloads,
        open_issues=summary.open_issues,
        last_commit=summary.last_commit,
        days_since_commit=days_since_commit,
        status=status,
        repo_url=repo_url,
        npm_url=f"{settings.npm_web_url}/{quote_package(package_name)}",
        maintainers=[display_name(m) for m in record.maintainers[:MAX_MAINTAINERS]]
    )


def format_relative_date(date: datetime) -> str:
    """
    Format a date as relative time (e.g., '3 days ago')

    Args:
        date: Datetime to format

    Returns:
        Formatted string
    """
    days = days_since(date)

    if days <= 0:
        return "today"
    elif days == 1:
        return "1 day ago"
    elif days < 30:
        return f"{days} days ago"
    elif days < 60:
        return "1 month ago"
    elif days < 365:
        months = days // 30
        return f"{months} months ago"
    else:
        years = days // 365
        if years == 1:
            return "1 year ago"
        return f"{years} years ago"


def format_number(value: int) -> str:
    """
    Abbreviate a count for display (1500 -> '1.5K', 2300000 -> '2.3M')

    Args:
        value: Non-negative count

    Returns:
        Abbreviated string
    """
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def format_date(date: datetime) -> str:
    """Format a date for display (e.g., 'Jan 1, 2024')"""
    return f"{date:%b} {date.day}, {date.year}"
