"""
Data models for registry responses and health reports
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

HealthStatus = Literal["alive", "slowing", "dead"]


class RepositoryField(BaseModel):
    """Object form of a package.json repository entry"""
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = Field(None, description="VCS type, usually git")
    url: Optional[str] = Field(None, description="Repository URL")


class MaintainerEntry(BaseModel):
    """Object form of a registry maintainer"""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, description="npm username")
    email: Optional[str] = Field(None, description="Contact email")


# package.json allows either a bare string or an object for both fields
RepositoryValue = Union[str, RepositoryField]
MaintainerValue = Union[str, MaintainerEntry]


def _coerce_repository(value: Any) -> Any:
    """Reduce a raw repository entry to a string, an object, or None"""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        url = value.get("url")
        kind = value.get("type")
        return {
            "type": kind if isinstance(kind, str) else None,
            "url": url if isinstance(url, str) else None,
        }
    return None


def _coerce_maintainer(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        name = value.get("name")
        email = value.get("email")
        return {
            "name": name if isinstance(name, str) else None,
            "email": email if isinstance(email, str) else None,
        }
    return None


def display_name(maintainer: MaintainerValue) -> str:
    """
    Reduce a maintainer entry to the name shown to users

    Entries that are neither a string nor an object are dropped while parsing
    RegistryRecord, before the list is cut to five.

    Args:
        maintainer: Plain string or MaintainerEntry

    Returns:
        The maintainer's name, falling back to email, then "unknown"
    """
    if isinstance(maintainer, str):
        return maintainer
    return maintainer.name or maintainer.email or "unknown"


class VersionInfo(BaseModel):
    """Per-version metadata from the registry document"""
    model_config = ConfigDict(extra="ignore")

    repository: Optional[RepositoryValue] = None
    description: Optional[str] = None

    @field_validator("repository", mode="before")
    @classmethod
    def coerce_repository(cls, v: Any) -> Any:
        return _coerce_repository(v)

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None


class RegistryRecord(BaseModel):
    """Subset of the npm registry packument used for health checks"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: Optional[str] = Field(None, description="Package name")
    description: Optional[str] = Field(None, description="Package description")
    dist_tags: Dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    versions: Dict[str, VersionInfo] = Field(default_factory=dict)
    time: Dict[str, str] = Field(default_factory=dict, description="Publish timestamps by version")
    repository: Optional[RepositoryValue] = None
    maintainers: List[MaintainerValue] = Field(default_factory=list)

    @field_validator("name", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("dist_tags", "time", mode="before")
    @classmethod
    def keep_string_values(cls, v: Any) -> Dict[str, str]:
        if not isinstance(v, dict):
            return {}
        return {key: value for key, value in v.items() if isinstance(value, str)}

    @field_validator("versions", mode="before")
    @classmethod
    def keep_object_versions(cls, v: Any) -> Dict[str, Any]:
        if not isinstance(v, dict):
            return {}
        return {key: value for key, value in v.items() if isinstance(value, dict)}

    @field_validator("repository", mode="before")
    @classmethod
    def coerce_repository(cls, v: Any) -> Any:
        return _coerce_repository(v)

    @field_validator("maintainers", mode="before")
    @classmethod
    def coerce_maintainers(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        entries = (_coerce_maintainer(item) for item in v)
        return [entry for entry in entries if entry is not None]

    @property
    def latest_version(self) -> Optional[str]:
        return self.dist_tags.get("latest")

    @property
    def latest_info(self) -> VersionInfo:
        """Metadata for the latest version, empty if the registry omits it"""
        if self.latest_version is None:
            return VersionInfo()
        return self.versions.get(self.latest_version) or VersionInfo()

    @property
    def last_publish(self) -> Optional[str]:
        """Publish time of the latest version, else the last modification time"""
        if self.latest_version and self.latest_version in self.time:
            return self.time[self.latest_version]
        return self.time.get("modified")

    @property
    def repository_field(self) -> Optional[RepositoryValue]:
        return self.latest_info.repository or self.repository


class RepositorySummary(BaseModel):
    """Activity signals from the source repository"""
    open_issues: int = Field(-1, ge=-1, description="Open issues, -1 when unknown")
    last_commit: Optional[datetime] = Field(None, description="Latest commit timestamp")


class HealthReport(BaseModel):
    """Complete health report for a package, serialised with camelCase keys"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Package name")
    version: Optional[str] = Field(None, description="Latest version tag")
    description: str = Field("", description="Package description")
    last_publish: Optional[datetime] = Field(None, alias="lastPublish")
    days_since_publish: int = Field(..., alias="daysSincePublish")
    weekly_downloads: int = Field(0, ge=0, alias="weeklyDownloads")
    open_issues: int = Field(-1, ge=-1, alias="openIssues")
    last_commit: Optional[datetime] = Field(None, alias="lastCommit")
    days_since_commit: Optional[int] = Field(None, alias="daysSinceCommit")
    status: HealthStatus = Field(..., description="Health status")
    repo_url: Optional[str] = Field(None, alias="repoUrl")
    npm_url: str = Field(..., alias="npmUrl")
    maintainers: List[str] = Field(default_factory=list, max_length=5)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp as returned by npm and GitHub

    Args:
        value: Timestamp string such as 2024-01-01T00:00:00.000Z

    Returns:
        Timezone-aware datetime, or None if missing or unparseable
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
