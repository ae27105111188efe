"""
Repository source adapters.

GitHub describes the same repository differently depending on where it was
found:

- REST ``GET /user/repos`` and ``GET /orgs/{org}/repos`` return snake_case
  records with a ``permissions`` object of booleans.
- The GraphQL pull-request search returns camelCase repository nodes with a
  single ``viewerPermission`` role string.

The functions here turn each shape into the canonical ``Repository`` DTO.
They are pure: no I/O, no filtering.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from app.dtos.github import Repository, RepositoryOwner, RepositoryPermissions


class RepoSource(str, Enum):
    """Where a repository record was discovered."""

    PULL_REQUEST = "pull_request"
    PERSONAL = "personal"
    ORGANIZATION = "organization"


class PermissionLevel(str, Enum):
    """GitHub repository roles, least to most privileged."""

    READ = "READ"
    TRIAGE = "TRIAGE"
    WRITE = "WRITE"
    MAINTAIN = "MAINTAIN"
    ADMIN = "ADMIN"


# Each role implies every role below it.
PERMISSION_TIERS: Dict[PermissionLevel, RepositoryPermissions] = {
    PermissionLevel.ADMIN: RepositoryPermissions(
        admin=True, maintain=True, push=True, triage=True, pull=True
    ),
    PermissionLevel.MAINTAIN: RepositoryPermissions(
        maintain=True, push=True, triage=True, pull=True
    ),
    PermissionLevel.WRITE: RepositoryPermissions(push=True, triage=True, pull=True),
    PermissionLevel.TRIAGE: RepositoryPermissions(triage=True, pull=True),
    PermissionLevel.READ: RepositoryPermissions(pull=True),
}


def permissions_for_level(level: Optional[str]) -> RepositoryPermissions:
    """Expand a ``viewerPermission`` role into the boolean permission set."""
    try:
        tier = PermissionLevel(level)
    except ValueError:
        return RepositoryPermissions()
    return PERMISSION_TIERS[tier].model_copy()


@dataclass(frozen=True)
class SourcedRepository:
    """A canonical record plus the raw traits the aggregator filters on."""

    repository: Repository
    source: RepoSource
    is_fork: bool
    star_count: int

    @property
    def external_id(self) -> int:
        return self.repository.external_id


def _map_rest_repo(raw: Dict[str, Any], source: RepoSource) -> SourcedRepository:
    owner = raw.get("owner") or {}
    repository = Repository(
        external_id=raw["id"],
        name=raw["name"],
        full_name=raw["full_name"],
        description=raw.get("description"),
        url=raw["html_url"],
        owner=RepositoryOwner(
            id=owner.get("id", ""),
            type=owner.get("type", ""),
            name=owner.get("login", ""),
            avatar_url=owner.get("avatar_url", ""),
            url=owner.get("html_url", ""),
        ),
        permissions=RepositoryPermissions.model_validate(raw.get("permissions") or {}),
    )
    return SourcedRepository(
        repository=repository,
        source=source,
        is_fork=bool(raw.get("fork")),
        star_count=raw.get("stargazers_count") or 0,
    )


def map_user_repo(raw: Dict[str, Any]) -> SourcedRepository:
    """Map an entry of the authenticated user's repository listing."""
    return _map_rest_repo(raw, RepoSource.PERSONAL)


def map_org_repo(raw: Dict[str, Any]) -> SourcedRepository:
    """Map an entry of an organization's repository listing."""
    return _map_rest_repo(raw, RepoSource.ORGANIZATION)


def map_pr_repo(node: Dict[str, Any]) -> SourcedRepository:
    """Map the repository node attached to a merged pull request."""
    owner = node.get("owner") or {}
    repository = Repository(
        external_id=node["databaseId"],
        name=node["name"],
        full_name=node["nameWithOwner"],
        description=node.get("description"),
        url=node["url"],
        owner=RepositoryOwner(
            id=owner.get("id", ""),
            type=owner.get("__typename", ""),
            name=owner.get("login", ""),
            avatar_url=owner.get("avatarUrl", ""),
            url=owner.get("url", ""),
        ),
        permissions=permissions_for_level(node.get("viewerPermission")),
    )
    return SourcedRepository(
        repository=repository,
        source=RepoSource.PULL_REQUEST,
        is_fork=bool(node.get("isFork")),
        star_count=node.get("stargazerCount") or 0,
    )
