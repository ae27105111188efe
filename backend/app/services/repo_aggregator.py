"""
Repository aggregation for the onboarding repo picker.

Candidates come from three GitHub surfaces: repositories of the user's
merged public pull requests, the user's own public repositories, and the
repositories of every organization the user belongs to.

Two orders matter and they differ:

- Identity resolution runs PR -> personal -> organization. The first record
  seen for an ``external_id`` wins; later duplicates are dropped whatever
  their source.
- The returned list is personal + organization + PR. A surviving record
  stays in the segment of the source it came from.

Forks are always rejected. Personal and organization repositories must also
have at least ``REPO_MIN_STARS`` stars and admin, maintain or push access.
PR repositories skip those two checks: a merged PR is signal enough.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

import httpx

from app.config import settings
from app.dtos.github import Repository
from app.services.github.exceptions import GithubError
from app.services.github.repo_sources import (
    RepoSource,
    SourcedRepository,
    map_org_repo,
    map_pr_repo,
    map_user_repo,
)
from app.services.onboarding_exceptions import UpstreamAPIError

logger = logging.getLogger(__name__)


class GithubRepoSource(Protocol):
    """The GitHub reads the aggregator depends on."""

    async def list_repositories_for_user(self) -> List[Dict[str, Any]]: ...

    async def list_organizations_for_user(self, login: str) -> List[Dict[str, Any]]: ...

    async def list_repositories_for_org(self, org: str) -> List[Dict[str, Any]]: ...

    async def search_merged_public_pull_requests(self, login: str) -> List[Dict[str, Any]]: ...


@dataclass
class RepoAggregation:
    """Result of one aggregation call."""

    repositories: List[Repository]
    rejected_ids: Set[int] = field(default_factory=set)


@dataclass
class _FetchedSources:
    pr_repos: List[SourcedRepository]
    personal_repos: List[SourcedRepository]
    org_repos: List[SourcedRepository]


class RepoAggregator:
    """Merge, dedupe, filter and order a user's repository candidates."""

    def __init__(self, source: GithubRepoSource, min_stars: Optional[int] = None):
        self.source = source
        self.min_stars = settings.REPO_MIN_STARS if min_stars is None else min_stars

    async def aggregate(self, login: str) -> RepoAggregation:
        """
        Build the repository list for ``login``.

        Raises:
            UpstreamAPIError: If any GitHub read fails. No partial list is
                returned.
        """
        try:
            fetched = await self._fetch_all(login)
        except (GithubError, httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            # ValueError also covers pydantic ValidationError from a malformed record
            logger.error(f"Received error when fetching repos for GitHub user {login} - {exc}")
            raise UpstreamAPIError("Failed to fetch repos for GitHub user") from exc

        aggregation = self.merge(fetched.pr_repos, fetched.personal_repos, fetched.org_repos)
        logger.info(
            f"Found {len(aggregation.repositories)} total applicable repos for GitHub user "
            f"{login}. Rejected {len(aggregation.rejected_ids)} repos."
        )
        return aggregation

    async def _fetch_all(self, login: str) -> _FetchedSources:
        pr_nodes = await self.source.search_merged_public_pull_requests(login)
        user_repos = await self.source.list_repositories_for_user()
        orgs = await self.source.list_organizations_for_user(login)

        # Independent reads, joined before the merge touches any shared state
        org_repo_lists = await asyncio.gather(
            *(self.source.list_repositories_for_org(org["login"]) for org in orgs)
        )
        logger.debug(
            f"Fetched {len(pr_nodes)} PR repos, {len(user_repos)} personal repos and "
            f"{sum(len(repos) for repos in org_repo_lists)} repos across {len(orgs)} orgs"
        )

        return _FetchedSources(
            pr_repos=[map_pr_repo(node) for node in pr_nodes],
            personal_repos=[map_user_repo(raw) for raw in user_repos],
            org_repos=[
                map_org_repo(raw) for repos in org_repo_lists for raw in repos
            ],
        )

    def merge(
        self,
        pr_repos: Iterable[SourcedRepository],
        personal_repos: Iterable[SourcedRepository],
        org_repos: Iterable[SourcedRepository],
    ) -> RepoAggregation:
        """Single-threaded dedup and filter pass over already fetched records."""
        seen_ids: Set[int] = set()
        rejected_ids: Set[int] = set()

        kept_pr = self._filter_source(pr_repos, seen_ids, rejected_ids)
        kept_personal = self._filter_source(personal_repos, seen_ids, rejected_ids)
        kept_org = self._filter_source(org_repos, seen_ids, rejected_ids)

        return RepoAggregation(
            repositories=[
                sourced.repository for sourced in (*kept_personal, *kept_org, *kept_pr)
            ],
            rejected_ids=rejected_ids,
        )

    def _filter_source(
        self,
        records: Iterable[SourcedRepository],
        seen_ids: Set[int],
        rejected_ids: Set[int],
    ) -> List[SourcedRepository]:
        kept: List[SourcedRepository] = []
        for sourced in records:
            if sourced.external_id in seen_ids:
                continue
            seen_ids.add(sourced.external_id)
            if sourced.is_fork:
                rejected_ids.add(sourced.external_id)
                continue
            if sourced.source != RepoSource.PULL_REQUEST and not self._is_eligible(sourced):
                rejected_ids.add(sourced.external_id)
                continue
            kept.append(sourced)
        return kept

    def _is_eligible(self, sourced: SourcedRepository) -> bool:
        return (
            sourced.star_count >= self.min_stars
            and sourced.repository.permissions.can_push
        )
