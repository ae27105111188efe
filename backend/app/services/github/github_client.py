"""Async GitHub client bound to a user's OAuth token.

Covers the four reads the onboarding flow needs: the authenticated user's
public repositories, the organizations a user belongs to, an organization's
repositories, and the repositories of a user's merged public pull requests
(GraphQL search).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.services.github.exceptions import (
    GithubAuthError,
    GithubError,
    GithubRateLimitError,
    GithubRetryableError,
)

logger = logging.getLogger(__name__)

MERGED_PULL_REQUESTS_QUERY = """
query MergedPublicPullRequests($searchQuery: String!, $first: Int!) {
  search(query: $searchQuery, type: ISSUE, first: $first) {
    issueCount
    edges {
      node {
        ... on PullRequest {
          title
          repository {
            databaseId
            name
            nameWithOwner
            viewerPermission
            description
            url
            isFork
            stargazerCount
            owner {
              id
              __typename
              avatarUrl
              login
              url
            }
          }
        }
      }
    }
  }
}
"""


class GitHubClient:
    """Thin async wrapper over the GitHub REST and GraphQL APIs."""

    ACCEPT_JSON = "application/vnd.github+json"
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        access_token: str,
        *,
        api_url: Optional[str] = None,
        graphql_url: Optional[str] = None,
        page_size: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._access_token = access_token
        self._api_url = (api_url or settings.GITHUB_API_URL).rstrip("/")
        self._graphql_url = graphql_url or settings.GITHUB_GRAPHQL_URL
        self._page_size = page_size or settings.GITHUB_PAGE_SIZE
        self._timeout_seconds = timeout_seconds or settings.GITHUB_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
                headers={
                    "Accept": self.ACCEPT_JSON,
                    "Authorization": f"Bearer {self._access_token}",
                    "X-GitHub-Api-Version": self.API_VERSION,
                },
            )
        return self._client

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------

    async def get_authenticated_user(self) -> Dict[str, Any]:
        return await self._request("GET", f"{self._api_url}/user")

    async def list_repositories_for_user(self) -> List[Dict[str, Any]]:
        """Public repositories of the authenticated user."""
        return await self._request(
            "GET",
            f"{self._api_url}/user/repos",
            params={"type": "public", "per_page": self._page_size},
        )

    async def list_organizations_for_user(self, login: str) -> List[Dict[str, Any]]:
        return await self._request(
            "GET",
            f"{self._api_url}/users/{login}/orgs",
            params={"per_page": self._page_size},
        )

    async def list_repositories_for_org(self, org: str) -> List[Dict[str, Any]]:
        return await self._request(
            "GET",
            f"{self._api_url}/orgs/{org}/repos",
            params={"per_page": self._page_size},
        )

    # ------------------------------------------------------------------
    # GraphQL
    # ------------------------------------------------------------------

    async def search_merged_public_pull_requests(self, login: str) -> List[Dict[str, Any]]:
        """
        Repository nodes of the first 100 merged public PRs authored by ``login``.

        One entry per pull request, so the same repository can repeat.
        """
        payload = await self._request(
            "POST",
            self._graphql_url,
            json={
                "query": MERGED_PULL_REQUESTS_QUERY,
                "variables": {
                    "searchQuery": f"author:{login} is:pr is:public is:merged",
                    "first": 100,
                },
            },
        )
        if payload.get("errors"):
            messages = "; ".join(
                str(error.get("message", error)) for error in payload["errors"]
            )
            raise GithubError(f"GitHub GraphQL search failed: {messages}")

        search = (payload.get("data") or {}).get("search") or {}
        edges = search.get("edges") or []
        logger.debug(
            f"PR search for {login} returned {len(edges)} of {search.get('issueCount', 0)} results"
        )
        return [
            edge["node"]["repository"]
            for edge in edges
            if (edge.get("node") or {}).get("repository")
        ]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        client = self._ensure_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise GithubRetryableError(f"GitHub request to {url} failed: {exc}") from exc

        if response.status_code == 401:
            raise GithubAuthError(
                "GitHub token expired or revoked", status_code=response.status_code
            )

        if response.status_code in (403, 429) and (
            response.headers.get("X-RateLimit-Remaining") == "0"
            or "Retry-After" in response.headers
        ):
            retry_after = response.headers.get("Retry-After")
            raise GithubRateLimitError(
                f"GitHub rate limit hit for {url}",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                status_code=response.status_code,
            )

        if response.status_code >= 500:
            raise GithubRetryableError(
                f"GitHub returned {response.status_code} for {url}",
                status_code=response.status_code,
            )

        if response.status_code >= 400:
            raise GithubError(
                f"GitHub returned {response.status_code} for {url}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GithubError(
                f"GitHub returned a non-JSON body for {url}", status_code=response.status_code
            ) from exc
