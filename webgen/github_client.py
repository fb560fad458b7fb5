"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

The documentation stage uses this client (through a pool) and nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import requests

from webgen.errors import ExternalError


class GitHubError(ExternalError):
    pass


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    description: str
    html_url: str
    default_branch: str
    topics: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, owner: str, data: dict[str, Any]) -> RepoInfo:
        return cls(
            owner=owner,
            name=data["name"],
            description=data.get("description") or "",
            html_url=data["html_url"],
            default_branch=data.get("default_branch") or "main",
            topics=tuple(data.get("topics") or ()),
        )


class GitHubClient:
    def __init__(self, token: str = "", api_base: str = "https://api.github.com") -> None:
        self._token = token.strip()
        self._api_base = api_base.rstrip("/")
        self._session = requests.Session()

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "webgen",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        accept: str = "application/vnd.github+json",
    ) -> requests.Response:
        url = f"{self._api_base}{path}"
        try:
            r = self._session.request(method, url, headers=self._headers(accept), params=params, timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {payload.get('message', payload)}")
        return r

    def list_org_repos(self, org: str) -> list[RepoInfo]:
        """
        Return every public repository of `org`, following pagination, sorted by name.
        """
        repos: list[RepoInfo] = []
        page = 1
        while True:
            r = self._request("GET", f"/orgs/{org}/repos", params={"type": "public", "per_page": 100, "page": page})
            try:
                batch = r.json()
                if not isinstance(batch, list):
                    raise TypeError(f"expected a list, got {type(batch).__name__}")
                repos.extend(RepoInfo.from_api(org, item) for item in batch if not item.get("archived"))
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise GitHubError(f"Unexpected response listing repositories of {org}: {e}") from e
            if len(batch) < 100:
                break
            page += 1
        repos.sort(key=lambda repo: repo.name)
        return repos

    def get_readme(self, owner: str, name: str) -> str | None:
        """
        Return the raw README text of a repository, or None when it has none.
        """
        try:
            r = self._request("GET", f"/repos/{owner}/{name}/readme", accept="application/vnd.github.raw+json")
        except GitHubError as e:
            msg = str(e).lower()
            if "404" in msg or "not found" in msg:
                return None
            raise
        return r.text

    def close(self) -> None:
        self._session.close()
