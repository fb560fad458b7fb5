from __future__ import annotations

from typing import Any

import pytest
import requests

from webgen.github_client import GitHubClient, GitHubError


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _repo(name: str, **extra: Any) -> dict[str, Any]:
    data = {"name": name, "html_url": f"https://github.com/o/{name}", "description": None, "default_branch": "main"}
    data.update(extra)
    return data


def test_list_org_repos_follows_pages(monkeypatch: pytest.MonkeyPatch) -> None:
    client = GitHubClient("tok")
    pages = {1: [_repo(f"r{i:03d}") for i in range(100)], 2: [_repo("alpha", topics=["3d"]), _repo("old", archived=True)]}
    seen: list[dict[str, Any]] = []

    def fake_request(method, url, headers=None, params=None, timeout=None):
        seen.append({"url": url, "params": params, "headers": headers})
        return FakeResponse(200, pages[params["page"]])

    monkeypatch.setattr(client._session, "request", fake_request)
    repos = client.list_org_repos("o")

    assert len(repos) == 101
    assert repos[0].name == "alpha"
    assert repos[0].topics == ("3d",)
    assert repos[0].description == ""
    assert all(r.name != "old" for r in repos)
    assert seen[0]["url"] == "https://api.github.com/orgs/o/repos"
    assert seen[0]["headers"]["Authorization"] == "Bearer tok"


def test_anonymous_client_sends_no_authorization(monkeypatch: pytest.MonkeyPatch) -> None:
    client = GitHubClient()
    captured: dict[str, Any] = {}

    def fake_request(method, url, headers=None, params=None, timeout=None):
        captured.update(headers)
        return FakeResponse(200, [])

    monkeypatch.setattr(client._session, "request", fake_request)
    assert client.list_org_repos("o") == []
    assert "Authorization" not in captured
    assert not client.authenticated


def test_get_readme_missing_returns_none(monkeypatch: pytest.MonkeyPatch) -> None:
    client = GitHubClient("tok")
    monkeypatch.setattr(
        client._session, "request", lambda *a, **kw: FakeResponse(404, {"message": "Not Found"})
    )
    assert client.get_readme("o", "r") is None


def test_get_readme_returns_raw_text(monkeypatch: pytest.MonkeyPatch) -> None:
    client = GitHubClient("tok")
    monkeypatch.setattr(client._session, "request", lambda *a, **kw: FakeResponse(200, text="# Title\n"))
    assert client.get_readme("o", "r") == "# Title\n"


def test_errors_are_raised(monkeypatch: pytest.MonkeyPatch) -> None:
    client = GitHubClient("tok")
    monkeypatch.setattr(client._session, "request", lambda *a, **kw: FakeResponse(500, text="boom"))
    with pytest.raises(GitHubError, match="500"):
        client.list_org_repos("o")

    def unreachable(*a, **kw):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(client._session, "request", unreachable)
    with pytest.raises(GitHubError, match="down"):
        client.get_readme("o", "r")


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(200, None, text="<html>proxy login</html>"),
        FakeResponse(200, {"message": "not a list"}),
        FakeResponse(200, [{"name": "no-url"}]),
        FakeResponse(200, ["just a string"]),
    ],
)
def test_malformed_listing_is_a_github_error(monkeypatch: pytest.MonkeyPatch, response: FakeResponse) -> None:
    client = GitHubClient("tok")
    monkeypatch.setattr(client._session, "request", lambda *a, **kw: response)
    with pytest.raises(GitHubError, match="Unexpected response"):
        client.list_org_repos("o")
