"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest
import requests

from leonidas_orchestrator.orchestrator.github.client import GitHubClient

REPO_API = "https://api.github.com/repos/octo-org/octo-repo"

ResponseFactory = Callable[..., Mock]


def _make_response(status_code: int = 200, payload: Any = None) -> Mock:
    resp = Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=resp
        )
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def make_response() -> ResponseFactory:
    """Build a fake `requests.Response` with the given status and JSON payload."""
    return _make_response


@pytest.fixture
def session() -> Mock:
    """Provide a fake requests session; tests set `get`/`post` side effects."""
    fake = Mock()
    fake.headers = {}
    return fake


@pytest.fixture
def repo_api() -> Mock:
    """Provide a fake PyGithub Repository (no network during construction)."""
    return Mock()


@pytest.fixture
def client(session: Mock, repo_api: Mock) -> GitHubClient:
    """Provide a client for octo-org/octo-repo backed by fakes."""
    return GitHubClient(
        token="test-token",
        owner="octo-org",
        repo="octo-repo",
        session=session,
        repo_api=repo_api,
    )


@pytest.fixture
def issue_payload() -> Callable[..., dict[str, Any]]:
    """Build a REST issue payload."""

    def _build(
        number: int,
        *,
        state: str = "open",
        body: str = "",
        labels: list[str] | None = None,
        author: str | None = "octocat",
        title: str = "Issue title",
    ) -> dict[str, Any]:
        return {
            "number": number,
            "id": 1000 + number,
            "title": title,
            "body": body,
            "state": state,
            "labels": [{"name": name} for name in labels or []],
            "user": {"login": author} if author else None,
        }

    return _build
