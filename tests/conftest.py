"""Shared test fixtures for octx."""

from unittest.mock import MagicMock

import pytest

from octx.client import Page
from octx.config import OctxConfig

API_URL = "https://api.github.com/"


@pytest.fixture
def sample_config():
    """Minimal OctxConfig for testing (no .env, no real token)."""
    return OctxConfig(github_api_token="test-token", _env_file=None)


def routed_client(routes: dict[str, list[Page] | Page], objects: dict[str, dict] | None = None) -> MagicMock:
    """A client double that serves pages by route (the URL without API_URL).

    A route mapped to a list of pages serves them as page 1, 2, ... by
    following ``<route>#<n>`` next links.
    """
    pages: dict[str, Page] = {}
    for route, served in routes.items():
        if isinstance(served, Page):
            pages[API_URL + route] = served
            continue
        for n, page in enumerate(served):
            url = API_URL + route if n == 0 else f"{API_URL}{route}#{n}"
            next_url = f"{API_URL}{route}#{n + 1}" if n + 1 < len(served) else None
            pages[url] = Page(items=page.items, next_url=next_url)

    client = MagicMock()
    client.base_url = API_URL
    client.fetch_page.side_effect = lambda url: pages[url]
    client.fetch_object.side_effect = lambda url: (objects or {})[url]
    client.absolute_url.side_effect = lambda route: API_URL + route
    return client


def fetched_routes(client: MagicMock) -> list[str]:
    return [c.args[0].removeprefix(API_URL) for c in client.fetch_page.call_args_list]


def written_rows(sink: MagicMock) -> list[dict]:
    return [c.args[0] for c in sink.write.call_args_list]


@pytest.fixture
def sample_issue():
    """Issue as returned by GET /repos/{owner}/{repo}/issues."""
    return {
        "id": 1001,
        "node_id": "I_kwDOA",
        "url": "https://api.github.com/repos/O/R/issues/7",
        "repository_url": "https://api.github.com/repos/O/R",
        "labels_url": "https://api.github.com/repos/O/R/issues/7/labels{/name}",
        "comments_url": "https://api.github.com/repos/O/R/issues/7/comments",
        "events_url": "https://api.github.com/repos/O/R/issues/7/events",
        "html_url": "https://github.com/O/R/issues/7",
        "number": 7,
        "state": "open",
        "title": "Crash on empty input",
        "body": "Steps to reproduce",
        "user": {"login": "octocat", "id": 1},
        "labels": [{"id": 11, "name": "bug"}, {"id": 12, "name": "good first issue"}],
        "assignee": {"login": "hubot", "id": 2},
        "assignees": [{"login": "hubot", "id": 2}, {"login": "monalisa", "id": 3}],
        "author_association": "OWNER",
        "milestone": {"id": 5, "title": "v1.0"},
        "locked": False,
        "active_lock_reason": None,
        "comments": 3,
        "pull_request": None,
        "closed_at": None,
        "created_at": "2024-01-10T14:30:00Z",
        "updated_at": "2024-01-11T09:15:00Z",
        "reactions": {"total_count": 0},
    }


@pytest.fixture
def sample_commit():
    return {
        "sha": "6dcb09b5b57875f334f61aebed695e2e4193db5e",
        "node_id": "C_kwDOA",
        "url": "https://api.github.com/repos/O/R/commits/6dcb09b",
        "html_url": "https://github.com/O/R/commit/6dcb09b",
        "comments_url": "https://api.github.com/repos/O/R/commits/6dcb09b/comments",
        "commit": {
            "author": {"name": "Mona", "email": "mona@example.com", "date": "2024-01-10T14:30:00Z"},
            "committer": {"name": "GitHub", "email": "noreply@github.com", "date": "2024-01-10T15:00:00Z"},
            "message": "Fix all the bugs",
            "comment_count": 0,
        },
        "author": {"login": "monalisa", "id": 3},
        "committer": None,
        "parents": [{"sha": "aaa111", "url": "u1"}, {"sha": "bbb222", "url": "u2"}],
    }


@pytest.fixture
def sample_job():
    """Job with three steps as returned by GET /repos/{owner}/{repo}/actions/runs/{id}/jobs."""
    return {
        "id": 399444496,
        "run_id": 29679449,
        "node_id": "MDEyOldvcmtmbG93IEpvYjM5OTQ0NDQ5Ng==",
        "head_sha": "f83a356604ae3c5d03e1b46ef4d1ca77d64a90b0",
        "name": "build",
        "workflow_name": "CI",
        "status": "completed",
        "conclusion": "success",
        "started_at": "2024-01-10T14:30:00Z",
        "completed_at": "2024-01-10T14:35:00Z",
        "url": "https://api.github.com/repos/O/R/actions/jobs/399444496",
        "html_url": "https://github.com/O/R/runs/399444496",
        "run_url": "https://api.github.com/repos/O/R/actions/runs/29679449",
        "check_run_url": "https://api.github.com/repos/O/R/check-runs/399444496",
        "labels": ["ubuntu-latest", "self-hosted"],
        "runner_id": 1,
        "runner_name": "runner-1",
        "runner_group_id": 2,
        "runner_group_name": "Default",
        "steps": [
            {"name": "Set up job", "status": "completed", "conclusion": "success", "number": 1,
             "started_at": "2024-01-10T14:30:00Z", "completed_at": "2024-01-10T14:30:05Z"},
            {"name": "Run tests", "status": "completed", "conclusion": "success", "number": 2,
             "started_at": "2024-01-10T14:30:05Z", "completed_at": "2024-01-10T14:34:00Z"},
            {"name": "Complete job", "status": "completed", "conclusion": "success", "number": 3,
             "started_at": "2024-01-10T14:34:00Z", "completed_at": "2024-01-10T14:35:00Z"},
        ],
    }


@pytest.fixture
def sample_user():
    return {
        "login": "octocat",
        "id": 1,
        "node_id": "MDQ6VXNlcjE=",
        "avatar_url": "https://github.com/images/error/octocat_happy.gif",
        "gravatar_id": "",
        "url": "https://api.github.com/users/octocat",
        "html_url": "https://github.com/octocat",
        "type": "User",
        "site_admin": False,
    }
