"""Tests for octx.traversal: workflow/run/job trees, pull request children, users."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from octx.client import Page
from octx.models import ErrorPolicy
from octx.traversal import PullRequestTraversal, UserTraversal, WorkflowTraversal

from conftest import API_URL, fetched_routes, routed_client, written_rows

WORKFLOWS = "repos/O/R/actions/workflows?per_page=100"
PULLS = "repos/O/R/pulls?per_page=100&state=all&sort=updated&direction=desc"


def _runs_route(workflow) -> str:
    return f"repos/O/R/actions/workflows/{workflow}/runs?per_page=100"


def _jobs_route(run_id) -> str:
    return f"repos/O/R/actions/runs/{run_id}/jobs?per_page=100&filter=all"


def _job(job_id: int, run_id: int, steps: int = 2) -> dict:
    return {
        "id": job_id,
        "run_id": run_id,
        "name": f"job-{job_id}",
        "steps": [{"name": f"step {n}", "number": n, "status": "completed"} for n in range(1, steps + 1)],
    }


def _workflow_tree() -> dict:
    """W1 has runs r1, r2 (r2 on a second page); W2 has run r3."""
    return {
        WORKFLOWS: Page([{"id": 1, "name": "CI"}, {"id": 2, "name": "Release"}]),
        _runs_route(1): [
            Page([{"id": 101, "workflow_id": 1, "name": "r1"}]),
            Page([{"id": 102, "workflow_id": 1, "name": "r2"}]),
        ],
        _runs_route(2): Page([{"id": 103, "workflow_id": 2, "name": "r3"}]),
        _jobs_route(101): Page([_job(1001, 101), _job(1002, 101)]),
        _jobs_route(102): Page([_job(1003, 102, steps=3)]),
        _jobs_route(103): Page([]),
    }


class TestWorkflowTraversal:
    def test_workflows_flat(self):
        client = routed_client(_workflow_tree())
        sink = MagicMock()

        WorkflowTraversal(client, sink, owner="O", repo="R").workflows()

        assert [row["id"] for row in written_rows(sink)] == [1, 2]
        assert fetched_routes(client) == [WORKFLOWS]

    def test_runs_grouped_by_workflow(self):
        client = routed_client(_workflow_tree())
        sink = MagicMock()

        WorkflowTraversal(client, sink, owner="O", repo="R").runs()

        rows = written_rows(sink)
        assert [row["name"] for row in rows] == ["r1", "r2", "r3"]
        assert [row["workflow_id"] for row in rows] == [1, 1, 2]
        assert {row["repository"] for row in rows} == {"O/R"}

    def test_runs_for_one_workflow_file(self):
        client = routed_client({_runs_route("ci.yml"): Page([{"id": 7, "workflow_id": 1}])})
        sink = MagicMock()

        WorkflowTraversal(client, sink, owner="O", repo="R").runs("ci.yml")

        assert fetched_routes(client) == [_runs_route("ci.yml")]
        assert [row["id"] for row in written_rows(sink)] == [7]

    def test_all_jobs_collects_run_ids_first(self):
        client = routed_client(_workflow_tree())
        sink = MagicMock()

        WorkflowTraversal(client, sink, owner="O", repo="R").jobs()

        routes = fetched_routes(client)
        first_jobs = min(i for i, route in enumerate(routes) if "/jobs" in route)
        assert all("/jobs" not in route for route in routes[:first_jobs])
        assert all("/jobs" in route for route in routes[first_jobs:])
        assert [row["id"] for row in written_rows(sink)] == [1001, 1002, 1003]
        assert [row["run_id"] for row in written_rows(sink)] == [101, 101, 102]

    def test_jobs_for_one_run_with_steps(self):
        client = routed_client(_workflow_tree())
        sink = MagicMock()

        stats = WorkflowTraversal(client, sink, owner="O", repo="R").jobs("102", denormalize_steps=True)

        rows = written_rows(sink)
        assert fetched_routes(client) == [_jobs_route(102)]
        assert [row["step_number"] for row in rows] == [1, 2, 3]
        assert {row["id"] for row in rows} == {1003}
        assert stats.rows_written == 3

    def test_all_jobs_denormalized(self):
        client = routed_client(_workflow_tree())
        sink = MagicMock()

        WorkflowTraversal(client, sink, owner="O", repo="R").jobs(denormalize_steps=True)

        rows = written_rows(sink)
        assert len(rows) == 2 + 2 + 3
        assert [(row["id"], row["step_number"]) for row in rows][:3] == [(1001, 1), (1001, 2), (1002, 1)]

    def test_shared_stats(self):
        client = routed_client(_workflow_tree())

        stats = WorkflowTraversal(client, MagicMock(), owner="O", repo="R").runs()

        # workflows page, two run pages for W1, one for W2
        assert stats.pages_fetched == 4
        assert stats.rows_written == 3

    def test_bad_workflow_skipped_under_skip_policy(self):
        tree = _workflow_tree()
        tree[WORKFLOWS] = Page([{"name": "no id"}, {"id": 2}])
        client = routed_client(tree)
        sink = MagicMock()

        stats = WorkflowTraversal(client, sink, owner="O", repo="R", error_policy=ErrorPolicy.SKIP).runs()

        assert [row["name"] for row in written_rows(sink)] == ["r3"]
        assert stats.rows_skipped == 1


class TestPullRequestTraversal:
    def _pulls(self) -> list[Page]:
        return [
            Page([
                {"number": 3, "updated_at": "2024-03-05T00:00:00Z"},
                {"number": 2, "updated_at": "2024-03-02T00:00:00Z"},
            ]),
            Page([{"number": 1, "updated_at": "2024-02-01T00:00:00Z"}]),
            Page([{"number": 0, "updated_at": "2024-01-01T00:00:00Z"}]),
        ]

    def _routes(self, child: str) -> dict:
        routes = {PULLS: self._pulls()}
        for number in range(4):
            routes[f"repos/O/R/pulls/{number}/{child}?per_page=100"] = Page(
                [{"id": number * 10, "filename": f"f{number}.py", "state": "COMMENTED"}]
            )
        return routes

    def test_files_for_every_pull_request(self):
        client = routed_client(self._routes("files"))
        sink = MagicMock()

        PullRequestTraversal(client, sink, owner="O", repo="R").files()

        rows = written_rows(sink)
        assert [row["filename"] for row in rows] == ["f3.py", "f2.py", "f1.py", "f0.py"]
        assert [row["pull_request_number"] for row in rows] == [3, 2, 1, 0]

    def test_children_walked_before_next_pull(self):
        client = routed_client(self._routes("reviews"))

        PullRequestTraversal(client, MagicMock(), owner="O", repo="R").reviews()

        routes = fetched_routes(client)
        assert routes[:3] == [PULLS, "repos/O/R/pulls/3/reviews?per_page=100", "repos/O/R/pulls/2/reviews?per_page=100"]

    def test_since_stops_pull_listing(self):
        client = routed_client(self._routes("reviews"))
        sink = MagicMock()
        since = datetime(2024, 3, 1, tzinfo=timezone.utc)

        stats = PullRequestTraversal(client, sink, owner="O", repo="R").reviews(since)

        # page 1 ends after the threshold, page 2 ends before it
        assert [row["pull_request_number"] for row in written_rows(sink)] == [3, 2, 1]
        assert f"{PULLS}#2" not in fetched_routes(client)
        assert stats.stopped_early is True


class TestUserTraversal:
    def test_users(self, sample_user):
        client = routed_client({"users?per_page=100": Page([sample_user])})
        sink = MagicMock()

        UserTraversal(client, sink).users()

        (row,) = written_rows(sink)
        assert row["login"] == "octocat"
        assert row["repository"] == ""

    def test_users_detailed_fetches_each_user(self, sample_user):
        other = {**sample_user, "login": "hubot", "id": 2, "url": None}
        client = routed_client(
            {"users?per_page=100": Page([sample_user, other])},
            objects={
                sample_user["url"]: {**sample_user, "name": "The Octocat"},
                f"{API_URL}users/hubot": {**other, "name": "Hubot"},
            },
        )
        sink = MagicMock()

        stats = UserTraversal(client, sink).users_detailed()

        assert [row["name"] for row in written_rows(sink)] == ["The Octocat", "Hubot"]
        assert client.fetch_object.call_count == 2
        assert stats.rows_written == 2
