"""Walks that span more than one listing.

Parent listings are walked to find ids, then each child listing is walked in
full before the next parent is touched, so rows come out grouped by parent
in the order the parents were listed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from octx.client import GitHubClient
from octx.cutoff import SinceCutoff
from octx.logging_utils import get_logger
from octx.mapping import JobMapper, ResourceMapper, RunMapper, StepMapper, UserDetailedMapper, UserMapper, WorkflowMapper, get_mapper
from octx.models import ErrorPolicy, PullRequest, ResourceKind, User, WalkStats, Workflow, WorkflowRun
from octx.params import (
    MAX_PAGE_SIZE,
    PULL_FILES_ROUTE,
    PULL_REVIEWS_ROUTE,
    PULLS_ROUTE,
    RUN_JOBS_ROUTE,
    USERS_ROUTE,
    WORKFLOW_RUNS_ROUTE,
    WORKFLOWS_ROUTE,
    EntrypointSpec,
    Params,
    State,
    build_params,
)
from octx.sink import CsvSink
from octx.walker import PageCursorWalker

logger = get_logger(__name__)


class Traversal:
    """Shared wiring: one client, one sink, one set of counters."""

    def __init__(
        self,
        client: GitHubClient,
        sink: CsvSink,
        owner: str | None = None,
        repo: str | None = None,
        page_size: int = MAX_PAGE_SIZE,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
        stats: WalkStats | None = None,
    ):
        self.client = client
        self.sink = sink
        self.owner = owner
        self.repo = repo
        self.page_size = page_size
        self.error_policy = error_policy
        self.stats = stats if stats is not None else WalkStats()

    @property
    def repository(self) -> str:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return ""

    def walker(self, cutoff: SinceCutoff | None = None) -> PageCursorWalker:
        return PageCursorWalker(
            self.client,
            sink=self.sink,
            cutoff=cutoff,
            error_policy=self.error_policy,
            stats=self.stats,
        )

    def params(self, **kwargs: Any) -> Params:
        return build_params(per_page=self.page_size, **kwargs)

    def url(self, route: str, params: Params | None = None, **path_args: Any) -> str:
        spec = EntrypointSpec(
            route_template=route,
            params=params if params is not None else self.params(),
            owner=self.owner,
            repo=self.repo,
            path_args=path_args,
        )
        return spec.url(self.client.base_url)


class WorkflowTraversal(Traversal):
    """workflow -> run -> job (-> step)."""

    def workflows(self) -> WalkStats:
        return self.walker().walk(self.url(WORKFLOWS_ROUTE), WorkflowMapper(self.repository))

    def workflow_ids(self) -> list[int]:
        workflows = self.walker().collect(self.url(WORKFLOWS_ROUTE), Workflow, ResourceKind.WORKFLOWS.value)
        return [workflow.id for workflow in workflows]

    def runs_url(self, workflow: int | str) -> str:
        return self.url(WORKFLOW_RUNS_ROUTE, workflow=workflow)

    def runs(self, workflow: int | str | None = None) -> WalkStats:
        """Runs of one workflow (id or file name), or of every workflow."""
        mapper = RunMapper(self.repository)
        workflows = [workflow] if workflow is not None else self.workflow_ids()
        logger.info("Walking workflow runs", extra={"workflows": len(workflows)})
        for workflow_id in workflows:
            self.walker().walk(self.runs_url(workflow_id), mapper)
        return self.stats

    def run_ids(self) -> list[int]:
        ids: list[int] = []
        for workflow_id in self.workflow_ids():
            runs = self.walker().collect(self.runs_url(workflow_id), WorkflowRun, ResourceKind.RUNS.value)
            ids.extend(run.id for run in runs)
        return ids

    def jobs_url(self, run_id: int | str) -> str:
        return self.url(RUN_JOBS_ROUTE, params=self.params(filter="all"), run_id=run_id)

    def jobs(self, run_id: int | str | None = None, denormalize_steps: bool = False) -> WalkStats:
        """Jobs of one run, or of every run of every workflow."""
        mapper: JobMapper = StepMapper(self.repository) if denormalize_steps else JobMapper(self.repository)
        runs = [run_id] if run_id is not None else self.run_ids()
        logger.info("Walking run jobs", extra={"runs": len(runs), "steps": denormalize_steps})
        for rid in runs:
            self.walker().walk(self.jobs_url(rid), mapper)
        return self.stats


class PullRequestTraversal(Traversal):
    """pull request -> files / reviews.

    The pull listing is ordered by update time, newest first, which is what
    the since cutoff relies on.
    """

    def pulls_url(self) -> str:
        params = self.params(state=State.ALL, sort="updated", direction="desc")
        return self.url(PULLS_ROUTE, params=params)

    def _walk_children(self, kind: ResourceKind, route: str, since: datetime | None) -> WalkStats:
        mapper: ResourceMapper = get_mapper(kind, self.repository)
        outer = self.walker(cutoff=SinceCutoff.for_kind(kind, since))
        inner = self.walker()
        for page in outer.iter_pages(self.pulls_url()):
            for item in page.items:
                pull = outer.parse(PullRequest, item, "pulls")
                if pull is None:
                    continue
                inner.walk(self.url(route, number=pull.number), mapper, pull_request_number=pull.number)
        return self.stats

    def files(self, since: datetime | None = None) -> WalkStats:
        return self._walk_children(ResourceKind.PULL_REQUEST_FILES, PULL_FILES_ROUTE, since)

    def reviews(self, since: datetime | None = None) -> WalkStats:
        return self._walk_children(ResourceKind.REVIEWS, PULL_REVIEWS_ROUTE, since)


class UserTraversal(Traversal):
    """Account listings; rows carry an empty repository tag."""

    def users(self) -> WalkStats:
        return self.walker().walk(self.url(USERS_ROUTE), UserMapper())

    def users_detailed(self) -> WalkStats:
        """Every listed user, re-fetched one by one for the detailed profile."""
        mapper = UserDetailedMapper()
        walker = self.walker()
        for page in walker.iter_pages(self.url(USERS_ROUTE)):
            for item in page.items:
                user = walker.parse(User, item, ResourceKind.USERS.value)
                if user is None:
                    continue
                detail_url = user.url or self.client.absolute_url(f"users/{user.login}")
                walker.emit(mapper, self.client.fetch_object(detail_url))
            self.sink.flush()
        return self.stats
