"""Export orchestration: one resource kind from the API to one CSV stream."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TextIO

from octx.client import GitHubClient
from octx.config import OctxConfig
from octx.cutoff import SinceCutoff, since_mode_for
from octx.exceptions import EntrypointError
from octx.logging_utils import CorrelationIdFilter, get_logger, log_operation
from octx.mapping import get_mapper
from octx.models import ErrorPolicy, ResourceKind, SinceMode, WalkStats
from octx.params import (
    COMMENTS_ROUTE,
    COMMITS_ROUTE,
    EVENTS_ROUTE,
    ISSUES_ROUTE,
    LABELS_ROUTE,
    RELEASES_ROUTE,
    State,
    validate_slug,
)
from octx.sink import CsvSink
from octx.traversal import PullRequestTraversal, Traversal, UserTraversal, WorkflowTraversal

logger = get_logger(__name__)

# Kinds walked as a single listing straight from the repository
FLAT_ROUTES: dict[ResourceKind, str] = {
    ResourceKind.ISSUES: ISSUES_ROUTE,
    ResourceKind.COMMENTS: COMMENTS_ROUTE,
    ResourceKind.EVENTS: EVENTS_ROUTE,
    ResourceKind.COMMITS: COMMITS_ROUTE,
    ResourceKind.LABELS: LABELS_ROUTE,
    ResourceKind.RELEASES: RELEASES_ROUTE,
}


@dataclass(frozen=True)
class ExportRequest:
    """What to export. ``owner``/``repo`` are unused for the users kinds."""

    kind: ResourceKind
    owner: str | None = None
    repo: str | None = None
    since: datetime | None = None
    workflow: str | None = None
    run_id: str | None = None
    denormalize_steps: bool = False
    error_policy: ErrorPolicy = ErrorPolicy.ABORT

    @property
    def output_kind(self) -> ResourceKind:
        """The kind whose record schema ends up in the CSV."""
        if self.kind is ResourceKind.JOBS and self.denormalize_steps:
            return ResourceKind.STEPS
        return self.kind

    @property
    def repository(self) -> str:
        if self.kind.repository_scoped and self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return ""


def validate_request(request: ExportRequest) -> None:
    """Reject requests that cannot produce a valid entrypoint."""
    if request.kind is ResourceKind.STEPS:
        raise EntrypointError("Steps are exported through the jobs kind with step denormalization")
    if request.kind.repository_scoped:
        validate_slug(request.owner, "owner")
        validate_slug(request.repo, "repository name")
    if request.workflow is not None and request.kind is not ResourceKind.RUNS:
        raise EntrypointError("A workflow can only be selected for runs", details={"kind": request.kind.value})
    if request.run_id is not None and request.kind is not ResourceKind.JOBS:
        raise EntrypointError("A run id can only be selected for jobs", details={"kind": request.kind.value})
    if request.denormalize_steps and request.kind is not ResourceKind.JOBS:
        raise EntrypointError("Step denormalization only applies to jobs", details={"kind": request.kind.value})


def _export_flat(traversal: Traversal, request: ExportRequest) -> None:
    mode = since_mode_for(request.kind)
    params: dict = {}
    if request.kind is ResourceKind.ISSUES:
        params["state"] = State.ALL
    if request.since is not None and mode.sends_param:
        params["since"] = request.since

    url = traversal.url(FLAT_ROUTES[request.kind], params=traversal.params(**params))
    cutoff = SinceCutoff.for_kind(request.kind, request.since)
    traversal.walker(cutoff=cutoff).walk(url, get_mapper(request.kind, traversal.repository))


def dispatch(traversal_args: dict, request: ExportRequest) -> None:
    """Run the walk, or composition of walks, that produces ``request.kind``."""
    kind = request.kind
    if kind in FLAT_ROUTES:
        _export_flat(Traversal(**traversal_args), request)
    elif kind is ResourceKind.WORKFLOWS:
        WorkflowTraversal(**traversal_args).workflows()
    elif kind is ResourceKind.RUNS:
        WorkflowTraversal(**traversal_args).runs(request.workflow)
    elif kind is ResourceKind.JOBS:
        WorkflowTraversal(**traversal_args).jobs(request.run_id, denormalize_steps=request.denormalize_steps)
    elif kind is ResourceKind.PULL_REQUEST_FILES:
        PullRequestTraversal(**traversal_args).files(request.since)
    elif kind is ResourceKind.REVIEWS:
        PullRequestTraversal(**traversal_args).reviews(request.since)
    elif kind is ResourceKind.USERS:
        UserTraversal(**traversal_args).users()
    elif kind is ResourceKind.USERS_DETAILED:
        UserTraversal(**traversal_args).users_detailed()
    else:
        raise EntrypointError(f"Unsupported resource kind: {kind.value}")


def run_export(
    config: OctxConfig,
    request: ExportRequest,
    stream: TextIO,
    client: GitHubClient | None = None,
) -> WalkStats:
    """Export ``request.kind`` as CSV to ``stream`` and return the walk counters."""
    CorrelationIdFilter.generate_correlation_id()
    validate_request(request)

    if request.since is not None and since_mode_for(request.kind) is SinceMode.NONE:
        logger.warning(
            "Since threshold is not supported for this kind; exporting everything",
            extra={"kind": request.kind.value},
        )

    if client is None:
        client = GitHubClient(config)
    stats = WalkStats()
    columns = get_mapper(request.output_kind).columns()

    with log_operation(logger, "export", kind=request.output_kind.value, repository=request.repository):
        with CsvSink(stream, columns) as sink:
            dispatch(
                {
                    "client": client,
                    "sink": sink,
                    "owner": request.owner if request.kind.repository_scoped else None,
                    "repo": request.repo if request.kind.repository_scoped else None,
                    "page_size": config.api_page_size,
                    "error_policy": request.error_policy,
                    "stats": stats,
                },
                request,
            )

    logger.info("Export summary", extra=stats.to_dict())
    return stats
