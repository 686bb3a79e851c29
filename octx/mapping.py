"""Resource to flat record mapping.

Each resource kind gets one ``ResourceMapper`` subclass that knows its API
model, its record model and how to reduce nested fields. Mappers are pure:
they never touch the network. The repository tag is fixed when the mapper is
constructed and stamped on every row it produces.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from octx.exceptions import RecordEncodingError, SchemaValidationError
from octx.models import (
    Comment,
    Commit,
    Issue,
    IssueEvent,
    Job,
    Label,
    PullRequestFile,
    Release,
    ResourceKind,
    Review,
    User,
    UserDetailed,
    Workflow,
    WorkflowRun,
)
from octx.records import (
    CommentRecord,
    CommitRecord,
    EventRecord,
    FlatRecord,
    IssueRecord,
    JobRecord,
    LabelRecord,
    PullRequestFileRecord,
    ReleaseRecord,
    ReviewRecord,
    RunRecord,
    StepRecord,
    UserDetailedRecord,
    UserRecord,
    WorkflowRecord,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def item_identity(item: Any) -> Any:
    """Best-effort identifier of a raw item, for log and error context."""
    if isinstance(item, dict):
        for key in ("id", "sha", "number", "filename", "login"):
            if item.get(key) is not None:
                return item[key]
    return None


def parse_resource(model: type[ModelT], item: Any, kind: str) -> ModelT:
    """Validate one raw API item against its resource model."""
    try:
        return model.model_validate(item)
    except PydanticValidationError as e:
        raise SchemaValidationError(
            f"{kind} item does not match the expected schema",
            details={
                "id": item_identity(item),
                "errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()],
            },
        ) from e


def _scalars(resource: BaseModel, record_model: type[FlatRecord]) -> dict[str, Any]:
    """Fields that keep their name and need no flattening."""
    names = record_model.model_fields
    return {
        name: value
        for name, value in resource
        if name in names and not isinstance(value, (BaseModel, list))
    }


def _join(values: Iterable[Any], sep: str = ",") -> str:
    return sep.join(str(v) for v in values if v is not None)


def _ref_id(ref: Any) -> int | None:
    return ref.id if ref is not None else None


class ResourceMapper(Generic[ModelT]):
    """Turns one raw API item into one or more flat rows."""

    kind: ClassVar[ResourceKind]
    resource_model: ClassVar[type[BaseModel]]
    record_model: ClassVar[type[FlatRecord]]

    def __init__(self, repository: str = ""):
        self.repository = repository

    @classmethod
    def columns(cls) -> list[str]:
        return cls.record_model.columns()

    def parse(self, item: Any) -> ModelT:
        return parse_resource(self.resource_model, item, self.kind.value)

    def convert(self, resource: ModelT) -> list[dict[str, Any]]:
        """Record fields for each row derived from ``resource``."""
        raise NotImplementedError

    def encode(self, fields: dict[str, Any]) -> dict[str, Any]:
        try:
            record = self.record_model(**fields, repository=self.repository)
            return record.model_dump(mode="json")
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise RecordEncodingError(
                f"Cannot build {self.record_model.__name__}",
                details={"error": str(e)},
            ) from e

    def map(self, item: Any, **context: Any) -> list[dict[str, Any]]:
        """Parse, flatten and encode one item.

        ``context`` carries parent values (e.g. ``pull_request_number``) that
        are added to every row.
        """
        resource = self.parse(item)
        return [self.encode({**fields, **context}) for fields in self.convert(resource)]


class IssueMapper(ResourceMapper[Issue]):
    kind = ResourceKind.ISSUES
    resource_model = Issue
    record_model = IssueRecord

    def convert(self, resource: Issue) -> list[dict[str, Any]]:
        return [{
            **_scalars(resource, IssueRecord),
            "user_id": _ref_id(resource.user),
            "labels": _join(label.name for label in resource.labels),
            "assignee_id": _ref_id(resource.assignee),
            "assignees": _join(user.login for user in resource.assignees),
            "milestone": resource.milestone.title if resource.milestone else None,
            "pull_request": resource.pull_request.url if resource.pull_request else None,
        }]


class CommentMapper(ResourceMapper[Comment]):
    kind = ResourceKind.COMMENTS
    resource_model = Comment
    record_model = CommentRecord

    def convert(self, resource: Comment) -> list[dict[str, Any]]:
        return [{**_scalars(resource, CommentRecord), "user_id": _ref_id(resource.user)}]


class EventMapper(ResourceMapper[IssueEvent]):
    kind = ResourceKind.EVENTS
    resource_model = IssueEvent
    record_model = EventRecord

    def convert(self, resource: IssueEvent) -> list[dict[str, Any]]:
        return [{
            **_scalars(resource, EventRecord),
            "actor_id": _ref_id(resource.actor),
            "issue_number": resource.issue.number if resource.issue else None,
            "label": resource.label.name if resource.label else None,
            "assignee_id": _ref_id(resource.assignee),
        }]


class CommitMapper(ResourceMapper[Commit]):
    kind = ResourceKind.COMMITS
    resource_model = Commit
    record_model = CommitRecord

    def convert(self, resource: Commit) -> list[dict[str, Any]]:
        git = resource.commit
        author = git.author if git else None
        committer = git.committer if git else None
        return [{
            **_scalars(resource, CommitRecord),
            "author_id": _ref_id(resource.author),
            "committer_id": _ref_id(resource.committer),
            "author": author.model_dump_json() if author else None,
            "committer": committer.model_dump_json() if committer else None,
            "parents": json.dumps([parent.sha for parent in resource.parents]),
            "message": git.message if git else None,
            "authored_at": author.date if author else None,
            "committed_at": committer.date if committer else None,
            "comment_count": git.comment_count if git else None,
        }]


class PullRequestFileMapper(ResourceMapper[PullRequestFile]):
    kind = ResourceKind.PULL_REQUEST_FILES
    resource_model = PullRequestFile
    record_model = PullRequestFileRecord

    def convert(self, resource: PullRequestFile) -> list[dict[str, Any]]:
        return [_scalars(resource, PullRequestFileRecord)]


class ReviewMapper(ResourceMapper[Review]):
    kind = ResourceKind.REVIEWS
    resource_model = Review
    record_model = ReviewRecord

    def convert(self, resource: Review) -> list[dict[str, Any]]:
        return [{**_scalars(resource, ReviewRecord), "user_id": _ref_id(resource.user)}]


class LabelMapper(ResourceMapper[Label]):
    kind = ResourceKind.LABELS
    resource_model = Label
    record_model = LabelRecord

    def convert(self, resource: Label) -> list[dict[str, Any]]:
        return [_scalars(resource, LabelRecord)]


class ReleaseMapper(ResourceMapper[Release]):
    kind = ResourceKind.RELEASES
    resource_model = Release
    record_model = ReleaseRecord

    def convert(self, resource: Release) -> list[dict[str, Any]]:
        return [{
            **_scalars(resource, ReleaseRecord),
            "author_id": _ref_id(resource.author),
            "assets": _join(
                f"{asset.id};{asset.name};{asset.browser_download_url}" for asset in resource.assets
            ),
        }]


class WorkflowMapper(ResourceMapper[Workflow]):
    kind = ResourceKind.WORKFLOWS
    resource_model = Workflow
    record_model = WorkflowRecord

    def convert(self, resource: Workflow) -> list[dict[str, Any]]:
        return [_scalars(resource, WorkflowRecord)]


class RunMapper(ResourceMapper[WorkflowRun]):
    kind = ResourceKind.RUNS
    resource_model = WorkflowRun
    record_model = RunRecord

    def convert(self, resource: WorkflowRun) -> list[dict[str, Any]]:
        return [{
            **_scalars(resource, RunRecord),
            "pull_requests": _join(pr.number for pr in resource.pull_requests),
        }]


class JobMapper(ResourceMapper[Job]):
    kind = ResourceKind.JOBS
    resource_model = Job
    record_model = JobRecord

    def job_fields(self, resource: Job) -> dict[str, Any]:
        return {**_scalars(resource, self.record_model), "labels": _join(resource.labels)}

    def convert(self, resource: Job) -> list[dict[str, Any]]:
        steps = [step.model_dump(mode="json") for step in resource.steps]
        return [{**self.job_fields(resource), "steps": json.dumps(steps)}]


class StepMapper(JobMapper):
    """Denormalizes a job: one row per step, job columns repeated."""

    kind = ResourceKind.STEPS
    record_model = StepRecord

    def convert(self, resource: Job) -> list[dict[str, Any]]:
        job = self.job_fields(resource)
        rows = []
        for position, step in enumerate(resource.steps, start=1):
            rows.append({
                **job,
                "step_name": step.name,
                "step_status": step.status,
                "step_conclusion": step.conclusion,
                "step_number": step.number if step.number is not None else position,
                "step_started_at": step.started_at,
                "step_completed_at": step.completed_at,
            })
        return rows


class UserMapper(ResourceMapper[User]):
    kind = ResourceKind.USERS
    resource_model = User
    record_model = UserRecord

    def convert(self, resource: User) -> list[dict[str, Any]]:
        return [_scalars(resource, self.record_model)]


class UserDetailedMapper(UserMapper):
    kind = ResourceKind.USERS_DETAILED
    resource_model = UserDetailed
    record_model = UserDetailedRecord


MAPPERS: dict[ResourceKind, type[ResourceMapper]] = {
    mapper.kind: mapper
    for mapper in (
        IssueMapper,
        CommentMapper,
        EventMapper,
        CommitMapper,
        PullRequestFileMapper,
        ReviewMapper,
        LabelMapper,
        ReleaseMapper,
        WorkflowMapper,
        RunMapper,
        JobMapper,
        StepMapper,
        UserMapper,
        UserDetailedMapper,
    )
}


def get_mapper(kind: ResourceKind, repository: str = "") -> ResourceMapper:
    return MAPPERS[kind](repository=repository)
