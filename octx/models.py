"""API resource models and shared enums.

Resource models describe the subset of each GitHub REST payload that octx
reads. Unknown keys are ignored and nearly every field is optional, so a
missing attribute becomes an empty cell instead of a failure. Only the
identity field of each resource is required.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class ResourceKind(str, Enum):
    ISSUES = "issues"
    COMMENTS = "comments"
    EVENTS = "events"
    COMMITS = "commits"
    PULL_REQUEST_FILES = "pull-request-files"
    REVIEWS = "reviews"
    LABELS = "labels"
    RELEASES = "releases"
    WORKFLOWS = "workflows"
    RUNS = "runs"
    JOBS = "jobs"
    STEPS = "steps"
    USERS = "users"
    USERS_DETAILED = "users-detailed"

    @property
    def repository_scoped(self) -> bool:
        return self not in (ResourceKind.USERS, ResourceKind.USERS_DETAILED)


class SinceMode(str, Enum):
    """How a since threshold is applied to a listing."""

    NONE = "none"
    SERVER = "server"
    LAST_ITEM = "last_item"
    BOTH = "both"

    @property
    def sends_param(self) -> bool:
        return self in (SinceMode.SERVER, SinceMode.BOTH)

    @property
    def checks_last_item(self) -> bool:
        return self in (SinceMode.LAST_ITEM, SinceMode.BOTH)


class ErrorPolicy(str, Enum):
    """What to do with an item that cannot be mapped to rows."""

    ABORT = "abort"
    SKIP = "skip"


class _Resource(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _none_to_list(v: Any) -> Any:
    return [] if v is None else v


T = TypeVar("T")

# GitHub sends null for some empty collections
NullableList = Annotated[list[T], BeforeValidator(_none_to_list)]


class UserRef(_Resource):
    id: int
    login: str | None = None


class LabelRef(_Resource):
    name: str | None = None


class MilestoneRef(_Resource):
    title: str | None = None


class LinkRef(_Resource):
    url: str | None = None


class IssueRef(_Resource):
    number: int | None = None


class Issue(_Resource):
    id: int
    node_id: str | None = None
    url: str | None = None
    repository_url: str | None = None
    labels_url: str | None = None
    comments_url: str | None = None
    events_url: str | None = None
    html_url: str | None = None
    number: int | None = None
    state: str | None = None
    title: str | None = None
    body: str | None = None
    user: UserRef | None = None
    labels: NullableList[LabelRef] = Field(default_factory=list)
    assignee: UserRef | None = None
    assignees: NullableList[UserRef] = Field(default_factory=list)
    author_association: str | None = None
    milestone: MilestoneRef | None = None
    locked: bool | None = None
    active_lock_reason: str | None = None
    comments: int | None = None
    pull_request: LinkRef | None = None
    closed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Comment(_Resource):
    id: int
    node_id: str | None = None
    url: str | None = None
    html_url: str | None = None
    issue_url: str | None = None
    body: str | None = None
    user: UserRef | None = None
    author_association: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class IssueEvent(_Resource):
    id: int
    node_id: str | None = None
    url: str | None = None
    actor: UserRef | None = None
    event: str | None = None
    commit_id: str | None = None
    commit_url: str | None = None
    issue: IssueRef | None = None
    label: LabelRef | None = None
    assignee: UserRef | None = None
    created_at: datetime | None = None


class GitSignature(_Resource):
    name: str | None = None
    email: str | None = None
    date: datetime | None = None


class GitCommit(_Resource):
    author: GitSignature | None = None
    committer: GitSignature | None = None
    message: str | None = None
    comment_count: int | None = None


class CommitParent(_Resource):
    sha: str | None = None
    url: str | None = None


class Commit(_Resource):
    sha: str
    node_id: str | None = None
    url: str | None = None
    html_url: str | None = None
    comments_url: str | None = None
    # null when the git identity is not linked to an account
    author: UserRef | None = None
    committer: UserRef | None = None
    commit: GitCommit | None = None
    parents: NullableList[CommitParent] = Field(default_factory=list)


class PullRequest(_Resource):
    """Only what is needed to walk a pull request's files and reviews."""

    number: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PullRequestFile(_Resource):
    filename: str
    sha: str | None = None
    status: str | None = None
    additions: int | None = None
    deletions: int | None = None
    changes: int | None = None
    blob_url: str | None = None
    raw_url: str | None = None
    contents_url: str | None = None
    patch: str | None = None


class Review(_Resource):
    id: int
    node_id: str | None = None
    html_url: str | None = None
    user: UserRef | None = None
    body: str | None = None
    commit_id: str | None = None
    state: str | None = None
    pull_request_url: str | None = None
    submitted_at: datetime | None = None
    author_association: str | None = None


class Label(_Resource):
    id: int
    node_id: str | None = None
    url: str | None = None
    name: str | None = None
    description: str | None = None
    color: str | None = None
    default: bool | None = None


class ReleaseAsset(_Resource):
    id: int | None = None
    name: str | None = None
    browser_download_url: str | None = None


class Release(_Resource):
    id: int
    node_id: str | None = None
    url: str | None = None
    html_url: str | None = None
    assets_url: str | None = None
    upload_url: str | None = None
    tarball_url: str | None = None
    zipball_url: str | None = None
    tag_name: str | None = None
    target_commitish: str | None = None
    name: str | None = None
    body: str | None = None
    draft: bool | None = None
    prerelease: bool | None = None
    created_at: datetime | None = None
    published_at: datetime | None = None
    author: UserRef | None = None
    assets: NullableList[ReleaseAsset] = Field(default_factory=list)


class Workflow(_Resource):
    id: int
    node_id: str | None = None
    name: str | None = None
    path: str | None = None
    state: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    url: str | None = None
    html_url: str | None = None
    badge_url: str | None = None


class RunPullRequest(_Resource):
    number: int | None = None


class WorkflowRun(_Resource):
    id: int
    workflow_id: int | None = None
    node_id: str | None = None
    name: str | None = None
    head_branch: str | None = None
    head_sha: str | None = None
    run_number: int | None = None
    run_attempt: int | None = None
    event: str | None = None
    status: str | None = None
    conclusion: str | None = None
    pull_requests: NullableList[RunPullRequest] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    run_started_at: datetime | None = None
    url: str | None = None
    html_url: str | None = None


class JobStep(_Resource):
    name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    number: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class Job(_Resource):
    id: int
    run_id: int | None = None
    node_id: str | None = None
    head_sha: str | None = None
    name: str | None = None
    workflow_name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    url: str | None = None
    html_url: str | None = None
    run_url: str | None = None
    check_run_url: str | None = None
    labels: NullableList[str] = Field(default_factory=list)
    runner_id: int | None = None
    runner_name: str | None = None
    runner_group_id: int | None = None
    runner_group_name: str | None = None
    steps: NullableList[JobStep] = Field(default_factory=list)


class User(_Resource):
    login: str | None = None
    id: int
    node_id: str | None = None
    avatar_url: str | None = None
    gravatar_id: str | None = None
    url: str | None = None
    html_url: str | None = None
    followers_url: str | None = None
    following_url: str | None = None
    gists_url: str | None = None
    starred_url: str | None = None
    subscriptions_url: str | None = None
    organizations_url: str | None = None
    repos_url: str | None = None
    events_url: str | None = None
    received_events_url: str | None = None
    type: str | None = None
    site_admin: bool | None = None


class UserDetailed(User):
    name: str | None = None
    company: str | None = None
    blog: str | None = None
    location: str | None = None
    email: str | None = None
    bio: str | None = None
    twitter_username: str | None = None
    public_repos: int | None = None
    followers: int | None = None
    following: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class WalkStats:
    """Counters collected while walking one or more paginated listings."""

    pages_fetched: int = 0
    items_seen: int = 0
    rows_written: int = 0
    rows_skipped: int = 0
    stopped_early: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "pages_fetched": self.pages_fetched,
            "items_seen": self.items_seen,
            "rows_written": self.rows_written,
            "rows_skipped": self.rows_skipped,
            "stopped_early": self.stopped_early,
        }
