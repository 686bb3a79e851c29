"""Flat output records, one model per CSV schema.

Every field is a scalar, a string or a timestamp. Nested API structures are
already reduced to ids, joined names or JSON text by the mappers before a
record is built. Column order is declaration order, with ``repository``
always last.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FlatRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    repository: str = ""

    @classmethod
    def columns(cls) -> list[str]:
        names = [name for name in cls.model_fields if name != "repository"]
        return names + ["repository"]


class IssueRecord(FlatRecord):
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
    user_id: int | None = None
    labels: str = ""
    assignee_id: int | None = None
    assignees: str = ""
    author_association: str | None = None
    milestone: str | None = None
    locked: bool | None = None
    active_lock_reason: str | None = None
    comments: int | None = None
    pull_request: str | None = None
    closed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CommentRecord(FlatRecord):
    id: int
    node_id: str | None = None
    url: str | None = None
    html_url: str | None = None
    issue_url: str | None = None
    body: str | None = None
    user_id: int | None = None
    author_association: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class EventRecord(FlatRecord):
    id: int
    node_id: str | None = None
    url: str | None = None
    actor_id: int | None = None
    event: str | None = None
    commit_id: str | None = None
    commit_url: str | None = None
    issue_number: int | None = None
    label: str | None = None
    assignee_id: int | None = None
    created_at: datetime | None = None


class CommitRecord(FlatRecord):
    sha: str
    node_id: str | None = None
    url: str | None = None
    html_url: str | None = None
    comments_url: str | None = None
    author_id: int | None = None
    committer_id: int | None = None
    author: str | None = None  # JSON
    committer: str | None = None  # JSON
    parents: str = "[]"  # JSON
    message: str | None = None
    authored_at: datetime | None = None
    committed_at: datetime | None = None
    comment_count: int | None = None


class PullRequestFileRecord(FlatRecord):
    sha: str | None = None
    filename: str
    status: str | None = None
    additions: int | None = None
    deletions: int | None = None
    changes: int | None = None
    blob_url: str | None = None
    raw_url: str | None = None
    contents_url: str | None = None
    patch: str | None = None
    pull_request_number: int | None = None


class ReviewRecord(FlatRecord):
    id: int
    node_id: str | None = None
    html_url: str | None = None
    user_id: int | None = None
    body: str | None = None
    commit_id: str | None = None
    state: str | None = None
    pull_request_url: str | None = None
    submitted_at: datetime | None = None
    author_association: str | None = None
    pull_request_number: int | None = None


class LabelRecord(FlatRecord):
    id: int
    node_id: str | None = None
    url: str | None = None
    name: str | None = None
    description: str | None = None
    color: str | None = None
    default: bool | None = None


class ReleaseRecord(FlatRecord):
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
    author_id: int | None = None
    # "id;name;browser_download_url" per asset, comma separated
    assets: str = ""


class WorkflowRecord(FlatRecord):
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


class RunRecord(FlatRecord):
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
    pull_requests: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    run_started_at: datetime | None = None
    url: str | None = None
    html_url: str | None = None


class _JobFields(FlatRecord):
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
    labels: str = ""
    runner_id: int | None = None
    runner_name: str | None = None
    runner_group_id: int | None = None
    runner_group_name: str | None = None


class JobRecord(_JobFields):
    steps: str = "[]"  # JSON


class StepRecord(_JobFields):
    """One row per job step; the job columns repeat on every step of a job."""

    step_name: str | None = None
    step_status: str | None = None
    step_conclusion: str | None = None
    step_number: int
    step_started_at: datetime | None = None
    step_completed_at: datetime | None = None


class UserRecord(FlatRecord):
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


class UserDetailedRecord(UserRecord):
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
