"""Query parameters and entrypoint URLs for GitHub listings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from urllib.parse import quote, urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from octx.exceptions import EntrypointError

# GitHub hard cap for per_page
MAX_PAGE_SIZE = 100

ISSUES_ROUTE = "repos/{owner}/{repo}/issues"
COMMENTS_ROUTE = "repos/{owner}/{repo}/issues/comments"
EVENTS_ROUTE = "repos/{owner}/{repo}/issues/events"
COMMITS_ROUTE = "repos/{owner}/{repo}/commits"
PULLS_ROUTE = "repos/{owner}/{repo}/pulls"
PULL_FILES_ROUTE = "repos/{owner}/{repo}/pulls/{number}/files"
PULL_REVIEWS_ROUTE = "repos/{owner}/{repo}/pulls/{number}/reviews"
LABELS_ROUTE = "repos/{owner}/{repo}/labels"
RELEASES_ROUTE = "repos/{owner}/{repo}/releases"
WORKFLOWS_ROUTE = "repos/{owner}/{repo}/actions/workflows"
WORKFLOW_RUNS_ROUTE = "repos/{owner}/{repo}/actions/workflows/{workflow}/runs"
RUN_JOBS_ROUTE = "repos/{owner}/{repo}/actions/runs/{run_id}/jobs"
USERS_ROUTE = "users"

_SLUG = re.compile(r"^[A-Za-z0-9_.-]+$")
_PLACEHOLDER = re.compile(r"{(\w+)}")

_QUERY_ORDER = ("per_page", "state", "since", "filter", "sort", "direction")


class State(str, Enum):
    ALL = "all"
    OPEN = "open"
    CLOSED = "closed"


class Params(BaseModel):
    """Query string for one listing. Field order is the query order."""

    model_config = ConfigDict(frozen=True)

    per_page: int | None = Field(default=MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    state: State | None = None
    since: datetime | None = None
    filter: str | None = None
    sort: str | None = None
    direction: Literal["asc", "desc"] | None = None

    @field_validator("since")
    @classmethod
    def normalize_since(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    def to_query(self) -> str:
        pairs: list[tuple[str, str]] = []
        for name in _QUERY_ORDER:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = value.strftime("%Y-%m-%dT%H:%M:%SZ")
            elif isinstance(value, Enum):
                value = value.value
            pairs.append((name, str(value)))
        return urlencode(pairs)


def build_params(**kwargs: Any) -> Params:
    """Build ``Params``, reporting bad values as an ``EntrypointError``."""
    try:
        return Params(**kwargs)
    except PydanticValidationError as e:
        raise EntrypointError(
            "Invalid query parameters",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def validate_slug(value: str | None, what: str) -> str:
    """Check an owner or repository name before it is put in a URL path."""
    if not value or value in (".", "..") or not _SLUG.match(value):
        raise EntrypointError(f"Invalid {what}: {value!r}", details={what: value})
    return value


@dataclass(frozen=True)
class EntrypointSpec:
    """Where a walk starts: a route template, its arguments and the query."""

    route_template: str
    params: Params = field(default_factory=Params)
    owner: str | None = None
    repo: str | None = None
    path_args: dict[str, Any] = field(default_factory=dict)

    @property
    def repository(self) -> str:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return ""

    def route(self) -> str:
        values: dict[str, str] = {}
        for name in _PLACEHOLDER.findall(self.route_template):
            if name == "owner":
                values[name] = validate_slug(self.owner, "owner")
            elif name == "repo":
                values[name] = validate_slug(self.repo, "repository name")
            elif name in self.path_args and self.path_args[name] not in (None, ""):
                values[name] = quote(str(self.path_args[name]), safe="")
            else:
                raise EntrypointError(
                    f"Missing path argument {name!r}",
                    details={"route": self.route_template},
                )
        path = self.route_template.format(**values)
        query = self.params.to_query()
        return f"{path}?{query}" if query else path

    def url(self, base_url: str) -> str:
        if not base_url.endswith("/"):
            base_url = base_url + "/"
        return base_url + self.route()
