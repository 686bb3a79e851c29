"""Since-threshold handling.

GitHub honours ``since`` server-side only on some listings. For the others
octx stops paginating once the last item of a page is older than the
threshold. That only works when the listing is ordered newest first, which
the engine cannot check: the ordering is a property of how each listing is
queried, so the mode is chosen per resource kind below.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from octx.logging_utils import get_logger
from octx.models import ResourceKind, SinceMode

logger = get_logger(__name__)

SINCE_MODES: dict[ResourceKind, SinceMode] = {
    ResourceKind.ISSUES: SinceMode.SERVER,
    ResourceKind.COMMENTS: SinceMode.SERVER,
    ResourceKind.COMMITS: SinceMode.SERVER,
    # listed newest first, no server-side since
    ResourceKind.EVENTS: SinceMode.LAST_ITEM,
    # applies to the pull request listing (sort=updated, direction=desc)
    ResourceKind.PULL_REQUEST_FILES: SinceMode.LAST_ITEM,
    ResourceKind.REVIEWS: SinceMode.LAST_ITEM,
}

TIMESTAMP_FIELDS: dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.EVENTS: ("created_at",),
    ResourceKind.PULL_REQUEST_FILES: ("updated_at", "created_at"),
    ResourceKind.REVIEWS: ("updated_at", "created_at"),
}


def since_mode_for(kind: ResourceKind) -> SinceMode:
    return SINCE_MODES.get(kind, SinceMode.NONE)


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SinceCutoff:
    """Page-level stop decision against a since threshold.

    Items on a page are never filtered: the decision only controls whether
    the next link is followed.
    """

    def __init__(self, threshold: datetime, fields: tuple[str, ...] = ("updated_at", "created_at")):
        if threshold.tzinfo is None:
            threshold = threshold.replace(tzinfo=timezone.utc)
        self.threshold = threshold
        self.fields = fields

    @classmethod
    def for_kind(cls, kind: ResourceKind, since: datetime | None) -> "SinceCutoff | None":
        """The cutoff to apply while walking ``kind``, or None."""
        if since is None or not since_mode_for(kind).checks_last_item:
            return None
        return cls(since, TIMESTAMP_FIELDS.get(kind, ("updated_at", "created_at")))

    def item_timestamp(self, item: Any) -> datetime | None:
        if not isinstance(item, dict):
            return None
        for name in self.fields:
            ts = parse_timestamp(item.get(name))
            if ts is not None:
                return ts
        return None

    def should_stop(self, items: list[Any]) -> bool:
        if not items:
            return True
        last = self.item_timestamp(items[-1])
        if last is None:
            logger.debug("Last item has no timestamp; continuing", extra={"fields": list(self.fields)})
            return False
        return last < self.threshold
