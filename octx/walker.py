"""Cursor pagination over GitHub listings."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, TypeVar

from pydantic import BaseModel

from octx.client import GitHubClient, Page
from octx.cutoff import SinceCutoff
from octx.exceptions import PaginationError, RecordError
from octx.logging_utils import get_logger
from octx.mapping import ResourceMapper, item_identity, parse_resource
from octx.models import ErrorPolicy, WalkStats
from octx.sink import CsvSink

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class PageCursorWalker:
    """Follows rel="next" links from an entrypoint until they run out.

    The walk also ends when ``cutoff`` says the page just handled is older
    than the since threshold. That check runs only after the consumer is
    done with the page, so every item of a fetched page is emitted. A failed
    fetch is never retried and no URL is fetched twice.
    """

    def __init__(
        self,
        client: GitHubClient,
        sink: CsvSink | None = None,
        cutoff: SinceCutoff | None = None,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
        stats: WalkStats | None = None,
    ):
        self.client = client
        self.sink = sink
        self.cutoff = cutoff
        self.error_policy = error_policy
        self.stats = stats if stats is not None else WalkStats()

    def iter_pages(self, url: str) -> Iterator[Page]:
        visited: set[str] = set()
        next_url: str | None = url
        while next_url is not None:
            if next_url in visited:
                raise PaginationError("Next link points to a page already fetched", details={"url": next_url})
            visited.add(next_url)

            page = self.client.fetch_page(next_url)
            self.stats.pages_fetched += 1
            self.stats.items_seen += len(page.items)
            logger.debug(
                "Walking page",
                extra={"page": len(visited), "items_in_page": len(page.items)},
            )

            yield page

            if self.cutoff is not None and self.cutoff.should_stop(page.items):
                if page.next_url is not None:
                    self.stats.stopped_early = True
                    logger.info(
                        "Since threshold reached; not following next link",
                        extra={"threshold": self.cutoff.threshold, "pages": len(visited)},
                    )
                return
            next_url = page.next_url

    def _recover(self, error: RecordError, item: Any, kind: str) -> None:
        if self.error_policy is ErrorPolicy.ABORT:
            raise error
        self.stats.rows_skipped += 1
        logger.warning(
            "Skipping item",
            extra={"kind": kind, "id": item_identity(item), "error": str(error)},
        )

    def parse(self, model: type[ModelT], item: Any, kind: str) -> ModelT | None:
        """Parse an item that is only used for navigation (ids, numbers, urls)."""
        try:
            return parse_resource(model, item, kind)
        except RecordError as e:
            self._recover(e, item, kind)
            return None

    def emit(self, mapper: ResourceMapper, item: Any, **context: Any) -> int:
        """Map one item and hand its rows to the sink."""
        try:
            rows = mapper.map(item, **context)
        except RecordError as e:
            self._recover(e, item, mapper.kind.value)
            return 0
        for row in rows:
            self.sink.write(row)
        self.stats.rows_written += len(rows)
        return len(rows)

    def walk(self, url: str, mapper: ResourceMapper, **context: Any) -> WalkStats:
        """Emit every item of every page reachable from ``url``."""
        for page in self.iter_pages(url):
            for item in page.items:
                self.emit(mapper, item, **context)
            self.sink.flush()
        return self.stats

    def collect(self, url: str, model: type[ModelT], kind: str) -> list[ModelT]:
        """Parse every item of the listing into memory without emitting rows."""
        collected: list[ModelT] = []
        for page in self.iter_pages(url):
            for item in page.items:
                parsed = self.parse(model, item, kind)
                if parsed is not None:
                    collected.append(parsed)
        return collected
