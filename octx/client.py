"""GitHub REST client: one GET per call, no retries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import requests

from octx.config import OctxConfig
from octx.exceptions import APIConnectionError, APIResponseError, APITimeoutError, SchemaValidationError
from octx.logging_utils import get_logger

logger = get_logger(__name__)

# Keys under which enveloped listings (actions, search) carry their items
ENVELOPE_KEYS = ("workflows", "workflow_runs", "jobs", "items")


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    next_url: str | None = None


def create_http_session(config: OctxConfig) -> requests.Session:
    """Create a session that authenticates every request with the token."""
    session = requests.Session()
    session.headers.update({
        "Authorization": f"token {config.github_api_token}",
        "Accept": "application/vnd.github+json",
        "User-Agent": "octx",
    })
    return session


def extract_items(body: Any, url: str) -> list[Any]:
    """Pull the item list out of a listing body."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for key in ENVELOPE_KEYS:
            if key in body:
                items = body[key]
                if not isinstance(items, list):
                    raise SchemaValidationError(
                        f"Listing field {key!r} is not a list (got {type(items).__name__})",
                        details={"url": url},
                    )
                return items
        raise SchemaValidationError(
            "Listing body has no known item field",
            details={"url": url, "keys": sorted(body)[:20]},
        )
    raise SchemaValidationError(
        f"Unexpected listing body type: {type(body).__name__}",
        details={"url": url},
    )


class GitHubClient:
    def __init__(self, config: OctxConfig, session: requests.Session | None = None):
        self.config = config
        self.base_url = config.github_api_url
        self.session = session if session is not None else create_http_session(config)

    def absolute_url(self, route: str) -> str:
        return self.base_url + route.lstrip("/")

    def _get(self, url: str) -> requests.Response:
        timeout = self.config.api_timeout_seconds
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise APITimeoutError(
                f"API request timed out after {timeout}s",
                details={"url": url},
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise APIConnectionError(f"Failed to connect to API: {e}", details={"url": url}) from e

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise APIResponseError(
                f"API returned error status {response.status_code}",
                details={"url": url, "status_code": response.status_code, "response": response.text[:500]},
            ) from e
        return response

    def _json(self, response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise APIResponseError("API returned invalid JSON", details={"url": url}) from e

    def fetch_page(self, url: str) -> Page:
        """Fetch one page of a listing and its rel="next" link."""
        response = self._get(url)
        items = extract_items(self._json(response, url), url)
        next_url = response.links.get("next", {}).get("url")
        logger.debug(
            "Fetched page",
            extra={"url": url, "items_in_page": len(items), "has_next": next_url is not None},
        )
        return Page(items=items, next_url=next_url)

    def fetch_object(self, url: str) -> Any:
        """Fetch a single resource (not a listing)."""
        response = self._get(url)
        return self._json(response, url)
