"""GitHub REST metadata extraction to CSV."""

from octx.config import OctxConfig, get_config
from octx.exceptions import OctxError, ConfigurationError, EntrypointError, APIError, RecordError
from octx.models import ResourceKind, SinceMode, ErrorPolicy, WalkStats
from octx.pipeline import ExportRequest, run_export
from octx.cli import main

__all__ = [
    "OctxConfig",
    "get_config",
    "OctxError",
    "ConfigurationError",
    "EntrypointError",
    "APIError",
    "RecordError",
    "ResourceKind",
    "SinceMode",
    "ErrorPolicy",
    "WalkStats",
    "ExportRequest",
    "run_export",
    "main",
]
