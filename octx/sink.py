"""CSV output.

Rows are buffered for at most one page and written through pandas, so the
memory held by the sink never exceeds one page of records.
"""

from __future__ import annotations

from typing import Any, TextIO

import pandas as pd

from octx.exceptions import SinkError
from octx.logging_utils import get_logger

logger = get_logger(__name__)


class CsvSink:
    """Header plus rows, with a fixed column order, to a text stream."""

    def __init__(self, stream: TextIO, columns: list[str]):
        self.stream = stream
        self.columns = list(columns)
        self.rows_written = 0
        self._buffer: list[dict[str, Any]] = []
        self._header_written = False

    def __enter__(self) -> "CsvSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()

    def write(self, row: dict[str, Any]) -> None:
        self._buffer.append(row)

    def flush(self) -> int:
        """Write buffered rows. The header goes out with the first flush."""
        if not self._buffer and self._header_written:
            return 0

        # object dtype keeps ints as ints when a column has missing values
        df = pd.DataFrame(self._buffer, columns=self.columns, dtype=object)
        try:
            df.to_csv(
                self.stream,
                header=not self._header_written,
                index=False,
                lineterminator="\n",
            )
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"Failed to write CSV rows: {e}", details={"rows": len(df)}) from e

        self._header_written = True
        self.rows_written += len(df)
        self._buffer.clear()
        return len(df)

    def close(self) -> None:
        self.flush()
        logger.debug("CSV sink closed", extra={"rows_written": self.rows_written})
