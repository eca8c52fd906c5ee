"""
Timestamp ingestion from detector CSV exports.

Rows look like ``<timestamp_ps>,<second column>`` after a single header
line. Only the first column is kept.

Files are read in chunks of rows and folded into the histogram as they go,
so a file of any length is analyzed with a fixed amount of memory.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union
import csv
import logging
import math

import numpy as np

from .errors import InputError
from .histogram import accumulate_histogram

logger = logging.getLogger(__name__)

CHUNK_ROWS = 65_536


class IngestPolicy(str, Enum):
    """What to do with a row that does not hold two numeric fields."""
    STRICT = "strict"    # stop reading at the first malformed row
    LENIENT = "lenient"  # skip it and keep reading


@dataclass(frozen=True)
class IngestSummary:
    """Row bookkeeping for one ingestion pass."""
    n_rows: int
    malformed_lines: Tuple[int, ...] = field(default_factory=tuple)
    stopped_early: bool = False

    def to_dict(self) -> dict:
        return {
            "n_rows": self.n_rows,
            "malformed_lines": list(self.malformed_lines),
            "stopped_early": self.stopped_early,
        }


@dataclass(frozen=True)
class TimestampTable:
    """Timestamps parsed from in-memory rows, with their bookkeeping."""
    times: np.ndarray
    n_rows: int
    malformed_lines: Tuple[int, ...] = field(default_factory=tuple)
    stopped_early: bool = False


def _parse_row(row: List[str]) -> Optional[float]:
    if len(row) < 2:
        return None
    values = []
    for raw in row[:2]:
        try:
            value = float(raw.strip())
        except ValueError:
            return None
        if not math.isfinite(value):
            return None
        values.append(value)
    return values[0]


class TimestampReader:
    """
    Incremental CSV timestamp reader.

    ``chunks()`` yields float arrays of at most ``chunk_rows`` timestamps.
    The row counters are updated as chunks are consumed and are complete
    once the generator is exhausted.

    The first line is a header and is discarded without inspection. Blank
    lines are ignored. Under ``strict`` the first malformed row ends
    ingestion; under ``lenient`` it is skipped.
    """

    def __init__(
        self,
        policy: Union[IngestPolicy, str] = IngestPolicy.STRICT,
        source: str = "<rows>",
        chunk_rows: int = CHUNK_ROWS,
    ):
        if chunk_rows < 1:
            raise ValueError(f"chunk_rows must be >= 1, got {chunk_rows}")
        self.policy = IngestPolicy(policy)
        self.source = source
        self.chunk_rows = chunk_rows
        self.n_rows = 0
        self.malformed_lines: List[int] = []
        self.stopped_early = False

    def chunks(self, lines: Iterable[str]) -> Iterator[np.ndarray]:
        reader = csv.reader(lines)
        if next(reader, None) is None:
            return

        buffer: List[float] = []
        for row in reader:
            if not row or all(not cell.strip() for cell in row):
                continue
            value = _parse_row(row)
            if value is None:
                self.malformed_lines.append(reader.line_num)
                if self.policy is IngestPolicy.STRICT:
                    logger.warning(
                        "%s:%d: malformed row %r, stopping ingestion (strict policy)",
                        self.source, reader.line_num, ",".join(row),
                    )
                    self.stopped_early = True
                    break
                logger.warning("%s:%d: skipping malformed row %r", self.source, reader.line_num, ",".join(row))
                continue
            buffer.append(value)
            self.n_rows += 1
            if len(buffer) >= self.chunk_rows:
                yield np.array(buffer, dtype=float)
                buffer = []

        if buffer:
            yield np.array(buffer, dtype=float)
        logger.info(
            "%s: read %d timestamps (%d malformed rows)",
            self.source, self.n_rows, len(self.malformed_lines),
        )

    def summary(self) -> IngestSummary:
        return IngestSummary(
            n_rows=self.n_rows,
            malformed_lines=tuple(self.malformed_lines),
            stopped_early=self.stopped_early,
        )


def parse_timestamp_rows(
    lines: Iterable[str],
    policy: Union[IngestPolicy, str] = IngestPolicy.STRICT,
    source: str = "<rows>",
) -> TimestampTable:
    """Parse every timestamp from in-memory CSV lines into one array."""
    reader = TimestampReader(policy=policy, source=source)
    parts = list(reader.chunks(lines))
    times = np.concatenate(parts) if parts else np.array([], dtype=float)
    summary = reader.summary()
    return TimestampTable(
        times=times,
        n_rows=summary.n_rows,
        malformed_lines=summary.malformed_lines,
        stopped_early=summary.stopped_early,
    )


def load_histogram(
    path: Union[str, Path],
    period_ps: int = 32_000,
    policy: Union[IngestPolicy, str] = IngestPolicy.STRICT,
    chunk_rows: int = CHUNK_ROWS,
) -> Tuple[np.ndarray, IngestSummary]:
    """
    Stream a CSV file straight into a periodic histogram.

    Bytes that are not valid UTF-8 decode to a replacement character, so an
    odd header is discarded like any other and such bytes in a data row
    make that row malformed.

    Returns
    -------
    histogram : np.ndarray
        Read-only counts of length ``period_ps``.
    summary : IngestSummary
        Row count and malformed-row bookkeeping.

    Raises
    ------
    InputError
        If the file is missing or cannot be read.
    """
    csv_path = Path(path)
    reader = TimestampReader(policy=policy, source=str(csv_path), chunk_rows=chunk_rows)
    try:
        with open(csv_path, "r", newline="", encoding="utf-8", errors="replace") as f:
            histogram = accumulate_histogram(reader.chunks(f), period_ps)
    except OSError as exc:
        raise InputError(f"could not open file {path}: {exc}") from exc
    return histogram, reader.summary()
