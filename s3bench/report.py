"""Phase aggregation and result summaries.

Usage::

    from s3bench.report import PhaseAggregator, format_report

    agg = PhaseAggregator(Operation.WRITE, expected=n, object_size=size)
    for _ in range(n):
        agg.add(responses.get())
    report = agg.finish()
    print(format_report(report))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from s3bench.config import BenchConfig
from s3bench.models import Operation, Response

MB = 1024 * 1024

# Rows of the latency table, top to bottom
REPORT_PERCENTILES: list[tuple[str, int]] = [
    ("Max:      ", 100),
    ("99th %ile:", 99),
    ("90th %ile:", 90),
    ("75th %ile:", 75),
    ("50th %ile:", 50),
    ("25th %ile:", 25),
    ("Min:      ", 0),
]


@dataclass(frozen=True)
class Report:
    """Summary of one completed phase."""

    operation: Operation
    bytes_transmitted: int
    error_count: int
    latencies: tuple[float, ...]
    total_duration: float

    @property
    def success_count(self) -> int:
        return len(self.latencies)

    @property
    def throughput(self) -> float:
        """Bytes per second over the whole phase."""
        if self.total_duration <= 0:
            return 0.0
        return self.bytes_transmitted / self.total_duration

    def percentile(self, p: float) -> float:
        """Nearest-rank-below latency percentile.

        ``p >= 100`` maps to the slowest operation and ``p <= 0`` to the
        fastest; anything in between picks sorted index
        ``floor(p / 100 * count)``. Values are not interpolated.

        Raises:
            ValueError: If the phase had no successful operations.
        """
        if not self.latencies:
            raise ValueError(
                f"no successful {self.operation} operations to rank"
            )
        if p >= 100:
            index = len(self.latencies) - 1
        elif p > 0:
            index = int(p / 100 * len(self.latencies))
        else:
            index = 0
        return self.latencies[index]


class PhaseAggregator:
    """Accumulates responses for one phase into a ``Report``.

    The clock starts when the aggregator is created, so create it right
    before submission begins.
    """

    def __init__(
        self,
        operation: Operation,
        *,
        expected: int,
        object_size: int,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        verbose: bool = False,
    ) -> None:
        self.operation = operation
        self.expected = expected
        self.object_size = object_size
        self.logger = logger
        self.verbose = verbose
        self.bytes_transmitted = 0
        self.error_count = 0
        self.received = 0
        self._latencies: list[float] = []
        self._start = time.perf_counter()

    def add(self, response: Response) -> None:
        """Account for one completed request."""
        self.received += 1
        if response.error is not None:
            self.error_count += 1
        else:
            self.bytes_transmitted += self.object_size
            self._latencies.append(response.duration)

        if self.verbose and self.logger:
            self.logger.info(self._progress_line(response))

    def _progress_line(self, response: Response) -> str:
        elapsed = time.perf_counter() - self._start
        rate = (self.bytes_transmitted / MB) / elapsed if elapsed > 0 else 0
        line = (
            f"{self.operation} operation completed in "
            f"{response.duration:0.2f}s "
            f"({self.received}/{self.expected}) - {rate:0.2f}MB/s"
        )
        if response.error is not None:
            line += f", error: {response.error}"
        return line

    def finish(self) -> Report:
        """Sort latencies and freeze the phase totals."""
        return Report(
            operation=self.operation,
            bytes_transmitted=self.bytes_transmitted,
            error_count=self.error_count,
            latencies=tuple(sorted(self._latencies)),
            total_duration=time.perf_counter() - self._start,
        )


def format_report(report: Report) -> str:
    """Render a phase summary block for the terminal."""
    lines = [
        f"Results Summary for {report.operation} Operation(s)",
        f"Total Transferred: {report.bytes_transmitted / MB:0.3f} MB",
        f"Total Throughput:  {report.throughput / MB:0.2f} MB/s",
        f"Total Duration:    {report.total_duration:0.3f} s",
        f"Number of Errors:  {report.error_count}",
    ]
    if report.latencies:
        lines.append("-" * 36)
        for label, p in REPORT_PERCENTILES:
            lines.append(
                f"{report.operation} times {label} "
                f"{report.percentile(p):0.3f} s"
            )
    return "\n".join(lines)


def format_parameters(config: BenchConfig) -> str:
    """Render the run parameters summary."""
    multipart = (
        f"{config.multipart_size / MB:0.4f} MB"
        if config.multipart_size
        else "disabled"
    )
    return "\n".join([
        "Test parameters",
        f"Endpoint(s):      {', '.join(config.endpoints)}",
        f"Bucket:           {config.bucket}",
        f"ObjectNamePrefix: {config.object_prefix}",
        f"ObjectSize:       {config.object_size / MB:0.4f} MB",
        f"ObjectSplit:      {config.object_split}",
        f"MultipartSize:    {multipart}",
        f"numClients:       {config.workers}",
        f"numSamples:       {config.object_count}",
        f"Verbose:          {config.verbose}",
    ])
