"""Benchmark driver - write phase, read phase, cleanup.

Usage::

    from s3bench.bench import run_benchmark

    result = run_benchmark(config)
    print(format_report(result.write_report))
"""

from __future__ import annotations

from dataclasses import dataclass

from s3bench.cleanup import cleanup_objects
from s3bench.config import BenchConfig
from s3bench.content import ContentSource, generate_sample_data
from s3bench.logging_setup import get_logger
from s3bench.models import Operation
from s3bench.report import Report
from s3bench.runner import WorkerPool
from s3bench.s3_client import ClientFactory, S3Client


@dataclass(frozen=True)
class BenchmarkResult:
    """Reports of one run; a skipped phase has no report."""

    write_report: Report | None
    read_report: Report | None
    deleted: int | None


def run_benchmark(
    config: BenchConfig,
    client_factory: ClientFactory = S3Client,
) -> BenchmarkResult:
    """Run the configured phases against the configured endpoints.

    Setup errors (``ConfigError``, ``SampleDataError``,
    ``WorkerStartupError``) propagate before any request is sent.
    Per-operation failures only show up in the reports.

    Args:
        config: Run configuration; validated here.
        client_factory: Builds one client per worker and endpoint.

    Returns:
        BenchmarkResult with the write/read reports and the number of
        objects deleted during cleanup.
    """
    config.validate()
    logger = get_logger()

    content = ContentSource(
        generate_sample_data(config.sample_size, logger),
        length=config.object_size,
    )
    logger.debug(
        f"Sample buffer {config.sample_size} bytes, "
        f"repeated {content.repeat_count}x per object"
    )

    write_report = read_report = None
    with WorkerPool(config, content, client_factory) as pool:
        if config.write:
            write_report = pool.run_phase(Operation.WRITE)
        if config.read:
            read_report = pool.run_phase(Operation.READ)

    deleted = None
    if config.cleanup:
        client = client_factory(config, config.endpoints[0])
        try:
            deleted = cleanup_objects(config, client)
        finally:
            close = getattr(client, "close", None)
            if close is not None:
                close()

    return BenchmarkResult(
        write_report=write_report,
        read_report=read_report,
        deleted=deleted,
    )
