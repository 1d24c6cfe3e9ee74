"""Run command - Execute the benchmark and print the reports.

Prints the run parameters, drives the write and read phases, and
prints one summary per phase followed by the cleanup result.
"""

from __future__ import annotations

from s3bench.bench import run_benchmark
from s3bench.config import BenchConfig, ConfigError
from s3bench.content import SampleDataError
from s3bench.logging_setup import get_logger, setup_logging
from s3bench.report import format_parameters, format_report
from s3bench.runner import WorkerStartupError


def cmd_run(args: object) -> int:
    """Run a full benchmark.

    Args:
        args: Parsed CLI arguments (see ``s3bench.__main__``).

    Returns:
        Exit code (0 for success, 1 for setup errors).
    """
    setup_logging(level=getattr(args, "log_level", None))
    logger = get_logger()

    try:
        config = BenchConfig.from_args(args).validate()
    except ConfigError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1

    print(format_parameters(config))
    print()

    try:
        result = run_benchmark(config)
    except (SampleDataError, WorkerStartupError) as exc:
        logger.error(f"Benchmark setup failed: {exc}")
        return 1

    for report in (result.write_report, result.read_report):
        if report is None:
            continue
        print()
        print(format_report(report))

    if result.deleted is not None:
        print()
        print(
            f"Deleted {result.deleted}/{config.object_count} objects"
        )
    return 0
