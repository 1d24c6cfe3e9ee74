"""Cleanup command - Delete benchmark objects from S3."""

from __future__ import annotations

from dataclasses import replace

from s3bench.cleanup import cleanup_objects
from s3bench.config import BenchConfig, ConfigError
from s3bench.logging_setup import get_logger, setup_logging
from s3bench.s3_client import S3Client


def cmd_cleanup(args: object) -> int:
    """Delete ``prefix0`` .. ``prefix{N-1}`` without running a benchmark.

    Args:
        args: Parsed CLI arguments with ``prefix`` and ``samples``.

    Returns:
        Exit code (0 if every object was deleted, 1 otherwise).
    """
    setup_logging(level=getattr(args, "log_level", None))
    logger = get_logger(phase="Cleanup")

    config = BenchConfig.from_args(args)
    if config.workers > config.object_count:
        config = replace(config, workers=max(1, config.object_count))
    try:
        config.validate()
    except ConfigError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1

    print("Cleaning up benchmark objects from S3...")
    print(f"Bucket: {config.bucket}")
    print(f"Endpoint: {config.endpoints[0]}")
    print("=" * 80)

    client = S3Client(config, config.endpoints[0])
    try:
        deleted = cleanup_objects(config, client)
    finally:
        client.close()

    print("=" * 80)
    print(f"Total objects deleted: {deleted}")
    return 0 if deleted == config.object_count else 1

