"""Cleanup - best-effort batch deletion of benchmark objects."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterator

from s3bench.config import DELETE_BATCH_SIZE, BenchConfig
from s3bench.logging_setup import get_logger
from s3bench.utils import format_duration


def iter_batches(
    keys: list[str],
    batch_size: int = DELETE_BATCH_SIZE,
) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(start_index, batch)`` slices of at most ``batch_size`` keys."""
    if batch_size < 1:
        raise ValueError(f"batch size must be positive: {batch_size}")
    for start in range(0, len(keys), batch_size):
        yield start, keys[start:start + batch_size]


def delete_keys(
    client: Any,
    keys: list[str],
    *,
    batch_size: int = DELETE_BATCH_SIZE,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> int:
    """Delete ``keys`` with one batch delete call per batch.

    A failing batch is logged and skipped; later batches still run.

    Args:
        client: S3 client instance.
        keys: Object keys to delete.
        batch_size: Keys per delete call (max 1000).
        logger: Logger for per-batch progress.

    Returns:
        Number of keys the backend confirmed as deleted.
    """
    if logger is None:
        logger = get_logger(phase="Cleanup")

    deleted = 0
    for start, batch in iter_batches(keys, batch_size):
        end = start + len(batch) - 1
        prefix = (
            f"Deleting a batch of {len(batch)} objects in range "
            f"{{{start}, {end}}}..."
        )
        try:
            result = client.delete_objects(batch)
        except Exception as exc:
            logger.warning(f"{prefix} Failed ({exc})")
            continue

        errors = result.get("Errors", [])
        confirmed = len(result.get("Deleted", []))
        deleted += confirmed
        if errors:
            first = errors[0]
            logger.warning(
                f"{prefix} Failed for {len(errors)} objects "
                f"(first: {first.get('Key')}: {first.get('Code')})"
            )
        else:
            logger.info(f"{prefix} Succeeded")
    return deleted


def cleanup_objects(config: BenchConfig, client: Any) -> int:
    """Delete every object the write phase created.

    Returns:
        Number of objects deleted.
    """
    logger = get_logger(phase="Cleanup")
    logger.info(f"Cleaning up {config.object_count} objects...")
    start = time.perf_counter()
    deleted = delete_keys(client, config.object_keys(), logger=logger)
    logger.info(
        f"Successfully deleted {deleted}/{config.object_count} objects "
        f"in {format_duration(time.perf_counter() - start)}"
    )
    return deleted
