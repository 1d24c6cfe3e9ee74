from __future__ import annotations

"""Create command - Write the benchmark workload to a local directory."""

import os
import shutil
import tempfile
import time
from argparse import Namespace

from s3bench.config import BenchConfig, ConfigError
from s3bench.content import (
    ContentSource,
    SampleDataError,
    generate_sample_data,
)
from s3bench.logging_setup import get_logger, setup_logging
from s3bench.utils import format_bytes, format_duration


def write_workload(config: BenchConfig, directory: str) -> list[str]:
    """Write ``object_count`` files of ``object_size`` bytes each.

    Every file is streamed from the shared content source and created
    atomically (temp file + rename), so a partial file is never left
    under a final name.

    Returns:
        Paths of the files written, in key order.
    """
    logger = get_logger(phase="Create")
    os.makedirs(directory, exist_ok=True)
    content = ContentSource(
        generate_sample_data(config.sample_size, logger),
        length=config.object_size,
    )

    paths: list[str] = []
    for key in config.object_keys():
        filepath = os.path.join(directory, key)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=directory, prefix=".tmp-", suffix=".bin",
        )
        try:
            with os.fdopen(temp_fd, "wb") as f:
                shutil.copyfileobj(content.open(), f, 1024 * 1024)
            os.replace(temp_path, filepath)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        if config.verbose:
            logger.info(f"Wrote {config.object_size} bytes to {filepath}")
        paths.append(filepath)
    return paths


def cmd_create(args: Namespace) -> int:
    """Create the benchmark workload locally.

    Endpoint and bucket are not needed, so only the workload flags
    (object size, split, count, prefix) are checked.
    """
    setup_logging(level=getattr(args, "log_level", None))
    logger = get_logger(phase="Create")

    config = BenchConfig.from_args(args)
    try:
        if config.object_count < 1:
            raise ConfigError(
                f"object count ({config.object_count}) must be positive"
            )
        if config.object_size < 1:
            raise ConfigError(
                f"object size ({config.object_size}) must be positive"
            )
        if not 1 <= config.object_split <= config.object_size:
            raise ConfigError(
                f"object split ({config.object_split}) must be between "
                f"1 and the object size ({config.object_size})"
            )
    except ConfigError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1

    directory = getattr(args, "directory", ".") or "."
    print("Benchmark Workload Creation")
    print("=" * 60)
    print(f"Directory: {os.path.abspath(directory)}")
    print()

    start = time.perf_counter()
    try:
        paths = write_workload(config, directory)
    except (OSError, SampleDataError) as exc:
        print(f"FAIL Error writing workload: {exc}")
        return 1

    print(
        f"Wrote {len(paths)} files of "
        f"{format_bytes(config.object_size)} "
        f"({format_bytes(len(paths) * config.object_size)} total) "
        f"in {format_duration(time.perf_counter() - start)}"
    )
    return 0
