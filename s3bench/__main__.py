#!/usr/bin/env python3
"""Entry point for s3bench package.

Usage::

    s3bench run --endpoint http://10.0.0.1:9000 --bucket bench
    s3bench run --object-size 1GB --object-split 64 --samples 100
    s3bench create --directory /tmp/workload --samples 10
    s3bench cleanup --samples 1000
"""

from __future__ import annotations

import argparse
import sys

from s3bench import __version__
from s3bench.utils import parse_size


def _size(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="s3bench",
        description="Object storage PUT/GET benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run         Write N objects, read them back, report latencies
  create      Write the benchmark workload to a local directory
  cleanup     Delete benchmark objects from the bucket

Examples:
  s3bench run --endpoint http://a:9000,http://b:9000 --bucket bench
  s3bench run --object-size 100MB --multipart-size 16MB --clients 32
  s3bench create --directory /tmp/workload --samples 10
  s3bench cleanup --samples 1000 --prefix s3bench-
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["run", "create", "cleanup"],
        help="Command to execute",
    )

    conn = parser.add_argument_group("connection")
    conn.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Comma-separated endpoint URLs (default: $S3_ENDPOINTS)",
    )
    conn.add_argument(
        "--bucket",
        type=str,
        default=None,
        help="Bucket name (default: $S3_BUCKET)",
    )
    conn.add_argument(
        "--access-key",
        type=str,
        default=None,
        help="Access key (default: $AWS_ACCESS_KEY_ID)",
    )
    conn.add_argument(
        "--secret-key",
        type=str,
        default=None,
        help="Secret key (default: $AWS_SECRET_ACCESS_KEY)",
    )
    conn.add_argument(
        "--region",
        type=str,
        default=None,
        help="Region (default: $AWS_REGION or us-east-1)",
    )
    conn.add_argument(
        "--backend",
        type=str,
        default=None,
        choices=["boto3", "minio"],
        help="S3 client backend (default: $S3BENCH_BACKEND or boto3)",
    )

    load = parser.add_argument_group("workload")
    load.add_argument(
        "--object-size",
        type=_size,
        default=None,
        help="Object size, e.g. 4096, 64KB, 1GB (default: 1MB)",
    )
    load.add_argument(
        "--object-split",
        type=int,
        default=None,
        help=(
            "Build objects from a sample buffer of object-size/N bytes "
            "repeated N times (default: 1)"
        ),
    )
    load.add_argument(
        "--multipart-size",
        type=_size,
        default=None,
        help="Multipart part size; 0 disables multipart (default: 0)",
    )
    load.add_argument(
        "--prefix",
        type=str,
        default=None,
        help="Object name prefix (default: s3bench-)",
    )
    load.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Number of objects to write and read (default: 1000)",
    )
    load.add_argument(
        "--clients",
        type=int,
        default=None,
        help="Number of concurrent workers (default: 10)",
    )
    load.add_argument(
        "--skip-write",
        action="store_true",
        help="Skip the write phase",
    )
    load.add_argument(
        "--skip-read",
        action="store_true",
        help="Skip the read phase",
    )
    load.add_argument(
        "--skip-cleanup",
        action="store_true",
        help="Keep the objects after the run",
    )
    load.add_argument(
        "--directory",
        "-d",
        type=str,
        default=".",
        help="Directory for the create command (default: .)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every completed operation",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and dispatch to the appropriate command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    from s3bench.cli import cmd_cleanup, cmd_create, cmd_run

    commands = {
        "run": cmd_run,
        "create": cmd_create,
        "cleanup": cmd_cleanup,
    }

    try:
        return commands[args.command](args) or 0
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
