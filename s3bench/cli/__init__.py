"""CLI commands for s3bench."""

from __future__ import annotations

from s3bench.cli.cleanup import cmd_cleanup
from s3bench.cli.create import cmd_create
from s3bench.cli.run import cmd_run

__all__ = [
    "cmd_cleanup",
    "cmd_create",
    "cmd_run",
]
