"""Configuration - defaults and the immutable run configuration.

Defaults are loaded from these sources (in priority order):
    1. Environment variables (highest priority)
    2. ``.env`` file in current working directory
    3. ``.env`` file in ``~/.s3bench/``
    4. Built-in defaults

Command-line flags override all of the above when the run
configuration is built.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path


class ConfigError(ValueError):
    """Raised when run parameters are invalid."""


# ---------------------------------------------------------------------------
# Stdlib .env file loader (no external dependency)
# ---------------------------------------------------------------------------

def _load_dotenv() -> None:
    """Load KEY=VALUE pairs from a .env file into ``os.environ``.

    Searches the current working directory first, then
    ``~/.s3bench/``. Only sets variables that are not already
    present in the environment (env vars take priority).
    """
    candidates = [
        Path.cwd() / ".env",
        Path.home() / ".s3bench" / ".env",
    ]
    for env_path in candidates:
        if env_path.is_file():
            _parse_env_file(env_path)
            return


def _parse_env_file(path: Path) -> None:
    """Parse a .env file and inject into ``os.environ``."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Strip surrounding quotes
                if (
                    len(value) >= 2
                    and value[0] == value[-1]
                    and value[0] in ('"', "'")
                ):
                    value = value[1:-1]
                if key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_dotenv()


def parse_endpoints(value: str) -> list[str]:
    """Split a comma-separated endpoint list, dropping blanks."""
    return [ep.strip() for ep in value.split(",") if ep.strip()]


# ---------------------------------------------------------------------------
# Logging Configuration
# ---------------------------------------------------------------------------
DEFAULT_LOG_LEVEL = "INFO"

# ---------------------------------------------------------------------------
# S3 Connection
# ---------------------------------------------------------------------------
S3_ENDPOINTS: list[str] = parse_endpoints(
    os.environ.get("S3_ENDPOINTS") or os.environ.get("S3_ENDPOINT", "")
)

S3_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID", "")
S3_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY", "")
S3_BUCKET = os.environ.get("S3_BUCKET", "")
S3_REGION = os.environ.get("AWS_REGION", "us-east-1")

S3_VERIFY_SSL = os.environ.get("S3_VERIFY_SSL", "false").lower() in (
    "true",
    "1",
    "yes",
)
S3_CONNECT_TIMEOUT = int(os.environ.get("S3_CONNECT_TIMEOUT", "10"))
S3_READ_TIMEOUT = int(os.environ.get("S3_READ_TIMEOUT", "300"))

# ---------------------------------------------------------------------------
# S3 Client Backend
# ---------------------------------------------------------------------------
S3_BACKEND = os.environ.get("S3BENCH_BACKEND", "boto3")

# ---------------------------------------------------------------------------
# Benchmark Defaults
# ---------------------------------------------------------------------------
DEFAULT_OBJECT_SIZE = 1024 * 1024
DEFAULT_OBJECT_COUNT = 1000
DEFAULT_WORKERS = 10
DEFAULT_OBJECT_PREFIX = os.environ.get("S3BENCH_PREFIX", "s3bench-")

# Max keys accepted by a single DeleteObjects call
DELETE_BATCH_SIZE = 1000

# Chunk size used when draining GET bodies
READ_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class BenchConfig:
    """Immutable parameters for one benchmark run."""

    endpoints: tuple[str, ...]
    bucket: str
    access_key_id: str = ""
    secret_access_key: str = ""
    region: str = "us-east-1"
    object_size: int = DEFAULT_OBJECT_SIZE
    object_split: int = 1
    multipart_size: int = 0
    object_prefix: str = DEFAULT_OBJECT_PREFIX
    object_count: int = DEFAULT_OBJECT_COUNT
    workers: int = DEFAULT_WORKERS
    verbose: bool = False
    write: bool = True
    read: bool = True
    cleanup: bool = True
    backend: str = S3_BACKEND

    @classmethod
    def from_args(cls, args: object) -> BenchConfig:
        """Build a config from parsed CLI arguments.

        Attributes missing from ``args`` (or left as None) fall back to
        the environment-derived defaults above.
        """

        def pick(name: str, default: object) -> object:
            value = getattr(args, name, None)
            return default if value is None else value

        endpoint = getattr(args, "endpoint", None)
        endpoints = parse_endpoints(endpoint) if endpoint else S3_ENDPOINTS
        return cls(
            endpoints=tuple(endpoints),
            bucket=pick("bucket", S3_BUCKET),
            access_key_id=pick("access_key", S3_ACCESS_KEY_ID),
            secret_access_key=pick("secret_key", S3_SECRET_ACCESS_KEY),
            region=pick("region", S3_REGION),
            object_size=pick("object_size", DEFAULT_OBJECT_SIZE),
            object_split=pick("object_split", 1),
            multipart_size=pick("multipart_size", 0),
            object_prefix=pick("prefix", DEFAULT_OBJECT_PREFIX),
            object_count=pick("samples", DEFAULT_OBJECT_COUNT),
            workers=pick("clients", DEFAULT_WORKERS),
            verbose=bool(getattr(args, "verbose", False)),
            write=not getattr(args, "skip_write", False),
            read=not getattr(args, "skip_read", False),
            cleanup=not getattr(args, "skip_cleanup", False),
            backend=pick("backend", S3_BACKEND),
        )

    def validate(self) -> BenchConfig:
        """Check run parameters, raising ``ConfigError`` on the first problem.

        Returns:
            The same config, so calls can be chained.
        """
        if self.object_count < 1 or self.workers > self.object_count:
            raise ConfigError(
                f"workers ({self.workers}) needs to be less than "
                f"object count ({self.object_count}) and greater than 0"
            )
        if self.workers < 1:
            raise ConfigError(
                f"workers ({self.workers}) needs to be greater than 0"
            )
        if not self.endpoints:
            raise ConfigError("You need to specify one or more endpoints")
        if not self.bucket:
            raise ConfigError("You need to specify a bucket")
        if self.object_size < 1:
            raise ConfigError(
                f"object size ({self.object_size}) must be positive"
            )
        if not 1 <= self.object_split <= self.object_size:
            raise ConfigError(
                f"object split ({self.object_split}) must be between "
                f"1 and the object size ({self.object_size})"
            )
        if self.multipart_size < 0:
            raise ConfigError(
                f"multipart size ({self.multipart_size}) must not be "
                f"negative (0 disables multipart)"
            )
        return self

    @property
    def sample_size(self) -> int:
        """Size of the shared random sample buffer in bytes."""
        return math.ceil(self.object_size / self.object_split)

    @property
    def repeat_count(self) -> int:
        """How many times the sample buffer repeats to fill one object."""
        return math.ceil(self.object_size / self.sample_size)

    def object_keys(self) -> list[str]:
        """Keys written by the write phase, in submission order."""
        return [
            f"{self.object_prefix}{i}" for i in range(self.object_count)
        ]

    def endpoint_for(self, worker_index: int) -> str:
        """Round-robin endpoint assignment for a worker."""
        return self.endpoints[worker_index % len(self.endpoints)]
