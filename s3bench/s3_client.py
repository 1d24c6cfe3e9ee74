"""S3 Client Factory - Creates per-endpoint S3 clients.

Usage::

    from s3bench.s3_client import S3Client

    client = S3Client(config, endpoint)                  # config.backend
    client = S3Client(config, endpoint, backend="minio") # minio-py
"""

from __future__ import annotations

from typing import Any, Callable

from s3bench.config import S3_BACKEND, BenchConfig

# Any callable with this shape can stand in for S3Client, e.g. in tests
ClientFactory = Callable[[BenchConfig, str], Any]

BACKENDS = ("boto3", "minio")


def _get_backend_class(backend_name: str | None = None) -> type:
    """Resolve a backend name (case-insensitive) to its client class.

    Raises:
        ValueError: If the backend name is not recognized.
    """
    name = (backend_name or S3_BACKEND).lower()
    if name not in BACKENDS:
        raise ValueError(
            f"Unknown S3 backend '{name}'. "
            f"Available: {', '.join(BACKENDS)}"
        )

    from s3bench import backends

    return {
        "boto3": backends.S3ClientBoto3,
        "minio": backends.S3ClientMinio,
    }[name]


def S3Client(
    config: BenchConfig,
    endpoint: str,
    *,
    backend: str | None = None,
) -> Any:
    """Create an S3 client bound to one endpoint.

    Args:
        config: Run configuration (bucket, credentials, region).
        endpoint: Endpoint URL the client talks to.
        backend: Override ``config.backend``.

    Returns:
        S3 client instance for the selected backend.
    """
    cls = _get_backend_class(backend or config.backend)
    return cls(
        bucket=config.bucket,
        endpoint=endpoint,
        access_key_id=config.access_key_id,
        secret_access_key=config.secret_access_key,
        region=config.region,
    )
