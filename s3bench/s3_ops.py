"""Core S3 Operations - one timed, single-shot operation per request.

Workers call ``execute`` for every request they receive. Failures are
never retried and never raised: they come back in ``Response.error``
so the aggregator's count of expected responses stays exact.

Usage::

    from s3bench.s3_ops import execute

    response = execute(client, ReadRequest("s3bench-0"), object_size=size)
"""

from __future__ import annotations

import time
from typing import Any

from s3bench.backends import CountingSink
from s3bench.config import READ_CHUNK_SIZE
from s3bench.models import ReadRequest, Request, Response, WriteRequest

__all__ = [
    "ObjectLengthError",
    "execute",
    "s3_get",
    "s3_put",
]


class ObjectLengthError(Exception):
    """A download finished without error but with the wrong size."""

    def __init__(self, key: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Expected object length {expected}, actual {actual} "
            f"for {key}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual


def s3_put(
    client: Any,
    key: str,
    body: Any,
    part_size: int = 0,
) -> None:
    """PUT object, using multipart upload when ``part_size`` > 0."""
    if part_size > 0:
        client.put_object_multipart(key, body, part_size)
    else:
        client.put_object(key, body)


def s3_get(
    client: Any,
    key: str,
    part_size: int = 0,
) -> int:
    """GET object, discarding the data.

    Returns:
        Number of bytes received.
    """
    if part_size > 0:
        return client.download_object(key, CountingSink(), part_size)

    body = client.get_object(key)
    received = 0
    try:
        while True:
            chunk = body.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            received += len(chunk)
    finally:
        body.close()
    return received


def execute(
    client: Any,
    request: Request,
    *,
    object_size: int,
    part_size: int = 0,
) -> Response:
    """Perform one request and measure it.

    Args:
        client: S3 client bound to this worker's endpoint.
        request: Write or read request.
        object_size: Expected object size in bytes.
        part_size: Multipart part size; 0 disables multipart.

    Returns:
        Response with the error (if any), elapsed seconds and bytes
        transferred.
    """
    start = time.perf_counter()
    error: Exception | None = None

    match request:
        case WriteRequest(key=key, body=body):
            transferred = object_size
            try:
                s3_put(client, key, body, part_size)
            except Exception as exc:
                error = exc
        case ReadRequest(key=key):
            transferred = 0
            try:
                transferred = s3_get(client, key, part_size)
            except Exception as exc:
                error = exc
            if error is None and transferred != object_size:
                error = ObjectLengthError(key, object_size, transferred)
        case _:
            raise AssertionError(f"Unexpected request: {request!r}")

    return Response(
        error=error,
        duration=time.perf_counter() - start,
        bytes_transferred=transferred,
    )
