"""S3 client backends for benchmarking.

Available clients:
    S3ClientBoto3      - Pure boto3 (default, works everywhere)
    S3ClientMinio      - MinIO Python SDK (optional, requires minio package)

Each client instance is bound to exactly one endpoint. The runner
creates one client per worker thread.
"""

from __future__ import annotations

import urllib.parse
from typing import Any, BinaryIO

import boto3
import urllib3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config

from s3bench.config import (
    READ_CHUNK_SIZE,
    S3_CONNECT_TIMEOUT,
    S3_READ_TIMEOUT,
    S3_VERIFY_SSL,
    ConfigError,
)

# Suppress SSL warnings for self-signed certificates
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


class CountingSink:
    """Non-seekable writer that counts bytes, forwarding them to ``target``.

    With no target the data is simply dropped.
    """

    def __init__(self, target: Any = None) -> None:
        self.target = target
        self.bytes_written = 0

    def write(self, data: bytes) -> int:
        n = len(data)
        if self.target is not None:
            self.target.write(data)
        self.bytes_written += n
        return n

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False


def _transfer_config(part_size: int) -> TransferConfig:
    return TransferConfig(
        multipart_threshold=part_size,
        multipart_chunksize=part_size,
    )


class S3ClientBoto3:
    """Pure boto3 S3 client bound to a single endpoint.

    Payload signing and request checksums are disabled so uploads are
    sent as ``UNSIGNED-PAYLOAD`` without hashing the body first.
    """

    def __init__(
        self,
        *,
        bucket: str,
        endpoint: str,
        access_key_id: str,
        secret_access_key: str,
        region: str,
    ) -> None:
        self.bucket = bucket
        self.endpoint = endpoint
        self.client = boto3.session.Session().client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
            verify=S3_VERIFY_SSL,
            config=Config(
                retries={"max_attempts": 1, "mode": "standard"},
                connect_timeout=S3_CONNECT_TIMEOUT,
                read_timeout=S3_READ_TIMEOUT,
                request_checksum_calculation="when_required",
                response_checksum_validation="when_required",
                s3={
                    "addressing_style": "path",
                    "payload_signing_enabled": False,
                },
            ),
        )

    def put_object(self, key: str, body: BinaryIO) -> dict:
        """Upload object in a single request."""
        return self.client.put_object(
            Bucket=self.bucket, Key=key, Body=body,
        )

    def put_object_multipart(
        self,
        key: str,
        body: BinaryIO,
        part_size: int,
    ) -> None:
        """Upload object, splitting into ``part_size`` parts."""
        self.client.upload_fileobj(
            body, self.bucket, key, Config=_transfer_config(part_size),
        )

    def get_object(self, key: str) -> Any:
        """Start a download and return the streaming body."""
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"]

    def download_object(
        self,
        key: str,
        sink: Any,
        part_size: int,
    ) -> int:
        """Download object in ``part_size`` ranges into ``sink``.

        Returns:
            Total bytes written to the sink.
        """
        counter = CountingSink(sink)
        self.client.download_fileobj(
            self.bucket, key, counter, Config=_transfer_config(part_size),
        )
        return counter.bytes_written

    def delete_objects(self, keys: list[str]) -> dict:
        """Batch delete up to 1000 objects.

        Args:
            keys: List of object keys to delete.

        Returns:
            Dict with 'Deleted' and 'Errors' lists.
        """
        objects = [{"Key": k} for k in keys]
        response = self.client.delete_objects(
            Bucket=self.bucket,
            Delete={"Objects": objects, "Quiet": False},
        )
        return {
            "Deleted": response.get("Deleted", []),
            "Errors": response.get("Errors", []),
        }

    def close(self) -> None:
        self.client.close()


class S3ClientMinio:
    """MinIO Python SDK client bound to a single endpoint.

    Requires the ``minio`` package and an ``https://`` endpoint, the only
    transport on which minio-py sends uploads as ``UNSIGNED-PAYLOAD``.
    Uploads are buffered one part at a time, so memory grows with the
    part size (or the object size for single-request PUTs).
    """

    def __init__(
        self,
        *,
        bucket: str,
        endpoint: str,
        access_key_id: str,
        secret_access_key: str,
        region: str,
    ) -> None:
        """Initialize minio-py client.

        Args:
            bucket: S3 bucket name.
            endpoint: S3 endpoint URL.
            access_key_id: AWS access key ID.
            secret_access_key: AWS secret access key.
            region: AWS region.

        Raises:
            ConfigError: If the endpoint is not an https URL.
        """
        parsed = urllib.parse.urlparse(endpoint)
        if parsed.scheme != "https" or not parsed.netloc:
            raise ConfigError(
                f"minio backend needs an https:// endpoint, got {endpoint!r}; "
                f"over plain http minio-py hashes every upload body before "
                f"sending it. Use --backend boto3 for http endpoints"
            )

        try:
            from minio import Minio
        except ImportError as exc:
            raise ImportError(
                "minio package not installed. "
                "Run: pip install 's3bench[minio]'"
            ) from exc

        self.bucket = bucket
        self.endpoint = endpoint

        self._http = urllib3.PoolManager(
            timeout=urllib3.Timeout(
                connect=S3_CONNECT_TIMEOUT, read=S3_READ_TIMEOUT,
            ),
            cert_reqs="CERT_REQUIRED" if S3_VERIFY_SSL else "CERT_NONE",
            retries=False,
        )

        self.client = Minio(
            parsed.netloc,
            access_key=access_key_id,
            secret_key=secret_access_key,
            region=region,
            secure=True,
            http_client=self._http,
        )

    def put_object(self, key: str, body: BinaryIO) -> Any:
        """Upload object in a single request."""
        length = len(body)
        return self.client.put_object(
            self.bucket, key, body, length,
            part_size=max(length, 5 * 1024 * 1024),
        )

    def put_object_multipart(
        self,
        key: str,
        body: BinaryIO,
        part_size: int,
    ) -> Any:
        """Upload object, splitting into ``part_size`` parts."""
        return self.client.put_object(
            self.bucket, key, body, len(body), part_size=part_size,
        )

    def get_object(self, key: str) -> Any:
        """Start a download and return the streaming response."""
        return _MinioBody(self.client.get_object(self.bucket, key))

    def download_object(
        self,
        key: str,
        sink: Any,
        part_size: int,
    ) -> int:
        """Download object as sequential ``part_size`` ranged GETs."""
        size = self.client.stat_object(self.bucket, key).size
        written = 0
        for offset in range(0, size, part_size):
            length = min(part_size, size - offset)
            body = _MinioBody(
                self.client.get_object(
                    self.bucket, key, offset=offset, length=length,
                )
            )
            try:
                while True:
                    chunk = body.read(READ_CHUNK_SIZE)
                    if not chunk:
                        break
                    sink.write(chunk)
                    written += len(chunk)
            finally:
                body.close()
        return written

    def delete_objects(self, keys: list[str]) -> dict:
        """Batch delete objects.

        Args:
            keys: List of object keys to delete.

        Returns:
            Dict with 'Deleted' and 'Errors' lists (boto3-style).
        """
        from minio.deleteobjects import DeleteObject

        delete_list = [DeleteObject(key) for key in keys]
        errors = list(
            self.client.remove_objects(self.bucket, delete_list)
        )
        failed = {e.name for e in errors}
        deleted = [{"Key": key} for key in keys if key not in failed]
        error_list = [
            {
                "Key": e.name,
                "Code": e.code,
                "Message": e.message,
            }
            for e in errors
        ]
        return {"Deleted": deleted, "Errors": error_list}

    def close(self) -> None:
        self._http.clear()


class _MinioBody:
    """Adapts a urllib3 response to ``read``/``close``."""

    def __init__(self, response: Any) -> None:
        self._response = response

    def read(self, amt: int | None = None) -> bytes:
        return self._response.read(amt)

    def close(self) -> None:
        self._response.close()
        self._response.release_conn()
