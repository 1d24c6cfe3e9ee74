"""
Pytest configuration and fixtures for s3bench tests

Provides an in-memory storage client that implements the same methods
as the real backends, so the runner can be exercised without a server,
and a loopback HTTP endpoint for sending real SDK requests.
"""

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qsl, unquote, urlsplit
from xml.etree import ElementTree

import pytest

from s3bench.config import BenchConfig


class FakeBody:
    """Streaming body returned by FakeS3Client.get_object."""

    def __init__(self, data):
        self._data = data
        self._pos = 0
        self.closed = False

    def read(self, amt=None):
        if amt is None:
            amt = len(self._data) - self._pos
        chunk = self._data[self._pos:self._pos + amt]
        self._pos += len(chunk)
        return chunk

    def close(self):
        self.closed = True


class FakeS3Client:
    """In-memory bucket shared by every client built from one FakeStore."""

    def __init__(self, store, endpoint):
        self.store = store
        self.endpoint = endpoint
        self.closed = False

    def put_object(self, key, body):
        self.store.record("put", self.endpoint, key)
        self.store.write(key, body.read())

    def put_object_multipart(self, key, body, part_size):
        self.store.record("put_multipart", self.endpoint, key)
        parts = []
        while True:
            part = body.read(part_size)
            if not part:
                break
            parts.append(part)
        self.store.write(key, b"".join(parts))

    def get_object(self, key):
        self.store.record("get", self.endpoint, key)
        return FakeBody(self.store.read(key))

    def download_object(self, key, sink, part_size):
        self.store.record("get_multipart", self.endpoint, key)
        data = self.store.read(key)
        for start in range(0, len(data), part_size):
            sink.write(data[start:start + part_size])
        return len(data)

    def delete_objects(self, keys):
        self.store.record("delete", self.endpoint, len(keys))
        deleted = []
        with self.store.lock:
            for key in keys:
                self.store.objects.pop(key, None)
                deleted.append({"Key": key})
        return {"Deleted": deleted, "Errors": []}

    def close(self):
        self.closed = True


class FakeStore:
    """Thread-safe object map plus a log of every call made against it."""

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.clients = []
        self.lock = threading.Lock()

    def record(self, op, endpoint, arg):
        with self.lock:
            self.calls.append((op, endpoint, arg))

    def write(self, key, data):
        with self.lock:
            self.objects[key] = data

    def read(self, key):
        with self.lock:
            if key not in self.objects:
                raise KeyError(f"NoSuchKey: {key}")
            return self.objects[key]

    def factory(self, config, endpoint):
        client = FakeS3Client(self, endpoint)
        with self.lock:
            self.clients.append(client)
        return client

    def ops(self, op):
        return [call for call in self.calls if call[0] == op]


@pytest.fixture
def store():
    """Empty in-memory bucket"""
    return FakeStore()


@pytest.fixture
def make_config():
    """Factory for valid BenchConfig objects with small defaults"""

    def _make(**overrides):
        params = {
            "endpoints": ("http://s3-a:9000",),
            "bucket": "bench",
            "access_key_id": "minioadmin",
            "secret_access_key": "minioadmin",
            "object_size": 4096,
            "object_count": 10,
            "workers": 3,
            "object_prefix": "obj-",
        }
        params.update(overrides)
        return BenchConfig(**params)

    return _make


class CapturedRequest:
    """One HTTP request as received by the loopback server."""

    def __init__(self, method, path, query, headers, body):
        self.method = method
        self.path = path
        self.query = query
        self.headers = headers
        self.body = body

    @property
    def checksum_headers(self):
        return sorted(
            name for name in self.headers
            if name.startswith(("x-amz-checksum", "x-amz-sdk-checksum"))
            or name == "content-md5"
        )


class LoopbackS3Handler(BaseHTTPRequestHandler):
    """Path-style S3 subset: PUT, GET (with Range), HEAD, multipart, delete."""

    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def _capture(self):
        url = urlsplit(self.path)
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        request = CapturedRequest(
            self.command,
            unquote(url.path),
            dict(parse_qsl(url.query, keep_blank_values=True)),
            {k.lower(): v for k, v in self.headers.items()},
            body,
        )
        self.server.state.record(request)
        return request

    def _reply(self, status, body=b"", headers=None):
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def do_PUT(self):
        request = self._capture()
        state = self.server.state
        if "uploadId" in request.query:
            state.uploads[request.query["uploadId"]][
                int(request.query["partNumber"])
            ] = request.body
        else:
            state.objects[request.path] = request.body
        self._reply(200, headers={"ETag": '"etag"'})

    def do_POST(self):
        request = self._capture()
        state = self.server.state
        if "uploads" in request.query:
            upload_id = f"upload-{len(state.uploads)}"
            state.uploads[upload_id] = {}
            self._reply(200, (
                "<InitiateMultipartUploadResult>"
                f"<UploadId>{upload_id}</UploadId>"
                "</InitiateMultipartUploadResult>"
            ).encode())
        elif "uploadId" in request.query:
            parts = state.uploads.pop(request.query["uploadId"])
            state.objects[request.path] = b"".join(
                parts[n] for n in sorted(parts)
            )
            self._reply(200, (
                "<CompleteMultipartUploadResult>"
                "<ETag>\"etag\"</ETag>"
                "</CompleteMultipartUploadResult>"
            ).encode())
        elif "delete" in request.query:
            keys = [
                el.text for el in ElementTree.fromstring(request.body).iter()
                if el.tag.endswith("Key")
            ]
            bucket = request.path.rstrip("/")
            for key in keys:
                state.objects.pop(f"{bucket}/{key}", None)
            deleted = "".join(
                f"<Deleted><Key>{key}</Key></Deleted>" for key in keys
            )
            body = f"<DeleteResult>{deleted}</DeleteResult>"
            self._reply(200, body.encode())
        else:
            self._reply(400)

    def _object(self):
        request = self._capture()
        data = self.server.state.objects.get(request.path)
        if data is None:
            self._reply(404, b"<Error><Code>NoSuchKey</Code></Error>")
            return None, None
        return request, data

    def do_HEAD(self):
        request, data = self._object()
        if data is None:
            return
        self.send_response(200)
        self.send_header("Content-Length", str(len(data)))
        self.send_header("ETag", '"etag"')
        self.end_headers()

    def do_GET(self):
        request, data = self._object()
        if data is None:
            return
        byte_range = request.headers.get("range")
        if not byte_range:
            self._reply(200, data, {"ETag": '"etag"'})
            return
        first, _, last = byte_range.removeprefix("bytes=").partition("-")
        start = int(first)
        end = min(int(last) if last else len(data) - 1, len(data) - 1)
        self._reply(206, data[start:end + 1], {
            "ETag": '"etag"',
            "Content-Range": f"bytes {start}-{end}/{len(data)}",
        })


class LoopbackS3:
    """State behind the loopback server plus every request it received."""

    def __init__(self, endpoint):
        self.endpoint = endpoint
        self.objects = {}
        self.uploads = {}
        self.requests = []
        self.lock = threading.Lock()

    def record(self, request):
        with self.lock:
            self.requests.append(request)

    def find(self, method, **query):
        return [
            r for r in self.requests
            if r.method == method
            and all(k in r.query for k in query)
        ]


@pytest.fixture
def s3_server(monkeypatch):
    """S3 endpoint on 127.0.0.1 answering real SDK requests"""
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")
    server = ThreadingHTTPServer(("127.0.0.1", 0), LoopbackS3Handler)
    server.state = LoopbackS3(f"http://127.0.0.1:{server.server_address[1]}")
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.state
    server.shutdown()
    server.server_close()
