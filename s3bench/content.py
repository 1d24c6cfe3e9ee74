"""Object content - one random sample buffer repeated to any object size.

Usage::

    from s3bench.content import ContentSource, generate_sample_data

    source = ContentSource(generate_sample_data(1024), length=4096)
    body = source.open()      # independent cursor, 4096 bytes long
    body.read(10)

Generating an object-sized buffer per upload is wasteful when objects
are gigabytes and thousands are created. ``RepeatReader`` walks the one
shared buffer again and again instead, so memory stays at the sample
size and seeking is constant-time regardless of the object size.
"""

from __future__ import annotations

import io
import logging
import os
import time
from dataclasses import dataclass

from s3bench.utils import format_duration


class SampleDataError(RuntimeError):
    """Raised when the random sample buffer cannot be generated."""


def generate_sample_data(
    size: int,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> bytes:
    """Generate the random sample buffer shared by all uploads.

    Args:
        size: Number of bytes to generate.
        logger: Optional logger for progress output.

    Returns:
        Random bytes.

    Raises:
        SampleDataError: If the buffer could not be allocated.
    """
    if logger:
        logger.info("Generating in-memory sample data...")
    start = time.perf_counter()
    try:
        data = os.urandom(size)
    except (MemoryError, OSError, ValueError, OverflowError) as exc:
        raise SampleDataError(
            f"Could not allocate a {size} byte sample buffer: {exc}"
        ) from exc
    if logger:
        logger.info(
            f"Generating in-memory sample data... Done "
            f"({format_duration(time.perf_counter() - start)})"
        )
    return data


@dataclass(frozen=True)
class ContentSource:
    """Shared, read-only sample buffer plus the logical object length."""

    data: bytes
    length: int

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("sample buffer must not be empty")
        if self.length < 0:
            raise ValueError(f"negative object length: {self.length}")

    @property
    def repeat_count(self) -> int:
        return -(-self.length // len(self.data))

    def open(self) -> RepeatReader:
        """Return a fresh cursor over the logical object."""
        return RepeatReader(self.data, self.length)


class RepeatReader(io.RawIOBase):
    """Readable, seekable stream of ``length`` bytes cycling over ``data``.

    Byte ``i`` of the stream is ``data[i % len(data)]``. Position is kept
    as a repeat index plus an offset inside the buffer; the buffer itself
    is only ever sliced through a ``memoryview``.
    """

    def __init__(self, data: bytes, length: int) -> None:
        super().__init__()
        self._view = memoryview(data)
        self._size = len(data)
        self._length = length
        self._repeats = -(-length // self._size)
        self._repeat = 0
        self._offset = 0

    def __len__(self) -> int:
        return self._length

    @property
    def repeat_count(self) -> int:
        return self._repeats

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._repeat * self._size + self._offset

    def _read_inner(self, limit: int) -> memoryview:
        """Read up to ``limit`` bytes from the current repetition."""
        end = min(self._offset + limit, self._size)
        chunk = self._view[self._offset:end]
        self._offset = end
        return chunk

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Copy at most one repetition's worth of bytes into ``buffer``."""
        out = memoryview(buffer).cast("B")
        remaining = self._length - self.tell()
        if remaining <= 0 or not len(out):
            return 0
        limit = min(len(out), remaining)
        chunk = self._read_inner(limit)
        while not len(chunk):
            # End of one repetition: rewind unless it was the last one.
            self._repeat += 1
            self._offset = 0
            if self._repeat >= self._repeats:
                return 0
            chunk = self._read_inner(limit)
        n = len(chunk)
        out[:n] = chunk
        return n

    def read(self, size: int | None = -1) -> bytes:
        """Read ``size`` bytes, crossing repetitions as needed.

        Unlike ``readinto`` this never returns a short read before the
        end of the stream.
        """
        if size is None or size < 0:
            size = max(self._length - self.tell(), 0)
        buf = bytearray(size)
        filled = 0
        with memoryview(buf) as view:
            while filled < size:
                n = self.readinto(view[filled:])
                if not n:
                    break
                filled += n
        del buf[filled:]
        return bytes(buf)

    def readall(self) -> bytes:
        return self.read()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self.tell() + offset
        elif whence == io.SEEK_END:
            position = self._length + offset
        else:
            raise ValueError(f"invalid whence ({whence})")
        if position < 0:
            raise ValueError(f"negative seek position {position}")
        self._repeat, self._offset = divmod(position, self._size)
        return position
