"""Work items passed between the dispatcher, workers and aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from s3bench.content import RepeatReader


class Operation(str, Enum):
    """Kind of storage operation driven by a phase."""

    WRITE = "Write"
    READ = "Read"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class WriteRequest:
    """Upload ``key`` with the bytes of ``body``."""

    key: str
    body: RepeatReader


@dataclass(frozen=True)
class ReadRequest:
    """Download ``key`` and discard its contents."""

    key: str


Request = Union[WriteRequest, ReadRequest]


@dataclass(frozen=True)
class Response:
    """Outcome of one request as measured by a worker."""

    error: Exception | None
    duration: float
    bytes_transferred: int

    @property
    def ok(self) -> bool:
        return self.error is None
