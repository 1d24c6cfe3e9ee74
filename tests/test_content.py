"""
Tests for the repeating content source
"""

import io
import os

import pytest

from s3bench.content import (
    ContentSource,
    RepeatReader,
    SampleDataError,
    generate_sample_data,
)


def expected_bytes(data, length):
    repeats = -(-length // len(data))
    return (data * repeats)[:length]


def test_buffer_repeats_four_times_then_ends():
    """1024 byte sample stretched to 4096 bytes repeats exactly 4 times"""
    data = os.urandom(1024)
    reader = ContentSource(data, length=4096).open()

    assert reader.repeat_count == 4
    assert reader.read(4096) == data * 4
    assert reader.read(1) == b""


def test_length_not_multiple_of_sample_is_authoritative():
    """Stream stops at the object length, mid-repetition"""
    data = bytes(range(7))
    reader = RepeatReader(data, 50)

    content = reader.read()
    assert len(content) == 50
    assert content == expected_bytes(data, 50)
    assert all(content[i] == data[i % 7] for i in range(50))


def test_small_sequential_reads_match_full_stream():
    """Chunked reads produce the same bytes as a single read"""
    data = os.urandom(13)
    reader = RepeatReader(data, 100)

    chunks = []
    while True:
        chunk = reader.read(3)
        if not chunk:
            break
        chunks.append(chunk)

    assert b"".join(chunks) == expected_bytes(data, 100)


def test_readinto_stops_at_repetition_boundary():
    """readinto returns one repetition at a time and then 0"""
    data = b"abcd"
    reader = RepeatReader(data, 12)
    buf = bytearray(100)

    assert reader.readinto(buf) == 4
    assert reader.readinto(buf) == 4
    assert reader.readinto(buf) == 4
    assert reader.readinto(buf) == 0
    assert reader.tell() == 12


def test_seek_then_read_matches_sequential_byte():
    """seek(o) followed by read(1) returns stream byte o for every o"""
    data = os.urandom(16)
    length = 70
    full = expected_bytes(data, length)
    reader = RepeatReader(data, length)

    for offset in range(length):
        assert reader.seek(offset) == offset
        assert reader.read(1) == full[offset:offset + 1]


def test_seek_current_resolves_logical_position():
    """Relative seeks account for completed repetitions"""
    data = os.urandom(8)
    full = expected_bytes(data, 40)
    reader = RepeatReader(data, 40)

    reader.read(10)
    assert reader.tell() == 10
    assert reader.seek(5, io.SEEK_CUR) == 15
    assert reader.read(4) == full[15:19]
    assert reader.seek(-12, io.SEEK_CUR) == 7
    assert reader.read(3) == full[7:10]


def test_seek_end_counts_back_from_last_repetition():
    """Seeking from the end lands in the final repetition"""
    data = os.urandom(8)
    full = expected_bytes(data, 32)
    reader = RepeatReader(data, 32)

    assert reader.seek(-1, io.SEEK_END) == 31
    assert reader.read(1) == full[31:32]
    assert reader.seek(-10, io.SEEK_END) == 22
    assert reader.read() == full[22:]
    assert reader.seek(0, io.SEEK_END) == 32
    assert reader.read(1) == b""


def test_rewind_after_full_read():
    """A consumed body can be rewound and re-sent"""
    data = os.urandom(5)
    reader = RepeatReader(data, 23)

    first = reader.read()
    reader.seek(0)
    assert reader.read() == first


def test_negative_seek_rejected():
    reader = RepeatReader(b"xyz", 9)

    with pytest.raises(ValueError):
        reader.seek(-1)
    with pytest.raises(ValueError):
        reader.seek(-10, io.SEEK_END)
    with pytest.raises(ValueError):
        reader.seek(0, 7)


def test_seek_past_end_reads_nothing():
    reader = RepeatReader(b"xyz", 9)

    assert reader.seek(100) == 100
    assert reader.read(5) == b""


def test_length_reported_for_content_length():
    """Clients derive Content-Length from len() or seek/tell"""
    reader = RepeatReader(b"xyz", 9)

    assert len(reader) == 9
    reader.seek(0, io.SEEK_END)
    assert reader.tell() == 9


def test_open_returns_independent_cursors():
    """Each request gets its own cursor over the shared buffer"""
    source = ContentSource(b"0123456789", length=30)
    first = source.open()
    second = source.open()

    first.read(15)
    assert second.tell() == 0
    assert second.read(3) == b"012"
    assert first.read(3) == b"567"


def test_content_source_rejects_empty_buffer():
    with pytest.raises(ValueError):
        ContentSource(b"", length=10)


def test_generate_sample_data_size():
    data = generate_sample_data(2048)

    assert isinstance(data, bytes)
    assert len(data) == 2048


def test_generate_sample_data_failure(monkeypatch):
    """Allocation failures surface as setup errors"""

    def fail(size):
        raise MemoryError()

    monkeypatch.setattr("s3bench.content.os.urandom", fail)

    with pytest.raises(SampleDataError):
        generate_sample_data(1024)
