"""Shared fixtures for hwtest-gpib tests."""

from __future__ import annotations

from collections import deque
from typing import Iterator

import pytest

from hwtest_gpib.emulator import PrologixEmulator
from hwtest_gpib.server import EmulatorServer


class FakeStream:
    """In-memory byte stream that replays pre-loaded receive chunks.

    Each queued item is returned by one ``recv_into`` call; exceptions in the
    queue are raised instead. An empty queue behaves like a read timeout.
    """

    def __init__(self) -> None:
        self.chunks: deque[bytes | OSError] = deque()
        self.written: list[bytes] = []
        self.write_error: OSError | None = None
        self.closed: bool = False
        self.timeout: float | None = None

    def feed(self, *chunks: bytes | OSError) -> None:
        self.chunks.extend(chunks)

    @property
    def written_text(self) -> list[str]:
        return [data.decode("utf-8") for data in self.written]

    def sendall(self, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.written.append(bytes(data))

    def recv_into(self, buffer: memoryview, nbytes: int = 0) -> int:
        if not self.chunks:
            raise TimeoutError("timed out")
        chunk = self.chunks.popleft()
        if isinstance(chunk, OSError):
            raise chunk
        count = min(len(chunk), nbytes or len(buffer))
        buffer[:count] = chunk[:count]
        return count

    def settimeout(self, value: float | None) -> None:
        self.timeout = value

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_stream() -> FakeStream:
    """An empty :class:`FakeStream`."""
    return FakeStream()


@pytest.fixture
def emulator() -> PrologixEmulator:
    """An adapter emulator whose current address is 16."""
    return PrologixEmulator(address=16)


@pytest.fixture
def emulator_server(emulator: PrologixEmulator) -> Iterator[EmulatorServer]:
    """The ``emulator`` fixture served on an ephemeral loopback port."""
    server = EmulatorServer(emulator, port=0)
    server.start()
    try:
        yield server
    finally:
        server.stop()
