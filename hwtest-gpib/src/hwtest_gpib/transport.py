"""Byte stream protocol definition.

This module defines the :class:`ByteStream` protocol, the subset of the
:class:`socket.socket` interface that :class:`hwtest_gpib.GpibSession` uses.
A connected TCP socket satisfies it directly; tests substitute in-memory
fakes.
"""

from __future__ import annotations

from typing import Protocol


class ByteStream(Protocol):
    """Protocol for the byte stream underneath a session.

    This is a structural subtyping protocol (duck typing). Any class that
    implements ``sendall()``, ``recv_into()``, and ``close()`` with
    socket-compatible semantics is a valid stream. Failures are reported by
    raising :class:`OSError`; a read that times out raises
    :class:`TimeoutError` (``socket.timeout``).
    """

    def sendall(self, data: bytes) -> None:
        """Send all of ``data`` or raise :class:`OSError`."""
        ...

    def recv_into(self, buffer: memoryview, nbytes: int = 0) -> int:
        """Receive up to ``nbytes`` bytes into ``buffer``.

        Returns:
            The number of bytes received. Zero means the peer closed the
            connection.
        """
        ...

    def close(self) -> None:
        """Close the stream and release resources."""
        ...
