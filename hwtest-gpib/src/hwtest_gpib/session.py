"""TCP session with a GPIB-LAN adapter.

This module provides the :class:`GpibSession` class, which owns the TCP
connection to one adapter, performs the ``++`` handshake, tracks the
currently selected GPIB address, and frames responses through a bounded
receive buffer.

Typical usage::

    from hwtest_gpib import connect

    with connect("192.168.1.82") as session:
        session.send_to(16, "*IDN?\\n")
        print(session.read())

A session is not thread-safe. Callers sharing one session between threads
must hold their own lock around each ``send_to``/``read`` pair, because
address selection and the command write are separate network operations.
"""

from __future__ import annotations

import logging
import socket
from types import TracebackType
from typing import TYPE_CHECKING

from hwtest_gpib.address import format_address_command, parse_address, validate_address
from hwtest_gpib.config import SessionConfig
from hwtest_gpib.errors import (
    BufferOverflowError,
    GpibError,
    MalformedResponseError,
    TransportError,
)

if TYPE_CHECKING:
    from hwtest_gpib.config import AdapterConfig
    from hwtest_gpib.transport import ByteStream

logger = logging.getLogger(__name__)

QUERY_ADDRESS_COMMAND = "++addr\n"
ENABLE_AUTO_COMMAND = "++auto 1\n"
CONTROLLER_MODE_COMMAND = "++mode 1\n"


class GpibSession:
    """One live connection to a GPIB-LAN adapter.

    Use :meth:`connect` to open a TCP connection and run the handshake. The
    constructor wraps an already-connected stream and does not touch the
    network, which makes it the entry point for tests and for callers that
    manage their own sockets.

    The session caches the address last selected on the adapter, so
    repeated commands to the same instrument skip the ``++addr`` write.

    Args:
        stream: A connected stream implementing :class:`ByteStream`.
        buffer_size: Receive buffer capacity in bytes.
        timeout: The I/O timeout configured on ``stream``, for reference.
        current_address: Address already selected on the adapter, or
            ``None`` if unknown.
    """

    def __init__(
        self,
        stream: ByteStream,
        *,
        buffer_size: int = 4096,
        timeout: float | None = None,
        current_address: int | None = None,
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        self._stream: ByteStream | None = stream
        self._buffer_size = buffer_size
        # One spare byte so a response larger than the capacity is detectable.
        self._buffer = bytearray(buffer_size + 1)
        self._view = memoryview(self._buffer)
        self._timeout = timeout
        self._current_address = current_address

    # -- Construction --------------------------------------------------------

    @classmethod
    def connect(
        cls,
        host: str,
        port: int | None = None,
        *,
        config: SessionConfig | None = None,
    ) -> GpibSession:
        """Open a TCP connection to an adapter and perform the handshake.

        The handshake queries the adapter's current address (``++addr``),
        then enables read-after-write (``++auto 1``) and controller mode
        (``++mode 1``) as two separate writes.

        Args:
            host: Adapter hostname or IP address.
            port: Adapter TCP port. Defaults to ``config.port`` (1234).
            config: Timeouts and buffer size. Defaults to :class:`SessionConfig`.

        Returns:
            A ready session whose :attr:`current_address` is the adapter's.

        Raises:
            TransportError: If the connection cannot be opened or configured,
                or a handshake write/read fails.
            MalformedResponseError: If the address reply is not valid UTF-8.
            IntegerParseError: If the address reply is not an integer.
        """
        if config is None:
            config = SessionConfig()
        if port is None:
            port = config.port

        logger.info("Connecting to GPIB adapter at %s:%d", host, port)
        try:
            sock = socket.create_connection((host, port), timeout=config.connect_timeout)
        except OSError as exc:
            raise TransportError(f"Cannot connect to adapter at {host}:{port}: {exc}") from exc

        session = cls(sock, buffer_size=config.buffer_size, timeout=config.timeout)
        try:
            try:
                sock.settimeout(config.timeout)
            except OSError as exc:
                raise TransportError(f"Cannot set socket timeout: {exc}") from exc
            session._handshake()
        except GpibError:
            session.close()
            raise

        logger.info(
            "Connected to GPIB adapter at %s:%d (current address %d)",
            host,
            port,
            session.current_address,
        )
        return session

    def _handshake(self) -> None:
        """Establish known adapter state on a fresh connection."""
        self.send_raw(QUERY_ADDRESS_COMMAND)
        self._current_address = parse_address(self.read())
        self.send_raw(ENABLE_AUTO_COMMAND)
        self.send_raw(CONTROLLER_MODE_COMMAND)

    # -- Properties ----------------------------------------------------------

    @property
    def current_address(self) -> int | None:
        """The GPIB address currently selected on the adapter, or None if unknown."""
        return self._current_address

    @property
    def buffer_size(self) -> int:
        """Receive buffer capacity in bytes."""
        return self._buffer_size

    @property
    def timeout(self) -> float | None:
        """Per-operation read/write timeout in seconds."""
        return self._timeout

    @property
    def is_open(self) -> bool:
        """Return True until :meth:`close` is called."""
        return self._stream is not None

    # -- Core operations -----------------------------------------------------

    def send_raw(self, command: str) -> int:
        """Write ``command`` to the adapter verbatim.

        The caller supplies any trailing newline the adapter requires.

        Args:
            command: Adapter meta-command or instrument pass-through text.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If the session is closed or the write fails or
                times out.
        """
        stream = self._require_stream()
        data = command.encode("utf-8")
        try:
            stream.sendall(data)
        except OSError as exc:
            raise TransportError(f"Write to adapter failed: {exc}") from exc
        logger.debug("-> %r", command)
        return len(data)

    def read(self) -> str:
        """Read whatever the adapter has sent since the last command.

        Performs a single receive into the session buffer. An empty string
        means no data arrived before the timeout; the caller may retry.

        Returns:
            The decoded response text, terminators included.

        Raises:
            TransportError: If the session is closed, the read fails, or the
                adapter closed the connection.
            BufferOverflowError: If the response is larger than
                :attr:`buffer_size`.
            MalformedResponseError: If the bytes are not valid UTF-8.
        """
        stream = self._require_stream()
        try:
            received = stream.recv_into(self._view, self._buffer_size + 1)
        except TimeoutError:
            logger.debug("<- (no data before timeout)")
            return ""
        except OSError as exc:
            raise TransportError(f"Read from adapter failed: {exc}") from exc

        if received == 0:
            raise TransportError("Adapter closed the connection")
        if received > self._buffer_size:
            logger.warning(
                "Adapter response exceeded %d byte receive buffer", self._buffer_size
            )
            raise BufferOverflowError(self._buffer_size)

        data = bytes(self._view[:received])
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedResponseError(data, str(exc)) from exc
        logger.debug("<- %r", text)
        return text

    def select_address(self, address: int) -> None:
        """Direct subsequent pass-through commands to ``address``.

        Does nothing if ``address`` is already selected. Otherwise sends
        ``++addr <address>`` and records the new address once the write has
        succeeded.

        Args:
            address: GPIB address (0-30 or 96-126).

        Raises:
            InvalidAddressError: If the address is out of range. Nothing is
                sent.
            TransportError: If the write fails. :attr:`current_address` is
                unchanged.
        """
        validate_address(address)
        if address == self._current_address:
            return
        self.send_raw(format_address_command(address))
        previous = self._current_address
        self._current_address = address
        logger.debug("Selected GPIB address %d (was %s)", address, previous)

    def send_to(self, address: int, command: str) -> int:
        """Select ``address`` if needed, then send ``command``.

        Args:
            address: GPIB address of the target instrument.
            command: Instrument command text, newline terminated.

        Returns:
            Number of bytes written for ``command`` (excluding addressing).

        Raises:
            InvalidAddressError: If the address is out of range.
            TransportError: If either write fails.
        """
        self.select_address(address)
        return self.send_raw(command)

    def query(self, address: int, command: str) -> str:
        """Send ``command`` to ``address`` and read the reply.

        Relies on the read-after-write mode enabled by the handshake.

        Args:
            address: GPIB address of the target instrument.
            command: Instrument query text, newline terminated.

        Returns:
            The response text, or an empty string if nothing arrived before
            the timeout.
        """
        self.send_to(address, command)
        return self.read()

    # -- Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Close the connection. Safe to call multiple times."""
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.close()
        except OSError:
            logger.debug("Error closing adapter connection", exc_info=True)
        logger.info("GPIB adapter session closed")

    def __enter__(self) -> GpibSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Private helpers -----------------------------------------------------

    def _require_stream(self) -> ByteStream:
        if self._stream is None:
            raise TransportError("Session is closed")
        return self._stream


def connect(
    host: str,
    port: int | None = None,
    *,
    config: SessionConfig | None = None,
) -> GpibSession:
    """Connect to a GPIB-LAN adapter and perform the handshake.

    Equivalent to :meth:`GpibSession.connect`. The port defaults to
    ``config.port``, or :data:`DEFAULT_PORT` (1234) without a config.
    """
    return GpibSession.connect(host, port, config=config)


def connect_from_config(config: AdapterConfig) -> GpibSession:
    """Connect to the adapter described by an :class:`AdapterConfig`."""
    return GpibSession.connect(config.host, config=config.session)
