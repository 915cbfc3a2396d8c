"""TCP server exposing a GPIB-LAN adapter emulator.

Serves a :class:`PrologixEmulator` over TCP so that a :class:`GpibSession`,
telnet, or netcat can talk to it as if it were a real adapter.

Example:
    Start an emulator server on an ephemeral port::

        from hwtest_gpib import EmulatorServer, PrologixEmulator, connect

        emulator = PrologixEmulator(address=16)
        emulator.set_response(16, "*IDN?", "HEWLETT-PACKARD,6060B,0,A.01.02")
        server = EmulatorServer(emulator, port=0)
        server.start()

        host, port = server.address
        with connect(host, port) as session:
            print(session.query(16, "*IDN?\\n"))

        server.stop()
"""

from __future__ import annotations

import logging
import socketserver
import threading
from typing import Any

from hwtest_gpib.emulator import PrologixEmulator

logger = logging.getLogger(__name__)


class _AdapterRequestHandler(socketserver.StreamRequestHandler):
    """Speak the adapter protocol to one client.

    Every newline-terminated line, ``++`` meta-command or instrument
    pass-through, goes to the emulator. Answers to ``++addr``/``++ver``
    queries, and canned instrument replies in read-after-write mode, are
    written back at once. Lines the adapter would not answer produce no
    output, so the client sees a read timeout as it would against hardware.
    """

    server: _AdapterTcpServer

    def handle(self) -> None:
        """Process incoming lines until the client disconnects."""
        logger.debug("Emulator client connected from %s", self.client_address)
        for raw_line in self.rfile:
            line = raw_line.decode("utf-8", errors="replace")
            reply = self.server.emulator.handle_line(line)
            if reply is not None:
                self.wfile.write(reply.encode("utf-8"))
                self.wfile.flush()
        logger.debug("Emulator client %s disconnected", self.client_address)


class _AdapterTcpServer(socketserver.TCPServer):
    """Listening socket bound to one shared :class:`PrologixEmulator`.

    Adapter state (selected address, ``++auto``, ``++mode``) lives in the
    emulator, so it persists across client reconnects like a real adapter.

    Attributes:
        emulator: The emulator every connection talks to.
    """

    allow_reuse_address = True

    def __init__(
        self,
        server_address: tuple[str, int],
        emulator: PrologixEmulator,
        **kwargs: Any,
    ) -> None:
        self.emulator = emulator
        super().__init__(server_address, _AdapterRequestHandler, **kwargs)


class EmulatorServer:
    """Stand-in for a GPIB-LAN adapter on a TCP port.

    Runs a :class:`PrologixEmulator` behind a listening socket in a daemon
    thread, so :func:`hwtest_gpib.connect` can run its ``++addr``,
    ``++auto 1``, ``++mode 1`` handshake against it. Like the adapter, it
    serves one client at a time. As a context manager it starts on entry and
    stops on exit.

    Args:
        emulator: The adapter emulator to serve.
        host: Bind address (default ``"127.0.0.1"``).
        port: Bind port (default ``1234``). Use ``0`` for an OS-assigned
            ephemeral port.
    """

    def __init__(
        self,
        emulator: PrologixEmulator,
        host: str = "127.0.0.1",
        port: int = 1234,
    ) -> None:
        self._server = _AdapterTcpServer((host, port), emulator)
        self._thread: threading.Thread | None = None

    @property
    def emulator(self) -> PrologixEmulator:
        """The emulator being served."""
        return self._server.emulator

    @property
    def address(self) -> tuple[str, int]:
        """Return the actual bound ``(host, port)`` address."""
        addr = self._server.server_address
        return (str(addr[0]), int(addr[1]))

    def start(self) -> None:
        """Start serving in a daemon thread."""
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Adapter emulator listening on %s:%d", *self.address)

    def stop(self) -> None:
        """Shut down the server and wait for the thread to exit."""
        self._server.shutdown()
        if self._thread is not None:
            self._thread.join()
        self._server.server_close()

    def __enter__(self) -> EmulatorServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
