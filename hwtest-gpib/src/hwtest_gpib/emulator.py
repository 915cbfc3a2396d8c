"""GPIB-LAN adapter emulator.

Provides an in-process model of the adapter's ``++`` command protocol, for
testing sessions without hardware. The emulator keeps the adapter state the
session depends on (selected address, read-after-write, controller mode),
records every line it receives, and answers instrument queries from canned
responses keyed by GPIB address.

Serve it over TCP with :class:`hwtest_gpib.server.EmulatorServer`.
"""

from __future__ import annotations

import threading

from hwtest_gpib.address import is_valid_address

DEFAULT_VERSION = "Prologix GPIB-ETHERNET Controller version 01.06.06.00"

_UNRECOGNIZED = "Unrecognized command"


class PrologixEmulator:
    """In-process GPIB-LAN adapter emulator.

    Lines are processed one at a time by :meth:`handle_line`, which returns
    the text the adapter would send back, or ``None`` when it stays silent.
    Instrument pass-through lines are answered only when read-after-write is
    enabled and a response was registered with :meth:`set_response`.

    Args:
        address: GPIB address selected at power-up.
        version: ``++ver`` reply.
    """

    def __init__(self, *, address: int = 10, version: str = DEFAULT_VERSION) -> None:
        self._address = address
        self._version = version
        self._auto = False
        self._mode = 1
        self._responses: dict[tuple[int, str], str] = {}
        self._history: list[str] = []
        self._device_writes: list[tuple[int, str]] = []
        self._cond = threading.Condition()

    # -- Properties ----------------------------------------------------------

    @property
    def address(self) -> int:
        """Currently selected GPIB address."""
        return self._address

    @property
    def auto(self) -> bool:
        """Whether read-after-write is enabled."""
        return self._auto

    @property
    def mode(self) -> int:
        """Operating mode: 1 for controller, 0 for device."""
        return self._mode

    @property
    def history(self) -> list[str]:
        """Every line received, in order, without terminators."""
        with self._cond:
            return list(self._history)

    @property
    def device_writes(self) -> list[tuple[int, str]]:
        """Pass-through lines as ``(address, line)`` pairs."""
        with self._cond:
            return list(self._device_writes)

    # -- Setup ---------------------------------------------------------------

    def set_response(self, address: int, command: str, response: str) -> None:
        """Answer ``command`` sent to ``address`` with ``response``.

        Args:
            address: GPIB address of the emulated instrument.
            command: Query line, without terminator (e.g. ``"*IDN?"``).
            response: Reply text; a newline is appended when sent.
        """
        self._responses[(address, command)] = response

    # -- Processing ----------------------------------------------------------

    def handle_line(self, line: str) -> str | None:
        """Process one received line.

        Args:
            line: A command line, with or without CR/LF terminator.

        Returns:
            Newline-terminated reply text, or None if the adapter sends nothing.
        """
        line = line.rstrip("\r\n")
        with self._cond:
            self._history.append(line)
            if line.startswith("++"):
                reply = self._handle_meta(line[2:])
            else:
                reply = self._handle_device(line)
            self._cond.notify_all()
        return None if reply is None else reply + "\n"

    def wait_for_history(self, count: int, timeout: float = 2.0) -> bool:
        """Block until at least ``count`` lines have been received.

        Args:
            count: Number of lines to wait for.
            timeout: Maximum time to wait in seconds.

        Returns:
            True if the count was reached, False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(lambda: len(self._history) >= count, timeout)

    # -- Private helpers -----------------------------------------------------

    def _handle_meta(self, body: str) -> str | None:
        parts = body.split()
        if not parts:
            return _UNRECOGNIZED
        name, args = parts[0], parts[1:]

        if name == "addr":
            if not args:
                return str(self._address)
            if args[0].isascii() and args[0].isdigit() and is_valid_address(int(args[0])):
                self._address = int(args[0])
            return None
        if name == "auto":
            if not args:
                return "1" if self._auto else "0"
            if args[0] in ("0", "1"):
                self._auto = args[0] == "1"
            return None
        if name == "mode":
            if not args:
                return str(self._mode)
            if args[0] in ("0", "1"):
                self._mode = int(args[0])
            return None
        if name == "ver":
            return self._version
        return _UNRECOGNIZED

    def _handle_device(self, line: str) -> str | None:
        self._device_writes.append((self._address, line))
        if not (self._auto and self._mode == 1):
            return None
        return self._responses.get((self._address, line))
