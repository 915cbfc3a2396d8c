"""End-to-end tests: GpibSession against the emulator over TCP."""

from __future__ import annotations

import socket

import pytest

from hwtest_gpib.config import AdapterConfig, SessionConfig
from hwtest_gpib.emulator import PrologixEmulator
from hwtest_gpib.errors import BufferOverflowError, TransportError
from hwtest_gpib.registry import DeviceRegistry
from hwtest_gpib.server import EmulatorServer
from hwtest_gpib.session import connect, connect_from_config

HANDSHAKE = ["++addr", "++auto 1", "++mode 1"]


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


class TestHandshake:
    """Tests for the connect handshake against the TCP emulator."""

    def test_handshake_over_tcp(
        self, emulator: PrologixEmulator, emulator_server: EmulatorServer
    ) -> None:
        host, port = emulator_server.address
        with connect(host, port) as session:
            assert session.current_address == 16
            assert emulator.wait_for_history(3)
        assert emulator.history == HANDSHAKE
        assert emulator.auto
        assert emulator.mode == 1

    def test_reports_adapter_address(self) -> None:
        emulator = PrologixEmulator(address=5)
        with EmulatorServer(emulator, port=0) as server:
            host, port = server.address
            with connect(host, port) as session:
                assert session.current_address == 5

    def test_connection_refused(self) -> None:
        port = _unused_port()
        with pytest.raises(TransportError, match="Cannot connect"):
            connect("127.0.0.1", port, config=SessionConfig(connect_timeout=0.5))


class TestEndToEnd:
    """Tests for addressing and framing over a live TCP connection."""

    def test_addressing_is_cached(
        self, emulator: PrologixEmulator, emulator_server: EmulatorServer
    ) -> None:
        emulator.set_response(16, "*IDN?", "HEWLETT-PACKARD,6060B,0,A.01.02")
        host, port = emulator_server.address
        with connect(host, port) as session:
            session.send_to(16, "*IDN?\n")
            assert session.read() == "HEWLETT-PACKARD,6060B,0,A.01.02\n"

            session.send_to(3, "*RST\n")
            assert session.current_address == 3
            assert emulator.wait_for_history(5)

        assert emulator.history == [*HANDSHAKE, "*IDN?", "++addr 3", "*RST"]
        assert emulator.device_writes == [(16, "*IDN?"), (3, "*RST")]

    def test_registry_dispatch(
        self, emulator: PrologixEmulator, emulator_server: EmulatorServer
    ) -> None:
        emulator.set_response(5, "VOLT?", "12.000")
        host, port = emulator_server.address
        config = AdapterConfig(host=host, session=SessionConfig(port=port), devices=(5, 16))
        with connect_from_config(config) as session:
            registry = DeviceRegistry.from_config(session, config)
            psu, dmm = registry.list_all()
            assert registry.query_device(psu, "VOLT?\n") == "12.000\n"
            registry.send_to_device(dmm, "*CLS\n")
            assert emulator.wait_for_history(7)

        assert emulator.history[len(HANDSHAKE) :] == ["++addr 5", "VOLT?", "++addr 16", "*CLS"]

    def test_no_reply_reads_empty(
        self, emulator: PrologixEmulator, emulator_server: EmulatorServer
    ) -> None:
        host, port = emulator_server.address
        config = SessionConfig(timeout=0.2)
        with connect(host, port, config=config) as session:
            session.send_to(16, "VOLT 5\n")
            assert session.read() == ""

    def test_response_over_buffer_capacity(
        self, emulator: PrologixEmulator, emulator_server: EmulatorServer
    ) -> None:
        emulator.set_response(16, "*IDN?", "X" * 64)
        host, port = emulator_server.address
        with connect(host, port, config=SessionConfig(buffer_size=16)) as session:
            session.send_to(16, "*IDN?\n")
            with pytest.raises(BufferOverflowError):
                session.read()
