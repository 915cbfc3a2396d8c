"""GPIB-LAN adapter client for hwtest instrument automation.

This package controls instruments on a GPIB (IEEE-488) bus through a
GPIB-to-LAN adapter speaking the ``++`` command protocol over TCP. It
includes:

- A session that performs the adapter handshake and caches the selected
  GPIB address to avoid redundant ``++addr`` writes
- Bounded, explicit response framing with typed errors
- A device registry for routing commands by device instead of address
- YAML configuration loading
- An in-process adapter emulator and TCP server for testing

Typical usage::

    from hwtest_gpib import DeviceRegistry, connect

    with connect("192.168.1.82") as session:
        registry = DeviceRegistry(session)
        psu = registry.add(5)
        registry.send_to_device(psu, "*IDN?\\n")
        print(session.read())
"""

from hwtest_gpib.address import (
    PRIMARY_ADDRESSES,
    SECONDARY_ADDRESSES,
    format_address_command,
    is_valid_address,
    parse_address,
    validate_address,
)
from hwtest_gpib.config import DEFAULT_PORT, AdapterConfig, SessionConfig, load_config
from hwtest_gpib.device import GpibDevice
from hwtest_gpib.emulator import PrologixEmulator
from hwtest_gpib.errors import (
    BufferOverflowError,
    GpibError,
    IntegerParseError,
    InvalidAddressError,
    MalformedResponseError,
    TransportError,
    UnknownDeviceError,
)
from hwtest_gpib.registry import DeviceRegistry
from hwtest_gpib.server import EmulatorServer
from hwtest_gpib.session import GpibSession, connect, connect_from_config
from hwtest_gpib.transport import ByteStream

__all__ = [
    # Address helpers
    "PRIMARY_ADDRESSES",
    "SECONDARY_ADDRESSES",
    "format_address_command",
    "is_valid_address",
    "parse_address",
    "validate_address",
    # Configuration
    "DEFAULT_PORT",
    "AdapterConfig",
    "SessionConfig",
    "load_config",
    # Device and registry
    "DeviceRegistry",
    "GpibDevice",
    # Errors
    "BufferOverflowError",
    "GpibError",
    "IntegerParseError",
    "InvalidAddressError",
    "MalformedResponseError",
    "TransportError",
    "UnknownDeviceError",
    # Session
    "ByteStream",
    "GpibSession",
    "connect",
    "connect_from_config",
    # Emulator
    "EmulatorServer",
    "PrologixEmulator",
]
