"""GPIB-LAN adapter error types.

This module defines the exception hierarchy raised by the session, registry,
and configuration layers. All exceptions inherit from :class:`GpibError`,
allowing consumers to catch every adapter failure with a single except clause.

Exception hierarchy:
    GpibError (base)
    +-- TransportError: Network connect/read/write failures
    +-- MalformedResponseError: Adapter bytes that are not valid text
    +-- IntegerParseError: Adapter replies that should be integers but are not
    +-- BufferOverflowError: A response larger than the receive buffer
    +-- InvalidAddressError: Caller-supplied GPIB address out of range
    +-- UnknownDeviceError: Device not registered with the registry used
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hwtest_gpib.device import GpibDevice


class GpibError(Exception):
    """Base exception for all GPIB-LAN adapter errors.

    This is the root of the hwtest-gpib exception hierarchy. Catch this to
    handle any failure raised by a session or registry.
    """


class TransportError(GpibError):
    """Raised when the network connection to the adapter fails.

    Covers connection refused, connection reset, broken pipe, timed out
    writes, and the adapter closing the connection. The underlying
    :class:`OSError` is chained as ``__cause__``.
    """


class MalformedResponseError(GpibError):
    """Raised when bytes received from the adapter are not valid UTF-8.

    Attributes:
        data: The raw bytes that failed to decode.
    """

    def __init__(self, data: bytes, reason: str = "") -> None:
        self.data = data
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Adapter sent undecodable response{detail}: {data!r}")


class IntegerParseError(GpibError, ValueError):
    """Raised when an adapter reply expected to be an integer is not one.

    Attributes:
        text: The response text that could not be parsed.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Expected an unsigned integer from adapter, got {text!r}")


class BufferOverflowError(GpibError):
    """Raised when a single response exceeds the receive buffer capacity.

    The unread remainder of the response is left in the socket, so the
    stream position is no longer aligned with command framing. Callers
    should normally reconnect.

    Attributes:
        capacity: Receive buffer capacity in bytes.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"Adapter response exceeded receive buffer of {capacity} bytes")


class InvalidAddressError(GpibError, ValueError):
    """Raised when a GPIB address is outside the ranges 0-30 and 96-126.

    This is a caller error and is always raised before any network traffic.

    Attributes:
        address: The rejected address.
    """

    def __init__(self, address: object) -> None:
        self.address = address
        super().__init__(f"Invalid GPIB address {address!r}: must be in 0-30 or 96-126")


class UnknownDeviceError(GpibError):
    """Raised when a device is used with a registry that did not create it.

    Attributes:
        device: The device that is not registered.
    """

    def __init__(self, device: GpibDevice) -> None:
        self.device = device
        super().__init__(f"Device at GPIB address {device.address} is not in this registry")
