"""GPIB device value object."""

from __future__ import annotations

from dataclasses import dataclass

from hwtest_gpib.address import validate_address


@dataclass(frozen=True)
class GpibDevice:
    """An instrument on the GPIB bus, identified by its address.

    A device carries no connection state. Instrument drivers read
    :attr:`address` to route their commands through
    :meth:`GpibSession.send_to` or :meth:`DeviceRegistry.send_to_device`.

    Attributes:
        address: GPIB address (0-30 or 96-126). On most bench instruments
            this is shown by the front panel ``ADDR`` key.

    Raises:
        InvalidAddressError: If the address is out of range.
    """

    address: int

    def __post_init__(self) -> None:
        validate_address(self.address)
