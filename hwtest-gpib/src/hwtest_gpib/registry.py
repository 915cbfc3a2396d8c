"""Registry of GPIB devices attached to one adapter session.

The registry remembers the instruments on a bus and routes commands to them
by device rather than by raw address.

Example:
    registry = DeviceRegistry(session)
    psu = registry.add(5)
    dmm = registry.add(16)

    registry.send_to_device(dmm, "*IDN?\\n")
    print(session.read())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from hwtest_gpib.address import validate_address
from hwtest_gpib.device import GpibDevice
from hwtest_gpib.errors import UnknownDeviceError

if TYPE_CHECKING:
    from hwtest_gpib.config import AdapterConfig
    from hwtest_gpib.session import GpibSession

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Ordered collection of devices dispatched through one session.

    Duplicate addresses are accepted. The registry borrows the session: it
    never closes it.

    Args:
        session: The session used to reach the devices.
    """

    def __init__(self, session: GpibSession) -> None:
        self._session = session
        self._devices: list[GpibDevice] = []

    @classmethod
    def from_config(cls, session: GpibSession, config: AdapterConfig) -> DeviceRegistry:
        """Create a registry pre-populated with ``config.devices``, in order.

        Args:
            session: The session used to reach the devices.
            config: Adapter configuration listing device addresses.

        Returns:
            The populated registry.
        """
        registry = cls(session)
        for address in config.devices:
            registry.add(address)
        return registry

    @property
    def session(self) -> GpibSession:
        """The session commands are dispatched through."""
        return self._session

    def add(self, address: int) -> GpibDevice:
        """Register the device at ``address``.

        Args:
            address: GPIB address of the instrument.

        Returns:
            The new device.

        Raises:
            InvalidAddressError: If the address is out of range.
        """
        device = GpibDevice(validate_address(address))
        self._devices.append(device)
        logger.debug("Registered GPIB device at address %d", address)
        return device

    def list_all(self) -> tuple[GpibDevice, ...]:
        """Return a snapshot of the registered devices in insertion order."""
        return tuple(self._devices)

    def send_to_device(self, device: GpibDevice, command: str) -> int:
        """Send ``command`` to ``device``, selecting its address if needed.

        Args:
            device: A device returned by :meth:`add` on this registry.
            command: Instrument command text, newline terminated.

        Returns:
            Number of bytes written for ``command``.

        Raises:
            UnknownDeviceError: If ``device`` was not created by this registry.
            TransportError: If a write fails.
        """
        self._require_registered(device)
        return self._session.send_to(device.address, command)

    def query_device(self, device: GpibDevice, command: str) -> str:
        """Send ``command`` to ``device`` and read the reply.

        Raises:
            UnknownDeviceError: If ``device`` was not created by this registry.
        """
        self._require_registered(device)
        return self._session.query(device.address, command)

    def _require_registered(self, device: GpibDevice) -> None:
        if device not in self:
            raise UnknownDeviceError(device)

    def __iter__(self) -> Iterator[GpibDevice]:
        return iter(self.list_all())

    def __contains__(self, device: object) -> bool:
        # Identity, not equality: devices compare equal by address across registries.
        return any(registered is device for registered in self._devices)

    def __len__(self) -> int:
        return len(self._devices)
