"""Configuration for GPIB-LAN adapter sessions.

Session tuning lives in :class:`SessionConfig`; an adapter and the devices
on its bus are described by :class:`AdapterConfig`, which can be loaded from
a YAML file with :func:`load_config`.

Example YAML configuration:
    adapter:
      host: "192.168.1.82"
      port: 1234
      connect_timeout: 1.5
      timeout: 1.5
      buffer_size: 4096

    devices:
      - 16
      - address: 5
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hwtest_gpib.address import validate_address

DEFAULT_PORT = 1234
"""TCP port the adapter listens on."""


@dataclass(frozen=True)
class SessionConfig:
    """Connection and I/O settings for a :class:`GpibSession`.

    Attributes:
        port: Adapter TCP port.
        connect_timeout: TCP connect timeout in seconds.
        timeout: Read and write timeout in seconds, applied to every socket
            operation.
        buffer_size: Receive buffer capacity in bytes. A single response
            larger than this raises :class:`BufferOverflowError`.
    """

    port: int = DEFAULT_PORT
    connect_timeout: float = 1.5
    timeout: float = 1.5
    buffer_size: int = 4096

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0 < self.port < 65536:
            raise ValueError("port must be in 1-65535")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")


@dataclass(frozen=True)
class AdapterConfig:
    """A GPIB-LAN adapter and the devices attached to its bus.

    Attributes:
        host: Adapter hostname or IP address.
        session: Session settings used when connecting.
        devices: GPIB addresses of the instruments on the bus, in the order
            they should be registered.
    """

    host: str
    session: SessionConfig = field(default_factory=SessionConfig)
    devices: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.host:
            raise ValueError("host must be non-empty")
        for address in self.devices:
            validate_address(address)


def _parse_device(entry: Any) -> int:
    """Return the address from a ``devices`` entry (int or mapping)."""
    if isinstance(entry, dict):
        if "address" not in entry:
            raise ValueError(f"Device entry missing required field: address ({entry!r})")
        entry = entry["address"]
    return validate_address(entry)


def load_config(path: str | Path) -> AdapterConfig:
    """Load adapter configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed adapter configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the config is invalid or missing required fields.
            Out-of-range device addresses raise :class:`InvalidAddressError`,
            a ``ValueError`` subclass.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError("Config must be a YAML mapping")

    adapter_section = data.get("adapter")
    if not isinstance(adapter_section, dict):
        raise ValueError("Missing required section: adapter")
    host = adapter_section.get("host")
    if not host:
        raise ValueError("Missing required field: adapter.host")

    session_kwargs = {
        key: adapter_section[key]
        for key in ("port", "connect_timeout", "timeout", "buffer_size")
        if key in adapter_section
    }

    devices_data = data.get("devices") or []
    if not isinstance(devices_data, list):
        raise ValueError("devices must be a list")

    return AdapterConfig(
        host=str(host),
        session=SessionConfig(**session_kwargs),
        devices=tuple(_parse_device(entry) for entry in devices_data),
    )
