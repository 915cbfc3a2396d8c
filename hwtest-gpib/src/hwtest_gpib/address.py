"""GPIB address validation, parsing, and formatting.

The adapter accepts primary addresses 0-30 and secondary addresses 96-126.
These helpers are shared by the session, device, and configuration layers so
that every entry point rejects out-of-range addresses the same way.

Example:
    >>> validate_address(16)
    16
    >>> format_address_command(16)
    '++addr 16\\n'
    >>> parse_address(" 5\\r\\n")
    5
"""

from __future__ import annotations

import re

from hwtest_gpib.errors import IntegerParseError, InvalidAddressError

PRIMARY_ADDRESSES = range(0, 31)
"""Primary GPIB addresses accepted by the adapter."""

SECONDARY_ADDRESSES = range(96, 127)
"""Secondary GPIB addresses accepted by the adapter."""

# Unsigned ASCII decimal integer, no sign.
_UINT_RE = re.compile(r"[0-9]+")

# Largest value the adapter can report for its address (one byte).
_MAX_ADDRESS_REPLY = 255


def is_valid_address(address: object) -> bool:
    """Return True if ``address`` is an int in a legal GPIB range.

    Booleans are rejected even though they are ``int`` subclasses.

    Args:
        address: Candidate address.

    Returns:
        True when the address is in 0-30 or 96-126.
    """
    if isinstance(address, bool) or not isinstance(address, int):
        return False
    return address in PRIMARY_ADDRESSES or address in SECONDARY_ADDRESSES


def validate_address(address: object) -> int:
    """Return ``address`` unchanged, or raise if it is not a legal GPIB address.

    Args:
        address: Candidate address.

    Returns:
        The validated address.

    Raises:
        InvalidAddressError: If the address is out of range or not an int.
    """
    if isinstance(address, int) and is_valid_address(address):
        return address
    raise InvalidAddressError(address)


def parse_address(text: str) -> int:
    """Parse an adapter ``++addr`` reply as an unsigned byte.

    Surrounding whitespace (including the CR/LF terminator) is stripped.
    Only ASCII digits are accepted and the value must fit in one byte (0-255).
    The GPIB ranges are not checked: the reply describes adapter state, not
    caller input.

    Args:
        text: Response text from the adapter.

    Returns:
        The parsed integer.

    Raises:
        IntegerParseError: If the text is empty, not an ASCII decimal integer,
            or greater than 255.
    """
    stripped = text.strip()
    if not _UINT_RE.fullmatch(stripped):
        raise IntegerParseError(text)
    value = int(stripped)
    if value > _MAX_ADDRESS_REPLY:
        raise IntegerParseError(text)
    return value


def format_address_command(address: int) -> str:
    """Build the ``++addr`` command selecting ``address``.

    Args:
        address: GPIB address to select.

    Returns:
        The command string, newline terminated.

    Raises:
        InvalidAddressError: If the address is not legal.
    """
    return f"++addr {validate_address(address)}\n"
