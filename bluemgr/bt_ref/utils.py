"""
Bluetooth address helpers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from bluemgr.bt_ref import constants
from bluemgr.core.errors import InvalidAddress

__all__ = [
    "Address",
    "parse_address",
    "device_address_to_path",
    "device_path_to_address",
]

_ADDRESS_RX = re.compile(r"^[0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5}$")


@dataclass(frozen=True)
class Address:
    """Canonical Bluetooth hardware address (six octets)."""

    octets: Tuple[int, ...]

    def __str__(self) -> str:
        return ":".join(f"{octet:02X}" for octet in self.octets)

    @property
    def path_component(self) -> str:
        # e.g. 12:34:44:00:66:D5 -> dev_12_34_44_00_66_D5
        return "dev_" + str(self).replace(":", "_")

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Parse ``AA:BB:CC:DD:EE:FF`` (any case) into an :class:`Address`.

        Raises
        ------
        InvalidAddress
            If *text* is not six colon-separated hex octets.
        """
        if not isinstance(text, str):
            raise InvalidAddress(repr(text))
        candidate = text.strip()
        if not _ADDRESS_RX.match(candidate):
            raise InvalidAddress(text)
        return cls(tuple(int(part, 16) for part in candidate.split(":")))


def parse_address(value: Union[str, Address]) -> Address:
    """Return *value* as an :class:`Address`, parsing strings."""
    if isinstance(value, Address):
        return value
    return Address.parse(value)


def device_address_to_path(address: Union[str, Address], adapter_name: str) -> str:
    # e.g. 12:34:44:00:66:D5 on adapter hci0 -> /org/bluez/hci0/dev_12_34_44_00_66_D5
    return f"{constants.BLUEZ_NAMESPACE}{adapter_name}/{parse_address(address).path_component}"


def device_path_to_address(path: str, adapter_name: str) -> Optional[Address]:
    """Return the address encoded in a BlueZ device object path, or ``None``.

    Paths belonging to other adapters, or to objects below a device
    (services, characteristics), do not match.
    """
    prefix = f"{constants.BLUEZ_NAMESPACE}{adapter_name}/dev_"
    if not path.startswith(prefix):
        return None
    tail = path[len(prefix):]
    if "/" in tail:
        return None
    try:
        return Address.parse(tail.replace("_", ":"))
    except InvalidAddress:
        return None
