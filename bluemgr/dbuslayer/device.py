"""
Device snapshots and service-identifier classification.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, NamedTuple, Optional

from bluemgr.bt_ref.constants import (
    DEVICE_CATEGORY__UNKNOWN,
    SERVICE_ID_GROUPS,
    UNKNOWN_DEVICE_NAME,
)

__all__ = [
    "DeviceRecord",
    "DiscoveryEvent",
    "classify",
]

# Discovery event kinds
EVENT__ADDED = "added"
EVENT__CHANGED = "changed"


class DiscoveryEvent(NamedTuple):
    """One notification from an active scan (a device appeared or changed)."""

    kind: str
    address: str
    properties: Dict[str, Any]


def classify(service_ids: Iterable[str]) -> str:
    """Return the coarse category for a set of service identifiers.

    Groups are checked in a fixed order (audio, input, network, file
    transfer); an identifier matches a group when it contains one of the
    group's short ids, case-insensitively.  The first matching group wins,
    regardless of the order of *service_ids*.
    """
    lowered = [str(uuid).lower() for uuid in service_ids]
    for category, short_ids in SERVICE_ID_GROUPS:
        if any(short_id in uuid for uuid in lowered for short_id in short_ids):
            return category
    return DEVICE_CATEGORY__UNKNOWN


@dataclass(frozen=True)
class DeviceRecord:
    """Snapshot of one peer device as reported by the system service."""

    address: str
    display_name: str = UNKNOWN_DEVICE_NAME
    connected: bool = False
    paired: bool = False
    trusted: bool = False
    signal_strength: Optional[int] = None
    service_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not isinstance(self.service_ids, frozenset):
            object.__setattr__(self, "service_ids", frozenset(self.service_ids))
        if not self.display_name:
            object.__setattr__(self, "display_name", UNKNOWN_DEVICE_NAME)

    @property
    def category(self) -> str:
        return classify(self.service_ids)

    def with_service_ids(self, service_ids: Iterable[str]) -> "DeviceRecord":
        """Return a copy carrying new service identifiers (and so a fresh category)."""
        return replace(self, service_ids=frozenset(service_ids))

    @classmethod
    def from_properties(cls, address: str, properties: Dict[str, Any]) -> "DeviceRecord":
        """Build a record from a BlueZ ``Device1`` property mapping.

        Missing properties take their neutral value: no name, not
        connected/paired/trusted, no signal strength, no services.
        """
        alias = properties.get("Alias")
        # BlueZ synthesises Alias from the address when the peer has no name
        if alias and str(alias).replace("-", ":").upper() == address.upper():
            alias = None
        name = properties.get("Name") or alias
        rssi = properties.get("RSSI")
        return cls(
            address=address,
            display_name=str(name) if name else UNKNOWN_DEVICE_NAME,
            connected=bool(properties.get("Connected", False)),
            paired=bool(properties.get("Paired", False)),
            trusted=bool(properties.get("Trusted", False)),
            signal_strength=int(rssi) if rssi is not None else None,
            service_ids=frozenset(str(uuid) for uuid in properties.get("UUIDs", ()) or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.display_name,
            "category": self.category,
            "connected": self.connected,
            "paired": self.paired,
            "trusted": self.trusted,
            "rssi": self.signal_strength,
            "uuids": sorted(self.service_ids),
        }
