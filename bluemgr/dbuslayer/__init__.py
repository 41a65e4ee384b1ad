"""
D-Bus layer for bluemgr.

Provides the adapter/device management classes.  The BlueZ service wrapper is
loaded lazily so that importing this package does not require dbus-python.
"""

from .device import DeviceRecord, DiscoveryEvent, classify
from .adapter import Adapter, AdapterState
from .manager import BluetoothManager

__all__ = [
    "Adapter",
    "AdapterState",
    "BluetoothManager",
    "BluezService",
    "DeviceRecord",
    "DiscoveryEvent",
    "classify",
]


# Lazy-load the D-Bus backed service to keep dbus-python optional at import time
def __getattr__(name):
    if name == "BluezService":
        from .service import BluezService
        return BluezService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
