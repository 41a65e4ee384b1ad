"""
bluemgr - Bluetooth adapter and device manager for BlueZ hosts
"""

__version__ = "0.3.0"

from bluemgr.core.errors import BluemgrError  # noqa: E402
from bluemgr.dbuslayer import (  # noqa: E402
    Adapter,
    BluetoothManager,
    DeviceRecord,
    classify,
)

__all__ = [
    "Adapter",
    "BluemgrError",
    "BluetoothManager",
    "DeviceRecord",
    "classify",
]
