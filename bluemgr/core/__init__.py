"""
Core package initialisation for bluemgr.

Kept lightweight: only the error taxonomy is re-exported here so that
``from bluemgr.core import DeviceNotFound`` works without pulling in D-Bus.
"""

from bluemgr.core.errors import (
    AdapterNotFound,
    BluemgrError,
    DeviceNotFound,
    InvalidAddress,
    NoDefaultAdapter,
    OperationFailed,
    SystemServiceError,
    SystemServiceUnavailable,
)

__all__ = [
    "AdapterNotFound",
    "BluemgrError",
    "DeviceNotFound",
    "InvalidAddress",
    "NoDefaultAdapter",
    "OperationFailed",
    "SystemServiceError",
    "SystemServiceUnavailable",
]
