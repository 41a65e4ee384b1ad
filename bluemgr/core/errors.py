"""Core error classes for bluemgr."""

from __future__ import annotations

from typing import Optional

from bluemgr.bt_ref.constants import (
    DBUS_ERRORS__IN_PROGRESS,
    DBUS_ERRORS__SERVICE_UNAVAILABLE,
    DBUS_ERRORS__UNKNOWN_OBJECT,
    RESULT_ERR,
    RESULT_ERR_ACTION_IN_PROGRESS,
    RESULT_ERR_BAD_ARGS,
    RESULT_ERR_METHOD_CALL_FAIL,
    RESULT_ERR_NO_ADAPTER,
    RESULT_ERR_NOT_FOUND,
    RESULT_ERR_UNKNOWN_OBJECT,
    RESULT_ERR_UNKNOWN_SERVCE,
)


class BluemgrError(Exception):
    """Base exception for every failure raised by bluemgr.

    The `.code` attribute maps to the RESULT_* values in
    :mod:`bluemgr.bt_ref.constants` so front ends can turn a failure into an
    exit status without inspecting the class.
    """

    def __init__(self, message: str, code: int = RESULT_ERR):
        super().__init__(message)
        self.code = code


class SystemServiceError(BluemgrError):
    """Raised when a call into the system Bluetooth service fails."""


class SystemServiceUnavailable(SystemServiceError):
    """Raised when the Bluetooth daemon (or the bus itself) cannot be reached."""

    def __init__(self, reason: Optional[str] = None):
        msg = "Bluetooth service unavailable"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, RESULT_ERR_UNKNOWN_SERVCE)
        self.reason = reason


class AdapterNotFound(SystemServiceError):
    """Raised when an adapter is unknown to the system service."""

    def __init__(self, adapter_name: str):
        super().__init__(f"Adapter {adapter_name} not found", RESULT_ERR_UNKNOWN_OBJECT)
        self.adapter_name = adapter_name


class OperationFailed(SystemServiceError):
    """Raised when the system service rejects a requested action.

    ``reason`` keeps the service's own diagnostic text verbatim.
    """

    def __init__(self, operation: str, reason: Optional[str] = None, code: int = RESULT_ERR_METHOD_CALL_FAIL):
        msg = f"{operation} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, code)
        self.operation = operation
        self.reason = reason


class NoDefaultAdapter(BluemgrError):
    """Raised when no adapter has been elected as default."""

    def __init__(self):
        super().__init__("No default Bluetooth adapter available", RESULT_ERR_NO_ADAPTER)


class DeviceNotFound(BluemgrError):
    """Raised when a Bluetooth device cannot be found."""

    def __init__(self, device_address: str):
        super().__init__(f"Device {device_address} not found", RESULT_ERR_NOT_FOUND)
        self.device_address = device_address


class InvalidAddress(BluemgrError):
    """Raised when a string is not a colon-separated hardware address."""

    def __init__(self, address: str):
        super().__init__(f"Invalid Bluetooth address: {address!r}", RESULT_ERR_BAD_ARGS)
        self.address = address


def is_in_progress(exc) -> bool:
    """Return True when *exc* is BlueZ's "operation already in progress" rejection."""
    return isinstance(exc, OperationFailed) and exc.code == RESULT_ERR_ACTION_IN_PROGRESS


def map_dbus_error(
    exc,
    operation: str = "D-Bus operation",
    address: Optional[str] = None,
    adapter: Optional[str] = None,
) -> BluemgrError:
    """Return a :class:`BluemgrError` instance for the given D-Bus exception.

    Parameters
    ----------
    exc : dbus.exceptions.DBusException
        The D-Bus exception to map. Only ``get_dbus_name()`` and
        ``get_dbus_message()`` are used.
    operation : str
        Short description of the attempted call, used in the message.
    address : str, optional
        Device address the call targeted; unknown objects map to
        :class:`DeviceNotFound` when given.
    adapter : str, optional
        Adapter name the call targeted; unknown objects map to
        :class:`AdapterNotFound` when no address is given.

    Returns
    -------
    BluemgrError
        The most specific error for the D-Bus error name.
    """
    name = exc.get_dbus_name() or ""
    msg = exc.get_dbus_message() or str(exc)

    if name in DBUS_ERRORS__SERVICE_UNAVAILABLE:
        return SystemServiceUnavailable(msg)
    if name in DBUS_ERRORS__UNKNOWN_OBJECT:
        if address is not None:
            return DeviceNotFound(address)
        if adapter is not None:
            return AdapterNotFound(adapter)
        return SystemServiceError(f"{operation}: {msg}", RESULT_ERR_UNKNOWN_OBJECT)
    if name in DBUS_ERRORS__IN_PROGRESS:
        return OperationFailed(operation, msg, RESULT_ERR_ACTION_IN_PROGRESS)
    if name.startswith("org.bluez.Error.") or name == "org.freedesktop.DBus.Error.Failed":
        return OperationFailed(operation, msg)

    # Default fall-back
    return SystemServiceError(f"{operation}: {name or msg}", RESULT_ERR)


__all__ = [
    "BluemgrError",
    "SystemServiceError",
    "SystemServiceUnavailable",
    "AdapterNotFound",
    "OperationFailed",
    "NoDefaultAdapter",
    "DeviceNotFound",
    "InvalidAddress",
    "is_in_progress",
    "map_dbus_error",
]
