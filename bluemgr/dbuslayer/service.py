"""BlueZ system service wrapper.

This is the only module that talks to D-Bus.  Every method is a plain blocking
call built on dbus-python; the async layers above run them in worker threads.
D-Bus failures are translated with :func:`bluemgr.core.errors.map_dbus_error`
so callers only ever see :class:`bluemgr.core.errors.BluemgrError` subclasses.

Signal delivery (discovery events) needs a running GLib main loop.  The service
owns one, started lazily in a daemon thread the first time a watch is
registered.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

import dbus
import dbus.mainloop.glib
from gi.repository import GLib

from bluemgr.bt_ref.constants import (
    ADAPTER_INTERFACE,
    BLUEZ_NAMESPACE,
    BLUEZ_SERVICE_NAME,
    DBUS_OM_IFACE,
    DBUS_PROPERTIES,
    DEVICE_INTERFACE,
)
from bluemgr.bt_ref.utils import device_address_to_path, device_path_to_address
from bluemgr.core.errors import map_dbus_error
from bluemgr.core.log import get_logger
from bluemgr.dbuslayer.device import EVENT__ADDED, EVENT__CHANGED, DiscoveryEvent

__all__ = [
    "BluezService",
    "dbus_to_python",
]

logger = get_logger(__name__)

# Seconds to wait for BlueZ on calls that involve the remote peer
PEER_CALL_TIMEOUT = 60

DiscoveryCallback = Callable[[DiscoveryEvent], None]


def dbus_to_python(data):
    if isinstance(data, (dbus.String, dbus.ObjectPath)):
        data = str(data)
    elif isinstance(data, dbus.Boolean):
        data = bool(data)
    elif isinstance(data, (dbus.Int64, dbus.Int32, dbus.Int16, dbus.UInt32, dbus.UInt16, dbus.Byte)):
        data = int(data)
    elif isinstance(data, dbus.Double):
        data = float(data)
    elif isinstance(data, dbus.Array):
        data = [dbus_to_python(value) for value in data]
    elif isinstance(data, dbus.Dictionary):
        new_data = dict()
        for key in data.keys():
            new_data[dbus_to_python(key)] = dbus_to_python(data[key])
        data = new_data
    return data


class _DiscoveryWatch:
    """Handle for the signal matches registered by :meth:`BluezService.watch_discovery`."""

    def __init__(self, matches):
        self._matches = list(matches)

    def remove(self) -> None:
        while self._matches:
            match = self._matches.pop()
            try:
                match.remove()
            except dbus.exceptions.DBusException as e:
                logger.debug(f"Signal match removal failed: {e}")


class BluezService:
    """Blocking access to adapters and devices exposed by ``org.bluez``."""

    def __init__(self, bus: Optional[dbus.Bus] = None):
        try:
            dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
            # Make sure threading helpers are ready (no-op if compiled without thread support)
            if hasattr(dbus.mainloop.glib, "threads_init"):
                dbus.mainloop.glib.threads_init()
            self._bus = bus if bus is not None else dbus.SystemBus()
            self._object_manager = dbus.Interface(
                self._bus.get_object(BLUEZ_SERVICE_NAME, "/"), DBUS_OM_IFACE
            )
        except dbus.exceptions.DBusException as e:
            logger.error(f"Failed to initialize D-Bus: {e}")
            raise map_dbus_error(e, "Connect to BlueZ")

        self._mainloop: Optional[GLib.MainLoop] = None
        self._mainloop_thread: Optional[threading.Thread] = None
        self._mainloop_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _adapter_path(self, adapter: str) -> str:
        return f"{BLUEZ_NAMESPACE}{adapter}"

    def _object(self, path: str):
        return self._bus.get_object(BLUEZ_SERVICE_NAME, path)

    def _managed_objects(self) -> Dict[str, Dict[str, Any]]:
        try:
            return self._object_manager.GetManagedObjects()
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, "Enumerate BlueZ objects")

    def _ensure_mainloop(self) -> None:
        with self._mainloop_lock:
            if self._mainloop_thread is not None and self._mainloop_thread.is_alive():
                return
            self._mainloop = GLib.MainLoop()
            self._mainloop_thread = threading.Thread(
                target=self._mainloop.run, name="bluemgr-glib", daemon=True
            )
            self._mainloop_thread.start()
            logger.debug("GLib main loop started for signal delivery")

    # ------------------------------------------------------------------
    # Adapters
    # ------------------------------------------------------------------
    def adapter_names(self) -> List[str]:
        """Return the names (``hci0``, ``hci1``...) of every adapter BlueZ exposes, sorted."""
        names = []
        for path, interfaces in self._managed_objects().items():
            if ADAPTER_INTERFACE in interfaces:
                names.append(str(path).rsplit("/", 1)[-1])
        return sorted(names)

    def get_adapter_properties(self, adapter: str) -> Dict[str, Any]:
        try:
            props = dbus.Interface(self._object(self._adapter_path(adapter)), DBUS_PROPERTIES)
            return dbus_to_python(props.GetAll(ADAPTER_INTERFACE))
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Read adapter {adapter}", adapter=adapter)

    def get_adapter_property(self, adapter: str, name: str) -> Any:
        try:
            props = dbus.Interface(self._object(self._adapter_path(adapter)), DBUS_PROPERTIES)
            return dbus_to_python(props.Get(ADAPTER_INTERFACE, name))
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Read {name} on {adapter}", adapter=adapter)

    def set_adapter_property(self, adapter: str, name: str, value: bool) -> None:
        try:
            props = dbus.Interface(self._object(self._adapter_path(adapter)), DBUS_PROPERTIES)
            props.Set(ADAPTER_INTERFACE, name, dbus.Boolean(value))
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Set {name} on {adapter}", adapter=adapter)

    def start_discovery(self, adapter: str) -> None:
        try:
            iface = dbus.Interface(self._object(self._adapter_path(adapter)), ADAPTER_INTERFACE)
            iface.StartDiscovery()
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Start discovery on {adapter}", adapter=adapter)

    def stop_discovery(self, adapter: str) -> None:
        try:
            iface = dbus.Interface(self._object(self._adapter_path(adapter)), ADAPTER_INTERFACE)
            iface.StopDiscovery()
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Stop discovery on {adapter}", adapter=adapter)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------
    def device_addresses(self, adapter: str) -> List[str]:
        """Return the canonical address of every device object under *adapter*."""
        addresses = []
        for path, interfaces in self._managed_objects().items():
            if DEVICE_INTERFACE not in interfaces:
                continue
            address = device_path_to_address(str(path), adapter)
            if address is not None:
                addresses.append(str(address))
        return addresses

    def get_device_properties(self, adapter: str, address: str) -> Dict[str, Any]:
        path = device_address_to_path(address, adapter)
        try:
            props = dbus.Interface(self._object(path), DBUS_PROPERTIES)
            return dbus_to_python(props.GetAll(DEVICE_INTERFACE))
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Read device {address}", address=address)

    def set_device_property(self, adapter: str, address: str, name: str, value: bool) -> None:
        path = device_address_to_path(address, adapter)
        try:
            props = dbus.Interface(self._object(path), DBUS_PROPERTIES)
            props.Set(DEVICE_INTERFACE, name, dbus.Boolean(value))
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Set {name} on {address}", address=address)

    def device_action(self, adapter: str, address: str, method: str) -> None:
        """Invoke ``Connect``, ``Disconnect`` or ``Pair`` on a device object."""
        path = device_address_to_path(address, adapter)
        try:
            iface = dbus.Interface(self._object(path), DEVICE_INTERFACE)
            getattr(iface, method)(timeout=PEER_CALL_TIMEOUT)
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"{method} {address}", address=address)

    def remove_device(self, adapter: str, address: str) -> None:
        path = device_address_to_path(address, adapter)
        try:
            iface = dbus.Interface(self._object(self._adapter_path(adapter)), ADAPTER_INTERFACE)
            iface.RemoveDevice(dbus.ObjectPath(path))
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e, f"Remove {address}", address=address)

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------
    def watch_discovery(self, adapter: str, callback: DiscoveryCallback) -> _DiscoveryWatch:
        """Call *callback* with a :class:`DiscoveryEvent` for devices appearing or changing under *adapter*.

        The callback runs on the GLib thread; it must hand work off rather
        than block.  Returns a handle whose ``remove()`` detaches the watch.
        """

        def _interfaces_added(path, interfaces):
            address = device_path_to_address(str(path), adapter)
            if address is None or DEVICE_INTERFACE not in interfaces:
                return
            callback(DiscoveryEvent(EVENT__ADDED, str(address), dbus_to_python(interfaces[DEVICE_INTERFACE])))

        def _properties_changed(interface, changed, invalidated, path=None):
            if interface != DEVICE_INTERFACE or path is None:
                return
            address = device_path_to_address(str(path), adapter)
            if address is None:
                return
            callback(DiscoveryEvent(EVENT__CHANGED, str(address), dbus_to_python(changed)))

        self._ensure_mainloop()
        watch = _DiscoveryWatch([])
        try:
            watch._matches.append(
                self._bus.add_signal_receiver(
                    _interfaces_added,
                    dbus_interface=DBUS_OM_IFACE,
                    signal_name="InterfacesAdded",
                    bus_name=BLUEZ_SERVICE_NAME,
                )
            )
            watch._matches.append(
                self._bus.add_signal_receiver(
                    _properties_changed,
                    dbus_interface=DBUS_PROPERTIES,
                    signal_name="PropertiesChanged",
                    bus_name=BLUEZ_SERVICE_NAME,
                    path_keyword="path",
                )
            )
        except dbus.exceptions.DBusException as e:
            # Drop the half-registered watch
            watch.remove()
            raise map_dbus_error(e, f"Watch discovery on {adapter}", adapter=adapter)
        return watch

    def close(self) -> None:
        """Stop the signal thread, if one was started."""
        with self._mainloop_lock:
            if self._mainloop is not None and self._mainloop.is_running():
                self._mainloop.quit()
            if self._mainloop_thread is not None:
                self._mainloop_thread.join(timeout=2.0)
            self._mainloop = None
            self._mainloop_thread = None
