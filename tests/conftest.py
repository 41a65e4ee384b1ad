"""Pytest configuration and fixtures."""

import threading

import pytest

from bluemgr.core.errors import (
    AdapterNotFound,
    DeviceNotFound,
    OperationFailed,
    SystemServiceError,
)
from bluemgr.bt_ref.constants import RESULT_ERR_ACTION_IN_PROGRESS
from bluemgr.dbuslayer.device import DiscoveryEvent

ADDR_A = "AA:BB:CC:DD:EE:01"
ADDR_B = "AA:BB:CC:DD:EE:02"
ADDR_C = "AA:BB:CC:DD:EE:03"


class FakeWatch:
    def __init__(self, service, adapter):
        self.service = service
        self.adapter = adapter
        self.removed = False

    def remove(self):
        self.removed = True


class FakeBluezService:
    """In-memory stand-in for :class:`bluemgr.dbuslayer.service.BluezService`.

    ``calls`` records every method invoked as ``(method, args...)``.  Failures
    are injected with ``broken_adapters`` (construction fails),
    ``broken_devices`` (property reads fail) and ``reject`` (method name ->
    exception raised on every matching call).
    """

    def __init__(self, adapters=("hci0",)):
        self._lock = threading.Lock()
        self.calls = []
        self.adapters = {}
        self.devices = {}
        self.broken_adapters = set()
        self.broken_devices = set()
        self.reject = {}
        self.watches = []
        self.closed = False
        for index, name in enumerate(adapters):
            self.add_adapter(name, f"00:11:22:33:44:{index:02X}")

    # -- fixtures helpers ----------------------------------------------
    def add_adapter(self, name, address="00:11:22:33:44:FF"):
        self.adapters[name] = {
            "Address": address,
            "Alias": f"host-{name}",
            "Powered": True,
            "Discoverable": False,
            "Pairable": True,
            "Discovering": False,
        }
        self.devices.setdefault(name, {})

    def remove_adapter(self, name):
        self.adapters.pop(name, None)
        self.devices.pop(name, None)

    def add_device(self, adapter, address, **props):
        entry = {"Address": address}
        entry.update(props)
        self.devices[adapter][address] = entry

    def emit(self, event):
        for watch in list(self.watches):
            if not watch.removed:
                watch.callback(event)

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)
        rejection = self.reject.get(call[0])
        if rejection is not None:
            raise rejection

    def _adapter(self, adapter):
        if adapter not in self.adapters:
            raise AdapterNotFound(adapter)
        return self.adapters[adapter]

    def _device(self, adapter, address):
        devices = self.devices.get(adapter, {})
        if address not in devices:
            raise DeviceNotFound(address)
        return devices[address]

    # -- service contract ----------------------------------------------
    def adapter_names(self):
        self._record("adapter_names")
        return list(self.adapters)

    def get_adapter_properties(self, adapter):
        self._record("get_adapter_properties", adapter)
        if adapter in self.broken_adapters:
            raise SystemServiceError(f"Read adapter {adapter}: broken")
        return dict(self._adapter(adapter))

    def get_adapter_property(self, adapter, name):
        self._record("get_adapter_property", adapter, name)
        return self._adapter(adapter)[name]

    def set_adapter_property(self, adapter, name, value):
        self._record("set_adapter_property", adapter, name, value)
        self._adapter(adapter)[name] = value

    def start_discovery(self, adapter):
        self._record("start_discovery", adapter)
        self._adapter(adapter)["Discovering"] = True

    def stop_discovery(self, adapter):
        self._record("stop_discovery", adapter)
        self._adapter(adapter)["Discovering"] = False

    def watch_discovery(self, adapter, callback):
        self._record("watch_discovery", adapter)
        watch = FakeWatch(self, adapter)
        watch.callback = callback
        self.watches.append(watch)
        return watch

    def device_addresses(self, adapter):
        self._record("device_addresses", adapter)
        self._adapter(adapter)
        return list(self.devices[adapter])

    def get_device_properties(self, adapter, address):
        self._record("get_device_properties", adapter, address)
        if address in self.broken_devices:
            raise SystemServiceError(f"Read device {address}: broken")
        return dict(self._device(adapter, address))

    def set_device_property(self, adapter, address, name, value):
        self._record("set_device_property", adapter, address, name, value)
        self._device(adapter, address)[name] = value

    def device_action(self, adapter, address, method):
        self._record("device_action", adapter, address, method)
        device = self._device(adapter, address)
        if method == "Connect":
            device["Connected"] = True
        elif method == "Disconnect":
            device["Connected"] = False
        elif method == "Pair":
            device["Paired"] = True

    def remove_device(self, adapter, address):
        self._record("remove_device", adapter, address)
        self._device(adapter, address)
        del self.devices[adapter][address]

    def close(self):
        self.closed = True

    # -- assertions ----------------------------------------------------
    def called(self, method):
        return [call for call in self.calls if call[0] == method]


def in_progress():
    return OperationFailed("Start discovery", "Operation already in progress", RESULT_ERR_ACTION_IN_PROGRESS)


@pytest.fixture
def fake_service():
    service = FakeBluezService()
    service.add_device(
        "hci0",
        ADDR_A,
        Name="Headphones",
        Connected=True,
        Paired=True,
        Trusted=True,
        RSSI=-48,
        UUIDs=["0000110b-0000-1000-8000-00805f9b34fb", "0000110e-0000-1000-8000-00805f9b34fb"],
    )
    service.add_device("hci0", ADDR_B, Alias="AA-BB-CC-DD-EE-02")
    return service


@pytest.fixture
def discovery_event():
    return DiscoveryEvent("added", ADDR_C, {"Address": ADDR_C, "RSSI": -70})
