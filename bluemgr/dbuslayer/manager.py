"""Bluetooth manager: owns every adapter handle and routes commands to the default one.

The adapter map and the default-adapter name are shared between concurrently
running tasks and guarded by one reader/writer lock.  The lock only ever wraps
map access; no system-service call is made while it is held.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Union

import aiorwlock

from bluemgr.bt_ref.utils import Address, parse_address
from bluemgr.core.errors import AdapterNotFound, BluemgrError, NoDefaultAdapter
from bluemgr.core.log import get_logger
from bluemgr.dbuslayer.adapter import Adapter, AdapterState
from bluemgr.dbuslayer.device import DeviceRecord

__all__ = [
    "BluetoothManager",
]

logger = get_logger(__name__)

AddressLike = Union[str, Address]


class BluetoothManager:
    """Entry point for adapter discovery and default-adapter device operations.

    Parameters
    ----------
    service
        System service implementation.  Defaults to a
        :class:`bluemgr.dbuslayer.service.BluezService` on the system bus.
    preferred_adapter : str, optional
        Adapter to elect as default when present; otherwise the first adapter
        found is used.
    """

    def __init__(self, service=None, preferred_adapter: Optional[str] = None):
        if service is None:
            from bluemgr.dbuslayer.service import BluezService

            service = BluezService()
        self._service = service
        self.preferred_adapter = preferred_adapter
        self._lock = aiorwlock.RWLock()
        self._adapters: Dict[str, Adapter] = {}
        self._default_adapter_name: Optional[str] = None

    @classmethod
    async def create(cls, service=None, preferred_adapter: Optional[str] = None) -> "BluetoothManager":
        """Construct a manager and run the first adapter discovery pass."""
        logger.info("Initializing Bluetooth manager")
        if service is None:
            from bluemgr.dbuslayer.service import BluezService

            service = await asyncio.to_thread(BluezService)
        manager = cls(service, preferred_adapter)
        await manager.discover_adapters()
        return manager

    @property
    def service(self):
        return self._service

    # ------------------------------------------------------------------
    # Adapter discovery
    # ------------------------------------------------------------------
    async def discover_adapters(self) -> List[str]:
        """Rebuild the adapter map from the system service's current adapter list.

        Adapters that cannot be wrapped are skipped with a warning.  The new
        map replaces the old one in a single step under the write lock, so
        readers see either the previous map or the complete new one.

        Returns
        -------
        list of str
            Names of the adapters now known.

        Raises
        ------
        SystemServiceError
            If the adapter list itself cannot be read.
        """
        logger.debug("Discovering Bluetooth adapters")
        adapter_names = await asyncio.to_thread(self._service.adapter_names)

        fresh: Dict[str, Adapter] = {}
        for name in adapter_names:
            try:
                adapter = await Adapter.create(self._service, name)
            except BluemgrError as e:
                logger.warning(f"Failed to initialize adapter {name}: {e}")
                continue
            logger.info(f"Found adapter: {name}")
            fresh[name] = adapter

        async with self._lock.writer_lock:
            stale = list(self._adapters.values())
            self._adapters = fresh
            previous = self._default_adapter_name
            self._default_adapter_name = self._elect_default(fresh, previous)
            elected = self._default_adapter_name

        if elected != previous:
            if elected is None:
                logger.warning("No Bluetooth adapter available; default cleared")
            else:
                logger.info(f"Set default adapter: {elected}")

        for adapter in stale:
            await adapter.close()

        logger.info(f"Discovered {len(fresh)} adapters")
        return list(fresh)

    def _elect_default(self, adapters: Dict[str, Adapter], current: Optional[str]) -> Optional[str]:
        # Sticky: an elected default keeps its place as long as it survives
        if current in adapters:
            return current
        if self.preferred_adapter in adapters:
            return self.preferred_adapter
        return next(iter(adapters), None)

    # ------------------------------------------------------------------
    # Adapter lookup
    # ------------------------------------------------------------------
    @property
    def default_adapter_name(self) -> Optional[str]:
        return self._default_adapter_name

    async def get_default_adapter(self) -> Optional[Adapter]:
        """Return the default adapter, or ``None`` when Bluetooth is unavailable."""
        async with self._lock.reader_lock:
            name = self._default_adapter_name
            if name is None:
                return None
            return self._adapters.get(name)

    async def get_adapter(self, name: str) -> Optional[Adapter]:
        async with self._lock.reader_lock:
            return self._adapters.get(name)

    async def list_adapters(self) -> List[str]:
        async with self._lock.reader_lock:
            return list(self._adapters)

    async def set_default_adapter(self, name: str) -> Adapter:
        """Make *name* the default adapter; raises ``AdapterNotFound`` if it is not known."""
        async with self._lock.writer_lock:
            adapter = self._adapters.get(name)
            if adapter is None:
                raise AdapterNotFound(name)
            self._default_adapter_name = name
        logger.info(f"Set default adapter: {name}")
        return adapter

    async def _require_default_adapter(self) -> Adapter:
        adapter = await self.get_default_adapter()
        if adapter is None:
            raise NoDefaultAdapter()
        return adapter

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------
    async def start_discovery(self) -> bool:
        """Start scanning on the default adapter; returns False if there is none."""
        adapter = await self.get_default_adapter()
        if adapter is None:
            logger.warning("No default adapter available for discovery")
            return False
        await adapter.start_discovery()
        return True

    async def stop_discovery(self) -> bool:
        adapter = await self.get_default_adapter()
        if adapter is None:
            logger.warning("No default adapter available to stop discovery")
            return False
        await adapter.stop_discovery()
        return True

    # ------------------------------------------------------------------
    # Default-adapter operations
    # ------------------------------------------------------------------
    async def get_adapter_state(self) -> AdapterState:
        adapter = await self._require_default_adapter()
        return await adapter.get_state()

    async def get_devices(self) -> List[DeviceRecord]:
        adapter = await self._require_default_adapter()
        devices = await adapter.get_devices()
        logger.debug(f"Found {len(devices)} devices")
        return devices

    async def get_device(self, address: AddressLike) -> DeviceRecord:
        addr = parse_address(address)
        adapter = await self._require_default_adapter()
        return await adapter.get_device(addr)

    async def connect_device(self, address: AddressLike) -> None:
        addr = parse_address(address)
        adapter = await self._require_default_adapter()
        await adapter.connect_device(addr)

    async def disconnect_device(self, address: AddressLike) -> None:
        addr = parse_address(address)
        adapter = await self._require_default_adapter()
        await adapter.disconnect_device(addr)

    async def pair_device(self, address: AddressLike) -> None:
        addr = parse_address(address)
        adapter = await self._require_default_adapter()
        await adapter.pair_device(addr)

    async def remove_device(self, address: AddressLike) -> None:
        addr = parse_address(address)
        adapter = await self._require_default_adapter()
        await adapter.remove_device(addr)

    async def trust_device(self, address: AddressLike, trusted: bool = True) -> None:
        addr = parse_address(address)
        adapter = await self._require_default_adapter()
        await adapter.trust_device(addr, trusted)

    async def set_adapter_powered(self, powered: bool) -> None:
        adapter = await self._require_default_adapter()
        await adapter.set_powered(powered)

    async def set_adapter_discoverable(self, discoverable: bool) -> None:
        adapter = await self._require_default_adapter()
        await adapter.set_discoverable(discoverable)

    async def set_adapter_pairable(self, pairable: bool) -> None:
        adapter = await self._require_default_adapter()
        await adapter.set_pairable(pairable)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    async def close(self) -> None:
        """Close every adapter handle and release the system service."""
        async with self._lock.writer_lock:
            adapters = list(self._adapters.values())
            self._adapters = {}
            self._default_adapter_name = None
        for adapter in adapters:
            await adapter.close()
        close_service = getattr(self._service, "close", None)
        if close_service is not None:
            await asyncio.to_thread(close_service)
