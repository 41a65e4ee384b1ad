"""
Adapter handle: one Bluetooth controller exposed by the system service.

Every operation is a coroutine.  Calls into the (blocking) system service run
in worker threads via :func:`asyncio.to_thread`, so a slow or hung BlueZ call
only stalls the coroutine awaiting it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from bluemgr.bt_ref.utils import Address, parse_address
from bluemgr.core.errors import BluemgrError, SystemServiceError, is_in_progress
from bluemgr.core.log import get_logger
from bluemgr.dbuslayer.device import DeviceRecord, DiscoveryEvent

__all__ = [
    "Adapter",
    "AdapterState",
]

logger = get_logger(__name__)

AddressLike = Union[str, Address]


@dataclass(frozen=True)
class AdapterState:
    """Point-in-time view of an adapter's properties."""

    name: str
    address: Optional[str]
    alias: Optional[str]
    powered: bool
    discoverable: bool
    pairable: bool
    discovering: bool


class Adapter:
    """Async handle for one controller (``hci0``, ``hci1``...).

    Live state is never cached; each query goes back to the system service.
    Use :meth:`create` rather than the constructor so the adapter's existence
    is checked before the handle is handed out.
    """

    def __init__(self, service, name: str, address: Optional[str] = None, alias: Optional[str] = None):
        self._service = service
        self.name = name
        self.address = address
        self.alias = alias
        self._discovery_task: Optional[asyncio.Task] = None
        self._discovery_watch = None
        self._discovery_lock = asyncio.Lock()

    @classmethod
    async def create(cls, service, name: str) -> "Adapter":
        """Wrap adapter *name*, reading its address and alias.

        Raises
        ------
        SystemServiceError
            If the adapter cannot be read (vanished, or the service is down).
        """
        props = await asyncio.to_thread(service.get_adapter_properties, name)
        return cls(service, name, props.get("Address"), props.get("Alias"))

    def __repr__(self) -> str:
        return f"<Adapter {self.name} {self.address or '?'}>"

    # ------------------------------------------------------------------
    # Adapter state
    # ------------------------------------------------------------------
    async def _get_flag(self, prop: str) -> bool:
        return bool(await asyncio.to_thread(self._service.get_adapter_property, self.name, prop))

    async def _set_flag(self, prop: str, value: bool) -> None:
        logger.info(f"Setting adapter {self.name} {prop.lower()}: {value}")
        await asyncio.to_thread(self._service.set_adapter_property, self.name, prop, bool(value))

    async def is_powered(self) -> bool:
        return await self._get_flag("Powered")

    async def is_discoverable(self) -> bool:
        return await self._get_flag("Discoverable")

    async def is_pairable(self) -> bool:
        return await self._get_flag("Pairable")

    async def is_discovering(self) -> bool:
        return await self._get_flag("Discovering")

    async def set_powered(self, powered: bool) -> None:
        await self._set_flag("Powered", powered)

    async def set_discoverable(self, discoverable: bool) -> None:
        await self._set_flag("Discoverable", discoverable)

    async def set_pairable(self, pairable: bool) -> None:
        await self._set_flag("Pairable", pairable)

    async def get_state(self) -> AdapterState:
        """Read all adapter flags in a single round trip."""
        props = await asyncio.to_thread(self._service.get_adapter_properties, self.name)
        return AdapterState(
            name=self.name,
            address=props.get("Address", self.address),
            alias=props.get("Alias", self.alias),
            powered=bool(props.get("Powered", False)),
            discoverable=bool(props.get("Discoverable", False)),
            pairable=bool(props.get("Pairable", False)),
            discovering=bool(props.get("Discovering", False)),
        )

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------
    async def start_discovery(self) -> None:
        """Ask the system service to scan and keep draining discovery events.

        Returns as soon as scanning has been requested.  Devices found by the
        scan show up in later :meth:`get_devices` calls; the background task
        only consumes the event stream.
        """
        logger.info(f"Starting device discovery on {self.name}")
        # Held across the awaits so overlapping calls share one watch and one task
        async with self._discovery_lock:
            try:
                await asyncio.to_thread(self._service.start_discovery, self.name)
            except SystemServiceError as e:
                if not is_in_progress(e):
                    raise
                logger.debug(f"Discovery already running on {self.name}")

            if self._discovery_task is not None and not self._discovery_task.done():
                return

            stale_watch, self._discovery_watch = self._discovery_watch, None
            if stale_watch is not None:
                stale_watch.remove()

            loop = asyncio.get_running_loop()
            queue: asyncio.Queue = asyncio.Queue()

            def _forward(event: DiscoveryEvent) -> None:
                # Called from the service's signal thread
                try:
                    loop.call_soon_threadsafe(queue.put_nowait, event)
                except RuntimeError:
                    logger.debug(f"Event loop closed; dropped {event.kind} {event.address}")

            self._discovery_watch = await asyncio.to_thread(self._service.watch_discovery, self.name, _forward)
            self._discovery_task = asyncio.create_task(
                self._drain_discovery_events(queue), name=f"discovery-{self.name}"
            )

    async def _drain_discovery_events(self, queue: asyncio.Queue) -> None:
        while True:
            event = await queue.get()
            logger.debug(f"Discovery event on {self.name}: {event.kind} {event.address}")

    async def stop_discovery(self) -> None:
        """Best-effort request to stop scanning; never raises on rejection.

        BlueZ also ends a scan by itself, so this is only a hint.
        """
        logger.info(f"Stopping device discovery on {self.name}")
        try:
            await asyncio.to_thread(self._service.stop_discovery, self.name)
        except BluemgrError as e:
            logger.debug(f"StopDiscovery on {self.name} ignored: {e}")

    @property
    def discovery_active(self) -> bool:
        """True while the background drain task is alive."""
        return self._discovery_task is not None and not self._discovery_task.done()

    async def close(self) -> None:
        """Cancel the discovery drain task and detach its signal watch."""
        async with self._discovery_lock:
            task, self._discovery_task = self._discovery_task, None
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            watch, self._discovery_watch = self._discovery_watch, None
            if watch is not None:
                watch.remove()

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------
    async def _device_record(self, address: str) -> Optional[DeviceRecord]:
        try:
            props = await asyncio.to_thread(self._service.get_device_properties, self.name, address)
        except BluemgrError as e:
            logger.warning(f"Failed to get device {address}: {e}")
            return None
        record = DeviceRecord.from_properties(address, props)
        logger.debug(f"Added device: {record.display_name} ({address})")
        return record

    async def get_devices(self) -> List[DeviceRecord]:
        """Return a snapshot of every device the system service knows on this adapter.

        Properties for each address are fetched concurrently; an address whose
        properties cannot be read is logged and left out.
        """
        logger.debug(f"Getting known devices on {self.name}")
        addresses = await asyncio.to_thread(self._service.device_addresses, self.name)
        logger.debug(f"Found {len(addresses)} device addresses")

        records = await asyncio.gather(*(self._device_record(address) for address in addresses))
        devices = [record for record in records if record is not None]
        logger.debug(f"Found {len(devices)} devices total")
        return devices

    async def get_device(self, address: AddressLike) -> DeviceRecord:
        """Return the snapshot for a single device; raises ``DeviceNotFound`` if unknown."""
        addr = str(parse_address(address))
        props = await asyncio.to_thread(self._service.get_device_properties, self.name, addr)
        return DeviceRecord.from_properties(addr, props)

    async def _device_call(self, verb: str, func, address: AddressLike, *args: Any) -> None:
        addr = str(parse_address(address))
        logger.info(f"{verb} device: {addr}")
        await asyncio.to_thread(func, self.name, addr, *args)

    async def connect_device(self, address: AddressLike) -> None:
        await self._device_call("Connecting to", self._service.device_action, address, "Connect")

    async def disconnect_device(self, address: AddressLike) -> None:
        await self._device_call("Disconnecting from", self._service.device_action, address, "Disconnect")

    async def pair_device(self, address: AddressLike) -> None:
        await self._device_call("Pairing with", self._service.device_action, address, "Pair")

    async def remove_device(self, address: AddressLike) -> None:
        await self._device_call("Removing", self._service.remove_device, address)

    async def trust_device(self, address: AddressLike, trusted: bool = True) -> None:
        verb = "Trusting" if trusted else "Untrusting"
        await self._device_call(verb, self._service.set_device_property, address, "Trusted", bool(trusted))
