"""
Command-line interface for bluemgr.
"""

import argparse
import asyncio
import json
import logging
import sys

from . import __version__
from bluemgr.core import config
from bluemgr.core.errors import BluemgrError
from bluemgr.core.log import get_logger, print_and_log, setup_logging
from bluemgr.dbuslayer.manager import BluetoothManager

logger = get_logger(__name__)

_SWITCHES = ("power", "discoverable", "pairable")
_DEVICE_COMMANDS = ("connect", "disconnect", "pair", "remove", "trust", "untrust", "info")


def parse_args(args=None):
    parser = argparse.ArgumentParser(
        prog="bluemgr",
        description="bluemgr - manage Bluetooth adapters and devices through BlueZ",
    )
    parser.add_argument("--version", action="version", version=f"bluemgr {__version__}")
    parser.add_argument("--adapter", help="Adapter to use instead of the default (e.g. hci1)")
    parser.add_argument("--config", help="Settings file (default: $XDG_CONFIG_HOME/bluemgr/config.yaml)")
    parser.add_argument("--debug", "-d", action="store_true", help="Log debug output to the general log")

    subparsers = parser.add_subparsers(dest="mode", help="Operation mode")
    subparsers.required = True

    subparsers.add_parser("adapters", help="List adapters and mark the default")
    subparsers.add_parser("status", help="Show the default adapter's state")

    devices_parser = subparsers.add_parser("devices", help="List known devices")
    devices_parser.add_argument("--json", action="store_true", help="Print devices as JSON")

    scan_parser = subparsers.add_parser("scan", help="Discover nearby devices")
    scan_parser.add_argument("--duration", type=float, help="Scan duration (s)")
    scan_parser.add_argument("--interval", type=float, help="Refresh interval while scanning (s)")

    for command in _DEVICE_COMMANDS:
        device_parser = subparsers.add_parser(command, help=f"{command.capitalize()} a device")
        device_parser.add_argument("address", help="Target MAC address")

    for switch in _SWITCHES:
        switch_parser = subparsers.add_parser(switch, help=f"Turn adapter {switch} on or off")
        switch_parser.add_argument("state", choices=["on", "off"])

    return parser.parse_args(args)


def _format_device(device) -> str:
    flags = []
    if device.paired:
        flags.append("paired")
    if device.trusted:
        flags.append("trusted")
    if device.connected:
        flags.append("connected")
    rssi = f"{device.signal_strength} dBm" if device.signal_strength is not None else "-"
    return f"{device.address}  {device.display_name:<24}  {device.category:<14}  {rssi:>8}  {','.join(flags)}"


async def _print_adapters(manager):
    default = manager.default_adapter_name
    names = await manager.list_adapters()
    if not names:
        print("No Bluetooth adapters found")
        return
    for name in names:
        adapter = await manager.get_adapter(name)
        marker = "*" if name == default else " "
        print(f"{marker} {name}  {adapter.address or '?'}  {adapter.alias or ''}".rstrip())


async def _print_status(manager):
    state = await manager.get_adapter_state()
    yes_no = lambda flag: "yes" if flag else "no"  # noqa: E731
    print(f"Adapter:      {state.name} ({state.address or '?'})")
    print(f"Alias:        {state.alias or '-'}")
    print(f"Powered:      {yes_no(state.powered)}")
    print(f"Discoverable: {yes_no(state.discoverable)}")
    print(f"Pairable:     {yes_no(state.pairable)}")
    print(f"Discovering:  {yes_no(state.discovering)}")


async def _print_devices(manager, as_json=False):
    devices = await manager.get_devices()
    if as_json:
        print(json.dumps([device.to_dict() for device in devices], indent=2))
        return
    if not devices:
        print("No devices known")
        return
    for device in devices:
        print(_format_device(device))


async def _scan(manager, duration, interval):
    """Scan for *duration* seconds, printing each device the first time it shows up or changes."""
    loop = asyncio.get_running_loop()
    await manager.start_discovery()
    print_and_log(f"[*] Scanning for {duration:g}s")
    seen = {}
    deadline = loop.time() + duration
    try:
        while True:
            for device in await manager.get_devices():
                if seen.get(device.address) != device:
                    marker = "+" if device.address not in seen else "~"
                    print(f"[{marker}] {_format_device(device)}")
                    seen[device.address] = device
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))
    finally:
        await manager.stop_discovery()
    print_and_log(f"[*] Scan finished: {len(seen)} devices")


async def _run(args, settings, service=None):
    manager = await BluetoothManager.create(service, preferred_adapter=settings.preferred_adapter)
    try:
        if args.adapter:
            await manager.set_default_adapter(args.adapter)

        if args.mode == "adapters":
            await _print_adapters(manager)
        elif args.mode == "status":
            await _print_status(manager)
        elif args.mode == "devices":
            await _print_devices(manager, as_json=args.json)
        elif args.mode == "scan":
            duration = args.duration if args.duration is not None else settings.scan_duration
            interval = args.interval if args.interval is not None else settings.refresh_interval
            await _scan(manager, max(duration, 0.0), max(interval, 0.1))
        elif args.mode in _DEVICE_COMMANDS:
            if args.mode == "info":
                device = await manager.get_device(args.address)
                print(json.dumps(device.to_dict(), indent=2))
            else:
                action = {
                    "connect": manager.connect_device,
                    "disconnect": manager.disconnect_device,
                    "pair": manager.pair_device,
                    "remove": manager.remove_device,
                    "trust": lambda address: manager.trust_device(address, True),
                    "untrust": lambda address: manager.trust_device(address, False),
                }[args.mode]
                await action(args.address)
                print_and_log(f"[+] {args.mode.capitalize()} {args.address}: done")
        elif args.mode in _SWITCHES:
            setter = {
                "power": manager.set_adapter_powered,
                "discoverable": manager.set_adapter_discoverable,
                "pairable": manager.set_adapter_pairable,
            }[args.mode]
            await setter(args.state == "on")
            print_and_log(f"[+] Adapter {args.mode} {args.state}")
    finally:
        await manager.close()
    return 0


def main(args=None, service=None):
    """Main entry point for bluemgr.

    *service* replaces the BlueZ connection; used by tests.
    """
    args = parse_args(args)
    settings = config.load_settings(args.config)
    setup_logging(logging.DEBUG if args.debug else settings.numeric_log_level)
    for problem in settings.warnings:
        logger.warning(f"Settings: {problem}")

    try:
        return asyncio.run(_run(args, settings, service))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except BluemgrError as e:
        logger.debug(f"{args.mode} failed: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
