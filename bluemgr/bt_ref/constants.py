"""
Core constants for bluemgr.

This module provides centralized constants for Bluetooth operations, organized by category.
"""

# D-Bus Core Constants
DBUS_PROPERTIES = "org.freedesktop.DBus.Properties"
DBUS_OM_IFACE = "org.freedesktop.DBus.ObjectManager"

# BlueZ Core Constants
BLUEZ_SERVICE_NAME = "org.bluez"
BLUEZ_NAMESPACE = "/org/bluez/"

# BlueZ Interface Constants
ADAPTER_INTERFACE = BLUEZ_SERVICE_NAME + ".Adapter1"
DEVICE_INTERFACE = BLUEZ_SERVICE_NAME + ".Device1"

# Result/Error Codes
RESULT_ERR = 1
RESULT_ERR_BAD_ARGS = 8
RESULT_ERR_NOT_FOUND = 9
RESULT_ERR_ACTION_IN_PROGRESS = 16
RESULT_ERR_UNKNOWN_SERVCE = 17
RESULT_ERR_UNKNOWN_OBJECT = 18
RESULT_ERR_METHOD_CALL_FAIL = 21
RESULT_ERR_NO_ADAPTER = 27

# D-Bus error names that mean the daemon itself cannot be reached
DBUS_ERRORS__SERVICE_UNAVAILABLE = (
    "org.freedesktop.DBus.Error.ServiceUnknown",
    "org.freedesktop.DBus.Error.NoServer",
    "org.freedesktop.DBus.Error.NoReply",
    "org.freedesktop.DBus.Error.Disconnected",
    "org.freedesktop.DBus.Error.FileNotFound",
    "org.freedesktop.DBus.Error.Spawn.ServiceNotFound",
)

# D-Bus error names that mean the target object does not exist
DBUS_ERRORS__UNKNOWN_OBJECT = (
    "org.freedesktop.DBus.Error.UnknownObject",
    "org.freedesktop.DBus.Error.UnknownMethod",
    "org.bluez.Error.DoesNotExist",
)

# Rejections returned while discovery is already running
DBUS_ERRORS__IN_PROGRESS = (
    "org.bluez.Error.InProgress",
)

# Device categories
DEVICE_CATEGORY__AUDIO = "Audio Device"
DEVICE_CATEGORY__INPUT = "Input Device"
DEVICE_CATEGORY__NETWORK = "Network Device"
DEVICE_CATEGORY__FILE_TRANSFER = "File Transfer"
DEVICE_CATEGORY__UNKNOWN = "Unknown Device"

# Placeholder for devices that report no name
UNKNOWN_DEVICE_NAME = "Unknown Device"

# Short service identifiers per category, checked in this order
#   1108 Headset, 110b Audio Sink, 110d A2DP
#   1124 HID
#   1115 PANU, 1116 NAP
#   1105 OBEX Object Push, 1106 OBEX File Transfer
SERVICE_ID_GROUPS = (
    (DEVICE_CATEGORY__AUDIO, ("1108", "110b", "110d")),
    (DEVICE_CATEGORY__INPUT, ("1124",)),
    (DEVICE_CATEGORY__NETWORK, ("1115", "1116")),
    (DEVICE_CATEGORY__FILE_TRANSFER, ("1105", "1106")),
)
