"""Tests for the error taxonomy and D-Bus error mapping."""

import pytest

from bluemgr.bt_ref.constants import RESULT_ERR_ACTION_IN_PROGRESS
from bluemgr.core.errors import (
    AdapterNotFound,
    BluemgrError,
    DeviceNotFound,
    InvalidAddress,
    NoDefaultAdapter,
    OperationFailed,
    SystemServiceError,
    SystemServiceUnavailable,
    is_in_progress,
    map_dbus_error,
)


class FakeDBusException(Exception):
    """Mimics the accessors of ``dbus.exceptions.DBusException``."""

    def __init__(self, name, message=""):
        super().__init__(message)
        self._name = name
        self._message = message

    def get_dbus_name(self):
        return self._name

    def get_dbus_message(self):
        return self._message


class TestMapDbusError:
    @pytest.mark.parametrize(
        "name",
        [
            "org.freedesktop.DBus.Error.ServiceUnknown",
            "org.freedesktop.DBus.Error.NoReply",
            "org.freedesktop.DBus.Error.Disconnected",
        ],
    )
    def test_unreachable_service(self, name):
        err = map_dbus_error(FakeDBusException(name, "The name org.bluez was not provided"))
        assert isinstance(err, SystemServiceUnavailable)
        assert isinstance(err, SystemServiceError)

    def test_unknown_object_with_address(self):
        err = map_dbus_error(
            FakeDBusException("org.freedesktop.DBus.Error.UnknownObject", "no such object"),
            address="AA:BB:CC:DD:EE:FF",
        )
        assert isinstance(err, DeviceNotFound)
        assert err.device_address == "AA:BB:CC:DD:EE:FF"

    def test_does_not_exist_on_remove(self):
        err = map_dbus_error(
            FakeDBusException("org.bluez.Error.DoesNotExist", "Does Not Exist"),
            address="AA:BB:CC:DD:EE:FF",
        )
        assert isinstance(err, DeviceNotFound)

    def test_unknown_object_with_adapter(self):
        err = map_dbus_error(
            FakeDBusException("org.freedesktop.DBus.Error.UnknownObject"), adapter="hci3"
        )
        assert isinstance(err, AdapterNotFound)
        assert "hci3" in str(err)

    def test_bluez_rejection_keeps_text(self):
        err = map_dbus_error(
            FakeDBusException("org.bluez.Error.AuthenticationFailed", "Authentication Failed"),
            operation="Pair AA:BB:CC:DD:EE:FF",
        )
        assert isinstance(err, OperationFailed)
        assert err.reason == "Authentication Failed"
        assert str(err) == "Pair AA:BB:CC:DD:EE:FF failed: Authentication Failed"

    def test_in_progress(self):
        err = map_dbus_error(FakeDBusException("org.bluez.Error.InProgress", "Operation already in progress"))
        assert isinstance(err, OperationFailed)
        assert err.code == RESULT_ERR_ACTION_IN_PROGRESS
        assert is_in_progress(err)

    def test_other_rejections_are_not_in_progress(self):
        err = map_dbus_error(FakeDBusException("org.bluez.Error.Failed", "br-connection-page-timeout"))
        assert not is_in_progress(err)

    def test_fallback(self):
        err = map_dbus_error(FakeDBusException("org.freedesktop.DBus.Error.InvalidArgs", "bad"))
        assert type(err) is SystemServiceError


class TestTaxonomy:
    def test_all_errors_share_base(self):
        for err in (
            NoDefaultAdapter(),
            DeviceNotFound("AA:BB:CC:DD:EE:FF"),
            InvalidAddress("x"),
            SystemServiceUnavailable(),
            AdapterNotFound("hci0"),
            OperationFailed("Connect"),
        ):
            assert isinstance(err, BluemgrError)
            assert str(err)
            assert isinstance(err.code, int)

    def test_caller_errors_are_not_service_errors(self):
        assert not isinstance(DeviceNotFound("AA:BB:CC:DD:EE:FF"), SystemServiceError)
        assert not isinstance(InvalidAddress("x"), SystemServiceError)
        assert not isinstance(NoDefaultAdapter(), SystemServiceError)
