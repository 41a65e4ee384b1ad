"""Tests for Bluetooth address parsing and object-path helpers."""

import pytest

from bluemgr.bt_ref.utils import (
    Address,
    device_address_to_path,
    device_path_to_address,
    parse_address,
)
from bluemgr.core.errors import InvalidAddress


class TestAddress:
    def test_parse_canonicalises_case(self):
        assert str(Address.parse("aa:bb:cc:dd:ee:0f")) == "AA:BB:CC:DD:EE:0F"

    def test_parse_strips_whitespace(self):
        assert str(Address.parse("  12:34:56:78:9A:BC\n")) == "12:34:56:78:9A:BC"

    @pytest.mark.parametrize(
        "text",
        [
            "invalid-address",
            "",
            "AA:BB:CC:DD:EE",
            "AA:BB:CC:DD:EE:FF:00",
            "AA-BB-CC-DD-EE-FF",
            "AABBCCDDEEFF",
            "GG:BB:CC:DD:EE:FF",
            "A:BB:CC:DD:EE:FF",
        ],
    )
    def test_parse_rejects_malformed(self, text):
        with pytest.raises(InvalidAddress):
            Address.parse(text)

    def test_parse_rejects_non_string(self):
        with pytest.raises(InvalidAddress):
            Address.parse(None)

    def test_equality_ignores_input_case(self):
        assert parse_address("aa:bb:cc:dd:ee:ff") == parse_address("AA:BB:CC:DD:EE:FF")

    def test_parse_address_passes_through(self):
        addr = Address.parse("AA:BB:CC:DD:EE:FF")
        assert parse_address(addr) is addr

    def test_invalid_address_message(self):
        with pytest.raises(InvalidAddress) as exc_info:
            parse_address("nope")
        assert "nope" in str(exc_info.value)


class TestPaths:
    def test_address_to_path(self):
        assert (
            device_address_to_path("12:34:44:00:66:d5", "hci0")
            == "/org/bluez/hci0/dev_12_34_44_00_66_D5"
        )

    def test_path_to_address(self):
        addr = device_path_to_address("/org/bluez/hci1/dev_12_34_44_00_66_D5", "hci1")
        assert str(addr) == "12:34:44:00:66:D5"

    @pytest.mark.parametrize(
        "path",
        [
            "/org/bluez/hci0",
            "/org/bluez/hci1/dev_12_34_44_00_66_D5",
            "/org/bluez/hci0/dev_12_34_44_00_66_D5/service000a",
            "/org/bluez/hci0/dev_nonsense",
        ],
    )
    def test_path_to_address_rejects_other_objects(self, path):
        assert device_path_to_address(path, "hci0") is None
